from typing import Any, Optional, List
from injector import inject
from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from delivery.db.models.restaurant import RestaurantModel
from delivery.repositories.db_repository import DbRepository


@inject
class RestaurantRepository(DbRepository[RestaurantModel]):
    """Registry of restaurants (tenants) in the central database"""

    def __init__(self, db: AsyncSession):
        super().__init__(RestaurantModel, db)

    async def find_by_domain_or_slug(
        self, domain: Optional[str], slug: Optional[str]
    ) -> Optional[RestaurantModel]:
        """One OR query; a custom domain match is returned before a slug match"""
        conditions = []
        if domain:
            conditions.append(RestaurantModel.domain == domain)
        if slug:
            conditions.append(RestaurantModel.slug == slug)
        if not conditions:
            return None

        stmt = select(RestaurantModel).where(or_(*conditions)).limit(1)
        if domain:
            stmt = stmt.order_by(
                case((RestaurantModel.domain == domain, 0), else_=1),
                RestaurantModel.id,
            )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_active(self) -> List[RestaurantModel]:
        """Get all active restaurants"""
        result = await self.db.execute(
            select(RestaurantModel)
            .where(RestaurantModel.active.is_(True))
            .order_by(RestaurantModel.id)
        )
        return list(result.scalars().all())

    async def exists_by_slug(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(RestaurantModel.id).where(RestaurantModel.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(RestaurantModel.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def exists_by_domain(self, domain: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(RestaurantModel.id).where(RestaurantModel.domain == domain)
        if exclude_id is not None:
            stmt = stmt.where(RestaurantModel.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.first() is not None

    async def update_partial(
        self, restaurant: RestaurantModel, fields: dict[str, Any]
    ) -> RestaurantModel:
        """Apply only the given fields; everything else stays untouched"""
        for key, value in fields.items():
            if key == "id":
                continue
            setattr(restaurant, key, value)
        return await self.update(restaurant)
