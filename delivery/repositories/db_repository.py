import logging
from typing import Generic, List, Optional, Type, TypeVar
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


logger = logging.getLogger(__name__)
OrmModelT = TypeVar("OrmModelT")


class DbRepository(Generic[OrmModelT]):
    """
    Generic async repository for one ORM model.
    Writes flush and commit on the injected session.
    """

    def __init__(self, model: Type[OrmModelT], db: AsyncSession):
        self.model = model
        self.db = db
        logger.debug("Initialised DbRepository for %s", model.__name__)


    # ───────────── READ methods ────────────────
    async def get_all(self) -> List[OrmModelT]:
        stmt = select(self.model).order_by(self.model.id.asc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


    async def get_by_id(self, obj_id: int) -> Optional[OrmModelT]:
        result = await self.db.execute(select(self.model).where(self.model.id == obj_id))
        return result.scalars().first()


    # ---------- WRITE ----------
    async def create(self, obj: OrmModelT) -> OrmModelT:
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj


    async def update(self, obj: OrmModelT) -> OrmModelT:
        """
        Accepts a *managed* ORM object whose attributes have already been
        mutated by the caller.  Flush/commit & refresh are done here.
        """
        await self.db.commit()
        await self.db.refresh(obj)
        return obj


    async def rollback(self) -> None:
        await self.db.rollback()
