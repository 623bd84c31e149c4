import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from delivery.db.models.catalog import CategoryModel, ProductModel
from delivery.db.seed.seed_data_config import seed_catalog_data

logger = logging.getLogger(__name__)


async def seed_data(session: AsyncSession):
    """Insert the default catalog into a freshly migrated tenant database."""
    existing = await session.execute(
        select(CategoryModel).where(CategoryModel.name == seed_catalog_data.category_name)
    )
    if existing.scalars().first():
        logger.info("Catalog already seeded, skipping")
        return

    category = CategoryModel(name=seed_catalog_data.category_name, position=0)
    session.add(category)
    await session.flush()

    for name, description, price in seed_catalog_data.products:
        session.add(
            ProductModel(
                category_id=category.id,
                name=name,
                description=description,
                price=price,
                active=True,
            )
        )

    await session.commit()
    logger.info(f"Seeded {len(seed_catalog_data.products)} products")


async def seed_tenant_database(database_name: str) -> None:
    from delivery.db.multi_tenant_session import multi_tenant_manager

    session_factory = multi_tenant_manager.get_session_factory(database_name)
    async with session_factory() as session:
        await seed_data(session)
    logger.info(f"Successfully seeded tenant database: {database_name}")
