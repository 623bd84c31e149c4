import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from sqlalchemy import MetaData, NullPool, create_engine

from delivery.core.config.settings import settings
from delivery.core.project_path import ALEMBIC_INI_PATH
from delivery.db.multi_tenant_session import ensure_valid_database_name


logger = logging.getLogger(__name__)

CENTRAL = "central"
TENANT = "tenant"

# alembic.context and alembic.op are process globals, one upgrade at a time
alembic_lock = threading.Lock()


@dataclass(frozen=True)
class MigrationOptions:
    reset: bool = False  # drop every table before upgrading
    seed: bool = False  # only honoured together with reset


def get_alembic_config(migration_set: str, url: str):
    """Alembic config for one of the `alembic.ini` sections, pointed at `url`."""
    from alembic.config import Config

    alembic_cfg = Config(str(ALEMBIC_INI_PATH), ini_section=migration_set)
    # configparser interpolation: a literal % in a password must be doubled
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return alembic_cfg


def reset_database(url: str) -> None:
    """Drop every table of the database, alembic_version included."""
    engine = create_engine(url, poolclass=NullPool)
    try:
        with engine.begin() as conn:
            metadata = MetaData()
            metadata.reflect(bind=conn)
            metadata.drop_all(bind=conn)
    finally:
        engine.dispose()


def run_migrations(migration_set: str, url: str, reset: bool = False) -> None:
    """
    Programmatically executes `alembic upgrade head`.
    The call is idempotent – if you're already at head, nothing happens.
    """
    from alembic import command

    with alembic_lock:
        if reset:
            logger.warning(f"Resetting database before migrating ({migration_set})")
            reset_database(url)

        command.upgrade(get_alembic_config(migration_set, url), "head")


async def apply_migrations(
    database_name: str,
    options: MigrationOptions = MigrationOptions(),
    migration_set: str = TENANT,
) -> None:
    """Upgrade one database to head, optionally wiping and seeding it."""
    ensure_valid_database_name(database_name)
    url = settings.get_database_url_sync(database_name)
    if settings.is_sqlite:
        os.makedirs(settings.SQLITE_DATA_DIR, exist_ok=True)

    logger.info(f"Running {migration_set} migrations for: {database_name}")
    await asyncio.to_thread(run_migrations, migration_set, url, options.reset)
    logger.info(f"Migrations complete for: {database_name}")

    if options.seed:
        if not options.reset:
            logger.warning("Seeding only runs together with reset, skipping seed")
            return
        from delivery.db.seed.seed import seed_tenant_database

        await seed_tenant_database(database_name)


async def run_central_migrations(options: MigrationOptions = MigrationOptions()) -> None:
    await apply_migrations(settings.DB_NAME, MigrationOptions(reset=options.reset), CENTRAL)
