from alembic import context
from sqlalchemy import NullPool, create_engine

from delivery.core.config.settings import settings
from delivery.db import models  # noqa: F401
from delivery.db.base import CentralBase

config = context.config
target_metadata = CentralBase.metadata


def get_url() -> str:
    return config.get_main_option("sqlalchemy.url") or settings.CENTRAL_DATABASE_URL_SYNC


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    connectable = create_engine(url, poolclass=NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=url.startswith("sqlite"),
        )
        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
