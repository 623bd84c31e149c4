from alembic import context
from sqlalchemy import NullPool, create_engine

from delivery.core.config.settings import settings
from delivery.core.tenant_scope import get_store_binding
from delivery.db import models  # noqa: F401
from delivery.db.base import TenantBase

config = context.config
target_metadata = TenantBase.metadata


def get_url() -> str:
    """-x database=<name> first, then an explicit URL, then the bound tenant store."""
    database = context.get_x_argument(as_dictionary=True).get("database")
    if database:
        return settings.get_database_url_sync(database)

    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url

    binding = get_store_binding()
    if binding is not None:
        return settings.get_database_url_sync(binding.database_name)

    raise RuntimeError("No tenant database given, pass -x database=<name>")


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
