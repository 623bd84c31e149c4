import asyncio
import logging
import os
import re
from typing import Dict
from sqlalchemy.ext.asyncio import (
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)
from sqlalchemy import NullPool, create_engine, text
from delivery.core.config.settings import settings
from delivery.core.exceptions.error_messages import ErrorKey
from delivery.core.exceptions.exception_classes import AppException
from delivery.core.tenant_scope import get_store_binding

logger = logging.getLogger(__name__)

# Database names are interpolated into DDL, so only plain identifiers are allowed.
_DATABASE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def ensure_valid_database_name(database_name: str) -> str:
    if not database_name or not _DATABASE_NAME_RE.match(database_name):
        raise AppException(
            ErrorKey.INVALID_DATABASE_NAME,
            status_code=500,
            error_variables=[repr(database_name)],
        )
    return database_name


class MultiTenantSessionManager:
    """Manages engines, sessions and physical databases for the central and tenant stores"""

    def __init__(self):
        # keyed by URL; engines are shareable, bindings are not
        self._engines: Dict[str, AsyncEngine] = {}
        self._session_factories: Dict[str, async_sessionmaker] = {}

    def get_engine(self, database_name: str) -> AsyncEngine:
        """Get or create the engine for a database"""
        url = settings.get_database_url(database_name)

        if url not in self._engines:
            if settings.is_sqlite:
                os.makedirs(settings.SQLITE_DATA_DIR, exist_ok=True)
                self._engines[url] = create_async_engine(url, echo=False, poolclass=NullPool)
            else:
                self._engines[url] = create_async_engine(
                        url,
                        echo=False,
                        pool_size=settings.DB_POOL_SIZE,
                        max_overflow=settings.DB_MAX_OVERFLOW,
                        pool_timeout=settings.DB_POOL_TIMEOUT,
                        pool_recycle=settings.DB_POOL_RECYCLE,
                        pool_pre_ping=True,
                        )
            logger.info(f"Created engine for database: {database_name}")

        return self._engines[url]

    def get_session_factory(self, database_name: str) -> async_sessionmaker:
        url = settings.get_database_url(database_name)

        if url not in self._session_factories:
            self._session_factories[url] = async_sessionmaker(
                bind=self.get_engine(database_name),
                expire_on_commit=False,
            )
            logger.debug(f"Created session factory for database: {database_name}")

        return self._session_factories[url]

    def get_central_session_factory(self) -> async_sessionmaker:
        return self.get_session_factory(settings.DB_NAME)

    def get_tenant_session_factory(self) -> async_sessionmaker:
        """Session factory of the store bound to the current request/operation"""
        binding = get_store_binding()
        if binding is None:
            raise AppException(ErrorKey.NO_TENANT_BOUND, status_code=500)
        return self.get_session_factory(binding.database_name)

    async def create_tenant_database(self, database_name: str) -> bool:
        """
        Create the physical database if it does not exist yet.

        Returns True when the database was created and False when it was
        already there, so the call is safe to repeat.
        """
        ensure_valid_database_name(database_name)
        return await asyncio.to_thread(self._create_database_sync, database_name)

    def _create_database_sync(self, database_name: str) -> bool:
        if settings.is_sqlite:
            path = settings.get_sqlite_path(database_name)
            if os.path.exists(path):
                logger.info(f"Tenant database '{database_name}' already exists")
                return False
            os.makedirs(os.path.dirname(path), exist_ok=True)
            engine = create_engine(settings.get_database_url_sync(database_name), poolclass=NullPool)
            with engine.connect():
                pass  # connecting creates the file
            engine.dispose()
            logger.info(f"Created tenant database: {database_name}")
            return True

        engine = create_engine(settings.ADMIN_DATABASE_URL, isolation_level="AUTOCOMMIT")
        try:
            with engine.connect() as conn:
                result = conn.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"),
                    {"name": database_name},
                )
                if result.fetchone():
                    logger.info(f"Tenant database '{database_name}' already exists")
                    return False
                conn.execute(text(f'CREATE DATABASE "{database_name}"'))
                logger.info(f"Created tenant database: {database_name}")
                return True
        finally:
            engine.dispose()

    async def database_exists(self, database_name: str) -> bool:
        ensure_valid_database_name(database_name)
        if settings.is_sqlite:
            return os.path.exists(settings.get_sqlite_path(database_name))

        def _exists() -> bool:
            engine = create_engine(settings.ADMIN_DATABASE_URL, isolation_level="AUTOCOMMIT")
            try:
                with engine.connect() as conn:
                    result = conn.execute(
                        text("SELECT 1 FROM pg_database WHERE datname = :name"),
                        {"name": database_name},
                    )
                    return result.fetchone() is not None
            finally:
                engine.dispose()

        return await asyncio.to_thread(_exists)

    async def close_all(self):
        """Close all database connections"""
        for engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()
        self._session_factories.clear()

        logger.info("All database connections closed")


# Global instance
multi_tenant_manager = MultiTenantSessionManager()
