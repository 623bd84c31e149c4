import os
from typing import Optional, Tuple
from pydantic import computed_field, ConfigDict
from pydantic_settings import BaseSettings


class ProjectSettings(BaseSettings):

    # === Database ===
    DB_DRIVER: str = "postgresql"  # postgresql | sqlite
    DB_HOST: Optional[str] = "localhost"
    DB_PORT: int = 5432
    DB_USER: Optional[str] = "postgres"
    DB_PASS: Optional[str] = "postgres"
    DB_NAME: str = "delivery_central"
    DB_ADMIN_NAME: str = "postgres"  # maintenance db used for CREATE DATABASE
    SQLITE_DATA_DIR: str = os.path.join(os.getcwd(), "databases")

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    AUTO_MIGRATE: bool = True  # central alembic upgrade on startup

    # === Tenancy ===
    TENANT_DATABASE_PREFIX: str = "tenant_"
    TENANT_SUBDOMAIN_SUFFIX: Optional[str] = "-delivery"
    CENTRAL_PATH_PREFIXES: Tuple[str, ...] = (
        "/api/central",
        "/up",
        "/docs",
        "/redoc",
        "/openapi.json",
    )

    # === Language ===
    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: Tuple[str, ...] = ("en", "pt")

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True
    FASTAPI_RUN_PORT: int = 8000
    API_VERSION: Optional[str] = "1.0.0"
    CORS_ALLOWED_ORIGINS: Optional[str] = None

    @property
    def is_sqlite(self) -> bool:
        return self.DB_DRIVER == "sqlite"

    def get_database_url(self, database_name: str) -> str:
        """Async URL for any database handled by this server."""
        if self.is_sqlite:
            return f"sqlite+aiosqlite:///{self.get_sqlite_path(database_name)}"
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASS}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{database_name}"
        )

    def get_database_url_sync(self, database_name: str) -> str:
        """Sync URL, used by Alembic and admin connections."""
        if self.is_sqlite:
            return f"sqlite:///{self.get_sqlite_path(database_name)}"
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASS}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{database_name}"
        )

    def get_sqlite_path(self, database_name: str) -> str:
        return os.path.join(self.SQLITE_DATA_DIR, f"{database_name}.db")

    @computed_field
    @property
    def CENTRAL_DATABASE_URL(self) -> str:
        return self.get_database_url(self.DB_NAME)

    @computed_field
    @property
    def CENTRAL_DATABASE_URL_SYNC(self) -> str:
        return self.get_database_url_sync(self.DB_NAME)

    @computed_field
    @property
    def ADMIN_DATABASE_URL(self) -> str:
        return self.get_database_url_sync(self.DB_ADMIN_NAME)

    model_config = ConfigDict(
            env_file=".env",
            env_file_encoding="utf-8",
            extra="ignore",  # ignore unknown fields instead of raising an error
            )


settings = ProjectSettings()
