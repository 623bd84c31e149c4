from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Integer, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class TimestampMixin:
    created_at = Column(DateTime(timezone=True),
                        default=lambda: datetime.now(timezone.utc),
                        server_default=text('CURRENT_TIMESTAMP'))

    updated_at = Column(DateTime(timezone=True),
                        default=lambda: datetime.now(timezone.utc),
                        server_default=text('CURRENT_TIMESTAMP'),
                        onupdate=lambda: datetime.now(timezone.utc))


class _ModelMixin(TimestampMixin):
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True, sort_order=-1)


class CentralBase(DeclarativeBase, _ModelMixin):
    """Tables of the central registry database."""


class TenantBase(DeclarativeBase, _ModelMixin):
    """Tables living in every tenant database."""
