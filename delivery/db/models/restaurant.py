from typing import Optional
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from delivery.db.base import CentralBase


class RestaurantModel(CentralBase):
    __tablename__ = 'restaurants'

    # Tenant identification
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)

    # Isolated database of the tenant, "tenant_<id>" once provisioned
    database_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Tenant status
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Restaurant(id={self.id}, name={self.name}, slug={self.slug})>"
