import logging
from typing import AsyncGenerator
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from delivery.core.exceptions.exception_classes import TenantNotFoundException
from delivery.core.tenant_scope import get_store_binding
from delivery.db.models.restaurant import RestaurantModel
from delivery.db.multi_tenant_session import multi_tenant_manager

logger = logging.getLogger(__name__)


async def get_tenant_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session for the store bound to this request"""
    session_factory = multi_tenant_manager.get_tenant_session_factory()
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
        binding = get_store_binding()
        logger.debug(f"Session closed for tenant store: {binding.database_name if binding else '-'}")


def get_current_tenant(request: Request) -> RestaurantModel:
    """Restaurant resolved by TenantMiddleware for this request"""
    tenant = getattr(request.state, "tenant", None)
    if tenant is None:
        raise TenantNotFoundException("No tenant resolved for this request")
    return tenant
