import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette_context import context as sctx
from delivery.core.config.logging import tenant_ctx
from delivery.core.config.settings import settings
from delivery.core.exceptions.exception_classes import TenantNotFoundException
from delivery.core.exceptions.exception_handler import app_exception_response
from delivery.core.host_resolver import resolve_host
from delivery.core.tenant_scope import reset_store
from delivery.db.multi_tenant_session import multi_tenant_manager
from delivery.repositories.restaurants import RestaurantRepository
from delivery.services.tenant_router import TenantRouter

logger = logging.getLogger(__name__)


def is_central_path(path: str) -> bool:
    return any(
        path == prefix or path.startswith(prefix.rstrip("/") + "/")
        for prefix in settings.CENTRAL_PATH_PREFIXES
    )


class TenantMiddleware(BaseHTTPMiddleware):
    """Binds the tenant store selected by the request host for the rest of the request"""

    async def dispatch(self, request: Request, call_next):
        if is_central_path(request.url.path):
            return await call_next(request)

        host = request.url.hostname or ""
        try:
            if not host:
                raise TenantNotFoundException("Request without host")

            key = resolve_host(host)
            async with multi_tenant_manager.get_central_session_factory()() as session:
                restaurant, token = await TenantRouter(RestaurantRepository(session)).route(key)
        except TenantNotFoundException as error:
            logger.info(f"No tenant for host {host!r}: {error.error_detail}")
            return app_exception_response(request, error)

        request.state.tenant = restaurant
        tenant_token = tenant_ctx.set(restaurant.slug)
        if sctx.exists():
            sctx["tenant"] = restaurant.slug

        try:
            return await call_next(request)
        finally:
            tenant_ctx.reset(tenant_token)
            reset_store(token)
