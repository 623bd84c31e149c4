import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_injector import InjectorMiddleware, RequestScopeOptions, attach_injector
from delivery.core.config.logging import init_logging
from delivery.api.v1.routes._routes import register_routers
from delivery.core.config.settings import settings
from delivery.core.exceptions.exception_handler import init_error_handlers
from delivery.dependencies.injector import injector
from delivery.middlewares._middleware import build_middlewares
from delivery.db.migrations import run_central_migrations
from delivery.db.multi_tenant_session import multi_tenant_manager


init_logging()
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Application-factory entry-point.
    Only orchestration happens here – all heavy lifting lives in helpers.
    """
    app = FastAPI(
        title="Delivery API",
        version=settings.API_VERSION,
        lifespan=_lifespan,
        middleware=build_middlewares(),
    )

    add_di_middleware(app)

    init_error_handlers(app)

    register_routers(app)

    return app


def add_di_middleware(app):
    app.add_middleware(InjectorMiddleware, injector=injector)
    # Enable cleanup - fastapi-injector will handle AsyncSession through context managers
    options = RequestScopeOptions(enable_cleanup=True)
    attach_injector(app, injector, options)


# --------------------------------------------------------------------------- #
# Lifespan handler                                                            #
# --------------------------------------------------------------------------- #
@asynccontextmanager
async def _lifespan(app: FastAPI):
    """
    Startup / shutdown scaffold.
    Runs **before** the first request and **after** the last response.
    """
    logger.debug("Running lifespan startup tasks …")

    if settings.AUTO_MIGRATE:
        await run_central_migrations()

    try:
        yield
    finally:
        # Cleanup multi-tenant connections
        await multi_tenant_manager.close_all()

        logger.debug("Lifespan shutdown complete.")
