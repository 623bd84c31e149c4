import time
import uuid
from typing import Dict, List
from loguru import logger
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette_context import context as sctx
from starlette_context.middleware import RawContextMiddleware
from starlette_context.plugins import RequestIdPlugin

from delivery.middlewares.tenant_middleware import TenantMiddleware
from delivery.core.config.settings import settings
from delivery.core.config.logging import (
    duration_ctx,
    ip_ctx,
    method_ctx,
    path_ctx,
    request_id_ctx,
    status_ctx,
)


def get_allowed_origins() -> List[str]:
    """Comma-separated CORS_ALLOWED_ORIGINS, deduplicated. Empty when unset."""
    origins: List[str] = []
    for origin in (settings.CORS_ALLOWED_ORIGINS or "").split(","):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return origins


def build_middlewares() -> List[Middleware]:
    """
    Outermost first:

    1. RawContextMiddleware: request-scoped context and X-Request-ID.
    2. RequestContextMiddleware: logging ContextVars, start/end lines, timing.
       It wraps tenant resolution so unknown-host 404s are logged too.
    3. TenantMiddleware: host to restaurant, binds the tenant store.
    4. CORS.
    """
    return [
        Middleware(RawContextMiddleware, plugins=(RequestIdPlugin(),)),
        Middleware(RequestContextMiddleware),
        Middleware(TenantMiddleware),
        Middleware(
            CORSMiddleware,
            allow_origins=get_allowed_origins(),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
    ]


def _tenant_label(request: Request) -> str:
    # request.state is shared with inner middlewares, ContextVars set there are not
    restaurant = getattr(request.state, "tenant", None)
    return getattr(restaurant, "slug", None) or "-"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Logs start/end of every request and populates Loguru ContextVars."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()

        rid = (
            sctx.get("X-Request-ID")
            or request.headers.get("X-Request-ID")
            or str(uuid.uuid4())
        )
        fields = dict(
            request_id=rid,
            ip=request.client.host if request.client else "-",
            method=request.method,
            path=request.url.path,
        )

        tokens: Dict = {
            request_id_ctx: request_id_ctx.set(rid),
            ip_ctx: ip_ctx.set(fields["ip"]),
            method_ctx: method_ctx.set(fields["method"]),
            path_ctx: path_ctx.set(fields["path"]),
        }

        logger.bind(**fields, tenant="-").info("Request start")

        code = 500
        try:
            response = await call_next(request)
            code = response.status_code
            return response
        finally:
            duration = f"{(time.perf_counter() - start) * 1000:.2f}"
            tokens[status_ctx] = status_ctx.set(code)
            tokens[duration_ctx] = duration_ctx.set(duration)

            done = logger.bind(
                **fields,
                tenant=_tenant_label(request),
                status=code,
                duration=duration,
            )
            if code >= 500:
                done.error(f"Request failed {code}")
            else:
                done.info(f"Request handled {code}")

            for var, token in tokens.items():
                var.reset(token)
