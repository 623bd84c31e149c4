"""
Per-operation binding of the active tenant database.

The binding lives in a ContextVar, so every request (asyncio task) and every
admin operation sees only the binding it established itself.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Iterator, Optional

from delivery.core.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreBinding:
    database_name: str
    url: str


_store_ctx: ContextVar[Optional[StoreBinding]] = ContextVar("tenant_store", default=None)


def bind_store(database_name: str) -> Token:
    """Bind the tenant store for the current context and return the reset token."""
    binding = StoreBinding(
        database_name=database_name,
        url=settings.get_database_url(database_name),
    )
    token = _store_ctx.set(binding)
    logger.debug(f"Bound tenant store: {database_name}")
    return token


def get_store_binding() -> Optional[StoreBinding]:
    return _store_ctx.get()


def reset_store(token: Token) -> None:
    """Restore whatever binding was active before `bind_store` returned `token`."""
    _store_ctx.reset(token)


def clear_store() -> None:
    _store_ctx.set(None)


@contextmanager
def bound_store(database_name: str) -> Iterator[StoreBinding]:
    token = bind_store(database_name)
    try:
        yield _store_ctx.get()
    finally:
        reset_store(token)
