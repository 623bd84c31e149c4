"""
Central logging configuration for the whole project.
Call  init_logging()  *once* early in startup (before anything logs).
"""

import logging
import os
import sys

from contextvars import ContextVar
from loguru import logger
from delivery.core.config.settings import settings


# --------------------------------------------------------------------------- #
# Context variables that middlewares will fill in per-request
# --------------------------------------------------------------------------- #
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
ip_ctx: ContextVar[str] = ContextVar("ip", default="-")
method_ctx: ContextVar[str] = ContextVar("method", default="-")
path_ctx: ContextVar[str] = ContextVar("path", default="-")
tenant_ctx: ContextVar[str] = ContextVar("tenant", default="-")
status_ctx: ContextVar[int] = ContextVar("status", default=-1)
duration_ctx: ContextVar[int] = ContextVar("duration", default=-1)

_configured = False


# --------------------------------------------------------------------------- #
# Helper – forward stdlib logging records to Loguru
# --------------------------------------------------------------------------- #
class _InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(**record.__dict__.get("extra", {})).opt(
            depth=6, exception=record.exc_info  # keep caller info accurate
        ).log(level, record.getMessage())


def _patch_stdlib(level: str) -> None:
    logging.root.setLevel(level)
    logging.root.handlers[:] = [_InterceptHandler()]  # replace all handlers
    for noise in ("asyncio", "httpx", "aiosqlite"):
        logging.getLogger(noise).setLevel(logging.WARNING)


# --------------------------------------------------------------------------- #
# Main entry point
# --------------------------------------------------------------------------- #
def init_logging() -> None:
    global _configured
    if _configured:
        return

    JSON_FORMAT = (
        '{{"timestamp":"{time:YYYY-MM-DD HH:mm:ss.SSS}",'
        '"level":"{level}",'
        '"message":{message!r},'
        '"file":"{file.name}","line":{line},"function":"{function}",'
        '"request_id":"{extra[request_id]}",'
        '"ip":"{extra[ip]}",'
        '"method":"{extra[method]}",'
        '"path":"{extra[path]}",'
        '"tenant":"{extra[tenant]}",'
        '"status":"{extra[status]}",'
        '"duration_ms":"{extra[duration]}"}}'
    )

    logger.remove()  # drop default stderr sink

    # Human-friendly console
    logger.add(
        sys.stdout,
        level=settings.LOG_LEVEL,
        colorize=True,
        format=(
            "<green>{time:HH:mm:ss.SSS}</green> "
            "<level>{level: <8}</level> "
            "[<cyan>{extra[request_id]}</cyan>] "
            "<yellow>{extra[tenant]}</yellow> "
            "<blue>{extra[method]}</blue> "
            "<magenta>{extra[path]}</magenta> | "
            "<level>{message}</level>"
        ),
        enqueue=False,
    )

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)

        # Rotating JSON files
        logger.add(
            f"{settings.LOG_DIR}/access.log",
            level="INFO",
            filter=lambda r: r["level"].name == "INFO",
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            format=JSON_FORMAT,
            enqueue=False,
        )

        logger.add(
            f"{settings.LOG_DIR}/error.log",
            level="ERROR",
            rotation="5 MB",
            retention="14 days",
            compression="zip",
            format=JSON_FORMAT,
            enqueue=False,
        )

    # Default values so “{extra[…]}” never fails
    logger.configure(
        extra={
            "request_id": "-",
            "ip": "-",
            "method": "-",
            "path": "-",
            "tenant": "-",
            "status": "-",
            "duration": "-",
        }
    )

    # Feed stdlib logging into Loguru
    _patch_stdlib(settings.LOG_LEVEL)

    # Fine-tune noisy libraries
    for name, level in {
        "uvicorn": logging.INFO if settings.DEBUG is False else logging.DEBUG,
        "uvicorn.access": logging.INFO if settings.DEBUG is False else logging.DEBUG,
        "sqlalchemy.engine": (
            logging.WARNING if settings.DEBUG is False else logging.DEBUG
        ),
        "alembic": logging.INFO,
    }.items():
        logging.getLogger(name).setLevel(level)

    _configured = True
    logger.info("✅ Loguru logging configured")
