"""
This is the main file for the FastAPI application.
It is used to run the application in development mode.
"""

import os
import logging
import uvicorn

from delivery import create_app
from delivery.core.config.settings import settings


logger = logging.getLogger(__name__)

# Create the FastAPI app (after logging is ready)
app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("FASTAPI_RUN_PORT", settings.FASTAPI_RUN_PORT))
    debug_mode = os.environ.get("RELOAD", "False").lower() == "true"

    dir_path = os.path.dirname(os.path.realpath(__file__))
    logger.debug("current dir path:" + dir_path)

    # Start Uvicorn server
    uvicorn.run(
        "run:app",
        host="0.0.0.0",
        port=port,
        reload=debug_mode,
        reload_includes=["*.py"],
        reload_excludes=["./.git", "./.idea", "./logs", "./alembic", "./databases"],
        reload_dirs=["./delivery"],
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,  # Use default logging configuration
        workers=int(os.environ.get("WORKERS", 1)),
        access_log=os.environ.get("ACCESS_LOG", "False").lower() == "true",
        proxy_headers=os.environ.get("PROXY_HEADERS", "False").lower() == "true",
    )
