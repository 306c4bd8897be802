from __future__ import annotations

import logging
import sys

from fastapi import FastAPI

from .api import router
from .config import get_settings

# Configure logging for the entire fetch_agent package
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("fetch_agent").setLevel(logging.INFO)

logger = logging.getLogger(__name__)

settings = get_settings()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fetch Agent",
        description="Copilot agent that builds and executes HTTP requests after user confirmation",
        version="0.1.0",
        debug=settings.debug,
    )
    app.include_router(router)
    return app


app = create_app()
