"""Entry point for running the fetch agent."""

import logging

import uvicorn

from .config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


def main():
    """Run the fetch agent server."""
    settings = get_settings()

    logger.info("Server is running on port %s", settings.app_port)

    uvicorn.run(
        "fetch_agent.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
