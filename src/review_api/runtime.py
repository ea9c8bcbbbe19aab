"""
Runtime entry point for the review API.

This module is invoked via `python -m review_api.runtime` or the `review-api` script.
"""

import logging
import signal
import sys
from types import FrameType

import uvicorn

from .app import create_app
from .config import get_settings
from .telemetry import setup_tracing


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def setup_signal_handlers(server: uvicorn.Server) -> None:
    """
    Setup graceful shutdown handlers for SIGINT and SIGTERM.

    Args:
        server: The uvicorn server instance to shutdown
    """

    def signal_handler(signum: int, _frame: FrameType | None) -> None:
        logger.info("Received signal %d, initiating graceful shutdown...", signum)
        server.should_exit = True

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main() -> None:
    """
    Main entry point for the review API.
    """
    try:
        settings = get_settings()

        # Tracing must be configured before the app is instrumented
        setup_tracing(settings, service_name="review-api")

        logging.getLogger().setLevel(settings.log_level)
        logger.setLevel(settings.log_level)

        logger.info("Store URL: %s", settings.store_url or "(not set)")
        logger.info("Store schema: %s", settings.store_schema or "default")
        logger.info("Tracing: %s", settings.enable_tracing)

        app = create_app(settings)

        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            access_log=True,
            server_header=False,
        )

        server = uvicorn.Server(config)
        setup_signal_handlers(server)

        logger.info("Server running on port %d", settings.port)

        server.run()

        logger.info("Server shutdown complete")

    except Exception:
        logger.exception("Fatal error during startup")
        sys.exit(1)


if __name__ == "__main__":
    main()
