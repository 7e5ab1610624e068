"""Entry point for running the panel.

Usage:
    python -m wa_panel

Environment Variables:
    SERVER_HOST: HTTP server host (default: '0.0.0.0')
    SERVER_PORT: HTTP server port (default: 8000)
    API_BASE_URL: Root URL of the remote business API
"""

import logging
import sys

import uvicorn

from wa_panel.config import get_settings
from wa_panel.server import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the panel with uvicorn."""
    settings = get_settings()

    logger.info(
        f"Starting WhatsApp panel on {settings.server_host}:{settings.server_port}"
    )

    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
