"""Run the API with uvicorn: ``python -m storefront``."""

import logging
import os
import sys

import uvicorn

from .config import ConfigError, get_settings
from .logging import configure_logging

logger = logging.getLogger("storefront.main")


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as exc:
        configure_logging()
        logger.error(
            "Invalid configuration",
            extra={
                "event_dataset": "storefront-api.app",
                "event_action": "config_invalid",
                "error_message": str(exc),
            },
        )
        sys.exit(1)

    uvicorn.run(
        "storefront.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        proxy_headers=True,
        log_config=None,
        reload=settings.app_env == "development" and os.getenv("RELOAD") == "1",
    )


if __name__ == "__main__":
    main()
