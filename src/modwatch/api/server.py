"""Run the moderation queue API with uvicorn."""

import os
import sys

import uvicorn
from dotenv import load_dotenv

from modwatch.main import BASE_DIR
from modwatch.util.logger import get_logger, handle_exception

logger = get_logger("queue_api_server")


def main() -> int:
    sys.excepthook = handle_exception
    os.chdir(BASE_DIR)
    load_dotenv(dotenv_path=BASE_DIR / ".env")

    from modwatch.api.app import create_app
    from modwatch.configuration.app_configuration import app_config

    api_settings = app_config.api
    logger.info("Starting moderation queue API on %s:%d", api_settings.host, api_settings.port)
    try:
        uvicorn.run(create_app(app_config), host=api_settings.host, port=api_settings.port)
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
