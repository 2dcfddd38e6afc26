import os
import sys

import uvicorn
from dotenv import load_dotenv

from reviewer.logging import get_logger
from reviewer.settings import app_settings, llm_settings

logger = get_logger()

dotenv_path = load_dotenv(dotenv_path=os.path.join(os.getcwd(), '.env'))


class MissingAPIKeyError(Exception):
    """Exception for missing API key."""


def serve(host: str | None = None, port: int | None = None) -> None:
    """Start the A2A server, exiting with status 1 if it cannot start."""
    host = host or app_settings.host
    port = port or app_settings.port

    try:
        if not llm_settings.api_key and not llm_settings.base_url:
            raise MissingAPIKeyError(
                'OPENAI_API_KEY environment variable not set.'
            )

        # imported here so a missing key is reported before any model is created
        from reviewer.server import AppFactory

        base_url = app_settings.public_url or f"http://{host}:{port}/"
        app_factory = AppFactory(base_url=base_url).build()
        uvicorn.run(
            app_factory.starlette_app,
            host=host,
            port=port,
            log_level=app_settings.log_level.lower(),
        )

    except MissingAPIKeyError as e:
        logger.error(f'Error: {e}')
        sys.exit(1)

    except Exception as e:
        logger.error(f'An error occurred during server startup: {e}')
        sys.exit(1)


if __name__ == '__main__':
    serve()
