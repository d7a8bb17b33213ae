import asyncio
import logging
import sys

import logfire
from fastapi import FastAPI

from config import Settings, get_settings
from server import RecipeServer


def validate_paths(settings: Settings) -> None:
    settings.data_dir.mkdir(exist_ok=True, parents=True)

    # create an empty log file if missing
    log_file = settings.data_dir / "recipe-saver.log"
    if not log_file.exists():
        log_file.touch()


def setup_logging(settings: Settings) -> logging.Logger:
    # Initialize Logfire if enabled
    if settings.logfire_enabled:
        try:
            logfire.configure(
                token=settings.logfire_token,
                service_name=settings.logfire_service_name,
            )

            # Trace model validation for recipes and protocol messages
            logfire.instrument_pydantic()

            print(f"Logfire initialized for service: {settings.logfire_service_name}")
        except Exception as e:
            print(f"Failed to initialize Logfire: {e}")

    # Set logging level based on debug setting
    log_level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        filename=settings.data_dir / "recipe-saver.log",
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger("recipe_saver")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def instrument_app(settings: Settings, app: FastAPI) -> None:
    if not settings.logfire_enabled:
        return

    try:
        # Trace every HTTP request, including the SSE and message routes
        logfire.instrument_fastapi(app)
    except Exception as e:
        print(f"Failed to instrument FastAPI with Logfire: {e}")


async def main() -> None:
    settings = get_settings()

    validate_paths(settings)

    logger = setup_logging(settings)

    server = RecipeServer(logger, settings)

    instrument_app(settings, server.app)

    logger.info(f"MCP SSE:  http://localhost:{settings.port}/sse")
    logger.info(f"REST API: http://localhost:{settings.port}/api/recipes")

    try:
        await server.listen()
    except Exception as e:
        print(f"Error running server: {e}")
        sys.exit(1)


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
