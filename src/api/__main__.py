"""Run the transcription proxy: ``python -m src.api``."""

import logging

import uvicorn

from src.core.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.openai_api_key.get_secret_value():
        logging.getLogger(__name__).warning(
            "OPENAI_API_KEY is not set; transcription requests will fail with 500"
        )
    uvicorn.run(
        "src.api.app:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
