"""
FastAPI application factory.

``create_app()`` assembles the transcription proxy with permissive CORS,
error handlers, the transcription route, and the health endpoint. The
module-level ``app`` instance allows ``uvicorn src.api.app:app --reload``.
"""

from datetime import UTC, datetime

from fastapi import FastAPI

from src.api.middleware.cors import CORSHeadersMiddleware
from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import transcribe
from src.core.models import HealthResponse


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application."""

    app = FastAPI(
        title="VoiceScribe",
        description="Speech-to-text relay: base64 audio in, Whisper transcript out.",
        version="0.1.0",
    )

    # -- CORS (any origin, every response) --
    app.add_middleware(CORSHeadersMiddleware)

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(transcribe.router)

    return app


app = create_app()
