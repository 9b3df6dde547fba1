"""
Global error handling for the FastAPI application.

Catches VoiceScribeError subclasses, request validation errors, routing
errors (404/405), and unhandled exceptions, converting them into the
``{"error": ..., "details": ...}`` envelope returned by every failing
proxy response.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware.cors import CORS_HEADERS
from src.core.config import get_settings
from src.core.exceptions import MethodNotAllowedError, VoiceScribeError
from src.core.models import ErrorResponse
from src.core.utils import redact

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    details=None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope, omitting ``details`` when absent."""
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    """Map pydantic errors to the proxy's user-facing 400 messages."""
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return "Invalid JSON body"
    for err in exc.errors():
        loc = tuple(err.get("loc", ()))
        if "audio" in loc or loc == ("body",):
            return "Audio data is required"
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    return f"Invalid value for {field}"


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers four handlers:
    1. ``VoiceScribeError`` — maps domain errors to their status and envelope.
    2. ``RequestValidationError`` — malformed or incomplete bodies (400).
    3. ``HTTPException`` — routing errors, e.g. 405 for non-POST methods.
    4. ``Exception`` — catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(VoiceScribeError)
    async def voicescribe_error_handler(_request: Request, exc: VoiceScribeError) -> JSONResponse:
        """Convert domain-specific errors into a JSON error envelope."""
        return error_response(exc.status_code, exc.detail, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Reject malformed client input with 400 instead of FastAPI's 422."""
        return error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render routing errors in the same envelope, keeping e.g. ``Allow``."""
        if exc.status_code == 405:
            error = MethodNotAllowedError().detail
        else:
            error = str(exc.detail)
        return error_response(exc.status_code, error, headers=exc.headers)

    @app.exception_handler(Exception)
    async def generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler — prevents stack traces and secrets from leaking.

        Runs outside user middleware, so the CORS header is attached here.
        """
        logger.exception("Unhandled error while serving request")
        secret = get_settings().openai_api_key.get_secret_value()
        return error_response(
            500,
            "Internal server error",
            redact(str(exc), secret) or type(exc).__name__,
            headers=CORS_HEADERS,
        )
