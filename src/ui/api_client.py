"""
Asynchronous HTTP client for the VoiceScribe transcription proxy.

Uses ``httpx.AsyncClient`` because the recorder runs on an asyncio event loop.
"""

import logging

import httpx

from src.core.models import ResponseFormat, TranscriptionResult
from src.services.audio.codec import encode_audio

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the recorder to build notification messages.
    """

    def __init__(self, message: str, category: str = "unknown") -> None:
        self.message = message
        self.category = category
        super().__init__(message)


class TranscriptionClient:
    """Thin async wrapper around httpx for calling ``POST /transcribe``.

    Every method returns parsed models or raises ``APIError`` with a
    user-friendly message.
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:8000/transcribe",
        timeout: float = 180.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            endpoint: Full URL of the proxy's transcription endpoint.
            timeout: Seconds to wait for the whole round trip, upstream included.
            transport: Optional httpx transport (tests pass an ASGI or mock one).
        """
        self._endpoint = endpoint
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def _post(self, body: dict) -> httpx.Response:
        """POST a JSON body with user-friendly error handling.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = await self._client.post(self._endpoint, json=body)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Transcription server is not running. "
                "Start it with: `python -m src.api`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The server may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                detail = exc.response.json().get("error") or "Transcription failed"
            except Exception:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http") from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    async def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        mime_type: str = "audio/webm",
        model: str | None = None,
        response_format: ResponseFormat | None = None,
        temperature: float | None = None,
        prompt: str | None = None,
    ) -> TranscriptionResult:
        """Send audio for transcription and return the normalized result."""
        body: dict = {
            "audio": encode_audio(audio),
            "language": language,
            "mime_type": mime_type,
        }
        if model:
            body["model"] = model
        if response_format is not None:
            body["response_format"] = str(response_format)
        if temperature is not None:
            body["temperature"] = temperature
        if prompt:
            body["prompt"] = prompt

        logger.info("Submitting %d bytes of %s for transcription", len(audio), mime_type)
        resp = await self._post(body)
        try:
            return TranscriptionResult.model_validate(resp.json())
        except ValueError as exc:
            raise APIError(f"Unexpected response from server: {exc}", category="http") from None

    async def aclose(self) -> None:
        await self._client.aclose()
