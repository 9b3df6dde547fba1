"""OpenAI Whisper STT implementation over HTTP.

Relays audio to ``POST /audio/transcriptions`` as multipart form data with
bearer authentication, and normalizes the response into a
``TranscriptionResult``. Connection failures are retried with exponential
back-off; everything else is mapped onto the VoiceScribe error hierarchy.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import Settings, get_settings
from src.core.exceptions import (
    InternalError,
    NetworkError,
    ServiceMisconfiguredError,
    UpstreamError,
)
from src.core.models import ResponseFormat, TranscriptionResult
from src.core.utils import redact
from src.services.transcription.base import BaseSTT

logger = logging.getLogger(__name__)

_FILE_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/flac": "flac",
}


def upload_filename(mime_type: str) -> str:
    """Pick the upload filename for a content type (``audio.webm`` by default)."""
    base = mime_type.split(";", 1)[0].strip().lower()
    return f"audio.{_FILE_EXTENSIONS.get(base, 'webm')}"


def build_form(
    audio: bytes,
    *,
    language: str,
    model: str,
    response_format: ResponseFormat,
    temperature: float,
    prompt: str | None = None,
    mime_type: str = "audio/webm",
) -> tuple[dict[str, str], dict[str, tuple[str, bytes, str]]]:
    """Build the multipart fields for an upstream transcription request.

    httpx turns the returned ``(data, files)`` pair into a binary-safe
    ``multipart/form-data`` body, so audio containing the boundary token or
    the filename is transmitted unchanged.
    """
    content_type = mime_type.split(";", 1)[0].strip() or "audio/webm"
    data = {
        "model": model,
        "language": language,
        "response_format": str(response_format),
        "temperature": f"{temperature:g}",
    }
    if prompt:
        data["prompt"] = prompt
    files = {"file": (upload_filename(mime_type), audio, content_type)}
    return data, files


def _error_details(response: httpx.Response) -> Any:
    """Return the upstream error body, parsed as JSON when possible."""
    try:
        return response.json()
    except ValueError:
        return response.text


class OpenAIWhisperSTT(BaseSTT):
    """Speech-to-text provider backed by the OpenAI audio API.

    Args:
        settings: Optional Settings instance (defaults to get_settings()).
        transport: Optional httpx transport, used by tests to fake the upstream.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport

    @property
    def _api_key(self) -> str:
        return self._settings.openai_api_key.get_secret_value()

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ServiceMisconfiguredError()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
        reraise=True,
    )
    async def _post(self, data: dict, files: dict) -> httpx.Response:
        """Send the multipart request. Only connection failures are retried."""
        async with httpx.AsyncClient(
            base_url=self._settings.openai_base_url,
            timeout=self._settings.transcription_timeout,
            transport=self._transport,
        ) as client:
            return await client.post(
                "/audio/transcriptions",
                headers={"Authorization": f"Bearer {self._api_key}"},
                data=data,
                files=files,
            )

    async def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        model: str = "whisper-1",
        response_format: ResponseFormat = ResponseFormat.json,
        temperature: float = 0.0,
        prompt: str | None = None,
        mime_type: str = "audio/webm",
    ) -> TranscriptionResult:
        self.ensure_configured()
        data, files = build_form(
            audio,
            language=language,
            model=model,
            response_format=response_format,
            temperature=temperature,
            prompt=prompt,
            mime_type=mime_type,
        )
        logger.info(
            "Forwarding %d bytes to upstream (model=%s, language=%s, format=%s)",
            len(audio),
            model,
            language,
            response_format,
        )

        try:
            response = await self._post(data, files)
        except httpx.TransportError as exc:
            logger.error("Upstream transcription API unreachable: %s", exc)
            raise NetworkError(details=redact(str(exc), self._api_key)) from exc

        if response.is_error:
            details = _redact_json(_error_details(response), self._api_key)
            logger.error("OpenAI API error (%d): %s", response.status_code, details)
            raise UpstreamError(status_code=response.status_code, details=details)

        return self._normalize(response, response_format)

    @staticmethod
    def _normalize(response: httpx.Response, response_format: ResponseFormat) -> TranscriptionResult:
        """Convert an upstream success body into a ``TranscriptionResult``."""
        if response_format == ResponseFormat.text:
            return TranscriptionResult(text=response.text.strip())

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Upstream returned a non-JSON body")
            raise NetworkError(
                detail="Invalid response from transcription service",
                details=response.text[:500],
            ) from exc

        if not isinstance(payload, dict):
            raise NetworkError(detail="Invalid response from transcription service")

        try:
            return TranscriptionResult(
                text=payload.get("text") or "",
                duration=payload.get("duration"),
                language=payload.get("language"),
                segments=payload.get("segments"),
            )
        except ValueError as exc:
            raise InternalError(details=str(exc)) from exc


def _redact_json(value: Any, secret: str) -> Any:
    """Recursively redact ``secret`` from strings inside a JSON value."""
    if isinstance(value, str):
        return redact(value, secret)
    if isinstance(value, dict):
        return {k: _redact_json(v, secret) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_json(v, secret) for v in value]
    return value
