"""
Abstract base class for speech-to-text providers.

The proxy route depends only on this interface, so tests and alternative
upstreams can be swapped in through FastAPI dependency overrides.
"""

from abc import ABC, abstractmethod

from src.core.models import ResponseFormat, TranscriptionResult


class BaseSTT(ABC):
    """Interface that every STT provider must implement."""

    def ensure_configured(self) -> None:  # noqa: B027
        """Raise ``ServiceMisconfiguredError`` if the provider cannot be used.

        Called before the request payload is decoded. The default accepts
        any configuration.
        """

    @abstractmethod
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
        """Transcribe raw audio bytes.

        Args:
            audio: Encoded audio file contents (webm, wav, ...).
            language: ISO 639-1 language hint.
            model: Upstream model identifier.
            response_format: Upstream output format.
            temperature: Sampling temperature, forwarded unchanged.
            prompt: Optional text to guide style or vocabulary.
            mime_type: Content type of ``audio``; selects the upload filename.

        Returns:
            The normalized transcription.
        """
