"""
Transcription relay endpoint.

``POST /transcribe`` accepts base64 audio plus options, forwards it to the
configured STT provider and returns ``{text, duration?, language?,
segments?}``. Validation, credential and decoding checks run in that order;
all failures surface through the shared error handlers.
"""

import logging

from fastapi import APIRouter, Depends

from src.core.config import Settings, get_settings
from src.core.exceptions import InternalError, PayloadTooLargeError, VoiceScribeError
from src.core.models import TranscriptionRequest, TranscriptionResult
from src.core.utils import redact
from src.services.audio.codec import decode_audio
from src.services.transcription import BaseSTT, create_stt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcription"])


def get_transcriber(settings: Settings = Depends(get_settings)) -> BaseSTT:
    """Build the STT provider for one request; overridden in tests."""
    return create_stt(settings.transcription_provider, settings=settings)


@router.post(
    "/transcribe",
    response_model=TranscriptionResult,
    response_model_exclude_none=True,
)
async def transcribe(
    body: TranscriptionRequest,
    settings: Settings = Depends(get_settings),
    stt: BaseSTT = Depends(get_transcriber),
) -> TranscriptionResult:
    """Relay one recording to the upstream speech-to-text API."""
    stt.ensure_configured()

    audio = decode_audio(body.audio)
    if len(audio) > settings.max_audio_bytes:
        raise PayloadTooLargeError(len(audio), settings.max_audio_bytes)

    try:
        result = await stt.transcribe(
            audio,
            language=body.language,
            model=body.model,
            response_format=body.response_format,
            temperature=body.temperature,
            prompt=body.prompt,
            mime_type=body.mime_type,
        )
    except VoiceScribeError:
        raise
    except Exception as exc:
        logger.exception("Transcription error")
        secret = settings.openai_api_key.get_secret_value()
        raise InternalError(details=redact(str(exc), secret)) from exc

    logger.info("Transcribed %d bytes into %d characters", len(audio), len(result.text))
    return result
