"""
Pydantic v2 request / response models used across the proxy and recorder.

Proxy — TranscriptionRequest, TranscriptionResult, ErrorResponse
Recorder — TranscriptionEntry, RecorderState, RecorderEvent
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


class ResponseFormat(StrEnum):
    """Output formats accepted by the upstream transcription API."""

    json = "json"
    text = "text"
    verbose_json = "verbose_json"


class TranscriptionRequest(BaseModel):
    """POST /transcribe request body."""

    audio: str = Field(min_length=1)  # Base64, optionally a data: URL
    language: str = "en"
    model: str = "whisper-1"
    response_format: ResponseFormat = ResponseFormat.json
    temperature: float = 0.0  # Range is enforced upstream
    prompt: str | None = None
    mime_type: str = "audio/webm"


class TranscriptionResult(BaseModel):
    """Normalized transcription returned to callers. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    duration: float | None = None
    language: str | None = None
    segments: list[dict[str, Any]] | None = None


class ErrorResponse(BaseModel):
    """Error envelope shared by every failing proxy response."""

    error: str
    details: Any = None


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------


class TranscriptionEntry(BaseModel):
    """One item of the in-memory transcription history."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    timestamp: datetime
    duration: int = 0  # Whole seconds of recorded audio


class RecorderState(StrEnum):
    """Recorder lifecycle states."""

    idle = "idle"
    recording = "recording"
    transcribing = "transcribing"


class RecorderEventType(StrEnum):
    """Discriminator for events placed on the recorder event queue."""

    state = "state"
    timer = "timer"
    level = "level"
    transcription = "transcription"
    notification = "notification"


class NotificationLevel(StrEnum):
    """Severity of a user-facing notification."""

    info = "info"
    success = "success"
    error = "error"


class RecorderEvent(BaseModel):
    """Message emitted by the recorder for the presentation layer."""

    type: RecorderEventType
    data: dict = Field(default_factory=dict)
