"""Shared pytest fixtures for VoiceScribe test suite.

Provides audio samples, isolated settings, a scriptable capture device,
and a mocked transcription client used across unit and integration tests.
"""

import asyncio
import math
import struct
from unittest.mock import AsyncMock

import pytest

from src.core.config import Settings
from src.core.models import TranscriptionResult
from src.services.audio.capture import CaptureDevice
from src.services.audio.recorder import AudioEncoding
from src.ui.api_client import TranscriptionClient

TEST_API_KEY = "sk-test-secret-key"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    """Settings isolated from the developer's .env, with a test credential."""
    return Settings(_env_file=None, openai_api_key=TEST_API_KEY)


@pytest.fixture
def unconfigured_settings():
    """Settings with no upstream credential."""
    return Settings(_env_file=None, openai_api_key="")


# ---------------------------------------------------------------------------
# Capture fixtures
# ---------------------------------------------------------------------------


class FakeCapture(CaptureDevice):
    """In-memory capture device driven by the test.

    Chunks queued with ``emit`` (even before ``open``) are yielded in order;
    ``fail`` makes the chunk iterator raise.
    """

    def __init__(self, encoding: AudioEncoding | None = None, open_error=None) -> None:
        self.encoding = encoding or AudioEncoding()
        self._open_error = open_error
        self._queue: asyncio.Queue = asyncio.Queue()
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self.opened = True

    def emit(self, chunk: bytes) -> None:
        self._queue.put_nowait(chunk)

    def fail(self, exc: Exception) -> None:
        self._queue.put_nowait(exc)

    async def chunks(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)


@pytest.fixture
def make_capture():
    """Factory for ``FakeCapture`` instances."""
    return FakeCapture


@pytest.fixture
def fake_capture():
    """A PCM ``FakeCapture`` that opens successfully."""
    return FakeCapture()


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_client():
    """Create a mock transcription client for unit testing.

    Returns:
        AsyncMock: A mock implementing the TranscriptionClient interface that
        transcribes everything as "hello".
    """
    client = AsyncMock(spec=TranscriptionClient)
    client.transcribe.return_value = TranscriptionResult(text="hello")
    return client


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    sample_rate = 16000
    duration = 1.0
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(int(sample_rate * duration)):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM silence data (all zeros).
    """
    sample_rate = 16000
    return b"\x00\x00" * sample_rate
