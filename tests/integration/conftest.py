"""Integration test fixtures for VoiceScribe.

Wires a real proxy app (upstream faked with ``httpx.MockTransport``) to a
real ``TranscriptionClient`` over ``ASGITransport``.
"""

import httpx
import pytest
from httpx import ASGITransport

from src.api.app import create_app
from src.api.routes.transcribe import get_transcriber
from src.core.config import get_settings
from src.services.transcription.openai_whisper import OpenAIWhisperSTT
from src.ui.api_client import TranscriptionClient


class RecordingUpstream:
    """Fake OpenAI audio API that keeps every request it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.response = httpx.Response(200, json={"text": "integration works"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def app(settings, upstream):
    """Create a fresh proxy application pointed at the fake upstream."""
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_transcriber] = lambda: OpenAIWhisperSTT(
        settings=settings, transport=httpx.MockTransport(upstream)
    )
    return app


@pytest.fixture
async def proxy_client(app):
    """TranscriptionClient that talks to the in-process proxy."""
    client = TranscriptionClient(
        endpoint="http://test/transcribe", transport=ASGITransport(app=app)
    )
    yield client
    await client.aclose()
