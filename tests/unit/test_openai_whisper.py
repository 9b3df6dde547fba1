"""Tests for OpenAIWhisperSTT (mocked upstream via httpx.MockTransport).

Validates multipart construction, bearer authentication, response
normalization for every response format, upstream error relaying,
credential redaction and connection-retry behavior, all without
network access.
"""

import httpx
import pytest
from tenacity import wait_none

from src.core.exceptions import NetworkError, ServiceMisconfiguredError, UpstreamError
from src.core.models import ResponseFormat
from src.services.transcription import create_stt
from src.services.transcription.openai_whisper import (
    OpenAIWhisperSTT,
    build_form,
    upload_filename,
)

TEST_API_KEY = "sk-test-secret-key"


class Upstream:
    """Records requests and replies with a configurable response."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(200, json={"text": "hello"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def stt(settings, upstream):
    """OpenAIWhisperSTT wired to the fake upstream."""
    return OpenAIWhisperSTT(settings=settings, transport=httpx.MockTransport(upstream))


def _boundary(request: httpx.Request) -> bytes:
    content_type = request.headers["content-type"]
    assert content_type.startswith("multipart/form-data; boundary=")
    return content_type.split("boundary=", 1)[1].encode()


def _field(name: str, value: str) -> bytes:
    return f'Content-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()


# ---------------------------------------------------------------------------
# Form construction
# ---------------------------------------------------------------------------


class TestBuildForm:
    """Verify the multipart field set."""

    def test_defaults(self):
        data, files = build_form(
            b"abc",
            language="en",
            model="whisper-1",
            response_format=ResponseFormat.json,
            temperature=0,
        )
        assert data == {
            "model": "whisper-1",
            "language": "en",
            "response_format": "json",
            "temperature": "0",
        }
        assert files == {"file": ("audio.webm", b"abc", "audio/webm")}

    def test_prompt_included_when_set(self):
        data, _ = build_form(
            b"abc",
            language="de",
            model="whisper-1",
            response_format=ResponseFormat.verbose_json,
            temperature=0.2,
            prompt="Names: Anke, Jörg",
        )
        assert data["prompt"] == "Names: Anke, Jörg"
        assert data["temperature"] == "0.2"
        assert data["response_format"] == "verbose_json"

    def test_mime_type_selects_filename(self):
        _, files = build_form(
            b"RIFF",
            language="en",
            model="whisper-1",
            response_format=ResponseFormat.json,
            temperature=0,
            mime_type="audio/wav",
        )
        assert files["file"] == ("audio.wav", b"RIFF", "audio/wav")

    @pytest.mark.parametrize(
        ("mime_type", "expected"),
        [
            ("audio/webm;codecs=opus", "audio.webm"),
            ("audio/ogg", "audio.ogg"),
            ("audio/mpeg", "audio.mp3"),
            ("application/octet-stream", "audio.webm"),
        ],
    )
    def test_upload_filename(self, mime_type, expected):
        assert upload_filename(mime_type) == expected


# ---------------------------------------------------------------------------
# Request framing
# ---------------------------------------------------------------------------


class TestRequest:
    """Verify what actually goes over the wire."""

    async def test_endpoint_and_auth(self, stt, upstream):
        await stt.transcribe(b"\x00\x00\x00")

        assert upstream.last.method == "POST"
        assert upstream.last.url == "https://api.openai.com/v1/audio/transcriptions"
        assert upstream.last.headers["authorization"] == f"Bearer {TEST_API_KEY}"

    async def test_multipart_defaults(self, stt, upstream):
        await stt.transcribe(b"\x00\x00\x00")

        body = upstream.last.content
        assert _field("model", "whisper-1") in body
        assert _field("language", "en") in body
        assert _field("response_format", "json") in body
        assert _field("temperature", "0") in body
        assert b'name="prompt"' not in body
        assert b'name="file"; filename="audio.webm"' in body
        assert b"Content-Type: audio/webm" in body

    async def test_binary_safe_with_boundary_like_audio(self, stt, upstream):
        """Audio containing the filename and CRLF/boundary markers arrives intact."""
        audio = b"\x00audio.webm\r\n--boundary\r\n\xff" * 50

        await stt.transcribe(audio)

        request = upstream.last
        boundary = _boundary(request)
        body = request.content
        assert audio in body
        assert body.startswith(b"--" + boundary + b"\r\n")
        assert body.endswith(b"--" + boundary + b"--\r\n")

    async def test_prompt_sent(self, stt, upstream):
        await stt.transcribe(b"abc", prompt="Glossary: VoiceScribe")
        assert _field("prompt", "Glossary: VoiceScribe") in upstream.last.content


# ---------------------------------------------------------------------------
# Response normalization
# ---------------------------------------------------------------------------


class TestNormalization:
    """Verify success bodies become TranscriptionResult."""

    async def test_json_text_only(self, stt):
        result = await stt.transcribe(b"abc")
        assert result.text == "hello"
        assert result.duration is None
        assert result.language is None
        assert result.segments is None

    async def test_missing_text_defaults_to_empty(self, stt, upstream):
        upstream.response = httpx.Response(200, json={})
        result = await stt.transcribe(b"abc")
        assert result.text == ""

    async def test_verbose_json(self, stt, upstream):
        segments = [{"id": 0, "start": 0.0, "end": 1.2, "text": "hello"}]
        upstream.response = httpx.Response(
            200,
            json={"text": "hello", "duration": 1.2, "language": "english", "segments": segments},
        )

        result = await stt.transcribe(b"abc", response_format=ResponseFormat.verbose_json)

        assert result.duration == 1.2
        assert result.language == "english"
        assert result.segments == segments

    async def test_plain_text_format(self, stt, upstream):
        upstream.response = httpx.Response(200, text="hello there\n")
        result = await stt.transcribe(b"abc", response_format=ResponseFormat.text)
        assert result.text == "hello there"

    async def test_non_json_body_is_an_error(self, stt, upstream):
        upstream.response = httpx.Response(200, text="<html>oops</html>")
        with pytest.raises(NetworkError, match="Invalid response"):
            await stt.transcribe(b"abc")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    """Verify error mapping and secrecy of the credential."""

    def test_missing_key(self, unconfigured_settings):
        stt = OpenAIWhisperSTT(settings=unconfigured_settings)
        with pytest.raises(ServiceMisconfiguredError) as exc_info:
            stt.ensure_configured()
        assert exc_info.value.detail == "OpenAI API key not configured"

    async def test_missing_key_makes_no_call(self, unconfigured_settings, upstream):
        stt = OpenAIWhisperSTT(
            settings=unconfigured_settings, transport=httpx.MockTransport(upstream)
        )
        with pytest.raises(ServiceMisconfiguredError):
            await stt.transcribe(b"abc")
        assert upstream.requests == []

    async def test_upstream_status_relayed(self, stt, upstream):
        upstream.response = httpx.Response(
            429, json={"error": {"message": "Rate limit reached", "type": "requests"}}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await stt.transcribe(b"abc")

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "Transcription failed"
        assert exc_info.value.details["error"]["message"] == "Rate limit reached"

    async def test_upstream_text_error(self, stt, upstream):
        upstream.response = httpx.Response(502, text="Bad gateway")
        with pytest.raises(UpstreamError) as exc_info:
            await stt.transcribe(b"abc")
        assert exc_info.value.details == "Bad gateway"

    async def test_echoed_key_is_redacted(self, stt, upstream):
        upstream.response = httpx.Response(
            401, json={"error": {"message": f"Incorrect API key provided: {TEST_API_KEY}"}}
        )

        with pytest.raises(UpstreamError) as exc_info:
            await stt.transcribe(b"abc")

        assert TEST_API_KEY not in str(exc_info.value.details)
        assert "***" in exc_info.value.details["error"]["message"]

    async def test_connect_errors_retried_then_reported(self, settings, monkeypatch):
        monkeypatch.setattr(OpenAIWhisperSTT._post.retry, "wait", wait_none())
        attempts = []

        def refuse(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        stt = OpenAIWhisperSTT(settings=settings, transport=httpx.MockTransport(refuse))

        with pytest.raises(NetworkError) as exc_info:
            await stt.transcribe(b"abc")

        assert len(attempts) == 3
        assert exc_info.value.status_code == 502

    async def test_read_timeout_not_retried(self, settings):
        attempts = []

        def slow(request):
            attempts.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        stt = OpenAIWhisperSTT(settings=settings, transport=httpx.MockTransport(slow))

        with pytest.raises(NetworkError):
            await stt.transcribe(b"abc")
        assert len(attempts) == 1


def test_factory_builds_openai_provider(settings):
    assert isinstance(create_stt("openai", settings=settings), OpenAIWhisperSTT)


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError, match="Unknown STT provider"):
        create_stt("carrier-pigeon")
