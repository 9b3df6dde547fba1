"""Base64 transport encoding for audio payloads.

The recorder encodes assembled audio with ``encode_audio`` before posting it
as JSON; the proxy reverses it with ``decode_audio``.
"""

import base64
import binascii

from src.core.exceptions import BadRequestError


def encode_audio(data: bytes) -> str:
    """Encode raw audio bytes as a standard base64 string."""
    return base64.b64encode(data).decode("ascii")


def _normalize_base64(payload: str) -> str:
    """Drop whitespace and restore padding, as browser ``atob`` does.

    Line-wrapped (MIME) and unpadded input are accepted; a length of 1 mod 4
    or ``=`` anywhere but the end is not.
    """
    payload = "".join(payload.split())
    if len(payload) % 4 == 0:
        payload = payload.removesuffix("=").removesuffix("=")
    if len(payload) % 4 == 1 or "=" in payload:
        raise BadRequestError("Invalid base64 audio data")
    return payload + "=" * (-len(payload) % 4)


def decode_audio(encoded: str) -> bytes:
    """Decode a base64 audio string into raw bytes.

    Accepts both bare base64 and ``data:audio/<type>;base64,<payload>`` URLs.

    Raises:
        BadRequestError: If the string is not valid base64 or decodes to nothing.
    """
    payload = encoded.strip()
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")

    try:
        data = base64.b64decode(_normalize_base64(payload), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise BadRequestError("Invalid base64 audio data") from exc

    if not data:
        raise BadRequestError("Audio data is required")
    return data
