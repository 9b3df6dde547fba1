"""Shared utility functions for VoiceScribe."""


def redact(text: str, secret: str) -> str:
    """Replace every occurrence of ``secret`` in ``text`` with ``***``."""
    if not secret:
        return text
    return text.replace(secret, "***")
