"""
VoiceScribe exception hierarchy.

All application-specific exceptions inherit from VoiceScribeError,
enabling centralized error handling in the API middleware layer and
uniform notification handling in the recorder.
"""

from typing import Any


class VoiceScribeError(Exception):
    """Base exception for all VoiceScribe errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICESCRIBE_ERROR",
        status_code: int = 500,
        details: Any = None,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Recorder side
# ---------------------------------------------------------------------------


class CaptureError(VoiceScribeError):
    """Raised when the capture device cannot be opened or fails mid-recording."""

    def __init__(self, detail: str = "Audio capture failed", code: str = "CAPTURE_ERROR") -> None:
        super().__init__(detail=detail, code=code, status_code=500)


class PermissionDeniedError(CaptureError):
    """Raised when the host refuses microphone access."""

    def __init__(
        self, detail: str = "Microphone access denied. Please check microphone permissions."
    ) -> None:
        super().__init__(detail=detail, code="PERMISSION_DENIED")


class DeviceUnavailableError(CaptureError):
    """Raised when no usable input device exists."""

    def __init__(self, detail: str = "No microphone available") -> None:
        super().__init__(detail=detail, code="DEVICE_UNAVAILABLE")


class EmptyRecordingError(VoiceScribeError):
    """Raised when a stopped recording produced zero bytes of audio."""

    def __init__(self) -> None:
        super().__init__(
            detail="Recording failed. Please try again.",
            code="EMPTY_RECORDING",
            status_code=400,
        )


class RecorderBusyError(VoiceScribeError):
    """Raised when trying to start a recording while not idle."""

    def __init__(self, state: str) -> None:
        super().__init__(
            detail=f"Cannot start recording while {state}",
            code="RECORDER_BUSY",
            status_code=409,
        )


class InvalidStateTransitionError(VoiceScribeError):
    """Raised on a recorder state change the state machine does not allow."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            detail=f"Invalid recorder transition: {current} -> {target}",
            code="INVALID_TRANSITION",
            status_code=500,
        )


# ---------------------------------------------------------------------------
# Proxy side
# ---------------------------------------------------------------------------


class BadRequestError(VoiceScribeError):
    """Raised for malformed client input to the proxy."""

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(detail=detail, code="BAD_REQUEST", status_code=400)


class MethodNotAllowedError(VoiceScribeError):
    """Raised for any method other than POST (and OPTIONS preflight)."""

    def __init__(self) -> None:
        super().__init__(
            detail="Method not allowed",
            code="METHOD_NOT_ALLOWED",
            status_code=405,
        )


class PayloadTooLargeError(VoiceScribeError):
    """Raised when decoded audio exceeds the upstream upload limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            detail="Audio file too large",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            details=f"{size} bytes exceeds the {limit} byte limit",
        )


class ServiceMisconfiguredError(VoiceScribeError):
    """Raised when the upstream credential is not configured."""

    def __init__(self, detail: str = "OpenAI API key not configured") -> None:
        super().__init__(detail=detail, code="SERVICE_MISCONFIGURED", status_code=500)


class UpstreamError(VoiceScribeError):
    """Raised when the upstream API answers with a non-success status.

    The upstream status code is relayed unchanged.
    """

    def __init__(self, status_code: int, details: Any = None) -> None:
        super().__init__(
            detail="Transcription failed",
            code="UPSTREAM_ERROR",
            status_code=status_code,
            details=details,
        )


class NetworkError(VoiceScribeError):
    """Raised when the upstream API cannot be reached."""

    def __init__(
        self, detail: str = "Transcription service unreachable", details: Any = None
    ) -> None:
        super().__init__(detail=detail, code="NETWORK_ERROR", status_code=502, details=details)


class InternalError(VoiceScribeError):
    """Raised for unexpected failures inside the proxy."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(
            detail="Internal server error",
            code="INTERNAL_ERROR",
            status_code=500,
            details=details,
        )
