"""Recording session state.

A ``RecordingSession`` accumulates captured chunks in arrival order, tracks
elapsed whole seconds and the latest audio level, and assembles the final
upload payload when recording stops.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.core.exceptions import EmptyRecordingError
from src.services.audio.processor import AudioProcessor

PCM_MIME_TYPE = "audio/pcm"


@dataclass(frozen=True)
class AudioEncoding:
    """Format reported by a capture device for the chunks it emits."""

    mime_type: str = PCM_MIME_TYPE
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2

    @property
    def is_pcm(self) -> bool:
        return self.mime_type == PCM_MIME_TYPE


@dataclass(frozen=True)
class AudioPayload:
    """Assembled audio ready for transport."""

    data: bytes
    mime_type: str


@dataclass
class RecordingSession:
    """Mutable state of one recording, from start to stop."""

    encoding: AudioEncoding
    started_at: float  # Monotonic clock reading
    started_wall: datetime = field(default_factory=lambda: datetime.now(UTC))
    chunks: list[bytes] = field(default_factory=list)
    elapsed_seconds: int = 0
    audio_level: float = 0.0

    def append(self, chunk: bytes) -> None:
        """Buffer one captured chunk. Empty chunks are ignored."""
        if chunk:
            self.chunks.append(chunk)

    @property
    def byte_count(self) -> int:
        return sum(len(c) for c in self.chunks)

    def tick(self, now: float) -> int:
        """Update and return elapsed whole seconds as of ``now``."""
        self.elapsed_seconds = max(0, math.floor(now - self.started_at))
        return self.elapsed_seconds

    def tail(self, size: int) -> bytes:
        """Return up to the last ``size`` bytes captured, frame-aligned for PCM."""
        parts: list[bytes] = []
        collected = 0
        for chunk in reversed(self.chunks):
            parts.append(chunk)
            collected += len(chunk)
            if collected >= size:
                break
        data = b"".join(reversed(parts))[-size:] if parts else b""
        frame = self.encoding.sample_width * self.encoding.channels
        return data[len(data) % frame :] if self.encoding.is_pcm else data

    def assemble(self) -> AudioPayload:
        """Concatenate chunks in arrival order into a single payload.

        PCM captures are wrapped in a WAV container; other encodings are
        passed through unchanged.

        Raises:
            EmptyRecordingError: If no audio bytes were captured.
        """
        data = b"".join(self.chunks)
        if not data:
            raise EmptyRecordingError()

        if self.encoding.is_pcm:
            processor = AudioProcessor(
                sample_rate=self.encoding.sample_rate,
                sample_width=self.encoding.sample_width,
                channels=self.encoding.channels,
            )
            return AudioPayload(data=processor.pcm_to_wav(data), mime_type="audio/wav")
        return AudioPayload(data=data, mime_type=self.encoding.mime_type)
