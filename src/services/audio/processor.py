"""Audio processing utilities for PCM data.

Converts raw PCM bytes to numpy arrays, wraps them in a WAV container for
upload, and measures the live audio level for recorder feedback.
"""

import io
import wave

import numpy as np


class AudioProcessor:
    """Handles PCM audio data conversion.

    Provides utilities for converting raw PCM bytes to numpy arrays and
    packaging them as in-memory WAV files.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw PCM bytes (16-bit signed) to float32 numpy array.

        Args:
            pcm_data: Raw PCM bytes (16-bit, interleaved when multi-channel).

        Returns:
            Float32 numpy array normalized to [-1.0, 1.0].

        Raises:
            ValueError: If data length is not aligned to sample frame size.
        """
        frame_size = self.sample_width * self.channels
        if len(pcm_data) % frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({frame_size})"
            )
        # Convert 16-bit signed integers to float32 in [-1.0, 1.0] range
        return np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0

    def pcm_to_wav(self, pcm_data: bytes) -> bytes:
        """Wrap raw PCM bytes in a WAV container held in memory.

        Args:
            pcm_data: Raw PCM bytes (16-bit).

        Returns:
            The complete WAV file as bytes; the PCM frames are copied verbatim.

        Raises:
            ValueError: If pcm_data is empty.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data to WAV")
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data)
        return buf.getvalue()


class LevelMeter:
    """Frequency-domain audio level on a 0-255 scale.

    Mirrors a browser ``AnalyserNode``: Blackman-windowed FFT, exponential
    smoothing across calls, magnitudes mapped from ``[min_db, max_db]`` onto
    byte values and averaged over all bins.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing: float = 0.8,
        min_db: float = -100.0,
        max_db: float = -30.0,
    ) -> None:
        self.fft_size = fft_size
        self._smoothing = smoothing
        self._min_db = min_db
        self._max_db = max_db
        self._window = np.blackman(fft_size).astype(np.float32)
        self._previous = np.zeros(fft_size // 2, dtype=np.float64)

    def byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """Return per-bin magnitudes as uint8 for the most recent window."""
        if len(samples) >= self.fft_size:
            frame = samples[-self.fft_size :]
        else:
            # Left-pad short input with silence
            frame = np.zeros(self.fft_size, dtype=np.float32)
            frame[self.fft_size - len(samples) :] = samples

        spectrum = np.abs(np.fft.rfft(frame * self._window))[: self.fft_size // 2] / self.fft_size
        self._previous = self._smoothing * self._previous + (1 - self._smoothing) * spectrum

        with np.errstate(divide="ignore"):
            decibels = 20 * np.log10(self._previous)
        scaled = 255 * (decibels - self._min_db) / (self._max_db - self._min_db)
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)

    def level(self, samples: np.ndarray) -> float:
        """Average byte magnitude across all frequency bins."""
        return float(self.byte_frequency_data(samples).mean())

    def reset(self) -> None:
        """Forget smoothing state."""
        self._previous = np.zeros(self.fft_size // 2, dtype=np.float64)
