"""Microphone capture devices.

``CaptureDevice`` is the interface the recorder drives; ``SoundDeviceCapture``
implements it on top of PortAudio via ``sounddevice``. Chunks produced on the
PortAudio callback thread are handed to the event loop through an
``asyncio.Queue`` so the recorder consumes them in arrival order.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from src.core.exceptions import DeviceUnavailableError, PermissionDeniedError
from src.services.audio.recorder import AudioEncoding

logger = logging.getLogger(__name__)


class CaptureDevice(ABC):
    """Interface every audio capture source must implement."""

    encoding: AudioEncoding

    @abstractmethod
    async def open(self) -> None:
        """Acquire the input device and start emitting chunks.

        Raises:
            PermissionDeniedError: If the host refuses microphone access.
            DeviceUnavailableError: If no usable input device exists.
        """

    @abstractmethod
    def chunks(self) -> AsyncIterator[bytes]:
        """Yield captured chunks in arrival order until the device is closed."""

    @abstractmethod
    async def close(self) -> None:
        """Stop capturing and release the device. Safe to call more than once."""


class SoundDeviceCapture(CaptureDevice):
    """16-bit PCM microphone capture using ``sounddevice.RawInputStream``.

    Args:
        sample_rate: Capture rate in Hz.
        channels: Number of input channels.
        device: PortAudio device name or index; None selects the default input.
        blocksize: Frames per chunk (default: 100 ms).
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device: str | int | None = None,
        blocksize: int | None = None,
    ) -> None:
        self.encoding = AudioEncoding(sample_rate=sample_rate, channels=channels, sample_width=2)
        self._device = device
        self._blocksize = blocksize or sample_rate // 10
        self._stream = None
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    def _callback(self, indata, frames, time_info, status) -> None:  # noqa: ARG002
        """PortAudio callback thread: forward a copy of the block to the loop."""
        if status:
            logger.warning("Capture status: %s", status)
        if self._loop is not None and not self._closed:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, bytes(indata))

    async def open(self) -> None:
        try:
            import sounddevice as sd
        except OSError as exc:
            # Raised when the PortAudio shared library is missing
            raise DeviceUnavailableError(f"Audio backend unavailable: {exc}") from exc

        self._loop = asyncio.get_running_loop()
        try:
            sd.query_devices(self._device, kind="input")
            self._stream = sd.RawInputStream(
                samplerate=self.encoding.sample_rate,
                channels=self.encoding.channels,
                dtype="int16",
                device=self._device,
                blocksize=self._blocksize,
                callback=self._callback,
            )
            self._stream.start()
        except PermissionError as exc:
            raise PermissionDeniedError() from exc
        except (sd.PortAudioError, ValueError) as exc:
            raise DeviceUnavailableError(f"No microphone available: {exc}") from exc

        logger.info(
            "Audio stream opened: %sHz, %s channel(s), %s frames/chunk",
            self.encoding.sample_rate,
            self.encoding.channels,
            self._blocksize,
        )

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            finally:
                self._stream = None
                logger.info("Audio stream closed")
        # Sentinel goes after any chunk already scheduled by the callback thread
        if self._loop is not None:
            self._loop.call_soon(self._queue.put_nowait, None)
        else:
            self._queue.put_nowait(None)
