"""
Recorder controller: the capture-to-transcription state machine.

States: idle -> recording -> transcribing -> idle

While recording, three tasks are owned by the current ``RecordingSession``:

* the chunk pump, draining the capture device in arrival order,
* the elapsed timer, ticking at 1-second granularity,
* the level sampler, running an FFT over the most recent audio window.

All three are released on every exit path from ``recording``. Presentation
code never touches the device; it consumes ``RecorderEvent`` messages from
``events`` instead.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from src.core.config import get_settings
from src.core.exceptions import (
    CaptureError,
    EmptyRecordingError,
    InvalidStateTransitionError,
    RecorderBusyError,
)
from src.core.models import (
    NotificationLevel,
    RecorderEvent,
    RecorderEventType,
    RecorderState,
    TranscriptionResult,
)
from src.services.audio.capture import CaptureDevice
from src.services.audio.processor import AudioProcessor, LevelMeter
from src.services.audio.recorder import AudioPayload, RecordingSession
from src.services.history import TranscriptionHistory
from src.ui.api_client import APIError, TranscriptionClient

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[RecorderState, set[RecorderState]] = {
    RecorderState.idle: {RecorderState.recording},
    RecorderState.recording: {RecorderState.transcribing, RecorderState.idle},
    RecorderState.transcribing: {RecorderState.idle},
}

# Seconds to wait for the device to deliver its final chunks after close()
_DRAIN_TIMEOUT = 2.0


class RecorderController:
    """Drives one capture device through record / transcribe cycles.

    Args:
        capture_factory: Returns a fresh ``CaptureDevice`` for each recording.
        client: Transcription client used once per stop cycle.
        language: Language tag sent with every transcription request.
        history: Optional pre-existing history (a new one is created otherwise).
        clock: Monotonic clock used for elapsed time.
        level_interval: Seconds between audio-level samples.
        timer_interval: Seconds between elapsed-time updates.
        owns_client: Close ``client`` in ``aclose()``.
    """

    def __init__(
        self,
        capture_factory: Callable[[], CaptureDevice],
        client: TranscriptionClient,
        *,
        language: str | None = None,
        history: TranscriptionHistory | None = None,
        clock: Callable[[], float] = time.monotonic,
        level_interval: float | None = None,
        timer_interval: float | None = None,
        event_queue_size: int | None = None,
        owns_client: bool = False,
    ) -> None:
        settings = get_settings()
        self._capture_factory = capture_factory
        self._client = client
        self._owns_client = owns_client
        self._language = language or settings.default_language
        self._clock = clock
        self._level_interval = level_interval or settings.level_sample_interval
        self._timer_interval = timer_interval or settings.timer_interval
        self.history = history or TranscriptionHistory()
        self.events: asyncio.Queue[RecorderEvent] = asyncio.Queue(
            maxsize=event_queue_size or settings.event_queue_size
        )

        self._state = RecorderState.idle
        self._session: RecordingSession | None = None
        self._device: CaptureDevice | None = None
        self._pump: asyncio.Task | None = None
        self._tasks: list[asyncio.Task] = []
        self._capture_failure: CaptureError | None = None
        self._transcription: asyncio.Task | None = None
        # Serializes the two ways out of recording: stop and teardown
        self._release_lock = asyncio.Lock()

    # -- read-only view --

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def current_transcription(self) -> str:
        return self.history.current

    @property
    def elapsed_seconds(self) -> int:
        return self._session.elapsed_seconds if self._session else 0

    @property
    def audio_level(self) -> float:
        return self._session.audio_level if self._session else 0.0

    @property
    def can_start(self) -> bool:
        """Whether the record control should be enabled."""
        return self._state is not RecorderState.transcribing

    # -- events --

    def _emit(self, event_type: RecorderEventType, **data) -> None:
        """Queue an event, dropping the oldest one when the queue is full."""
        if self.events.full():
            self.events.get_nowait()
        self.events.put_nowait(RecorderEvent(type=event_type, data=data))

    def _notify(self, level: NotificationLevel, message: str) -> None:
        self._emit(RecorderEventType.notification, level=str(level), message=message)

    def _transition(self, target: RecorderState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidStateTransitionError(self._state, target)
        logger.debug("Recorder %s -> %s", self._state, target)
        self._state = target
        self._emit(RecorderEventType.state, state=str(target))

    # -- lifecycle --

    async def start_recording(self) -> bool:
        """Open the capture device and begin recording.

        Returns:
            True when recording started; False when the device could not be
            opened (an error notification is emitted and the state stays idle).

        Raises:
            RecorderBusyError: If called while recording or transcribing.
        """
        if self._state is not RecorderState.idle:
            raise RecorderBusyError(self._state)

        device = self._capture_factory()
        try:
            await device.open()
        except CaptureError as exc:
            logger.warning("Error starting recording: %s", exc.detail)
            await device.close()
            self._notify(NotificationLevel.error, exc.detail)
            return False

        session = RecordingSession(encoding=device.encoding, started_at=self._clock())
        self._session = session
        self._device = device
        self._capture_failure = None
        self._pump = asyncio.create_task(self._pump_chunks(device, session))
        self._tasks = [
            asyncio.create_task(self._run_timer(session)),
            asyncio.create_task(self._sample_levels(session)),
        ]
        self._transition(RecorderState.recording)
        self._notify(NotificationLevel.success, "Recording started!")
        logger.info("Recording started")
        return True

    async def stop_recording(self) -> asyncio.Task | None:
        """Stop capture and submit the recording for transcription.

        Returns:
            The transcription task, or None when nothing was submitted
            (not recording, empty recording, or capture failure).
        """
        async with self._release_lock:
            return await self._stop_locked()

    async def _stop_locked(self) -> asyncio.Task | None:
        if self._state is not RecorderState.recording or self._session is None:
            logger.warning("No recording in progress")
            return None

        session = self._session
        duration = session.tick(self._clock())
        await self._release_session()

        failure = self._capture_failure
        try:
            if failure is not None:
                raise failure
            payload = session.assemble()
        except (CaptureError, EmptyRecordingError) as exc:
            logger.error("Recording unusable: %s", exc.detail)
            self._notify(NotificationLevel.error, exc.detail)
            self._transition(RecorderState.idle)
            return None

        logger.info("Recording stopped: %ds, %d bytes", duration, len(payload.data))
        self._transition(RecorderState.transcribing)
        self._transcription = asyncio.create_task(self._transcribe(payload, duration))
        return self._transcription

    def clear_history(self) -> None:
        """Empty the history and the displayed transcription."""
        self.history.clear()
        self._notify(NotificationLevel.info, "History cleared!")

    async def aclose(self) -> None:
        """Release every resource owned by the controller.

        A stop already in progress finishes first; an in-flight transcription
        is awaited to completion, never cancelled.
        """
        async with self._release_lock:
            if self._state is RecorderState.recording:
                await self._release_session()
                self._transition(RecorderState.idle)
        if self._transcription is not None and not self._transcription.done():
            await self._transcription
        if self._owns_client:
            await self._client.aclose()

    # -- internals --

    async def _release_session(self) -> None:
        """Stop periodic work, close the device and drain pending chunks."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

        device, pump = self._device, self._pump
        self._device, self._pump = None, None
        try:
            if device is not None:
                await device.close()
        finally:
            if pump is not None:
                try:
                    await asyncio.wait_for(pump, timeout=_DRAIN_TIMEOUT)
                except TimeoutError:
                    logger.warning("Capture device did not finish within %.1fs", _DRAIN_TIMEOUT)

        if self._session is not None:
            self._session.audio_level = 0.0
            self._session.elapsed_seconds = 0
        self._session = None

    async def _pump_chunks(self, device: CaptureDevice, session: RecordingSession) -> None:
        try:
            async for chunk in device.chunks():
                session.append(chunk)
        except CaptureError as exc:
            logger.warning("Capture failed during recording: %s", exc.detail)
            self._capture_failure = exc

    async def _run_timer(self, session: RecordingSession) -> None:
        while True:
            await asyncio.sleep(self._timer_interval)
            self._emit(RecorderEventType.timer, elapsed=session.tick(self._clock()))

    async def _sample_levels(self, session: RecordingSession) -> None:
        if not session.encoding.is_pcm:
            return
        processor = AudioProcessor(
            sample_rate=session.encoding.sample_rate,
            sample_width=session.encoding.sample_width,
            channels=session.encoding.channels,
        )
        meter = LevelMeter()
        window_bytes = meter.fft_size * session.encoding.sample_width * session.encoding.channels
        while True:
            window = session.tail(window_bytes)
            if window:
                samples = processor.pcm_to_ndarray(window)
                if session.encoding.channels > 1:
                    samples = samples.reshape(-1, session.encoding.channels).mean(axis=1)
                session.audio_level = meter.level(samples)
                self._emit(RecorderEventType.level, level=session.audio_level)
            await asyncio.sleep(self._level_interval)

    async def _transcribe(self, payload: AudioPayload, duration: int) -> TranscriptionResult | None:
        try:
            result = await self._client.transcribe(
                payload.data,
                language=self._language,
                mime_type=payload.mime_type,
            )
        except APIError as exc:
            logger.error("Error transcribing audio: %s", exc.message)
            self._notify(NotificationLevel.error, f"Failed to transcribe audio: {exc.message}")
            return None
        except Exception as exc:
            logger.exception("Unexpected transcription failure")
            self._notify(NotificationLevel.error, f"Failed to transcribe audio: {exc}")
            return None
        else:
            entry = self.history.add(result.text, duration)
            self._emit(RecorderEventType.transcription, entry=entry.model_dump(mode="json"))
            self._notify(NotificationLevel.success, "Transcription completed!")
            return result
        finally:
            self._transition(RecorderState.idle)
