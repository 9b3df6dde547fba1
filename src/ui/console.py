"""
Console front-end for the recorder.

Run with: ``python -m src.ui.console``

Enter toggles recording, ``c`` clears the history, ``h`` lists it and ``q``
quits. Rendering is driven entirely by the controller's event queue.
"""

import argparse
import asyncio
import contextlib
import logging
import sys
from collections.abc import Callable

from src.core.config import get_settings
from src.core.models import RecorderEvent, RecorderEventType, RecorderState
from src.services.audio.capture import SoundDeviceCapture
from src.services.controller import RecorderController
from src.ui.api_client import TranscriptionClient
from src.ui.utils import format_time, format_timestamp, level_bar

_PROMPT = "[Enter] record/stop  [c] clear  [h] history  [q] quit\n"


def render_event(event: RecorderEvent, out=None) -> None:
    """Write one recorder event to the terminal."""
    out = out or sys.stdout
    data = event.data
    if event.type is RecorderEventType.level:
        out.write(f"\r  level [{level_bar(data['level'])}]")
    elif event.type is RecorderEventType.timer:
        out.write(f"\r  Recording time: {format_time(data['elapsed'])}        \n")
    elif event.type is RecorderEventType.state:
        labels = {
            RecorderState.idle: "Ready to Record",
            RecorderState.recording: "Recording...",
            RecorderState.transcribing: "Transcribing... processing your audio",
        }
        out.write(f"\n{labels[RecorderState(data['state'])]}\n")
    elif event.type is RecorderEventType.transcription:
        out.write(f"\nLatest Transcription:\n  {data['entry']['text']}\n")
    elif event.type is RecorderEventType.notification:
        out.write(f"[{data['level']}] {data['message']}\n")
    out.flush()


def render_history(controller: RecorderController, out=None) -> None:
    """Print the history, most recent first."""
    out = out or sys.stdout
    out.write(f"Transcription History ({len(controller.history)})\n")
    if not len(controller.history):
        out.write("  No transcriptions yet\n")
    for entry in controller.history:
        out.write(
            f"  {format_timestamp(entry.timestamp)} | "
            f"{format_time(entry.duration)} duration | {entry.text}\n"
        )
    out.flush()


async def _render_events(controller: RecorderController) -> None:
    while True:
        render_event(await controller.events.get())


async def run(controller: RecorderController, read_line: Callable[[str], str] = input) -> None:
    """Interactive loop; returns after ``q`` or end of input."""
    renderer = asyncio.create_task(_render_events(controller))
    try:
        while True:
            try:
                command = (await asyncio.to_thread(read_line, _PROMPT)).strip().lower()
            except EOFError:
                break

            if command == "q":
                break
            if command == "c":
                controller.clear_history()
            elif command == "h":
                render_history(controller)
            elif controller.state is RecorderState.recording:
                await controller.stop_recording()
            elif controller.can_start:
                await controller.start_recording()
            else:
                sys.stdout.write("Still transcribing, please wait...\n")
                sys.stdout.flush()
    finally:
        await controller.aclose()
        # Let the renderer flush the final events before stopping it
        await asyncio.sleep(0)
        renderer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await renderer


def _parse_device(value: str | None) -> str | int | None:
    if value is not None and value.isdigit():
        return int(value)
    return value


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Record speech and transcribe it")
    parser.add_argument("--endpoint", default=settings.proxy_url, help="Transcription proxy URL")
    parser.add_argument("--language", default=settings.default_language, help="Language hint")
    parser.add_argument("--device", default=settings.capture_device, help="Input device name/index")
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    device = _parse_device(args.device)

    def capture_factory() -> SoundDeviceCapture:
        return SoundDeviceCapture(
            sample_rate=settings.capture_sample_rate,
            channels=settings.capture_channels,
            device=device,
        )

    async def _main() -> None:
        controller = RecorderController(
            capture_factory,
            TranscriptionClient(endpoint=args.endpoint),
            language=args.language,
            owns_client=True,
        )
        await run(controller)

    asyncio.run(_main())


if __name__ == "__main__":
    main()
