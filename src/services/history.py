"""In-memory transcription history, most recent first."""

import time
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

from src.core.models import TranscriptionEntry


class TranscriptionHistory:
    """Append-at-front list of transcriptions plus the currently displayed text.

    Entry ids are derived from the wall clock in milliseconds and are strictly
    increasing, so two entries created within the same millisecond still get
    distinct ids. Nothing is persisted.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: list[TranscriptionEntry] = []
        self._current = ""
        self._last_id = 0

    def _next_id(self) -> str:
        candidate = int(self._clock() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return str(self._last_id)

    def add(self, text: str, duration: int) -> TranscriptionEntry:
        """Prepend a new entry and make it the current transcription."""
        entry = TranscriptionEntry(
            id=self._next_id(),
            text=text,
            timestamp=datetime.now(UTC),
            duration=duration,
        )
        self._entries.insert(0, entry)
        self._current = text
        return entry

    def clear(self) -> None:
        """Drop all entries and the current transcription."""
        self._entries.clear()
        self._current = ""

    @property
    def current(self) -> str:
        return self._current

    @property
    def entries(self) -> list[TranscriptionEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TranscriptionEntry]:
        return iter(list(self._entries))
