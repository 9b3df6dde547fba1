"""UI formatting helpers."""

from datetime import datetime


def format_time(seconds: int) -> str:
    """Render whole seconds as ``m:ss`` (e.g. 75 -> ``1:15``)."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


def format_timestamp(moment: datetime) -> str:
    """Render an entry timestamp in local time."""
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def level_bar(level: float, width: int = 20) -> str:
    """Draw a 0-255 audio level as a fixed-width text meter."""
    filled = round(max(0.0, min(255.0, level)) / 255 * width)
    return "#" * filled + "-" * (width - filled)
