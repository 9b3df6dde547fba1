"""
Audio module - Capture, buffering and processing utilities.
"""

from .processor import AudioProcessor, LevelMeter
from .recorder import AudioEncoding, AudioPayload, RecordingSession

__all__ = ["AudioProcessor", "AudioEncoding", "AudioPayload", "LevelMeter", "RecordingSession"]
