"""Shared utility functions for ScreenVault."""

import re
import time

RECORDING_FILENAME_PATTERN = re.compile(r"^recording-(\d+)\.(\w+)$")


def format_time(seconds: int) -> str:
    """Format elapsed seconds as ``MM:SS``."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


def epoch_millis() -> int:
    """Current wall-clock time in milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def recording_filename(started_at_ms: int, ext: str) -> str:
    """Build the upload filename for a capture started at ``started_at_ms``."""
    return f"recording-{started_at_ms}.{ext.lstrip('.')}"
