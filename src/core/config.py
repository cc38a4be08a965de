"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

import sys
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_display_source() -> tuple[str, str]:
    """Return the ffmpeg (format, input) pair for full-screen capture."""
    if sys.platform == "darwin":
        return "avfoundation", "1:none"
    if sys.platform == "win32":
        return "gdigrab", "desktop"
    return "x11grab", ":0.0"


def _default_microphone_source() -> tuple[str, str]:
    """Return the ffmpeg (format, input) pair for the default microphone."""
    if sys.platform == "darwin":
        return "avfoundation", "none:0"
    if sys.platform == "win32":
        return "dshow", "audio=default"
    return "pulse", "default"


_DISPLAY_FORMAT, _DISPLAY_INPUT = _default_display_source()
_MIC_FORMAT, _MIC_INPUT = _default_microphone_source()


class Settings(BaseSettings):
    """ScreenVault settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        api_base_url: Origin of the recordings server (list/upload/delete).
        max_recording_seconds: Hard cap on a single capture.
        capture_backend: Which capture implementation to use ("ffmpeg").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Recordings server ---
    api_base_url: str = "http://localhost:5000"
    request_timeout: float | None = None  # None = no client-side timeout
    upload_field: str = "video"  # Multipart field name expected by the server

    # --- Recording session ---
    max_recording_seconds: int = 180
    tick_interval: float = 1.0  # Seconds between elapsed-counter ticks
    container_ext: str = "webm"
    content_type: str = "video/webm"

    # --- Capture backend ---
    # Selects the capture implementation; only "ffmpeg" ships today
    capture_backend: str = "ffmpeg"
    ffmpeg_path: str = "ffmpeg"
    display_format: str = _DISPLAY_FORMAT  # e.g. x11grab, avfoundation, gdigrab
    display_input: str = _DISPLAY_INPUT
    display_audio_format: str = ""  # Empty = no system-audio track
    display_audio_input: str = ""
    microphone_format: str = _MIC_FORMAT
    microphone_input: str = _MIC_INPUT
    capture_framerate: int = 30
    chunk_size: int = 65536  # Bytes read from the encoder per chunk event

    # --- Application ---
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
