"""
Capture module - Screen/microphone acquisition and encoding.

Factory function for creating capture backends based on configuration.
"""

from .base import (
    BaseCaptureBackend,
    BaseEncoder,
    ChunkEvent,
    FinalizeEvent,
    MediaStream,
    MediaTrack,
)

__all__ = [
    "BaseCaptureBackend",
    "BaseEncoder",
    "ChunkEvent",
    "FinalizeEvent",
    "MediaStream",
    "MediaTrack",
    "create_capture_backend",
]


def create_capture_backend(provider: str, **kwargs) -> BaseCaptureBackend:
    """
    Factory function to create a capture backend.

    Args:
        provider: Backend name ("ffmpeg")
        **kwargs: Backend-specific configuration

    Returns:
        BaseCaptureBackend implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "ffmpeg":
        from .ffmpeg import FfmpegCaptureBackend
        return FfmpegCaptureBackend(**kwargs)
    else:
        raise ValueError(f"Unknown capture backend: {provider}")
