"""
Storage module - Recordings server client and client-side library.
"""

from src.services.storage.api_client import APIError, RecordingsAPIClient
from src.services.storage.library import LibraryStore

__all__ = [
    "APIError",
    "LibraryStore",
    "RecordingsAPIClient",
]
