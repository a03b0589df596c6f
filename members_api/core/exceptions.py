"""
Exceptions raised by storage and media handling.
"""

from typing import Optional


class StorageError(Exception):
    """Object store operation failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class MediaRejectedError(Exception):
    """Uploaded media was refused (too large, undecodable)."""
