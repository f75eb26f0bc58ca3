"""
Exceptions raised while fetching, extracting and loading the BackPAN index.
"""
from __future__ import annotations

from typing import Optional


class BackPANIndexError(Exception):
    """Base exception for backpan-index."""

    def __init__(self, message: str, code: str = "BACKPAN_INDEX_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
        }


class FetchError(BackPANIndexError, IOError):
    """The upstream index could not be downloaded."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message, code="FETCH_ERROR")
        self.url = url
        self.status_code = status_code


class ExtractError(BackPANIndexError, IOError):
    """The downloaded archive is corrupt or in an unsupported format."""

    def __init__(self, message: str):
        super().__init__(message, code="EXTRACT_ERROR")


class StoreError(BackPANIndexError):
    """Schema or constraint failure in the local database."""

    def __init__(self, message: str):
        super().__init__(message, code="STORE_ERROR")


class ParseSkip(ValueError):
    """An index line that does not yield a File or a Release. Never surfaced."""
