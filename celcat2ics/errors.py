"""
Exception types raised by celcat2ics.

Parsing never raises: unreadable descriptions simply give empty fields.
Fetching and encoding fail loudly so that no partial .ics file is written.
"""

from __future__ import annotations

from typing import Optional


class Celcat2IcsError(Exception):
    """Base class for all errors raised by this package."""


class FetchError(Celcat2IcsError):
    """
    The CELCAT API could not be reached or answered with a non-success status.

    status is the HTTP status code, or None for transport / decoding errors.
    """

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class EncodingError(Celcat2IcsError):
    """An event could not be turned into a valid VEVENT block."""
