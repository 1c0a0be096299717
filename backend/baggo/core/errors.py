# backend/baggo/core/errors.py

from typing import Optional


class UpstreamError(Exception):
    """
    The language model (or another remote provider) failed.
    `status_code` carries the provider's HTTP status when it sent one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PersistenceError(Exception):
    """A datastore read or write failed."""
