"""
Error raised by repository adapters.

Adapters wrap client failures in RepositoryError and keep the raw message so
use cases can inspect it (see domain.services.error_messages) without ever
showing it to users.
"""
from typing import Optional


class RepositoryError(Exception):
    """A persistence call failed."""

    def __init__(self, message: str, *, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
