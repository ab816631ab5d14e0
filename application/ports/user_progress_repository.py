"""
User Progress Repository Interface (Port).

The position store: one progress row per user, updated through a single
atomic "set position" call.
"""
from typing import Optional, Protocol

from domain.models import ProgressUpdate, UserProgress


class UserProgressRepository(Protocol):
    """Abstract interface for user progress persistence."""

    def get_progress(self, user_id: str) -> Optional[UserProgress]:
        """
        Get a user's progress row.

        Returns:
            UserProgress, or None when the user has never been enrolled.

        Raises:
            RepositoryError: If the store cannot be read.
        """
        ...

    def update_position(self, user_id: str, update: ProgressUpdate) -> UserProgress:
        """
        Apply a partial update atomically and return the stored row.

        Applying the same update twice leaves the same row. Creates the row
        when it does not exist yet.

        Raises:
            RepositoryError: If the write fails. The message is the raw
                client error text.
        """
        ...
