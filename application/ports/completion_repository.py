"""
Exercise Completion Repository Interface (Port).

Completions are keyed by (user, exercise, program, milestone, day). Saving the
same key again updates the existing record instead of adding a new one.
"""
from typing import Any, Dict, List, Protocol

from domain.models import ExerciseCompletionKey


class ExerciseCompletionRepository(Protocol):
    """Abstract interface for exercise completion persistence."""

    def upsert(self, key: ExerciseCompletionKey, data: Dict[str, Any]) -> str:
        """
        Insert or update the completion for ``key``.

        Args:
            key: Composite completion key
            data: Performance columns (see ExerciseCompletionInput.to_record)

        Returns:
            The completion record ID.

        Raises:
            RepositoryError: If the write fails.
        """
        ...

    def list_for_program(self, user_id: str, program_id: str) -> List[Dict[str, Any]]:
        """All completion records of a user in one program."""
        ...
