"""
Curriculum Repository Interface (Port).

Read-only access to programs. The curriculum is owned by the content side;
the progress engine never writes it.
"""
from typing import List, Optional, Protocol

from domain.models import Program


class CurriculumRepository(Protocol):
    """Abstract interface for reading programs."""

    def get_program(self, program_id: str) -> Optional[Program]:
        """
        Get a program by ID, published or not.

        Args:
            program_id: Program UUID

        Returns:
            The Program, or None when it does not exist.

        Raises:
            RepositoryError: If the store cannot be read.
        """
        ...

    def list_published(self) -> List[Program]:
        """List programs offered for enrollment, ordered by name."""
        ...
