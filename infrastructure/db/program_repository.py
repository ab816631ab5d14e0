"""
Supabase implementation of CurriculumRepository.

Programs live in the ``programs`` table with their milestones stored as a
JSON column; conversion to domain models is done by domain.converters.
"""
import logging
from typing import List, Optional

from supabase import Client

from application.ports import RepositoryError
from domain.converters import db_row_to_program
from domain.models import Program

logger = logging.getLogger(__name__)


class SupabaseCurriculumRepository:
    """
    Supabase implementation of CurriculumRepository protocol.

    Read-only: the progress engine never writes programs.
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def get_program(self, program_id: str) -> Optional[Program]:
        try:
            result = (
                self._client.table("programs")
                .select("*")
                .eq("id", program_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get program {program_id}: {e}")
            raise RepositoryError(str(e), operation="get_program") from e

        if not result.data:
            return None
        try:
            return db_row_to_program(result.data[0])
        except ValueError as e:
            logger.error(f"Program {program_id} has malformed curriculum data: {e}")
            raise RepositoryError(str(e), operation="get_program") from e

    def list_published(self) -> List[Program]:
        try:
            result = (
                self._client.table("programs")
                .select("*")
                .eq("is_published", True)
                .order("name")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list published programs: {e}")
            raise RepositoryError(str(e), operation="list_published") from e

        programs = []
        for row in result.data or []:
            try:
                programs.append(db_row_to_program(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed program row {row.get('id')}: {e}")
        return programs
