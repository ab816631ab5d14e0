"""
Supabase implementation of ExerciseCompletionRepository.

Completions are unique per (user_id, exercise_id, program_id,
milestone_index, day_index); saving the same key again updates the row.
"""
import logging
from typing import Any, Dict, List

from supabase import Client

from application.ports import RepositoryError
from domain.models import ExerciseCompletionKey

logger = logging.getLogger(__name__)

COMPLETION_CONFLICT_COLUMNS = "user_id,exercise_id,program_id,milestone_index,day_index"


class SupabaseExerciseCompletionRepository:
    """Supabase implementation of ExerciseCompletionRepository protocol."""

    def __init__(self, client: Client):
        self._client = client

    def upsert(self, key: ExerciseCompletionKey, data: Dict[str, Any]) -> str:
        row = {**data, **key.as_dict()}
        try:
            result = (
                self._client.table("exercise_completions")
                .upsert(row, on_conflict=COMPLETION_CONFLICT_COLUMNS)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to save completion for {key.exercise_id}: {e}")
            raise RepositoryError(str(e), operation="upsert_completion") from e

        if not result.data:
            raise RepositoryError("Completion upsert returned no row", operation="upsert_completion")
        return str(result.data[0]["id"])

    def list_for_program(self, user_id: str, program_id: str) -> List[Dict[str, Any]]:
        try:
            result = (
                self._client.table("exercise_completions")
                .select("*")
                .eq("user_id", user_id)
                .eq("program_id", program_id)
                .order("milestone_index")
                .order("day_index")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list completions for user {user_id}: {e}")
            raise RepositoryError(str(e), operation="list_completions") from e
        return result.data or []
