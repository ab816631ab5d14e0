"""
Supabase implementation of UserProgressRepository.

One ``user_progress`` row per user, keyed by user_id. Every write is a single
upsert so a position change is atomic.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import Client

from application.ports import RepositoryError
from domain.converters import db_row_to_user_progress
from domain.models import ProgressUpdate, UserProgress

logger = logging.getLogger(__name__)


class SupabaseUserProgressRepository:
    """Supabase implementation of UserProgressRepository protocol."""

    def __init__(self, client: Client):
        self._client = client

    def get_progress(self, user_id: str) -> Optional[UserProgress]:
        try:
            result = (
                self._client.table("user_progress")
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get progress for user {user_id}: {e}")
            raise RepositoryError(str(e), operation="get_progress") from e

        if not result.data:
            return None
        return db_row_to_user_progress(result.data[0])

    def update_position(self, user_id: str, update: ProgressUpdate) -> UserProgress:
        data = {
            "user_id": user_id,
            **update.as_dict(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = (
                self._client.table("user_progress")
                .upsert(data, on_conflict="user_id")
                .execute()
            )
        except Exception as e:
            error_msg = str(e)
            logger.error(f"Failed to update progress for user {user_id}: {e}")
            if "PGRST" in error_msg or "row-level security" in error_msg.lower():
                logger.error("RLS/Permissions error: the progress API needs SUPABASE_SERVICE_ROLE_KEY")
            raise RepositoryError(error_msg, operation="update_position") from e

        if not result.data:
            raise RepositoryError(
                f"Progress update for user {user_id} returned no row",
                operation="update_position",
            )
        logger.info(f"Progress updated for user {user_id}: {sorted(update.as_dict())}")
        return db_row_to_user_progress(result.data[0])
