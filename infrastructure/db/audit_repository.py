"""
Supabase implementation of ProgressAuditRepository.

Table ``progress_audit_entries``:
- id: UUID (generated)
- user_id, action: Text
- previous_state, new_state: JSONB {milestone, day, total_workouts}
- success: Boolean, error_message: Text or NULL
- metadata: JSONB
- timestamp: Timestamp
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from application.ports import AuditAction, AuditState, ProgressAuditEntry, RepositoryError

logger = logging.getLogger(__name__)


def _state_from_json(value: Optional[Dict[str, Any]]) -> AuditState:
    value = value or {}
    return AuditState(
        milestone=int(value.get("milestone") or 0),
        day=int(value.get("day") or 0),
        total_workouts=int(value.get("total_workouts") or 0),
    )


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(timezone.utc)


def audit_entry_to_row(entry: ProgressAuditEntry) -> Dict[str, Any]:
    return {
        "user_id": entry.user_id,
        "action": entry.action.value,
        "previous_state": entry.previous_state.as_dict(),
        "new_state": entry.new_state.as_dict(),
        "success": entry.success,
        "error_message": entry.error_message,
        "metadata": entry.metadata,
        "timestamp": entry.timestamp.isoformat(),
    }


def row_to_audit_entry(row: Dict[str, Any]) -> ProgressAuditEntry:
    return ProgressAuditEntry(
        id=str(row["id"]) if row.get("id") is not None else None,
        user_id=row["user_id"],
        action=AuditAction(row["action"]),
        previous_state=_state_from_json(row.get("previous_state")),
        new_state=_state_from_json(row.get("new_state")),
        success=bool(row.get("success", True)),
        error_message=row.get("error_message"),
        metadata=row.get("metadata") or {},
        timestamp=_parse_timestamp(row.get("timestamp")),
    )


class SupabaseProgressAuditRepository:
    """Supabase implementation of ProgressAuditRepository protocol."""

    def __init__(self, client: Client):
        self._client = client

    def record(self, entry: ProgressAuditEntry) -> str:
        try:
            result = self._client.table("progress_audit_entries").insert(audit_entry_to_row(entry)).execute()
        except Exception as e:
            logger.error(f"Failed to record {entry.action.value} audit for user {entry.user_id}: {e}")
            raise RepositoryError(str(e), operation="record_audit") from e

        if not result.data:
            raise RepositoryError("Audit insert returned no row", operation="record_audit")
        return str(result.data[0]["id"])

    def get(self, entry_id: str) -> Optional[ProgressAuditEntry]:
        try:
            result = (
                self._client.table("progress_audit_entries")
                .select("*")
                .eq("id", entry_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to get audit entry {entry_id}: {e}")
            raise RepositoryError(str(e), operation="get_audit") from e
        return row_to_audit_entry(result.data[0]) if result.data else None

    def list_for_user(self, user_id: str, limit: int = 50) -> List[ProgressAuditEntry]:
        try:
            result = (
                self._client.table("progress_audit_entries")
                .select("*")
                .eq("user_id", user_id)
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to list audit entries for user {user_id}: {e}")
            raise RepositoryError(str(e), operation="list_audit") from e
        return [row_to_audit_entry(row) for row in result.data or []]
