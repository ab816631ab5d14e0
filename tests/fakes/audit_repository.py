"""
Fake Progress Audit Repository for testing.
"""
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

from application.ports import ProgressAuditEntry, RepositoryError


class FakeProgressAuditRepository:
    """
    In-memory fake implementation of ProgressAuditRepository for testing.

    Entries keep insertion order; list_for_user returns newest first.
    """

    def __init__(self):
        self._entries: Dict[str, ProgressAuditEntry] = {}
        self.fail_with: Optional[str] = None

    def reset(self) -> None:
        self._entries.clear()
        self.fail_with = None

    def seed(self, entries: List[ProgressAuditEntry]) -> None:
        for entry in entries:
            entry_id = entry.id or str(uuid.uuid4())
            self._entries[entry_id] = replace(entry, id=entry_id)

    def get_all(self) -> List[ProgressAuditEntry]:
        return list(self._entries.values())

    # =========================================================================
    # ProgressAuditRepository Protocol Methods
    # =========================================================================

    def record(self, entry: ProgressAuditEntry) -> str:
        if self.fail_with is not None:
            raise RepositoryError(self.fail_with, operation="record_audit")
        entry_id = str(uuid.uuid4())
        self._entries[entry_id] = replace(entry, id=entry_id)
        return entry_id

    def get(self, entry_id: str) -> Optional[ProgressAuditEntry]:
        return self._entries.get(entry_id)

    def list_for_user(self, user_id: str, limit: int = 50) -> List[ProgressAuditEntry]:
        entries = [e for e in self._entries.values() if e.user_id == user_id]
        entries.reverse()
        return entries[:limit]
