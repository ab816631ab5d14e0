"""
Infrastructure Database Layer.

Supabase-backed implementations of the repository ports defined in
application.ports. Every adapter takes the client in its constructor and
raises RepositoryError (with the raw client message) when a call fails.

Usage:
    from supabase import create_client
    from infrastructure.db import SupabaseUserProgressRepository

    client = create_client(SUPABASE_URL, SUPABASE_KEY)
    progress_repo = SupabaseUserProgressRepository(client)
"""

from infrastructure.db.audit_repository import SupabaseProgressAuditRepository
from infrastructure.db.completion_repository import SupabaseExerciseCompletionRepository
from infrastructure.db.program_repository import SupabaseCurriculumRepository
from infrastructure.db.user_progress_repository import SupabaseUserProgressRepository

__all__ = [
    # Curriculum (read-only)
    "SupabaseCurriculumRepository",
    # Position store
    "SupabaseUserProgressRepository",
    # Completions
    "SupabaseExerciseCompletionRepository",
    # Audit trail
    "SupabaseProgressAuditRepository",
]
