"""
Repository Interfaces (Ports) for the Progress API.

This package defines abstract interfaces that decouple the progress engine
from infrastructure (database, network state). Implementations are provided
in the infrastructure layer; in-memory fakes live in tests/fakes.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the use cases need)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import UserProgressRepository

    class AdvanceToNextDayUseCase:
        def __init__(self, progress_repo: UserProgressRepository, ...):
            self._progress_repo = progress_repo
"""

from application.ports.repository_error import RepositoryError

# Curriculum (read-only)
from application.ports.curriculum_repository import CurriculumRepository

# Position store
from application.ports.user_progress_repository import UserProgressRepository

# Exercise completions
from application.ports.completion_repository import ExerciseCompletionRepository

# Audit trail
from application.ports.audit_repository import (
    AuditAction,
    AuditState,
    ProgressAuditEntry,
    ProgressAuditRepository,
)

# Network state
from application.ports.connectivity import ConnectivityListener, ConnectivityMonitor

__all__ = [
    "RepositoryError",
    # Curriculum
    "CurriculumRepository",
    # Progress
    "UserProgressRepository",
    # Completions
    "ExerciseCompletionRepository",
    # Audit
    "AuditAction",
    "AuditState",
    "ProgressAuditEntry",
    "ProgressAuditRepository",
    # Connectivity
    "ConnectivityMonitor",
    "ConnectivityListener",
]
