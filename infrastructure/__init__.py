"""
Infrastructure Layer for the Progress API.

This package contains concrete implementations of the application ports:
- db/: Supabase repositories (programs, user progress, completions, audit)
- connectivity: health-probe based ConnectivityMonitor
"""

from infrastructure.connectivity import HealthCheckConnectivityMonitor
from infrastructure.db import (
    SupabaseCurriculumRepository,
    SupabaseExerciseCompletionRepository,
    SupabaseProgressAuditRepository,
    SupabaseUserProgressRepository,
)

__all__ = [
    "SupabaseCurriculumRepository",
    "SupabaseUserProgressRepository",
    "SupabaseExerciseCompletionRepository",
    "SupabaseProgressAuditRepository",
    "HealthCheckConnectivityMonitor",
]
