"""
API package for the AmakaFlow Progress API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
- schemas/: request/response models
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_supabase_client_required,
    get_curriculum_repo,
    get_user_progress_repo,
    get_completion_repo,
    get_audit_repo,
    get_current_user,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_curriculum_repo",
    "get_user_progress_repo",
    "get_completion_repo",
    "get_audit_repo",
    # Authentication
    "get_current_user",
]
