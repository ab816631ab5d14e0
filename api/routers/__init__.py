"""
Router package for the AmakaFlow Progress API.

This package contains all API routers organized by domain:
- health: Health check endpoint
- programs: Published program listing and enrollment
- progress: Validation, advancement, set-progress, rollback and overview
- completions: Exercise completion saving and in-session advancement
"""

from api.routers.health import router as health_router
from api.routers.programs import router as programs_router
from api.routers.progress import router as progress_router
from api.routers.completions import router as completions_router

__all__ = [
    "health_router",
    "programs_router",
    "progress_router",
    "completions_router",
]
