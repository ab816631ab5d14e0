"""
Domain converters between database rows and domain models.

All converters are pure functions with no side effects.

Examples:
    >>> from domain.converters import db_row_to_program
    >>> program = db_row_to_program({"id": "p1", "milestones": []})
"""

from domain.converters.program_converters import (
    db_row_to_program,
    db_row_to_user_progress,
    program_to_db_row,
)

__all__ = [
    "db_row_to_program",
    "program_to_db_row",
    "db_row_to_user_progress",
]
