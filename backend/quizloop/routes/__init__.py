"""Aggregate import for all API route modules."""

from . import (
    quizzes,
    attempts,
    users,
    settings,
)

__all__ = [
    "quizzes",
    "attempts",
    "users",
    "settings",
]
