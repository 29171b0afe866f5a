"""Convenience imports for all schema classes used by the API."""

from .quiz import QuestionRead, QuizCreate, QuizRead, QuizDetail
from .attempt import (
    AttemptStart,
    AttemptState,
    AnswerUpdate,
    AnswerRecorded,
    SubmitRequest,
    SubmitResponse,
    RemainingTime,
    AttemptRead,
)
from .badge import BadgeRead
from .settings import SettingsRead, SettingsUpdate

__all__ = [
    "QuestionRead",
    "QuizCreate",
    "QuizRead",
    "QuizDetail",
    "AttemptStart",
    "AttemptState",
    "AnswerUpdate",
    "AnswerRecorded",
    "SubmitRequest",
    "SubmitResponse",
    "RemainingTime",
    "AttemptRead",
    "BadgeRead",
    "SettingsRead",
    "SettingsUpdate",
]
