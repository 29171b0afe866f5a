"""Immutable value types shared by the attempt engine.

Quiz definitions arrive from the catalog and are validated once, here, so
that the ledger and the scorer can trust option counts and answer keys.
Everything in this module is frozen; an attempt never mutates its quiz.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"


class AttemptStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    EXPIRED = "expired"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (
            AttemptStatus.SUBMITTED,
            AttemptStatus.EXPIRED,
            AttemptStatus.ABANDONED,
        )


class SubmitReason(str, Enum):
    MANUAL = "manual"
    TIMER_EXPIRED = "timer_expired"


class BadgeType(str, Enum):
    QUIZ_NOVICE = "quiz_novice"
    PERFECT_SCORE = "perfect_score"
    STREAK_MASTER = "streak_master"
    QUIZ_MASTER = "quiz_master"
    SUBJECT_EXPERT = "subject_expert"
    FAST_LEARNER = "fast_learner"


class BadgeLevel(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class Question(BaseModel):
    """A single question with its ordered options and answer key."""

    id: str
    text: str
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: tuple[str, ...]
    correct_options: frozenset[int]

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_answer_key(self):
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id} needs at least 2 options")
        for index in self.correct_options:
            if index < 0 or index >= len(self.options):
                raise ValueError(
                    f"Question {self.id} has correct option {index} out of range"
                )
        if self.type == QuestionType.SINGLE_CHOICE and len(self.correct_options) != 1:
            raise ValueError(
                f"Single choice question {self.id} needs exactly one correct option"
            )
        if self.type == QuestionType.MULTI_CHOICE and not self.correct_options:
            raise ValueError(
                f"Multi choice question {self.id} needs at least one correct option"
            )
        return self


class Quiz(BaseModel):
    """Read-only quiz definition supplied by the catalog."""

    id: int
    title: str
    category: str = "General Knowledge"
    time_limit_minutes: int = Field(default=0, ge=0)  # 0 means unlimited
    passing_score_percent: int = Field(default=70, ge=0, le=100)
    questions: tuple[Question, ...] = ()

    class Config:
        frozen = True

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60


class QuestionResult(BaseModel):
    """Per-question grading detail used by the review screen."""

    question_index: int
    question_id: str
    selected: tuple[int, ...]
    correct_options: tuple[int, ...]
    answered: bool
    is_correct: bool

    class Config:
        frozen = True


class Result(BaseModel):
    score: int
    correct_count: int
    incorrect_count: int  # includes unanswered questions
    unanswered_count: int
    passed: bool
    time_taken_seconds: int
    question_results: tuple[QuestionResult, ...] = ()

    class Config:
        frozen = True


class Badge(BaseModel):
    badge_type: BadgeType
    level: BadgeLevel
    name: str

    class Config:
        frozen = True

    @property
    def key(self) -> tuple[BadgeType, BadgeLevel]:
        return self.badge_type, self.level


class AttemptSummary(BaseModel):
    """What the badge rules know about one finished attempt."""

    attempt_id: str
    quiz_id: int
    category: str
    score: int
    passed: bool
    time_taken_seconds: int
    time_limit_seconds: int = 0
    finished_at: Optional[datetime] = None

    class Config:
        frozen = True


class AttemptOutcome(BaseModel):
    """Returned by a successful submission; cached for repeated calls."""

    attempt_id: str
    status: AttemptStatus
    result: Result
    new_badges: tuple[Badge, ...] = ()

    class Config:
        frozen = True
