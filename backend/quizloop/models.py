"""Database models used by the Quizloop service.

The models are defined with SQLModel (built on SQLAlchemy and Pydantic)
and hold the quiz catalog, the history of finished attempts, awarded
badges and the badge rule table. Live attempts are never stored here;
they exist only in the in-memory registry until they finish.
"""

from typing import Optional, List
from datetime import datetime
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class QuizRecord(SQLModel, table=True):
    """Catalog entry; ``questions`` holds the serialized question list."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    category: str = "General Knowledge"
    time_limit_minutes: int = 0  # 0 means unlimited
    passing_score_percent: int = 70
    published: bool = True
    questions: List[dict] = Field(sa_column=Column(JSON), default_factory=list)
    total_attempts: int = 0
    pass_count: int = 0
    average_score: float = 0.0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class QuizAttempt(SQLModel, table=True):
    """A submitted or expired attempt; abandoned attempts are not stored."""

    id: Optional[int] = Field(default=None, primary_key=True)
    attempt_id: str = Field(unique=True, index=True)
    quiz_id: int = Field(foreign_key="quizrecord.id")
    user_id: str = Field(index=True)
    category: str
    status: str  # submitted, expired
    started_at: datetime
    submitted_at: datetime
    score: int
    correct_count: int
    incorrect_count: int
    unanswered_count: int
    passed: bool
    time_taken_seconds: int
    time_limit_seconds: int = 0
    # answers[i] is the sorted list of option indices picked for question i
    answers: List[List[int]] = Field(sa_column=Column(JSON), default_factory=list)


class UserBadge(SQLModel, table=True):
    """Badge held by a user; one row per (user, type, level)."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    badge_type: str
    level: str  # bronze, silver, gold
    name: str
    attempt_id: Optional[str] = None
    awarded_at: datetime = Field(default_factory=datetime.utcnow)


class BadgeRuleRecord(SQLModel, table=True):
    """Stored threshold rule, seeded from the built-in rule table."""

    id: Optional[int] = Field(default=None, primary_key=True)
    badge_type: str
    level: str
    name: str
    description: str = ""
    threshold: int = 1
    requires_history: bool = True
    enabled: bool = True


class Settings(SQLModel, table=True):
    """Singleton table storing site‑wide configuration values."""
    id: Optional[int] = Field(default=1, primary_key=True)
    site_name: str = "Quizloop"
    default_passing_score_percent: int = 70
    default_time_limit_minutes: int = 0
