"""Asynchronous CRUD helpers for the application's data models.

Each function in this module encapsulates a specific database operation
using SQLModel and SQLAlchemy.  Centralizing the logic keeps route
handlers light and makes behavior easier to test.  The attempt engine
itself never touches the database; these helpers feed it quiz
definitions, history and held badges, and store what it produces.
"""

import logging
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from quizloop.models import (
    QuizRecord,
    QuizAttempt,
    UserBadge,
    BadgeRuleRecord,
    Settings,
)
from quizloop.badges import BadgeRule, DEFAULT_BADGE_RULES
from quizloop.domain import (
    AttemptStatus,
    AttemptSummary,
    Badge,
    BadgeLevel,
    BadgeType,
    Question,
    Quiz,
)
from quizloop.session import AttemptSession

logger = logging.getLogger(__name__)


async def get_settings(db: AsyncSession) -> Settings:
    """Fetch the singleton settings record, creating it if necessary."""
    result = await db.execute(select(Settings).where(Settings.id == 1))
    settings = result.scalar_one_or_none()
    if not settings:
        settings = Settings()
        db.add(settings)
        await db.commit()
        await db.refresh(settings)
    return settings


async def save_settings(db: AsyncSession, settings: Settings) -> Settings:
    """Persist settings changes and return the refreshed object."""

    db.add(settings)
    await db.commit()
    await db.refresh(settings)
    return settings


async def ensure_quiz_content(db: AsyncSession) -> None:
    """Seed the catalog with the built-in sample quizzes."""

    from quizloop.quiz_content import SAMPLE_QUIZZES

    for data in SAMPLE_QUIZZES:
        result = await db.execute(
            select(QuizRecord).where(QuizRecord.title == data["title"])
        )
        if result.scalar_one_or_none():
            continue
        # Validate through the domain model before storing.
        quiz = Quiz(id=0, **{k: v for k, v in data.items() if k != "description"})
        db.add(
            QuizRecord(
                title=quiz.title,
                description=data.get("description"),
                category=quiz.category,
                time_limit_minutes=quiz.time_limit_minutes,
                passing_score_percent=quiz.passing_score_percent,
                questions=[q.model_dump(mode="json") for q in quiz.questions],
            )
        )
    await db.commit()


async def ensure_badge_rules(db: AsyncSession) -> None:
    """Insert any built-in badge rule missing from the rule table."""

    for rule in DEFAULT_BADGE_RULES:
        result = await db.execute(
            select(BadgeRuleRecord).where(
                BadgeRuleRecord.badge_type == rule.badge_type.value,
                BadgeRuleRecord.level == rule.level.value,
            )
        )
        if not result.scalar_one_or_none():
            db.add(
                BadgeRuleRecord(
                    badge_type=rule.badge_type.value,
                    level=rule.level.value,
                    name=rule.name,
                    description=rule.description,
                    threshold=rule.threshold,
                    requires_history=rule.requires_history,
                )
            )
    await db.commit()


async def get_badge_rules(db: AsyncSession) -> list[BadgeRule]:
    """Return enabled rules; falls back to the built-in table when empty."""

    result = await db.execute(
        select(BadgeRuleRecord)
        .where(BadgeRuleRecord.enabled == True)  # noqa: E712
        .order_by(BadgeRuleRecord.id)
    )
    records = result.scalars().all()
    if not records:
        return list(DEFAULT_BADGE_RULES)
    return [
        BadgeRule(
            badge_type=BadgeType(r.badge_type),
            level=BadgeLevel(r.level),
            name=r.name,
            description=r.description,
            threshold=r.threshold,
            requires_history=r.requires_history,
        )
        for r in records
    ]


async def create_quiz(db: AsyncSession, quiz: QuizRecord) -> QuizRecord:
    db.add(quiz)
    await db.commit()
    await db.refresh(quiz)
    return quiz


async def get_quiz(db: AsyncSession, quiz_id: int) -> QuizRecord | None:
    result = await db.execute(select(QuizRecord).where(QuizRecord.id == quiz_id))
    return result.scalar_one_or_none()


async def get_published_quizzes(db: AsyncSession) -> list[QuizRecord]:
    result = await db.execute(
        select(QuizRecord)
        .where(QuizRecord.published == True)  # noqa: E712
        .order_by(QuizRecord.id)
    )
    return result.scalars().all()


def to_quiz_definition(record: QuizRecord) -> Quiz:
    """Build the immutable engine view of a catalog entry."""
    return Quiz(
        id=record.id,
        title=record.title,
        category=record.category,
        time_limit_minutes=record.time_limit_minutes,
        passing_score_percent=record.passing_score_percent,
        questions=[Question(**q) for q in record.questions],
    )


async def get_attempts_by_user(db: AsyncSession, user_id: str) -> list[QuizAttempt]:
    """Return a user's recorded attempts, newest first."""
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.submitted_at.desc(), QuizAttempt.id.desc())
    )
    return result.scalars().all()


async def get_attempt_record(db: AsyncSession, attempt_id: str) -> QuizAttempt | None:
    result = await db.execute(
        select(QuizAttempt).where(QuizAttempt.attempt_id == attempt_id)
    )
    return result.scalar_one_or_none()


async def get_attempt_history(db: AsyncSession, user_id: str) -> list[AttemptSummary]:
    """Return the badge evaluator's view of a user's attempts, oldest first."""
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.submitted_at, QuizAttempt.id)
    )
    return [
        AttemptSummary(
            attempt_id=a.attempt_id,
            quiz_id=a.quiz_id,
            category=a.category,
            score=a.score,
            passed=a.passed,
            time_taken_seconds=a.time_taken_seconds,
            time_limit_seconds=a.time_limit_seconds,
            finished_at=a.submitted_at,
        )
        for a in result.scalars().all()
    ]


async def get_user_badges(db: AsyncSession, user_id: str) -> list[UserBadge]:
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.awarded_at, UserBadge.id)
    )
    return result.scalars().all()


async def get_held_badge_keys(
    db: AsyncSession, user_id: str
) -> set[tuple[BadgeType, BadgeLevel]]:
    badges = await get_user_badges(db, user_id)
    return {(BadgeType(b.badge_type), BadgeLevel(b.level)) for b in badges}


async def award_badge(
    db: AsyncSession,
    user_id: str,
    badge: Badge,
    attempt_id: str | None = None,
) -> bool:
    """Add a badge unless the user already holds it; commit is left to the caller."""
    result = await db.execute(
        select(UserBadge).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_type == badge.badge_type.value,
            UserBadge.level == badge.level.value,
        )
    )
    if result.scalar_one_or_none():
        return False
    db.add(
        UserBadge(
            user_id=user_id,
            badge_type=badge.badge_type.value,
            level=badge.level.value,
            name=badge.name,
            attempt_id=attempt_id,
        )
    )
    return True


async def update_quiz_statistics(
    db: AsyncSession, quiz_id: int, score: int, passed: bool
) -> None:
    quiz = await get_quiz(db, quiz_id)
    if not quiz:
        return
    total = quiz.average_score * quiz.total_attempts + score
    quiz.total_attempts += 1
    if passed:
        quiz.pass_count += 1
    quiz.average_score = total / quiz.total_attempts
    quiz.updated_at = datetime.utcnow()
    db.add(quiz)


async def record_attempt(db: AsyncSession, session: AttemptSession) -> QuizAttempt | None:
    """Store a finished attempt with its badges and quiz statistics.

    Only submitted or expired attempts are stored. Recording the same
    attempt twice returns the existing row unchanged.
    """
    if session.status not in (AttemptStatus.SUBMITTED, AttemptStatus.EXPIRED):
        return None
    existing = await get_attempt_record(db, session.attempt_id)
    if existing:
        return existing

    outcome = session.outcome
    result = outcome.result
    selections = session.selections()
    attempt = QuizAttempt(
        attempt_id=session.attempt_id,
        quiz_id=session.quiz.id,
        user_id=session.user_id,
        category=session.quiz.category,
        status=session.status.value,
        started_at=session.started_at,
        submitted_at=session.submitted_at,
        score=result.score,
        correct_count=result.correct_count,
        incorrect_count=result.incorrect_count,
        unanswered_count=result.unanswered_count,
        passed=result.passed,
        time_taken_seconds=result.time_taken_seconds,
        time_limit_seconds=session.quiz.time_limit_seconds,
        answers=[selections[i] for i in range(len(selections))],
    )
    db.add(attempt)
    await update_quiz_statistics(db, session.quiz.id, result.score, result.passed)
    for badge in outcome.new_badges:
        await award_badge(db, session.user_id, badge, session.attempt_id)
    await db.commit()
    await db.refresh(attempt)
    logger.info(
        "Recorded attempt %s for user %s (%s%%)",
        session.attempt_id,
        session.user_id,
        result.score,
    )
    return attempt
