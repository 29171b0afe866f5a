"""Routes for taking a quiz: start, answer, submit, abandon and time left.

Live attempts are held by the module-level ``AttemptRegistry``; its
countdowns tick on the running event loop. Finished attempts are written
to the database through the ``AttemptRecorder``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from quizloop.database import get_session, async_session
from quizloop.domain import SubmitReason
from quizloop.registry import AttemptRegistry
from quizloop.recorder import AttemptRecorder
from quizloop.session import AttemptSession
from quizloop.timer import asyncio_scheduler
from quizloop.schemas import (
    AttemptStart,
    AttemptState,
    AnswerUpdate,
    AnswerRecorded,
    SubmitRequest,
    SubmitResponse,
    RemainingTime,
)
from quizloop.crud import (
    get_quiz,
    to_quiz_definition,
    get_attempt_history,
    get_held_badge_keys,
    get_badge_rules,
)

router = APIRouter(prefix="/attempts", tags=["attempts"])

registry = AttemptRegistry(scheduler=asyncio_scheduler)
recorder = AttemptRecorder(async_session)


def get_registry() -> AttemptRegistry:
    return registry


def get_recorder() -> AttemptRecorder:
    return recorder


def _state(session: AttemptSession) -> AttemptState:
    remaining = session.remaining_seconds()
    return AttemptState(
        attempt_id=session.attempt_id,
        quiz_id=session.quiz.id,
        user_id=session.user_id,
        status=session.status,
        started_at=session.started_at,
        question_count=len(session.quiz.questions),
        remaining_seconds=remaining,
        unlimited=remaining is None,
        unanswered_indices=session.unanswered_indices(),
        progress_percent=session.progress_percent(),
        needs_confirmation=session.needs_confirmation,
        selections=session.selections(),
    )


@router.post("/", response_model=AttemptState)
async def start_attempt(
    data: AttemptStart,
    db: AsyncSession = Depends(get_session),
    registry: AttemptRegistry = Depends(get_registry),
):
    record = await get_quiz(db, data.quiz_id)
    if not record:
        raise HTTPException(status_code=404, detail="Quiz not found")
    if not record.published:
        raise HTTPException(status_code=400, detail="Quiz is not published")
    quiz = to_quiz_definition(record)
    history = await get_attempt_history(db, data.user_id)
    held = await get_held_badge_keys(db, data.user_id)
    rules = await get_badge_rules(db)
    session = registry.start_attempt(quiz, data.user_id, history, held, rules)
    return _state(session)


@router.get("/{attempt_id}", response_model=AttemptState)
async def read_attempt(
    attempt_id: str,
    registry: AttemptRegistry = Depends(get_registry),
):
    session = registry.get(attempt_id)
    session.check_timer()
    return _state(session)


@router.put("/{attempt_id}/answers/{question_index}", response_model=AnswerRecorded)
async def record_answer(
    attempt_id: str,
    question_index: int,
    data: AnswerUpdate,
    registry: AttemptRegistry = Depends(get_registry),
):
    unanswered = registry.record_answer(attempt_id, question_index, data.selection)
    return AnswerRecorded(
        attempt_id=attempt_id,
        question_index=question_index,
        unanswered_count=unanswered,
    )


@router.post("/{attempt_id}/submit", response_model=SubmitResponse)
async def submit_attempt(
    attempt_id: str,
    data: Optional[SubmitRequest] = None,
    registry: AttemptRegistry = Depends(get_registry),
    recorder: AttemptRecorder = Depends(get_recorder),
):
    """Submit once; repeated calls return the outcome of the first one."""
    reason = data.reason if data else SubmitReason.MANUAL
    outcome = registry.submit_attempt(attempt_id, reason)
    await recorder.record(registry.get(attempt_id))
    return SubmitResponse(
        attempt_id=outcome.attempt_id,
        status=outcome.status,
        result=outcome.result,
        new_badges=list(outcome.new_badges),
    )


@router.post("/{attempt_id}/abandon", response_model=AttemptState)
async def abandon_attempt(
    attempt_id: str,
    registry: AttemptRegistry = Depends(get_registry),
):
    registry.abandon_attempt(attempt_id)
    return _state(registry.get(attempt_id))


@router.get("/{attempt_id}/remaining", response_model=RemainingTime)
async def remaining_time(
    attempt_id: str,
    registry: AttemptRegistry = Depends(get_registry),
):
    remaining = registry.query_remaining_time(attempt_id)
    return RemainingTime(
        attempt_id=attempt_id,
        remaining_seconds=remaining,
        unlimited=remaining is None,
    )
