"""State machine for one timed quiz attempt.

    not_started -> in_progress -> submitted | expired | abandoned

The session owns its ledger and its countdown. Manual submission and timer
expiry both go through ``submit``; whichever runs first is honoured and
every later call returns the same ``AttemptOutcome`` object.
"""

import logging
import time
import uuid
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from quizloop.badges import DEFAULT_BADGE_RULES, BadgeRule, evaluate_badges
from quizloop.domain import (
    AttemptOutcome,
    AttemptStatus,
    AttemptSummary,
    BadgeLevel,
    BadgeType,
    Question,
    Quiz,
    SubmitReason,
)
from quizloop.errors import AlreadyStartedError, InvalidStateError, ValidationError
from quizloop.ledger import AnswerLedger
from quizloop.scoring import score_attempt
from quizloop.timer import CountdownTimer, Scheduler

logger = logging.getLogger(__name__)

SessionListener = Callable[["AttemptSession"], None]
# session -> (finished attempts, held badge keys) not known when it started
BadgeContext = Callable[
    ["AttemptSession"],
    tuple[Sequence[AttemptSummary], Iterable[tuple[BadgeType, BadgeLevel]]],
]


def new_attempt_id() -> str:
    return uuid.uuid4().hex


class AttemptSession:
    def __init__(
        self,
        history: Sequence[AttemptSummary] = (),
        held_badges: Iterable[tuple[BadgeType, BadgeLevel]] = (),
        badge_rules: Sequence[BadgeRule] = DEFAULT_BADGE_RULES,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.utcnow,
        context: Optional[BadgeContext] = None,
    ):
        self.history = tuple(history)
        self.held_badges = frozenset(held_badges)
        self.badge_rules = tuple(badge_rules)
        self._scheduler = scheduler
        self._clock = clock
        self._now = now
        self._context = context
        self._started_clock: Optional[float] = None

        self.status = AttemptStatus.NOT_STARTED
        self.attempt_id: Optional[str] = None
        self.quiz: Optional[Quiz] = None
        self.user_id: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.submitted_at: Optional[datetime] = None
        self.ended_at: Optional[datetime] = None
        self.outcome: Optional[AttemptOutcome] = None
        self._ledger: Optional[AnswerLedger] = None
        self._timer: Optional[CountdownTimer] = None
        self._listeners: list[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> None:
        """Call ``listener(session)`` once the attempt reaches a terminal state."""
        self._listeners.append(listener)

    @property
    def result(self):
        return self.outcome.result if self.outcome else None

    def start(self, quiz: Quiz, user_id: str) -> str:
        if self.status != AttemptStatus.NOT_STARTED:
            raise AlreadyStartedError(
                f"Attempt {self.attempt_id} has already been started",
                attempt_id=self.attempt_id,
            )
        if not quiz.questions:
            raise ValidationError(f"Quiz {quiz.id} has no questions")

        self.attempt_id = new_attempt_id()
        self.quiz = quiz
        self.user_id = user_id
        self._ledger = AnswerLedger([len(q.options) for q in quiz.questions])
        self._timer = CountdownTimer(
            quiz.time_limit_seconds, scheduler=self._scheduler, clock=self._clock
        )
        self.started_at = self._now()
        self._started_clock = self._clock()
        self.status = AttemptStatus.IN_PROGRESS
        self._timer.start(self._on_timer_expired)
        logger.info(
            "User %s started attempt %s on quiz %s (limit %s min)",
            user_id,
            self.attempt_id,
            quiz.id,
            quiz.time_limit_minutes or "none",
        )
        return self.attempt_id

    def set_answer(self, question_index: int, selection: Iterable[int]) -> int:
        """Replace the selection for a question; return the unanswered count."""
        self._expire_if_due()
        self._require_in_progress()
        question = self._question(question_index)
        try:
            self._ledger.set_selection(question_index, selection, question.type)
        except ValidationError as exc:
            logger.debug("Attempt %s rejected answer: %s", self.attempt_id, exc)
            raise
        return len(self._ledger.unanswered_indices())

    def submit(self, reason: SubmitReason = SubmitReason.MANUAL) -> AttemptOutcome:
        if self.outcome is not None:
            return self.outcome
        reason = SubmitReason(reason)
        if reason == SubmitReason.MANUAL and self._expire_if_due():
            return self.outcome
        self._require_in_progress()

        self._timer.stop()
        self._ledger.freeze()
        self.submitted_at = self._now()
        result = score_attempt(
            self.quiz,
            self._ledger.to_grading_view(),
            self._time_taken(),
        )
        if reason == SubmitReason.TIMER_EXPIRED:
            self.status = AttemptStatus.EXPIRED
        else:
            self.status = AttemptStatus.SUBMITTED
        self.ended_at = self.submitted_at
        history, held = self._badge_inputs()
        new_badges = evaluate_badges(
            self._summary(result), history, held, self.badge_rules
        )
        self.outcome = AttemptOutcome(
            attempt_id=self.attempt_id,
            status=self.status,
            result=result,
            new_badges=new_badges,
        )
        logger.info(
            "Attempt %s %s with score %s%% (%s new badges)",
            self.attempt_id,
            self.status.value,
            result.score,
            len(new_badges),
        )
        self._notify()
        return self.outcome

    def abandon(self) -> None:
        self._require_in_progress()
        self._timer.stop()
        self._ledger.discard()
        self.status = AttemptStatus.ABANDONED
        self.ended_at = self._now()
        logger.info("Attempt %s abandoned", self.attempt_id)
        self._notify()

    def check_timer(self) -> None:
        """Dispatch an expiry that is due but whose tick has not run yet."""
        self._expire_if_due()

    def remaining_seconds(self) -> Optional[int]:
        """Seconds left on the clock, or ``None`` for an untimed quiz."""
        if self._timer is None:
            if self.quiz is None or self.quiz.time_limit_seconds <= 0:
                return None
            return self.quiz.time_limit_seconds
        return self._timer.remaining_seconds()

    def unanswered_indices(self) -> list[int]:
        if self._ledger is None:
            return []
        return sorted(self._ledger.unanswered_indices())

    def progress_percent(self) -> int:
        return self._ledger.progress_percent() if self._ledger else 0

    @property
    def needs_confirmation(self) -> bool:
        """True when a manual submit would leave questions unanswered."""
        return self.status == AttemptStatus.IN_PROGRESS and bool(
            self.unanswered_indices()
        )

    def selections(self) -> dict[int, list[int]]:
        if self._ledger is None:
            return {}
        return {
            index: sorted(picks)
            for index, picks in self._ledger.to_grading_view().items()
        }

    def _on_timer_expired(self) -> None:
        logger.info("Time is up for attempt %s", self.attempt_id)
        self.submit(SubmitReason.TIMER_EXPIRED)

    def _expire_if_due(self) -> bool:
        if self.status != AttemptStatus.IN_PROGRESS:
            return False
        return self._timer.expire_if_due()

    def _require_in_progress(self) -> None:
        if self.status != AttemptStatus.IN_PROGRESS:
            raise InvalidStateError(
                f"Attempt {self.attempt_id} is {self.status.value}, not in progress"
            )

    def _question(self, question_index: int) -> Question:
        if (
            isinstance(question_index, bool)
            or not isinstance(question_index, int)
            or not 0 <= question_index < len(self.quiz.questions)
        ):
            raise ValidationError(f"Question {question_index} does not exist")
        return self.quiz.questions[question_index]

    def _time_taken(self) -> int:
        # measured on the countdown clock, not the wall clock
        seconds = max(0, int(self._clock() - self._started_clock))
        limit = self.quiz.time_limit_seconds
        if limit > 0:
            seconds = min(seconds, limit)
        return seconds

    def _badge_inputs(self):
        """History and held badges as of now, not as of ``start``.

        Attempts by the same user that finished while this one was open
        come from ``context``; entries already in the start snapshot are
        not counted twice.
        """
        history = list(self.history)
        held = set(self.held_badges)
        if self._context is not None:
            known = {a.attempt_id for a in history}
            finished, finished_badges = self._context(self)
            history.extend(a for a in finished if a.attempt_id not in known)
            held.update(finished_badges)
        return history, held

    def _summary(self, result) -> AttemptSummary:
        return AttemptSummary(
            attempt_id=self.attempt_id,
            quiz_id=self.quiz.id,
            category=self.quiz.category,
            score=result.score,
            passed=result.passed,
            time_taken_seconds=result.time_taken_seconds,
            time_limit_seconds=self.quiz.time_limit_seconds,
            finished_at=self.submitted_at,
        )

    def summary(self) -> Optional[AttemptSummary]:
        if self.outcome is None:
            return None
        return self._summary(self.outcome.result)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)
