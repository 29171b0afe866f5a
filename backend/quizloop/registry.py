"""In-memory table of live attempt sessions keyed by attempt id.

This is the surface the API layer calls. Each start creates a brand new
``AttemptSession``; sessions never share a ledger or a timer. Finished
sessions stay registered so repeated submits keep returning the cached
outcome, until ``purge_finished`` drops them.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from quizloop.badges import DEFAULT_BADGE_RULES, BadgeRule
from quizloop.domain import (
    AttemptOutcome,
    AttemptStatus,
    AttemptSummary,
    BadgeLevel,
    BadgeType,
    Quiz,
    SubmitReason,
)
from quizloop.errors import AlreadyStartedError, UnknownAttemptError
from quizloop.session import AttemptSession, SessionListener
from quizloop.timer import Scheduler

logger = logging.getLogger(__name__)


class AttemptRegistry:
    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.utcnow,
        retention: timedelta = timedelta(hours=1),
    ):
        self._scheduler = scheduler
        self._clock = clock
        self._now = now
        self.retention = retention
        self._sessions: dict[str, AttemptSession] = {}
        self._active: dict[tuple[str, int], str] = {}
        self._listeners: list[SessionListener] = []

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, attempt_id: str) -> bool:
        return attempt_id in self._sessions

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback for every session that reaches a terminal state."""
        self._listeners.append(listener)

    def get(self, attempt_id: str) -> AttemptSession:
        session = self._sessions.get(attempt_id)
        if session is None:
            raise UnknownAttemptError(attempt_id)
        return session

    def start_attempt(
        self,
        quiz: Quiz,
        user_id: str,
        history: Sequence[AttemptSummary] = (),
        held_badges: Iterable[tuple[BadgeType, BadgeLevel]] = (),
        badge_rules: Sequence[BadgeRule] = DEFAULT_BADGE_RULES,
    ) -> AttemptSession:
        """Start a new attempt; at most one may be in progress per user and quiz."""
        key = (user_id, quiz.id)
        running_id = self._active.get(key)
        if running_id is not None:
            running = self._sessions[running_id]
            running.check_timer()
            if running.status == AttemptStatus.IN_PROGRESS:
                raise AlreadyStartedError(
                    f"User {user_id} already has attempt {running_id} on quiz {quiz.id}",
                    attempt_id=running_id,
                )

        session = AttemptSession(
            history=history,
            held_badges=held_badges,
            badge_rules=badge_rules,
            scheduler=self._scheduler,
            clock=self._clock,
            now=self._now,
            context=self._finished_by_same_user,
        )
        session.add_listener(self._on_finished)
        attempt_id = session.start(quiz, user_id)
        self._sessions[attempt_id] = session
        self._active[key] = attempt_id
        return session

    def record_answer(
        self, attempt_id: str, question_index: int, selection: Iterable[int]
    ) -> int:
        return self.get(attempt_id).set_answer(question_index, selection)

    def submit_attempt(
        self, attempt_id: str, reason: SubmitReason = SubmitReason.MANUAL
    ) -> AttemptOutcome:
        return self.get(attempt_id).submit(reason)

    def abandon_attempt(self, attempt_id: str) -> None:
        self.get(attempt_id).abandon()

    def query_remaining_time(self, attempt_id: str) -> Optional[int]:
        """Seconds left for the attempt, ``None`` when it has no time limit."""
        session = self.get(attempt_id)
        session.check_timer()
        return session.remaining_seconds()

    def purge_finished(self, now: Optional[datetime] = None) -> int:
        """Forget terminal sessions that ended longer than ``retention`` ago.

        A finished session is kept while an attempt by the same user that
        was already open when it ended is still in progress; that attempt
        reads it when awarding badges.
        """
        cutoff = (now or self._now()) - self.retention
        open_since: dict[str, datetime] = {}
        for session in self._sessions.values():
            if session.status == AttemptStatus.IN_PROGRESS:
                earliest = open_since.get(session.user_id)
                if earliest is None or session.started_at < earliest:
                    open_since[session.user_id] = session.started_at
        stale = [
            attempt_id
            for attempt_id, session in self._sessions.items()
            if session.status.is_terminal
            and session.ended_at <= cutoff
            and not (
                session.user_id in open_since
                and open_since[session.user_id] <= session.ended_at
            )
        ]
        for attempt_id in stale:
            del self._sessions[attempt_id]
        if stale:
            logger.info("Purged %d finished attempts", len(stale))
        return len(stale)

    def _finished_by_same_user(self, session: AttemptSession):
        """Scored attempts and badges of ``session``'s user held in memory.

        Covers attempts that finished while ``session`` was open, whose
        database rows may not have been written yet.
        """
        finished = sorted(
            (
                other
                for other in self._sessions.values()
                if other is not session
                and other.user_id == session.user_id
                and other.outcome is not None
            ),
            key=lambda other: other.ended_at,
        )
        history = [other.summary() for other in finished]
        held = {badge.key for other in finished for badge in other.outcome.new_badges}
        return history, held

    def _on_finished(self, session: AttemptSession) -> None:
        key = (session.user_id, session.quiz.id)
        if self._active.get(key) == session.attempt_id:
            del self._active[key]
        for listener in self._listeners:
            listener(session)
