"""Stores finished attempts from the event loop.

A timer expiry happens inside a loop callback with no request around it,
so recording is scheduled as a task. Routes await the same task, which
keeps one write per attempt even when a client submits at the moment the
timer fires.
"""

import asyncio
import logging

from quizloop.crud import record_attempt
from quizloop.domain import AttemptStatus
from quizloop.session import AttemptSession

logger = logging.getLogger(__name__)


class AttemptRecorder:
    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(self, session: AttemptSession) -> asyncio.Task | None:
        """Start (or return the pending) recording task for ``session``."""
        if session.status not in (AttemptStatus.SUBMITTED, AttemptStatus.EXPIRED):
            return None
        task = self._tasks.get(session.attempt_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._record(session))
            self._tasks[session.attempt_id] = task
            task.add_done_callback(
                lambda t, attempt_id=session.attempt_id: self._finished(attempt_id, t)
            )
        return task

    async def record(self, session: AttemptSession):
        task = self.schedule(session)
        if task is None:
            return None
        return await task

    async def _record(self, session: AttemptSession):
        async with self._session_factory() as db:
            return await record_attempt(db, session)

    def _finished(self, attempt_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(attempt_id, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Recording attempt %s failed", attempt_id, exc_info=exc)
