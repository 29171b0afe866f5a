"""Tests for the table of live attempt sessions."""

import pathlib
import sys
from datetime import datetime, timedelta

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from quizloop.domain import AttemptStatus, BadgeLevel, BadgeType, Question, Quiz
from quizloop.errors import AlreadyStartedError, UnknownAttemptError
from quizloop.badges import BadgeRule
from quizloop.registry import AttemptRegistry


class FakeClock:
    def __init__(self):
        self.seconds = 0.0
        self.epoch = datetime(2024, 5, 1, 9, 0, 0)

    def monotonic(self):
        return self.seconds

    def now(self):
        return self.epoch + timedelta(seconds=self.seconds)

    def advance(self, seconds):
        self.seconds += seconds


def _quiz(quiz_id=1, time_limit_minutes=0):
    return Quiz(
        id=quiz_id,
        title=f"Quiz {quiz_id}",
        time_limit_minutes=time_limit_minutes,
        questions=[
            Question(id="a", text="A?", options=["yes", "no"], correct_options=[0]),
            Question(id="b", text="B?", options=["yes", "no"], correct_options=[1]),
        ],
    )


def _registry(clock):
    return AttemptRegistry(clock=clock.monotonic, now=clock.now)


def test_unknown_attempt_id_raises():
    registry = _registry(FakeClock())
    with pytest.raises(UnknownAttemptError) as exc_info:
        registry.get("missing")
    assert exc_info.value.code == "unknown_attempt"
    with pytest.raises(UnknownAttemptError):
        registry.submit_attempt("missing")
    with pytest.raises(UnknownAttemptError):
        registry.query_remaining_time("missing")


def test_each_start_gets_its_own_session():
    registry = _registry(FakeClock())
    first = registry.start_attempt(_quiz(1), "ana")
    second = registry.start_attempt(_quiz(2), "ana")
    third = registry.start_attempt(_quiz(1), "ben")
    ids = {first.attempt_id, second.attempt_id, third.attempt_id}
    assert len(ids) == 3
    assert len(registry) == 3
    assert first.attempt_id in registry

    registry.record_answer(first.attempt_id, 0, [0])
    assert first.unanswered_indices() == [1]
    assert third.unanswered_indices() == [0, 1]


def test_second_live_attempt_on_same_quiz_is_refused():
    registry = _registry(FakeClock())
    first = registry.start_attempt(_quiz(1), "ana")
    with pytest.raises(AlreadyStartedError) as exc_info:
        registry.start_attempt(_quiz(1), "ana")
    assert exc_info.value.attempt_id == first.attempt_id


def test_retake_is_allowed_after_submit_or_abandon():
    registry = _registry(FakeClock())
    first = registry.start_attempt(_quiz(1), "ana")
    registry.submit_attempt(first.attempt_id)
    second = registry.start_attempt(_quiz(1), "ana")
    assert second.attempt_id != first.attempt_id
    registry.abandon_attempt(second.attempt_id)
    third = registry.start_attempt(_quiz(1), "ana")
    assert third.status == AttemptStatus.IN_PROGRESS
    # The earlier outcome is still cached.
    assert registry.submit_attempt(first.attempt_id) is first.outcome


def test_retake_is_allowed_once_the_deadline_has_passed():
    clock = FakeClock()
    registry = _registry(clock)
    first = registry.start_attempt(_quiz(1, time_limit_minutes=1), "ana")
    clock.advance(61)
    second = registry.start_attempt(_quiz(1, time_limit_minutes=1), "ana")
    assert first.status == AttemptStatus.EXPIRED
    assert second.status == AttemptStatus.IN_PROGRESS


def test_query_remaining_time():
    clock = FakeClock()
    registry = _registry(clock)
    timed = registry.start_attempt(_quiz(1, time_limit_minutes=2), "ana")
    untimed = registry.start_attempt(_quiz(2), "ana")
    clock.advance(30.5)
    assert registry.query_remaining_time(timed.attempt_id) == 90
    assert registry.query_remaining_time(untimed.attempt_id) is None

    clock.advance(100)
    assert registry.query_remaining_time(timed.attempt_id) == 0
    assert timed.status == AttemptStatus.EXPIRED


def test_listeners_see_every_finished_attempt():
    clock = FakeClock()
    registry = _registry(clock)
    finished = []
    registry.add_listener(finished.append)
    submitted = registry.start_attempt(_quiz(1), "ana")
    abandoned = registry.start_attempt(_quiz(2), "ana")
    expired = registry.start_attempt(_quiz(3, time_limit_minutes=1), "ana")

    registry.submit_attempt(submitted.attempt_id)
    registry.submit_attempt(submitted.attempt_id)
    registry.abandon_attempt(abandoned.attempt_id)
    clock.advance(60)
    registry.query_remaining_time(expired.attempt_id)

    assert finished == [submitted, abandoned, expired]


def test_purge_drops_only_old_finished_attempts():
    clock = FakeClock()
    registry = _registry(clock)
    registry.retention = timedelta(minutes=10)
    done = registry.start_attempt(_quiz(1), "ana")
    live = registry.start_attempt(_quiz(2), "ben")
    registry.submit_attempt(done.attempt_id)

    clock.advance(5 * 60)
    assert registry.purge_finished() == 0
    clock.advance(5 * 60)
    assert registry.purge_finished() == 1
    assert done.attempt_id not in registry
    assert live.attempt_id in registry
    with pytest.raises(UnknownAttemptError):
        registry.submit_attempt(done.attempt_id)


def test_finished_attempt_is_kept_while_an_overlapping_one_is_open():
    clock = FakeClock()
    registry = _registry(clock)
    registry.retention = timedelta(minutes=10)
    still_open = registry.start_attempt(_quiz(1), "ana")
    done = registry.start_attempt(_quiz(2), "ana")
    registry.submit_attempt(done.attempt_id)

    clock.advance(20 * 60)
    assert registry.purge_finished() == 0
    assert done.attempt_id in registry

    registry.submit_attempt(still_open.attempt_id)
    clock.advance(20 * 60)
    assert registry.purge_finished() == 2


def test_overlapping_attempts_do_not_reissue_badges():
    registry = _registry(FakeClock())
    first = registry.start_attempt(_quiz(1), "ana")
    second = registry.start_attempt(_quiz(2), "ana")

    first_badges = registry.submit_attempt(first.attempt_id).new_badges
    second_badges = registry.submit_attempt(second.attempt_id).new_badges

    assert [b.badge_type for b in first_badges] == [BadgeType.QUIZ_NOVICE]
    assert BadgeType.QUIZ_NOVICE not in [b.badge_type for b in second_badges]


def test_overlapping_attempts_count_towards_a_streak():
    clock = FakeClock()
    registry = _registry(clock)
    rules = [BadgeRule(BadgeType.STREAK_MASTER, BadgeLevel.BRONZE, "Streak", threshold=2)]
    sessions = [
        registry.start_attempt(_quiz(quiz_id), "ana", badge_rules=rules)
        for quiz_id in (1, 2)
    ]
    for session in sessions:
        registry.record_answer(session.attempt_id, 0, [0])
        registry.record_answer(session.attempt_id, 1, [1])

    first = registry.submit_attempt(sessions[0].attempt_id)
    clock.advance(5)
    second = registry.submit_attempt(sessions[1].attempt_id)

    assert first.new_badges == ()
    assert [b.key for b in second.new_badges] == [
        (BadgeType.STREAK_MASTER, BadgeLevel.BRONZE)
    ]


def test_expiry_sees_attempts_finished_while_it_ran():
    clock = FakeClock()
    registry = _registry(clock)
    timed = registry.start_attempt(_quiz(1, time_limit_minutes=1), "ana")
    untimed = registry.start_attempt(_quiz(2), "ana")
    registry.submit_attempt(untimed.attempt_id)

    clock.advance(60)
    registry.query_remaining_time(timed.attempt_id)

    assert timed.status == AttemptStatus.EXPIRED
    assert timed.outcome.new_badges == ()
