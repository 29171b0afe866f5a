"""Tests for badge evaluation over a user's attempt history."""

import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from quizloop.badges import (
    BADGE_CHECKS,
    DEFAULT_BADGE_RULES,
    BadgeRule,
    category_level,
    evaluate_badges,
)
from quizloop.domain import AttemptSummary, BadgeLevel, BadgeType


def _attempt(n, quiz_id=1, category="General Knowledge", score=80, passed=True,
             taken=100, limit=0):
    return AttemptSummary(
        attempt_id=f"a{n}",
        quiz_id=quiz_id,
        category=category,
        score=score,
        passed=passed,
        time_taken_seconds=taken,
        time_limit_seconds=limit,
    )


def _keys(badges):
    return {(b.badge_type, b.level) for b in badges}


def test_every_badge_type_has_a_check():
    assert set(BADGE_CHECKS) == set(BadgeType)
    assert {r.badge_type for r in DEFAULT_BADGE_RULES} == set(BadgeType)


def test_first_attempt_unlocks_only_quiz_novice():
    badges = evaluate_badges(_attempt(1, score=40, passed=False))
    assert len(badges) == 1
    assert badges[0].badge_type == BadgeType.QUIZ_NOVICE
    assert badges[0].level == BadgeLevel.BRONZE
    assert badges[0].name == "Quiz Novice"


def test_first_attempt_unlocks_only_quiz_novice_even_when_perfect():
    current = _attempt(1, category="Programming", score=100, taken=10, limit=600)
    badges = evaluate_badges(current)
    assert _keys(badges) == {(BadgeType.QUIZ_NOVICE, BadgeLevel.BRONZE)}


def test_held_badges_are_never_reissued():
    held = {(BadgeType.QUIZ_NOVICE, BadgeLevel.BRONZE)}
    assert evaluate_badges(_attempt(1), held=held) == ()


def test_perfect_score_level_follows_category_difficulty():
    history = [_attempt(0)]
    gold = evaluate_badges(_attempt(1, category="Mathematics", score=100), history)
    silver = evaluate_badges(_attempt(1, category="Science", score=100), history)
    bronze = evaluate_badges(_attempt(1, category="Cooking", score=100), history)
    assert _keys(gold) == {(BadgeType.PERFECT_SCORE, BadgeLevel.GOLD)}
    assert _keys(silver) == {(BadgeType.PERFECT_SCORE, BadgeLevel.SILVER)}
    assert _keys(bronze) == {(BadgeType.PERFECT_SCORE, BadgeLevel.BRONZE)}
    assert category_level("Cooking") == BadgeLevel.BRONZE


def test_streak_counts_consecutive_passes_ending_now():
    history = [_attempt(0, passed=False), _attempt(1, quiz_id=2), _attempt(2, quiz_id=3)]
    badges = evaluate_badges(_attempt(3, quiz_id=4), history)
    assert (BadgeType.STREAK_MASTER, BadgeLevel.BRONZE) in _keys(badges)
    assert (BadgeType.STREAK_MASTER, BadgeLevel.SILVER) not in _keys(badges)


def test_failed_attempt_breaks_the_streak():
    history = [_attempt(0), _attempt(1), _attempt(2)]
    badges = evaluate_badges(_attempt(3, passed=False, score=10), history)
    assert BadgeType.STREAK_MASTER not in {b.badge_type for b in badges}


def test_quiz_master_counts_distinct_quizzes():
    same_quiz = [_attempt(i, quiz_id=1) for i in range(6)]
    badges = evaluate_badges(_attempt(9, quiz_id=1), same_quiz)
    assert BadgeType.QUIZ_MASTER not in {b.badge_type for b in badges}

    distinct = [_attempt(i, quiz_id=i) for i in range(4)]
    badges = evaluate_badges(_attempt(9, quiz_id=99), distinct)
    assert (BadgeType.QUIZ_MASTER, BadgeLevel.BRONZE) in _keys(badges)


def test_subject_expert_counts_passes_in_the_same_category():
    history = [
        _attempt(0, category="History"),
        _attempt(1, category="Art"),
        _attempt(2, category="History"),
    ]
    badges = evaluate_badges(_attempt(3, category="History"), history)
    assert (BadgeType.SUBJECT_EXPERT, BadgeLevel.BRONZE) in _keys(badges)

    badges = evaluate_badges(_attempt(3, category="Art"), history)
    assert BadgeType.SUBJECT_EXPERT not in {b.badge_type for b in badges}


def test_fast_learner_needs_a_timed_quiz_passed_in_a_quarter_of_the_time():
    history = [_attempt(0)]
    fast = evaluate_badges(_attempt(1, taken=150, limit=600), history)
    slow = evaluate_badges(_attempt(1, taken=151, limit=600), history)
    untimed = evaluate_badges(_attempt(1, taken=1, limit=0), history)
    assert (BadgeType.FAST_LEARNER, BadgeLevel.SILVER) in _keys(fast)
    assert BadgeType.FAST_LEARNER not in {b.badge_type for b in slow}
    assert BadgeType.FAST_LEARNER not in {b.badge_type for b in untimed}


def test_custom_rule_table_and_duplicate_rules_award_once():
    rule = BadgeRule(BadgeType.STREAK_MASTER, BadgeLevel.BRONZE, "Hot Hand", threshold=2)
    badges = evaluate_badges(_attempt(1), [_attempt(0)], rules=[rule, rule])
    assert len(badges) == 1
    assert badges[0].name == "Hot Hand"


def test_evaluation_is_reproducible():
    history = [_attempt(i, quiz_id=i) for i in range(5)]
    current = _attempt(9, quiz_id=9, category="Programming", score=100)
    assert evaluate_badges(current, history) == evaluate_badges(current, history)
