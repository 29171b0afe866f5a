"""Achievement badges earned from a user's attempt history.

Every badge kind is a ``BadgeType`` member with exactly one check function
in ``BADGE_CHECKS``. A ``BadgeRule`` pairs a kind with a level and a
threshold; the rule table is data and can be replaced by the caller.

The evaluator is a pure function of its arguments: the finished attempt,
the user's earlier attempts (oldest first) and the badges already held.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from quizloop.domain import AttemptSummary, Badge, BadgeLevel, BadgeType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeRule:
    badge_type: BadgeType
    level: BadgeLevel
    name: str
    description: str = ""
    threshold: int = 1
    # Only rules with requires_history=False can fire on a user's first attempt.
    requires_history: bool = True

    @property
    def key(self) -> tuple[BadgeType, BadgeLevel]:
        return self.badge_type, self.level

    def to_badge(self) -> Badge:
        return Badge(badge_type=self.badge_type, level=self.level, name=self.name)


BadgeCheck = Callable[[BadgeRule, AttemptSummary, Sequence[AttemptSummary]], bool]

# Difficulty of a perfect score, by quiz category. Unlisted categories are bronze.
CATEGORY_DIFFICULTY = {
    "Programming": BadgeLevel.GOLD,
    "Mathematics": BadgeLevel.GOLD,
    "Data Science": BadgeLevel.GOLD,
    "Science": BadgeLevel.SILVER,
    "Business": BadgeLevel.SILVER,
    "History": BadgeLevel.SILVER,
    "Language": BadgeLevel.BRONZE,
    "Art": BadgeLevel.BRONZE,
    "General Knowledge": BadgeLevel.BRONZE,
}


def category_level(category: str) -> BadgeLevel:
    return CATEGORY_DIFFICULTY.get(category, BadgeLevel.BRONZE)


def _first_attempt(rule, current, history) -> bool:
    return not history


def _perfect_score(rule, current, history) -> bool:
    return current.score == 100 and category_level(current.category) == rule.level


def _pass_streak(rule, current, history) -> bool:
    streak = 0
    for attempt in reversed([*history, current]):
        if not attempt.passed:
            break
        streak += 1
    return streak >= rule.threshold


def _distinct_quizzes_passed(rule, current, history) -> bool:
    if not current.passed:
        return False
    passed = {a.quiz_id for a in history if a.passed}
    passed.add(current.quiz_id)
    return len(passed) >= rule.threshold


def _category_passes(rule, current, history) -> bool:
    if not current.passed:
        return False
    count = 1 + sum(
        1 for a in history if a.passed and a.category == current.category
    )
    return count >= rule.threshold


def _fast_finish(rule, current, history) -> bool:
    # threshold is the share of the time limit, in percent
    if not current.passed or current.time_limit_seconds <= 0:
        return False
    return current.time_taken_seconds * 100 <= current.time_limit_seconds * rule.threshold


BADGE_CHECKS: dict[BadgeType, BadgeCheck] = {
    BadgeType.QUIZ_NOVICE: _first_attempt,
    BadgeType.PERFECT_SCORE: _perfect_score,
    BadgeType.STREAK_MASTER: _pass_streak,
    BadgeType.QUIZ_MASTER: _distinct_quizzes_passed,
    BadgeType.SUBJECT_EXPERT: _category_passes,
    BadgeType.FAST_LEARNER: _fast_finish,
}


DEFAULT_BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(
        BadgeType.QUIZ_NOVICE,
        BadgeLevel.BRONZE,
        "Quiz Novice",
        "Completed your first quiz",
        requires_history=False,
    ),
    BadgeRule(BadgeType.PERFECT_SCORE, BadgeLevel.BRONZE, "Perfect Score", "Scored 100% on a quiz"),
    BadgeRule(BadgeType.PERFECT_SCORE, BadgeLevel.SILVER, "Perfect Score", "Scored 100% on a challenging quiz"),
    BadgeRule(BadgeType.PERFECT_SCORE, BadgeLevel.GOLD, "Perfect Score", "Scored 100% on an advanced quiz"),
    BadgeRule(BadgeType.STREAK_MASTER, BadgeLevel.BRONZE, "Streak Master", "Passed 3 quizzes in a row", threshold=3),
    BadgeRule(BadgeType.STREAK_MASTER, BadgeLevel.SILVER, "Streak Master", "Passed 5 quizzes in a row", threshold=5),
    BadgeRule(BadgeType.STREAK_MASTER, BadgeLevel.GOLD, "Streak Master", "Passed 10 quizzes in a row", threshold=10),
    BadgeRule(BadgeType.QUIZ_MASTER, BadgeLevel.BRONZE, "Quiz Master", "Passed 5 different quizzes", threshold=5),
    BadgeRule(BadgeType.QUIZ_MASTER, BadgeLevel.SILVER, "Quiz Master", "Passed 10 different quizzes", threshold=10),
    BadgeRule(BadgeType.QUIZ_MASTER, BadgeLevel.GOLD, "Quiz Master", "Passed 25 different quizzes", threshold=25),
    BadgeRule(BadgeType.SUBJECT_EXPERT, BadgeLevel.BRONZE, "Subject Expert", "Passed 3 quizzes in one category", threshold=3),
    BadgeRule(BadgeType.SUBJECT_EXPERT, BadgeLevel.SILVER, "Subject Expert", "Passed 5 quizzes in one category", threshold=5),
    BadgeRule(BadgeType.SUBJECT_EXPERT, BadgeLevel.GOLD, "Subject Expert", "Passed 10 quizzes in one category", threshold=10),
    BadgeRule(BadgeType.FAST_LEARNER, BadgeLevel.SILVER, "Fast Learner", "Passed a timed quiz in a quarter of the time", threshold=25),
)


def evaluate_badges(
    current: AttemptSummary,
    history: Sequence[AttemptSummary] = (),
    held: Iterable[tuple[BadgeType, BadgeLevel]] = (),
    rules: Sequence[BadgeRule] = DEFAULT_BADGE_RULES,
) -> tuple[Badge, ...]:
    """Return the badges newly unlocked by ``current``.

    ``held`` lists the ``(badge_type, level)`` pairs the user already has;
    those are never returned again, and a rule listed twice awards once.
    """
    held_keys = set(held)
    awarded = []
    for rule in rules:
        if rule.key in held_keys:
            continue
        if rule.requires_history and not history:
            continue
        check = BADGE_CHECKS[rule.badge_type]
        if check(rule, current, history):
            held_keys.add(rule.key)
            awarded.append(rule.to_badge())
            logger.info(
                "Attempt %s unlocked %s (%s)",
                current.attempt_id,
                rule.name,
                rule.level.value,
            )
    return tuple(awarded)
