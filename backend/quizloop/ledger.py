"""Validated storage of answer selections for a single attempt."""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from quizloop.domain import QuestionType
from quizloop.errors import InvalidStateError, ValidationError

logger = logging.getLogger(__name__)


class AnswerLedger:
    """Maps each question index to the set of option indices selected.

    The ledger only knows how many options every question has; cardinality
    rules are checked against the question type passed with each update.
    Once frozen it rejects all writes.
    """

    def __init__(self, option_counts: Sequence[int]):
        self._option_counts = tuple(option_counts)
        self._entries: dict[int, frozenset[int]] = {
            index: frozenset() for index in range(len(self._option_counts))
        }
        self._frozen = False

    def __len__(self) -> int:
        return len(self._option_counts)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def selection(self, question_index: int) -> frozenset[int]:
        self._check_question_index(question_index)
        return self._entries[question_index]

    def set_selection(
        self,
        question_index: int,
        option_indices: Iterable[int],
        question_type: QuestionType,
    ) -> frozenset[int]:
        """Overwrite the selection for one question.

        An empty selection clears the entry. Raises ``ValidationError`` for
        out-of-range indices, duplicates or too many picks on a single
        choice question; nothing is ever truncated.
        """
        if self._frozen:
            raise InvalidStateError("Answers can no longer be changed")
        self._check_question_index(question_index)
        picks = list(option_indices)
        for index in picks:
            if isinstance(index, bool) or not isinstance(index, int):
                raise ValidationError(f"Option index {index!r} is not an integer")
            if index < 0 or index >= self._option_counts[question_index]:
                raise ValidationError(
                    f"Option {index} is out of range for question {question_index}"
                )
        selection = frozenset(picks)
        if len(selection) != len(picks):
            raise ValidationError(
                f"Duplicate option indices for question {question_index}"
            )
        if question_type == QuestionType.SINGLE_CHOICE and len(selection) > 1:
            raise ValidationError(
                f"Question {question_index} accepts a single option only"
            )
        self._entries[question_index] = selection
        return selection

    def unanswered_indices(self) -> frozenset[int]:
        return frozenset(i for i, picks in self._entries.items() if not picks)

    def progress_percent(self) -> int:
        if not self._entries:
            return 0
        answered = len(self._entries) - len(self.unanswered_indices())
        return answered * 100 // len(self._entries)

    def to_grading_view(self) -> Mapping[int, frozenset[int]]:
        """Immutable snapshot handed to the scorer."""
        return MappingProxyType(dict(self._entries))

    def freeze(self) -> None:
        self._frozen = True

    def discard(self) -> None:
        """Drop every selection and freeze; used when an attempt is abandoned."""
        self._entries = {index: frozenset() for index in self._entries}
        self._frozen = True
        logger.debug("Ledger discarded")

    def _check_question_index(self, question_index: int) -> None:
        if isinstance(question_index, bool) or not isinstance(question_index, int):
            raise ValidationError(f"Question index {question_index!r} is not an integer")
        if question_index < 0 or question_index >= len(self._option_counts):
            raise ValidationError(f"Question {question_index} does not exist")
