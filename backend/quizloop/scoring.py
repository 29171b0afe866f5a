"""Pure grading functions.

A question is correct only when the selected option set equals the answer
key exactly; multi choice questions get no partial credit and unanswered
questions count as incorrect.
"""

from typing import Mapping

from quizloop.domain import Question, QuestionResult, Quiz, Result


def percent_half_up(numerator: int, denominator: int) -> int:
    """Return ``round(100 * numerator / denominator)`` rounding halves up."""
    # floor(100n/d + 1/2) in integer arithmetic
    return (200 * numerator + denominator) // (2 * denominator)


def grade_question(question: Question, selection: frozenset[int]) -> bool:
    return bool(selection) and selection == question.correct_options


def score_attempt(
    quiz: Quiz,
    answers: Mapping[int, frozenset[int]],
    time_taken_seconds: int = 0,
) -> Result:
    total = len(quiz.questions)
    if total == 0:
        raise ValueError(f"Quiz {quiz.id} has no questions to score")

    question_results = []
    correct = 0
    unanswered = 0
    for index, question in enumerate(quiz.questions):
        selection = frozenset(answers.get(index, frozenset()))
        is_correct = grade_question(question, selection)
        if is_correct:
            correct += 1
        if not selection:
            unanswered += 1
        question_results.append(
            QuestionResult(
                question_index=index,
                question_id=question.id,
                selected=tuple(sorted(selection)),
                correct_options=tuple(sorted(question.correct_options)),
                answered=bool(selection),
                is_correct=is_correct,
            )
        )

    score = percent_half_up(correct, total)
    return Result(
        score=score,
        correct_count=correct,
        incorrect_count=total - correct,
        unanswered_count=unanswered,
        passed=score >= quiz.passing_score_percent,
        time_taken_seconds=time_taken_seconds,
        question_results=tuple(question_results),
    )
