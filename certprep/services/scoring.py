# certprep/services/scoring.py
from typing import Iterable, Mapping

from ..core.models import PracticeTest, ScoreResult, QuestionDetail


def percentage(correct: int, total: int) -> int:
    """correct/total as a whole percentage, halves rounded up"""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def score_test(test: PracticeTest, submitted: Mapping[str, Iterable[str]]) -> ScoreResult:
    """
    Score a submission against the test's answer key.

    A question counts only when the selected set equals the correct set
    exactly; order does not matter and partial selections earn nothing.
    Unanswered questions score as wrong.
    """
    detail = []
    correct = 0

    for question in test.questions:
        user_answers = list(submitted.get(question.id) or [])
        is_correct = set(user_answers) == set(question.correct_answers)
        if is_correct:
            correct += 1

        detail.append(QuestionDetail(
            question_id=question.id,
            is_correct=is_correct,
            user_answers=user_answers,
            correct_answers=list(question.correct_answers)
        ))

    total = len(test.questions)
    return ScoreResult(
        total=total,
        correct=correct,
        incorrect=total - correct,
        score=percentage(correct, total),
        detail=detail
    )
