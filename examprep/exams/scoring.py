from __future__ import annotations

from collections.abc import Mapping, Sequence

from examprep.exams.types import ScoreBreakdown


def round_half_up_ratio(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero for non-negative inputs; 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return (numerator * 2 + denominator) // (2 * denominator)


def percent_half_up(part: int, whole: int) -> int:
    return round_half_up_ratio(part * 100, whole)


def score_exam(
    *,
    question_ids: Sequence[int],
    answers: Mapping[str, str],
    correct_option_by_id: Mapping[int, str],
) -> ScoreBreakdown:
    """Scores every question of the exam; an unanswered question counts as incorrect."""
    correct = 0
    incorrect = 0
    unanswered = 0
    for question_id in question_ids:
        selected = answers.get(str(question_id))
        if selected is None:
            unanswered += 1
        elif selected == correct_option_by_id.get(question_id):
            correct += 1
        else:
            incorrect += 1

    total = len(question_ids)
    score = percent_half_up(correct, total)
    return ScoreBreakdown(
        score=score,
        correct_answers=correct,
        incorrect_answers=incorrect,
        unanswered_questions=unanswered,
    )


def is_passed(*, score: int, passing_score: int) -> bool:
    return score >= passing_score
