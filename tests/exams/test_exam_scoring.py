from __future__ import annotations

from examprep.exams.scoring import is_passed, percent_half_up, round_half_up_ratio, score_exam


def test_unanswered_questions_count_as_incorrect_in_score() -> None:
    breakdown = score_exam(
        question_ids=[1, 2, 3, 4, 5],
        answers={"1": "a", "2": "b", "3": "c", "4": "d"},
        correct_option_by_id={1: "a", 2: "b", 3: "c", 4: "a", 5: "b"},
    )

    assert breakdown.correct_answers == 3
    assert breakdown.incorrect_answers == 1
    assert breakdown.unanswered_questions == 1
    assert breakdown.score == 60


def test_score_is_rounded_to_nearest_integer() -> None:
    breakdown = score_exam(
        question_ids=[1, 2, 3],
        answers={"1": "a", "2": "a"},
        correct_option_by_id={1: "a", 2: "a", 3: "a"},
    )
    assert breakdown.score == 67


def test_answers_to_foreign_questions_are_ignored() -> None:
    breakdown = score_exam(
        question_ids=[1, 2],
        answers={"1": "a", "99": "a"},
        correct_option_by_id={1: "a", 2: "b"},
    )

    assert breakdown.correct_answers == 1
    assert breakdown.unanswered_questions == 1
    assert breakdown.score == 50


def test_passing_score_is_inclusive() -> None:
    assert is_passed(score=80, passing_score=80) is True
    assert is_passed(score=79, passing_score=80) is False
    assert is_passed(score=0, passing_score=0) is True


def test_half_point_scores_round_up() -> None:
    question_ids = list(range(1, 9))
    breakdown = score_exam(
        question_ids=question_ids,
        answers={str(question_id): "a" for question_id in question_ids[:5]},
        correct_option_by_id={question_id: "a" for question_id in question_ids},
    )

    # 5 of 8 is 62.5%
    assert breakdown.score == 63
    assert is_passed(score=breakdown.score, passing_score=63) is True


def test_percent_half_up() -> None:
    assert percent_half_up(1, 8) == 13
    assert percent_half_up(3, 8) == 38
    assert percent_half_up(1, 3) == 33
    assert percent_half_up(0, 0) == 0
    assert round_half_up_ratio(125, 2) == 63
    assert round_half_up_ratio(249, 4) == 62
