"""
Scoring tests - bounds, banding and interpretations
"""
import pytest

from app.models.schemas import Answer, Severity
from app.services.quiz_bank import custom_quiz_from_row, get_quiz, list_quizzes
from app.services.scoring import (
    IncompleteAssessmentError,
    answers_from_indices,
    band_for,
    score_quiz,
)


def extreme_indices(quiz, pick):
    """Option index per question with the lowest (min) or highest (max) value"""
    indices = []
    for question in quiz.questions:
        values = [option.value for option in question.options]
        indices.append(values.index(pick(values)))
    return indices


STANDARD_QUIZZES = [summary.id for summary in list_quizzes() if not summary.is_triage]


@pytest.mark.parametrize("quiz_type", STANDARD_QUIZZES)
def test_score_bounds(quiz_type):
    quiz = get_quiz(quiz_type)

    lowest = score_quiz(quiz, answers_from_indices(quiz, extreme_indices(quiz, min)))
    highest = score_quiz(quiz, answers_from_indices(quiz, extreme_indices(quiz, max)))

    assert lowest.score == 0
    assert lowest.severity == Severity.NORMAL
    assert highest.score == quiz.max_score
    assert highest.severity == Severity.SEVERE


def test_nose_all_severe():
    quiz = get_quiz("NOSE")
    result = score_quiz(quiz, answers_from_indices(quiz, [4, 4, 4, 4, 4]))
    assert result.score == 100
    assert result.max_score == 100
    assert result.summary == "NOSE Score: 100/100 - severe nasal obstruction"
    assert result.interpretation.startswith("Severe nasal obstruction")


def test_nose_all_none():
    quiz = get_quiz("NOSE")
    result = score_quiz(quiz, answers_from_indices(quiz, [0, 0, 0, 0, 0]))
    assert result.score == 0
    assert result.severity == Severity.NORMAL
    assert result.interpretation == "Minimal nasal obstruction with little impact on breathing."


def test_nose_multiplier():
    quiz = get_quiz("NOSE")
    result = score_quiz(quiz, answers_from_indices(quiz, [1, 2, 3, 0, 4]))
    assert result.score == (1 + 2 + 3 + 0 + 4) * 5


@pytest.mark.parametrize("score,expected", [
    (0, Severity.NORMAL),
    (24, Severity.NORMAL),
    (25, Severity.MILD),
    (50, Severity.MODERATE),
    (74, Severity.MODERATE),
    (75, Severity.SEVERE),
    (82, Severity.SEVERE),
])
def test_nose_thresholds(score, expected):
    quiz = get_quiz("NOSE")
    assert band_for(quiz.scoring, score, quiz.max_score) == expected


def test_hhia_has_no_moderate_band():
    quiz = get_quiz("HHIA")
    assert band_for(quiz.scoring, 17, quiz.max_score) == Severity.NORMAL
    assert band_for(quiz.scoring, 40, quiz.max_score) == Severity.MILD
    assert band_for(quiz.scoring, 58, quiz.max_score) == Severity.SEVERE


def test_stop_bang_counts_yes_answers():
    quiz = get_quiz("STOP")
    # Yes is the first option
    five_yes = score_quiz(quiz, answers_from_indices(quiz, [0, 0, 0, 0, 0, 1, 1, 1]))
    assert five_yes.score == 5
    assert five_yes.severity == Severity.SEVERE

    all_no = score_quiz(quiz, answers_from_indices(quiz, [1] * 8))
    assert all_no.summary == "STOP-BANG Score: 0/8 - Low OSA risk"


def test_scoring_is_deterministic():
    quiz = get_quiz("SNOT22")
    indices = [i % 6 for i in range(len(quiz.questions))]
    first = score_quiz(quiz, answers_from_indices(quiz, indices))
    second = score_quiz(quiz, answers_from_indices(quiz, indices))
    assert first == second


def test_detailed_answers():
    quiz = get_quiz("TNSS")
    result = score_quiz(quiz, answers_from_indices(quiz, [0, 1, 2, 3]))
    assert list(result.detailed_answers) == ["q0", "q1", "q2", "q3"]
    assert result.detailed_answers["q0"]["question"] == quiz.questions[0].text
    assert result.detailed_answers["q3"]["score"] == quiz.questions[3].options[3].value


def test_incomplete_answers_rejected():
    quiz = get_quiz("NOSE")
    with pytest.raises(IncompleteAssessmentError):
        score_quiz(quiz, answers_from_indices(quiz, [1, 2]))


def test_out_of_order_answers_rejected():
    quiz = get_quiz("TNSS")
    answers = answers_from_indices(quiz, [0, 0, 0, 0])
    answers[0], answers[1] = answers[1], answers[0]
    with pytest.raises(IncompleteAssessmentError):
        score_quiz(quiz, answers)


def test_out_of_range_option_rejected():
    quiz = get_quiz("TNSS")
    with pytest.raises(IncompleteAssessmentError):
        answers_from_indices(quiz, [0, 0, 0, 99])

    bad = [Answer(question_index=i, answer_index=99, answer="?") for i in range(4)]
    with pytest.raises(IncompleteAssessmentError):
        score_quiz(quiz, bad)


def test_custom_quiz_uses_percentage_and_clinic_name():
    quiz = custom_quiz_from_row({
        "id": "cq1",
        "title": "Allergy Check",
        "questions": [
            {"text": "Sneezing?", "options": ["Never (0)", "Sometimes (1)", "Always (2)"]},
            {"text": "Itchy eyes?", "options": ["Never (0)", "Sometimes (1)", "Always (2)"]},
        ],
    })
    # 2 of 4 points = 50% -> moderate with default thresholds
    result = score_quiz(quiz, answers_from_indices(quiz, [1, 1]), clinic_name="Riverside ENT")
    assert result.score == 2
    assert result.severity == Severity.MODERATE
    assert "Riverside ENT" in result.interpretation
    assert result.summary == "Allergy Check Score: 2/4 - moderate"

    fallback = score_quiz(quiz, answers_from_indices(quiz, [2, 2]))
    assert "a healthcare provider" in fallback.interpretation
