"""
Quiz scoring service

Pure functions mapping a complete answer sequence to a score, severity band
and interpretation. Standard instruments band on the raw score; custom quizzes
band on the percentage of max_score. The two are not comparable.
"""
from typing import List, Optional, Sequence

from app.models.schemas import Answer, Quiz, QuizResult, ScoringRule, Severity

DEFAULT_CLINIC_NAME = "a healthcare provider"


class IncompleteAssessmentError(AssertionError):
    """Scoring was asked for an answer set that does not cover every question once, in order"""


def check_complete(quiz: Quiz, answers: Sequence[Answer]):
    """
    Verify the answer sequence covers every question exactly once, in order,
    with in-range option indices

    Raises:
        IncompleteAssessmentError: programming invariant violated
    """
    if len(answers) != len(quiz.questions):
        raise IncompleteAssessmentError(
            f"{quiz.id}: expected {len(quiz.questions)} answers, got {len(answers)}"
        )
    for expected_index, answer in enumerate(answers):
        if answer.question_index != expected_index:
            raise IncompleteAssessmentError(
                f"{quiz.id}: answer {expected_index} targets question {answer.question_index}"
            )
        options = quiz.questions[expected_index].options
        if not 0 <= answer.answer_index < len(options):
            raise IncompleteAssessmentError(
                f"{quiz.id}: option {answer.answer_index} out of range for question {expected_index}"
            )


def raw_score(quiz: Quiz, answers: Sequence[Answer]) -> int:
    """Sum of chosen option values, scaled by the quiz multiplier"""
    total = sum(
        quiz.questions[answer.question_index].options[answer.answer_index].value
        for answer in answers
    )
    return total * quiz.score_multiplier


def band_for(rule: ScoringRule, score: int, max_score: int) -> Severity:
    """
    Select the highest band whose threshold is met; baseline is NORMAL
    """
    if rule.basis == "percent":
        measure = (score / max_score) * 100 if max_score else 0.0
    else:
        measure = score

    severity = Severity.NORMAL
    for band in rule.bands:
        if measure >= band.threshold:
            severity = band.severity
    return severity


def interpretation_for(rule: ScoringRule, severity: Severity, clinic_name: Optional[str] = None) -> str:
    text = rule.baseline_interpretation
    for band in rule.bands:
        if band.severity == severity:
            text = band.interpretation
    return text.replace("{clinic_name}", clinic_name or DEFAULT_CLINIC_NAME)


def detailed_answers(quiz: Quiz, answers: Sequence[Answer]) -> dict:
    details = {}
    for index, answer in enumerate(answers):
        question = quiz.questions[answer.question_index]
        details[f"q{index}"] = {
            "question": question.text,
            "answer": answer.answer,
            "score": question.options[answer.answer_index].value,
        }
    return details


def score_quiz(quiz: Quiz, answers: Sequence[Answer], clinic_name: Optional[str] = None) -> QuizResult:
    """
    Score a completed quiz

    Args:
        quiz: Quiz definition
        answers: One answer per question, in question order
        clinic_name: Optional clinic display name for interpretations

    Returns:
        QuizResult with score, severity, interpretation and summary

    Raises:
        IncompleteAssessmentError: answers do not cover the quiz exactly once
    """
    check_complete(quiz, answers)

    score = raw_score(quiz, answers)
    rule = quiz.scoring
    severity = band_for(rule, score, quiz.max_score)
    severity_label = rule.severity_labels.get(severity.value, severity.value)

    return QuizResult(
        score=score,
        max_score=quiz.max_score,
        severity=severity,
        interpretation=interpretation_for(rule, severity, clinic_name),
        summary=rule.summary_template.format(
            title=quiz.title,
            score=score,
            max_score=quiz.max_score,
            severity=severity.value,
            severity_label=severity_label,
        ),
        detailed_answers=detailed_answers(quiz, answers),
    )


def answers_from_indices(quiz: Quiz, answer_indices: List[int]) -> List[Answer]:
    """
    Build Answer records from a plain list of option indices

    Out-of-range indices raise IncompleteAssessmentError.
    """
    answers = []
    for question_index, answer_index in enumerate(answer_indices):
        if question_index >= len(quiz.questions):
            raise IncompleteAssessmentError(f"{quiz.id}: more answers than questions")
        options = quiz.questions[question_index].options
        if not 0 <= answer_index < len(options):
            raise IncompleteAssessmentError(
                f"{quiz.id}: option {answer_index} out of range for question {question_index}"
            )
        answers.append(Answer(
            question_index=question_index,
            answer_index=answer_index,
            answer=options[answer_index].text,
        ))
    return answers
