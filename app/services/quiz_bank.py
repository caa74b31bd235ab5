"""
Question bank

Loads the static quiz and triage definitions shipped in app/data/quizzes.json
and converts doctor-authored quizzes fetched from the hosted backend.
"""
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.database.backend import BackendError, HostedBackendClient
from app.models.schemas import Quiz, QuizSummary, Triage

logger = logging.getLogger(__name__)

QUIZZES_PATH = Path(__file__).resolve().parent.parent / "data" / "quizzes.json"

# Loaded once, reused across requests
_bank_cache: Optional[Dict[str, Dict[str, Any]]] = None


class QuizNotFoundError(LookupError):
    """Unknown quiz type: terminal 'Assessment not found' state"""

    def __init__(self, quiz_type: str):
        super().__init__(f"Assessment not found: {quiz_type}")
        self.quiz_type = quiz_type


def _expand_questions(raw_quiz: Dict[str, Any]) -> Dict[str, Any]:
    """Apply a quiz-level shared option list to questions that omit their own"""
    shared_options = raw_quiz.get("options")
    questions = []
    for question in raw_quiz.get("questions", []):
        if "options" not in question and shared_options is not None:
            question = {**question, "options": shared_options}
        questions.append(question)
    expanded = {key: value for key, value in raw_quiz.items() if key != "options"}
    expanded["questions"] = questions
    return expanded


def load_bank(path: Path = QUIZZES_PATH) -> Dict[str, Dict[str, Any]]:
    """
    Load and validate all quiz and triage definitions

    Raises:
        FileNotFoundError / ValueError: the bank is missing or violates a
        quiz invariant (e.g. max_score mismatch)
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    quizzes = {
        key.upper(): Quiz.model_validate(_expand_questions(value))
        for key, value in raw.get("quizzes", {}).items()
    }
    triages = {
        key.upper(): Triage.model_validate(value)
        for key, value in raw.get("triages", {}).items()
    }

    for triage in triages.values():
        for option in triage.options:
            if option.quiz_type.upper() not in quizzes:
                raise ValueError(f"Triage {triage.id} points to unknown quiz {option.quiz_type}")

    logger.info(f"Loaded {len(quizzes)} quizzes and {len(triages)} triage questions from {path.name}")
    return {"quizzes": quizzes, "triages": triages}


def _bank() -> Dict[str, Dict[str, Any]]:
    global _bank_cache
    if _bank_cache is None:
        _bank_cache = load_bank()
    return _bank_cache


def get_quiz(quiz_type: str) -> Optional[Quiz]:
    """Return the quiz definition for a key, or None if unknown"""
    if not quiz_type:
        return None
    return _bank()["quizzes"].get(quiz_type.upper())


def get_triage(quiz_type: str) -> Optional[Triage]:
    """Return the triage definition for a key, or None if the key is not a triage"""
    if not quiz_type:
        return None
    return _bank()["triages"].get(quiz_type.upper())


def require_quiz(quiz_type: str) -> Quiz:
    quiz = get_quiz(quiz_type)
    if quiz is None:
        raise QuizNotFoundError(quiz_type)
    return quiz


def list_quizzes() -> List[QuizSummary]:
    bank = _bank()
    summaries = [
        QuizSummary(
            id=quiz.id,
            title=quiz.title,
            description=quiz.description,
            question_count=len(quiz.questions),
            max_score=quiz.max_score,
        )
        for quiz in bank["quizzes"].values()
    ]
    summaries.extend(
        QuizSummary(
            id=triage.id,
            title=triage.title,
            description=triage.description,
            question_count=1,
            max_score=0,
            is_triage=True,
        )
        for triage in bank["triages"].values()
    )
    return summaries


# =============================================================================
# Custom (doctor-authored) quizzes
# =============================================================================

CUSTOM_INTERPRETATIONS = {
    "severe": "Your symptoms indicate a severe condition. Please consult with {clinic_name} immediately.",
    "moderate": "Your symptoms indicate a moderate condition. We recommend scheduling a consultation with {clinic_name}.",
    "mild": "Your symptoms indicate a mild condition. Consider monitoring or consulting with {clinic_name}.",
    "normal": "Your symptoms appear to be minimal. Continue monitoring your condition.",
}

DEFAULT_CUSTOM_THRESHOLDS = {"mild": 25, "moderate": 50, "severe": 75}

_OPTION_POINTS = re.compile(r"\((\d+)\)\s*$")


def _custom_option(option: Any, index: int) -> Dict[str, Any]:
    if isinstance(option, dict):
        text = str(option.get("text") or option.get("label") or "")
        value = option.get("value")
        try:
            points = int(value) if value is not None else 0
        except (TypeError, ValueError):
            logger.warning(f"Custom quiz option {text!r} has non-numeric value {value!r}, scoring it as 0")
            points = 0
        return {"text": text, "value": points}
    # Plain string options carry their points as a trailing "(N)", else their position
    text = str(option)
    match = _OPTION_POINTS.search(text)
    return {"text": text, "value": int(match.group(1)) if match else index}


def custom_quiz_from_row(row: Dict[str, Any]) -> Quiz:
    """
    Convert a custom_quizzes row into a Quiz scored by percentage thresholds
    """
    questions = []
    for index, question in enumerate(row.get("questions") or []):
        options = [_custom_option(option, i) for i, option in enumerate(question.get("options") or [])]
        questions.append({
            "id": str(question.get("id") or f"q{index}"),
            "text": question.get("text", ""),
            "options": options,
        })

    computed_max = sum(max(option["value"] for option in q["options"]) for q in questions if q["options"])
    stored_max = row.get("max_score")
    if stored_max is not None and stored_max != computed_max:
        logger.warning(
            f"Custom quiz {row.get('id')}: stored max_score {stored_max} differs from option values ({computed_max}), using {computed_max}"
        )

    scoring = row.get("scoring") or {}
    bands = []
    for severity in ("mild", "moderate", "severe"):
        threshold = scoring.get(f"{severity}_threshold", DEFAULT_CUSTOM_THRESHOLDS[severity])
        bands.append({
            "severity": severity,
            "threshold": threshold,
            "interpretation": CUSTOM_INTERPRETATIONS[severity],
        })
    bands.sort(key=lambda band: band["threshold"])

    return Quiz.model_validate({
        "id": str(row["id"]),
        "title": row.get("title") or "Custom Assessment",
        "description": row.get("description") or "",
        "questions": questions,
        "max_score": computed_max,
        "scoring": {
            "basis": "percent",
            "bands": bands,
            "baseline_interpretation": CUSTOM_INTERPRETATIONS["normal"],
            "summary_template": "{title} Score: {score}/{max_score} - {severity_label}",
        },
        "is_custom": True,
        "doctor_id": row.get("doctor_id"),
    })


async def fetch_custom_quiz(backend: HostedBackendClient, quiz_id: str) -> Quiz:
    """
    Load a custom quiz from the hosted backend

    Raises:
        QuizNotFoundError: no such quiz, or it could not be loaded
    """
    try:
        rows = await backend.select("custom_quizzes", {"id": quiz_id}, limit=1)
    except BackendError as e:
        logger.error(f"Error loading custom quiz {quiz_id}: {e}")
        raise QuizNotFoundError(f"custom_{quiz_id}") from e

    if not rows:
        raise QuizNotFoundError(f"custom_{quiz_id}")
    try:
        return custom_quiz_from_row(rows[0])
    except (ValueError, KeyError) as e:
        logger.error(f"Custom quiz {quiz_id} has invalid data: {e}")
        raise QuizNotFoundError(f"custom_{quiz_id}") from e
