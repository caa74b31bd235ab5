"""
Quiz definition, scoring and sharing endpoints
"""
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Request

from app.core.config import get_public_base_url
from app.models.schemas import Quiz, QuizResult, QuizSummary, ScoreRequest, ShareLinks, Triage
from app.services.quiz_bank import get_quiz, get_triage, list_quizzes
from app.services.routing import routing_from_params
from app.services.scoring import IncompleteAssessmentError, answers_from_indices, score_quiz
from app.services.sharing import build_share_links

router = APIRouter()


@router.get("/quizzes", response_model=List[QuizSummary])
async def get_quizzes():
    """
    List available quizzes and triage questions
    """
    return list_quizzes()


@router.get("/quizzes/{quiz_type}", response_model=Union[Quiz, Triage])
async def get_quiz_definition(quiz_type: str):
    """
    Get a quiz (or triage) definition

    Unknown quiz types return 404 'Assessment not found'
    """
    definition = get_quiz(quiz_type) or get_triage(quiz_type)
    if definition is None:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return definition


@router.post("/quizzes/{quiz_type}/score", response_model=QuizResult)
async def score_answers(quiz_type: str, request: ScoreRequest):
    """
    Score an already-collected answer set

    Expects one option index per question, in question order.
    """
    quiz = get_quiz(quiz_type)
    if quiz is None:
        raise HTTPException(status_code=404, detail="Assessment not found")

    try:
        answers = answers_from_indices(quiz, request.answer_indices)
        return score_quiz(quiz, answers, request.clinic_name)
    except IncompleteAssessmentError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/quizzes/{quiz_type}/share", response_model=ShareLinks)
async def get_share_links(quiz_type: str, request: Request, platform: Optional[str] = None):
    """
    Build tracked share URL and iframe embed code for a quiz

    Accepts the same routing parameters as session creation
    (doctor, physician, custom_quiz_id) plus an optional platform
    used as the traffic source.
    """
    routing = routing_from_params(request.query_params)
    if not routing.custom_quiz_id and get_quiz(quiz_type) is None and get_triage(quiz_type) is None:
        raise HTTPException(status_code=404, detail="Assessment not found")

    return build_share_links(get_public_base_url(), quiz_type, routing, source=platform)
