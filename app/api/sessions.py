"""
Assessment session endpoints

One session per user run: triage, answers, contact capture, lead submission.
Sessions live in memory and expire when idle.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.utils import get_session_or_404
from app.database.backend import HostedBackendClient, get_backend
from app.database.cache import TTLCache, get_session_store
from app.models.schemas import (
    AnswerSubmission,
    ContactSubmission,
    SessionCreate,
    SessionStepResponse,
    SessionView,
    StepOutcome,
    TriageChoice,
)
from app.services.assessment.engine import AssessmentEngine, InvalidTransitionError
from app.services.leads import LeadSubmissionAdapter
from app.services.quiz_bank import QuizNotFoundError, fetch_custom_quiz
from app.services.routing import resolve_session_doctor, routing_from_params

logger = logging.getLogger(__name__)

router = APIRouter()


def _step_response(engine: AssessmentEngine, outcome: StepOutcome) -> SessionStepResponse:
    if outcome.reason == "submission_failed":
        # Session keeps answers and contact details; client may POST /submit again
        raise HTTPException(status_code=502, detail=outcome.message)
    if outcome.reason == "submission_rejected":
        # e.g. no doctor on the session; a retry would fail the same way
        raise HTTPException(status_code=422, detail=outcome.message)
    return SessionStepResponse(outcome=outcome, session=engine.view())


@router.post("/sessions", response_model=SessionView)
async def create_session(
    payload: SessionCreate,
    request: Request,
    backend: HostedBackendClient = Depends(get_backend),
    store: TTLCache = Depends(get_session_store),
):
    """
    Start an assessment session

    Routing parameters may come from the body or the share link's query
    string (doctor, physician, source/utm_source, campaign/utm_campaign,
    medium/utm_medium, share_key, custom_quiz_id). Body values win.
    """
    body_routing = payload.model_dump(exclude_none=True, exclude={"quiz_type"})
    routing = routing_from_params(request.query_params).model_copy(update=body_routing)

    quiz = None
    try:
        if payload.quiz_type.lower() == "custom":
            if not routing.custom_quiz_id:
                raise HTTPException(status_code=400, detail="custom_quiz_id is required for custom quizzes")
            quiz = await fetch_custom_quiz(backend, routing.custom_quiz_id)

        routing = await resolve_session_doctor(routing, backend, custom_quiz_owner=quiz.doctor_id if quiz else None)
        engine = AssessmentEngine(
            payload.quiz_type,
            LeadSubmissionAdapter(backend, routing),
            quiz=quiz,
            clinic_name=routing.clinic_name,
        )
    except QuizNotFoundError:
        raise HTTPException(status_code=404, detail="Assessment not found")

    store.set(engine.session_id, engine)
    logger.info(f"Session {engine.session_id} started: {engine.entry_type}, doctor={routing.doctor_id}, source={routing.source}")
    return engine.view()


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session(session_id: str, store: TTLCache = Depends(get_session_store)):
    """
    Get the current state of a session
    """
    return get_session_or_404(store, session_id).view()


@router.post("/sessions/{session_id}/triage", response_model=SessionStepResponse)
async def choose_triage(session_id: str, choice: TriageChoice, store: TTLCache = Depends(get_session_store)):
    """
    Answer the triage question, selecting which quiz to administer
    """
    engine = get_session_or_404(store, session_id)
    try:
        outcome = engine.choose_triage(choice.option_index)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(engine, outcome)


@router.post("/sessions/{session_id}/answers", response_model=SessionStepResponse)
async def submit_answer(session_id: str, submission: AnswerSubmission, store: TTLCache = Depends(get_session_store)):
    """
    Answer the current question

    Answers for any other question index are ignored (accepted=false),
    which makes double clicks and stale renders harmless.
    """
    engine = get_session_or_404(store, session_id)
    outcome = await engine.answer(submission.question_index, submission.answer_index)
    return _step_response(engine, outcome)


@router.post("/sessions/{session_id}/contact", response_model=SessionStepResponse)
async def submit_contact(session_id: str, submission: ContactSubmission, store: TTLCache = Depends(get_session_store)):
    """
    Provide the value for the current contact step (name, email, phone)

    Invalid values return accepted=false with a corrective prompt. A valid
    phone number submits the lead; a failed submission returns 502.
    """
    engine = get_session_or_404(store, session_id)
    try:
        outcome = await engine.submit_contact(submission.value)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(engine, outcome)


@router.post("/sessions/{session_id}/submit", response_model=SessionStepResponse)
async def retry_submission(session_id: str, store: TTLCache = Depends(get_session_store)):
    """
    Resubmit the lead after a failed attempt, without re-answering
    """
    engine = get_session_or_404(store, session_id)
    try:
        outcome = await engine.submit_lead()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(engine, outcome)


@router.post("/sessions/{session_id}/retake", response_model=SessionView)
async def retake(session_id: str, store: TTLCache = Depends(get_session_store)):
    """
    Discard the session and start a new one for the same quiz

    Returns the new session; the old session id is no longer valid.
    """
    engine = get_session_or_404(store, session_id)
    fresh = engine.retake()
    store.invalidate(session_id)
    store.set(fresh.session_id, fresh)
    return fresh.view()
