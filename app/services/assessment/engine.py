"""
Assessment progression engine

Drives one user's run through a quiz:

    triage -> in_progress(i) -> completed -> collecting_contact(step) -> submitted

- Answers are accepted strictly in order; stale, duplicate or concurrent
  submissions are dropped without changing state
- The first accepted answer schedules a fire-and-forget partial submission
- Contact details are collected one step at a time (name, email, phone)
- A failed lead submission keeps answers and contact details for a retry
"""
import asyncio
import logging
import uuid
from typing import List, Optional, Set

from app.models.schemas import (
    Answer,
    ContactInfo,
    ContactStep,
    Phase,
    Quiz,
    QuizResult,
    SessionView,
    StepOutcome,
    Triage,
)
from app.services.assessment.validation import validate_name, validate_email, validate_phone
from app.services.leads import LeadSubmissionAdapter, LeadSubmissionError, lead_quiz_type
from app.services.quiz_bank import QuizNotFoundError, get_quiz, get_triage, require_quiz
from app.services.scoring import score_quiz

logger = logging.getLogger(__name__)

CONTACT_PROMPTS = {
    ContactStep.NAME: "Please enter your full name:",
    ContactStep.EMAIL: "Thank you! Please provide your email address:",
    ContactStep.PHONE: "Great! Finally, please provide your phone number:",
}

CONTACT_VALIDATORS = {
    ContactStep.NAME: validate_name,
    ContactStep.EMAIL: validate_email,
    ContactStep.PHONE: validate_phone,
}

NEXT_CONTACT_STEP = {
    ContactStep.NAME: ContactStep.EMAIL,
    ContactStep.EMAIL: ContactStep.PHONE,
    ContactStep.PHONE: None,
}

SUBMITTED_MESSAGE = "Results saved successfully! Your information has been sent to the healthcare provider."
SUBMIT_FAILED_MESSAGE = "Failed to save results. Please try again."


class InvalidTransitionError(Exception):
    """Action not allowed in the session's current phase"""


class AssessmentEngine:
    """
    Progression state machine for one assessment session

    Args:
        entry_type: Quiz or triage identifier the session was started with
        adapter: Lead submission adapter carrying the routing context
        quiz: Pre-loaded quiz (custom quizzes); looked up by entry_type otherwise
        clinic_name: Clinic display name used in interpretations

    Raises:
        QuizNotFoundError: entry_type names neither a quiz nor a triage
    """

    def __init__(
        self,
        entry_type: str,
        adapter: LeadSubmissionAdapter,
        quiz: Optional[Quiz] = None,
        clinic_name: Optional[str] = None,
    ):
        self.adapter = adapter
        self.clinic_name = clinic_name
        self._custom_quiz = quiz

        if quiz is not None:
            self.entry_type = quiz.id
            self.triage: Optional[Triage] = None
        else:
            self.entry_type = entry_type.upper()
            self.triage = get_triage(entry_type)
            if self.triage is None and get_quiz(entry_type) is None:
                raise QuizNotFoundError(entry_type)

        self._background: Set[asyncio.Task] = set()
        self._start()

    def _start(self):
        self.session_id = str(uuid.uuid4())
        if self.triage is not None:
            self.quiz: Optional[Quiz] = None
            self.phase = Phase.TRIAGE
            self.prompt: Optional[str] = self.triage.text
        else:
            self.quiz = self._custom_quiz or require_quiz(self.entry_type)
            self.phase = Phase.IN_PROGRESS
            self.prompt = None
        self.current_question_index = 0
        self.answers: List[Answer] = []
        self.contact = ContactInfo()
        self.contact_step: Optional[ContactStep] = None
        self.result: Optional[QuizResult] = None
        self.submission_error: Optional[str] = None
        self.lead_response: Optional[dict] = None
        self.partial_submitted = False
        self._in_flight = False

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def choose_triage(self, option_index: int) -> StepOutcome:
        """
        Pick a triage branch and load the quiz it names
        """
        if self.phase is not Phase.TRIAGE or self.triage is None:
            raise InvalidTransitionError("This session has no pending triage question")
        if not 0 <= option_index < len(self.triage.options):
            return StepOutcome(accepted=False, reason="invalid_option", message="Please choose one of the listed options")

        branch = self.triage.options[option_index]
        self.quiz = require_quiz(branch.quiz_type)
        self.phase = Phase.IN_PROGRESS
        self.current_question_index = 0
        self.prompt = None
        logger.info(f"Session {self.session_id}: triage chose {self.quiz.id}")
        return StepOutcome(accepted=True)

    async def answer(self, question_index: int, answer_index: int) -> StepOutcome:
        """
        Record the answer to the current question

        Only an answer targeting current_question_index is applied; anything
        else (stale render, double click, concurrent call) is a no-op.
        """
        if self._in_flight:
            return StepOutcome(accepted=False, reason="busy")
        if self.phase is not Phase.IN_PROGRESS:
            return StepOutcome(accepted=False, reason="not_in_progress")
        if question_index != self.current_question_index:
            logger.debug(
                f"Session {self.session_id}: dropped answer for question {question_index}, current is {self.current_question_index}"
            )
            return StepOutcome(accepted=False, reason="stale_question")

        question = self.quiz.questions[question_index]
        if not 0 <= answer_index < len(question.options):
            return StepOutcome(accepted=False, reason="invalid_option", message="Please choose one of the listed options")

        self._in_flight = True
        try:
            if not self.partial_submitted:
                self.partial_submitted = True
                self._spawn(self.adapter.submit_partial(lead_quiz_type(self.quiz)))

            self.answers.append(Answer(
                question_index=question_index,
                answer_index=answer_index,
                answer=question.options[answer_index].text,
            ))

            if question_index + 1 < len(self.quiz.questions):
                self.current_question_index = question_index + 1
            else:
                self._complete()
        finally:
            self._in_flight = False
        return StepOutcome(accepted=True)

    def _complete(self):
        self.phase = Phase.COMPLETED
        self.result = score_quiz(self.quiz, self.answers, self.clinic_name)
        logger.info(
            f"Session {self.session_id}: {self.quiz.id} completed, score={self.result.score}/{self.result.max_score} ({self.result.severity.value})"
        )
        self.phase = Phase.COLLECTING_CONTACT
        self.contact_step = ContactStep.NAME
        self.prompt = CONTACT_PROMPTS[ContactStep.NAME]

    async def submit_contact(self, value: str) -> StepOutcome:
        """
        Validate and store the value for the current contact step

        A valid phone number triggers lead submission.
        """
        if self.phase is not Phase.COLLECTING_CONTACT or self.contact_step is None:
            raise InvalidTransitionError("Contact details are not being collected")
        if self._in_flight:
            return StepOutcome(accepted=False, reason="busy")

        step = self.contact_step
        error = CONTACT_VALIDATORS[step](value)
        if error:
            # Replaces any previous retry prompt
            self.prompt = error
            return StepOutcome(accepted=False, reason="invalid_contact", message=error)

        setattr(self.contact, step.value, value.strip())
        next_step = NEXT_CONTACT_STEP[step]
        if next_step is not None:
            self.contact_step = next_step
            self.prompt = CONTACT_PROMPTS[next_step]
            return StepOutcome(accepted=True)

        return await self.submit_lead()

    async def submit_lead(self) -> StepOutcome:
        """
        Send the lead to the hosted backend

        Also serves as the manual retry after a failed submission; answers and
        contact details are kept either way.
        """
        if self.phase is not Phase.COLLECTING_CONTACT or not self.contact.is_complete():
            raise InvalidTransitionError("Lead can only be submitted once contact details are complete")
        if self._in_flight:
            return StepOutcome(accepted=False, reason="busy")

        self._in_flight = True
        try:
            lead = self.adapter.build_lead(self.quiz, self.result, self.contact)
            self.lead_response = await self.adapter.submit_lead(lead)
        except LeadSubmissionError as e:
            logger.error(f"Session {self.session_id}: lead submission failed: {e.message}")
            self.submission_error = e.message
            if not e.retryable:
                # Resubmitting cannot help; show the reason instead of a retry prompt
                self.prompt = e.message
                return StepOutcome(accepted=False, reason="submission_rejected", message=e.message)
            self.prompt = SUBMIT_FAILED_MESSAGE
            return StepOutcome(accepted=False, reason="submission_failed", message=e.message)
        finally:
            self._in_flight = False

        self.phase = Phase.SUBMITTED
        self.contact_step = None
        self.submission_error = None
        self.prompt = SUBMITTED_MESSAGE
        return StepOutcome(accepted=True, message=SUBMITTED_MESSAGE)

    def retake(self) -> "AssessmentEngine":
        """
        Start a brand-new session for the same quiz (or triage)

        The current session is left untouched; callers replace it.
        """
        return AssessmentEngine(
            entry_type=self.entry_type,
            adapter=self.adapter,
            quiz=self._custom_quiz,
            clinic_name=self.clinic_name,
        )

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Session {self.session_id}: background task failed: {exc}")

    async def wait_for_background(self):
        """Wait for pending fire-and-forget work (used on shutdown and in tests)"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    def current_question(self):
        if self.phase is Phase.IN_PROGRESS and self.quiz is not None:
            return self.quiz.questions[self.current_question_index]
        return None

    def view(self) -> SessionView:
        return SessionView(
            session_id=self.session_id,
            quiz_type=self.quiz.id if self.quiz is not None else self.entry_type,
            entry_type=self.entry_type,
            phase=self.phase,
            current_question_index=self.current_question_index,
            total_questions=len(self.quiz.questions) if self.quiz is not None else 0,
            current_question=self.current_question(),
            triage=self.triage if self.phase is Phase.TRIAGE else None,
            answers=list(self.answers),
            contact_step=self.contact_step,
            prompt=self.prompt,
            result=self.result,
            submission_error=self.submission_error,
            is_submitting=self.is_submitting,
        )
