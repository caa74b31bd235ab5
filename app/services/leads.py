"""
Lead submission adapter

Packages a completed assessment plus contact details into a lead record and
hands it to the hosted backend. Only the backend call is retried; no
deduplication is attempted, so every accepted submission creates a lead.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import get_lead_submit_attempts, get_lead_retry_delay
from app.database.backend import BackendError, HostedBackendClient
from app.models.schemas import ContactInfo, Lead, Quiz, QuizResult, RoutingContext
from app.services.utils import convert_datetime_to_iso, retry_async

logger = logging.getLogger(__name__)

SUBMIT_LEAD_FUNCTION = "submit-lead"
LEADS_TABLE = "quiz_leads"
NO_DOCTOR_MESSAGE = "Unable to save results - no doctor associated with this quiz"


def lead_quiz_type(quiz: Quiz) -> str:
    """Quiz identifier as stored on lead records"""
    return f"custom_{quiz.id}" if quiz.is_custom else quiz.id.upper()


class LeadSubmissionError(Exception):
    """Lead could not be stored; message is the backend's, surfaced verbatim"""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class LeadSubmissionAdapter:
    """
    Sends leads and partial submissions to the hosted backend

    Args:
        backend: Hosted backend client
        routing: Doctor routing and attribution for this session
        attempts: Attempts per submission (default from LEAD_SUBMIT_ATTEMPTS)
        delay: Initial retry delay in seconds (default from LEAD_RETRY_DELAY_SECONDS)
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        backend: HostedBackendClient,
        routing: RoutingContext,
        attempts: Optional[int] = None,
        delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.backend = backend
        self.routing = routing
        self.attempts = attempts if attempts is not None else get_lead_submit_attempts()
        self.delay = delay if delay is not None else get_lead_retry_delay()
        self._sleep = sleep

    def build_lead(self, quiz: Quiz, result: QuizResult, contact: ContactInfo) -> Lead:
        """
        Build the lead record for a completed assessment

        Raises:
            LeadSubmissionError: no doctor is associated with the session (not retryable)
        """
        doctor_id = self.routing.doctor_id
        if not doctor_id:
            raise LeadSubmissionError(NO_DOCTOR_MESSAGE, retryable=False)

        return Lead(
            name=(contact.name or "").strip(),
            email=(contact.email or "").strip(),
            phone=(contact.phone or "").strip(),
            quiz_type=lead_quiz_type(quiz),
            custom_quiz_id=quiz.id if quiz.is_custom else None,
            score=result.score,
            answers=result.detailed_answers,
            lead_source=self.routing.source,
            doctor_id=doctor_id,
            physician_id=self.routing.physician_id or doctor_id,
        )

    async def submit_lead(self, lead: Lead) -> Dict[str, Any]:
        """
        Submit a lead through the 'submit-lead' function with bounded retries

        Returns:
            The function's success payload

        Raises:
            LeadSubmissionError: all attempts failed
        """
        payload = convert_datetime_to_iso(lead.model_dump(), ["submitted_at"])
        logger.info(f"Submitting lead for doctor {lead.doctor_id}: quiz={lead.quiz_type}, score={lead.score}")

        try:
            response = await retry_async(
                lambda: self.backend.invoke(SUBMIT_LEAD_FUNCTION, payload),
                attempts=self.attempts,
                delay=self.delay,
                retry_on=(BackendError,),
                sleep=self._sleep,
                description="Lead submission",
            )
        except BackendError as e:
            raise LeadSubmissionError(e.message) from e

        logger.info(f"Lead saved successfully for doctor {lead.doctor_id}")
        return response

    async def submit_partial(self, quiz_type: str) -> bool:
        """
        Record a placeholder lead after the first answer (best effort)

        Failures are logged and swallowed; never raises.

        Returns:
            True if the backend accepted the record
        """
        doctor_id = self.routing.doctor_id
        row = {
            "doctor_id": doctor_id,
            "physician_id": self.routing.physician_id or doctor_id,
            "quiz_type": quiz_type,
            "name": "Partial Submission",
            "score": 0,
            "is_partial": True,
            "lead_source": self.routing.source,
            "submitted_at": datetime.now().isoformat(),
        }
        try:
            await retry_async(
                lambda: self.backend.insert(LEADS_TABLE, row),
                attempts=self.attempts,
                delay=self.delay,
                retry_on=(BackendError,),
                sleep=self._sleep,
                description="Partial submission",
            )
        except BackendError as e:
            logger.error(f"Error capturing partial submission: {e}")
            return False
        return True
