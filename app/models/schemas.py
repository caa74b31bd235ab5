"""
Assessment data models

- Quiz definitions are static and immutable (frozen models)
- Session-facing models are plain request/response shapes for the API
- Pydantic provides automatic validation
"""
from enum import Enum
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Severity(str, Enum):
    """Ordered severity bands: normal < mild < moderate < severe"""
    NORMAL   = "normal"
    MILD     = "mild"
    MODERATE = "moderate"
    SEVERE   = "severe"


class Phase(str, Enum):
    TRIAGE             = "triage"
    IN_PROGRESS        = "in_progress"
    COMPLETED          = "completed"
    COLLECTING_CONTACT = "collecting_contact"
    SUBMITTED          = "submitted"


class ContactStep(str, Enum):
    NAME  = "name"
    EMAIL = "email"
    PHONE = "phone"


# =============================================================================
# Question bank
# =============================================================================

class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str  = Field(..., description="Label shown to the user")
    value: int = Field(..., description="Points this option contributes to the total score")


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str              = Field(..., description="Question identifier within its quiz")
    text: str            = Field(..., description="Prompt shown to the user")
    options: List[Option] = Field(..., min_length=1, description="Answer options in canonical order")

    @property
    def max_value(self) -> int:
        return max(option.value for option in self.options)


class SeverityBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity  = Field(..., description="Band reached when the threshold is met")
    threshold: float    = Field(..., description="Minimum score (raw, or percent of max_score) for this band")
    interpretation: str = Field(..., description="Display text for this band, may contain {clinic_name}")


class ScoringRule(BaseModel):
    """
    Severity banding configuration for one quiz

    Bands must be listed in ascending threshold order. A score below the
    lowest threshold falls into the baseline 'normal' band.
    """
    model_config = ConfigDict(frozen=True)

    basis: Literal["raw", "percent"] = Field("raw", description="Compare raw score or percent of max_score")
    bands: List[SeverityBand]        = Field(default_factory=list, description="Ascending thresholds")
    baseline_interpretation: str     = Field(..., description="Interpretation below the lowest threshold")
    summary_template: str            = Field("Score: {score}/{max_score} - {severity_label}", description="One-line summary format")
    severity_labels: Dict[str, str]  = Field(default_factory=dict, description="Summary label overrides per severity")

    @model_validator(mode="after")
    def _check_ascending(self):
        thresholds = [band.threshold for band in self.bands]
        if thresholds != sorted(thresholds):
            raise ValueError("Severity band thresholds must be ascending")
        return self


class Quiz(BaseModel):
    """
    Quiz definition

    Invariant: max_score == sum of each question's highest option value * score_multiplier
    """
    model_config = ConfigDict(frozen=True)

    id: str                      = Field(..., description="Stable identifier (e.g. 'NOSE', 'SNOT12')")
    title: str                   = Field(..., description="Display title")
    description: str             = Field("", description="Display description")
    questions: List[Question]    = Field(..., min_length=1, description="Questions in the instrument's canonical order")
    max_score: int               = Field(..., ge=0, description="Upper bound of the score")
    score_multiplier: int        = Field(1, ge=1, description="Scale factor applied to the summed option values")
    scoring: ScoringRule         = Field(..., description="Severity thresholds and interpretations")
    is_custom: bool              = Field(False, description="Doctor-authored quiz loaded from the hosted backend")
    doctor_id: Optional[str]     = Field(None, description="Owning doctor for custom quizzes")

    @model_validator(mode="after")
    def _check_max_score(self):
        expected = sum(question.max_value for question in self.questions) * self.score_multiplier
        if expected != self.max_score:
            raise ValueError(
                f"Quiz {self.id}: max_score {self.max_score} does not match option values ({expected})"
            )
        return self


class TriageOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str      = Field(..., description="Branch label shown to the user")
    quiz_type: str = Field(..., description="Quiz administered when this branch is chosen")


class Triage(BaseModel):
    """Single branching question that selects which quiz to administer"""
    model_config = ConfigDict(frozen=True)

    id: str                     = Field(..., description="Triage identifier (e.g. 'NOSE_SNOT')")
    title: str                  = Field(..., description="Display title")
    description: str            = Field("", description="Display description")
    text: str                   = Field(..., description="Branching question")
    options: List[TriageOption] = Field(..., min_length=1, description="Branches")


class QuizSummary(BaseModel):
    id: str
    title: str
    description: str
    question_count: int
    max_score: int
    is_triage: bool = False


# =============================================================================
# Answers, results, leads
# =============================================================================

class Answer(BaseModel):
    question_index: int = Field(..., ge=0, description="Index of the answered question")
    answer_index: int   = Field(..., ge=0, description="Index of the chosen option")
    answer: str         = Field(..., description="Literal text of the chosen option")


class QuizResult(BaseModel):
    score: int                                  = Field(..., description="Total score, 0 <= score <= max_score")
    max_score: int                              = Field(..., description="Quiz maximum score")
    severity: Severity                          = Field(..., description="Severity band")
    interpretation: str                         = Field(..., description="Display text for the severity band")
    summary: str                                = Field(..., description="One-line score summary")
    detailed_answers: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="q<N> -> question, answer, score")


class ContactInfo(BaseModel):
    name: Optional[str]  = Field(None, description="Full name")
    email: Optional[str] = Field(None, description="Email address")
    phone: Optional[str] = Field(None, description="Phone number")

    def is_complete(self) -> bool:
        return bool(self.name and self.email and self.phone)


class RoutingContext(BaseModel):
    """
    Doctor routing and attribution carried from the share URL

    Passed explicitly into the assessment engine and lead adapter.
    """
    doctor_id: Optional[str]      = Field(None, description="Doctor profile receiving the lead")
    physician_id: Optional[str]   = Field(None, description="Clinic physician, defaults to doctor_id on the lead")
    source: str                   = Field("website", description="Lead source (utm_source)")
    campaign: str                 = Field("default", description="Campaign (utm_campaign)")
    medium: str                   = Field("web", description="Medium (utm_medium)")
    share_key: Optional[str]      = Field(None, description="Share key used to look up the doctor")
    custom_quiz_id: Optional[str] = Field(None, description="Custom quiz identifier")
    clinic_name: Optional[str]    = Field(None, description="Clinic display name used in interpretations")


class Lead(BaseModel):
    """
    Lead record sent to the hosted backend

    The backend owns storage, deduplication and notification fan-out.
    """
    name: str                        = Field(..., description="Contact name")
    email: str                       = Field(..., description="Contact email")
    phone: str                       = Field(..., description="Contact phone")
    quiz_type: str                   = Field(..., description="Quiz identifier, 'custom_<id>' for custom quizzes")
    custom_quiz_id: Optional[str]    = Field(None, description="Custom quiz identifier")
    score: int                       = Field(..., description="Total score")
    answers: Dict[str, Any]          = Field(default_factory=dict, description="Detailed answers")
    lead_source: str                 = Field(..., description="Attribution source")
    lead_status: str                 = Field("NEW", description="Initial lead status")
    doctor_id: str                   = Field(..., description="Doctor profile receiving the lead")
    physician_id: str                = Field(..., description="Clinic physician")
    incident_source: str             = Field("default", description="Incident grouping")
    submitted_at: datetime           = Field(default_factory=datetime.now, description="Submission timestamp")


# =============================================================================
# API request/response shapes
# =============================================================================

class SessionCreate(BaseModel):
    quiz_type: str                = Field(..., description="Quiz or triage identifier, or 'custom'")
    doctor_id: Optional[str]      = Field(None, description="Doctor profile receiving the lead")
    physician_id: Optional[str]   = Field(None, description="Clinic physician")
    source: Optional[str]         = Field(None, description="Lead source")
    campaign: Optional[str]       = Field(None, description="Campaign")
    medium: Optional[str]         = Field(None, description="Medium")
    share_key: Optional[str]      = Field(None, description="Share key")
    custom_quiz_id: Optional[str] = Field(None, description="Custom quiz identifier")
    clinic_name: Optional[str]    = Field(None, description="Clinic display name")


class TriageChoice(BaseModel):
    option_index: int = Field(..., ge=0, description="Chosen triage branch")


class AnswerSubmission(BaseModel):
    question_index: int = Field(..., ge=0, description="Question the client is answering")
    answer_index: int   = Field(..., ge=0, description="Chosen option")


class ContactSubmission(BaseModel):
    value: str = Field(..., description="Value for the current contact step")


class ScoreRequest(BaseModel):
    answer_indices: List[int] = Field(..., description="Chosen option index per question, in order")
    clinic_name: Optional[str] = Field(None, description="Clinic display name")


class StepOutcome(BaseModel):
    accepted: bool          = Field(..., description="Whether the action changed the session")
    reason: Optional[str]   = Field(None, description="Machine-readable rejection reason")
    message: Optional[str]  = Field(None, description="User-facing message")


class SessionView(BaseModel):
    session_id: str
    quiz_type: str
    entry_type: str
    phase: Phase
    current_question_index: int
    total_questions: int
    current_question: Optional[Question] = None
    triage: Optional[Triage]             = None
    answers: List[Answer]                = Field(default_factory=list)
    contact_step: Optional[ContactStep]  = None
    prompt: Optional[str]                = None
    result: Optional[QuizResult]         = None
    submission_error: Optional[str]      = None
    is_submitting: bool                  = False


class SessionStepResponse(BaseModel):
    outcome: StepOutcome
    session: SessionView


class ShareLinks(BaseModel):
    quiz_type: str
    share_url: str
    embed_url: str
    embed_code: str
