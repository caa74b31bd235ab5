"""
Assessment service module
"""

from app.services.assessment.engine import (
    AssessmentEngine,
    InvalidTransitionError,
)
from app.services.assessment.validation import (
    validate_name,
    validate_email,
    validate_phone,
    is_valid_name,
    is_valid_email,
    is_valid_phone,
)

__all__ = [
    "AssessmentEngine",
    "InvalidTransitionError",
    "validate_name",
    "validate_email",
    "validate_phone",
    "is_valid_name",
    "is_valid_email",
    "is_valid_phone",
]
