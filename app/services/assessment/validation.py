"""
Contact detail validation

Each validator returns None when the value is acceptable, otherwise the
corrective message shown when re-prompting the same step.
"""
import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# (123) 456-7890, 123-456-7890, 123.456.7890, 1234567890
PHONE_PATTERN = re.compile(r"^\(?([0-9]{3})\)?[-. ]?([0-9]{3})[-. ]?([0-9]{4})$")

NAME_MIN_LENGTH = 2


def validate_name(value: Optional[str]) -> Optional[str]:
    name = (value or "").strip()
    if not name:
        return "Please enter your name"
    if len(name) < NAME_MIN_LENGTH:
        return "Please enter a valid name (at least 2 characters)"
    return None


def validate_email(value: Optional[str]) -> Optional[str]:
    email = (value or "").strip()
    if not email:
        return "I need your email address to proceed. Please enter a valid email address."
    if not EMAIL_PATTERN.match(email):
        return f'"{email}" doesn\'t seem to be a valid email address. Please enter a valid email address (e.g., name@example.com)'
    return None


def validate_phone(value: Optional[str]) -> Optional[str]:
    phone = (value or "").strip()
    if not phone:
        return "I need your phone number to proceed. Please enter a valid phone number."
    if not PHONE_PATTERN.match(phone):
        return f'"{phone}" doesn\'t seem to be a valid phone number. Please enter a number in the format: 123-456-7890 or (123) 456-7890'
    return None


def is_valid_name(value: Optional[str]) -> bool:
    return validate_name(value) is None


def is_valid_email(value: Optional[str]) -> bool:
    return validate_email(value) is None


def is_valid_phone(value: Optional[str]) -> bool:
    return validate_phone(value) is None
