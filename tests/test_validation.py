"""
Contact validation tests
"""
import pytest

from app.services.assessment import (
    is_valid_email,
    is_valid_name,
    is_valid_phone,
    validate_email,
    validate_name,
    validate_phone,
)


@pytest.mark.parametrize("name,valid", [
    ("Jo", True),
    ("  Jane Doe  ", True),
    ("J", False),
    (" J ", False),
    ("", False),
    (None, False),
])
def test_name(name, valid):
    assert is_valid_name(name) is valid


def test_name_messages():
    assert validate_name("") == "Please enter your name"
    assert validate_name("J") == "Please enter a valid name (at least 2 characters)"


@pytest.mark.parametrize("email,valid", [
    ("jane@example.com", True),
    ("a@b.co", True),
    (" jane@example.com ", True),
    ("jane@example", False),
    ("jane example@x.com", False),
    ("@example.com", False),
    ("", False),
])
def test_email(email, valid):
    assert is_valid_email(email) is valid


def test_email_message_quotes_value():
    assert validate_email("nope").startswith('"nope" doesn\'t seem to be a valid email address')


@pytest.mark.parametrize("phone,valid", [
    ("(555) 123-4567", True),
    ("555-123-4567", True),
    ("555.123.4567", True),
    ("555 123 4567", True),
    ("5551234567", True),
    ("555-1234", False),
    ("+1 555 123 4567", False),
    ("555-123-45678", False),
    ("", False),
])
def test_phone(phone, valid):
    assert is_valid_phone(phone) is valid


def test_phone_message_shows_format():
    assert "123-456-7890 or (123) 456-7890" in validate_phone("12345")
