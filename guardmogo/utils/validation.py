"""
Input validation shared by every entry point that writes or searches reports.

This module provides:
- MoMo number normalization (one rule for writes and reads)
- Carrier prefix checks for the Ghanaian networks
- Length rules for fraud type, description, carrier name and comments
- Sign-up field checks (email, names, password strength)
"""

import re
from typing import Dict, Optional, Tuple

CARRIER_PREFIXES: Dict[str, Tuple[str, ...]] = {
    "MTN": ("024", "054", "055", "059", "053"),
    "AirtelTigo": ("026", "056", "027", "057"),
    "Telecel": ("020", "050"),
}

OTHER_CARRIER = "Other"

FRAUD_TYPE_MIN_LENGTH = 3
FRAUD_TYPE_MAX_LENGTH = 50
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000
CARRIER_NAME_MIN_LENGTH = 2
COMMENT_MAX_LENGTH = 1000

_WHITESPACE = re.compile(r"\s+")
_COUNTRY_CODE = re.compile(r"^\+233")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME = re.compile(r"^[A-Za-z\s'-]+$")
_PASSWORD = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


class ValidationError(Exception):
    """Raised when one or more input fields fail validation."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.errors.items()))


def normalize_number(number: str) -> str:
    """Rewrite a MoMo number to its canonical local form.

    All whitespace is removed and a leading ``+233`` country code becomes ``0``.
    """
    compact = _WHITESPACE.sub("", number or "")
    return _COUNTRY_CODE.sub("0", compact, count=1)


def validate_number(number: str, carrier: str = OTHER_CARRIER) -> Optional[str]:
    """Return an error message for ``number``, or None when it is valid."""
    if not (number or "").strip():
        return "Please enter a MoMo number"

    normalized = normalize_number(number)

    if not normalized.isdigit():
        return "MoMo number should only contain digits"

    if len(normalized) != 10:
        return "MoMo number must be 10 digits (e.g., 0244123456)"

    if not normalized.startswith("0"):
        return "MoMo number must start with 0"

    prefixes = CARRIER_PREFIXES.get(carrier)
    if carrier != OTHER_CARRIER and prefixes and normalized[:3] not in prefixes:
        return (
            f"This number doesn't match {carrier} format. "
            f"{carrier} numbers start with: {', '.join(prefixes)}"
        )

    return None


def validate_fraud_type(fraud_type: str) -> Optional[str]:
    value = (fraud_type or "").strip()
    if not value:
        return "Please enter a fraud type"
    if len(value) < FRAUD_TYPE_MIN_LENGTH:
        return f"Fraud type must be at least {FRAUD_TYPE_MIN_LENGTH} characters"
    if len(value) > FRAUD_TYPE_MAX_LENGTH:
        return f"Fraud type must be at most {FRAUD_TYPE_MAX_LENGTH} characters"
    return None


def validate_description(description: str) -> Optional[str]:
    value = (description or "").strip()
    if not value:
        return "Please enter a description"
    if len(value) < DESCRIPTION_MIN_LENGTH:
        return f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
    if len(value) > DESCRIPTION_MAX_LENGTH:
        return f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters"
    return None


def validate_custom_carrier(carrier: str, custom_carrier: str) -> Optional[str]:
    if carrier != OTHER_CARRIER:
        return None
    value = (custom_carrier or "").strip()
    if not value:
        return "Please specify the carrier name"
    if len(value) < CARRIER_NAME_MIN_LENGTH:
        return f"Carrier name must be at least {CARRIER_NAME_MIN_LENGTH} characters"
    return None


def validate_report_fields(
    number: str,
    carrier: str,
    fraud_type: str,
    description: str,
    custom_carrier: str = "",
) -> Dict[str, str]:
    """Validate a report submission and collect every failing field."""
    checks = {
        "number": validate_number(number, carrier),
        "fraud_type": validate_fraud_type(fraud_type),
        "description": validate_description(description),
        "custom_carrier": validate_custom_carrier(carrier, custom_carrier),
    }
    return {field: message for field, message in checks.items() if message}


def resolve_carrier(carrier: str, custom_carrier: str = "") -> str:
    """Carrier name as stored: the custom name when "Other" was chosen."""
    if carrier == OTHER_CARRIER:
        return (custom_carrier or "").strip()
    return carrier


def validate_comment_text(text: str) -> Optional[str]:
    value = (text or "").strip()
    if not value:
        return "Please enter a comment"
    if len(value) > COMMENT_MAX_LENGTH:
        return f"Comment must be at most {COMMENT_MAX_LENGTH} characters"
    return None


def validate_email(email: str) -> bool:
    return bool(_EMAIL.match(email or ""))


def validate_name(name: str) -> bool:
    # Letters, spaces, hyphens and apostrophes only
    return bool(_NAME.match(name or "")) and len(name.strip()) >= 2


def validate_password(password: str) -> bool:
    # At least 8 characters with upper, lower, digit and one of @$!%*?&
    return bool(_PASSWORD.match(password or ""))


def validate_signup_fields(email: str, password: str, first_name: str, last_name: str) -> Dict[str, str]:
    """Validate sign-up input and collect every failing field."""
    errors = {}
    if not validate_email(email):
        errors["email"] = "Please enter a valid email address"
    if not (first_name or "").strip():
        errors["first_name"] = "Please enter your first name"
    elif not validate_name(first_name):
        errors["first_name"] = "First name must contain only letters and be at least 2 characters long"
    if not (last_name or "").strip():
        errors["last_name"] = "Please enter your last name"
    elif not validate_name(last_name):
        errors["last_name"] = "Last name must contain only letters and be at least 2 characters long"
    if not (password or "").strip():
        errors["password"] = "Please enter a password"
    elif not validate_password(password):
        errors["password"] = (
            "Password must be at least 8 characters with uppercase, lowercase, "
            "number, and special character (@$!%*?&)"
        )
    return errors
