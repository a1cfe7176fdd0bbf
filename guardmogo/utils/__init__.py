# Utilities module

from .auth_messages import (
    AuthErrorKind,
    classify_auth_error,
    message_for,
)
from .validation import (
    CARRIER_PREFIXES,
    ValidationError,
    normalize_number,
    resolve_carrier,
    validate_comment_text,
    validate_number,
    validate_report_fields,
    validate_signup_fields,
)

__all__ = [
    "AuthErrorKind",
    "CARRIER_PREFIXES",
    "ValidationError",
    "classify_auth_error",
    "message_for",
    "normalize_number",
    "resolve_carrier",
    "validate_comment_text",
    "validate_number",
    "validate_report_fields",
    "validate_signup_fields",
]
