"""User-facing messages for identity provider errors."""

from enum import Enum
from typing import Optional


class AuthErrorKind(str, Enum):
    """Provider-independent authentication failure categories."""

    DUPLICATE_ACCOUNT = "DuplicateAccount"
    WEAK_PASSWORD = "WeakPassword"
    INVALID_EMAIL = "InvalidEmail"
    NOT_FOUND = "NotFound"
    WRONG_PASSWORD = "WrongPassword"
    INVALID_CREDENTIALS = "InvalidCredentials"
    TOO_MANY_ATTEMPTS = "TooManyAttempts"
    ACCOUNT_DISABLED = "AccountDisabled"
    EMAIL_NOT_CONFIRMED = "EmailNotConfirmed"
    SESSION_EXPIRED = "SessionExpired"
    NETWORK = "NetworkError"
    NOT_ALLOWED = "OperationNotAllowed"
    MISSING_FIELDS = "MissingFields"
    UNKNOWN = "Unknown"


# Supabase Auth error codes -> categories
PROVIDER_CODES = {
    "user_already_exists": AuthErrorKind.DUPLICATE_ACCOUNT,
    "email_exists": AuthErrorKind.DUPLICATE_ACCOUNT,
    "weak_password": AuthErrorKind.WEAK_PASSWORD,
    "email_address_invalid": AuthErrorKind.INVALID_EMAIL,
    "validation_failed": AuthErrorKind.INVALID_EMAIL,
    "user_not_found": AuthErrorKind.NOT_FOUND,
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "over_request_rate_limit": AuthErrorKind.TOO_MANY_ATTEMPTS,
    "over_email_send_rate_limit": AuthErrorKind.TOO_MANY_ATTEMPTS,
    "user_banned": AuthErrorKind.ACCOUNT_DISABLED,
    "email_not_confirmed": AuthErrorKind.EMAIL_NOT_CONFIRMED,
    "session_not_found": AuthErrorKind.SESSION_EXPIRED,
    "session_expired": AuthErrorKind.SESSION_EXPIRED,
    "bad_jwt": AuthErrorKind.SESSION_EXPIRED,
    "email_provider_disabled": AuthErrorKind.NOT_ALLOWED,
    "provider_disabled": AuthErrorKind.NOT_ALLOWED,
    "signup_disabled": AuthErrorKind.NOT_ALLOWED,
}

AUTH_ERROR_MESSAGES = {
    AuthErrorKind.DUPLICATE_ACCOUNT: "An account with this email already exists. Please sign in instead.",
    AuthErrorKind.WEAK_PASSWORD: "Password is too weak. Please use a stronger password.",
    AuthErrorKind.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorKind.NOT_FOUND: "No account found with this email address. Please check your email or sign up.",
    AuthErrorKind.WRONG_PASSWORD: 'Incorrect password. Please try again or use "Forgot password?" to reset it.',
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid email or password. Please check your credentials and try again.",
    AuthErrorKind.TOO_MANY_ATTEMPTS: "Too many failed attempts. Please try again later.",
    AuthErrorKind.ACCOUNT_DISABLED: "This account has been disabled. Please contact support.",
    AuthErrorKind.EMAIL_NOT_CONFIRMED: "Please confirm your email address before signing in.",
    AuthErrorKind.SESSION_EXPIRED: "Your session has expired. Please sign in again.",
    AuthErrorKind.NETWORK: "Network error. Please check your internet connection and try again.",
    AuthErrorKind.NOT_ALLOWED: "This operation is not allowed. Please contact support.",
    AuthErrorKind.MISSING_FIELDS: "Please enter your email address and password.",
}

GENERIC_AUTH_MESSAGE = "An error occurred. Please try again."


def classify_auth_error(code: Optional[str], message: Optional[str] = None) -> AuthErrorKind:
    """Map a provider error code (or, failing that, its message) to a category."""
    if code and code in PROVIDER_CODES:
        return PROVIDER_CODES[code]

    text = (message or "").lower()
    if "already registered" in text or "already exists" in text:
        return AuthErrorKind.DUPLICATE_ACCOUNT
    if "password" in text and "wrong" in text:
        return AuthErrorKind.WRONG_PASSWORD
    if "invalid login credentials" in text:
        return AuthErrorKind.INVALID_CREDENTIALS
    if "user not found" in text or "no user" in text:
        return AuthErrorKind.NOT_FOUND
    if "rate limit" in text:
        return AuthErrorKind.TOO_MANY_ATTEMPTS
    return AuthErrorKind.UNKNOWN


def message_for(kind: AuthErrorKind) -> str:
    return AUTH_ERROR_MESSAGES.get(kind, GENERIC_AUTH_MESSAGE)
