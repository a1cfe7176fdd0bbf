"""
Tests for identity provider error classification.
"""

import pytest

from guardmogo.utils.auth_messages import (
    AUTH_ERROR_MESSAGES,
    GENERIC_AUTH_MESSAGE,
    AuthErrorKind,
    classify_auth_error,
    message_for,
)


class TestClassifyAuthError:

    @pytest.mark.parametrize("code,kind", [
        ("user_already_exists", AuthErrorKind.DUPLICATE_ACCOUNT),
        ("email_exists", AuthErrorKind.DUPLICATE_ACCOUNT),
        ("weak_password", AuthErrorKind.WEAK_PASSWORD),
        ("email_address_invalid", AuthErrorKind.INVALID_EMAIL),
        ("user_not_found", AuthErrorKind.NOT_FOUND),
        ("invalid_credentials", AuthErrorKind.INVALID_CREDENTIALS),
        ("over_request_rate_limit", AuthErrorKind.TOO_MANY_ATTEMPTS),
        ("user_banned", AuthErrorKind.ACCOUNT_DISABLED),
        ("session_expired", AuthErrorKind.SESSION_EXPIRED),
        ("signup_disabled", AuthErrorKind.NOT_ALLOWED),
    ])
    def test_known_codes(self, code, kind):
        assert classify_auth_error(code) == kind

    def test_falls_back_to_message_text(self):
        assert classify_auth_error(None, "User already registered") == AuthErrorKind.DUPLICATE_ACCOUNT
        assert classify_auth_error(None, "Invalid login credentials") == AuthErrorKind.INVALID_CREDENTIALS
        assert classify_auth_error("unexpected_code", "Email rate limit exceeded") == AuthErrorKind.TOO_MANY_ATTEMPTS

    def test_unknown(self):
        assert classify_auth_error(None, "teapot") == AuthErrorKind.UNKNOWN
        assert classify_auth_error(None) == AuthErrorKind.UNKNOWN


class TestMessages:

    def test_every_kind_but_unknown_has_a_message(self):
        for kind in AuthErrorKind:
            if kind is AuthErrorKind.UNKNOWN:
                continue
            assert kind in AUTH_ERROR_MESSAGES

    def test_unknown_gets_generic_message(self):
        assert message_for(AuthErrorKind.UNKNOWN) == GENERIC_AUTH_MESSAGE

    def test_duplicate_account_message(self):
        assert "already exists" in message_for(AuthErrorKind.DUPLICATE_ACCOUNT)
