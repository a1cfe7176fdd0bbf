"""
Tests for the shared input validation rules.
"""

import pytest

from guardmogo.utils.validation import (
    CARRIER_PREFIXES,
    ValidationError,
    normalize_number,
    resolve_carrier,
    validate_comment_text,
    validate_custom_carrier,
    validate_description,
    validate_email,
    validate_fraud_type,
    validate_name,
    validate_number,
    validate_password,
    validate_report_fields,
    validate_signup_fields,
)


class TestNormalizeNumber:
    """Tests for MoMo number normalization."""

    @pytest.mark.parametrize("raw", [
        "0244123456",
        "024 412 3456",
        " 0244 123 456 ",
        "+233244123456",
        "+233 24 412 3456",
        "+233\t244\n123456",
    ])
    def test_equivalent_forms_normalize_to_the_same_key(self, raw):
        assert normalize_number(raw) == "0244123456"

    def test_country_code_only_replaced_at_start(self):
        assert normalize_number("0244233123") == "0244233123"

    def test_normalization_is_idempotent(self):
        once = normalize_number("+233 20 555 0101")
        assert normalize_number(once) == once

    def test_empty_input(self):
        assert normalize_number("") == ""
        assert normalize_number(None) == ""


class TestValidateNumber:
    """Tests for MoMo number format and carrier prefix checks."""

    def test_valid_mtn_number(self):
        assert validate_number("0244123456", "MTN") is None

    def test_international_form_accepted(self):
        assert validate_number("+233 24 412 3456", "MTN") is None

    @pytest.mark.parametrize("carrier", list(CARRIER_PREFIXES))
    def test_every_listed_prefix_is_accepted(self, carrier):
        for prefix in CARRIER_PREFIXES[carrier]:
            assert validate_number(f"{prefix}1234567", carrier) is None

    def test_prefix_mismatch_names_the_carrier(self):
        error = validate_number("0204123456", "MTN")
        assert error is not None
        assert "MTN" in error
        assert "024" in error

    def test_other_carrier_skips_prefix_check(self):
        assert validate_number("0304123456", "Other") is None

    def test_empty_number(self):
        assert validate_number("   ", "MTN") == "Please enter a MoMo number"

    def test_non_digits_rejected(self):
        assert validate_number("02441234ab", "Other") == "MoMo number should only contain digits"

    def test_wrong_length_rejected(self):
        assert "10 digits" in validate_number("024412345", "Other")
        assert "10 digits" in validate_number("02441234567", "Other")

    def test_must_start_with_zero(self):
        assert validate_number("1244123456", "Other") == "MoMo number must start with 0"


class TestReportFieldRules:
    """Tests for fraud type, description and carrier name rules."""

    def test_fraud_type_bounds(self):
        assert validate_fraud_type("ab") is not None
        assert validate_fraud_type("abc") is None
        assert validate_fraud_type("x" * 50) is None
        assert validate_fraud_type("x" * 51) is not None

    def test_fraud_type_is_trimmed_before_checking(self):
        assert validate_fraud_type("  ab  ") is not None

    def test_description_bounds(self):
        assert validate_description("x" * 9) is not None
        assert validate_description("x" * 10) is None
        assert validate_description("x" * 1000) is None
        assert validate_description("x" * 1001) is not None

    def test_description_whitespace_does_not_count(self):
        assert validate_description("   short   ") == "Description must be at least 10 characters"

    def test_custom_carrier_required_for_other(self):
        assert validate_custom_carrier("Other", "") == "Please specify the carrier name"
        assert validate_custom_carrier("Other", "G") is not None
        assert validate_custom_carrier("Other", "Glo") is None

    def test_custom_carrier_ignored_for_listed_carriers(self):
        assert validate_custom_carrier("MTN", "") is None

    def test_all_failing_fields_are_reported_together(self):
        errors = validate_report_fields("123", "Other", "x", "short", "")
        assert set(errors) == {"number", "fraud_type", "description", "custom_carrier"}

    def test_valid_report_has_no_errors(self):
        errors = validate_report_fields(
            "024 412 3456", "MTN", "Fake reversal", "Caller asked me to refund money they never sent."
        )
        assert errors == {}

    def test_resolve_carrier(self):
        assert resolve_carrier("MTN", "ignored") == "MTN"
        assert resolve_carrier("Other", "  Glo ") == "Glo"


class TestCommentText:

    def test_comment_bounds(self):
        assert validate_comment_text("") == "Please enter a comment"
        assert validate_comment_text("   ") == "Please enter a comment"
        assert validate_comment_text("x") is None
        assert validate_comment_text("x" * 1000) is None
        assert validate_comment_text("x" * 1001) is not None


class TestSignupRules:
    """Tests for sign-up field checks."""

    def test_email(self):
        assert validate_email("ama@example.com")
        assert not validate_email("ama@example")
        assert not validate_email("ama example.com")

    def test_names(self):
        assert validate_name("Ama")
        assert validate_name("O'Neil")
        assert validate_name("Mary-Jane")
        assert not validate_name("A")
        assert not validate_name("Kofi3")

    def test_password_strength(self):
        assert validate_password("Passw0rd!")
        assert not validate_password("password")
        assert not validate_password("Passw0rd")
        assert not validate_password("Pa0!")

    def test_valid_signup(self):
        assert validate_signup_fields("ama@example.com", "Passw0rd!", "Ama", "Mensah") == {}

    def test_signup_collects_every_error(self):
        errors = validate_signup_fields("bad", "weak", "", "M1")
        assert set(errors) == {"email", "password", "first_name", "last_name"}
        assert errors["first_name"] == "Please enter your first name"


class TestValidationError:

    def test_carries_field_messages(self):
        error = ValidationError({"number": "Please enter a MoMo number"})
        assert error.errors == {"number": "Please enter a MoMo number"}
        assert "number" in str(error)
