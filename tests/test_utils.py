"""Tests for shared utility functions."""

from medrelay.utils import is_valid_email, normalize_phone, sanitize_input


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("0803 123 4567") == "08031234567"

    def test_strips_dashes(self):
        assert normalize_phone("0803-123-4567") == "08031234567"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+234 803 123 4567") == "+2348031234567"

    def test_clean_number_unchanged(self):
        assert normalize_phone("2348031234567") == "2348031234567"

    def test_mixed_separators(self):
        assert normalize_phone("+234 (803) 123-4567") == "+2348031234567"


class TestSanitizeInput:
    def test_strips_control_characters(self):
        assert sanitize_input("ada\x00@example.com\x07") == "ada@example.com"

    def test_strips_whitespace(self):
        assert sanitize_input("  hello  ") == "hello"


class TestEmailValidation:
    def test_valid(self):
        assert is_valid_email("ada.obi+rx@example.com.ng")

    def test_missing_domain(self):
        assert not is_valid_email("ada@")

    def test_no_at_sign(self):
        assert not is_valid_email("ada.example.com")
