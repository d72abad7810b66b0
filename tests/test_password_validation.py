"""Tests for password complexity scoring"""
from app.utils.password_validation import (
    get_password_requirements,
    get_password_strength,
    has_keyboard_pattern,
    has_sequential_chars,
    is_common_password,
    validate_password_complexity,
    validate_password_match,
)


class TestValidatePasswordComplexity:
    def test_strong_password_scores_excellent(self):
        result = validate_password_complexity("CorrectHorse9!Battery")

        assert result.is_valid is True
        assert result.errors == []
        assert result.score == 100
        assert result.strength.label == "Excellent"

    def test_short_password_is_rejected(self):
        result = validate_password_complexity("Password1!")

        assert result.is_valid is False
        assert "Password must be at least 12 characters long" in result.errors

    def test_empty_password(self):
        result = validate_password_complexity("")

        assert result.is_valid is False
        assert result.score == 0
        assert result.errors == ["Password is required"]
        assert result.strength.label == "Invalid"

    def test_missing_character_classes(self):
        result = validate_password_complexity("alllowercaseletters")

        assert "Password must contain at least one uppercase letter (A-Z)" in result.errors
        assert "Password must contain at least one number (0-9)" in result.errors
        assert any(e.startswith("Password must contain at least one special character") for e in result.errors)

    def test_repeating_characters(self):
        result = validate_password_complexity("Gooood-Station9!")

        assert "Password cannot contain more than 2 repeating characters" in result.errors

    def test_username_in_password(self):
        result = validate_password_complexity("Chief#Station9Kx", username="chief")

        assert result.is_valid is False
        assert "Password cannot contain your username" in result.errors

    def test_sequences_are_warnings_not_errors(self):
        result = validate_password_complexity("Hydrant#abc9Ladder")

        assert result.is_valid is True
        assert 'Avoid sequential characters like "123" or "abc"' in result.warnings

    def test_override_min_length(self):
        result = validate_password_complexity("Ab9!xYz#", min_length=8)

        assert "Password must be at least 8 characters long" not in result.errors


class TestPatterns:
    def test_sequential_forward_and_reversed(self):
        assert has_sequential_chars("xx123xx") is True
        assert has_sequential_chars("xxcbaxx") is True
        assert has_sequential_chars("x1x2x3") is False

    def test_keyboard_pattern(self):
        assert has_keyboard_pattern("myQWERTYpass") is True
        assert has_keyboard_pattern("fdsa") is True
        assert has_keyboard_pattern("hydrant") is False

    def test_common_password_is_case_insensitive(self):
        assert is_common_password("PassWord") is True
        assert is_common_password("hydrant-valve") is False


class TestStrengthBuckets:
    def test_bucket_boundaries(self):
        assert get_password_strength(29).label == "Very Weak"
        assert get_password_strength(30).label == "Weak"
        assert get_password_strength(50).label == "Fair"
        assert get_password_strength(70).label == "Good"
        assert get_password_strength(85).label == "Excellent"


class TestRequirementsAndMatch:
    def test_requirements_follow_config(self):
        requirements = get_password_requirements(require_special_chars=False)

        assert requirements[0] == "At least 12 characters long"
        assert "Contains special characters (!@#$%^&*...)" not in requirements

    def test_match(self):
        assert validate_password_match("a", "a").is_match is True

        mismatch = validate_password_match("a", "b")
        assert mismatch.is_match is False
        assert mismatch.error == "Passwords do not match"
