"""Tests for input sanitization utilities."""
import pytest

from app.core.sanitization import (
    MAX_SLUG_LENGTH,
    sanitize_display_name,
    sanitize_poll_options,
    sanitize_required,
    sanitize_slug,
    sanitize_text,
)


class TestSanitizeText:
    """Tests for sanitize_text function."""

    def test_sanitize_basic_text(self):
        assert sanitize_text("Hello World") == "Hello World"

    def test_sanitize_with_html_tags(self):
        """Test that HTML tags are stripped."""
        result = sanitize_text("<script>alert('xss')</script>")
        assert result == "alert('xss')"

    def test_sanitize_with_ampersand(self):
        """Ampersands are preserved; clients escape on render."""
        assert sanitize_text("A & B") == "A & B"

    def test_sanitize_normalizes_internal_whitespace(self):
        assert sanitize_text("  Hello \n\n   World  ") == "Hello World"

    def test_sanitize_with_max_length(self):
        with pytest.raises(ValueError, match="exceeds maximum length"):
            sanitize_text("A" * 100, max_length=50)

    def test_stray_angle_bracket_rejected(self):
        with pytest.raises(ValueError):
            sanitize_text("1 < 2")

    def test_sanitize_non_string_raises_error(self):
        with pytest.raises(ValueError):
            sanitize_text(123)


class TestSanitizeRequired:
    def test_empty_after_stripping(self):
        with pytest.raises(ValueError, match="Question text cannot be empty"):
            sanitize_required("<p></p>", 100, "Question text")


class TestSanitizeDisplayName:
    def test_blank_becomes_none(self):
        assert sanitize_display_name("   ") is None

    def test_none_passes_through(self):
        assert sanitize_display_name(None) is None


class TestSanitizeSlug:
    def test_lowercased(self):
        assert sanitize_slug("Town-Hall-2026") == "town-hall-2026"

    @pytest.mark.parametrize("slug", ["town hall", "town--hall", "-town", "town_hall", ""])
    def test_invalid(self, slug):
        with pytest.raises(ValueError):
            sanitize_slug(slug)

    def test_numeric_rejected(self):
        with pytest.raises(ValueError, match="numeric"):
            sanitize_slug("123")

    def test_too_long(self):
        with pytest.raises(ValueError):
            sanitize_slug("a" * (MAX_SLUG_LENGTH + 1))


class TestSanitizePollOptions:
    def test_cleans_each_option(self):
        assert sanitize_poll_options([" Pizza ", "<i>Salad</i>"]) == ["Pizza", "Salad"]

    def test_duplicate_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            sanitize_poll_options(["Pizza", " Pizza"])

    def test_blank_rejected(self):
        with pytest.raises(ValueError):
            sanitize_poll_options(["Pizza", "  "])
