"""Input sanitization utilities."""
import re
from typing import List, Optional


# Maximum length constraints
MAX_EVENT_NAME_LENGTH = 200
MAX_SLUG_LENGTH = 100
MAX_QUESTION_TEXT_LENGTH = 1000
MAX_POLL_QUESTION_LENGTH = 500
MAX_POLL_OPTION_LENGTH = 200
MAX_DISPLAY_NAME_LENGTH = 100

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Strips HTML tags and normalizes whitespace. Entities are not escaped;
    clients escape on render.

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    # Malformed or encoded tags that survived stripping
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'\s+', ' ', sanitized)

    return sanitized


def sanitize_required(text: str, max_length: int, label: str) -> str:
    """Sanitize text that must not end up empty."""
    sanitized = sanitize_text(text, max_length=max_length)
    if not sanitized:
        raise ValueError(f"{label} cannot be empty")
    return sanitized


def sanitize_display_name(name: Optional[str]) -> Optional[str]:
    """Sanitize an optional participant/author display name. Blank becomes None."""
    if name is None:
        return None
    sanitized = sanitize_text(name, max_length=MAX_DISPLAY_NAME_LENGTH)
    return sanitized or None


def sanitize_slug(slug: str) -> str:
    """
    Validate an event slug.

    Slugs are lowercase letters and digits separated by single hyphens, and
    must not be purely numeric (numeric path segments are event ids).
    """
    if not isinstance(slug, str):
        raise ValueError("Slug must be a string")

    sanitized = slug.strip().lower()

    if not sanitized:
        raise ValueError("Slug cannot be empty")

    if len(sanitized) > MAX_SLUG_LENGTH:
        raise ValueError(f"Slug exceeds maximum length of {MAX_SLUG_LENGTH} characters")

    if not SLUG_PATTERN.match(sanitized):
        raise ValueError("Slug can only contain lowercase letters, numbers, and single hyphens")

    if sanitized.isdigit():
        raise ValueError("Slug cannot be purely numeric")

    return sanitized


def sanitize_poll_options(options: List[str]) -> List[str]:
    """Sanitize poll options, rejecting blanks and duplicates."""
    cleaned = []
    for option in options:
        value = sanitize_required(option, MAX_POLL_OPTION_LENGTH, "Poll option")
        if value in cleaned:
            raise ValueError(f"Duplicate poll option: {value}")
        cleaned.append(value)
    return cleaned
