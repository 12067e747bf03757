"""General utility functions."""
import random
import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

from app.core.constants import SLUG_SUFFIX_LENGTH


def make_pronounceable(length: int = SLUG_SUFFIX_LENGTH) -> str:
    """Generate a pronounceable code using consonant-vowel pattern."""
    consonants = "bcdfghjklmnpqrstvwxyz"
    vowels = "aeiou"

    code = ""
    for i in range(length):
        if i % 2 == 0:
            code += random.choice(consonants)
        else:
            code += random.choice(vowels)

    return code


def slugify(value: str) -> str:
    """Lowercase ASCII slug: words joined by single hyphens."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug


def generate_slug(name: str, max_length: int = 100) -> str:
    """
    Build a URL slug for an event name.

    A short pronounceable suffix keeps two events with the same name from
    colliding, e.g. ``"Town Hall"`` -> ``"town-hall-kota"``.
    """
    base = slugify(name)[: max_length - SLUG_SUFFIX_LENGTH - 1].strip("-") or "event"
    return f"{base}-{make_pronounceable()}"


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert datetime to UTC timezone (naive values are assumed UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
