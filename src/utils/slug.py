"""URL slug generation for movies, genres and categories."""

import re

from unidecode import unidecode

_WHITESPACE = re.compile(r"[\s_]+")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9-]+")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """Build a URL-safe slug from free text.

    Transliterates to ASCII, lowercases, turns whitespace into hyphens,
    strips every other non-alphanumeric character and collapses hyphens.
    Uniqueness is not guaranteed; storage constraints enforce it.

    Args:
        text: Title or name to convert.

    Returns:
        Slug made of ``[a-z0-9-]`` with no leading or trailing hyphen.
        Empty string when nothing usable remains.

    Example:
        >>> slugify("Time Is a Lie")
        'time-is-a-lie'
    """
    if not text or not text.strip():
        return ""

    slug = unidecode(str(text)).lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _REPEATED_HYPHENS.sub("-", slug)
    return slug.strip("-")
