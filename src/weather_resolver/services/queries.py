"""Location query normalization.

Geocoders and weather search endpoints disagree on how much street-level
detail or postal information they tolerate. ``build_location_queries``
turns one free-text address into candidates ordered from most to least
specific, and callers try them in that order.
"""

import re

_WHITESPACE = re.compile(r"\s+")
_POSTAL_CODE = re.compile(r"\d{5}(?:-\d{4})?")
_NUMERIC_TOKEN = re.compile(r"\b\d+\b")


def sanitize_segment(value: str) -> str:
    """Collapse runs of whitespace and trim."""
    return _WHITESPACE.sub(" ", value).strip()


def normalize_location_key(value: str) -> str:
    """Cache key for a location string."""
    return sanitize_segment(value).lower()


def strip_postal_codes(value: str) -> str:
    """Drop postal codes and standalone numbers (house numbers, units)."""
    stripped = _POSTAL_CODE.sub("", sanitize_segment(value))
    stripped = _NUMERIC_TOKEN.sub("", stripped)
    return sanitize_segment(stripped)


def build_location_queries(raw: str) -> list[str]:
    """Build candidate queries for ``raw``, most specific first.

    "123 Main St, Springfield, IL 62704" yields the original string, then
    "Main St, Springfield, IL", "Springfield, IL 62704", "123 Main St",
    "Springfield" and "IL 62704".
    """
    queries: list[str] = []

    def push(candidate: str) -> None:
        if candidate and candidate not in queries:
            queries.append(candidate)

    base = sanitize_segment(raw or "")
    push(base)
    push(strip_postal_codes(base))

    if "," in base:
        segments = [seg for seg in (sanitize_segment(s) for s in base.split(",")) if seg]
        if len(segments) > 1:
            push(", ".join(segments[-2:]))
        for segment in segments:
            push(segment)
    else:
        tokens = base.split(" ")
        if len(tokens) > 2:
            push(" ".join(tokens[-2:]))

    return queries
