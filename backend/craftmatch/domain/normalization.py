"""Text normalization shared by the matcher, the cache key and retrieval."""

import re

_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)
_UNDERSCORE = re.compile(r"_+")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace.

    ``"  Traditional POTTERY, please!"`` → ``"traditional pottery please"``
    """
    lowered = text.lower()
    lowered = _PUNCTUATION.sub(" ", lowered)
    lowered = _UNDERSCORE.sub(" ", lowered)
    return _WHITESPACE.sub(" ", lowered).strip()


def normalize_profession(profession: str | None) -> str:
    """Case/whitespace-normalize a profession name for equality checks."""
    if not profession:
        return ""
    return _WHITESPACE.sub(" ", profession).strip().lower()


def tokenize(normalized: str) -> list[str]:
    """Split already-normalized text into tokens."""
    return normalized.split() if normalized else []
