"""Deterministic normalization helpers for duplicate signals and field comparison."""

from __future__ import annotations

import re
import unicodedata

_MULTISPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")


def normalize_name(value: str | None) -> str:
    """Normalize a person name for equality matching.

    NFKC folds full-width letters and the ideographic space (U+3000) into their
    half-width forms before case folding and whitespace collapsing.
    """

    if not value:
        return ""
    folded = unicodedata.normalize("NFKC", value)
    return _MULTISPACE_RE.sub(" ", folded.strip().lower())


def normalize_email(value: str | None) -> str:
    if not value:
        return ""
    return value.strip().lower()


def normalize_phone(value: str | None) -> str:
    """Reduce a phone number to its digit string."""

    if not value:
        return ""
    return _NON_DIGIT_RE.sub("", unicodedata.normalize("NFKC", value))


def normalize_line_user_id(value: str | None) -> str:
    if not value:
        return ""
    return value.strip()


def is_blank(value: object) -> bool:
    """Return True for None, whitespace-only strings and empty collections."""

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def merge_string_lists(primary: list[str] | None, secondary: list[str] | None) -> list[str]:
    """Order-preserving union: primary items first, then unseen secondary items."""

    merged: list[str] = []
    seen: set[str] = set()
    for raw in [*(primary or []), *(secondary or [])]:
        value = str(raw).strip()
        if not value:
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(value)
    return merged
