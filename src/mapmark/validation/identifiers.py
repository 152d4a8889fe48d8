"""Canonical forms for point ids and spot names.

Point ids look like ``A-01``: one uppercase Latin letter, a hyphen and two
digits. Users type them on Japanese IMEs, so full-width letters, digits
and several hyphen look-alikes are folded to ASCII before matching.
"""

from __future__ import annotations

import re

from mapmark.config import settings

_FULL_WIDTH_OFFSET = 0xFEE0
_HYPHEN_VARIANTS = frozenset("－−‐―")  # － − ‐ ―

_FULL_ID = re.compile(r"^([A-Z])-?([0-9]{2})$")
_SINGLE_DIGIT_ID = re.compile(r"^([A-Z])-?([0-9])$")
_CANONICAL_ID = re.compile(r"^[A-Z]-[0-9]{2}$")


def _fold_char(char: str) -> str:
    if "Ａ" <= char <= "Ｚ" or "ａ" <= char <= "ｚ" or "０" <= char <= "９":
        return chr(ord(char) - _FULL_WIDTH_OFFSET)
    if char in _HYPHEN_VARIANTS:
        return "-"
    return char


def fold_width(value: str) -> str:
    """Fold full-width Latin letters, digits and hyphen variants to ASCII.

    Other characters (kana, kanji, punctuation) are left untouched.

    Example:
        >>> fold_width("Ａ－７")
        'A-7'
    """
    return "".join(_fold_char(c) for c in value)


def format_point_id(value: str) -> str:
    """Canonicalize a point id.

    Blank input is returned unchanged. Otherwise the value is trimmed,
    width-folded and uppercased; ``L-dd``, ``Ldd``, ``L-d`` and ``Ld`` all
    become ``L-dd``. Anything else comes back folded and uppercased, and
    is rejected later by is_valid_point_id_format. The function is
    idempotent.

    Example:
        >>> format_point_id("a1")
        'A-01'
        >>> format_point_id("Ａ-７")
        'A-07'
    """
    if not value or not value.strip():
        return value

    converted = fold_width(value.strip()).upper()

    match = _FULL_ID.match(converted)
    if match:
        return f"{match.group(1)}-{match.group(2)}"

    match = _SINGLE_DIGIT_ID.match(converted)
    if match:
        return f"{match.group(1)}-0{match.group(2)}"

    return converted


def is_valid_point_id_format(value: str | None) -> bool:
    """True for a canonical ``L-dd`` id, or for a blank value."""
    if not value or not value.strip():
        return True
    return _CANONICAL_ID.match(value) is not None


def point_id_key(value: str) -> str:
    """Identity key for a point id: two ids with equal keys are duplicates."""
    return format_point_id(value).strip()


def format_spot_name(value: str, max_length: int | None = None) -> str:
    """Canonicalize a committed spot name.

    Width-folds, trims surrounding whitespace and truncates to
    ``SPOT_NAME_MAX_LENGTH`` characters. Case is preserved.
    """
    max_length = settings.SPOT_NAME_MAX_LENGTH if max_length is None else max_length
    return fold_width(value).strip()[:max_length]


def spot_name_key(value: str) -> str:
    """Identity key for a spot name, insensitive to width and case."""
    return fold_width(value).strip().casefold()
