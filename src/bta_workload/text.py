"""Label clean-up for names carried over from older stored entries."""

from __future__ import annotations

import re

ACRONYMS = {
    "UMS": "UMS",
    "BTA": "BTA",
    "DS": "DS",
    "DG": "DG",
    "DU": "DU",
    "VK": "VK",
    "PHD": "PhD",
    "MSC": "MSc",
    "MBA": "MBA",
}

_SEGMENT = re.compile(r"^([^A-Za-z0-9]*)([A-Za-z0-9]+)([^A-Za-z0-9]*)$")
_SEPARATOR = re.compile(r"([—–/\\-])")
_WHITESPACE = re.compile(r"(\s+)")


def _core_word(value: str) -> str:
    upper = value.upper()
    if upper in ACRONYMS:
        return ACRONYMS[upper]
    if value == upper and (any(ch.isdigit() for ch in value) or len(value) <= 3):
        return value
    lower = value.lower()
    return lower[:1].upper() + lower[1:]


def _segment(segment: str) -> str:
    match = _SEGMENT.match(segment)
    if not match:
        return segment
    leading, core, trailing = match.groups()
    return f"{leading}{_core_word(core)}{trailing}"


def _token(token: str) -> str:
    return "".join(
        part if _SEPARATOR.fullmatch(part) else _segment(part)
        for part in _SEPARATOR.split(token)
    )


def normalize_title_case(value: str) -> str:
    """
    Title-case a label while keeping acronyms and short codes intact.

    >>> normalize_title_case("PENYELIAAN PHD - penyelia UTAMA")
    'Penyeliaan PhD - Penyelia Utama'
    """
    return "".join(
        _token(token) if token.strip() else token
        for token in _WHITESPACE.split(value)
    )


def split_activity_label(label: str) -> tuple:
    """'Kuliah — Prasiswazah' -> ('Kuliah', 'Prasiswazah'); no separator -> (label, '')."""
    activity, sep, option = label.partition(" — ")
    return (activity, option) if sep else (label, "")
