"""
Single-field extractors: text (a line or a block) + canonical field name -> typed value or None.

A miss is never an error; the caller records the field as absent.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Any, Callable, Optional

from models import NormalizedNumber
from parsing.field_vocabulary import Coercion, FieldSpec, PROPERTY_FIELDS, spec_for
from parsing.line_grammar import grammar_for
from parsing.normalizer import normalize_amount

_RE_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_RE_COORDINATE = re.compile(r"-?\d+(?:\.\d+)?")
_RE_DOLLAR_AMOUNT = re.compile(r"\$\s?[\d,.]*\d(?:\s*[kKmM]\b)?")
# Sentence end: a period not sitting between two digits.
_RE_SENTENCE_END = re.compile(r"(?<!\d)\.(?!\d)|\.(?=\s|$)")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_NAME = r"(?P<mon>jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"

_DATE_PATTERNS = [
    # 2021-03-15, 2021/3/5, 2021.03.15
    re.compile(r"\b(?P<y>(?:19|20)\d{2})[-/.](?P<m>\d{1,2})[-/.](?P<d>\d{1,2})\b"),
    # 15/03/2021, 15-03-2021 (day first)
    re.compile(r"\b(?P<d>\d{1,2})[-/.](?P<m>\d{1,2})[-/.](?P<y>(?:19|20)\d{2})\b"),
    # 15 March 2021, 15th Mar, 2021
    re.compile(rf"\b(?P<d>\d{{1,2}})(?:st|nd|rd|th)?\s+{_MONTH_NAME},?\s+(?P<y>(?:19|20)\d{{2}})\b", re.I),
    # March 15, 2021
    re.compile(rf"\b{_MONTH_NAME}\s+(?P<d>\d{{1,2}})(?:st|nd|rd|th)?,?\s+(?P<y>(?:19|20)\d{{2}})\b", re.I),
    # March 2021 (first of the month)
    re.compile(rf"\b{_MONTH_NAME}\s+(?P<y>(?:19|20)\d{{2}})\b", re.I),
]


# ---- Coercions (captured value -> typed value) ----

def coerce_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def coerce_count(value: Optional[str]) -> Optional[str]:
    """First number in the capture; None when the capture holds no digit."""
    m = _RE_NUMBER.search(value or "")
    return m.group(0) if m else None


def coerce_coordinate(value: Optional[str]) -> Optional[float]:
    m = _RE_COORDINATE.search(value or "")
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def coerce_currency(value: Optional[str]) -> Optional[NormalizedNumber]:
    text = coerce_text(value)
    if text is None:
        return None
    return normalize_amount(text)


def coerce_date(value: Optional[str]) -> Optional[str]:
    """
    First calendar date found in the text as YYYY-MM-DD.

    Numeric dates are read day-first; "03/15/2021" falls back to month-first when day-first is not a date.
    """
    text = value or ""
    for pattern in _DATE_PATTERNS:
        for m in pattern.finditer(text):
            parsed = _date_from_parts(m.groupdict())
            if parsed is not None:
                return parsed.isoformat()
    return None


def _date_from_parts(parts: dict[str, Optional[str]]) -> Optional[date]:
    try:
        year = int(parts["y"])
        month = int(parts["m"]) if parts.get("m") else _MONTHS[parts["mon"][:3].lower()]
        day = int(parts["d"]) if parts.get("d") else 1
    except (KeyError, ValueError):
        return None
    candidates = [(month, day)]
    if parts.get("m") and parts.get("d"):
        candidates.append((day, month))
    for m, d in candidates:
        try:
            return date(year, m, d)
        except ValueError:
            continue
    return None


def coerce_list(value: Optional[str]) -> Optional[list[str]]:
    text = coerce_text(value)
    if text is None:
        return None
    m = _RE_SENTENCE_END.search(text)
    if m:
        text = text[: m.start()]
    items = [item.strip() for item in text.split(",")]
    items = [item for item in items if item]
    return items or None


COERCIONS: dict[Coercion, Callable[[Optional[str]], Any]] = {
    Coercion.TEXT: coerce_text,
    Coercion.COUNT: coerce_count,
    Coercion.COORDINATE: coerce_coordinate,
    Coercion.CURRENCY: coerce_currency,
    Coercion.DATE: coerce_date,
    Coercion.LIST: coerce_list,
}


def coerce(spec: FieldSpec, value: Optional[str]) -> Any:
    return COERCIONS[spec.coercion](value)


# ---- Extractors (text + field name -> value) ----

def _raw(text: str, field: str, fields: tuple[FieldSpec, ...]) -> Optional[str]:
    return grammar_for(fields).first_value(text, field)


def extract_field(text: str, field: str, fields: tuple[FieldSpec, ...] = PROPERTY_FIELDS) -> Any:
    """
    First value of field in text, coerced per the vocabulary.

    Tries each occurrence in order so a non-numeric "Parking: street" does not
    hide a later "Carport Spaces: 2".
    """
    spec = spec_for(fields, field)
    for token in grammar_for(fields).iter_block(text):
        if token.field != field or not token.value:
            continue
        value = coerce(spec, token.value)
        if value is not None:
            return value
    return None


def extract_text(text: str, field: str, fields: tuple[FieldSpec, ...] = PROPERTY_FIELDS) -> Optional[str]:
    return coerce_text(_raw(text, field, fields))


def extract_count(text: str, field: str, fields: tuple[FieldSpec, ...] = PROPERTY_FIELDS) -> Optional[str]:
    return coerce_count(_raw(text, field, fields))


def extract_coordinate(text: str, field: str, fields: tuple[FieldSpec, ...] = PROPERTY_FIELDS) -> Optional[float]:
    return coerce_coordinate(_raw(text, field, fields))


def extract_currency(text: str, field: str, fields: tuple[FieldSpec, ...]) -> Optional[NormalizedNumber]:
    return coerce_currency(_raw(text, field, fields))


def extract_list(text: str, field: str, fields: tuple[FieldSpec, ...] = PROPERTY_FIELDS) -> Optional[list[str]]:
    return coerce_list(_raw(text, field, fields))


def extract_date(text: str, field: Optional[str] = None, fields: tuple[FieldSpec, ...] = ()) -> Optional[str]:
    """Date from the named field when present, else the first date token anywhere in text."""
    if field and fields:
        found = coerce_date(_raw(text, field, fields))
        if found:
            return found
    return coerce_date(text)


def find_dollar_amount(line: str) -> Optional[str]:
    """Fallback for price lines with no "Price:" label: the first "$" amount, k/m suffix included."""
    m = _RE_DOLLAR_AMOUNT.search(line or "")
    return m.group(0).strip() if m else None
