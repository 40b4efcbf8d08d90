"""Currency/number canonicalization for model-written amounts ("$1,200,000", "850k", "1.1m")."""
from __future__ import annotations

import re

from models import NormalizedNumber

# Currency symbols and code prefixes the model writes in front of amounts.
_RE_CURRENCY = re.compile(r"[$€£¥]")
_RE_CODE_PREFIX = re.compile(r"^(?:aud|au|a|usd|us)(?=[\d.])")
_RE_SEPARATORS = re.compile(r"[,\s]")
_RE_LEADING_AMOUNT = re.compile(r"^([+-]?(?:\d+(?:\.\d*)?|\.\d+))(?:([km])(?:illion)?(?![a-z]))?")

SUFFIX_MULTIPLIERS = {"k": 1_000.0, "m": 1_000_000.0}


def parse_amount(text: str | None) -> float | None:
    """
    Numeric value of the leading amount in a string, or None when it does not start with one.

    Trailing text is ignored so "$650/week" reads as 650; a k/m suffix must follow the digits directly.
    """
    if text is None:
        return None
    clean = _RE_CURRENCY.sub("", str(text))
    clean = _RE_SEPARATORS.sub("", clean).lower()
    clean = _RE_CODE_PREFIX.sub("", clean)
    m = _RE_LEADING_AMOUNT.match(clean)
    if not m:
        return None
    multiplier = SUFFIX_MULTIPLIERS.get(m.group(2) or "", 1.0)
    try:
        return float(m.group(1)) * multiplier
    except ValueError:
        return None


def normalize_amount(text: str | None) -> NormalizedNumber:
    """
    Canonical number plus the untouched display string.

    Never raises; numeric_value is None when the text is not a number.
    Normalizing display_text again yields the same numeric_value.
    """
    display = "" if text is None else str(text)
    return NormalizedNumber(numeric_value=parse_amount(display), display_text=display)
