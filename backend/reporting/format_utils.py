"""Consistent formatting for prices and dates in report views. Never render raw floats."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

_DATE_INPUT_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d.%m.%Y", "%d-%m-%Y", "%Y/%m/%d")


def format_currency(value: Optional[float], precision: int = 0) -> str:
    if value is None:
        return "N/A"
    if precision <= 0:
        return f"${value:,.0f}" if abs(value) >= 1 else f"${value:,.2f}"
    return f"${value:,.{precision}f}"


def format_compact_currency(value: Optional[float]) -> str:
    """Chart axis labels: "$1.25M" from a million up, full dollars below."""
    if value is None:
        return "N/A"
    if abs(value) >= 1_000_000:
        millions = f"{value / 1_000_000:.2f}".rstrip("0").rstrip(".")
        return f"${millions}M"
    return format_currency(value)


def _as_date(d: Any) -> Optional[date]:
    if d is None:
        return None
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    text = str(d).strip()
    for fmt in _DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: Any) -> str:
    """dd/mm/yyyy; "—" for empty input; unparseable text is returned as-is."""
    if d is None or not str(d).strip():
        return "—"
    parsed = _as_date(d)
    if parsed is None:
        return str(d).strip()
    return parsed.strftime("%d/%m/%Y")


def format_month_year(d: Any) -> str:
    if d is None or not str(d).strip():
        return "—"
    parsed = _as_date(d)
    if parsed is None:
        return str(d).strip()
    return parsed.strftime("%b %Y")
