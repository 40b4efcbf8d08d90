"""
Split a full report into (heading, body) parts and classify each heading.

Splitting happens at lines that open with a level-one or level-two markdown
heading ("# " / "## "); "###" and deeper belong to the body. Text before the
first heading is not a section. Never raises for string input.
"""
from __future__ import annotations

import re
from typing import NamedTuple

from models import SectionKind

_RE_HEADING = re.compile(r"^[ \t]*#{1,2}(?!#)[ \t]+(?P<heading>[^\n]*)$", re.M)
_RE_HEADING_DECOR = re.compile(r"\*\*|__")

# Checked in order; first substring hit wins.
HEADING_RULES: tuple[tuple[SectionKind, tuple[str, ...]], ...] = (
    (SectionKind.OVERVIEW, ("property overview",)),
    (SectionKind.PRICE_HISTORY, ("price history",)),
    (SectionKind.SUBURB, ("suburb profile", "demographic")),
    (SectionKind.SCHOOLS, ("school catchment",)),
    (SectionKind.INVESTMENT, ("investment", "value")),
)


class RawSection(NamedTuple):
    heading: str
    body: str


def clean_heading(heading: str) -> str:
    return _RE_HEADING_DECOR.sub("", heading or "").strip().rstrip("#").strip()


def classify_heading(heading: str) -> SectionKind:
    low = (heading or "").lower()
    for kind, needles in HEADING_RULES:
        if any(needle in low for needle in needles):
            return kind
    return SectionKind.GENERIC


def split_sections(text: str) -> list[RawSection]:
    if not text or not text.strip():
        return []
    whole = text.strip()
    matches = list(_RE_HEADING.finditer(text))
    parts: list[RawSection] = []
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        heading = clean_heading(m.group("heading"))
        body = text[m.end():end].strip()
        if not heading or not body:
            continue
        if heading == whole:
            continue
        parts.append(RawSection(heading=heading, body=body))
    return parts
