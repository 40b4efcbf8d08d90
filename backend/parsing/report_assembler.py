"""
Assemble a ReportDocument from raw report text.

raw text -> split_sections -> classify -> record parser per kind -> Section list,
in the order the headings appeared. Reordering into tabs is the consumer's job;
TAB_ORDER documents the order it uses.
"""
from __future__ import annotations

import logging
from typing import Callable

from models import ReportDocument, Section, SectionKind
from parsing.record_parsers import (
    ParseResult,
    parse_investment,
    parse_price_history,
    parse_property_overview,
    parse_schools,
    parse_suburb_profile,
)
from parsing.section_splitter import classify_heading, split_sections

logger = logging.getLogger(__name__)

TAB_ORDER: tuple[SectionKind, ...] = (
    SectionKind.OVERVIEW,
    SectionKind.INVESTMENT,
    SectionKind.PRICE_HISTORY,
    SectionKind.SUBURB,
    SectionKind.SCHOOLS,
)

DISPLAY_TITLES: dict[SectionKind, str] = {
    SectionKind.OVERVIEW: "Property Overview",
    SectionKind.PRICE_HISTORY: "Price History & Trends",
    SectionKind.INVESTMENT: "Investment Insights",
    SectionKind.SUBURB: "Suburb Profile",
    SectionKind.SCHOOLS: "School Catchment & Ratings",
}

ICONS: dict[SectionKind, str] = {
    SectionKind.OVERVIEW: "house",
    SectionKind.PRICE_HISTORY: "chart",
    SectionKind.INVESTMENT: "people",
    SectionKind.SUBURB: "map",
    SectionKind.SCHOOLS: "school",
    SectionKind.GENERIC: "info",
}

PARSERS: dict[SectionKind, Callable[[str], ParseResult]] = {
    SectionKind.OVERVIEW: parse_property_overview,
    SectionKind.PRICE_HISTORY: parse_price_history,
    SectionKind.INVESTMENT: parse_investment,
    SectionKind.SUBURB: parse_suburb_profile,
    SectionKind.SCHOOLS: parse_schools,
}


def build_section(heading: str, body: str) -> Section:
    kind = classify_heading(heading)
    parser = PARSERS.get(kind)
    result = parser(body) if parser else ParseResult()
    return Section(
        title=DISPLAY_TITLES.get(kind, heading),
        heading=heading,
        kind=kind,
        icon=ICONS[kind],
        raw_content=body,
        payload=result.payload,
        diagnostics=result.diagnostics(),
    )


def parse_report(text: str) -> ReportDocument:
    """
    Parse a generated market report into typed sections.

    Malformed input degrades to fewer fields, fewer records or Generic sections;
    the only error is a non-str argument.
    """
    if not isinstance(text, str):
        raise TypeError(f"parse_report expects str, got {type(text).__name__}")
    sections = [build_section(part.heading, part.body) for part in split_sections(text)]
    logger.info(
        "[parse] sections=%d kinds=%s",
        len(sections),
        ",".join(s.kind.value for s in sections) or "-",
    )
    for s in sections:
        if s.kind != SectionKind.GENERIC and s.payload is None:
            logger.info("[parse] %s: no records extracted (missing=%s)", s.kind.value, s.diagnostics.missing_fields)
    return ReportDocument(sections=sections)


def order_for_tabs(document: ReportDocument) -> list[Section]:
    """Known kinds in TAB_ORDER, then everything else in source order."""
    rank = {kind: i for i, kind in enumerate(TAB_ORDER)}
    indexed = list(enumerate(document.sections))
    indexed.sort(key=lambda pair: (rank.get(pair[1].kind, len(TAB_ORDER)), pair[0]))
    return [s for _, s in indexed]
