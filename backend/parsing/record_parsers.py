"""
Per-category record parsers.

Each parser takes a section body and returns a ParseResult: the payload (or None
when nothing was extracted), the fields it expected but never saw, and how many
candidate lines it had to skip. Lines that do not fit their record pattern are
dropped; a bad line never stops the rest of the section.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from models import (
    Comparable,
    ComparisonDirection,
    InvestmentInsights,
    InvestmentMetric,
    PriceKind,
    PricePoint,
    PropertyAttributes,
    School,
    SectionDiagnostics,
    SuburbSubsection,
)
from parsing.extractors import (
    coerce,
    coerce_coordinate,
    coerce_date,
    coerce_text,
    find_dollar_amount,
)
from parsing.field_vocabulary import (
    COMPARABLE_FIELDS,
    METRIC_FIELDS,
    PRICE_HISTORY_FIELDS,
    PROPERTY_FIELDS,
    SCHOOL_FIELDS,
    field_names,
)
from parsing.line_grammar import FieldToken, grammar_for
from parsing.normalizer import normalize_amount

logger = logging.getLogger(__name__)

# Longest plausible subsection title; longer "titles" are paragraphs from a missed marker.
SUBSECTION_TITLE_MAX_CHARS = 100

_RENT_SIGNALS = ("rent", "lease")
_RE_SUBSECTION_MARKER = re.compile(r"^[ \t]*(?:#{3,6}[ \t]*|\*\*)", re.M)
_RE_BOLD_TITLE = re.compile(r"^(?P<title>[^*\n]+?)\*\*[ \t]*:?[ \t]*(?P<rest>.*)$", re.S)


@dataclass
class ParseResult:
    payload: Any = None
    missing_fields: list[str] = field(default_factory=list)
    skipped_lines: int = 0
    records: int = 0

    def diagnostics(self) -> SectionDiagnostics:
        return SectionDiagnostics(
            records=self.records,
            skipped_lines=self.skipped_lines,
            missing_fields=list(self.missing_fields),
        )


def _lines(body: str) -> list[str]:
    return [ln for ln in (body or "").splitlines() if ln.strip()]


def _in_order(tokens: list[FieldToken], required: tuple[str, ...]) -> bool:
    """True when every required field appears, each after the previous one."""
    position = -1
    for name in required:
        starts = [t.start for t in tokens if t.field == name and t.value and t.start > position]
        if not starts:
            return False
        position = min(starts)
    return True


def _missing(seen: set[str], expected: list[str]) -> list[str]:
    return [name for name in expected if name not in seen]


# ---- Property overview ----

def parse_property_overview(body: str) -> ParseResult:
    """Single pass over the whole block; fields may sit on any line in any order."""
    tokens = list(grammar_for(PROPERTY_FIELDS).iter_block(body))
    values: dict[str, Any] = {}
    for spec in PROPERTY_FIELDS:
        # a later occurrence may parse where an earlier one does not ("Parking: street" then "Carport: 2")
        for token in tokens:
            if token.field != spec.name or not token.value:
                continue
            value = coerce(spec, token.value)
            if value is not None:
                values[spec.name] = value
                break
    missing = _missing(set(values), field_names(PROPERTY_FIELDS))
    if not values:
        logger.debug("[parse] overview: no property fields matched")
        return ParseResult(payload=None, missing_fields=missing)
    return ParseResult(
        payload=PropertyAttributes(**values),
        missing_fields=missing,
        records=1,
    )


# ---- Price history ----

def _price_kind(type_text: Optional[str], event_text: Optional[str], line: str = "") -> PriceKind:
    """Rent when Type or Event mentions rent/lease; unlabelled lines are judged on the whole line."""
    signal = f"{type_text or ''} {event_text or ''}".strip() or line
    signal = signal.lower()
    if any(word in signal for word in _RENT_SIGNALS):
        return PriceKind.RENT
    return PriceKind.SALE


def parse_price_history(body: str) -> ParseResult:
    """One point per line that carries a date; newest first."""
    grammar = grammar_for(PRICE_HISTORY_FIELDS)
    points: list[PricePoint] = []
    skipped = 0
    seen: set[str] = set()
    for line in _lines(body):
        fields = grammar.fields_of(line)
        point_date = coerce_date(fields.get("date")) or coerce_date(line)
        if not point_date:
            skipped += 1
            logger.debug("[parse] price history: no date token in %r", line[:80])
            continue
        price_text = coerce_text(fields.get("price")) or find_dollar_amount(line)
        amount = normalize_amount(price_text) if price_text else None
        type_text = coerce_text(fields.get("type"))
        event = coerce_text(fields.get("event"))
        seen.update(name for name, value in fields.items() if value)
        points.append(
            PricePoint(
                date=point_date,
                price=amount.numeric_value if amount else None,
                formatted_price=amount.display_text if amount else "N/A",
                event=event,
                kind=_price_kind(type_text, event, line),
            )
        )
    points.sort(key=lambda p: p.date, reverse=True)
    return ParseResult(
        payload=points or None,
        missing_fields=_missing(seen, ["price", "type", "event"]) if points else [],
        skipped_lines=skipped,
        records=len(points),
    )


# ---- Schools ----

def parse_schools(body: str) -> ParseResult:
    """Name, type and rating must all appear in that order; distance is optional."""
    grammar = grammar_for(SCHOOL_FIELDS)
    schools: list[School] = []
    skipped = 0
    for line in _lines(body):
        tokens = grammar.tokenize(line)
        if not _in_order(tokens, ("name", "type", "rating")):
            if tokens:
                skipped += 1
                logger.debug("[parse] schools: incomplete line %r", line[:80])
            continue
        values = grammar.fields_of(line)
        schools.append(
            School(
                name=values["name"],
                school_type=values["type"],
                rating=values["rating"],
                distance=coerce_text(values.get("distance")),
            )
        )
    missing: list[str] = []
    if schools and all(s.distance is None for s in schools):
        missing.append("distance")
    return ParseResult(
        payload=schools or None,
        missing_fields=missing,
        skipped_lines=skipped,
        records=len(schools),
    )


# ---- Investment insights ----

def classify_comparison(text: str) -> ComparisonDirection:
    low = (text or "").lower()
    if "above" in low:
        return ComparisonDirection.ABOVE
    if "below" in low:
        return ComparisonDirection.BELOW
    return ComparisonDirection.AVERAGE


def extract_investment_metrics(body: str) -> tuple[list[InvestmentMetric], int]:
    grammar = grammar_for(METRIC_FIELDS)
    metrics: list[InvestmentMetric] = []
    skipped = 0
    for line in _lines(body):
        tokens = grammar.tokenize(line)
        if not any(t.field == "metric" for t in tokens):
            continue
        if not _in_order(tokens, ("metric", "property", "suburb_average", "comparison")):
            skipped += 1
            logger.debug("[parse] investment: incomplete metric line %r", line[:80])
            continue
        values = grammar.fields_of(line)
        property_amount = normalize_amount(values["property"])
        average_amount = normalize_amount(values["suburb_average"])
        metrics.append(
            InvestmentMetric(
                label=values["metric"],
                property_value=values["property"],
                suburb_average=values["suburb_average"],
                comparison_text=values["comparison"],
                direction=classify_comparison(values["comparison"]),
                property_numeric=property_amount.numeric_value,
                suburb_average_numeric=average_amount.numeric_value,
            )
        )
    return metrics, skipped


def extract_comparables(body: str) -> tuple[list[Comparable], int]:
    grammar = grammar_for(COMPARABLE_FIELDS)
    comparables: list[Comparable] = []
    skipped = 0
    for line in _lines(body):
        if "address" not in line.lower():
            continue
        values = {k: v for k, v in grammar.fields_of(line).items() if v}
        address = values.get("address")
        price = values.get("sold_price")
        if not address or not price:
            skipped += 1
            logger.debug("[parse] investment: comparable without address/price %r", line[:80])
            continue
        features = values.get("features") or "N/A"
        tags = [t.strip() for t in features.split(",") if t.strip()] if features != "N/A" else []
        comparables.append(
            Comparable(
                address=address,
                sold_price=price,
                sold_date=values.get("sold_date") or "N/A",
                features=features,
                latitude=coerce_coordinate(values.get("latitude")),
                longitude=coerce_coordinate(values.get("longitude")),
                sold_price_numeric=normalize_amount(price).numeric_value,
                feature_tags=tags,
            )
        )
    return comparables, skipped


def parse_investment(body: str) -> ParseResult:
    """Metric rows and comparable sales are two independent passes over the same body."""
    metrics, skipped_metrics = extract_investment_metrics(body)
    comparables, skipped_comparables = extract_comparables(body)
    missing: list[str] = []
    if not metrics:
        missing.append("metrics")
    if not comparables:
        missing.append("comparables")
    insights = InvestmentInsights(metrics=metrics, comparables=comparables)
    return ParseResult(
        payload=None if insights.is_empty else insights,
        missing_fields=missing,
        skipped_lines=skipped_metrics + skipped_comparables,
        records=len(metrics) + len(comparables),
    )


# ---- Suburb profile ----

def _split_subsection(block: str) -> tuple[str, str]:
    """Title and content of one block; the first line is the title."""
    first, _, rest = block.partition("\n")
    m = _RE_BOLD_TITLE.match(first)
    if m and m.group("rest").strip():
        # "**Vibe:** Leafy streets" carries content on the title line
        title = m.group("title")
        content = "\n".join(part for part in (m.group("rest").strip(), rest.strip()) if part)
    else:
        title = first
        content = rest
    title = title.replace("**", "").strip().rstrip(":").strip()
    return title, content.strip()


def parse_suburb_profile(body: str) -> ParseResult:
    """
    One subsection per block with a short title and a non-empty body.

    Blocks are delimited by "###" or bold markers; the text ahead of the first marker is a block too.
    """
    text = body or ""
    markers = list(_RE_SUBSECTION_MARKER.finditer(text))
    bounds = [(0, markers[0].start() if markers else len(text))]
    bounds += [
        (m.end(), markers[i + 1].start() if i + 1 < len(markers) else len(text))
        for i, m in enumerate(markers)
    ]
    subsections: list[SuburbSubsection] = []
    skipped = 0
    for start, end in bounds:
        block = text[start:end].strip()
        if not block:
            continue
        title, content = _split_subsection(block)
        if not title or not content or len(title) >= SUBSECTION_TITLE_MAX_CHARS:
            skipped += 1
            logger.debug("[parse] suburb: rejected block titled %r", title[:60])
            continue
        subsections.append(SuburbSubsection(title=title, content=content))
    return ParseResult(
        payload=subsections or None,
        missing_fields=[] if subsections else ["subsections"],
        skipped_lines=skipped,
        records=len(subsections),
    )
