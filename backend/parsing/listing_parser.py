"""
Listing-search answers -> property cards.

The search prompt asks for one "### <address> [STATUS]" heading per property
followed by "- Key: Value" bullets. Lines before the first heading are the
intro; bullets before any heading are ignored.
"""
from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Literal, Optional

from models import (
    STATUS_KEYWORDS,
    GroundingSource,
    ListingSearchResult,
    PropertyListing,
)
from parsing.extractors import coerce_coordinate
from parsing.field_vocabulary import LISTING_FIELDS
from parsing.line_grammar import grammar_for

logger = logging.getLogger(__name__)

_RE_BRACKETED = re.compile(r"\[(.*?)\]")
_RE_CARD_HEADING = re.compile(r"^###\s+")

# substring in the lower-cased features text -> listing flag
FEATURE_FLAGS: dict[str, str] = {
    "pool": "pool",
    "solar": "solar",
    "battery": "battery",
    "tennis": "tennis",
    "deck": "deck",
    "balcony": "balcony",
    "shed": "shed",
    "granny": "granny_flat",
}

# listing field -> PropertyListing attribute
_CARD_ATTRS: dict[str, str] = {
    "price": "price",
    "type": "property_type",
    "beds": "beds",
    "baths": "baths",
    "cars": "cars",
    "land": "land_size",
    "date": "date",
    "summary": "description",
    "domain": "domain_url",
    "rea": "realestate_url",
}

SITE_HOSTS = {"domain": "domain.com.au", "realestate": "realestate.com.au"}
SITE_PROFILE_PATHS = {"domain": "property-profile", "realestate": "/property/"}
URL_MATCH_MIN_SCORE = 3


def status_from_title(title: str) -> str:
    """Bracketed status wins; else the first known status keyword in the title; else OTHER."""
    m = _RE_BRACKETED.search(title or "")
    if m:
        return m.group(1).strip().upper() or "OTHER"
    upper = (title or "").upper()
    for keyword in STATUS_KEYWORDS:
        if keyword in upper:
            return keyword
    return "OTHER"


def listing_id(address: str) -> str:
    return hashlib.sha256(address.strip().lower().encode("utf-8")).hexdigest()[:16]


def find_listing_url(
    address: str,
    sources: list[GroundingSource],
    site: Literal["domain", "realestate"],
) -> Optional[str]:
    """
    Best source URI on the given portal for an address.

    Score = address words (longer than 2 chars) found in the URI, plus 2 for a
    property-profile path. Returns None unless the best score reaches 3.
    """
    host = SITE_HOSTS[site]
    parts = [p for p in re.split(r"[ ,]+", (address or "").lower()) if len(p) > 2]
    best: Optional[str] = None
    best_score = 0
    for source in sources:
        uri = (source.uri or "").lower()
        if not uri or host not in uri:
            continue
        score = sum(1 for p in parts if p in uri)
        if SITE_PROFILE_PATHS[site] in uri:
            score += 2
        if score > best_score:
            best_score = score
            best = source.uri
    return best if best_score >= URL_MATCH_MIN_SCORE else None


def _new_card(title: str) -> dict[str, Any]:
    address = _RE_BRACKETED.sub("", title, count=1).strip()
    return {
        "id": listing_id(address),
        "address": address,
        "status": status_from_title(title),
        "raw_items": [],
    }


def _apply_item(card: dict[str, Any], item: str) -> None:
    card["raw_items"].append(item)
    for field, value in grammar_for(LISTING_FIELDS).fields_of(item).items():
        if not value:
            continue
        if field in ("latitude", "longitude"):
            coordinate = coerce_coordinate(value)
            if coordinate is not None:
                card.setdefault(field, coordinate)
        elif field == "features":
            low = value.lower()
            for needle, flag in FEATURE_FLAGS.items():
                if needle in low:
                    card[flag] = True
        else:
            card.setdefault(_CARD_ATTRS[field], value)


def _finish(card: dict[str, Any]) -> Optional[PropertyListing]:
    if not card["address"]:
        logger.debug("[search] dropped card with empty address")
        return None
    return PropertyListing(**{k: v for k, v in card.items() if v is not None})


def parse_listings(answer: str) -> ListingSearchResult:
    text = (answer or "").replace("**", "")
    intro: list[str] = []
    listings: list[PropertyListing] = []
    card: Optional[dict[str, Any]] = None
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if _RE_CARD_HEADING.match(stripped):
            if card is not None:
                finished = _finish(card)
                if finished:
                    listings.append(finished)
            card = _new_card(_RE_CARD_HEADING.sub("", stripped))
        elif stripped.startswith("- ") and card is not None:
            _apply_item(card, stripped[2:].strip())
        elif card is None:
            intro.append(stripped)
    if card is not None:
        finished = _finish(card)
        if finished:
            listings.append(finished)
    logger.info("[search] parsed listings=%d intro_lines=%d", len(listings), len(intro))
    return ListingSearchResult(intro=intro, listings=listings)


def attach_listing_urls(result: ListingSearchResult, sources: list[GroundingSource]) -> ListingSearchResult:
    """Fill missing portal URLs from the answer's sources."""
    listings = []
    for listing in result.listings:
        update: dict[str, str] = {}
        if not listing.domain_url:
            uri = find_listing_url(listing.address, sources, "domain")
            if uri:
                update["domain_url"] = uri
        if not listing.realestate_url:
            uri = find_listing_url(listing.address, sources, "realestate")
            if uri:
                update["realestate_url"] = uri
        listings.append(listing.model_copy(update=update) if update else listing)
    return result.model_copy(update={"listings": listings})
