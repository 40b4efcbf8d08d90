"""Natural-language listing search: one grounded model call, parsed into property cards."""
from __future__ import annotations

import logging
import time
from typing import Optional

from models import ListingSearchResponse
from parsing.listing_parser import attach_listing_urls, parse_listings
from services.report_generation import OpenAIReportProvider, ReportProvider

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = "No specific listings found."

SEARCH_PROMPT = """Search for properties and real estate information based on this request: "{query}".
Focus on listings from the last 90 days. Start with a one-paragraph summary, then list each
matching property in this EXACT format:

### [Full Address] [STATUS]
- Price: [Price]
- Type: [House/Unit/Townhouse/Land]
- Beds: [Number]
- Baths: [Number]
- Cars: [Number]
- Land: [Size]
- Listed: [Date] (or Sold: [Date])
- Summary: [One sentence]
- Features: [Comma list]
- Lat: [Decimal]
- Lng: [Decimal]
- Domain: [domain.com.au URL]
- REA: [realestate.com.au URL]

STATUS is one of SOLD, RECENTLY SOLD, FOR SALE, ACTIVE, FOR RENT, LEASED, PENDING, CONTINGENT."""


def search_listings(query: str, provider: Optional[ReportProvider] = None) -> ListingSearchResponse:
    query = (query or "").strip()
    if not query:
        raise ValueError("query is required")
    provider = provider or OpenAIReportProvider()
    t0 = time.perf_counter()
    reply = provider.generate(SEARCH_PROMPT.format(query=query))
    answer = reply.text.strip() or NO_RESULTS_ANSWER
    result = attach_listing_urls(parse_listings(answer), reply.sources)
    logger.info(
        "[search] query=%r listings=%d sources=%d duration=%.2fs",
        query, len(result.listings), len(reply.sources), time.perf_counter() - t0,
    )
    return ListingSearchResponse(answer=answer, result=result, sources=reply.sources)
