"""Backend services."""

from services.listing_search import search_listings
from services.report_generation import (
    SECTION_TASKS,
    OpenAIReportProvider,
    ProviderReply,
    ReportProvider,
    analyze_property,
    generate_report,
)

__all__ = [
    "search_listings",
    "SECTION_TASKS",
    "OpenAIReportProvider",
    "ProviderReply",
    "ReportProvider",
    "analyze_property",
    "generate_report",
]
