"""Report-text parsing: section splitting, field extraction and record parsing."""

from parsing.listing_parser import parse_listings
from parsing.normalizer import normalize_amount
from parsing.report_assembler import TAB_ORDER, parse_report
from parsing.section_splitter import classify_heading, split_sections

__all__ = [
    "parse_listings",
    "normalize_amount",
    "TAB_ORDER",
    "parse_report",
    "classify_heading",
    "split_sections",
]
