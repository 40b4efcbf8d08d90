from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SectionKind(str, Enum):
    OVERVIEW = "overview"
    PRICE_HISTORY = "price_history"
    INVESTMENT = "investment"
    SCHOOLS = "schools"
    SUBURB = "suburb"
    GENERIC = "generic"


class PriceKind(str, Enum):
    SALE = "sale"
    RENT = "rent"


class ComparisonDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"
    AVERAGE = "average"


class NormalizedNumber(BaseModel):
    """Canonical number parsed from display text; display_text is always the untouched input."""
    model_config = ConfigDict(frozen=True)

    numeric_value: Optional[float] = None
    display_text: str = ""


class PropertyAttributes(BaseModel):
    """
    Property facts reported by the model.

    Every field is independently optional: None means the model did not report it,
    never zero. Counts stay as display strings ("4"), coordinates are floats.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    property_type: Optional[str] = None
    beds: Optional[str] = None
    baths: Optional[str] = None
    living_areas: Optional[str] = None
    carport_spaces: Optional[str] = None
    land_size: Optional[str] = None
    building_size: Optional[str] = None
    building_coverage: Optional[str] = None
    ground_elevation: Optional[str] = None
    roof_height: Optional[str] = None
    solar: Optional[str] = None
    listing_status: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    features: Optional[List[str]] = None

    def reported_fields(self) -> List[str]:
        return [name for name in type(self).model_fields if getattr(self, name) is not None]

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


class PricePoint(BaseModel):
    """
    One event on the price-history timeline.

    - date: calendar date as YYYY-MM-DD
    - price: numeric value, None whenever the price text could not be parsed
    - formatted_price: original price text, "N/A" when the line carried none
    """
    model_config = ConfigDict(frozen=True)

    date: str
    price: Optional[float] = None
    formatted_price: str = "N/A"
    event: Optional[str] = None
    kind: PriceKind = PriceKind.SALE

    @field_validator("formatted_price", mode="before")
    @classmethod
    def default_formatted_price(cls, v: Optional[str]) -> str:
        text = str(v or "").strip()
        return text or "N/A"


class School(BaseModel):
    """School in the catchment. Rating is opaque display text (often "82/100")."""
    model_config = ConfigDict(frozen=True)

    name: str
    school_type: str
    rating: str
    distance: Optional[str] = None


class InvestmentMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    property_value: str
    suburb_average: str
    comparison_text: str
    direction: ComparisonDirection = ComparisonDirection.AVERAGE
    property_numeric: Optional[float] = None
    suburb_average_numeric: Optional[float] = None


class Comparable(BaseModel):
    """Recently sold property used as a valuation reference point."""
    model_config = ConfigDict(frozen=True)

    address: str
    sold_price: str
    sold_date: str = "N/A"
    features: str = "N/A"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    sold_price_numeric: Optional[float] = None
    feature_tags: List[str] = Field(default_factory=list)

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


class SuburbSubsection(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content: str


class InvestmentInsights(BaseModel):
    """Investment section payload: metric rows and comparable sales, parsed independently."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    metrics: List[InvestmentMetric] = Field(default_factory=list)
    comparables: List[Comparable] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.metrics and not self.comparables


class SectionDiagnostics(BaseModel):
    """
    What a record parser expected but did not find.

    Lets tests and monitoring tell a clean miss from an extractor regression
    without changing what the UI receives.
    """
    model_config = ConfigDict(frozen=True)

    records: int = 0
    skipped_lines: int = 0
    missing_fields: List[str] = Field(default_factory=list)


SectionPayload = Union[
    PropertyAttributes,
    InvestmentInsights,
    List[PricePoint],
    List[School],
    List[SuburbSubsection],
]


class Section(BaseModel):
    """
    A titled block of report text.

    kind comes only from heading text. payload is None when nothing structured
    was extracted; raw_content is then the display fallback.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    heading: str = ""
    kind: SectionKind = SectionKind.GENERIC
    icon: Literal["house", "chart", "map", "school", "people", "info"] = "info"
    raw_content: str
    payload: Optional[SectionPayload] = None
    diagnostics: SectionDiagnostics = Field(default_factory=SectionDiagnostics)


class ReportDocument(BaseModel):
    """Ordered sections of one analysis, in the order their headings appeared."""
    model_config = ConfigDict(frozen=True)

    sections: List[Section] = Field(default_factory=list)

    def section(self, kind: SectionKind) -> Optional[Section]:
        for s in self.sections:
            if s.kind == kind:
                return s
        return None

    def subject_coordinates(self) -> Optional[Tuple[float, float]]:
        """Map centre for the subject property, from the first overview that reports both coordinates."""
        for s in self.sections:
            if isinstance(s.payload, PropertyAttributes) and s.payload.coordinates:
                return s.payload.coordinates
        return None

    def comparable_markers(self) -> List[Tuple[str, float, float]]:
        markers: List[Tuple[str, float, float]] = []
        for s in self.sections:
            if not isinstance(s.payload, InvestmentInsights):
                continue
            for comp in s.payload.comparables:
                if comp.coordinates:
                    markers.append((comp.address, comp.coordinates[0], comp.coordinates[1]))
        return markers


# --- Generation collaborator ---

class GroundingSource(BaseModel):
    """Web citation returned alongside generated text."""
    model_config = ConfigDict(frozen=True)

    uri: str
    title: str


class SectionProgress(BaseModel):
    key: str
    label: str
    status: Literal["pending", "completed", "error"] = "pending"
    started_at: float
    finished_at: Optional[float] = None
    attempts: int = 0


class GeneratedReport(BaseModel):
    """Concatenated section texts plus de-duplicated sources: the parser's input contract."""
    text: str = ""
    sources: List[GroundingSource] = Field(default_factory=list)
    progress: List[SectionProgress] = Field(default_factory=list)


# --- Listing search ---

STATUS_KEYWORDS = ("SOLD", "FOR SALE", "FOR RENT", "LEASED", "RECENTLY SOLD", "CONTINGENT", "ACTIVE", "PENDING")
STATUS_DISPLAY_ORDER = (
    "SOLD", "RECENTLY SOLD", "FOR SALE", "ACTIVE", "FOR RENT", "LEASED", "PENDING", "CONTINGENT", "OTHER",
)


class PropertyListing(BaseModel):
    """Property card parsed from a listing-search answer."""
    id: str
    address: str
    status: str = "OTHER"
    price: Optional[str] = None
    date: Optional[str] = None
    property_type: str = "House"
    beds: Optional[str] = None
    baths: Optional[str] = None
    cars: Optional[str] = None
    land_size: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    domain_url: Optional[str] = None
    realestate_url: Optional[str] = None
    raw_items: List[str] = Field(default_factory=list)
    pool: bool = False
    solar: bool = False
    battery: bool = False
    tennis: bool = False
    deck: bool = False
    balcony: bool = False
    shed: bool = False
    granny_flat: bool = False


class ListingSearchResult(BaseModel):
    intro: List[str] = Field(default_factory=list)
    listings: List[PropertyListing] = Field(default_factory=list)

    def by_status(self) -> dict[str, List[PropertyListing]]:
        """Listings grouped by status: known statuses in display order, then any others as seen."""
        grouped: dict[str, List[PropertyListing]] = {}
        for listing in self.listings:
            grouped.setdefault(listing.status, []).append(listing)
        rank = {status: i for i, status in enumerate(STATUS_DISPLAY_ORDER)}
        ordered = sorted(grouped, key=lambda s: rank.get(s, len(STATUS_DISPLAY_ORDER)))
        return {status: grouped[status] for status in ordered}


# --- API schemas ---

class ParseRequest(BaseModel):
    text: str


class AnalyzeRequest(BaseModel):
    address: str = Field(min_length=3)


class AnalyzeResponse(BaseModel):
    report_id: str
    address: str
    document: ReportDocument
    sources: List[GroundingSource] = Field(default_factory=list)
    progress: List[SectionProgress] = Field(default_factory=list)


class ListingSearchRequest(BaseModel):
    query: str = Field(min_length=3)


class ListingSearchResponse(BaseModel):
    answer: str
    result: ListingSearchResult
    sources: List[GroundingSource] = Field(default_factory=list)
