"""
Field-name vocabulary shared by every record parser.

Each canonical field lists the key spellings the model is known to emit and the
coercion applied to its captured value. Synonyms are matched case-insensitively
and treat spaces, underscores and hyphens between words as interchangeable
("Suburb_Average" == "Suburb Average").
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Coercion(str, Enum):
    TEXT = "text"
    COUNT = "count"
    COORDINATE = "coordinate"
    CURRENCY = "currency"
    DATE = "date"
    LIST = "list"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    synonyms: tuple[str, ...]
    coercion: Coercion = Coercion.TEXT


def _spec(name: str, coercion: Coercion, *synonyms: str) -> FieldSpec:
    return FieldSpec(name=name, synonyms=synonyms, coercion=coercion)


# ---- Property overview ----
PROPERTY_FIELDS: tuple[FieldSpec, ...] = (
    _spec("property_type", Coercion.TEXT, "Property Type", "Type"),
    _spec("beds", Coercion.COUNT, "Bedrooms", "Beds"),
    _spec("baths", Coercion.COUNT, "Bathrooms", "Baths"),
    _spec("living_areas", Coercion.COUNT, "Living Areas", "Living"),
    _spec("carport_spaces", Coercion.COUNT, "Carport Spaces", "Car Spaces", "Carport", "Parking"),
    _spec("land_size", Coercion.TEXT, "Land Size", "Land Area", "Land"),
    _spec("building_size", Coercion.TEXT, "Building Size", "Floor Area"),
    _spec("building_coverage", Coercion.TEXT, "Building Coverage", "Site Coverage"),
    _spec("ground_elevation", Coercion.TEXT, "Ground Elevation", "Elevation"),
    _spec("roof_height", Coercion.TEXT, "Roof Height"),
    _spec("solar", Coercion.TEXT, "Solar Power", "Solar Panels", "Solar Panel", "Solar"),
    _spec("listing_status", Coercion.TEXT, "Listing Status", "Status"),
    _spec("features", Coercion.LIST, "Key Features", "Features"),
    _spec("latitude", Coercion.COORDINATE, "Latitude", "Lat"),
    _spec("longitude", Coercion.COORDINATE, "Longitude", "Lng", "Lon"),
)

# ---- Price history ----
PRICE_HISTORY_FIELDS: tuple[FieldSpec, ...] = (
    _spec("date", Coercion.DATE, "Date", "Sold", "Listed"),
    _spec("price", Coercion.CURRENCY, "Price", "Amount"),
    _spec("type", Coercion.TEXT, "Type"),
    _spec("event", Coercion.TEXT, "Event"),
)

# ---- Schools ----
SCHOOL_FIELDS: tuple[FieldSpec, ...] = (
    _spec("name", Coercion.TEXT, "School Name", "Name"),
    _spec("type", Coercion.TEXT, "School Type", "Type", "Sector"),
    _spec("rating", Coercion.TEXT, "Rating", "Score"),
    _spec("distance", Coercion.TEXT, "Distance"),
)

# ---- Investment metrics ----
METRIC_FIELDS: tuple[FieldSpec, ...] = (
    _spec("metric", Coercion.TEXT, "Metric"),
    _spec("property", Coercion.CURRENCY, "Property Value", "Property"),
    _spec("suburb_average", Coercion.CURRENCY, "Suburb Average", "Suburb Avg", "Suburb Median"),
    _spec("comparison", Coercion.TEXT, "Comparison"),
)

# ---- Comparable sales ----
COMPARABLE_FIELDS: tuple[FieldSpec, ...] = (
    _spec("address", Coercion.TEXT, "Address"),
    _spec("sold_price", Coercion.CURRENCY, "Sold Price", "Price"),
    _spec("sold_date", Coercion.TEXT, "Sold Date", "Date"),
    _spec("features", Coercion.TEXT, "Features"),
    _spec("latitude", Coercion.COORDINATE, "Latitude", "Lat"),
    _spec("longitude", Coercion.COORDINATE, "Longitude", "Lng", "Lon"),
)

# ---- Listing search cards ----
LISTING_FIELDS: tuple[FieldSpec, ...] = (
    _spec("price", Coercion.TEXT, "Price"),
    _spec("type", Coercion.TEXT, "Type"),
    _spec("beds", Coercion.TEXT, "Beds", "Bedrooms"),
    _spec("baths", Coercion.TEXT, "Baths", "Bathrooms"),
    _spec("cars", Coercion.TEXT, "Cars", "Car Spaces"),
    _spec("land", Coercion.TEXT, "Land", "Land Size"),
    _spec("latitude", Coercion.COORDINATE, "Lat", "Latitude"),
    _spec("longitude", Coercion.COORDINATE, "Lng", "Longitude"),
    _spec("date", Coercion.TEXT, "Listed", "Sold"),
    _spec("summary", Coercion.TEXT, "Summary"),
    _spec("domain", Coercion.TEXT, "Domain"),
    _spec("rea", Coercion.TEXT, "REA"),
    _spec("features", Coercion.TEXT, "Features"),
)


def field_names(fields: tuple[FieldSpec, ...]) -> list[str]:
    return [f.name for f in fields]


def spec_for(fields: tuple[FieldSpec, ...], name: str) -> FieldSpec:
    for f in fields:
        if f.name == name:
            return f
    raise KeyError(f"Unknown field {name!r}")
