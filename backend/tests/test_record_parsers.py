"""Per-category record parsers, including malformed input for each."""

import random

import pytest

from models import ComparisonDirection, InvestmentInsights, PriceKind, PropertyAttributes
from parsing.record_parsers import (
    classify_comparison,
    parse_investment,
    parse_price_history,
    parse_property_overview,
    parse_schools,
    parse_suburb_profile,
)


OVERVIEW_LINES = [
    "- Type: House",
    "- Bedrooms: 4",
    "- Bathrooms: 2",
    "- Land Size: 650 sqm",
    "- Listing Status: Sold",
    "- Key Features: Pool, Solar Panels",
    "- Latitude: -33.8150",
    "- Longitude: 151.0010",
]


# ---- Property overview ----

def test_overview_populates_exactly_the_reported_fields() -> None:
    result = parse_property_overview("- Type: Unit\n- Bedrooms: 2\n- Carport Spaces: 1")
    attrs = result.payload
    assert isinstance(attrs, PropertyAttributes)
    assert sorted(attrs.reported_fields()) == ["beds", "carport_spaces", "property_type"]
    assert attrs.baths is None
    assert "baths" in result.missing_fields


def test_overview_is_order_independent() -> None:
    expected = parse_property_overview("\n".join(OVERVIEW_LINES)).payload
    shuffled = list(OVERVIEW_LINES)
    random.Random(7).shuffle(shuffled)
    assert parse_property_overview("\n".join(shuffled)).payload == expected
    assert expected.features == ["Pool", "Solar Panels"]
    assert expected.coordinates == pytest.approx((-33.815, 151.001))


def test_overview_without_fields_has_no_payload() -> None:
    result = parse_property_overview("The property details could not be found.")
    assert result.payload is None
    assert result.records == 0


def test_overview_malformed_values_are_absent_not_zero() -> None:
    attrs = parse_property_overview("- Bedrooms: unknown\n- Latitude: n/a\n- Type: House").payload
    assert attrs.beds is None
    assert attrs.latitude is None
    assert attrs.property_type == "House"


# ---- Price history ----

def test_price_history_points_sorted_newest_first() -> None:
    body = (
        "- Date: 2015-06-20, Price: $780,000, Type: Sale, Event: Sold\n"
        "- Date: 2021-03-15, Price: $1,050,000, Type: Sale, Event: Sold\n"
    )
    points = parse_price_history(body).payload
    assert [p.date for p in points] == ["2021-03-15", "2015-06-20"]
    assert points[0].price == 1_050_000.0
    assert points[0].formatted_price == "$1,050,000"
    assert points[0].kind == PriceKind.SALE


def test_price_history_leased_event_without_type_is_rent() -> None:
    points = parse_price_history("- Date: 2022-07-01, Price: $650 per week, Event: Leased").payload
    assert points[0].kind == PriceKind.RENT
    assert points[0].price == 650.0
    assert points[0].formatted_price == "$650 per week"


def test_price_history_unlabelled_lease_line_is_rent() -> None:
    points = parse_price_history("- Leased 2022-07-01 at $650/week").payload
    assert points[0].kind == PriceKind.RENT
    assert points[0].price == 650.0


def test_price_history_type_field_outranks_line_wording() -> None:
    points = parse_price_history("- Date: 2020-01-01, Price: $900k (previously leased), Type: Sale").payload
    assert points[0].kind == PriceKind.SALE


def test_price_history_no_signal_defaults_to_sale() -> None:
    points = parse_price_history("- Date: 2019-01-01, Price: $900k").payload
    assert points[0].kind == PriceKind.SALE
    assert points[0].price == 900_000.0


def test_price_history_unlabelled_line_uses_date_and_dollar_tokens() -> None:
    points = parse_price_history("- Sold 15/03/2021 for $1,250,000").payload
    assert points[0].date == "2021-03-15"
    assert points[0].price == 1_250_000.0


def test_price_history_month_first_date_is_kept() -> None:
    points = parse_price_history("- Date: 03/15/2021, Price: $1,000,000").payload
    assert points[0].date == "2021-03-15"
    assert points[0].price == 1_000_000.0


def test_price_history_missing_price_is_na() -> None:
    points = parse_price_history("- Date: 2018-05-05, Type: Sale, Event: Listed").payload
    assert points[0].price is None
    assert points[0].formatted_price == "N/A"


def test_price_history_skips_lines_without_dates() -> None:
    result = parse_price_history("- Price: $1,000,000, Type: Sale\nNo records found.")
    assert result.payload is None
    assert result.skipped_lines == 2


# ---- Schools ----

def test_schools_full_line() -> None:
    schools = parse_schools(
        "- Name: Parramatta Public School, Type: Government Primary, Rating: 85/100, Distance: 0.8km"
    ).payload
    assert len(schools) == 1
    s = schools[0]
    assert (s.name, s.school_type, s.rating, s.distance) == (
        "Parramatta Public School", "Government Primary", "85/100", "0.8km",
    )


def test_schools_missing_rating_is_dropped() -> None:
    result = parse_schools(
        "- Name: A School, Type: Government, Distance: 1km\n"
        "- Name: B School, Type: Private, Rating: 9/10"
    )
    assert [s.name for s in result.payload] == ["B School"]
    assert result.skipped_lines == 1


def test_schools_missing_only_distance_keeps_record() -> None:
    schools = parse_schools("- Name: B School, Type: Private, Rating: 9/10").payload
    assert schools[0].distance is None


def test_schools_fields_out_of_order_are_dropped() -> None:
    assert parse_schools("- Rating: 9/10, Name: B School, Type: Private").payload is None


# ---- Investment ----

def test_classify_comparison() -> None:
    assert classify_comparison("Above average") == ComparisonDirection.ABOVE
    assert classify_comparison("slightly BELOW") == ComparisonDirection.BELOW
    assert classify_comparison("In line") == ComparisonDirection.AVERAGE


def test_investment_metrics_and_comparables() -> None:
    body = (
        "- Metric: Estimated Value, Property: $1,250,000, Suburb_Average: $1,100,000, Comparison: Above\n"
        "\n**Comparable Properties**\n"
        "- Address: 14 Smith Street, Parramatta NSW, Sold_Price: $1,180,000, Sold_Date: 2024-02-10, "
        "Features: 4 bed, 2 bath, Lat: -33.8155, Lng: 151.0015\n"
    )
    insights = parse_investment(body).payload
    assert isinstance(insights, InvestmentInsights)
    metric = insights.metrics[0]
    assert metric.label == "Estimated Value"
    assert metric.property_value == "$1,250,000"
    assert metric.property_numeric == 1_250_000.0
    assert metric.suburb_average_numeric == 1_100_000.0
    assert metric.direction == ComparisonDirection.ABOVE
    assert metric.comparison_text == "Above"

    comp = insights.comparables[0]
    assert comp.address == "14 Smith Street, Parramatta NSW"
    assert comp.sold_price == "$1,180,000"
    assert comp.sold_price_numeric == 1_180_000.0
    assert comp.sold_date == "2024-02-10"
    assert comp.features == "4 bed, 2 bath"
    assert comp.feature_tags == ["4 bed", "2 bath"]
    assert comp.coordinates == pytest.approx((-33.8155, 151.0015))


def test_comparable_without_coordinates_or_optional_fields() -> None:
    insights = parse_investment("- Address: 3 Oak Avenue, Sold_Price: $1.3m").payload
    comp = insights.comparables[0]
    assert comp.latitude is None and comp.longitude is None
    assert comp.sold_date == "N/A"
    assert comp.features == "N/A"
    assert comp.sold_price_numeric == pytest.approx(1_300_000.0)
    assert insights.metrics == []


def test_comparable_behind_a_label_is_kept() -> None:
    result = parse_investment(
        "- Comparable 1: Address: 12 Smith St, Sold_Price: $980,000, Sold_Date: 2023-11-02\n"
        "- Rental Yield \u2014 Metric: Rental Yield, Property: 3.1%, Suburb_Average: 3.4%, Comparison: Below"
    )
    insights = result.payload
    assert [c.address for c in insights.comparables] == ["12 Smith St"]
    assert insights.comparables[0].sold_price_numeric == 980_000.0
    assert [m.label for m in insights.metrics] == ["Rental Yield"]
    assert insights.metrics[0].property_numeric == pytest.approx(3.1)
    assert result.skipped_lines == 0


def test_comparable_without_price_is_dropped() -> None:
    result = parse_investment("- Address: 3 Oak Avenue, Sold_Date: 2023-01-01")
    assert result.payload is None
    assert result.skipped_lines == 1


def test_incomplete_metric_line_is_dropped() -> None:
    result = parse_investment("- Metric: Rental Yield, Property: 3.1%, Comparison: Below")
    assert result.payload is None
    assert result.skipped_lines == 1


# ---- Suburb ----

def test_suburb_heading_subsections() -> None:
    body = (
        "Analyze neighborhood vibe.\n\n"
        "### Demographics & Community\nYoung families.\n\n"
        "### Lifestyle & Atmosphere\nCafes and parks.\n"
    )
    subs = parse_suburb_profile(body).payload
    assert [(s.title, s.content) for s in subs] == [
        ("Demographics & Community", "Young families."),
        ("Lifestyle & Atmosphere", "Cafes and parks."),
    ]


def test_suburb_bold_titles_inline_and_own_line() -> None:
    body = "**Vibe:** Leafy streets.\n**Transport:**\nTrains every 10 minutes."
    subs = parse_suburb_profile(body).payload
    assert [(s.title, s.content) for s in subs] == [
        ("Vibe", "Leafy streets."),
        ("Transport", "Trains every 10 minutes."),
    ]


def test_suburb_rejects_empty_and_overlong_blocks() -> None:
    long_title = "A" * 120
    body = f"### Empty\n\n### {long_title}\nsome text\n### Good\nBody"
    result = parse_suburb_profile(body)
    assert [s.title for s in result.payload] == ["Good"]
    assert result.skipped_lines == 2


def test_suburb_leading_block_is_a_subsection() -> None:
    body = "Kenmore overview\nA leafy riverside suburb.\n\n### Lifestyle\nCafes."
    subs = parse_suburb_profile(body).payload
    assert [(s.title, s.content) for s in subs] == [
        ("Kenmore overview", "A leafy riverside suburb."),
        ("Lifestyle", "Cafes."),
    ]


def test_suburb_leading_paragraph_is_rejected_by_title_length() -> None:
    intro = "Kenmore is a leafy riverside suburb " * 4
    result = parse_suburb_profile(f"{intro}\nMore prose.\n### Lifestyle\nCafes.")
    assert [s.title for s in result.payload] == ["Lifestyle"]
    assert result.skipped_lines == 1


def test_suburb_plain_prose_has_no_subsections() -> None:
    result = parse_suburb_profile("A quiet suburb with good transport.")
    assert result.payload is None
    assert result.missing_fields == ["subsections"]
