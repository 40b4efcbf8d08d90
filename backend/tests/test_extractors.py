"""Single-field extractors and their coercions."""

import pytest

from parsing.extractors import (
    coerce_count,
    coerce_date,
    coerce_list,
    extract_coordinate,
    extract_count,
    extract_currency,
    extract_date,
    extract_field,
    extract_list,
    extract_text,
    find_dollar_amount,
)
from parsing.field_vocabulary import METRIC_FIELDS, PRICE_HISTORY_FIELDS


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2021-03-15", "2021-03-15"),
        ("15/03/2021", "2021-03-15"),
        ("5.3.2021", "2021-03-05"),
        ("15 March 2021", "2021-03-15"),
        ("March 15, 2021", "2021-03-15"),
        ("Sold in March 2021 at auction", "2021-03-01"),
        ("03/15/2021", "2021-03-15"),
        ("05/03/2021", "2021-03-05"),
        ("31/02/2021", None),
        ("2021-15-03", "2021-03-15"),
        ("no date here", None),
        ("", None),
    ],
)
def test_coerce_date(text: str, expected) -> None:
    assert coerce_date(text) == expected


def test_coerce_count_takes_first_number() -> None:
    assert coerce_count("4 (plus study)") == "4"
    assert coerce_count("two") is None


def test_coerce_list_stops_at_sentence_end() -> None:
    assert coerce_list("Pool, Solar Panels, Garage. Close to schools, parks") == ["Pool", "Solar Panels", "Garage"]
    assert coerce_list("6.6kW solar, pool") == ["6.6kW solar", "pool"]
    assert coerce_list(" , ") is None


def test_extract_text_and_count_on_block() -> None:
    block = "- Type: House\n- Bedrooms: 4\n- Land Size: 650 sqm"
    assert extract_text(block, "property_type") == "House"
    assert extract_count(block, "beds") == "4"
    assert extract_text(block, "land_size") == "650 sqm"
    assert extract_count(block, "baths") is None


def test_extract_field_skips_unusable_occurrence() -> None:
    block = "- Parking: street parking\n- Carport: 2"
    assert extract_field(block, "carport_spaces") == "2"


def test_extract_coordinate_and_list() -> None:
    block = "- Latitude: -33.8150\n- Longitude: 151.0010\n- Key Features: Pool, Deck"
    assert extract_coordinate(block, "latitude") == pytest.approx(-33.815)
    assert extract_coordinate(block, "longitude") == pytest.approx(151.001)
    assert extract_list(block, "features") == ["Pool", "Deck"]


def test_extract_coordinate_missing_or_malformed() -> None:
    assert extract_coordinate("- Latitude: unknown", "latitude") is None
    assert extract_coordinate("- Type: House", "latitude") is None


def test_extract_currency_keeps_display() -> None:
    line = "Metric: Estimated Value, Property: $1,250,000, Suburb_Average: 1.1m, Comparison: Above"
    prop = extract_currency(line, "property", METRIC_FIELDS)
    avg = extract_currency(line, "suburb_average", METRIC_FIELDS)
    assert prop.numeric_value == 1_250_000.0 and prop.display_text == "$1,250,000"
    assert avg.numeric_value == pytest.approx(1_100_000.0)


def test_extract_date_falls_back_to_any_date_token() -> None:
    assert extract_date("Date: 2021-03-15, Price: $1", "date", PRICE_HISTORY_FIELDS) == "2021-03-15"
    assert extract_date("Sold 15/03/2021 for $1,000,000") == "2021-03-15"


def test_find_dollar_amount() -> None:
    assert find_dollar_amount("Sold on 2021-03-15 for $1,250,000 at auction") == "$1,250,000"
    assert find_dollar_amount("Passed in at $1.2m") == "$1.2m"
    assert find_dollar_amount("No price disclosed") is None
