"""Add backend to path so 'from models import' resolves when run from project root."""
import os
import sys
import threading

import pytest

_backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)


SAMPLE_REPORT = """Here is the analysis for 12 Smith Street, Parramatta NSW 2150.

## 🏠 Property Overview
- Type: House
- Bedrooms: 4
- Bathrooms: 2
- Living Areas: 2
- Carport Spaces: 2
- Land Size: 650 sqm
- Building Size: 220 sqm
- Solar Power: 6.6kW system
- Listing Status: Sold
- Key Features: Pool, Solar Panels, Renovated Kitchen
- Latitude: -33.8150
- Longitude: 151.0010

## 💡 Investment & Value Insights
- Metric: Estimated Value, Property: $1,250,000, Suburb_Average: $1,100,000, Comparison: Above
- Metric: Estimated Rental, Property: $750/week, Suburb_Average: $700/week, Comparison: Above
- Metric: Rental Yield, Property: 3.1%, Suburb_Average: 3.4%, Comparison: Below
- Metric: Market Interest, Property: High, Suburb_Average: Moderate, Comparison: Average

**Comparable Properties**
- Address: 14 Smith Street, Parramatta NSW, Sold_Price: $1,180,000, Sold_Date: 2024-02-10, Features: 4 bed, 2 bath, Lat: -33.8155, Lng: 151.0015
- Address: 3 Oak Avenue, Parramatta NSW, Sold_Price: $1.3m, Sold_Date: 2023-11-02, Features: 5 bed, pool

## 📈 Price History
- Date: 2015-06-20, Price: $780,000, Type: Sale, Event: Sold
- Date: 2021-03-15, Price: $1,050,000, Type: Sale, Event: Sold
- Date: 2022-07-01, Price: $650 per week, Type: Rent, Event: Leased

## 🏘️ Suburb Profile
Analyze neighborhood vibe.

### Demographics & Community
Young families and professionals, median age 34.

### Lifestyle & Atmosphere
Cafes along Church Street and riverside parks.

### Connectivity & Convenience
Parramatta station is a 10 minute walk.

## 🎓 School Catchment
**FORMAT:**
- Name: Parramatta Public School, Type: Government Primary, Rating: 85/100, Distance: 0.8km
- Name: Arthur Phillip High School, Type: Government Secondary, Rating: 78/100, Distance: 1.2km
"""


SECTION_REPLIES = {
    "## 🏠 Property Overview": "## 🏠 Property Overview\n- Type: House\n- Bedrooms: 3",
    "## 💡 Investment & Value Insights": (
        "## 💡 Investment & Value Insights\n"
        "- Metric: Estimated Value, Property: $900k, Suburb_Average: $850k, Comparison: Above"
    ),
    "## 📈 Price History": "## 📈 Price History\n- Date: 2020-02-02, Price: $700,000, Type: Sale, Event: Sold",
    "## 🏘️ Suburb Profile": "## 🏘️ Suburb Profile\n### Vibe\nQuiet streets.",
    "## 🎓 School Catchment": "## 🎓 School Catchment\n- Name: A School, Type: Public, Rating: 8/10",
}

LISTING_ANSWER = """Here are the best recent matches in Parramatta.

### 12 Smith Street, Parramatta NSW 2150 [FOR SALE]
- Price: $1,250,000
- Type: House
- Beds: 4
- Baths: 2
- Cars: 2
- Land: 650 sqm
- Listed: 2024-05-01
- Summary: Renovated family home close to the station.
- Features: Pool, solar panels, garden shed
- Lat: -33.815
- Lng: 151.001
- Domain: https://www.domain.com.au/12-smith-street-parramatta-nsw-2150-123

### 4 Oak Avenue, Parramatta NSW 2150 - Recently Sold
- Price: $980,000
- Sold: 2024-03-12
- Features: Granny flat, Deck
"""


@pytest.fixture
def sample_report() -> str:
    return SAMPLE_REPORT


@pytest.fixture
def section_replies() -> dict:
    """Section heading -> model reply, one per generation task."""
    return dict(SECTION_REPLIES)


@pytest.fixture
def listing_answer() -> str:
    return LISTING_ANSWER


@pytest.fixture
def isolated_storage(tmp_path, monkeypatch):
    """Point the parse cache and report store at a temp dir."""
    import cache.disk_cache as disk_cache
    import reports_store

    monkeypatch.setattr(disk_cache, "PARSE_CACHE_DIR", tmp_path / "parsed")
    monkeypatch.setattr(reports_store, "REPORTS_DIR", tmp_path / "reports")
    return tmp_path


class FakeProvider:
    """Answers each section prompt from a heading -> text map; optionally fails some headings."""

    def __init__(self, replies: dict, failures: dict | None = None, sources: dict | None = None) -> None:
        self.replies = replies
        self.failures = dict(failures or {})
        self.sources = sources or {}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def generate(self, prompt: str):
        from services.report_generation import ProviderReply

        with self._lock:
            self.calls.append(prompt)
            for marker, text in self.replies.items():
                if marker in prompt:
                    remaining = self.failures.get(marker, 0)
                    if remaining:
                        self.failures[marker] = remaining - 1 if remaining > 0 else remaining
                        raise RuntimeError(f"provider down for {marker}")
                    return ProviderReply(text=text, sources=list(self.sources.get(marker, [])))
        return ProviderReply(text="")


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
