"""
Market report generation: five section prompts sent concurrently to a web-grounded
chat model, each retried with exponential backoff, then concatenated in task order.

The text this module produces is the input contract of parsing.report_assembler.
"""
from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional, Protocol

from models import GeneratedReport, GroundingSource, ReportDocument, SectionProgress
from parsing.report_assembler import parse_report

logger = logging.getLogger(__name__)

DEFAULT_MODELS = ["gpt-4o-search-preview", "gpt-4o-mini"]
UNAVAILABLE_SECTION = "## ⚠️ Section Unavailable\n{label}: Data unavailable."


class SectionTask(NamedTuple):
    key: str
    label: str
    prompt: str


_BASE_PROMPT = 'Quick analysis for: "{address}". Use web search.'

SECTION_TASKS: tuple[SectionTask, ...] = (
    SectionTask(
        "overview",
        "Property Overview",
        """{base}
Structure your response starting with the header:
## 🏠 Property Overview
Return these details in this EXACT format:
- Type: [Value]
- Bedrooms: [Number]
- Bathrooms: [Number]
- Living Areas: [Number]
- Carport Spaces: [Number]
- Land Size: [Value]
- Building Size: [Value]
- Building Coverage: [Value]
- Ground Elevation: [Value]
- Roof Height: [Value]
- Solar Power: [Value]
- Listing Status: [Status]
- Key Features: [Comma list]
- Latitude: [Decimal]
- Longitude: [Decimal]""",
    ),
    SectionTask(
        "investment",
        "Investment Insights",
        """{base}
Structure your response starting with the header:
## 💡 Investment & Value Insights
Format exactly:
- Metric: Estimated Value, Property: [Value], Suburb_Average: [Value], Comparison: [Above/Below/Average]
- Metric: Estimated Rental, Property: [Value], Suburb_Average: [Value], Comparison: [Above/Below/Average]
- Metric: Rental Yield, Property: [Value], Suburb_Average: [Value], Comparison: [Above/Below/Average]
- Metric: Market Interest, Property: [Value], Suburb_Average: [Value], Comparison: [Above/Below/Average]

**Comparable Properties**
List 5 recent sales in this EXACT format (one per line):
- Address: [Address], Sold_Price: [Price], Sold_Date: [Date], Features: [Summary], Lat: [Value], Lng: [Value]""",
    ),
    SectionTask(
        "history",
        "Price History",
        """{base}
Structure your response starting with the header:
## 📈 Price History
Search domain.com.au, realestate.com.au and property.com.au for the COMPLETE price history of this property.
Find every listing event: Listed for Sale, Sold, Listed for Rent, and Leased.
Return ALL detected records in this EXACT format (one per line):
- Date: YYYY-MM-DD, Price: [Value], Type: [Sale/Rent], Event: [Event Description]""",
    ),
    SectionTask(
        "suburb",
        "Suburb Profile",
        """{base}
Structure your response starting with the header:
## 🏘️ Suburb Profile
Analyze neighborhood vibe.

### Demographics & Community
[Content]

### Lifestyle & Atmosphere
[Content]

### Connectivity & Convenience
[Content]""",
    ),
    SectionTask(
        "schools",
        "School Catchment",
        """{base}
Structure your response starting with the header:
## 🎓 School Catchment
Find school ratings.
**FORMAT:**
- Name: [Name], Type: [Type], Rating: [Score], Distance: [Distance]""",
    ),
)


def build_prompt(task: SectionTask, address: str) -> str:
    return task.prompt.format(base=_BASE_PROMPT.format(address=address.strip()))


# ---- Provider seam ----

@dataclass
class ProviderReply:
    text: str
    sources: list[GroundingSource] = field(default_factory=list)


class ReportProvider(Protocol):
    def generate(self, prompt: str) -> ProviderReply: ...


def _configured_models() -> list[str]:
    configured = (os.environ.get("OPENAI_REPORT_MODEL") or "").strip()
    if not configured:
        return list(DEFAULT_MODELS)
    return [m.strip() for m in configured.split(",") if m.strip()]


def _citations(message) -> list[GroundingSource]:
    sources: list[GroundingSource] = []
    for annotation in getattr(message, "annotations", None) or []:
        if getattr(annotation, "type", None) != "url_citation":
            continue
        citation = getattr(annotation, "url_citation", None)
        uri = getattr(citation, "url", None)
        if not uri:
            continue
        sources.append(GroundingSource(uri=uri, title=getattr(citation, "title", None) or uri))
    return sources


class OpenAIReportProvider:
    """Chat-completions provider; model candidates are tried in order until one answers."""

    def __init__(self, api_key: Optional[str] = None, models: Optional[list[str]] = None) -> None:
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key or not str(api_key).strip():
            raise ValueError("OPENAI_API_KEY not configured")
        try:
            from openai import OpenAI
        except ImportError:
            raise ImportError("openai required: pip install openai")
        self.client = OpenAI(api_key=api_key)
        self.models = models or _configured_models()

    def generate(self, prompt: str) -> ProviderReply:
        last_error: Exception | None = None
        for model in self.models:
            try:
                t0 = time.perf_counter()
                response = self.client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": prompt}],
                )
                elapsed = time.perf_counter() - t0
                logger.info("[generate] LLM call duration=%.2fs model=%s", elapsed, model)
                message = response.choices[0].message
                return ProviderReply(text=(message.content or "").strip(), sources=_citations(message))
            except Exception as e:
                last_error = e
                logger.warning("[generate] model failed model=%s error=%s", model, e)
                continue
        if last_error is not None:
            raise last_error
        raise RuntimeError("No OpenAI model candidates configured")


def ai_configured() -> bool:
    return bool((os.environ.get("OPENAI_API_KEY") or "").strip())


# ---- Orchestration ----

def _retry_settings() -> tuple[int, float]:
    try:
        retries = max(1, int(os.environ.get("REPORT_MAX_RETRIES", "3")))
    except ValueError:
        retries = 3
    try:
        base_delay = max(0.0, float(os.environ.get("REPORT_RETRY_BASE_SECONDS", "1.0")))
    except ValueError:
        base_delay = 1.0
    return retries, base_delay


ProgressCallback = Callable[[SectionProgress], None]


def _notify(on_progress: Optional[ProgressCallback], progress: SectionProgress) -> None:
    if on_progress is None:
        return
    try:
        on_progress(progress)
    except Exception as e:
        logger.warning("[generate] progress callback failed key=%s error=%s", progress.key, e)


def _run_task(
    task: SectionTask,
    address: str,
    provider: ReportProvider,
    retries: int,
    base_delay: float,
    on_progress: Optional[ProgressCallback],
) -> tuple[ProviderReply, SectionProgress]:
    started = time.time()
    prompt = build_prompt(task, address)
    for attempt in range(1, retries + 1):
        try:
            reply = provider.generate(prompt)
            progress = SectionProgress(
                key=task.key,
                label=task.label,
                status="completed",
                started_at=started,
                finished_at=time.time(),
                attempts=attempt,
            )
            _notify(on_progress, progress)
            return reply, progress
        except Exception as e:
            logger.warning(
                "[generate] section failed key=%s attempt=%d/%d error=%s",
                task.key, attempt, retries, e,
            )
            if attempt < retries:
                time.sleep(base_delay * (2 ** (attempt - 1)))
    logger.warning("[generate] section unavailable key=%s; substituting placeholder", task.key)
    progress = SectionProgress(
        key=task.key,
        label=task.label,
        status="error",
        started_at=started,
        finished_at=time.time(),
        attempts=retries,
    )
    _notify(on_progress, progress)
    return ProviderReply(text=UNAVAILABLE_SECTION.format(label=task.label)), progress


def merge_sources(groups: list[list[GroundingSource]]) -> list[GroundingSource]:
    """Flatten source lists; first title per URI wins, entries without URI or title are dropped."""
    seen: set[str] = set()
    merged: list[GroundingSource] = []
    for group in groups:
        for source in group:
            if not source.uri or not source.title or source.uri in seen:
                continue
            seen.add(source.uri)
            merged.append(source)
    return merged


def generate_report(
    address: str,
    provider: Optional[ReportProvider] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> GeneratedReport:
    """
    Run every section prompt concurrently and aggregate once all have completed or failed.

    A section whose retries are exhausted is replaced by a placeholder that parses as a
    generic section, so one failure never aborts the report.
    """
    address = (address or "").strip()
    if not address:
        raise ValueError("address is required")
    provider = provider or OpenAIReportProvider()
    retries, base_delay = _retry_settings()

    for task in SECTION_TASKS:
        _notify(on_progress, SectionProgress(key=task.key, label=task.label, status="pending", started_at=time.time()))

    t0 = time.perf_counter()
    with ThreadPoolExecutor(max_workers=len(SECTION_TASKS)) as pool:
        futures = [
            pool.submit(_run_task, task, address, provider, retries, base_delay, on_progress)
            for task in SECTION_TASKS
        ]
        results = [f.result() for f in futures]

    texts = [reply.text for reply, _ in results if reply.text]
    report = GeneratedReport(
        text="\n\n".join(texts) + "\n",
        sources=merge_sources([reply.sources for reply, _ in results]),
        progress=[progress for _, progress in results],
    )
    failed = sum(1 for p in report.progress if p.status == "error")
    logger.info(
        "[generate] address=%r sections=%d failed=%d sources=%d duration=%.2fs",
        address, len(results), failed, len(report.sources), time.perf_counter() - t0,
    )
    return report


def analyze_property(
    address: str,
    provider: Optional[ReportProvider] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> tuple[GeneratedReport, ReportDocument]:
    report = generate_report(address, provider=provider, on_progress=on_progress)
    return report, parse_report(report.text)
