from __future__ import annotations

import logging
import os
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so OPENAI_API_KEY etc. are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from cache.disk_cache import get_cached_parse, set_cached_parse
from models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ListingSearchRequest,
    ListingSearchResponse,
    ParseRequest,
    ReportDocument,
    SectionKind,
)
from parsing.report_assembler import parse_report
from reporting.chart_data import PriceChart, build_price_series
from reports_store import load_report, save_report
from services.listing_search import search_listings
from services.report_generation import OpenAIReportProvider, ReportProvider, analyze_property

_LOG = logging.getLogger("uvicorn.error")

# Version for /health and startup log (Render sets RENDER_GIT_COMMIT)
VERSION = (os.environ.get("RENDER_GIT_COMMIT") or "").strip() or "unknown"


def _ai_enabled() -> bool:
    key = os.getenv("OPENAI_API_KEY", "")
    return bool(key and key.strip())


def _report_provider() -> ReportProvider:
    return OpenAIReportProvider()


app = FastAPI(title="Property Report Backend", version="0.1.0")

# CORS: use ALLOWED_ORIGINS env (comma-separated) if set, else default
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)


@app.on_event("startup")
def startup_log() -> None:
    ai_enabled = _ai_enabled()
    port = os.environ.get("PORT", "8010")
    host = os.environ.get("HOST", "127.0.0.1")
    _LOG.info(
        "Backend starting on http://%s:%s (OPENAI_API_KEY configured: %s) version=%s",
        host, port, ai_enabled, VERSION,
    )
    if not ai_enabled:
        _LOG.warning("OPENAI_API_KEY is not set. /analyze and /search will return 503; /parse still works.")


@app.get("/health")
def health():
    return {
        "status": "ok",
        "ai_enabled": _ai_enabled(),
        "version": VERSION,
    }


def _raise_provider_error(e: Exception, what: str) -> None:
    """Map provider failures to HTTP errors; always raises."""
    msg = str(e)
    low = msg.lower()
    if "OPENAI_API_KEY" in msg:
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY not configured.") from e
    if "rate limit" in low or "quota" in low or "429" in low:
        raise HTTPException(status_code=429, detail="API rate limit or quota exceeded. Please try again later.") from e
    if isinstance(e, ImportError):
        raise HTTPException(status_code=503, detail="openai package not installed on backend.") from e
    if isinstance(e, ValueError):
        raise HTTPException(status_code=400, detail=msg) from e
    raise HTTPException(status_code=500, detail=f"{what} failed: {msg}") from e


@app.post("/parse", response_model=ReportDocument)
def parse_text(req: ParseRequest) -> ReportDocument:
    """Parse already-generated report text. Deterministic, so results are cached by text hash."""
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Report text is empty")
    cached = get_cached_parse(req.text)
    if cached is not None:
        try:
            return ReportDocument.model_validate(cached)
        except ValueError:
            _LOG.warning("[parse] discarding unreadable cache entry")
    document = parse_report(req.text)
    set_cached_parse(req.text, document.model_dump(mode="json"))
    return document


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    address = req.address.strip()
    if not address:
        raise HTTPException(status_code=400, detail="Address is empty")
    if not _ai_enabled():
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY not configured.")
    try:
        report, document = analyze_property(address, provider=_report_provider())
    except Exception as e:
        _LOG.warning("[analyze] failed address=%r error=%s", address, e)
        _raise_provider_error(e, "Property analysis")
    payload = {
        "address": address,
        "text": report.text,
        "document": document.model_dump(mode="json"),
        "sources": [s.model_dump(mode="json") for s in report.sources],
        "progress": [p.model_dump(mode="json") for p in report.progress],
    }
    report_id = save_report(payload)
    _LOG.info("[analyze] saved report_id=%s sections=%d", report_id, len(document.sections))
    return AnalyzeResponse(
        report_id=report_id,
        address=address,
        document=document,
        sources=report.sources,
        progress=report.progress,
    )


def _load_or_404(report_id: str) -> dict:
    data = load_report(report_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return data


@app.get("/reports/{report_id}", response_model=AnalyzeResponse)
def get_report(report_id: str) -> AnalyzeResponse:
    data = _load_or_404(report_id)
    return AnalyzeResponse(
        report_id=report_id,
        address=data.get("address", ""),
        document=ReportDocument.model_validate(data.get("document") or {}),
        sources=data.get("sources") or [],
        progress=data.get("progress") or [],
    )


@app.get("/reports/{report_id}/price-chart", response_model=PriceChart)
def get_price_chart(report_id: str) -> PriceChart:
    data = _load_or_404(report_id)
    document = ReportDocument.model_validate(data.get("document") or {})
    section = document.section(SectionKind.PRICE_HISTORY)
    points = section.payload if section is not None and isinstance(section.payload, list) else []
    return build_price_series(points)


@app.post("/search", response_model=ListingSearchResponse)
def search(req: ListingSearchRequest) -> ListingSearchResponse:
    query = req.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query is empty")
    if not _ai_enabled():
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY not configured.")
    try:
        return search_listings(query, provider=_report_provider())
    except Exception as e:
        _LOG.warning("[search] failed query=%r error=%s", query, e)
        _raise_provider_error(e, "Listing search")


def get_app() -> FastAPI:
    """
    Convenience accessor for ASGI servers.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8010")),
        reload=True,
    )
