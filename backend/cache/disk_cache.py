"""
Text-hash disk cache for parsed reports.
Parse: key = sha256(report_text + parser_version) -> ReportDocument JSON.
"""
from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

# Cache directory under backend/cache
_CACHE_DIR = Path(__file__).resolve().parent
PARSE_CACHE_DIR = _CACHE_DIR / "parsed"

# Bump when parser output changes shape so stale entries are not served.
PARSER_VERSION = "2"


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def _parse_key(text: str) -> str:
    h = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return hashlib.sha256((h + "|" + PARSER_VERSION).encode()).hexdigest()


def get_cached_parse(text: str) -> dict[str, Any] | None:
    """Return cached ReportDocument as dict, or None."""
    _ensure_dir(PARSE_CACHE_DIR)
    path = PARSE_CACHE_DIR / f"{_parse_key(text)}.json"
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return None


def set_cached_parse(text: str, document_dict: dict[str, Any]) -> None:
    """Store ReportDocument dict in cache."""
    _ensure_dir(PARSE_CACHE_DIR)
    path = PARSE_CACHE_DIR / f"{_parse_key(text)}.json"
    path.write_text(json.dumps(document_dict, default=str), encoding="utf-8")
