"""
Store and retrieve analysis JSON files on disk.
"""
from __future__ import annotations

import json
import re
import uuid
from pathlib import Path

REPORTS_DIR = Path(__file__).resolve().parent / "reports"

_RE_REPORT_ID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def ensure_reports_dir() -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    return REPORTS_DIR


def save_report(data: dict) -> str:
    report_id = str(uuid.uuid4())
    ensure_reports_dir()
    path = REPORTS_DIR / f"{report_id}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return report_id


def load_report(report_id: str) -> dict | None:
    # ids come from URLs; anything that is not a uuid never touches the filesystem
    if not _RE_REPORT_ID.match(report_id or ""):
        return None
    path = REPORTS_DIR / f"{report_id}.json"
    if not path.is_file():
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)
