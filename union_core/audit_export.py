"""Per-answer audit trace rendered as a JSON payload or a CSV table.

Events come from ``TestOrchestrator.export_answer_trace``. A latency of
``None`` means the question was answered without being served first, so the
answer time is unknown; it stays ``None`` (``null`` in JSON, an empty CSV
cell) rather than reading as an instant answer.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import csv
import io


def _text(val: Any) -> str:
    return "" if val is None else str(val)


def _level(val: Any) -> Optional[int]:
    return None if val is None else int(val)


def _latency(val: Any) -> Optional[int]:
    if val is None:
        return None
    return max(0, int(val))


def _estimate(val: Any) -> Optional[float]:
    return None if val is None else round(float(val), 4)


_COLUMNS: Tuple[Tuple[str, Callable[[Any], Any]], ...] = (
    ("t", _text),
    ("question_id", _text),
    ("category", _text),
    ("dimension", _text),
    ("level", _level),
    ("latency_ms", _latency),
    ("phase_before", _text),
    ("phase_after", _text),
    ("estimate_before", _estimate),
    ("estimate_after", _estimate),
    ("confidence", _estimate),
)

FIELDS: Tuple[str, ...] = tuple(name for name, _ in _COLUMNS)


def normalize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    return {name: convert(event.get(name)) for name, convert in _COLUMNS}


def to_json(events: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = [normalize_event(evt or {}) for evt in events]
    return {"count": len(rows), "events": rows}


def to_csv(events: Iterable[Dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(FIELDS)
    for evt in events:
        row = normalize_event(evt or {})
        writer.writerow(["" if row[name] is None else row[name] for name in FIELDS])
    return buf.getvalue()


__all__ = ["FIELDS", "normalize_event", "to_json", "to_csv"]
