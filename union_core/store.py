"""Session and result storage behind a narrow get/put/delete/list interface.

Records are plain JSON-safe dicts keyed by ``(kind, key)``; the orchestrator
owns the conversion to and from engine types. ``InMemoryStore`` is the
default. ``JsonFileStore`` keeps one JSON file per record so the API survives
restarts. Expired records behave exactly like missing ones.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple


log = logging.getLogger(__name__)

SESSIONS = "sessions"
RESULTS = "results"


class SessionStore(Protocol):
    def get(self, kind: str, key: str) -> Optional[Dict[str, Any]]: ...

    def put(self, kind: str, key: str, record: Dict[str, Any]) -> None: ...

    def delete(self, kind: str, key: str) -> bool: ...

    def list(self, kind: str) -> List[Dict[str, Any]]: ...


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    """Process-local store with optional TTL eviction."""

    def __init__(self, ttl_sec: float = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_sec = float(ttl_sec or 0)
        self._clock = clock
        self._data: Dict[str, Dict[str, Tuple[float, Dict[str, Any]]]] = {}
        self._lock = threading.Lock()

    def _expired(self, stamp: float) -> bool:
        return self.ttl_sec > 0 and self._clock() - stamp > self.ttl_sec

    def get(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            bucket = self._data.get(kind, {})
            entry = bucket.get(key)
            if entry is None:
                return None
            stamp, record = entry
            if self._expired(stamp):
                bucket.pop(key, None)
                log.info("evicted expired %s record %s", kind, key)
                return None
            return copy.deepcopy(record)

    def put(self, kind: str, key: str, record: Dict[str, Any]) -> None:
        with self._lock:
            self._data.setdefault(kind, {})[key] = (self._clock(), copy.deepcopy(record))

    def delete(self, kind: str, key: str) -> bool:
        with self._lock:
            return self._data.get(kind, {}).pop(key, None) is not None

    def list(self, kind: str) -> List[Dict[str, Any]]:
        with self._lock:
            bucket = self._data.get(kind, {})
            for key in [k for k, (stamp, _) in bucket.items() if self._expired(stamp)]:
                bucket.pop(key, None)
            return [copy.deepcopy(rec) for _, rec in bucket.values()]


_LOCK = threading.Lock()


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError:
        log.warning("unreadable record %s, treating as missing", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


class JsonFileStore:
    """One JSON file per record under ``root/<kind>/<key>.json``."""

    def __init__(self, root: Path | str, ttl_sec: float = 0):
        self.root = Path(root).resolve()
        self.ttl_sec = float(ttl_sec or 0)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, kind: str, key: str) -> Path:
        if "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"invalid record key {key!r}")
        return self.root / kind / f"{key}.json"

    def _expired(self, envelope: Dict[str, Any]) -> bool:
        return self.ttl_sec > 0 and time.time() - float(envelope.get("stored_at", 0)) > self.ttl_sec

    def get(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(kind, key)
        envelope = _read_json(path, None)
        if envelope is None:
            return None
        if self._expired(envelope):
            self.delete(kind, key)
            return None
        return envelope.get("record")

    def put(self, kind: str, key: str, record: Dict[str, Any]) -> None:
        with _LOCK:
            _write_json(self._path(kind, key), {"stored_at": time.time(), "record": record})

    def delete(self, kind: str, key: str) -> bool:
        path = self._path(kind, key)
        with _LOCK:
            if not path.exists():
                return False
            path.unlink()
            return True

    def list(self, kind: str) -> List[Dict[str, Any]]:
        folder = self.root / kind
        if not folder.exists():
            return []
        out: List[Dict[str, Any]] = []
        for path in sorted(folder.glob("*.json")):
            rec = self.get(kind, path.stem)
            if rec is not None:
                out.append(rec)
        return out
