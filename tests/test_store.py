from __future__ import annotations

import json

import pytest

from union_core.orchestrator import TestOrchestrator
from union_core.store import InMemoryStore, JsonFileStore, RESULTS, SESSIONS
from union_core.types import SessionState
from tests.conftest import TickingClock, drive


def _answered(orch: TestOrchestrator, sid: str) -> int:
    return orch.get_session_status(sid).questions_answered


def test_json_store_round_trip(tmp_path):
    store = JsonFileStore(tmp_path)
    store.put(SESSIONS, "abc", {"id": "abc", "levels": [1, 2, 3]})
    assert store.get(SESSIONS, "abc") == {"id": "abc", "levels": [1, 2, 3]}
    assert (tmp_path / SESSIONS / "abc.json").exists()
    assert store.get(SESSIONS, "missing") is None
    assert store.get(RESULTS, "abc") is None


def test_json_store_delete_and_list(tmp_path):
    store = JsonFileStore(tmp_path)
    for key in ("b", "a"):
        store.put(RESULTS, key, {"id": key})
    assert [r["id"] for r in store.list(RESULTS)] == ["a", "b"]
    assert store.delete(RESULTS, "a") is True
    assert store.delete(RESULTS, "a") is False
    assert [r["id"] for r in store.list(RESULTS)] == ["b"]
    assert store.list(SESSIONS) == []


def test_json_store_rejects_path_keys(tmp_path):
    store = JsonFileStore(tmp_path)
    for key in ("../x", "a/b", ".hidden"):
        with pytest.raises(ValueError):
            store.put(SESSIONS, key, {})


def test_json_store_ttl_expires_by_stored_at(tmp_path):
    store = JsonFileStore(tmp_path, ttl_sec=60)
    store.put(SESSIONS, "old", {"id": "old"})
    store.put(SESSIONS, "new", {"id": "new"})
    path = tmp_path / SESSIONS / "old.json"
    envelope = json.loads(path.read_text(encoding="utf-8"))
    envelope["stored_at"] -= 3600
    path.write_text(json.dumps(envelope), encoding="utf-8")

    assert store.get(SESSIONS, "old") is None
    assert not path.exists(), "expired record should be removed"
    assert [r["id"] for r in store.list(SESSIONS)] == ["new"]


def test_json_store_treats_corrupt_file_as_missing(tmp_path):
    store = JsonFileStore(tmp_path)
    folder = tmp_path / SESSIONS
    folder.mkdir(parents=True)
    (folder / "broken.json").write_text("{not json", encoding="utf-8")
    assert store.get(SESSIONS, "broken") is None


def test_memory_store_copies_and_expires():
    now = [100.0]
    store = InMemoryStore(ttl_sec=10, clock=lambda: now[0])
    rec = {"id": "x", "items": [1]}
    store.put(SESSIONS, "x", rec)
    rec["items"].append(2)
    got = store.get(SESSIONS, "x")
    assert got == {"id": "x", "items": [1]}
    got["items"].append(3)
    assert store.get(SESSIONS, "x")["items"] == [1]

    now[0] = 105.0
    assert store.list(SESSIONS)
    now[0] = 111.0
    assert store.get(SESSIONS, "x") is None
    assert store.list(SESSIONS) == []


def test_orchestrator_survives_restart_on_json_store(tmp_path, bank):
    first = TestOrchestrator(store=JsonFileStore(tmp_path), bank=bank, clock=TickingClock())
    sid = first.initialize_test_session("potential", "single_potential")
    drive(first, sid, lambda q, n: 7, stop=lambda q: _answered(first, sid) >= 3)

    second = TestOrchestrator(store=JsonFileStore(tmp_path), bank=bank, clock=TickingClock())
    status = second.get_session_status(sid)
    assert status.questions_answered == 3
    assert status.state == SessionState.ACTIVE

    drive(second, sid, lambda q, n: 7)
    done = second.complete_test_session(sid)
    again = first.get_test_result(sid)
    assert again.personal_level == pytest.approx(done.personal_level)
    assert again.distribution == done.distribution
    assert again.interpretation.level_name == done.interpretation.level_name
