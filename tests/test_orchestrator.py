from __future__ import annotations

import random

import pytest

from union_core import config
from union_core.errors import (
    DuplicateAnswer,
    InvalidInput,
    InvalidOptionLevel,
    QuestionNotFound,
    ResultNotAvailable,
    ResultNotFound,
    SessionAlreadyCompleted,
    SessionNotFound,
)
from union_core.levels import nearest_level, zone_for_level
from union_core.orchestrator import TestOrchestrator
from union_core.store import InMemoryStore, SESSIONS
from union_core.types import Category, Phase, SessionState, WarningKind, Zone
from tests.conftest import TickingClock, drive


def _start(orch: TestOrchestrator) -> str:
    return orch.initialize_test_session("self", "in_relationship")


def test_lifecycle_states(orchestrator):
    sid = _start(orchestrator)
    st = orchestrator.get_session_status(sid)
    assert st.state == SessionState.CREATED
    assert st.phase == Phase.ZONING
    assert st.questions_answered == 0

    q = orchestrator.get_next_test_question(sid)
    assert q.category == Category.ZONING
    assert orchestrator.get_session_status(sid).state == SessionState.ACTIVE

    orchestrator.submit_test_answer(sid, q.id, q.choices[0].level)
    assert orchestrator.get_session_status(sid).questions_answered == 1

    res = orchestrator.complete_test_session(sid)
    assert res.session_id == sid
    assert orchestrator.get_session_status(sid).state == SessionState.COMPLETED
    assert res.interpretation is not None


def test_low_zoning_answers_land_in_destructive_zone(orchestrator):
    sid = _start(orchestrator)
    drive(orchestrator, sid, lambda q, n: 2, stop=lambda q: q.category != Category.ZONING)
    st = orchestrator.get_session_status(sid)
    assert st.current_estimate == pytest.approx(2.0)
    assert st.zone == Zone.DESTRUCTIVE

    drive(orchestrator, sid, lambda q, n: 2)
    res = orchestrator.complete_test_session(sid)
    assert res.validation.is_reliable
    assert res.personal_level == pytest.approx(2.0)
    assert res.zone == Zone.DESTRUCTIVE


def test_contradictory_trace_regresses_toward_midpoint(orchestrator):
    def pick(q, n):
        if q.category == Category.ZONING:
            return 10
        if q.category == Category.VALIDATION:
            return 6
        return 1 if n % 2 else 12

    sid = _start(orchestrator)
    drive(orchestrator, sid, pick)
    res = orchestrator.complete_test_session(sid)
    v = res.validation
    assert v.contradiction_count > 0
    assert any(w.kind == WarningKind.CONTRADICTION for w in v.warnings)
    assert not v.is_reliable
    assert not v.spiritual_bypass
    shrink = 1.0 - v.reliability_score
    assert res.personal_level == pytest.approx(res.raw_personal_level + (6.0 - res.raw_personal_level) * shrink)
    assert res.relationship_level == pytest.approx(
        res.raw_relationship_level + (6.0 - res.raw_relationship_level) * shrink
    )


def test_bypass_trace_is_flagged_and_capped(orchestrator, bank):
    def pick(q, n):
        if bank.get(q.id).practical:
            return 3
        return 11

    sid = _start(orchestrator)
    drive(orchestrator, sid, pick)
    res = orchestrator.complete_test_session(sid)
    assert res.validation.spiritual_bypass
    assert any(w.kind == WarningKind.SPIRITUAL_BYPASS for w in res.validation.warnings)
    assert res.personal_level <= config.BYPASS_LEVEL_CEILING
    assert res.relationship_level <= config.BYPASS_LEVEL_CEILING
    assert res.zone != Zone.TRANSCENDENT


def test_completion_errors(orchestrator):
    with pytest.raises(SessionNotFound):
        orchestrator.complete_test_session("missing")

    sid = _start(orchestrator)
    orchestrator.complete_test_session(sid)
    with pytest.raises(SessionAlreadyCompleted):
        orchestrator.complete_test_session(sid)
    with pytest.raises(SessionAlreadyCompleted):
        orchestrator.get_next_test_question(sid)
    # completed beats every other check
    with pytest.raises(SessionAlreadyCompleted):
        orchestrator.submit_test_answer(sid, "nope", 99)


def test_answer_rejections(orchestrator):
    sid = _start(orchestrator)
    q = orchestrator.get_next_test_question(sid)
    orchestrator.submit_test_answer(sid, q.id, 5)
    with pytest.raises(DuplicateAnswer) as exc:
        orchestrator.submit_test_answer(sid, q.id, 6)
    assert exc.value.code == "DUPLICATE_ANSWER"

    for bad in (0, 13, True, "7"):
        with pytest.raises(InvalidOptionLevel):
            orchestrator.submit_test_answer(sid, "z02", bad)
    with pytest.raises(QuestionNotFound):
        orchestrator.submit_test_answer(sid, "zz99", 5)
    with pytest.raises(InvalidInput):
        orchestrator.submit_test_answer(sid, "z02", 5, response_ms=-1)
    with pytest.raises(InvalidInput):
        orchestrator.submit_test_answer(sid, "z02", 5, mode="solo")
    assert orchestrator.get_session_status(sid).questions_answered == 1


def test_answer_mode_override_is_recorded(orchestrator):
    sid = _start(orchestrator)
    orchestrator.submit_test_answer(sid, "z01", 5, mode="potential")
    raw = orchestrator.store.get(SESSIONS, sid)
    assert raw["selector"]["answers"][0]["mode"] == "potential"


def test_initialize_rejects_unknown_enums(orchestrator):
    with pytest.raises(InvalidInput):
        orchestrator.initialize_test_session("solo", "in_relationship")
    with pytest.raises(InvalidInput):
        orchestrator.initialize_test_session("self", "married")


def test_result_availability_and_comparison(orchestrator):
    sid = _start(orchestrator)
    with pytest.raises(ResultNotAvailable):
        orchestrator.get_test_result(sid)

    done = orchestrator.complete_test_session(sid)
    stored = orchestrator.get_test_result(sid)
    assert stored.personal_level == pytest.approx(done.personal_level)
    assert stored.distribution == done.distribution

    with pytest.raises(ResultNotFound):
        orchestrator.compare_test_results(sid, "missing")
    same = orchestrator.compare_test_results(sid, sid)
    assert same.compatibility == 1.0


def test_listing_and_delete(orchestrator):
    a = _start(orchestrator)
    b = _start(orchestrator)
    orchestrator.complete_test_session(b)

    active = {s.session_id for s in orchestrator.get_all_active_sessions()}
    assert active == {a}
    assert [r.session_id for r in orchestrator.get_all_completed_results()] == [b]

    orchestrator.delete_test_session(b)
    with pytest.raises(SessionNotFound):
        orchestrator.get_session_status(b)
    with pytest.raises(ResultNotFound):
        orchestrator.compare_test_results(b, b)
    assert orchestrator.get_all_completed_results() == []
    with pytest.raises(SessionNotFound):
        orchestrator.delete_test_session(b)


def test_latency_derived_from_serve_time(orchestrator):
    sid = _start(orchestrator)
    q = orchestrator.get_next_test_question(sid)
    orchestrator.submit_test_answer(sid, q.id, 5)
    orchestrator.submit_test_answer(sid, "z02", 5, response_ms=800)
    orchestrator.submit_test_answer(sid, "z03", 5)
    trace = orchestrator.export_answer_trace(sid)
    assert [e["latency_ms"] for e in trace] == [3000, 800, None]
    assert trace[0]["phase_before"] == "zoning"
    assert trace[0]["estimate_after"] == pytest.approx(5.0)


def test_audit_trace_skipped_when_disabled(orchestrator, monkeypatch):
    monkeypatch.setattr(config, "AUDIT_EXPORT_ENABLED", False)
    sid = _start(orchestrator)
    orchestrator.submit_test_answer(sid, "z01", 5)
    assert orchestrator.export_answer_trace(sid) == []


def test_expired_session_is_not_found(bank):
    now = [0.0]
    store = InMemoryStore(ttl_sec=60, clock=lambda: now[0])
    orch = TestOrchestrator(store=store, bank=bank, clock=TickingClock())
    sid = _start(orch)
    now[0] = 30.0
    orch.get_next_test_question(sid)
    now[0] = 200.0
    with pytest.raises(SessionNotFound):
        orch.get_session_status(sid)
    assert orch.get_all_active_sessions() == []


def test_random_traces_keep_results_in_range(bank):
    rng = random.Random(11)
    orch = TestOrchestrator(store=InMemoryStore(), bank=bank, clock=TickingClock())
    for _ in range(15):
        sid = _start(orch)
        stop_after = rng.randint(0, 25)
        drive(orch, sid, lambda q, n: rng.randint(1, 12), stop=lambda q: rng.random() < 1.0 / max(1, stop_after))
        res = orch.complete_test_session(sid)
        assert 1.0 <= res.personal_level <= 12.0
        assert 1.0 <= res.relationship_level <= 12.0
        assert sum(res.distribution.values()) == 100
        assert res.zone == zone_for_level(nearest_level(res.personal_level))
        assert 0.0 <= res.validation.reliability_score <= 1.0


def test_high_validation_over_low_refinement_is_bypass(orchestrator):
    def pick(q, n):
        return 3 if q.category == Category.REFINEMENT else 11

    sid = _start(orchestrator)
    drive(orchestrator, sid, pick)
    res = orchestrator.complete_test_session(sid)
    assert res.validation.spiritual_bypass
    assert res.personal_level <= config.BYPASS_LEVEL_CEILING
    assert res.personal_level < 10


def test_completed_session_reports_completed_phase(orchestrator):
    sid = _start(orchestrator)
    orchestrator.submit_test_answer(sid, "z01", 5)
    assert orchestrator.get_session_status(sid).phase == Phase.ZONING

    orchestrator.complete_test_session(sid)
    status = orchestrator.get_session_status(sid)
    assert status.state == SessionState.COMPLETED
    assert status.phase == Phase.COMPLETED
    assert status.to_dict()["phase"] == "completed"


def test_off_menu_level_is_accepted(orchestrator, bank):
    sid = _start(orchestrator)
    offered = bank.get("z01").levels()
    off_menu = next(lvl for lvl in range(1, 13) if lvl not in offered)
    orchestrator.submit_test_answer(sid, "z01", off_menu)
    assert orchestrator.get_session_status(sid).current_estimate == pytest.approx(off_menu)
