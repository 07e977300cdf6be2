from __future__ import annotations

import pytest

from union_core import config
from union_core import validators
from union_core.types import Category, Dimension, ReliabilityBand, WarningKind
from union_core.question_bank import QuestionBank
from tests.conftest import make_answer, make_question


def _bank() -> QuestionBank:
    return QuestionBank([
        make_question("a1", Category.ZONING, topic="trust", sensitive=True, priority=1),
        make_question("a2", Category.REFINEMENT, topic="trust"),
        make_question("a3", Category.REFINEMENT, topic="trust", practical=True),
        make_question("b1", Category.ZONING, topic="growth", dimension=Dimension.PERSONAL, priority=1),
        make_question("b2", Category.REFINEMENT, topic="growth", dimension=Dimension.PERSONAL, practical=True),
        make_question("v1", Category.VALIDATION, topic="growth", dimension=Dimension.PERSONAL),
        make_question("v2", Category.VALIDATION, topic="trust"),
    ])


def test_consistent_trace_is_reliable_and_clean():
    bank = _bank()
    answers = [make_answer(qid, 7) for qid in ("a1", "a2", "a3", "b1", "b2", "v1", "v2")]
    res = validators.validate_answers(answers, bank)
    assert res.contradiction_count == 0
    assert res.coherence == pytest.approx(1.0)
    assert not res.spiritual_bypass
    assert not res.speed_anomaly
    assert res.answer_count == len(answers)
    # only the short-trace pattern warning remains
    assert {w.kind for w in res.warnings} == {WarningKind.PATTERN}


def test_speed_counts_only_sensitive_or_critical():
    bank = _bank()
    answers = [
        make_answer("a1", 6, response_ms=300),   # sensitive and critical
        make_answer("b1", 6, response_ms=200),   # critical
        make_answer("a2", 6, response_ms=100),   # neither
        make_answer("b2", 6, response_ms=None),
    ]
    fast, seen, ids = validators.detect_speed_anomalies(validators._resolve(answers, bank))
    assert (fast, seen) == (2, 2)
    assert ids == ["a1", "b1"]
    res = validators.validate_answers(answers, bank)
    assert res.speed_anomaly
    speed = [w for w in res.warnings if w.kind == WarningKind.SPEED]
    assert speed and speed[0].question_ids == ("a1", "b1")


def test_contradictions_within_topic_only():
    bank = _bank()
    answers = [
        make_answer("a1", 2),
        make_answer("a2", 11),   # same topic as a1, gap 9
        make_answer("b1", 11),   # other topic, ignored against a1
        make_answer("b2", 10),
    ]
    res = validators.validate_answers(answers, bank)
    assert res.contradictions == (("a1", "a2"),)
    warn = [w for w in res.warnings if w.kind == WarningKind.CONTRADICTION]
    assert len(warn) == 1
    assert warn[0].question_ids == ("a1", "a2")
    assert warn[0].severity.value == "high"


def test_gap_at_tolerance_is_not_a_contradiction():
    bank = _bank()
    answers = [make_answer("a1", 3), make_answer("a2", 3 + config.CONTRADICTION_TOLERANCE)]
    assert validators.validate_answers(answers, bank).contradiction_count == 0


def test_coherence_drops_with_spread():
    bank = _bank()
    tight = [make_answer(q, lvl) for q, lvl in (("a1", 6), ("a2", 7), ("a3", 6))]
    wide = [make_answer(q, lvl) for q, lvl in (("a1", 1), ("a2", 12), ("a3", 1))]
    c_tight = validators.validate_answers(tight, bank).coherence
    c_wide = validators.validate_answers(wide, bank).coherence
    assert c_tight > 0.9
    assert c_wide < config.COHERENCE_WARN
    assert c_wide < c_tight


def test_spiritual_bypass_flag_and_penalty():
    bank = _bank()
    answers = [
        make_answer("a1", 11),
        make_answer("a2", 11),
        make_answer("a3", 3),    # practical
        make_answer("b2", 3),    # practical
        make_answer("v1", 11),
        make_answer("v2", 11),
    ]
    res = validators.validate_answers(answers, bank)
    assert res.spiritual_bypass
    assert res.bypass_penalty == pytest.approx(1.0)
    bypass = [w for w in res.warnings if w.kind == WarningKind.SPIRITUAL_BYPASS]
    assert bypass and "v1" in bypass[0].question_ids


def test_no_bypass_when_practice_backs_aspiration():
    bank = _bank()
    answers = [make_answer(q, 10) for q in ("a1", "a2", "a3", "b2", "v1", "v2")]
    assert not validators.validate_answers(answers, bank).spiritual_bypass


def test_reliability_non_increasing_in_contradictions():
    scores = [validators.combine_signals(0.1, n, 0.8, 0.0) for n in range(0, 12)]
    assert all(b <= a for a, b in zip(scores, scores[1:]))
    assert scores[-1] < scores[0]


def test_reliability_bounds_and_completeness():
    assert validators.combine_signals(0.0, 0, 1.0, 0.0) == pytest.approx(1.0)
    assert validators.combine_signals(1.0, 99, 0.0, 1.0) == pytest.approx(0.0)
    assert validators.combine_signals(0.0, 0, 1.0, 0.0, completeness=0.5) == pytest.approx(0.5)


def test_reliability_messages_by_band():
    assert validators.reliability_band(0.9) == ReliabilityBand.HIGH
    assert validators.reliability_band(0.6) == ReliabilityBand.MEDIUM
    assert validators.reliability_band(0.2) == ReliabilityBand.LOW
    assert validators.get_reliability_message(0.9).startswith("High")
    assert validators.get_reliability_message(0.2).startswith("Low")


def test_warnings_kept_when_reliable(monkeypatch):
    monkeypatch.setattr(config, "MIN_ANSWERS_FOR_FULL_RELIABILITY", 4)
    bank = _bank()
    answers = [make_answer("a1", 2), make_answer("a2", 8), make_answer("b1", 5), make_answer("b2", 5)]
    res = validators.validate_answers(answers, bank)
    assert res.is_reliable
    assert any(w.kind == WarningKind.CONTRADICTION for w in res.warnings)


def test_recommendations_follow_dominant_signal():
    recs = validators.recommendations_for(0.0, 5, 0.9, 0.0, 1.0)
    assert recs[0].startswith("Resolve contradictory answers")
    calm = validators.recommendations_for(0.0, 0, 1.0, 0.0, 1.0)
    assert calm == ["Your answers look consistent, no retake is needed."]
