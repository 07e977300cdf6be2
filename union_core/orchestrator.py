# union_core/orchestrator.py
from __future__ import annotations
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging, uuid

from . import config
from .errors import (
    DuplicateAnswer,
    InvalidInput,
    InvalidOptionLevel,
    ResultNotAvailable,
    ResultNotFound,
    SessionAlreadyCompleted,
    SessionNotFound,
)
from .insights import compare_results, interpret_result
from .policy import QuestionPolicy, SelectorState
from .question_bank import QuestionBank, default_bank, render
from .scoring import calculate_test_result, parse_mode, parse_status
from .store import InMemoryStore, RESULTS, SESSIONS, SessionStore
from .types import (
    Answer,
    PairComparison,
    Phase,
    PresentedQuestion,
    RelationshipStatus,
    Session,
    SessionState,
    SessionStatus,
    TestMode,
    TestResult,
)
from .validators import validate_answers


log = logging.getLogger(__name__)


def _emit_trace(**values: object) -> None:
    if not config.DEBUG_TRACE:
        return
    ordered = []
    for key in config.TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(ordered))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _session_to_record(s: Session) -> Dict[str, Any]:
    return {
        "id": s.id,
        "mode": s.mode.value,
        "relationship_status": s.relationship_status.value,
        "state": s.state.value,
        "created_at": s.created_at,
        "selector": s.selector.to_dict(),
        "served_at": dict(s.served_at),
        "audit_events": list(s.audit_events),
    }


def _session_from_record(raw: Dict[str, Any]) -> Session:
    return Session(
        id=raw["id"],
        mode=TestMode(raw["mode"]),
        relationship_status=RelationshipStatus(raw["relationship_status"]),
        state=SessionState(raw["state"]),
        created_at=raw["created_at"],
        selector=SelectorState.from_dict(raw["selector"]),
        served_at=dict(raw.get("served_at") or {}),
        audit_events=list(raw.get("audit_events") or []),
    )


def _check_level(option_level: object) -> int:
    # any ladder level is accepted, not only the levels of the offered options
    if isinstance(option_level, bool) or not isinstance(option_level, int):
        raise InvalidOptionLevel(option_level)
    if not (config.LEVEL_MIN <= option_level <= config.LEVEL_MAX):
        raise InvalidOptionLevel(option_level)
    return option_level


class TestOrchestrator:
    """Session lifecycle: created -> active -> validating -> completed."""

    __test__ = False

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        bank: Optional[QuestionBank] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store: SessionStore = store if store is not None else InMemoryStore(ttl_sec=config.SESSION_TTL_SEC)
        self.bank = bank if bank is not None else default_bank()
        self.policy = QuestionPolicy(self.bank)
        self._clock = clock

    # ---- helpers ----

    def _now(self) -> datetime:
        return self._clock()

    def _load(self, session_id: str) -> Session:
        raw = self.store.get(SESSIONS, session_id)
        if raw is None:
            raise SessionNotFound(session_id)
        return _session_from_record(raw)

    def _load_open(self, session_id: str) -> Session:
        sess = self._load(session_id)
        if sess.state == SessionState.COMPLETED:
            raise SessionAlreadyCompleted(session_id)
        return sess

    def _save(self, sess: Session) -> None:
        self.store.put(SESSIONS, sess.id, _session_to_record(sess))

    def _status(self, sess: Session) -> SessionStatus:
        det = self.policy.current_level_detection(sess.selector)
        phase = Phase.COMPLETED if sess.state == SessionState.COMPLETED else sess.selector.phase
        return SessionStatus(
            session_id=sess.id,
            state=sess.state,
            phase=phase,
            mode=sess.mode,
            questions_answered=len(sess.selector.answers),
            current_estimate=det.estimate,
            zone=det.zone,
            confidence=det.confidence,
        )

    def _latency_ms(self, sess: Session, question_id: str, now: datetime) -> Optional[int]:
        served = sess.served_at.get(question_id)
        if not served:
            return None
        delta = now - datetime.fromisoformat(served)
        return max(0, int(delta.total_seconds() * 1000))

    # ---- lifecycle ----

    def initialize_test_session(self, mode: TestMode | str, relationship_status: RelationshipStatus | str) -> str:
        tm = parse_mode(mode)
        status = parse_status(relationship_status)
        sid = str(uuid.uuid4())
        sess = Session(
            id=sid,
            mode=tm,
            relationship_status=status,
            state=SessionState.CREATED,
            created_at=self._now().isoformat(),
            selector=self.policy.initialize(tm, status),
        )
        self._save(sess)
        log.info("session %s started mode=%s status=%s", sid, tm.value, status.value)
        return sid

    def get_next_test_question(self, session_id: str) -> Optional[PresentedQuestion]:
        sess = self._load_open(session_id)
        q = self.policy.next_question(sess.selector)
        if q is not None:
            sess.served_at[q.id] = self._now().isoformat()
            sess.state = SessionState.ACTIVE
        self._save(sess)
        if q is None:
            log.info("session %s ready to complete after %d answers", session_id, len(sess.selector.answers))
            return None
        return render(q, sess.mode)

    def submit_test_answer(
        self,
        session_id: str,
        question_id: str,
        option_level: int,
        mode: TestMode | str | None = None,
        *,
        response_ms: Optional[int] = None,
    ) -> None:
        sess = self._load_open(session_id)
        q = self.bank.get(question_id)
        level = _check_level(option_level)
        if question_id in sess.selector.answered_ids():
            raise DuplicateAnswer(session_id, question_id)
        answer_mode = parse_mode(mode) if mode is not None else sess.mode

        now = self._now()
        if response_ms is None:
            latency = self._latency_ms(sess, question_id, now)
        else:
            if isinstance(response_ms, bool) or not isinstance(response_ms, int) or response_ms < 0:
                raise InvalidInput(f"response_ms must be a non-negative integer, got {response_ms!r}")
            latency = response_ms

        st = sess.selector
        phase_before, estimate_before = st.phase, st.estimate
        answer = Answer(
            question_id=question_id,
            level=level,
            response_ms=latency,
            answered_at=now.isoformat(),
            mode=answer_mode,
        )
        self.policy.record_answer(st, answer)
        sess.state = SessionState.ACTIVE
        confidence = self.policy.current_level_detection(st).confidence

        if config.AUDIT_EXPORT_ENABLED:
            sess.audit_events.append({
                "t": answer.answered_at,
                "question_id": question_id,
                "category": q.category.value,
                "dimension": q.dimension.value,
                "level": level,
                "latency_ms": latency,
                "phase_before": phase_before.value,
                "phase_after": st.phase.value,
                "estimate_before": estimate_before,
                "estimate_after": st.estimate,
                "confidence": confidence,
            })
        _emit_trace(
            session_id=session_id,
            question_id=question_id,
            category=q.category.value,
            level=level,
            phase_before=phase_before.value,
            phase_after=st.phase.value,
            estimate_before=f"{estimate_before:.3f}",
            estimate_after=f"{st.estimate:.3f}",
            confidence=f"{confidence:.3f}",
        )
        self._save(sess)

    def complete_test_session(self, session_id: str) -> TestResult:
        sess = self._load_open(session_id)
        sess.state = SessionState.VALIDATING
        answers = list(sess.selector.answers)

        validation = validate_answers(answers, self.bank)
        result = calculate_test_result(
            session_id,
            answers,
            validation,
            sess.mode,
            sess.relationship_status,
            bank=self.bank,
            created_at=self._now().isoformat(),
        )
        interpretation = interpret_result(
            result.personal_level,
            result.relationship_level,
            result.zone,
            validation,
            mode=sess.mode,
            relationship_status=sess.relationship_status,
        )
        result = replace(result, interpretation=interpretation)

        self.store.put(RESULTS, session_id, result.to_dict())
        sess.state = SessionState.COMPLETED
        self._save(sess)
        log.info(
            "session %s completed: personal=%.2f relationship=%.2f reliability=%.2f warnings=%d",
            session_id,
            result.personal_level,
            result.relationship_level,
            validation.reliability_score,
            len(validation.warnings),
        )
        return result

    def get_test_result(self, session_id: str) -> TestResult:
        sess = self._load(session_id)
        raw = self.store.get(RESULTS, session_id)
        if sess.state != SessionState.COMPLETED or raw is None:
            raise ResultNotAvailable(session_id)
        return TestResult.from_dict(raw)

    def compare_test_results(self, result_id_a: str, result_id_b: str) -> PairComparison:
        results = []
        for rid in (result_id_a, result_id_b):
            raw = self.store.get(RESULTS, rid)
            if raw is None:
                raise ResultNotFound(rid)
            results.append(TestResult.from_dict(raw))
        return compare_results(results[0], results[1])

    def get_session_status(self, session_id: str) -> SessionStatus:
        return self._status(self._load(session_id))

    def delete_test_session(self, session_id: str) -> None:
        if not self.store.delete(SESSIONS, session_id):
            raise SessionNotFound(session_id)
        self.store.delete(RESULTS, session_id)
        log.info("session %s deleted", session_id)

    def get_all_active_sessions(self) -> List[SessionStatus]:
        out = []
        for raw in self.store.list(SESSIONS):
            sess = _session_from_record(raw)
            if sess.state != SessionState.COMPLETED:
                out.append(self._status(sess))
        return out

    def get_all_completed_results(self) -> List[TestResult]:
        return [TestResult.from_dict(raw) for raw in self.store.list(RESULTS)]

    def export_answer_trace(self, session_id: str) -> List[Dict[str, Any]]:
        return list(self._load(session_id).audit_events)
