"""Scripted respondents that drive a full session end to end.

    python -m union_core.smoke --profile bypass --level 11
"""
from __future__ import annotations

import argparse
import json
import logging
from typing import Callable, Dict, List, Optional

from .config import DEBUG_TRACE, TRACE_FIELDS
from .orchestrator import TestOrchestrator
from .types import PresentedQuestion, TestMode, TestResult


def _maybe_enable_trace() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    if DEBUG_TRACE:
        logging.getLogger("union_core.orchestrator").setLevel(logging.INFO)


def _closest(q: PresentedQuestion, level: int) -> int:
    return min(q.choices, key=lambda c: (abs(c.level - level), c.level)).level


def _consistent(level: int) -> Callable[[PresentedQuestion, int, Dict[str, bool]], int]:
    return lambda q, step, meta: _closest(q, level)


def _contradictory(level: int) -> Callable[[PresentedQuestion, int, Dict[str, bool]], int]:
    def pick(q: PresentedQuestion, step: int, meta: Dict[str, bool]) -> int:
        if q.category.value == "zoning":
            return _closest(q, level)
        return 1 if step % 2 == 0 else 12
    return pick


def _bypass(level: int) -> Callable[[PresentedQuestion, int, Dict[str, bool]], int]:
    def pick(q: PresentedQuestion, step: int, meta: Dict[str, bool]) -> int:
        if meta.get("practical"):
            return 3
        if q.category.value == "validation":
            return 12
        return _closest(q, level)
    return pick


PROFILES: Dict[str, Callable[[int], Callable[[PresentedQuestion, int, Dict[str, bool]], int]]] = {
    "consistent": _consistent,
    "rushed": _consistent,
    "contradictory": _contradictory,
    "bypass": _bypass,
}


def run_scenario(
    profile: str = "consistent",
    level: int = 8,
    mode: TestMode = TestMode.SELF,
    status: str = "in_relationship",
    orchestrator: Optional[TestOrchestrator] = None,
) -> TestResult:
    if profile not in PROFILES:
        raise ValueError(f"unknown profile {profile!r}, pick one of {sorted(PROFILES)}")
    orch = orchestrator or TestOrchestrator()
    pick = PROFILES[profile](level)
    response_ms = 400 if profile == "rushed" else 6000

    sid = orch.initialize_test_session(mode, status)
    step = 0
    while True:
        q = orch.get_next_test_question(sid)
        if q is None:
            break
        src = orch.bank.get(q.id)
        chosen = pick(q, step, {"practical": src.practical})
        orch.submit_test_answer(sid, q.id, chosen, response_ms=response_ms)
        step += 1
    return orch.complete_test_session(sid)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Run a scripted Union Ladder session")
    ap.add_argument("--profile", choices=sorted(PROFILES), default="consistent")
    ap.add_argument("--level", type=int, default=8)
    ap.add_argument("--mode", choices=[m.value for m in TestMode], default=TestMode.SELF.value)
    args = ap.parse_args(argv)

    _maybe_enable_trace()
    logging.info("Trace fields: %s", ", ".join(TRACE_FIELDS))
    result = run_scenario(args.profile, args.level, TestMode(args.mode))
    v = result.validation
    logging.info(
        "profile=%s personal=%.2f relationship=%.2f zone=%s reliability=%.2f (%s)",
        args.profile,
        result.personal_level,
        result.relationship_level,
        result.zone.value,
        v.reliability_score,
        v.reliability.value,
    )
    for w in v.warnings:
        logging.info("  %s/%s: %s", w.kind.value, w.severity.value, w.message)
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
