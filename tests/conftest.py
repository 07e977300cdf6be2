from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from union_core.levels import zone_for_level
from union_core.orchestrator import TestOrchestrator
from union_core.question_bank import QuestionBank, default_bank
from union_core.store import InMemoryStore
from union_core.types import (
    Answer,
    Category,
    Dimension,
    ModeVariant,
    Option,
    Question,
    TestMode,
)


class TickingClock:
    """Deterministic clock that advances a fixed step on every read."""

    def __init__(self, step_sec: float = 3.0):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step_sec)

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now


def make_question(
    qid: str,
    category: Category = Category.REFINEMENT,
    *,
    topic: str = "conflict",
    dimension: Dimension = Dimension.RELATIONSHIP,
    target: int = 6,
    levels: tuple[int, ...] = (2, 5, 8, 11),
    priority: int = 2,
    sensitive: bool = False,
    practical: bool = False,
) -> Question:
    options = tuple(Option(id=f"{qid}_{i}", level=lvl, zone=zone_for_level(lvl)) for i, lvl in enumerate(levels))
    variants = {
        mode: ModeVariant(
            prompt=f"{qid} ({mode.value})",
            options=tuple(f"{qid} {mode.value} option {i}" for i in range(len(levels))),
        )
        for mode in TestMode
    }
    return Question(
        id=qid,
        category=category,
        topic=topic,
        dimension=dimension,
        target_level=target,
        priority=priority,
        options=options,
        variants=variants,
        sensitive=sensitive,
        practical=practical,
    )


def build_synthetic_bank(
    *,
    zoning: int = 2,
    refinement_targets: tuple[int, ...] = (2, 6, 10),
    validation: int = 1,
) -> QuestionBank:
    """Create a small deterministic bank for selector and validator tests."""

    qs: list[Question] = []
    for i in range(zoning):
        qs.append(make_question(f"z{i}", Category.ZONING, priority=1))
    for i, target in enumerate(refinement_targets):
        lo = max(1, target - 2)
        qs.append(make_question(f"r{i}", Category.REFINEMENT, target=target, levels=(lo, lo + 2, min(12, lo + 4))))
    for i in range(validation):
        qs.append(make_question(f"v{i}", Category.VALIDATION, target=9, levels=(3, 6, 9, 12)))
    return QuestionBank(qs)


def make_answer(question_id: str, level: int, response_ms: int | None = 5000, mode: TestMode = TestMode.SELF) -> Answer:
    return Answer(
        question_id=question_id,
        level=level,
        response_ms=response_ms,
        answered_at="2024-01-01T12:00:00+00:00",
        mode=mode,
    )


def drive(orch: TestOrchestrator, sid: str, pick, stop=None) -> int:
    """Serve and answer questions until the selector is done or ``stop(q)`` is true."""

    n = 0
    while True:
        q = orch.get_next_test_question(sid)
        if q is None or (stop is not None and stop(q)):
            return n
        orch.submit_test_answer(sid, q.id, pick(q, n))
        n += 1


@pytest.fixture
def bank() -> QuestionBank:
    return default_bank()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def orchestrator(bank, clock) -> TestOrchestrator:
    return TestOrchestrator(store=InMemoryStore(), bank=bank, clock=clock)
