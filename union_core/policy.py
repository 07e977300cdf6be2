# union_core/policy.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from . import config
from .levels import zone_for_level, nearest_level
from .question_bank import QuestionBank
from .types import Answer, Category, LevelDetection, Phase, Question, RelationshipStatus, TestMode


log = logging.getLogger(__name__)

_PHASE_ORDER: Tuple[Phase, ...] = (Phase.ZONING, Phase.REFINEMENT, Phase.VALIDATION, Phase.DONE)
_PHASE_CATEGORY: Dict[Phase, Category] = {
    Phase.ZONING: Category.ZONING,
    Phase.REFINEMENT: Category.REFINEMENT,
    Phase.VALIDATION: Category.VALIDATION,
}


@dataclass
class SelectorState:
    mode: TestMode
    relationship_status: RelationshipStatus
    phase: Phase = Phase.ZONING
    answers: List[Answer] = field(default_factory=list)
    estimate: float = config.MIDPOINT
    window: Tuple[float, float] = (float(config.LEVEL_MIN), float(config.LEVEL_MAX))

    def answered_ids(self) -> set:
        return {a.question_id for a in self.answers}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "relationship_status": self.relationship_status.value,
            "phase": self.phase.value,
            "answers": [a.to_dict() for a in self.answers],
            "estimate": self.estimate,
            "window": list(self.window),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SelectorState":
        lo, hi = raw.get("window") or (config.LEVEL_MIN, config.LEVEL_MAX)
        return cls(
            mode=TestMode(raw["mode"]),
            relationship_status=RelationshipStatus(raw["relationship_status"]),
            phase=Phase(raw["phase"]),
            answers=[Answer.from_dict(a) for a in raw.get("answers") or []],
            estimate=float(raw.get("estimate", config.MIDPOINT)),
            window=(float(lo), float(hi)),
        )


class QuestionPolicy:
    """Zoning, then window-narrowing refinement, then validation questions."""

    def __init__(self, bank: QuestionBank):
        self.bank = bank

    def initialize(self, mode: TestMode, relationship_status: RelationshipStatus) -> SelectorState:
        return SelectorState(mode=TestMode(mode), relationship_status=RelationshipStatus(relationship_status))

    # ---- phase bookkeeping ----

    def _count(self, st: SelectorState, category: Category) -> int:
        n = 0
        for a in st.answers:
            q = self.bank.find(a.question_id)
            if q is not None and q.category == category:
                n += 1
        return n

    def _remaining(self, st: SelectorState, category: Category) -> List[Question]:
        asked = st.answered_ids()
        return [q for q in self.bank.by_category(category) if q.id not in asked]

    def _phase_exhausted(self, st: SelectorState) -> bool:
        if st.phase == Phase.DONE:
            return False
        cat = _PHASE_CATEGORY[st.phase]
        if not self._remaining(st, cat):
            return True
        count = self._count(st, cat)
        if st.phase == Phase.ZONING:
            return count >= config.ZONING_EXIT_COUNT
        if st.phase == Phase.REFINEMENT:
            if count >= config.REFINEMENT_EXIT_COUNT:
                return True
            if count >= config.REFINEMENT_MIN_COUNT:
                return self.current_level_detection(st).confidence >= config.EARLY_STOP_CONFIDENCE
            return False
        return count >= config.VALIDATION_EXIT_COUNT

    def _advance(self, st: SelectorState) -> None:
        while self._phase_exhausted(st):
            before = st.phase
            st.phase = _PHASE_ORDER[_PHASE_ORDER.index(st.phase) + 1]
            log.debug("phase %s -> %s after %d answers", before.value, st.phase.value, len(st.answers))

    # ---- estimate ----

    def _weight(self, st: SelectorState, q: Optional[Question]) -> float:
        if q is None:
            return config.BASE_WEIGHT
        if st.phase == Phase.ZONING:
            favoured = q.category == Category.ZONING
        else:
            favoured = q.category == Category.REFINEMENT
        return config.FAVOURED_WEIGHT if favoured else config.BASE_WEIGHT

    def _weighted(self, st: SelectorState) -> List[Tuple[float, float]]:
        return [(float(a.level), self._weight(st, self.bank.find(a.question_id))) for a in st.answers]

    def _recompute(self, st: SelectorState) -> None:
        pairs = self._weighted(st)
        total = sum(w for _, w in pairs)
        if total <= 0:
            st.estimate = config.MIDPOINT
        else:
            st.estimate = sum(lvl * w for lvl, w in pairs) / total
        refinements = self._count(st, Category.REFINEMENT)
        half = config.WINDOW_START_HALF_WIDTH * (config.WINDOW_SHRINK ** refinements)
        half = max(config.WINDOW_MIN_HALF_WIDTH, half)
        st.window = (
            max(float(config.LEVEL_MIN), st.estimate - half),
            min(float(config.LEVEL_MAX), st.estimate + half),
        )

    # ---- public contract ----

    def next_question(self, st: SelectorState) -> Optional[Question]:
        self._advance(st)
        if st.phase == Phase.DONE:
            return None
        candidates = self._remaining(st, _PHASE_CATEGORY[st.phase])
        if st.phase != Phase.REFINEMENT:
            return candidates[0]
        lo, hi = st.window
        in_window = [q for q in candidates if lo <= q.target_level <= hi]
        pool = in_window or candidates
        return min(
            pool,
            key=lambda q: (abs(q.target_level - st.estimate), q.priority, self.bank.position(q.id)),
        )

    def record_answer(self, st: SelectorState, answer: Answer) -> SelectorState:
        st.answers.append(answer)
        self._recompute(st)
        self._advance(st)
        # phase weights may have shifted after advancing
        self._recompute(st)
        log.debug(
            "answer %s level=%d estimate=%.2f window=(%.1f, %.1f) phase=%s",
            answer.question_id,
            answer.level,
            st.estimate,
            st.window[0],
            st.window[1],
            st.phase.value,
        )
        return st

    def current_level_detection(self, st: SelectorState) -> LevelDetection:
        pairs = self._weighted(st)
        n = len(pairs)
        if n == 0:
            return LevelDetection(estimate=config.MIDPOINT, zone=zone_for_level(nearest_level(config.MIDPOINT)), confidence=0.0)
        total = sum(w for _, w in pairs)
        mean = sum(lvl * w for lvl, w in pairs) / total
        var = sum(w * (lvl - mean) ** 2 for lvl, w in pairs) / total
        confidence = (n / (n + config.CONFIDENCE_COUNT_K)) * (1.0 / (1.0 + var / config.CONFIDENCE_VARIANCE_SCALE))
        return LevelDetection(estimate=mean, zone=zone_for_level(nearest_level(mean)), confidence=confidence)
