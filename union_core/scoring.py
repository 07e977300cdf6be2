from __future__ import annotations
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from . import config
from .errors import InvalidInput, InvalidOptionLevel
from .levels import nearest_level, zone_for_level
from .question_bank import QuestionBank
from .types import (
    Answer,
    Dimension,
    LevelScores,
    RelationshipStatus,
    TestMode,
    TestResult,
    ValidationResult,
)
from .validators import combine_signals, recommendations_for

log = logging.getLogger(__name__)

LEVELS: Tuple[int, ...] = tuple(range(config.LEVEL_MIN, config.LEVEL_MAX + 1))


def _clamp_level(x: float) -> float:
    return max(float(config.LEVEL_MIN), min(float(config.LEVEL_MAX), float(x)))


def parse_mode(value: object) -> TestMode:
    try:
        return TestMode(value)
    except ValueError:
        raise InvalidInput(f"Unknown test mode {value!r}", "INVALID_TEST_MODE") from None


def parse_status(value: object) -> RelationshipStatus:
    try:
        return RelationshipStatus(value)
    except ValueError:
        raise InvalidInput(f"Unknown relationship status {value!r}", "INVALID_RELATIONSHIP_STATUS") from None


def calculate_level_scores(answers: Sequence[Answer], bank: QuestionBank) -> LevelScores:
    sums: Dict[Dimension, float] = {Dimension.PERSONAL: 0.0, Dimension.RELATIONSHIP: 0.0}
    weights: Dict[Dimension, float] = {Dimension.PERSONAL: 0.0, Dimension.RELATIONSHIP: 0.0}
    hist: Dict[int, float] = {lvl: 0.0 for lvl in LEVELS}

    for a in answers:
        q = bank.find(a.question_id)
        if q is None:
            continue
        if int(a.level) not in hist:
            raise InvalidOptionLevel(a.level)
        w = config.CRITICAL_WEIGHT if q.critical else 1.0
        sums[q.dimension] += w * a.level
        weights[q.dimension] += w
        hist[int(a.level)] += w

    means: Dict[Dimension, Optional[float]] = {
        d: (sums[d] / weights[d] if weights[d] > 0 else None) for d in sums
    }
    personal = means[Dimension.PERSONAL]
    relationship = means[Dimension.RELATIONSHIP]
    # an empty dimension borrows the other one
    if personal is None:
        personal = relationship if relationship is not None else config.MIDPOINT
    if relationship is None:
        relationship = personal
    return LevelScores(personal_level=personal, relationship_level=relationship, level_scores=hist)


def apply_validation_adjustments(
    personal_level: float,
    relationship_level: float,
    validation: ValidationResult,
) -> Tuple[float, float]:
    p, r = float(personal_level), float(relationship_level)
    if not validation.is_reliable:
        pull = 1.0 - validation.reliability_score
        p = p + (config.MIDPOINT - p) * pull
        r = r + (config.MIDPOINT - r) * pull
    if validation.spiritual_bypass:
        p = min(p, config.BYPASS_LEVEL_CEILING)
        r = min(r, config.BYPASS_LEVEL_CEILING)
    return _clamp_level(p), _clamp_level(r)


def get_level_distribution(level_scores: Mapping[int, float]) -> Dict[int, int]:
    """Integer percentages per level summing to exactly 100 (largest remainder)."""
    weights: Dict[int, float] = {}
    for lvl in LEVELS:
        w = float(level_scores.get(lvl, 0.0))
        if w < 0:
            raise InvalidInput(f"Negative weight {w} for level {lvl}")
        weights[lvl] = w
    total = sum(weights.values())
    if total <= 0:
        weights = {lvl: 1.0 for lvl in LEVELS}
        total = float(len(LEVELS))

    exact = {lvl: weights[lvl] * 100.0 / total for lvl in LEVELS}
    floors = {lvl: int(exact[lvl]) for lvl in LEVELS}
    left = 100 - sum(floors.values())
    by_remainder = sorted(LEVELS, key=lambda lvl: (-(exact[lvl] - floors[lvl]), lvl))
    for lvl in by_remainder[:left]:
        floors[lvl] += 1
    return floors


def placement_pattern(level_scores: Mapping[int, float]) -> str:
    ranked = sorted(
        ((float(level_scores.get(lvl, 0.0)), lvl) for lvl in LEVELS),
        key=lambda wl: (-wl[0], wl[1]),
    )
    total = sum(w for w, _ in ranked)
    if total <= 0:
        return "spread"
    (w1, l1), (w2, l2) = ranked[0], ranked[1]
    if w2 >= config.SPLIT_PEAK_RATIO * w1 and abs(l1 - l2) >= config.SPLIT_MIN_DISTANCE:
        return "split"
    if w1 / total >= config.CONCENTRATED_SHARE:
        return "concentrated"
    return "spread"


def calculate_test_result(
    session_id: str,
    answers: Sequence[Answer],
    validation: ValidationResult,
    mode: TestMode | str,
    relationship_status: RelationshipStatus | str,
    *,
    bank: QuestionBank,
    created_at: Optional[str] = None,
) -> TestResult:
    mode = parse_mode(mode)
    status = parse_status(relationship_status)
    scores = calculate_level_scores(answers, bank)
    personal, relationship = apply_validation_adjustments(
        scores.personal_level, scores.relationship_level, validation
    )
    log.debug(
        "session %s raw=(%.2f, %.2f) adjusted=(%.2f, %.2f)",
        session_id, scores.personal_level, scores.relationship_level, personal, relationship,
    )
    return TestResult(
        session_id=session_id,
        mode=mode,
        relationship_status=status,
        personal_level=personal,
        relationship_level=relationship,
        raw_personal_level=scores.personal_level,
        raw_relationship_level=scores.relationship_level,
        zone=zone_for_level(nearest_level(personal)),
        level_scores=dict(scores.level_scores),
        distribution=get_level_distribution(scores.level_scores),
        pattern=placement_pattern(scores.level_scores),
        validation=validation,
        answer_count=len(answers),
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
    )


def calculate_compatibility(level_a: float, level_b: float) -> float:
    for lvl in (level_a, level_b):
        if not (config.LEVEL_MIN <= float(lvl) <= config.LEVEL_MAX):
            raise InvalidInput(f"Level {lvl!r} is outside {config.LEVEL_MIN}..{config.LEVEL_MAX}")
    gap = abs(float(level_a) - float(level_b))
    score = 1.0 - (gap / config.COMPATIBILITY_MAX_SPAN) ** config.COMPATIBILITY_SHAPE
    return max(0.0, min(1.0, score))


def calculate_reliability_score(validation: ValidationResult) -> float:
    return combine_signals(
        validation.speed_rate,
        validation.contradiction_count,
        validation.coherence,
        validation.bypass_penalty,
        validation.completeness,
    )


def get_reliability_recommendation(validation: ValidationResult) -> List[str]:
    return recommendations_for(
        validation.speed_rate,
        validation.contradiction_count,
        validation.coherence,
        validation.bypass_penalty,
        validation.completeness,
    )
