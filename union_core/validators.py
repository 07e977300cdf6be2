"""Answer-trace validation: four independent unreliability signals and their composite."""
from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from statistics import fmean, pvariance
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from . import config
from .question_bank import QuestionBank
from .types import (
    Answer,
    Category,
    Question,
    ReliabilityBand,
    Severity,
    ValidationResult,
    ValidationWarning,
    WarningKind,
)

log = logging.getLogger(__name__)

_Pairs = List[Tuple[Answer, Question]]


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def _resolve(answers: Sequence[Answer], bank: QuestionBank) -> _Pairs:
    out: _Pairs = []
    for a in answers:
        q = bank.find(a.question_id)
        if q is not None:
            out.append((a, q))
    return out


# ---- signals ----

def detect_speed_anomalies(pairs: _Pairs) -> Tuple[int, int, List[str]]:
    """Fast answers to sensitive or critical questions: (fast, sensitive_seen, ids)."""
    fast_ids: List[str] = []
    seen = 0
    for a, q in pairs:
        if not (q.sensitive or q.critical):
            continue
        seen += 1
        if a.response_ms is not None and a.response_ms < config.FAST_RESPONSE_MS:
            fast_ids.append(q.id)
    return len(fast_ids), seen, fast_ids


def detect_contradictions(pairs: _Pairs) -> List[Tuple[str, str, int]]:
    groups: Dict[str, _Pairs] = defaultdict(list)
    for a, q in pairs:
        groups[q.topic].append((a, q))
    found: List[Tuple[str, str, int]] = []
    for topic in sorted(groups):
        for (a1, q1), (a2, q2) in combinations(groups[topic], 2):
            gap = abs(a1.level - a2.level)
            if gap > config.CONTRADICTION_TOLERANCE:
                found.append((q1.id, q2.id, gap))
    return found


def coherence_score(pairs: _Pairs) -> float:
    by_dim: Dict[str, List[float]] = defaultdict(list)
    for a, q in pairs:
        by_dim[q.dimension.value].append(float(a.level))
    scored = [(len(v), 1.0 - pvariance(v) / config.MAX_VARIANCE) for v in by_dim.values() if len(v) >= 2]
    if not scored:
        return 1.0
    total = sum(n for n, _ in scored)
    return _clamp01(sum(n * s for n, s in scored) / total)


def detect_spiritual_bypass(pairs: _Pairs) -> Tuple[bool, float, List[str]]:
    """High aspirational self-report that concrete behaviour answers do not back up."""
    validation = [a.level for a, q in pairs if q.category == Category.VALIDATION]
    practical = [a.level for a, q in pairs if q.practical]
    overall = [a.level for a, q in pairs if not q.practical]
    if not validation or not practical or not overall:
        return False, 0.0, []
    aspiration = fmean(validation)
    practice = fmean(practical)
    flagged = (
        aspiration >= config.BYPASS_ASPIRATION_LEVEL
        and practice <= config.BYPASS_PRACTICAL_LEVEL
        and fmean(overall) >= config.BYPASS_OVERALL_LEVEL
    )
    if not flagged:
        return False, 0.0, []
    penalty = _clamp01((aspiration - practice) / config.BYPASS_PENALTY_SPAN)
    ids = [q.id for _, q in pairs if q.category == Category.VALIDATION or q.practical]
    return True, penalty, ids


# ---- combination ----

def contradiction_rate(count: int) -> float:
    return min(1.0, max(0, count) / float(config.CONTRADICTION_SATURATION))


def completeness_factor(answer_count: int) -> float:
    return min(1.0, answer_count / float(config.MIN_ANSWERS_FOR_FULL_RELIABILITY))


def combine_signals(
    speed_rate: float,
    contradiction_count: int,
    coherence: float,
    bypass_penalty: float,
    completeness: float = 1.0,
) -> float:
    raw = (
        config.W_SPEED * (1.0 - _clamp01(speed_rate))
        + config.W_CONTRADICTION * (1.0 - contradiction_rate(contradiction_count))
        + config.W_COHERENCE * _clamp01(coherence)
        + config.W_BYPASS * (1.0 - _clamp01(bypass_penalty))
    )
    return _clamp01(_clamp01(completeness) * raw)


def reliability_band(score: float) -> ReliabilityBand:
    if score >= config.RELIABILITY_HIGH:
        return ReliabilityBand.HIGH
    if score >= config.RELIABILITY_MEDIUM:
        return ReliabilityBand.MEDIUM
    return ReliabilityBand.LOW


_RELIABILITY_MESSAGES: Dict[ReliabilityBand, str] = {
    ReliabilityBand.HIGH: "High reliability: your answers are consistent and the result can be trusted.",
    ReliabilityBand.MEDIUM: "Medium reliability: the result is indicative, read it together with the warnings.",
    ReliabilityBand.LOW: "Low reliability: the answers contain distortions, consider retaking the test later.",
}


def get_reliability_message(score: float) -> str:
    return _RELIABILITY_MESSAGES[reliability_band(score)]


# ---- warnings ----

def _severity(value: float, medium: float, high: float) -> Severity:
    if value >= high:
        return Severity.HIGH
    if value >= medium:
        return Severity.MEDIUM
    return Severity.LOW


def _warnings(
    fast: int,
    speed_rate: float,
    fast_ids: List[str],
    contradictions: List[Tuple[str, str, int]],
    coherence: float,
    bypass: bool,
    penalty: float,
    bypass_ids: List[str],
    answer_count: int,
) -> List[ValidationWarning]:
    out: List[ValidationWarning] = []
    if fast:
        out.append(ValidationWarning(
            WarningKind.SPEED,
            _severity(speed_rate, 0.25, 0.5),
            f"{fast} sensitive question(s) answered in under {config.FAST_RESPONSE_MS} ms",
            tuple(fast_ids),
        ))
    for qa, qb, gap in contradictions:
        out.append(ValidationWarning(
            WarningKind.CONTRADICTION,
            _severity(gap, 7, 9),
            f"Answers to {qa} and {qb} differ by {gap} levels",
            (qa, qb),
        ))
    if coherence < config.COHERENCE_WARN:
        out.append(ValidationWarning(
            WarningKind.INCOHERENCE,
            _severity(1.0 - coherence, 0.55, 0.7),
            f"Answers are spread widely across the ladder (coherence {coherence:.2f})",
        ))
    if bypass:
        out.append(ValidationWarning(
            WarningKind.SPIRITUAL_BYPASS,
            _severity(penalty, 0.4, 0.75),
            "High aspirational answers are not supported by everyday behaviour",
            tuple(bypass_ids),
        ))
    if answer_count < config.MIN_ANSWERS_FOR_FULL_RELIABILITY:
        out.append(ValidationWarning(
            WarningKind.PATTERN,
            Severity.HIGH if answer_count < config.MIN_ANSWERS_FOR_FULL_RELIABILITY / 2 else Severity.MEDIUM,
            f"Only {answer_count} of {config.MIN_ANSWERS_FOR_FULL_RELIABILITY} answers needed for a full reading",
        ))
    return out


# Ordered by the signal each text addresses.
_RECOMMENDATIONS: Dict[str, str] = {
    "speed": "Slow down: take a breath before answering the sensitive questions.",
    "contradiction": "Resolve contradictory answers: think of concrete situations rather than ideals.",
    "coherence": "Answer from your typical behaviour, not your best or worst day.",
    "bypass": "Check aspirational answers against what you actually did last week.",
    "completeness": "Answer the remaining questions for a complete reading.",
}


def recommendations_for(
    speed_rate: float,
    contradiction_count: int,
    coherence: float,
    bypass_penalty: float,
    completeness: float,
) -> List[str]:
    deficits = [
        ("speed", config.W_SPEED * _clamp01(speed_rate)),
        ("contradiction", config.W_CONTRADICTION * contradiction_rate(contradiction_count)),
        ("coherence", config.W_COHERENCE * (1.0 - _clamp01(coherence))),
        ("bypass", config.W_BYPASS * _clamp01(bypass_penalty)),
        ("completeness", 1.0 - _clamp01(completeness)),
    ]
    deficits.sort(key=lambda kv: -kv[1])
    picked = [_RECOMMENDATIONS[key] for key, val in deficits if val >= 0.05]
    if not picked:
        return ["Your answers look consistent, no retake is needed."]
    return picked


def validate_answers(answers: Sequence[Answer], bank: QuestionBank) -> ValidationResult:
    pairs = _resolve(answers, bank)
    n = len(pairs)

    fast, sensitive, fast_ids = detect_speed_anomalies(pairs)
    speed_rate = fast / sensitive if sensitive else 0.0
    contradictions = detect_contradictions(pairs)
    coherence = coherence_score(pairs)
    bypass, penalty, bypass_ids = detect_spiritual_bypass(pairs)
    completeness = completeness_factor(n)

    score = combine_signals(speed_rate, len(contradictions), coherence, penalty, completeness)
    timed = [a.response_ms for a, _ in pairs if a.response_ms is not None]
    avg_ms: Optional[float] = fmean(timed) if timed else None

    warnings = _warnings(fast, speed_rate, fast_ids, contradictions, coherence, bypass, penalty, bypass_ids, n)
    log.debug(
        "validated %d answers: fast=%d contradictions=%d coherence=%.2f bypass=%s reliability=%.2f",
        n, fast, len(contradictions), coherence, bypass, score,
    )
    return ValidationResult(
        speed_anomaly=fast > 0,
        fast_count=fast,
        sensitive_count=sensitive,
        contradiction_count=len(contradictions),
        contradictions=tuple((qa, qb) for qa, qb, _ in contradictions),
        coherence=coherence,
        spiritual_bypass=bypass,
        bypass_penalty=penalty,
        completeness=completeness,
        answer_count=n,
        avg_response_ms=avg_ms,
        reliability_score=score,
        reliability=reliability_band(score),
        is_reliable=score > config.RELIABILITY_THRESHOLD,
        warnings=tuple(warnings),
        recommendations=tuple(recommendations_for(speed_rate, len(contradictions), coherence, penalty, completeness)),
    )
