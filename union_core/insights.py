# union_core/insights.py
from __future__ import annotations
from typing import Dict, List, Optional

from . import config
from .actions import get_action_plan
from .levels import ZONE_DESCRIPTIONS, get_level_definition, nearest_level, next_level, zone_for_level
from .scoring import calculate_compatibility
from .types import (
    Interpretation,
    PairComparison,
    RelationshipStatus,
    ReliabilityBand,
    TestMode,
    TestResult,
    ValidationResult,
    Zone,
)
from .validators import get_reliability_message

_HEADLINE_SUBJECT: Dict[TestMode, str] = {
    TestMode.SELF: "You are",
    TestMode.PARTNER_ASSESSMENT: "You see your partner",
    TestMode.POTENTIAL: "You are ready to build a relationship",
    TestMode.PAIR_DISCUSSION: "Together you are",
}

_STATUS_SUFFIX: Dict[RelationshipStatus, str] = {
    RelationshipStatus.IN_RELATIONSHIP: "in your current relationship",
    RelationshipStatus.SINGLE_PAST: "judging by your past relationships",
    RelationshipStatus.SINGLE_POTENTIAL: "in your next relationship",
    RelationshipStatus.PAIR_TOGETHER: "as a couple",
}

_VALIDATION_NOTES: Dict[ReliabilityBand, Optional[str]] = {
    ReliabilityBand.HIGH: None,
    ReliabilityBand.MEDIUM: "The result may be partly distorted. Read it together with the validation warnings.",
    ReliabilityBand.LOW: (
        "The answers show signs of distortion, so the result has low reliability. "
        "Retake the test later, when you can answer slowly and honestly."
    ),
}


def interpret_result(
    personal_level: float,
    relationship_level: float,
    zone: Zone,
    validation: ValidationResult,
    *,
    mode: TestMode = TestMode.SELF,
    relationship_status: RelationshipStatus = RelationshipStatus.IN_RELATIONSHIP,
) -> Interpretation:
    level = nearest_level(personal_level)
    definition = get_level_definition(level)
    subject = _HEADLINE_SUBJECT[TestMode(mode)]
    suffix = _STATUS_SUFFIX[RelationshipStatus(relationship_status)]
    headline = f"{subject} at level {level}, {definition.name} {definition.icon}, {suffix}."

    growth = list(definition.growth)
    rel_level = nearest_level(relationship_level)
    if abs(rel_level - level) >= config.SIGNIFICANT_GAP:
        lagging = "relationship" if rel_level < level else "personal"
        growth.append(f"Your {lagging} maturity lags behind, start your growth work there.")

    upcoming = next_level(level)
    preview = f"Next: level {upcoming.level}, {upcoming.name}. {upcoming.short_description}" if upcoming else None

    return Interpretation(
        headline=headline,
        level=level,
        level_name=definition.name,
        level_icon=definition.icon,
        zone_description=ZONE_DESCRIPTIONS[Zone(zone)],
        traits=definition.traits,
        risks=definition.risks,
        growth=tuple(growth),
        challenge=definition.challenge,
        next_level=preview,
        reliability_message=get_reliability_message(validation.reliability_score),
        validation_notes=_VALIDATION_NOTES[validation.reliability],
        warning_messages=tuple(w.message for w in validation.warnings),
        recommendations=tuple(step.title for step in get_action_plan(level).top_actions),
    )


def _compatibility_message(score: float) -> str:
    if score >= 0.8:
        return "High compatibility: you stand on neighbouring rungs and can grow at the same pace."
    if score >= 0.6:
        return "Good compatibility: the differences are workable with open conversation."
    if score >= 0.4:
        return "Moderate compatibility: the gap needs conscious attention from both of you."
    return "Low compatibility: you live in different relationship realities right now."


def _gap_message(gap: float, direction: str) -> str:
    if direction == "aligned":
        return "You see the relationship from almost the same place on the ladder."
    ahead = "A" if direction == "a_higher" else "B"
    if gap >= config.SIGNIFICANT_GAP:
        return (
            f"Partner {ahead} stands {gap:.1f} levels higher. This gap is significant and is "
            "often felt as 'we want different things'."
        )
    return f"Partner {ahead} stands slightly higher ({gap:.1f} levels). This is a normal difference."


def compare_results(result_a: TestResult, result_b: TestResult) -> PairComparison:
    level_a, level_b = result_a.personal_level, result_b.personal_level
    gap = abs(level_a - level_b)
    if gap < 0.5:
        direction = "aligned"
    else:
        direction = "a_higher" if level_a > level_b else "b_higher"
    significant = gap >= config.SIGNIFICANT_GAP
    compatibility = calculate_compatibility(level_a, level_b)

    agreement: List[str] = []
    conflict: List[str] = []
    zone_a = zone_for_level(nearest_level(level_a))
    zone_b = zone_for_level(nearest_level(level_b))
    if zone_a == zone_b:
        agreement.append(f"You share the {zone_a.value} zone: {ZONE_DESCRIPTIONS[zone_a]}")
    else:
        conflict.append(f"You are in different zones ({zone_a.value} and {zone_b.value}).")

    rel_gap = abs(result_a.relationship_level - result_b.relationship_level)
    if rel_gap < config.SIGNIFICANT_GAP:
        agreement.append("You describe the relationship itself in similar terms.")
    else:
        conflict.append(f"You experience the relationship differently ({rel_gap:.1f} levels apart).")
    if result_a.pattern == "split" or result_b.pattern == "split":
        conflict.append("At least one of you shows a split placement, different areas sit on different rungs.")

    recs: List[str] = []
    if significant:
        recs.append("Consider couple work: the gap is large enough to benefit from a guided conversation.")
        lower = result_b if direction == "a_higher" else result_a
        recs.append(f"Start from the challenge of level {nearest_level(lower.personal_level)}: "
                    f"{get_level_definition(nearest_level(lower.personal_level)).challenge}")
    else:
        recs.append("Pick one growth practice you both commit to for the next month.")
    if not (result_a.validation.is_reliable and result_b.validation.is_reliable):
        recs.append("One of the results has low reliability, compare again after a calm retake.")

    return PairComparison(
        result_a=result_a.session_id,
        result_b=result_b.session_id,
        level_a=level_a,
        level_b=level_b,
        gap=gap,
        direction=direction,
        significant=significant,
        compatibility=compatibility,
        compatibility_message=_compatibility_message(compatibility),
        gap_message=_gap_message(gap, direction),
        agreement_points=tuple(agreement),
        conflict_points=tuple(conflict),
        recommendations=tuple(recs),
    )
