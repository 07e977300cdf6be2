# union_core/levels.py
"""Static labels for the twelve ladder levels and the four zones."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .config import LEVEL_MIN, LEVEL_MAX
from .errors import InvalidOptionLevel
from .types import Zone


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    name: str
    icon: str
    color: str
    zone: Zone
    short_description: str
    traits: Tuple[str, ...]
    risks: Tuple[str, ...]
    growth: Tuple[str, ...]
    challenge: str


_ZONE_BANDS: Tuple[Tuple[int, int, Zone], ...] = (
    (1, 3, Zone.DESTRUCTIVE),
    (4, 6, Zone.EMOTIONAL),
    (7, 9, Zone.MATURE),
    (10, 12, Zone.TRANSCENDENT),
)

ZONE_DESCRIPTIONS: Dict[Zone, str] = {
    Zone.DESTRUCTIVE: "The relationship is organised around pain, fear and repetition. Safety comes first.",
    Zone.EMOTIONAL: "The bond runs on needs, feelings and roles. Stability is real but easily shaken.",
    Zone.MATURE: "Two whole people choose each other. Connection is deliberate and conflict is workable.",
    Zone.TRANSCENDENT: "The union creates something larger than either partner and serves beyond itself.",
}


def zone_for_level(level: int) -> Zone:
    lvl = int(level)
    for lo, hi, zone in _ZONE_BANDS:
        if lo <= lvl <= hi:
            return zone
    raise InvalidOptionLevel(level)


def nearest_level(value: float) -> int:
    """Round half up and clamp into the ladder."""
    lvl = int(value + 0.5)
    return max(LEVEL_MIN, min(LEVEL_MAX, lvl))


LEVELS: Dict[int, LevelDefinition] = {
    1: LevelDefinition(
        1, "Trauma & destruction", "🔥", "#7f1d1d", Zone.DESTRUCTIVE,
        "The relationship keeps reopening wounds. Fear, control or violence shape daily life.",
        ("Hypervigilance", "Cycles of blow-up and reconciliation", "Isolation from outside support"),
        ("Physical or emotional harm", "Losing the sense of self"),
        ("Name the harm plainly to someone outside the relationship", "Secure physical and emotional safety first"),
        "Admitting that the current pattern is not love but survival.",
    ),
    2: LevelDefinition(
        2, "Karmic scenario", "🔄", "#991b1b", Zone.DESTRUCTIVE,
        "Old family scripts replay almost word for word. Partners keep choosing the familiar pain.",
        ("Strong sense of déjà vu", "Intense pull towards the same type of partner"),
        ("Repeating the pattern for years", "Mistaking intensity for intimacy"),
        ("Map where the script comes from", "Break one small repetition deliberately"),
        "Seeing the script as a script rather than as fate.",
    ),
    3: LevelDefinition(
        3, "Survival", "😰", "#b91c1c", Zone.DESTRUCTIVE,
        "The couple holds on because letting go feels impossible. Energy goes into getting through.",
        ("Chronic stress", "Dependence on the partner for basic security"),
        ("Exhaustion", "Resentment that has nowhere to go"),
        ("Build one source of stability that does not depend on the partner", "Ask for concrete help"),
        "Moving from 'we cannot leave' to 'we choose to stay'.",
    ),
    4: LevelDefinition(
        4, "Resources & stability", "🏠", "#c2410c", Zone.EMOTIONAL,
        "The relationship is a practical alliance. Home, money and routine hold it together.",
        ("Reliability", "Fair division of tasks", "Low emotional risk-taking"),
        ("Partnership turning into a contract", "Emotional hunger behind the routine"),
        ("Share one feeling a day, not only logistics", "Plan something with no practical purpose"),
        "Letting feelings into a relationship built on usefulness.",
    ),
    5: LevelDefinition(
        5, "Emotions & passion", "⚡", "#d97706", Zone.EMOTIONAL,
        "Strong feelings drive the bond. Passion and drama alternate quickly.",
        ("Intense attraction", "Jealousy and making up", "Vivid emotional life"),
        ("Burnout from constant highs and lows", "Confusing drama with depth"),
        ("Learn to stay with a feeling without acting on it", "Talk after the storm, not during it"),
        "Turning emotional intensity into emotional honesty.",
    ),
    6: LevelDefinition(
        6, "Status & role", "👑", "#ca8a04", Zone.EMOTIONAL,
        "Each partner plays a role: provider, carer, rescuer. Recognition matters a great deal.",
        ("Clear roles", "Pride in the couple's image", "Competitiveness"),
        ("Loving the role rather than the person", "Power struggles"),
        ("Step out of the role for a day", "Ask what the partner needs beyond the role"),
        "Meeting the person behind the role.",
    ),
    7: LevelDefinition(
        7, "Psychological connection", "💭", "#65a30d", Zone.MATURE,
        "Partners understand each other's inner worlds and talk about needs directly.",
        ("Reflective conversations", "Awareness of own triggers"),
        ("Over-analysing instead of living", "Understanding without acting"),
        ("Turn insight into one changed habit", "Practise repair after every conflict"),
        "Moving from understanding to consistent action.",
    ),
    8: LevelDefinition(
        8, "Love & acceptance", "❤️", "#16a34a", Zone.MATURE,
        "The partner is accepted as they are. Care shows up in everyday actions.",
        ("Warmth", "Practical care", "Forgiveness that does not erase boundaries"),
        ("Acceptance sliding into complacency",),
        ("Keep curiosity about who the partner is becoming", "Protect time for the relationship"),
        "Keeping acceptance alive without stopping growth.",
    ),
    9: LevelDefinition(
        9, "Freedom & maturity", "🦅", "#0d9488", Zone.MATURE,
        "Two whole people stay together by choice. Each partner's freedom strengthens the bond.",
        ("Secure attachment", "Respect for autonomy", "Calm under pressure"),
        ("Drifting into parallel lives",),
        ("Build a shared project", "Invest in the couple as a team"),
        "Turning two free lives into a shared direction.",
    ),
    10: LevelDefinition(
        10, "Synergy & growth", "⚡💪", "#0284c7", Zone.TRANSCENDENT,
        "The couple grows faster together than apart. Each challenge becomes shared development.",
        ("Mutual mentoring", "High trust under stress", "Joint goals"),
        ("Over-investing in achievement",),
        ("Make room for rest and play", "Bring the partnership's strength to others"),
        "Keeping growth from turning into performance.",
    ),
    11: LevelDefinition(
        11, "Co-creation", "✨🎨", "#4f46e5", Zone.TRANSCENDENT,
        "The partners create together: projects, family, community, art.",
        ("Creative partnership", "Shared signature on what they build"),
        ("Identity merging into the shared work",),
        ("Keep individual sources of inspiration", "Share what you create beyond your circle"),
        "Creating together while staying two distinct people.",
    ),
    12: LevelDefinition(
        12, "Spiritual union", "🌟", "#9333ea", Zone.TRANSCENDENT,
        "The union serves something sacred. Love is lived as a practice that reaches beyond the couple.",
        ("Deep presence", "Service", "Equanimity"),
        ("Spiritual bypass: using ideals to skip over real problems",),
        ("Stay grounded in daily practical care", "Keep mentoring others"),
        "Keeping the sacred rooted in ordinary life.",
    ),
}


def get_level_definition(level: int) -> LevelDefinition:
    lvl = int(level)
    if lvl not in LEVELS:
        raise InvalidOptionLevel(level)
    return LEVELS[lvl]


def next_level(level: int) -> Optional[LevelDefinition]:
    lvl = int(level)
    if lvl >= LEVEL_MAX:
        return None
    return get_level_definition(lvl + 1)
