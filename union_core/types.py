from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class TestMode(str, Enum):
    __test__ = False
    SELF = "self"
    PARTNER_ASSESSMENT = "partner_assessment"
    POTENTIAL = "potential"
    PAIR_DISCUSSION = "pair_discussion"


class RelationshipStatus(str, Enum):
    IN_RELATIONSHIP = "in_relationship"
    SINGLE_PAST = "single_past"
    SINGLE_POTENTIAL = "single_potential"
    PAIR_TOGETHER = "pair_together"


class Zone(str, Enum):
    DESTRUCTIVE = "destructive"
    EMOTIONAL = "emotional"
    MATURE = "mature"
    TRANSCENDENT = "transcendent"


class Category(str, Enum):
    ZONING = "zoning"
    REFINEMENT = "refinement"
    VALIDATION = "validation"


class Dimension(str, Enum):
    PERSONAL = "personal"
    RELATIONSHIP = "relationship"


class Phase(str, Enum):
    ZONING = "zoning"
    REFINEMENT = "refinement"
    VALIDATION = "validation"
    DONE = "done"
    # reported by session status only, the selector never enters it
    COMPLETED = "completed"


class SessionState(str, Enum):
    CREATED = "created"
    ACTIVE = "active"
    VALIDATING = "validating"
    COMPLETED = "completed"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WarningKind(str, Enum):
    SPEED = "speed"
    CONTRADICTION = "contradiction"
    INCOHERENCE = "incoherence"
    SPIRITUAL_BYPASS = "spiritual_bypass"
    PATTERN = "pattern"


class ReliabilityBand(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Option:
    id: str
    level: int
    zone: Zone


@dataclass(frozen=True)
class ModeVariant:
    prompt: str
    options: Tuple[str, ...]


@dataclass(frozen=True)
class Question:
    id: str
    category: Category
    topic: str
    dimension: Dimension
    target_level: int
    priority: int
    options: Tuple[Option, ...]
    variants: Dict[TestMode, ModeVariant]
    sensitive: bool = False
    practical: bool = False

    @property
    def critical(self) -> bool:
        return self.priority == 1

    def levels(self) -> Tuple[int, ...]:
        return tuple(opt.level for opt in self.options)


@dataclass(frozen=True)
class Choice:
    option_id: str
    level: int
    text: str


@dataclass(frozen=True)
class PresentedQuestion:
    """A question resolved to one presentation mode."""

    id: str
    category: Category
    mode: TestMode
    prompt: str
    choices: Tuple[Choice, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "mode": self.mode.value,
            "prompt": self.prompt,
            "choices": [asdict(c) for c in self.choices],
        }


@dataclass(frozen=True)
class Answer:
    question_id: str
    level: int
    response_ms: Optional[int]
    answered_at: str
    mode: TestMode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "level": self.level,
            "response_ms": self.response_ms,
            "answered_at": self.answered_at,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Answer":
        return cls(
            question_id=raw["question_id"],
            level=int(raw["level"]),
            response_ms=raw.get("response_ms"),
            answered_at=raw["answered_at"],
            mode=TestMode(raw["mode"]),
        )


@dataclass(frozen=True)
class ValidationWarning:
    kind: WarningKind
    severity: Severity
    message: str
    question_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "question_ids": list(self.question_ids),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ValidationWarning":
        return cls(
            kind=WarningKind(raw["kind"]),
            severity=Severity(raw["severity"]),
            message=raw["message"],
            question_ids=tuple(raw.get("question_ids") or ()),
        )


@dataclass(frozen=True)
class ValidationResult:
    speed_anomaly: bool
    fast_count: int
    sensitive_count: int
    contradiction_count: int
    contradictions: Tuple[Tuple[str, str], ...]
    coherence: float
    spiritual_bypass: bool
    bypass_penalty: float
    completeness: float
    answer_count: int
    avg_response_ms: Optional[float]
    reliability_score: float
    reliability: ReliabilityBand
    is_reliable: bool
    warnings: Tuple[ValidationWarning, ...] = ()
    recommendations: Tuple[str, ...] = ()

    @property
    def speed_rate(self) -> float:
        if self.sensitive_count <= 0:
            return 0.0
        return self.fast_count / self.sensitive_count

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["contradictions"] = [list(pair) for pair in self.contradictions]
        out["reliability"] = self.reliability.value
        out["warnings"] = [w.to_dict() for w in self.warnings]
        out["recommendations"] = list(self.recommendations)
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ValidationResult":
        data = dict(raw)
        data["contradictions"] = tuple(tuple(pair) for pair in raw.get("contradictions") or ())
        data["reliability"] = ReliabilityBand(raw["reliability"])
        data["warnings"] = tuple(ValidationWarning.from_dict(w) for w in raw.get("warnings") or ())
        data["recommendations"] = tuple(raw.get("recommendations") or ())
        return cls(**data)


@dataclass(frozen=True)
class LevelDetection:
    estimate: float
    zone: Zone
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"estimate": self.estimate, "zone": self.zone.value, "confidence": self.confidence}


@dataclass(frozen=True)
class LevelScores:
    personal_level: float
    relationship_level: float
    level_scores: Dict[int, float]


@dataclass(frozen=True)
class Interpretation:
    headline: str
    level: int
    level_name: str
    level_icon: str
    zone_description: str
    traits: Tuple[str, ...]
    risks: Tuple[str, ...]
    growth: Tuple[str, ...]
    challenge: str
    next_level: Optional[str]
    reliability_message: str
    validation_notes: Optional[str] = None
    warning_messages: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for key in ("traits", "risks", "growth", "warning_messages", "recommendations"):
            out[key] = list(out[key])
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Interpretation":
        data = dict(raw)
        for key in ("traits", "risks", "growth", "warning_messages", "recommendations"):
            data[key] = tuple(raw.get(key) or ())
        return cls(**data)


@dataclass(frozen=True)
class TestResult:
    __test__ = False
    session_id: str
    mode: TestMode
    relationship_status: RelationshipStatus
    personal_level: float
    relationship_level: float
    raw_personal_level: float
    raw_relationship_level: float
    zone: Zone
    level_scores: Dict[int, float]
    distribution: Dict[int, int]
    pattern: str
    validation: ValidationResult
    answer_count: int
    created_at: str
    interpretation: Optional[Interpretation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "mode": self.mode.value,
            "relationship_status": self.relationship_status.value,
            "personal_level": self.personal_level,
            "relationship_level": self.relationship_level,
            "raw_personal_level": self.raw_personal_level,
            "raw_relationship_level": self.raw_relationship_level,
            "zone": self.zone.value,
            "level_scores": {str(k): v for k, v in self.level_scores.items()},
            "distribution": {str(k): v for k, v in self.distribution.items()},
            "pattern": self.pattern,
            "validation": self.validation.to_dict(),
            "answer_count": self.answer_count,
            "created_at": self.created_at,
            "interpretation": self.interpretation.to_dict() if self.interpretation else None,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TestResult":
        interp = raw.get("interpretation")
        return cls(
            session_id=raw["session_id"],
            mode=TestMode(raw["mode"]),
            relationship_status=RelationshipStatus(raw["relationship_status"]),
            personal_level=float(raw["personal_level"]),
            relationship_level=float(raw["relationship_level"]),
            raw_personal_level=float(raw["raw_personal_level"]),
            raw_relationship_level=float(raw["raw_relationship_level"]),
            zone=Zone(raw["zone"]),
            level_scores={int(k): float(v) for k, v in raw["level_scores"].items()},
            distribution={int(k): int(v) for k, v in raw["distribution"].items()},
            pattern=raw["pattern"],
            validation=ValidationResult.from_dict(raw["validation"]),
            answer_count=int(raw["answer_count"]),
            created_at=raw["created_at"],
            interpretation=Interpretation.from_dict(interp) if interp else None,
        )


@dataclass(frozen=True)
class PairComparison:
    result_a: str
    result_b: str
    level_a: float
    level_b: float
    gap: float
    direction: str
    significant: bool
    compatibility: float
    compatibility_message: str
    gap_message: str
    agreement_points: Tuple[str, ...] = ()
    conflict_points: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for key in ("agreement_points", "conflict_points", "recommendations"):
            out[key] = list(out[key])
        return out


@dataclass(frozen=True)
class SessionStatus:
    session_id: str
    state: SessionState
    phase: Phase
    mode: TestMode
    questions_answered: int
    current_estimate: float
    zone: Zone
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "phase": self.phase.value,
            "mode": self.mode.value,
            "questions_answered": self.questions_answered,
            "current_estimate": self.current_estimate,
            "zone": self.zone.value,
            "confidence": self.confidence,
        }


@dataclass
class Session:
    id: str
    mode: TestMode
    relationship_status: RelationshipStatus
    state: SessionState
    created_at: str
    selector: Any
    served_at: Dict[str, str] = field(default_factory=dict)
    audit_events: List[Dict[str, Any]] = field(default_factory=list)
