from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


LEVEL_MIN: int = 1
LEVEL_MAX: int = 12
MIDPOINT: float = 6.0

# selector phases
ZONING_EXIT_COUNT: int = 6
REFINEMENT_EXIT_COUNT: int = 10
REFINEMENT_MIN_COUNT: int = 6
VALIDATION_EXIT_COUNT: int = 4
EARLY_STOP_CONFIDENCE: float = 0.85

FAVOURED_WEIGHT: float = 2.0
BASE_WEIGHT: float = 1.0
WINDOW_START_HALF_WIDTH: float = 6.0
WINDOW_SHRINK: float = 0.75
WINDOW_MIN_HALF_WIDTH: float = 1.5
CONFIDENCE_COUNT_K: float = 2.0
CONFIDENCE_VARIANCE_SCALE: float = 4.0

# validation signals
FAST_RESPONSE_MS: int = 1000
CONTRADICTION_TOLERANCE: int = 4
CONTRADICTION_SATURATION: int = 5
MAX_VARIANCE: float = 30.25  # (12 - 1) ** 2 / 4
COHERENCE_WARN: float = 0.6
BYPASS_ASPIRATION_LEVEL: float = 9.0
BYPASS_PRACTICAL_LEVEL: float = 5.0
BYPASS_OVERALL_LEVEL: float = 7.0
BYPASS_PENALTY_SPAN: float = 8.0
MIN_ANSWERS_FOR_FULL_RELIABILITY: int = 12

W_SPEED: float = 0.2
W_CONTRADICTION: float = 0.3
W_COHERENCE: float = 0.3
W_BYPASS: float = 0.2

RELIABILITY_THRESHOLD: float = 0.6
RELIABILITY_HIGH: float = 0.75
RELIABILITY_MEDIUM: float = 0.5

# scoring
CRITICAL_WEIGHT: float = 2.0
BYPASS_LEVEL_CEILING: float = 9.0
COMPATIBILITY_MAX_SPAN: float = 11.0
COMPATIBILITY_SHAPE: float = 1.5
SIGNIFICANT_GAP: float = 2.0
SPLIT_MIN_DISTANCE: int = 4
SPLIT_PEAK_RATIO: float = 0.6
CONCENTRATED_SHARE: float = 0.5

BANK_EXPECT_COUNTS: dict[str, int] = {"zoning": 6, "refinement": 22, "validation": 6}
BANK_MIN_PER_TOPIC: int = 2
BANK_COARSE_BANDS: tuple[tuple[int, int], ...] = ((1, 4), (5, 8), (9, 12))

SESSION_TTL_SEC: int = 0
AUDIT_EXPORT_ENABLED: bool = True

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "session_id",
    "question_id",
    "category",
    "level",
    "phase_before",
    "phase_after",
    "estimate_before",
    "estimate_after",
    "confidence",
)
# // env overrides for staging/ops; defaults stay conservative.
ZONING_EXIT_COUNT = _env_int("ZONING_EXIT_COUNT", ZONING_EXIT_COUNT)
REFINEMENT_EXIT_COUNT = _env_int("REFINEMENT_EXIT_COUNT", REFINEMENT_EXIT_COUNT)
REFINEMENT_MIN_COUNT = _env_int("REFINEMENT_MIN_COUNT", REFINEMENT_MIN_COUNT)
VALIDATION_EXIT_COUNT = _env_int("VALIDATION_EXIT_COUNT", VALIDATION_EXIT_COUNT)
EARLY_STOP_CONFIDENCE = _env_float("EARLY_STOP_CONFIDENCE", EARLY_STOP_CONFIDENCE)
FAST_RESPONSE_MS = _env_int("FAST_RESPONSE_MS", FAST_RESPONSE_MS)
CONTRADICTION_TOLERANCE = _env_int("CONTRADICTION_TOLERANCE", CONTRADICTION_TOLERANCE)
RELIABILITY_THRESHOLD = _env_float("RELIABILITY_THRESHOLD", RELIABILITY_THRESHOLD)
BYPASS_LEVEL_CEILING = _env_float("BYPASS_LEVEL_CEILING", BYPASS_LEVEL_CEILING)
SESSION_TTL_SEC = _env_int("SESSION_TTL_SEC", SESSION_TTL_SEC)
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)


def load_config() -> dict:
    """Adapter settings: optional config.json, then environment."""
    cfg: dict = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            cfg = {}
    e = os.environ
    if e.get("DATA_DIR"):
        cfg["DATA_DIR"] = e.get("DATA_DIR")
    cfg.setdefault("SESSION_TTL_SEC", SESSION_TTL_SEC)
    if e.get("SESSION_TTL_SEC"):
        cfg["SESSION_TTL_SEC"] = _env_int("SESSION_TTL_SEC", SESSION_TTL_SEC)
    return cfg
