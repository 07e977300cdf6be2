from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable

from . import config
from .levels import zone_for_level
from .question_bank import load_questions
from .types import Category, Question, TestMode

LADDER: tuple[int, ...] = tuple(range(config.LEVEL_MIN, config.LEVEL_MAX + 1))


def _check_question(q: Question, warnings: list[str]) -> None:
    for opt in q.options:
        if not (config.LEVEL_MIN <= opt.level <= config.LEVEL_MAX):
            warnings.append(f"{q.id} option {opt.id} level {opt.level} outside 1..12")
            continue
        if opt.zone != zone_for_level(opt.level):
            warnings.append(
                f"{q.id} option {opt.id} tagged {opt.zone.value} but level {opt.level} is {zone_for_level(opt.level).value}"
            )
    for mode in TestMode:
        variant = q.variants.get(mode)
        if variant is None:
            warnings.append(f"{q.id} missing mode {mode.value}")
        elif len(variant.options) != len(q.options):
            warnings.append(f"{q.id} mode {mode.value} has {len(variant.options)} texts for {len(q.options)} options")
    if not (config.LEVEL_MIN <= q.target_level <= config.LEVEL_MAX):
        warnings.append(f"{q.id} target level {q.target_level} outside 1..12")


def audit_items(questions: Iterable[Question]) -> dict[str, object]:
    items = list(questions)
    warnings: list[str] = []

    dupes = [qid for qid, n in Counter(q.id for q in items).items() if n > 1]
    for qid in dupes:
        warnings.append(f"duplicate question id {qid}")

    counts = {cat.value: 0 for cat in Category}
    topics: Counter = Counter()
    target_coverage = {lvl: 0 for lvl in LADDER}
    option_coverage = {lvl: 0 for lvl in LADDER}
    for q in items:
        counts[q.category.value] += 1
        topics[q.topic] += 1
        if q.category == Category.REFINEMENT and q.target_level in target_coverage:
            target_coverage[q.target_level] += 1
        for opt in q.options:
            if opt.level in option_coverage:
                option_coverage[opt.level] += 1
        _check_question(q, warnings)

    for cat, expected in config.BANK_EXPECT_COUNTS.items():
        if counts.get(cat, 0) != expected:
            warnings.append(f"{cat} has {counts.get(cat, 0)} questions (expected {expected})")

    for lvl, n in target_coverage.items():
        if n == 0:
            warnings.append(f"no refinement question targets level {lvl}")

    for topic, n in sorted(topics.items()):
        if n < config.BANK_MIN_PER_TOPIC:
            warnings.append(f"topic {topic} has {n} question(s) (<{config.BANK_MIN_PER_TOPIC})")

    for q in items:
        if q.category != Category.ZONING:
            continue
        levels = q.levels()
        for lo, hi in config.BANK_COARSE_BANDS:
            if not any(lo <= lvl <= hi for lvl in levels):
                warnings.append(f"zoning {q.id} has no option in band {lo}-{hi}")

    summary = {
        "counts": counts,
        "topics": dict(sorted(topics.items())),
        "target_coverage": {str(k): v for k, v in target_coverage.items()},
        "option_coverage": {str(k): v for k, v in option_coverage.items()},
        "warnings": warnings,
    }
    return summary


def _format_row(label: str, data: dict[str, int]) -> str:
    parts = [label]
    for lvl in LADDER:
        parts.append(f"{lvl:>2}:{data.get(str(lvl), 0):3d}")
    return "  ".join(parts)


def print_report(summary: dict[str, object]) -> None:
    print("=== Question Bank ===")
    counts: dict[str, int] = summary["counts"]  # type: ignore[assignment]
    for cat, n in counts.items():
        print(f"  {cat:<11}{n:3d}")
    print("\nTopics:", summary["topics"])
    print("\n" + _format_row("targets", summary["target_coverage"]))  # type: ignore[arg-type]
    print(_format_row("options", summary["option_coverage"]))  # type: ignore[arg-type]

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")


def write_summary(summary: dict[str, object], path: Path = Path("/tmp/bank_audit.json")) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    print(text)
    return text


def main(_argv: list[str] | None = None) -> int:
    summary = audit_items(load_questions())
    print_report(summary)
    write_summary(summary)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
