from __future__ import annotations
import json, importlib.resources as ir
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from .errors import QuestionNotFound
from .types import Category, Dimension, ModeVariant, Option, PresentedQuestion, Choice, Question, TestMode, Zone

TOPICS = ["conflict", "intimacy", "trust", "responsibility", "growth", "freedom"]


def _question_from_raw(r: Dict[str, Any]) -> Question:
    options = tuple(Option(id=o["id"], level=int(o["level"]), zone=Zone(o["zone"])) for o in r["options"])
    variants = {
        TestMode(mode): ModeVariant(prompt=v["prompt"], options=tuple(v["options"]))
        for mode, v in r["modes"].items()
    }
    return Question(
        id=r["id"],
        category=Category(r["category"]),
        topic=r["topic"],
        dimension=Dimension(r["dimension"]),
        target_level=int(r["target_level"]),
        priority=int(r.get("priority", 2)),
        options=options,
        variants=variants,
        sensitive=bool(r.get("sensitive", False)),
        practical=bool(r.get("practical", False)),
    )


def load_questions() -> List[Question]:
    data = ir.files(__package__).joinpath("data/questions.json").read_text(encoding="utf-8")
    raw = json.loads(data)
    return [_question_from_raw(r) for r in raw]


def render(question: Question, mode: TestMode) -> PresentedQuestion:
    """Resolve a question to the wording of one presentation mode."""
    variant = question.variants[TestMode(mode)]
    choices = tuple(
        Choice(option_id=opt.id, level=opt.level, text=text)
        for opt, text in zip(question.options, variant.options)
    )
    return PresentedQuestion(
        id=question.id,
        category=question.category,
        mode=TestMode(mode),
        prompt=variant.prompt,
        choices=choices,
    )


class QuestionBank:
    """Read-only catalog with lookups in catalog order."""

    def __init__(self, questions: Iterable[Question]):
        self.questions: List[Question] = list(questions)
        self._by_id: Dict[str, Question] = {q.id: q for q in self.questions}
        self._order: Dict[str, int] = {q.id: idx for idx, q in enumerate(self.questions)}

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self):
        return iter(self.questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    def get(self, question_id: str) -> Question:
        q = self._by_id.get(question_id)
        if q is None:
            raise QuestionNotFound(question_id)
        return q

    def find(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def position(self, question_id: str) -> int:
        return self._order[question_id]

    def by_category(self, category: Category | str) -> List[Question]:
        cat = Category(category)
        return [q for q in self.questions if q.category == cat]

    def by_target_level(self, level: int) -> List[Question]:
        lvl = int(level)
        return [q for q in self.questions if any(opt.level == lvl for opt in q.options)]

    def by_topic(self, topic: str) -> List[Question]:
        return [q for q in self.questions if q.topic == topic]

    def zoning_questions(self) -> List[Question]:
        return self.by_category(Category.ZONING)

    def refinement_questions(self) -> List[Question]:
        return self.by_category(Category.REFINEMENT)

    def validation_questions(self) -> List[Question]:
        return self.by_category(Category.VALIDATION)

    def critical_questions(self) -> List[Question]:
        return [q for q in self.questions if q.priority == 1]

    def render(self, question_id: str, mode: TestMode) -> PresentedQuestion:
        return render(self.get(question_id), mode)


@lru_cache(maxsize=1)
def default_bank() -> QuestionBank:
    return QuestionBank(load_questions())
