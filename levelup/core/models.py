"""
Core data model.

- QuizMode: question formats, ordered by the difficulty ladder
- DisplayDirection: which side of an item is shown as the prompt
- Item: read-only vocabulary entry supplied by the catalog
- ProgressRecord: per-user, per-item mastery state
- AnswerRecord: one entry of a session's rolling performance window
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from levelup.core.validation import coerce_int, coerce_number


class QuizMode(str, Enum):
    """Question format presented for an item."""

    MULTIPLE_CHOICE = "multiple-choice"
    LETTER_SCRAMBLE = "letter-scramble"
    OPEN_ANSWER = "open-answer"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    # Deep Dive prompt modes (no discrete options)
    CONTEXTUAL_ANALYSIS = "contextual-analysis"
    USAGE_EXAMPLE = "usage-example"
    SYNONYM_ANTONYM = "synonym-antonym"

    @property
    def is_open_ended(self) -> bool:
        """Whether the learner produces the answer instead of picking it."""
        return self not in (QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE, QuizMode.FILL_IN_THE_BLANK)

    @property
    def has_options(self) -> bool:
        return self in (QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE, QuizMode.FILL_IN_THE_BLANK)


# Easiest first
QUIZ_MODE_LADDER: tuple[QuizMode, ...] = (
    QuizMode.MULTIPLE_CHOICE,
    QuizMode.LETTER_SCRAMBLE,
    QuizMode.OPEN_ANSWER,
    QuizMode.FILL_IN_THE_BLANK,
)


class DisplayDirection(str, Enum):
    """Which side of the item the learner sees."""

    TERM_TO_DEFINITION = "term-to-definition"
    DEFINITION_TO_TERM = "definition-to-term"


@dataclass(frozen=True)
class Item:
    """
    Vocabulary item from the catalog.

    Immutable for the lifetime of a session.
    """

    id: str
    term: str
    definition: str
    direction: DisplayDirection = DisplayDirection.DEFINITION_TO_TERM
    level: int = 1  # 1-5 complexity
    example: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "level", coerce_int(self.level, default=1, minimum=1, maximum=5))

    @property
    def prompt(self) -> str:
        """Text shown to the learner."""
        if self.direction == DisplayDirection.TERM_TO_DEFINITION:
            return self.term
        return self.definition

    @property
    def answer(self) -> str:
        """Text the learner must produce or pick."""
        if self.direction == DisplayDirection.TERM_TO_DEFINITION:
            return self.definition
        return self.term


@dataclass
class ProgressRecord:
    """Per-user mastery state for one item."""

    item_id: str
    mastery_score: float = 0.0
    last_practiced_at: datetime | None = None
    times_correct: int = 0
    times_incorrect: int = 0

    def __post_init__(self) -> None:
        self.mastery_score = coerce_number(self.mastery_score, 0.0, 0.0, 100.0)
        self.times_correct = coerce_int(self.times_correct, 0, minimum=0)
        self.times_incorrect = coerce_int(self.times_incorrect, 0, minimum=0)

    @property
    def practice_count(self) -> int:
        return self.times_correct + self.times_incorrect

    @property
    def accuracy(self) -> float | None:
        """Share of correct answers, None when never practiced."""
        if self.practice_count == 0:
            return None
        return self.times_correct / self.practice_count

    @property
    def is_practiced(self) -> bool:
        return self.practice_count > 0 or self.last_practiced_at is not None

    def effective_mastery(self, now: datetime | None = None) -> float:
        """Stored score after time decay."""
        from levelup.core.mastery import calculate_mastery_decay

        return calculate_mastery_decay(self.last_practiced_at, self.mastery_score, now)

    def with_answer(
        self,
        is_correct: bool,
        quiz_mode: QuizMode,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """
        Return an updated copy after an answer.

        The engine never persists progress itself; callers store the
        returned record.
        """
        from levelup.core.mastery import calculate_mastery_gain

        return replace(
            self,
            mastery_score=calculate_mastery_gain(self.mastery_score, is_correct, quiz_mode),
            last_practiced_at=now or datetime.now(UTC),
            times_correct=self.times_correct + (1 if is_correct else 0),
            times_incorrect=self.times_incorrect + (0 if is_correct else 1),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "mastery_score": self.mastery_score,
            "last_practiced_at": self.last_practiced_at.isoformat() if self.last_practiced_at else None,
            "times_correct": self.times_correct,
            "times_incorrect": self.times_incorrect,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressRecord:
        last = data.get("last_practiced_at")
        return cls(
            item_id=data["item_id"],
            mastery_score=data.get("mastery_score", 0.0),
            last_practiced_at=datetime.fromisoformat(last) if last else None,
            times_correct=data.get("times_correct", 0),
            times_incorrect=data.get("times_incorrect", 0),
        )


ProgressMap = Mapping[str, ProgressRecord]


@dataclass(frozen=True)
class AnswerRecord:
    """One answer in a rolling performance window."""

    is_correct: bool
    time_spent: float  # seconds
    quiz_mode: QuizMode
    item_id: str | None = None
    error_type: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "time_spent", coerce_number(self.time_spent, 0.0, minimum=0.0))
