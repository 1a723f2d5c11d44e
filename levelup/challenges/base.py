"""
Challenge Session Base.

Shared lifecycle for the Streak, Precision and Deep Dive sessions.
A session is an explicit object owned by the caller:

    session = StreakChallenge(settings, rng=random.Random(7))
    session.initialize(items, progress_map)
    question = await session.get_next()
    outcome = session.record_answer(question.item.id, True, 4.2)

Callers serialize get_next()/record_answer() pairs per session; there is
no internal locking and nothing runs in the background.
"""

from __future__ import annotations

import random
import uuid
from abc import ABC, abstractmethod
from collections import Counter, deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from loguru import logger
from pydantic import BaseModel

from levelup.adaptive.cognitive_model import PerformanceAnalysis
from levelup.adaptive.enhancement import (
    EnhancementContext,
    EnhancementStrategy,
    RuleBasedEnhancer,
    analyze_with_fallback,
    get_enhancer,
)
from levelup.adaptive.risk import ChallengeType
from levelup.config import EngineSettings, get_settings
from levelup.core.exceptions import SessionNotInitializedError, SessionTerminatedError
from levelup.core.models import AnswerRecord, Item, ProgressMap, ProgressRecord, QuizMode
from levelup.profile.store import ProfileStore


class SessionStatus(str, Enum):
    """Lifecycle state of a challenge session."""

    IDLE = "idle"
    ACTIVE = "active"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.FAILED, SessionStatus.COMPLETED)


class AnswerOutcome(str, Enum):
    """What the driver should do after record_answer()."""

    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass
class ChallengeQuestion:
    """
    Question payload returned by get_next().

    Attributes:
        item: Item to present
        quiz_mode: Format to present it in
        options: Answer options (empty for open-ended modes)
        ai_enhanced: True when the heuristic enhancer shaped this question
        reasoning: Trail of the decisions behind the question
        timing_hint: Recommended seconds for the answer
    """

    item: Item
    quiz_mode: QuizMode
    options: list[str] = field(default_factory=list)
    ai_enhanced: bool = False
    reasoning: list[str] = field(default_factory=list)
    timing_hint: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item.id,
            "prompt": self.item.prompt,
            "quiz_mode": self.quiz_mode.value,
            "options": list(self.options),
            "ai_enhanced": self.ai_enhanced,
            "reasoning": list(self.reasoning),
            "timing_hint": self.timing_hint,
        }


def utc_now() -> datetime:
    return datetime.now(UTC)


class ChallengeSession(ABC):
    """
    Common state for one challenge session.

    Subclasses implement initialize(), get_next(), record_answer() and
    summary(); this base owns the catalog, a working copy of progress,
    the rolling answer history and analytics persistence.
    """

    challenge_type: ClassVar[ChallengeType] = ChallengeType.DEFAULT

    def __init__(
        self,
        settings: EngineSettings | None = None,
        enhancer: EnhancementStrategy | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings or get_settings()
        self.enhancer = enhancer or get_enhancer(self.settings)
        self.rng = rng or random.Random()
        self.clock = clock or utc_now

        self.status = SessionStatus.IDLE
        self.session_id: str | None = None
        self.started_at: datetime | None = None
        self.items: list[Item] = []
        self.progress: dict[str, ProgressRecord] = {}
        self.history: deque[AnswerRecord] = deque(maxlen=self.settings.performance_window)
        self.current_question: ChallengeQuestion | None = None
        self.mode_counts: Counter[QuizMode] = Counter()
        self.attempts = 0
        self.correct = 0
        self.total_time = 0.0
        self.ai_enhanced_questions = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _start(self, items: Sequence[Item], progress_map: ProgressMap | None) -> None:
        self.items = list(items)
        self.progress = dict(progress_map or {})
        self.session_id = f"{self.challenge_type.value}-{uuid.uuid4().hex[:8]}"
        self.started_at = self.clock()
        self.status = SessionStatus.ACTIVE
        self.history.clear()
        self.current_question = None
        self.mode_counts.clear()
        self.attempts = 0
        self.correct = 0
        self.total_time = 0.0
        self.ai_enhanced_questions = 0
        logger.info(f"Started {self.session_id} with {len(self.items)} items")

    def _require_active(self) -> None:
        if self.status == SessionStatus.IDLE:
            raise SessionNotInitializedError(f"{type(self).__name__} used before initialize()")
        if self.status.is_terminal:
            raise SessionTerminatedError(self.status.value)

    def _merge_progress(self, progress_map: ProgressMap | None) -> None:
        if progress_map:
            self.progress.update(progress_map)

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def progress_updates(self) -> dict[str, ProgressRecord]:
        """Working copy of progress, including answers recorded this session."""
        return dict(self.progress)

    @abstractmethod
    def reset(self) -> None:
        ...

    # =========================================================================
    # Answers
    # =========================================================================

    def _present(self, question: ChallengeQuestion) -> ChallengeQuestion:
        self.current_question = question
        self.mode_counts[question.quiz_mode] += 1
        if question.ai_enhanced:
            self.ai_enhanced_questions += 1
        logger.debug(
            f"{self.session_id}: {question.item.term!r} as {question.quiz_mode.value} "
            f"({question.timing_hint}s)"
        )
        return question

    def _mode_for(self, item_id: str) -> QuizMode:
        if self.current_question and self.current_question.item.id == item_id:
            return self.current_question.quiz_mode
        return QuizMode.MULTIPLE_CHOICE

    def _record(
        self,
        item_id: str,
        is_correct: bool,
        time_spent: float,
        error_type: str | None = None,
    ) -> AnswerRecord:
        """Append to history and update the working progress copy."""
        record = AnswerRecord(
            is_correct=bool(is_correct),
            time_spent=time_spent,
            quiz_mode=self._mode_for(item_id),
            item_id=item_id,
            error_type=error_type,
        )
        self.history.append(record)
        self.attempts += 1
        self.total_time += record.time_spent
        if record.is_correct:
            self.correct += 1

        previous = self.progress.get(item_id) or ProgressRecord(item_id=item_id)
        self.progress[item_id] = previous.with_answer(record.is_correct, record.quiz_mode, self.clock())
        self.current_question = None
        return record

    @abstractmethod
    def record_answer(
        self,
        item_id: str,
        is_correct: bool,
        time_spent: float = 0.0,
        error_type: str | None = None,
    ) -> AnswerOutcome:
        ...

    @property
    def accuracy(self) -> float:
        return self.correct / self.attempts if self.attempts else 0.0

    @property
    def avg_time_per_item(self) -> float:
        return self.total_time / self.attempts if self.attempts else 0.0

    def _dominant_mode(self) -> QuizMode:
        if not self.mode_counts:
            return QuizMode.MULTIPLE_CHOICE
        return self.mode_counts.most_common(1)[0][0]

    # =========================================================================
    # Enhancement
    # =========================================================================

    @property
    def enhancements_enabled(self) -> bool:
        return self.settings.ai_enhancements_enabled and not isinstance(self.enhancer, RuleBasedEnhancer)

    async def _analyze(self, baseline_mode: QuizMode, streak: int = 0) -> PerformanceAnalysis:
        context = EnhancementContext(
            history=list(self.history),
            baseline_mode=baseline_mode,
            challenge=self.challenge_type.value,
            streak=streak,
            window=self.settings.recent_window,
        )
        return await analyze_with_fallback(
            self.enhancer,
            context,
            timeout=self.settings.enhancement_timeout_seconds,
        )

    # =========================================================================
    # Analytics
    # =========================================================================

    @abstractmethod
    def summary(self) -> BaseModel:
        """Analytics payload sent to the Profile Store."""
        ...

    @abstractmethod
    async def _persist(self, store: ProfileStore, user_id: str) -> None:
        ...

    async def save_performance(self, user_id: str, store: ProfileStore) -> bool:
        """
        Send session analytics to the Profile Store.

        Failures are logged and reported through the return value only.

        Returns:
            True when the store accepted the update
        """
        try:
            await self._persist(store, user_id)
        except Exception as e:
            logger.error(f"Failed to save {self.challenge_type.value} performance for {user_id}: {e}")
            return False

        logger.info(f"Saved {self.challenge_type.value} performance for {user_id}")
        return True

    def get_state(self) -> dict[str, Any]:
        """Debug/inspection snapshot."""
        return {
            "session_id": self.session_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "items": len(self.items),
            "attempts": self.attempts,
            "correct": self.correct,
            "history": len(self.history),
            "quiz_modes": {mode.value: count for mode, count in self.mode_counts.items()},
        }
