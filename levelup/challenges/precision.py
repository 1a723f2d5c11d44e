"""
Precision Mode.

Zero-mistake session: the first incorrect answer ends it for good.

Only the top confidence-ranked items are eligible: high-but-not-perfect
effective mastery (sweet spot 70-95), short terms and low levels. Each
question goes to the safest unused item, and pacing slows while the
quiz-mode ceiling drops as error risk climbs.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from levelup.adaptive.cognitive_model import cap_mode, easier_mode
from levelup.adaptive.risk import (
    ChallengeType,
    adjust_strategy_for_risk,
    calculate_error_risk,
    generate_hints,
    generate_support,
    session_phase,
)
from levelup.challenges.base import AnswerOutcome, ChallengeQuestion, ChallengeSession, SessionStatus
from levelup.challenges.selection import UsageTracker, generate_options, select_quiz_mode_for_mastery
from levelup.core.exceptions import EmptyCatalogError
from levelup.core.models import Item, ProgressMap, ProgressRecord
from levelup.core.validation import coerce_int
from levelup.profile.models import PrecisionPerformance
from levelup.profile.store import ProfileStore

# Enhancement is only consulted above this risk
ENHANCEMENT_RISK = 0.2


def confidence_score(item: Item, progress: ProgressRecord | None, now: datetime | None = None) -> float:
    """
    How safe an item is for a zero-mistake session (higher = safer).

    Mastery in the 70-95 sweet spot scores highest; perfect mastery is
    slightly penalised. Shorter terms, lower levels and a good answer
    record add to the score.
    """
    mastery = progress.effective_mastery(now) if progress else 0.0
    if 70 <= mastery <= 95:
        score = 50 + (mastery - 70) * 0.4
    elif mastery > 95:
        score = 40.0
    else:
        score = mastery * 0.5

    score += max(0, 20 - len(item.term))
    score += (5 - item.level) * 5
    if progress is not None and progress.accuracy is not None:
        score += progress.accuracy * 10
    return score


@dataclass
class PrecisionQuestion(ChallengeQuestion):
    """Precision question with risk context."""

    position: int = 1
    error_risk: float = 0.0
    load_level: str = "moderate"  # minimal, low, moderate
    error_prevention_hints: list[str] = field(default_factory=list)
    confidence_boost: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "position": self.position,
            "error_risk": round(self.error_risk, 3),
            "load_level": self.load_level,
            "error_prevention_hints": list(self.error_prevention_hints),
            "confidence_boost": list(self.confidence_boost),
        })
        return data


class PrecisionMode(ChallengeSession):
    """Single-life session over a confidence-ranked pool."""

    challenge_type = ChallengeType.PRECISION

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.target = self.settings.precision_default_target
        self.ranked: list[Item] = []
        self.pool: list[Item] = []
        self.usage = UsageTracker()
        self.completed = 0
        self.error_count = 0
        self.failure_point = 0
        self.error_types: list[str] = []

    def initialize(
        self,
        items: Sequence[Item],
        progress_map: ProgressMap | None = None,
        target_count: int | None = None,
    ) -> dict[str, Any]:
        """
        Rank the catalog and start a session.

        Args:
            items: Candidate items
            progress_map: Progress records keyed by item id
            target_count: Correct answers needed to complete

        Raises:
            EmptyCatalogError: If no items were supplied
        """
        if not items:
            raise EmptyCatalogError("Precision mode needs at least one item")

        self._start(items, progress_map)
        self.target = coerce_int(target_count, self.settings.precision_default_target, minimum=1)
        self.ranked = self._rank(self.items)
        self.pool = self.ranked[: self.settings.precision_pool_size]
        self.usage = UsageTracker()
        self.completed = 0
        self.error_count = 0
        self.failure_point = 0
        self.error_types = []

        logger.info(f"{self.session_id}: {len(self.pool)} eligible items, target {self.target}")
        return {"session_id": self.session_id, "pool_size": len(self.pool), "target": self.target}

    def _rank(self, items: Sequence[Item]) -> list[Item]:
        now = self.clock()
        return sorted(
            items,
            key=lambda item: confidence_score(item, self.progress.get(item.id), now),
            reverse=True,
        )

    def _select_item(self) -> Item:
        candidates = self.usage.unused(self._rank(self.pool))
        if not candidates:
            candidates = self.usage.unused(self.ranked)
            if candidates:
                logger.warning(f"{self.session_id}: confidence pool exhausted, widening to full catalog")
        if not candidates:
            logger.warning(f"{self.session_id}: catalog exhausted, clearing used items")
            self.usage.clear()
            candidates = self._rank(self.pool)
        return candidates[0]

    # =========================================================================
    # Session driver contract
    # =========================================================================

    async def get_next(self, progress_map: ProgressMap | None = None) -> PrecisionQuestion:
        """
        Next item: the safest unused candidate.

        Raises:
            SessionTerminatedError: If the session already failed or completed
        """
        self._require_active()
        self._merge_progress(progress_map)

        risk = calculate_error_risk(self.completed, self.error_count, ChallengeType.PRECISION)
        item = self._select_item()
        progress = self.progress.get(item.id)
        mastery = progress.effective_mastery(self.clock()) if progress else 0.0

        strategy = adjust_strategy_for_risk(
            risk,
            ChallengeType.PRECISION,
            select_quiz_mode_for_mastery(mastery, self.rng),
        )
        mode = strategy.quiz_mode
        reasoning = [
            f"Error risk {risk:.2f}, pacing {strategy.pacing:.0f}s, {strategy.cognitive_load_level} load"
        ]
        if strategy.difficulty_adjustment == "easier":
            mode = easier_mode(mode)
            reasoning.append(f"Risk above 0.3, eased to {mode.value}")

        ai_enhanced = False
        if self.enhancements_enabled and risk > ENHANCEMENT_RISK:
            analysis = await self._analyze(mode)
            # Never escalate past the baseline in a single-life session
            mode = cap_mode(analysis.recommended_quiz_mode, mode)
            reasoning.extend(analysis.reasoning)
            ai_enhanced = not analysis.fallback_used

        question = PrecisionQuestion(
            item=item,
            quiz_mode=mode,
            options=generate_options(item, mode, self.items, self.rng),
            ai_enhanced=ai_enhanced,
            reasoning=reasoning,
            timing_hint=round(strategy.pacing),
            load_level=strategy.cognitive_load_level,
            position=self.completed + 1,
            error_risk=risk,
            error_prevention_hints=generate_hints(item, mode, ChallengeType.PRECISION, risk),
            confidence_boost=generate_support(
                ChallengeType.PRECISION, risk, session_phase(self.completed, self.target)
            ),
        )
        self.usage.mark(item.id)
        return self._present(question)

    def record_answer(
        self,
        item_id: str,
        is_correct: bool,
        time_spent: float = 0.0,
        error_type: str | None = None,
    ) -> AnswerOutcome:
        """
        Record an answer; one mistake ends the session.

        Raises:
            SessionTerminatedError: If the session already failed or completed
        """
        self._require_active()
        self._record(item_id, is_correct, time_spent, error_type)

        if not is_correct:
            self.error_count += 1
            self.failure_point = self.completed + 1
            self.error_types.append(error_type or "incorrect")
            self.status = SessionStatus.FAILED
            logger.info(f"{self.session_id}: failed at item {self.failure_point} ({error_type or 'incorrect'})")
            return AnswerOutcome.TERMINATE

        self.completed += 1
        if self.completed >= self.target:
            self.status = SessionStatus.COMPLETED
            logger.info(f"{self.session_id}: completed {self.completed} items without a mistake")
            return AnswerOutcome.TERMINATE
        return AnswerOutcome.CONTINUE

    def reset(self) -> None:
        self.status = SessionStatus.IDLE
        self.session_id = None
        self.items = []
        self.ranked = []
        self.pool = []
        self.progress = {}
        self.usage = UsageTracker()
        self.history.clear()
        self.current_question = None
        self.completed = 0
        self.error_count = 0
        self.failure_point = 0
        self.error_types = []

    # =========================================================================
    # Analytics
    # =========================================================================

    def summary(self) -> PrecisionPerformance:
        return PrecisionPerformance(
            completed=self.status == SessionStatus.COMPLETED,
            items_completed=self.completed,
            failure_point=self.failure_point,
            accuracy=self.accuracy,
            avg_time_per_item=self.avg_time_per_item,
            error_types=list(self.error_types),
            quiz_mode_used=self._dominant_mode(),
            ai_enhanced=self.ai_enhanced_questions > 0,
        )

    async def _persist(self, store: ProfileStore, user_id: str) -> None:
        await store.update_precision_data(user_id, self.summary())

    def get_state(self) -> dict[str, Any]:
        state = super().get_state()
        state.update({
            "target": self.target,
            "completed": self.completed,
            "pool_size": len(self.pool),
            "error_count": self.error_count,
            "failure_point": self.failure_point,
            "failed": self.status == SessionStatus.FAILED,
        })
        return state
