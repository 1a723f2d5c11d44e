"""
Streak Challenge.

Difficulty rises with an unbroken run of correct answers. The catalog is
sorted easiest first and split into quintiles; the streak picks the
tier (1-5) and the tier picks the quintile. Wrong answers reset the
streak but never end the session.

Tier breakpoints: <3, <7, <12, <18, 18+
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from levelup.adaptive.cognitive_model import LoadLevel, MomentumTrend, consecutive_counts, fallback_analysis
from levelup.adaptive.risk import ChallengeType, calculate_time_allocation, generate_hints
from levelup.challenges.base import AnswerOutcome, ChallengeQuestion, ChallengeSession, SessionStatus
from levelup.challenges.selection import (
    UsageTracker,
    generate_options,
    quintile,
    quiz_mode_for_streak_tier,
    sort_by_difficulty,
    streak_tier,
)
from levelup.core.exceptions import EmptyCatalogError
from levelup.core.models import AnswerRecord, Item, ProgressMap
from levelup.core.validation import coerce_int
from levelup.profile.models import StreakPerformance
from levelup.profile.store import ProfileStore


@dataclass
class StreakQuestion(ChallengeQuestion):
    """Streak question with tier and load context."""

    tier: int = 1
    streak: int = 0
    cognitive_load: LoadLevel = LoadLevel.MODERATE
    momentum: MomentumTrend = MomentumTrend.STABLE
    hints: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "tier": self.tier,
            "streak": self.streak,
            "cognitive_load": self.cognitive_load.value,
            "momentum": self.momentum.value,
            "hints": list(self.hints or []),
        })
        return data


class StreakChallenge(ChallengeSession):
    """Open-ended streak session; only resets, never fails."""

    challenge_type = ChallengeType.STREAK

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sorted_items: list[Item] = []
        self.usage = UsageTracker()
        self.streak = 0
        self.best_streak = 0
        self.highest_tier = 1
        self.adaptations_used: list[str] = []
        self.last_load = LoadLevel.MODERATE

    def initialize(self, items: Sequence[Item], progress_map: ProgressMap | None = None) -> dict[str, Any]:
        """
        Start a session over the given catalog.

        Raises:
            EmptyCatalogError: If no items were supplied
        """
        if not items:
            raise EmptyCatalogError("Streak challenge needs at least one item")

        self._start(items, progress_map)
        self.sorted_items = sort_by_difficulty(self.items, self.progress, self.clock())
        self.usage = UsageTracker(
            catalog_size=len(self.items),
            ratio=self.settings.streak_usage_ratio,
            evict_count=self.settings.streak_eviction_count,
        )
        self.streak = 0
        self.best_streak = 0
        self.highest_tier = 1
        self.adaptations_used = []
        self.last_load = LoadLevel.MODERATE
        return {"session_id": self.session_id, "catalog_size": len(self.items)}

    # =========================================================================
    # Selection
    # =========================================================================

    def _select_item(self, tier: int) -> Item:
        candidates: list[Item] = []
        for t in range(tier, 6):
            candidates = self.usage.unused(quintile(self.sorted_items, t))
            if candidates:
                if t != tier:
                    logger.warning(f"Tier {tier} exhausted, drawing from tier {t}")
                break

        if not candidates:
            logger.warning(f"Tiers {tier}-5 exhausted, clearing used items")
            self.usage.clear()
            candidates = quintile(self.sorted_items, tier) or list(self.sorted_items)

        if tier >= 3:
            now = self.clock()
            return min(candidates, key=lambda item: self._effective_mastery(item, now))
        return self.rng.choice(candidates)

    def _effective_mastery(self, item: Item, now: datetime) -> float:
        progress = self.progress.get(item.id)
        return progress.effective_mastery(now) if progress else 0.0

    # =========================================================================
    # Session driver contract
    # =========================================================================

    async def get_next(
        self,
        streak: int | None = None,
        progress_map: ProgressMap | None = None,
        last_result: AnswerRecord | bool | None = None,
    ) -> StreakQuestion:
        """
        Pick the next item and quiz mode.

        Args:
            streak: Overrides the tracked streak when given
            progress_map: Fresh progress records to merge in
            last_result: Outcome of the previous question, for drivers that
                report it here instead of through record_answer()

        Returns:
            StreakQuestion for the next item
        """
        self._require_active()
        self._merge_progress(progress_map)

        if last_result is not None and self.current_question is not None:
            question = self.current_question
            if isinstance(last_result, AnswerRecord):
                self.record_answer(question.item.id, last_result.is_correct, last_result.time_spent, last_result.error_type)
            else:
                self.record_answer(question.item.id, bool(last_result), float(question.timing_hint))

        if streak is not None:
            self.streak = coerce_int(streak, self.streak, minimum=0)

        tier = streak_tier(self.streak)
        self.highest_tier = max(self.highest_tier, tier)
        item = self._select_item(tier)
        baseline = quiz_mode_for_streak_tier(tier, self.rng)

        if self.enhancements_enabled:
            analysis = await self._analyze(baseline, self.streak)
            mode = analysis.recommended_quiz_mode
        else:
            # Rule-based path keeps the tier-weighted baseline
            analysis = fallback_analysis(list(self.history), self.settings.recent_window)
            mode = baseline
        if mode != baseline:
            self.adaptations_used.append(f"{baseline.value} -> {mode.value}")
        self.last_load = analysis.cognitive_load.level

        self.usage.mark(item.id)
        question = StreakQuestion(
            item=item,
            quiz_mode=mode,
            options=generate_options(item, mode, self.items, self.rng),
            ai_enhanced=self.enhancements_enabled and not analysis.fallback_used,
            reasoning=[f"Streak {self.streak} -> tier {tier}", *analysis.reasoning],
            timing_hint=calculate_time_allocation(item, ChallengeType.STREAK, mode),
            tier=tier,
            streak=self.streak,
            cognitive_load=analysis.cognitive_load.level,
            momentum=analysis.momentum.trend,
            hints=generate_hints(item, mode, ChallengeType.STREAK),
        )
        return self._present(question)

    def record_answer(
        self,
        item_id: str,
        is_correct: bool,
        time_spent: float = 0.0,
        error_type: str | None = None,
    ) -> AnswerOutcome:
        """Extend or reset the streak; always CONTINUE."""
        self._require_active()
        self._record(item_id, is_correct, time_spent, error_type)

        if is_correct:
            self.streak += 1
            self.best_streak = max(self.best_streak, self.streak)
        else:
            if self.streak:
                logger.debug(f"{self.session_id}: streak of {self.streak} broken")
            self.streak = 0
        return AnswerOutcome.CONTINUE

    def reset_streak(self) -> None:
        """Back to a fresh active state with streak 0; the catalog is kept."""
        if self.status == SessionStatus.IDLE:
            return
        self.streak = 0
        self.history.clear()
        self.usage.clear()
        self.current_question = None
        self.status = SessionStatus.ACTIVE

    def reset(self) -> None:
        """Discard the session entirely."""
        self.status = SessionStatus.IDLE
        self.session_id = None
        self.items = []
        self.sorted_items = []
        self.progress = {}
        self.usage = UsageTracker()
        self.history.clear()
        self.current_question = None
        self.streak = 0
        self.best_streak = 0
        self.adaptations_used = []

    # =========================================================================
    # Analytics
    # =========================================================================

    @property
    def consecutive(self) -> tuple[int, int]:
        return consecutive_counts(list(self.history))

    def summary(self) -> StreakPerformance:
        return StreakPerformance(
            streak=self.best_streak,
            items_completed=self.attempts,
            accuracy=self.accuracy,
            tier=self.highest_tier,
            quiz_mode=self._dominant_mode(),
            cognitive_load=self.last_load.value,
            adaptations_used=list(self.adaptations_used),
            ai_enhanced=self.ai_enhanced_questions > 0,
        )

    async def _persist(self, store: ProfileStore, user_id: str) -> None:
        await store.update_streak_data(user_id, self.summary())

    def get_state(self) -> dict[str, Any]:
        state = super().get_state()
        correct, incorrect = self.consecutive
        state.update({
            "streak": self.streak,
            "best_streak": self.best_streak,
            "tier": streak_tier(self.streak),
            "used_items": len(self.usage),
            "consecutive_correct": correct,
            "consecutive_incorrect": incorrect,
        })
        return state
