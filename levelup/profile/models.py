"""
Learning-profile documents.

Per-session performance payloads (what each challenge session reports)
and the per-user aggregates they roll into. Aggregates keep rolling
averages and bounded histories so a profile never grows without limit.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from levelup.core.models import QuizMode

HISTORY_LIMIT = 50


def _rolling(average: float, count: int, value: float) -> float:
    """Fold `value` into an average that already covers `count - 1` samples."""
    if count <= 0:
        return value
    return (average * (count - 1) + value) / count


# =============================================================================
# Session payloads
# =============================================================================


class StreakPerformance(BaseModel):
    """Analytics reported at the end of a streak session."""

    streak: int = Field(0, ge=0, description="Best streak reached")
    items_completed: int = Field(0, ge=0)
    accuracy: float = Field(0.0, ge=0, le=1)
    tier: int = Field(1, ge=1, le=5, description="Highest tier reached")
    quiz_mode: QuizMode = QuizMode.MULTIPLE_CHOICE
    cognitive_load: str = "moderate"
    adaptations_used: list[str] = Field(default_factory=list, description="Mode adjustments applied this session")
    ai_enhanced: bool = False


class PrecisionPerformance(BaseModel):
    """Analytics reported at the end of a precision session."""

    completed: bool = False
    items_completed: int = Field(0, ge=0)
    failure_point: int = Field(0, ge=0, description="1-indexed failing item, 0 when none")
    accuracy: float = Field(0.0, ge=0, le=1)
    avg_time_per_item: float = Field(0.0, ge=0)
    error_types: list[str] = Field(default_factory=list)
    quiz_mode_used: QuizMode = QuizMode.MULTIPLE_CHOICE
    ai_enhanced: bool = False


class DeepDivePerformance(BaseModel):
    """Analytics reported at the end of a deep dive session."""

    completed: bool = False
    items_completed: int = Field(0, ge=0)
    retention_rate: float = Field(0.0, ge=0, le=1)
    contextual_score: float = Field(0.0, ge=0, le=1)
    repetition_count: int = Field(0, ge=0)
    first_attempt_accuracy: float = Field(0.0, ge=0, le=1)
    ai_enhanced: bool = False


# =============================================================================
# Aggregates
# =============================================================================


class ModeStats(BaseModel):
    count: int = 0
    accuracy: float = 0.0


class TierStats(BaseModel):
    items_attempted: int = 0
    accuracy: float = 0.0


class StreakAnalytics(BaseModel):
    """Streak aggregates across sessions."""

    total_sessions: int = 0
    best_streak: int = 0
    average_streak: float = 0.0
    total_items_completed: int = 0
    ai_enhanced_sessions: int = 0
    baseline_sessions: int = 0
    cognitive_load_history: list[dict[str, Any]] = Field(default_factory=list)
    quiz_mode_stats: dict[str, ModeStats] = Field(default_factory=dict)
    tier_stats: dict[str, TierStats] = Field(default_factory=dict)

    def record(self, data: StreakPerformance) -> None:
        self.total_sessions += 1
        self.total_items_completed += data.items_completed
        if data.ai_enhanced:
            self.ai_enhanced_sessions += 1
        else:
            self.baseline_sessions += 1

        self.best_streak = max(self.best_streak, data.streak)
        self.average_streak = _rolling(self.average_streak, self.total_sessions, data.streak)

        self.cognitive_load_history.append({
            "streak": data.streak,
            "cognitive_load": data.cognitive_load,
            "adaptations_used": list(data.adaptations_used),
            "quiz_mode": data.quiz_mode.value,
            "accuracy": data.accuracy,
        })
        self.cognitive_load_history = self.cognitive_load_history[-HISTORY_LIMIT:]

        mode = self.quiz_mode_stats.setdefault(data.quiz_mode.value, ModeStats())
        mode.accuracy = (mode.accuracy * mode.count + data.accuracy) / (mode.count + 1)
        mode.count += 1

        tier = self.tier_stats.setdefault(str(data.tier), TierStats())
        previous = tier.items_attempted
        tier.items_attempted += data.items_completed
        if tier.items_attempted:
            tier.accuracy = (
                tier.accuracy * previous + data.accuracy * data.items_completed
            ) / tier.items_attempted


class PrecisionAnalytics(BaseModel):
    """Precision aggregates across sessions."""

    total_sessions: int = 0
    perfect_sessions: int = 0
    average_failure_point: float = 0.0
    average_accuracy: float = 0.0
    ai_enhanced_sessions: int = 0
    baseline_sessions: int = 0
    common_error_types: list[str] = Field(default_factory=list)
    failure_history: list[int] = Field(default_factory=list)
    optimal_pacing: float = 8.0  # seconds per item
    effective_quiz_modes: list[str] = Field(default_factory=list)

    @property
    def perfect_session_rate(self) -> float:
        if not self.total_sessions:
            return 0.0
        return self.perfect_sessions / self.total_sessions

    def record(self, data: PrecisionPerformance) -> None:
        self.total_sessions += 1
        if data.completed:
            self.perfect_sessions += 1
        if data.ai_enhanced:
            self.ai_enhanced_sessions += 1
        else:
            self.baseline_sessions += 1

        if data.failure_point > 0:
            failed = self.total_sessions - self.perfect_sessions
            self.average_failure_point = _rolling(self.average_failure_point, failed, data.failure_point)
            self.failure_history.append(data.failure_point)
            self.failure_history = self.failure_history[-HISTORY_LIMIT:]

        self.average_accuracy = _rolling(self.average_accuracy, self.total_sessions, data.accuracy)

        for error_type in data.error_types:
            if error_type not in self.common_error_types:
                self.common_error_types.append(error_type)
        self.common_error_types = self.common_error_types[-HISTORY_LIMIT:]

        if data.completed:
            self.optimal_pacing = (self.optimal_pacing + data.avg_time_per_item) / 2
            if data.quiz_mode_used.value not in self.effective_quiz_modes:
                self.effective_quiz_modes.append(data.quiz_mode_used.value)


class DeepDiveAnalytics(BaseModel):
    """Deep dive aggregates across sessions."""

    total_sessions: int = 0
    completed_sessions: int = 0
    average_retention_rate: float = 0.0
    contextual_learning_score: float = 0.0
    optimal_repetition_count: int = 3
    average_first_attempt_accuracy: float = 0.0
    ai_enhanced_sessions: int = 0
    baseline_sessions: int = 0

    def record(self, data: DeepDivePerformance) -> None:
        self.total_sessions += 1
        if data.completed:
            self.completed_sessions += 1
        if data.ai_enhanced:
            self.ai_enhanced_sessions += 1
        else:
            self.baseline_sessions += 1

        n = self.total_sessions
        self.average_retention_rate = _rolling(self.average_retention_rate, n, data.retention_rate)
        self.contextual_learning_score = _rolling(self.contextual_learning_score, n, data.contextual_score)
        self.average_first_attempt_accuracy = _rolling(
            self.average_first_attempt_accuracy, n, data.first_attempt_accuracy
        )
        if data.repetition_count > 0:
            self.optimal_repetition_count = round(
                (self.optimal_repetition_count + data.repetition_count) / 2
            )


class LearningProfile(BaseModel):
    """Per-user learning profile document."""

    user_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    streak: StreakAnalytics = Field(default_factory=StreakAnalytics)
    precision: PrecisionAnalytics = Field(default_factory=PrecisionAnalytics)
    deep_dive: DeepDiveAnalytics = Field(default_factory=DeepDiveAnalytics)

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)
