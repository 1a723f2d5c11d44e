"""
Cognitive Load & Momentum Heuristics.

Estimates how overwhelmed a learner is from a short window of recent
answers and turns that into a quiz-mode adjustment.

Rules, in priority order:
1. Struggling (two most recent answers wrong, 3+ consecutive wrong, or
   high/overload load) -> one step easier on the ladder, intervene
2. Low load with rising momentum -> one step harder
3. Otherwise hold the caller's baseline mode

Mode-specific overlays (see apply_streak_overlay) run afterwards.

Ladder: multiple-choice < letter-scramble < open-answer < fill-in-the-blank
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from loguru import logger

from levelup.core.models import QUIZ_MODE_LADDER, AnswerRecord, QuizMode


class LoadLevel(str, Enum):
    """Estimated cognitive load."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    OVERLOAD = "overload"

    @property
    def is_high(self) -> bool:
        return self in (LoadLevel.HIGH, LoadLevel.OVERLOAD)


class MomentumTrend(str, Enum):
    """Direction of recent accuracy."""
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass
class CognitiveLoad:
    """Load estimate with the evidence behind it."""
    level: LoadLevel
    confidence: float = 0.0
    avg_time_spent: float = 0.0
    error_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "confidence": round(self.confidence, 3),
            "avg_time_spent": round(self.avg_time_spent, 2),
            "error_rate": round(self.error_rate, 3),
        }


@dataclass
class Momentum:
    """Accuracy trend across the performance window."""
    trend: MomentumTrend
    score: float = 0.0
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0

    def to_dict(self) -> dict:
        return {
            "trend": self.trend.value,
            "score": round(self.score, 3),
            "consecutive_correct": self.consecutive_correct,
            "consecutive_incorrect": self.consecutive_incorrect,
        }


@dataclass
class PerformanceAnalysis:
    """
    Output of the difficulty heuristics.

    The primary path and the rule-based fallback produce the same shape,
    so callers never branch on which one ran.

    Attributes:
        cognitive_load: Load estimate
        momentum: Accuracy trend
        recommended_quiz_mode: Mode to present next
        difficulty_adjustment: -1 (easier), 0 (hold) or +1 (harder)
        should_intervene: True when the learner needs support
        reasoning: Human-readable trail of the rules that fired
        fallback_used: True when produced by the rule-based fallback
    """
    cognitive_load: CognitiveLoad
    momentum: Momentum
    recommended_quiz_mode: QuizMode
    difficulty_adjustment: int = 0
    should_intervene: bool = False
    reasoning: list[str] = field(default_factory=list)
    fallback_used: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "cognitive_load": self.cognitive_load.to_dict(),
            "momentum": self.momentum.to_dict(),
            "recommended_quiz_mode": self.recommended_quiz_mode.value,
            "difficulty_adjustment": self.difficulty_adjustment,
            "should_intervene": self.should_intervene,
            "reasoning": list(self.reasoning),
            "fallback_used": self.fallback_used,
        }


# Heuristic thresholds (time in seconds)
THRESHOLDS = {
    "overload_time": 20.0,        # avg > 20s = overloaded
    "overload_error_rate": 0.7,
    "high_time": 12.0,            # avg > 12s = struggling
    "high_error_rate": 0.4,
    "low_time": 6.0,              # avg < 6s and almost no errors = spare capacity
    "low_error_rate": 0.1,
    "trend_margin": 0.1,          # accuracy delta that counts as a trend
    "hot_streak": 3,              # consecutive correct that counts as rising
    "hot_accuracy": 0.8,
    "struggle_streak": 3,         # consecutive incorrect that forces intervention
    "intervene_accuracy": 0.4,    # declining and below this = intervene
    "default_accuracy": 0.8,      # assumed accuracy with no history
}

FALLBACK_CONFIDENCE = 0.5


# =============================================================================
# Window statistics
# =============================================================================

def consecutive_counts(history: Sequence[AnswerRecord]) -> tuple[int, int]:
    """Trailing (consecutive_correct, consecutive_incorrect) counts."""
    correct = incorrect = 0
    for record in reversed(history):
        if record.is_correct:
            if incorrect:
                break
            correct += 1
        else:
            if correct:
                break
            incorrect += 1
    return correct, incorrect


def recent_accuracy(history: Sequence[AnswerRecord], window: int = 5) -> float:
    """Accuracy over the last `window` answers (0.8 when empty)."""
    recent = list(history)[-window:] if window > 0 else []
    if not recent:
        return THRESHOLDS["default_accuracy"]
    return sum(1 for r in recent if r.is_correct) / len(recent)


def detect_cognitive_load(history: Sequence[AnswerRecord], window: int = 5) -> CognitiveLoad:
    """
    Estimate cognitive load from timing and error rate.

    Args:
        history: Rolling answer history, oldest first
        window: Number of most recent answers to inspect

    Returns:
        CognitiveLoad; an empty history yields moderate load at low confidence
    """
    recent = list(history)[-window:] if window > 0 else []
    if not recent:
        return CognitiveLoad(level=LoadLevel.MODERATE, confidence=0.2)

    avg_time = sum(r.time_spent for r in recent) / len(recent)
    error_rate = sum(1 for r in recent if not r.is_correct) / len(recent)

    if avg_time > THRESHOLDS["overload_time"] or error_rate > THRESHOLDS["overload_error_rate"]:
        level = LoadLevel.OVERLOAD
    elif avg_time > THRESHOLDS["high_time"] or error_rate > THRESHOLDS["high_error_rate"]:
        level = LoadLevel.HIGH
    elif avg_time < THRESHOLDS["low_time"] and error_rate < THRESHOLDS["low_error_rate"]:
        level = LoadLevel.LOW
    else:
        level = LoadLevel.MODERATE

    # Confidence grows with evidence
    confidence = min(0.9, 0.3 + 0.6 * len(recent) / window)

    return CognitiveLoad(
        level=level,
        confidence=confidence,
        avg_time_spent=avg_time,
        error_rate=error_rate,
    )


def analyze_momentum(history: Sequence[AnswerRecord], window: int = 5) -> Momentum:
    """
    Compare accuracy across the two halves of the history.

    A run of 3+ correct answers at 80%+ recent accuracy also counts as
    increasing, so short windows can still escalate.
    """
    answers = list(history)
    correct, incorrect = consecutive_counts(answers)
    score = recent_accuracy(answers, window)

    trend = MomentumTrend.STABLE
    if len(answers) >= 2:
        mid = len(answers) // 2
        first, second = answers[:mid], answers[mid:]
        first_acc = sum(1 for r in first if r.is_correct) / len(first)
        second_acc = sum(1 for r in second if r.is_correct) / len(second)
        delta = second_acc - first_acc

        if delta > THRESHOLDS["trend_margin"]:
            trend = MomentumTrend.INCREASING
        elif delta < -THRESHOLDS["trend_margin"]:
            trend = MomentumTrend.DECREASING

    if (
        trend == MomentumTrend.STABLE
        and correct >= THRESHOLDS["hot_streak"]
        and score >= THRESHOLDS["hot_accuracy"]
    ):
        trend = MomentumTrend.INCREASING

    return Momentum(
        trend=trend,
        score=score,
        consecutive_correct=correct,
        consecutive_incorrect=incorrect,
    )


# =============================================================================
# Difficulty ladder
# =============================================================================

def _rung(mode: QuizMode) -> int:
    # Prompt-only modes sit with open-answer
    if mode in QUIZ_MODE_LADDER:
        return QUIZ_MODE_LADDER.index(mode)
    return QUIZ_MODE_LADDER.index(QuizMode.OPEN_ANSWER)


def easier_mode(mode: QuizMode) -> QuizMode:
    """One step down the ladder, clamped at multiple-choice."""
    return QUIZ_MODE_LADDER[max(0, _rung(mode) - 1)]


def harder_mode(mode: QuizMode) -> QuizMode:
    """One step up the ladder, clamped at fill-in-the-blank."""
    return QUIZ_MODE_LADDER[min(len(QUIZ_MODE_LADDER) - 1, _rung(mode) + 1)]


def cap_mode(mode: QuizMode, ceiling: QuizMode) -> QuizMode:
    """Lower `mode` to `ceiling` if it sits above it on the ladder."""
    if _rung(mode) > _rung(ceiling):
        return ceiling
    return mode


# =============================================================================
# Analysis
# =============================================================================

def analyze_performance(
    history: Sequence[AnswerRecord],
    baseline_mode: QuizMode,
    window: int = 5,
) -> PerformanceAnalysis:
    """
    Run the generic difficulty rules over a performance window.

    Args:
        history: Rolling answer history, oldest first
        baseline_mode: Mode the caller would use without adjustment
        window: Number of most recent answers to inspect

    Returns:
        PerformanceAnalysis with the recommended mode and reasoning
    """
    load = detect_cognitive_load(history, window)
    momentum = analyze_momentum(history, window)
    answers = list(history)
    reasoning: list[str] = []

    last_two_wrong = len(answers) >= 2 and not answers[-1].is_correct and not answers[-2].is_correct
    long_struggle = momentum.consecutive_incorrect >= THRESHOLDS["struggle_streak"]

    if last_two_wrong or long_struggle or load.level.is_high:
        if long_struggle:
            load.level = LoadLevel.OVERLOAD
            reasoning.append(f"{momentum.consecutive_incorrect} consecutive incorrect answers")
        elif last_two_wrong:
            if not load.level.is_high:
                load.level = LoadLevel.HIGH
            reasoning.append("Last two answers incorrect")
        else:
            reasoning.append(f"Cognitive load {load.level.value}")

        mode = easier_mode(baseline_mode)
        reasoning.append(f"Easing {baseline_mode.value} -> {mode.value}")
        return PerformanceAnalysis(
            cognitive_load=load,
            momentum=momentum,
            recommended_quiz_mode=mode,
            difficulty_adjustment=-1,
            should_intervene=True,
            reasoning=reasoning,
        )

    if load.level == LoadLevel.LOW and momentum.trend == MomentumTrend.INCREASING:
        mode = harder_mode(baseline_mode)
        reasoning.append(f"Low load with rising momentum, escalating {baseline_mode.value} -> {mode.value}")
        return PerformanceAnalysis(
            cognitive_load=load,
            momentum=momentum,
            recommended_quiz_mode=mode,
            difficulty_adjustment=1 if mode != baseline_mode else 0,
            reasoning=reasoning,
        )

    should_intervene = (
        momentum.trend == MomentumTrend.DECREASING
        and momentum.score < THRESHOLDS["intervene_accuracy"]
    )
    if should_intervene:
        reasoning.append("Accuracy declining below 40%")
    reasoning.append(f"Holding {baseline_mode.value}")

    return PerformanceAnalysis(
        cognitive_load=load,
        momentum=momentum,
        recommended_quiz_mode=baseline_mode,
        difficulty_adjustment=0,
        should_intervene=should_intervene,
        reasoning=reasoning,
    )


def apply_streak_overlay(analysis: PerformanceAnalysis, streak: int) -> PerformanceAnalysis:
    """
    Streak-specific adjustments applied after the generic rules.

    - streak <= 5: never above open-answer
    - streak >= 15 under high load: force multiple-choice
    - declining momentum with 2+ consecutive misses: force multiple-choice
    """
    mode = analysis.recommended_quiz_mode
    reasoning = list(analysis.reasoning)

    if streak <= 5 and mode != cap_mode(mode, QuizMode.OPEN_ANSWER):
        mode = QuizMode.OPEN_ANSWER
        reasoning.append("Early streak, capped at open-answer")

    if streak >= 15 and analysis.cognitive_load.level.is_high and mode != QuizMode.MULTIPLE_CHOICE:
        mode = QuizMode.MULTIPLE_CHOICE
        reasoning.append("High streak under high load, forcing multiple-choice")

    if (
        analysis.momentum.trend == MomentumTrend.DECREASING
        and analysis.momentum.consecutive_incorrect >= 2
        and mode != QuizMode.MULTIPLE_CHOICE
    ):
        mode = QuizMode.MULTIPLE_CHOICE
        reasoning.append("Momentum dropping, forcing multiple-choice")

    if mode == analysis.recommended_quiz_mode:
        return analysis

    logger.debug(f"Streak overlay {analysis.recommended_quiz_mode.value} -> {mode.value} at streak {streak}")
    return replace(analysis, recommended_quiz_mode=mode, reasoning=reasoning)


def fallback_analysis(
    history: Sequence[AnswerRecord],
    window: int = 5,
) -> PerformanceAnalysis:
    """
    Rule-based analysis used when enhancement is disabled or fails.

    2+ consecutive misses -> high load, multiple-choice, intervene.
    Otherwise moderate load and letter-scramble.
    """
    correct, incorrect = consecutive_counts(history)
    struggling = incorrect >= 2

    return PerformanceAnalysis(
        cognitive_load=CognitiveLoad(
            level=LoadLevel.HIGH if struggling else LoadLevel.MODERATE,
            confidence=FALLBACK_CONFIDENCE,
        ),
        momentum=Momentum(
            trend=MomentumTrend.STABLE,
            score=recent_accuracy(history, window),
            consecutive_correct=correct,
            consecutive_incorrect=incorrect,
        ),
        recommended_quiz_mode=QuizMode.MULTIPLE_CHOICE if struggling else QuizMode.LETTER_SCRAMBLE,
        difficulty_adjustment=-1 if struggling else 0,
        should_intervene=struggling,
        reasoning=["fallback"],
        fallback_used=True,
    )
