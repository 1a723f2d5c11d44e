"""
Error Risk, Pacing and Support.

Shared helpers used by the challenge sessions:

- calculate_error_risk: fatigue/pressure/late-session risk estimate
- adjust_strategy_for_risk: pacing and load adjustments for a risk level
- calculate_time_allocation: per-question time budget by challenge type
- generate_hints / generate_support: learner-facing message lists
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from levelup.core.models import Item, ProgressRecord, QuizMode
from levelup.core.validation import coerce_int


class ChallengeType(str, Enum):
    """Challenge families with distinct risk and timing profiles."""
    PRECISION = "precision"
    STREAK = "streak"
    DEEP_DIVE = "deep-dive"
    DEFAULT = "default"


@dataclass(frozen=True)
class TimeProfile:
    """Time budget parameters (seconds)."""
    base_time: float
    min_time: float
    max_time: float
    complexity_multiplier: float
    length_bonus: float
    difficulty_bonus: float


TIME_PROFILES: dict[ChallengeType, TimeProfile] = {
    ChallengeType.PRECISION: TimeProfile(8, 5, 15, 1.0, 1, 2),
    ChallengeType.DEEP_DIVE: TimeProfile(45, 30, 120, 1.5, 5, 10),
    ChallengeType.STREAK: TimeProfile(20, 8, 40, 1.2, 2, 4),
    ChallengeType.DEFAULT: TimeProfile(30, 15, 60, 1.2, 3, 5),
}

QUIZ_MODE_TIME_MULTIPLIERS: dict[QuizMode, float] = {
    QuizMode.MULTIPLE_CHOICE: 1.0,
    QuizMode.LETTER_SCRAMBLE: 1.2,
    QuizMode.OPEN_ANSWER: 1.4,
    QuizMode.FILL_IN_THE_BLANK: 1.3,
    QuizMode.SYNONYM_ANTONYM: 1.6,
    QuizMode.USAGE_EXAMPLE: 1.5,
    QuizMode.CONTEXTUAL_ANALYSIS: 1.8,
}

RISK_MULTIPLIERS: dict[ChallengeType, float] = {
    ChallengeType.PRECISION: 1.0,
    ChallengeType.STREAK: 0.8,   # more forgiving
    ChallengeType.DEEP_DIVE: 0.9,
    ChallengeType.DEFAULT: 1.0,
}

MAX_ERROR_RISK = 0.8
INITIAL_ERROR_RISK = 0.1


def calculate_error_risk(
    progress: int,
    error_count: int = 0,
    challenge: ChallengeType = ChallengeType.PRECISION,
) -> float:
    """
    Estimate the chance of a mistake on the next item.

    Args:
        progress: Items completed so far in the session
        error_count: Errors made so far in the session
        challenge: Challenge family (scales the result)

    Returns:
        Risk in [0, 0.8]; 0.1 before the first item
    """
    progress = coerce_int(progress, 0, minimum=0)
    error_count = coerce_int(error_count, 0, minimum=0)
    if progress == 0:
        return INITIAL_ERROR_RISK

    fatigue = min(0.3, progress * 0.02)
    pressure = 0.5 if error_count > 0 else 0.0
    late_session = 0.2 if progress > 10 else 0.0

    return min(MAX_ERROR_RISK, (fatigue + pressure + late_session) * RISK_MULTIPLIERS[challenge])


@dataclass
class RiskStrategy:
    """Pacing and difficulty adjustment for a given risk."""
    pacing: float  # seconds per item
    quiz_mode: QuizMode
    cognitive_load_level: str  # minimal, low, moderate
    difficulty_adjustment: str  # easier, same


def adjust_strategy_for_risk(
    error_risk: float,
    challenge: ChallengeType = ChallengeType.PRECISION,
    quiz_mode: QuizMode = QuizMode.MULTIPLE_CHOICE,
) -> RiskStrategy:
    """
    Slow down and ease off as risk climbs.

    For precision sessions this gives 8s pacing at low risk, 10s above
    0.3 and 12s above 0.5 (where only multiple-choice is allowed).
    """
    base = TIME_PROFILES[challenge].base_time
    strategy = RiskStrategy(
        pacing=base,
        quiz_mode=quiz_mode,
        cognitive_load_level="moderate",
        difficulty_adjustment="same",
    )

    if error_risk > 0.5:
        strategy.pacing = base * 1.5
        strategy.cognitive_load_level = "minimal"
        strategy.quiz_mode = QuizMode.MULTIPLE_CHOICE
        strategy.difficulty_adjustment = "easier"
    elif error_risk > 0.3:
        strategy.pacing = base * 1.25
        strategy.cognitive_load_level = "low"
        strategy.difficulty_adjustment = "easier"

    return strategy


def calculate_time_allocation(
    item: Item,
    challenge: ChallengeType,
    quiz_mode: QuizMode | None = None,
    difficulty: int | None = None,
) -> int:
    """
    Seconds allowed for one question.

    Long terms (over 8 characters) and hard items (level or difficulty
    4+) get a bonus before the profile multiplier; the result is
    clamped to the profile's bounds.
    """
    profile = TIME_PROFILES[challenge]
    seconds = profile.base_time
    if quiz_mode is not None:
        seconds *= QUIZ_MODE_TIME_MULTIPLIERS[quiz_mode]

    if len(item.term) > 8:
        seconds += profile.length_bonus
    if (difficulty or item.level) >= 4:
        seconds += profile.difficulty_bonus

    seconds *= profile.complexity_multiplier
    # Half-up rounding
    return int(max(profile.min_time, min(profile.max_time, math.floor(seconds + 0.5))))


def calculate_item_difficulty(
    item: Item,
    progress: ProgressRecord | None = None,
    now: datetime | None = None,
) -> int:
    """Item level shifted by one toward easy (>80 mastery) or hard (<30)."""
    difficulty = item.level
    if progress is not None:
        mastery = progress.effective_mastery(now)
        if mastery > 80:
            difficulty = max(1, difficulty - 1)
        elif mastery < 30:
            difficulty = min(5, difficulty + 1)
    return difficulty


# =============================================================================
# Hints & support
# =============================================================================

MODE_HINTS: dict[QuizMode, list[str]] = {
    QuizMode.MULTIPLE_CHOICE: [
        "Read all options carefully before choosing",
        "Eliminate options that don't make sense",
    ],
    QuizMode.LETTER_SCRAMBLE: [
        "Look for familiar letter patterns",
        "Try saying the scrambled letters out loud",
    ],
    QuizMode.OPEN_ANSWER: [
        "Double-check your spelling before submitting",
    ],
    QuizMode.FILL_IN_THE_BLANK: [
        "Read the sentence aloud to hear what sounds right",
        "Consider the grammatical structure of the sentence",
    ],
}


def generate_hints(
    item: Item,
    quiz_mode: QuizMode,
    challenge: ChallengeType = ChallengeType.DEFAULT,
    error_risk: float = 0.0,
) -> list[str]:
    """Hints for the current question, always ending with a recall prompt."""
    hints = list(MODE_HINTS.get(quiz_mode, []))
    if quiz_mode == QuizMode.OPEN_ANSWER and len(item.term) > 7:
        hints.append("Break down longer words into familiar parts")

    if challenge == ChallengeType.PRECISION and error_risk > 0.3:
        hints.append("Take your time, accuracy is crucial")

    hints.append("Take a moment to recall the context you learned this word in")
    return hints


def generate_support(
    challenge: ChallengeType = ChallengeType.DEFAULT,
    error_risk: float = 0.0,
    phase: str | None = None,
) -> list[str]:
    """Encouragement messages; `phase` is early, middle or late."""
    support = ["You're doing great, keep going!"]

    if challenge == ChallengeType.PRECISION:
        support.append("Precision builds mastery, every detail matters")
        if error_risk > 0.5:
            support.append("Stay calm and confident, you've got this")
    elif challenge == ChallengeType.STREAK:
        support.append("Building momentum with each correct answer")
    else:
        support.append("Learning is a journey, enjoy the process")

    if phase == "late":
        support.append("Strong finish, you're almost there")

    return support


def session_phase(progress: int, target: int) -> str:
    """early / middle / late by thirds of the target."""
    if target <= 0:
        return "early"
    ratio = progress / target
    if ratio < 1 / 3:
        return "early"
    if ratio < 2 / 3:
        return "middle"
    return "late"
