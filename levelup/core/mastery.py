"""
Core Mastery Module.

Pure functions modelling how well a learner knows an item.

Design:
- MasteryBand: the five score bands that key review intervals
- calculate_mastery_decay: effective mastery derived on read from the
  stored score and the time since last practice
- calculate_mastery_gain: score update after an answer, scaled by band
- Predicates: learned/mastered thresholds and the quiz-mode switch with
  a 10 point hysteresis band

Every function clamps bad numeric input instead of raising.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum

from levelup.core.models import QuizMode
from levelup.core.validation import coerce_number

# Score thresholds
LEARNED_THRESHOLD = 70.0
MASTERED_THRESHOLD = 90.0
HARDER_MODE_THRESHOLD = 50.0
EASIER_MODE_THRESHOLD = 40.0

# (base gain, base loss) per answer
OPEN_ENDED_RATES = (15.0, 8.0)
DEFAULT_RATES = (10.0, 5.0)


class MasteryBand(str, Enum):
    """Mastery score bands, lowest first."""

    NEW = "new"  # 0-29
    FAMILIAR = "familiar"  # 30-59
    INTERMEDIATE = "intermediate"  # 60-79
    ADVANCED = "advanced"  # 80-99
    MASTERED = "mastered"  # 100

    @classmethod
    def from_score(cls, score: float) -> MasteryBand:
        """
        Convert a 0-100 mastery score to a band.

        Args:
            score: Mastery score between 0 and 100

        Returns:
            Corresponding MasteryBand
        """
        score = clamp_score(score)
        if score >= 100:
            return cls.MASTERED
        elif score >= 80:
            return cls.ADVANCED
        elif score >= 60:
            return cls.INTERMEDIATE
        elif score >= 30:
            return cls.FAMILIAR
        else:
            return cls.NEW

    @property
    def review_interval_hours(self) -> float:
        """Hours of inactivity that count as one decay interval."""
        return {
            MasteryBand.NEW: 4.0,
            MasteryBand.FAMILIAR: 24.0,
            MasteryBand.INTERMEDIATE: 72.0,
            MasteryBand.ADVANCED: 168.0,
            MasteryBand.MASTERED: 720.0,
        }[self]


def clamp_score(score: float | None) -> float:
    """Clamp any input to a valid 0-100 score (None/NaN become 0)."""
    return coerce_number(score, 0.0, 0.0, 100.0)


def decay_rate_for(score: float) -> float:
    """Fraction of the score lost per elapsed review interval."""
    score = clamp_score(score)
    if score >= 80:
        return 0.10
    if score >= 60:
        return 0.15
    return 0.20


def hours_since(moment: datetime, now: datetime | None = None) -> float:
    """Elapsed hours since `moment`, never negative. Naive datetimes are UTC."""
    now = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return max(0.0, (now - moment).total_seconds() / 3600)


def calculate_mastery_decay(
    last_practiced_at: datetime | None,
    mastery_score: float,
    now: datetime | None = None,
) -> float:
    """
    Derive effective mastery from the stored score.

    Every full review interval since the last practice removes
    `decay_rate` of the remaining score:

        effective = score * (1 - rate) ** floor(elapsed / interval)

    Args:
        last_practiced_at: Timestamp of the last practice (None = never)
        mastery_score: Stored mastery score
        now: Reference time (defaults to the current UTC time)

    Returns:
        Effective score in [0, mastery_score]
    """
    score = clamp_score(mastery_score)
    if last_practiced_at is None or score == 0:
        return score

    interval = MasteryBand.from_score(score).review_interval_hours
    intervals = math.floor(hours_since(last_practiced_at, now) / interval)
    if intervals <= 0:
        return score

    effective = score * (1 - decay_rate_for(score)) ** intervals
    return max(0.0, min(score, effective))


def mastery_factor(score: float) -> float:
    """Band multiplier: fast early gains, maintenance-only near the top."""
    score = clamp_score(score)
    if score < 50:
        return 1.2
    if score < 70:
        return 1.0
    if score < 90:
        return 0.7
    return 0.3


def calculate_mastery_gain(
    mastery_score: float,
    is_correct: bool,
    quiz_mode: QuizMode | str = QuizMode.MULTIPLE_CHOICE,
) -> float:
    """
    Update a mastery score after an answer.

    Open-ended modes move the score further in both directions
    (+15/-8 base) than recognition modes (+10/-5 base).

    Args:
        mastery_score: Current stored score
        is_correct: Whether the answer was correct
        quiz_mode: Mode the question was asked in

    Returns:
        New score in [0, 100]. A correct answer never lowers the score and
        from 0 always yields at least 12.
    """
    score = clamp_score(mastery_score)
    try:
        mode = QuizMode(quiz_mode)
    except ValueError:
        mode = QuizMode.MULTIPLE_CHOICE

    base_gain, base_loss = OPEN_ENDED_RATES if mode.is_open_ended else DEFAULT_RATES
    factor = mastery_factor(score)

    if is_correct:
        return min(100.0, score + base_gain * factor)
    return max(0.0, score - base_loss * (2 - factor * 0.5))


def is_learned(score: float) -> bool:
    return clamp_score(score) >= LEARNED_THRESHOLD


def is_mastered(score: float) -> bool:
    return clamp_score(score) >= MASTERED_THRESHOLD


def should_switch_to_harder_mode(score: float) -> bool:
    """Up-shift threshold when currently in the easy mode."""
    return clamp_score(score) >= HARDER_MODE_THRESHOLD


def should_switch_to_easier_mode(score: float) -> bool:
    """Down-shift threshold when currently in a harder mode."""
    return clamp_score(score) < EASIER_MODE_THRESHOLD


def should_switch_quiz_mode(score: float, current_mode: QuizMode | str) -> bool:
    """
    Whether an item should leave its current mode.

    Multiple-choice items move up at 50; items in any harder mode only
    move back once the score drops below 40, so scores between 40 and 50
    keep whichever mode the item is in.
    """
    if QuizMode(current_mode) == QuizMode.MULTIPLE_CHOICE:
        return should_switch_to_harder_mode(score)
    return should_switch_to_easier_mode(score)


def next_mastery_quiz_mode(score: float, current_mode: QuizMode | str) -> QuizMode:
    """Apply should_switch_quiz_mode and return the resulting mode."""
    mode = QuizMode(current_mode)
    if not should_switch_quiz_mode(score, mode):
        return mode
    if mode == QuizMode.MULTIPLE_CHOICE:
        return QuizMode.OPEN_ANSWER
    return QuizMode.MULTIPLE_CHOICE
