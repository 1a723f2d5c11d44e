"""
Shared Item-Selection Helpers.

Used by all three challenge sessions:

- UsageTracker: bounded memory of recently used item ids
- Tier mapping and weighted quiz-mode baselines (streak tiers and
  mastery tiers)
- Difficulty scoring for catalog ordering
- Answer-option generation per quiz mode, including letter scrambles
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import datetime

from loguru import logger

from levelup.core.models import DisplayDirection, Item, ProgressMap, ProgressRecord, QuizMode
from levelup.core.validation import coerce_int, coerce_number

# Streak breakpoints: tier = 1 + number of breakpoints reached
STREAK_TIER_BREAKPOINTS = (3, 7, 12, 18)

STREAK_TIER_WEIGHTS: dict[int, dict[QuizMode, float]] = {
    1: {QuizMode.MULTIPLE_CHOICE: 0.7, QuizMode.LETTER_SCRAMBLE: 0.3},
    2: {QuizMode.MULTIPLE_CHOICE: 0.5, QuizMode.LETTER_SCRAMBLE: 0.5},
    3: {QuizMode.MULTIPLE_CHOICE: 0.3, QuizMode.LETTER_SCRAMBLE: 0.3, QuizMode.OPEN_ANSWER: 0.4},
    4: {
        QuizMode.MULTIPLE_CHOICE: 0.2,
        QuizMode.LETTER_SCRAMBLE: 0.2,
        QuizMode.OPEN_ANSWER: 0.3,
        QuizMode.FILL_IN_THE_BLANK: 0.3,
    },
    5: {
        QuizMode.MULTIPLE_CHOICE: 0.1,
        QuizMode.LETTER_SCRAMBLE: 0.1,
        QuizMode.OPEN_ANSWER: 0.3,
        QuizMode.FILL_IN_THE_BLANK: 0.5,
    },
}

# Mastery score upper bounds for tiers 1-4 (tier 5 above)
MASTERY_TIER_BOUNDS = (20, 40, 60, 80)

MASTERY_TIER_WEIGHTS: dict[int, dict[QuizMode, float]] = {
    1: {QuizMode.MULTIPLE_CHOICE: 0.8, QuizMode.LETTER_SCRAMBLE: 0.2},
    2: {QuizMode.MULTIPLE_CHOICE: 0.6, QuizMode.LETTER_SCRAMBLE: 0.4},
    3: {QuizMode.MULTIPLE_CHOICE: 0.4, QuizMode.LETTER_SCRAMBLE: 0.3, QuizMode.OPEN_ANSWER: 0.3},
    4: {
        QuizMode.MULTIPLE_CHOICE: 0.2,
        QuizMode.LETTER_SCRAMBLE: 0.2,
        QuizMode.OPEN_ANSWER: 0.3,
        QuizMode.FILL_IN_THE_BLANK: 0.3,
    },
    5: {
        QuizMode.MULTIPLE_CHOICE: 0.1,
        QuizMode.LETTER_SCRAMBLE: 0.1,
        QuizMode.OPEN_ANSWER: 0.3,
        QuizMode.FILL_IN_THE_BLANK: 0.5,
    },
}

FILL_IN_FALLBACKS = ("alternative", "different", "another")
DISTRACTOR_COUNT = 3


# =============================================================================
# Usage tracking
# =============================================================================


class UsageTracker:
    """
    Insertion-ordered set of used item ids with capped growth.

    Once usage exceeds `ratio` of the catalog, the oldest `evict_count`
    ids are forgotten so they can come around again.
    """

    def __init__(self, catalog_size: int = 0, ratio: float = 1.0, evict_count: int = 0):
        self.catalog_size = catalog_size
        self.ratio = ratio
        self.evict_count = evict_count
        self._used: dict[str, None] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._used

    def __len__(self) -> int:
        return len(self._used)

    def __iter__(self):
        return iter(self._used)

    def mark(self, item_id: str) -> None:
        """Record an item as used, evicting the oldest ids when over capacity."""
        self._used.pop(item_id, None)
        self._used[item_id] = None

        if self.evict_count and self.catalog_size and len(self._used) > self.catalog_size * self.ratio:
            for old_id in list(self._used)[: self.evict_count]:
                del self._used[old_id]
            logger.debug(f"Evicted {self.evict_count} used ids ({len(self._used)} remain)")

    def clear(self) -> None:
        self._used.clear()

    def unused(self, items: Iterable[Item]) -> list[Item]:
        return [item for item in items if item.id not in self._used]


# =============================================================================
# Tiers & quiz-mode baselines
# =============================================================================


def weighted_choice(weights: dict[QuizMode, float], rng: random.Random) -> QuizMode:
    """Draw a mode by cumulative weight."""
    roll = rng.random() * sum(weights.values())
    cumulative = 0.0
    for mode, weight in weights.items():
        cumulative += weight
        if roll < cumulative:
            return mode
    return list(weights)[-1]


def streak_tier(streak: int) -> int:
    """Map a streak to tier 1-5 (breakpoints 3, 7, 12, 18)."""
    streak = coerce_int(streak, 0, minimum=0)
    return 1 + sum(1 for breakpoint in STREAK_TIER_BREAKPOINTS if streak >= breakpoint)


def quiz_mode_for_streak_tier(tier: int, rng: random.Random) -> QuizMode:
    """Tier-weighted baseline mode; higher tiers skew harder."""
    tier = coerce_int(tier, 1, minimum=1, maximum=5)
    return weighted_choice(STREAK_TIER_WEIGHTS[tier], rng)


def mastery_tier(score: float) -> int:
    """Map a 0-100 mastery score to tier 1-5."""
    score = coerce_number(score, 0.0, 0.0, 100.0)
    for tier, bound in enumerate(MASTERY_TIER_BOUNDS, start=1):
        if score <= bound:
            return tier
    return 5


def select_quiz_mode_for_mastery(
    score: float,
    rng: random.Random,
    allow_open_answer: bool = True,
) -> QuizMode:
    """
    Baseline mode for an item from its own mastery.

    Args:
        score: Effective mastery (0-100)
        rng: Random source
        allow_open_answer: When False, open-answer draws fall back to
            letter-scramble (tier 3) or fill-in-the-blank (tiers 4-5)

    Returns:
        QuizMode drawn from the tier's weights
    """
    tier = mastery_tier(score)
    mode = weighted_choice(MASTERY_TIER_WEIGHTS[tier], rng)
    if mode == QuizMode.OPEN_ANSWER and not allow_open_answer:
        return QuizMode.LETTER_SCRAMBLE if tier == 3 else QuizMode.FILL_IN_THE_BLANK
    return mode


# =============================================================================
# Difficulty ordering
# =============================================================================


def item_difficulty_score(progress: ProgressRecord | None, now: datetime | None = None) -> float:
    """
    Difficulty of a practiced item (lower = easier).

    100 - effective mastery + (1 - accuracy) * 50 + max(0, 10 - practice count).
    Never-practiced items score 0.
    """
    if progress is None or not progress.is_practiced:
        return 0.0
    accuracy = progress.accuracy if progress.accuracy is not None else 0.0
    return (
        100.0
        - progress.effective_mastery(now)
        + (1.0 - accuracy) * 50.0
        + max(0, 10 - progress.practice_count)
    )


def sort_by_difficulty(
    items: Sequence[Item],
    progress_map: ProgressMap,
    now: datetime | None = None,
) -> list[Item]:
    """Easiest first; never-practiced items lead, ties broken by level."""

    def key(item: Item) -> tuple[int, float, int]:
        progress = progress_map.get(item.id)
        practiced = progress is not None and progress.is_practiced
        return (1 if practiced else 0, item_difficulty_score(progress, now), item.level)

    return sorted(items, key=key)


def quintile(items: Sequence[Item], tier: int) -> list[Item]:
    """Slice of a difficulty-sorted list matching tier 1-5."""
    n = len(items)
    index = min(5, max(1, tier)) - 1
    return list(items[index * n // 5 : (index + 1) * n // 5])


# =============================================================================
# Answer options
# =============================================================================


def scramble_word(word: str, level: int, rng: random.Random) -> str:
    """
    Scramble one word; level % 3 picks the style.

    0: swap adjacent pairs, 1: reverse, 2: shuffle.
    Words of two characters or fewer are returned unchanged.
    """
    if len(word) <= 2:
        return word

    chars = list(word)
    style = int(level) % 3
    if style == 0:
        for i in range(0, len(chars) - 1, 2):
            chars[i], chars[i + 1] = chars[i + 1], chars[i]
    elif style == 1:
        chars.reverse()
    else:
        rng.shuffle(chars)
    return "".join(chars)


def scramble_text(text: str, level: int, rng: random.Random) -> str:
    """Scramble a single word, or each word of a phrase plus its word order."""
    words = text.split(" ")
    if len(words) == 1:
        return scramble_word(text, level, rng)
    scrambled = [scramble_word(word, int(level * 0.5), rng) for word in words]
    rng.shuffle(scrambled)
    return " ".join(scrambled)


def _answer_for(candidate: Item, reference: Item) -> str:
    # Distractors come from the same side as the reference answer
    if reference.direction == DisplayDirection.DEFINITION_TO_TERM:
        return candidate.term
    return candidate.definition


def _shuffled(options: list[str], rng: random.Random) -> list[str]:
    rng.shuffle(options)
    return options


def multiple_choice_options(item: Item, catalog: Sequence[Item], rng: random.Random) -> list[str]:
    """Correct answer plus up to three distractors from the catalog."""
    correct = item.answer
    pool = list(dict.fromkeys(
        _answer_for(other, item) for other in catalog if other.id != item.id
    ))
    pool = [answer for answer in pool if answer != correct]
    distractors = rng.sample(pool, min(DISTRACTOR_COUNT, len(pool)))
    return _shuffled([correct, *distractors], rng)


def letter_scramble_options(item: Item, rng: random.Random, max_attempts: int = 10) -> list[str]:
    """Correct answer plus up to three distinct scrambled variants."""
    correct = item.answer
    options = [correct]
    for level in range(1, DISTRACTOR_COUNT + 1):
        scrambled = scramble_text(correct, level, rng)
        attempts = 0
        while scrambled in options and attempts < max_attempts:
            scrambled = scramble_text(correct, rng.randint(1, 3), rng)
            attempts += 1
        if scrambled not in options:
            options.append(scrambled)
    return _shuffled(options, rng)


def fill_in_the_blank_options(item: Item, catalog: Sequence[Item], rng: random.Random) -> list[str]:
    """Correct answer plus similar-length distractors, padded with fixed fallbacks."""
    correct = item.answer
    pool = list(dict.fromkeys(
        _answer_for(other, item) for other in catalog if other.id != item.id
    ))
    pool = [a for a in pool if a != correct and abs(len(a) - len(correct)) <= 4]
    distractors = rng.sample(pool, min(DISTRACTOR_COUNT, len(pool)))

    for fallback in FILL_IN_FALLBACKS:
        if len(distractors) >= DISTRACTOR_COUNT:
            break
        if fallback not in distractors and fallback != correct:
            distractors.append(fallback)

    return _shuffled([correct, *distractors], rng)


def generate_options(
    item: Item,
    quiz_mode: QuizMode,
    catalog: Sequence[Item],
    rng: random.Random,
) -> list[str]:
    """Answer options for a quiz mode (empty for open-ended modes)."""
    if quiz_mode == QuizMode.MULTIPLE_CHOICE:
        return multiple_choice_options(item, catalog, rng)
    if quiz_mode == QuizMode.LETTER_SCRAMBLE:
        return letter_scramble_options(item, rng)
    if quiz_mode == QuizMode.FILL_IN_THE_BLANK:
        return fill_in_the_blank_options(item, catalog, rng)
    return []
