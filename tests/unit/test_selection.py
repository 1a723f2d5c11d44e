"""Unit tests for the shared item-selection helpers."""

import math
import random
from collections import Counter
from datetime import timedelta

import pytest

from levelup.challenges.selection import (
    FILL_IN_FALLBACKS,
    UsageTracker,
    fill_in_the_blank_options,
    generate_options,
    item_difficulty_score,
    letter_scramble_options,
    mastery_tier,
    multiple_choice_options,
    quintile,
    quiz_mode_for_streak_tier,
    scramble_text,
    scramble_word,
    select_quiz_mode_for_mastery,
    sort_by_difficulty,
    streak_tier,
)
from levelup.core.models import DisplayDirection, Item, ProgressRecord, QuizMode


class TestStreakTier:
    @pytest.mark.parametrize(
        "streak,tier",
        [(0, 1), (2, 1), (3, 2), (6, 2), (7, 3), (11, 3), (12, 4), (17, 4), (18, 5), (50, 5)],
    )
    def test_breakpoints(self, streak, tier):
        assert streak_tier(streak) == tier

    def test_negative_streak(self):
        assert streak_tier(-4) == 1

    @pytest.mark.parametrize("streak", [math.nan, math.inf, "many", None])
    def test_unusable_streak_maps_to_first_tier(self, streak):
        assert streak_tier(streak) == 1

    def test_unusable_tier_draws_easy_modes(self, rng):
        assert quiz_mode_for_streak_tier(math.nan, rng) in (QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE)

    def test_tier_modes_skew_harder(self):
        rng = random.Random(3)
        low = Counter(quiz_mode_for_streak_tier(1, rng) for _ in range(500))
        high = Counter(quiz_mode_for_streak_tier(5, rng) for _ in range(500))

        assert set(low) <= {QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE}
        assert high[QuizMode.FILL_IN_THE_BLANK] > high[QuizMode.MULTIPLE_CHOICE]
        assert low[QuizMode.MULTIPLE_CHOICE] > high[QuizMode.MULTIPLE_CHOICE]


class TestMasteryTier:
    def test_tiers(self):
        assert mastery_tier(0) == 1
        assert mastery_tier(35) == 2
        assert mastery_tier(55) == 3
        assert mastery_tier(75) == 4
        assert mastery_tier(95) == 5

    def test_unusable_score_is_first_tier(self):
        assert mastery_tier(math.nan) == 1
        assert mastery_tier("high") == 1

    def test_new_items_only_get_easy_modes(self):
        rng = random.Random(5)
        modes = {select_quiz_mode_for_mastery(0, rng) for _ in range(200)}
        assert modes <= {QuizMode.MULTIPLE_CHOICE, QuizMode.LETTER_SCRAMBLE}

    def test_open_answer_disallowed(self):
        rng = random.Random(8)
        modes = {select_quiz_mode_for_mastery(95, rng, allow_open_answer=False) for _ in range(200)}
        assert QuizMode.OPEN_ANSWER not in modes


class TestUsageTracker:
    def test_marks_and_filters(self, vocabulary):
        tracker = UsageTracker()
        tracker.mark(vocabulary[0].id)

        assert vocabulary[0].id in tracker
        assert vocabulary[0] not in tracker.unused(vocabulary[:3])
        assert len(tracker.unused(vocabulary[:3])) == 2

    def test_evicts_oldest_over_ratio(self):
        tracker = UsageTracker(catalog_size=20, ratio=0.7, evict_count=10)
        for i in range(15):
            tracker.mark(f"id{i}")

        # 15 > 14 triggers eviction of the 10 oldest
        assert len(tracker) == 5
        assert "id0" not in tracker
        assert "id14" in tracker

    def test_no_eviction_without_cap(self):
        tracker = UsageTracker()
        for i in range(100):
            tracker.mark(f"id{i}")
        assert len(tracker) == 100


class TestDifficultyOrdering:
    def test_unpracticed_items_sort_first(self, vocabulary, now):
        progress = {
            vocabulary[0].id: ProgressRecord(
                item_id=vocabulary[0].id,
                mastery_score=95,
                last_practiced_at=now,
                times_correct=20,
            )
        }
        ordered = sort_by_difficulty(vocabulary[:5], progress, now)
        assert ordered[-1] == vocabulary[0]

    def test_difficulty_score(self, now):
        progress = ProgressRecord(
            item_id="a", mastery_score=60, last_practiced_at=now, times_correct=3, times_incorrect=1
        )
        # 100 - 60 + 0.25 * 50 + (10 - 4)
        assert item_difficulty_score(progress, now) == pytest.approx(58.5)
        assert item_difficulty_score(None) == 0

    def test_quintiles_partition(self, vocabulary):
        slices = [quintile(vocabulary, tier) for tier in range(1, 6)]
        assert [len(s) for s in slices] == [6, 6, 6, 6, 6]
        assert sum(slices, []) == vocabulary


class TestScramble:
    def test_styles(self, rng):
        assert scramble_word("abcdef", 0, rng) == "badcfe"
        assert scramble_word("abcdef", 1, rng) == "fedcba"
        assert sorted(scramble_word("abcdef", 2, rng)) == list("abcdef")

    def test_short_words_unchanged(self, rng):
        assert scramble_word("ab", 1, rng) == "ab"

    def test_phrase_keeps_words(self, rng):
        scrambled = scramble_text("train station", 1, rng)
        assert len(scrambled.split(" ")) == 2
        assert sorted(scrambled.replace(" ", "")) == sorted("trainstation")


class TestOptions:
    def test_multiple_choice_from_catalog(self, vocabulary, rng):
        item = vocabulary[1]  # definition shown, term is the answer
        options = multiple_choice_options(item, vocabulary, rng)

        assert len(options) == 4
        assert item.term in options
        assert set(options) <= {v.term for v in vocabulary}

    def test_multiple_choice_uses_definition_side(self, vocabulary, rng):
        item = vocabulary[0]
        assert item.direction == DisplayDirection.TERM_TO_DEFINITION
        options = multiple_choice_options(item, vocabulary, rng)
        assert set(options) <= {v.definition for v in vocabulary}

    def test_letter_scramble_distinct(self, rng):
        item = Item(id="x", term="Fenster", definition="window")
        options = letter_scramble_options(item, rng)
        assert len(options) == len(set(options)) == 4
        assert item.answer in options

    def test_fill_in_pads_with_fallbacks(self, rng):
        item = Item(id="x", term="Haus", definition="house")
        options = fill_in_the_blank_options(item, [item], rng)
        assert sorted(options) == sorted(["Haus", *FILL_IN_FALLBACKS])

    def test_open_ended_modes_have_no_options(self, vocabulary, rng):
        for mode in (QuizMode.OPEN_ANSWER, QuizMode.USAGE_EXAMPLE, QuizMode.SYNONYM_ANTONYM):
            assert generate_options(vocabulary[0], mode, vocabulary, rng) == []
