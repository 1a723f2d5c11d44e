"""Unit tests for error risk, pacing, time allocation and support text."""

import math

import pytest

from levelup.adaptive.risk import (
    ChallengeType,
    adjust_strategy_for_risk,
    calculate_error_risk,
    calculate_item_difficulty,
    calculate_time_allocation,
    generate_hints,
    generate_support,
    session_phase,
)
from levelup.core.models import Item, ProgressRecord, QuizMode


class TestErrorRisk:
    def test_initial_risk(self):
        assert calculate_error_risk(0) == 0.1

    def test_fatigue_grows_two_percent_per_item(self):
        assert calculate_error_risk(5) == pytest.approx(0.10)
        assert calculate_error_risk(10) == pytest.approx(0.20)

    def test_late_session_term(self):
        # fatigue 0.22 + late 0.2
        assert calculate_error_risk(11) == pytest.approx(0.42)

    def test_fatigue_capped(self):
        assert calculate_error_risk(40) == pytest.approx(0.5)

    def test_pressure_and_cap(self):
        assert calculate_error_risk(20, error_count=1) == pytest.approx(0.8)
        assert calculate_error_risk(2, error_count=1) == pytest.approx(0.54)

    def test_challenge_multipliers(self):
        assert calculate_error_risk(10, challenge=ChallengeType.STREAK) == pytest.approx(0.16)
        assert calculate_error_risk(10, challenge=ChallengeType.DEEP_DIVE) == pytest.approx(0.18)

    def test_bad_progress_treated_as_zero(self):
        assert calculate_error_risk(-3) == 0.1
        assert calculate_error_risk(None) == 0.1

    @pytest.mark.parametrize("progress", [math.nan, math.inf, "ten"])
    def test_unusable_progress_treated_as_zero(self, progress):
        assert calculate_error_risk(progress) == 0.1

    @pytest.mark.parametrize("errors", [math.nan, "two", -1])
    def test_unusable_error_count_adds_no_pressure(self, errors):
        assert calculate_error_risk(10, error_count=errors) == pytest.approx(0.20)


class TestStrategy:
    @pytest.mark.parametrize("risk,pacing,load", [(0.1, 8, "moderate"), (0.4, 10, "low"), (0.7, 12, "minimal")])
    def test_precision_pacing(self, risk, pacing, load):
        strategy = adjust_strategy_for_risk(risk, quiz_mode=QuizMode.OPEN_ANSWER)
        assert strategy.pacing == pytest.approx(pacing)
        assert strategy.cognitive_load_level == load

    def test_high_risk_forces_multiple_choice(self):
        strategy = adjust_strategy_for_risk(0.55, quiz_mode=QuizMode.FILL_IN_THE_BLANK)
        assert strategy.quiz_mode == QuizMode.MULTIPLE_CHOICE
        assert strategy.difficulty_adjustment == "easier"

    def test_moderate_risk_keeps_mode(self):
        strategy = adjust_strategy_for_risk(0.35, quiz_mode=QuizMode.OPEN_ANSWER)
        assert strategy.quiz_mode == QuizMode.OPEN_ANSWER
        assert strategy.difficulty_adjustment == "easier"


class TestTimeAllocation:
    def test_short_easy_item(self):
        item = Item(id="a", term="Haus", definition="house", level=1)
        assert calculate_time_allocation(item, ChallengeType.PRECISION, QuizMode.MULTIPLE_CHOICE) == 8

    def test_bonuses_and_multiplier(self):
        item = Item(id="a", term="Gerechtigkeit", definition="justice", level=4)
        # (20 * 1.4 + 2 + 4) * 1.2 = 40.8 -> clamped to 40
        assert calculate_time_allocation(item, ChallengeType.STREAK, QuizMode.OPEN_ANSWER) == 40

    def test_profile_multiplier_applies(self):
        item = Item(id="a", term="Hund", definition="dog", level=1)
        # 20 * 1.2 = 24 for streak multiple-choice
        assert calculate_time_allocation(item, ChallengeType.STREAK, QuizMode.MULTIPLE_CHOICE) == 24


class TestItemDifficulty:
    def test_high_mastery_lowers_difficulty(self, now):
        item = Item(id="a", term="Haus", definition="house", level=3)
        progress = ProgressRecord(item_id="a", mastery_score=90, last_practiced_at=now)
        assert calculate_item_difficulty(item, progress, now) == 2

    def test_low_mastery_raises_difficulty(self, now):
        item = Item(id="a", term="Haus", definition="house", level=5)
        progress = ProgressRecord(item_id="a", mastery_score=10, last_practiced_at=now)
        assert calculate_item_difficulty(item, progress, now) == 5

    def test_no_progress_uses_level(self):
        item = Item(id="a", term="Haus", definition="house", level=2)
        assert calculate_item_difficulty(item) == 2


class TestHintsAndSupport:
    def test_precision_hint_at_risk(self, sample_item):
        hints = generate_hints(sample_item, QuizMode.MULTIPLE_CHOICE, ChallengeType.PRECISION, 0.4)
        assert "Take your time, accuracy is crucial" in hints
        assert hints[-1].startswith("Take a moment to recall")

    def test_long_term_open_answer_hint(self, sample_item):
        hints = generate_hints(sample_item, QuizMode.OPEN_ANSWER)
        assert "Break down longer words into familiar parts" in hints

    def test_support_for_late_precision(self):
        support = generate_support(ChallengeType.PRECISION, 0.6, "late")
        assert "Stay calm and confident, you've got this" in support
        assert support[-1] == "Strong finish, you're almost there"

    def test_session_phase(self):
        assert session_phase(0, 15) == "early"
        assert session_phase(6, 15) == "middle"
        assert session_phase(12, 15) == "late"
        assert session_phase(3, 0) == "early"
