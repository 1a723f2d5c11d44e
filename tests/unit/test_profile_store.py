"""Unit tests for learning-profile aggregation and the profile stores."""

from pathlib import Path

import pytest

from levelup.core.models import QuizMode
from levelup.profile.models import (
    HISTORY_LIMIT,
    DeepDivePerformance,
    LearningProfile,
    PrecisionPerformance,
    StreakPerformance,
)
from levelup.profile.store import InMemoryProfileStore, JsonProfileStore


@pytest.fixture
def json_store(tmp_path):
    return JsonProfileStore(tmp_path / "profiles")


class TestStreakAggregation:
    @pytest.mark.asyncio
    async def test_best_and_average_streak(self):
        store = InMemoryProfileStore()
        await store.update_streak_data("u1", StreakPerformance(streak=4, items_completed=10, accuracy=0.8, tier=2))
        profile = await store.update_streak_data(
            "u1", StreakPerformance(streak=8, items_completed=10, accuracy=0.6, tier=2, ai_enhanced=True)
        )

        stats = profile.streak
        assert stats.total_sessions == 2
        assert stats.best_streak == 8
        assert stats.average_streak == pytest.approx(6.0)
        assert stats.total_items_completed == 20
        assert (stats.ai_enhanced_sessions, stats.baseline_sessions) == (1, 1)
        assert stats.tier_stats["2"].items_attempted == 20
        assert stats.tier_stats["2"].accuracy == pytest.approx(0.7)
        assert stats.quiz_mode_stats["multiple-choice"].count == 2
        assert stats.quiz_mode_stats["multiple-choice"].accuracy == pytest.approx(0.7)

    def test_load_history_bounded(self):
        profile = LearningProfile(user_id="u1")
        for i in range(HISTORY_LIMIT + 5):
            profile.streak.record(StreakPerformance(streak=i))

        assert len(profile.streak.cognitive_load_history) == HISTORY_LIMIT
        assert profile.streak.cognitive_load_history[-1]["streak"] == HISTORY_LIMIT + 4

    def test_load_history_keeps_adaptations(self):
        profile = LearningProfile(user_id="u1")
        profile.streak.record(
            StreakPerformance(streak=5, adaptations_used=["multiple-choice -> letter-scramble"])
        )

        entry = profile.streak.cognitive_load_history[-1]
        assert entry["adaptations_used"] == ["multiple-choice -> letter-scramble"]


class TestPrecisionAggregation:
    def test_failure_points_and_pacing(self):
        profile = LearningProfile(user_id="u1")
        stats = profile.precision
        stats.record(PrecisionPerformance(failure_point=5, items_completed=4, accuracy=0.8, error_types=["spelling"]))
        stats.record(PrecisionPerformance(failure_point=9, items_completed=8, accuracy=0.9, error_types=["spelling"]))
        stats.record(PrecisionPerformance(
            completed=True,
            items_completed=15,
            accuracy=1.0,
            avg_time_per_item=4.0,
            quiz_mode_used=QuizMode.LETTER_SCRAMBLE,
        ))

        assert stats.total_sessions == 3
        assert stats.perfect_session_rate == pytest.approx(1 / 3)
        assert stats.average_failure_point == pytest.approx(7.0)
        assert stats.failure_history == [5, 9]
        assert stats.common_error_types == ["spelling"]
        assert stats.optimal_pacing == pytest.approx(6.0)
        assert stats.effective_quiz_modes == ["letter-scramble"]

    def test_empty_rate(self):
        assert LearningProfile(user_id="u1").precision.perfect_session_rate == 0.0


class TestDeepDiveAggregation:
    def test_rolling_averages(self):
        stats = LearningProfile(user_id="u1").deep_dive
        stats.record(DeepDivePerformance(completed=True, retention_rate=0.6, repetition_count=5))
        stats.record(DeepDivePerformance(retention_rate=1.0, repetition_count=0))

        assert stats.completed_sessions == 1
        assert stats.average_retention_rate == pytest.approx(0.8)
        assert stats.optimal_repetition_count == 4


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_missing_profile(self):
        assert await InMemoryProfileStore().load("nobody") is None

    @pytest.mark.asyncio
    async def test_saved_profile_is_a_copy(self):
        store = InMemoryProfileStore()
        profile = LearningProfile(user_id="u1")
        await store.save("u1", profile)

        profile.streak.best_streak = 99

        assert (await store.load("u1")).streak.best_streak == 0


class TestJsonStore:
    @pytest.mark.asyncio
    async def test_roundtrip(self, json_store):
        await json_store.update_precision_data("u1", PrecisionPerformance(completed=True, accuracy=1.0))

        loaded = await json_store.load("u1")

        assert loaded.user_id == "u1"
        assert loaded.precision.perfect_sessions == 1
        assert (json_store.profile_dir / "u1.json").exists()

    @pytest.mark.asyncio
    async def test_corrupt_file_treated_as_absent(self, json_store):
        (json_store.profile_dir / "u1.json").write_text("{not json", encoding="utf-8")

        assert await json_store.load("u1") is None

        profile = await json_store.update_deep_dive_data("u1", DeepDivePerformance(completed=True))
        assert profile.deep_dive.total_sessions == 1

    @pytest.mark.asyncio
    async def test_user_id_sanitised(self, json_store):
        await json_store.save("../escape", LearningProfile(user_id="../escape"))

        files = list(json_store.profile_dir.iterdir())
        assert len(files) == 1
        assert files[0].parent == json_store.profile_dir
        assert "/" not in files[0].name

    @pytest.mark.asyncio
    async def test_delete(self, json_store):
        await json_store.save("u1", LearningProfile(user_id="u1"))

        assert json_store.delete("u1") is True
        assert json_store.delete("u1") is False
        assert await json_store.load("u1") is None

    @pytest.mark.asyncio
    async def test_failed_write_keeps_previous_profile(self, json_store, monkeypatch):
        await json_store.update_precision_data("u1", PrecisionPerformance(completed=True, accuracy=1.0))

        def fail_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", fail_replace)
        with pytest.raises(OSError):
            await json_store.save("u1", LearningProfile(user_id="u1"))
        monkeypatch.undo()

        loaded = await json_store.load("u1")
        assert loaded.precision.perfect_sessions == 1
        assert list(json_store.profile_dir.glob("*.tmp")) == []
