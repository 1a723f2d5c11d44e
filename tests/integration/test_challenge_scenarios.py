"""
End-to-end challenge sessions driven through a catalog scope.

Each test plays a full get_next()/record_answer() loop the way a UI
driver would, then persists analytics through a profile store.
"""

import random

import pytest

from levelup.catalog import StaticCatalog
from levelup.challenges import AnswerOutcome, DeepDive, PrecisionMode, SessionStatus, StreakChallenge
from levelup.challenges.deep_dive import ExplorationPhase
from levelup.core.models import QuizMode
from levelup.profile.store import JsonProfileStore


@pytest.fixture
def catalog(vocabulary):
    return StaticCatalog({"de": vocabulary})


@pytest.fixture
def store(settings):
    return JsonProfileStore(settings.profile_dir)


class TestStreakScenario:
    @pytest.mark.asyncio
    async def test_streak_climbs_into_tier_two(self, settings, clock, catalog, store):
        session = StreakChallenge(settings, rng=random.Random(21), clock=clock)
        session.initialize(catalog.get_items_for_scope("de"))

        tiers = []
        modes = []
        for _ in range(5):
            question = await session.get_next()
            tiers.append(question.tier)
            modes.append(question.quiz_mode)
            assert session.record_answer(question.item.id, True, 4.0) == AnswerOutcome.CONTINUE

        assert tiers == [1, 1, 1, 2, 2]
        assert session.streak == 5
        # Fast, accurate answers escalate past multiple-choice
        assert QuizMode.MULTIPLE_CHOICE not in modes[3:]

        assert await session.save_performance("learner-a", store) is True
        profile = await store.load("learner-a")
        assert profile.streak.best_streak == 5
        assert "2" in profile.streak.tier_stats


class TestPrecisionScenario:
    @pytest.mark.asyncio
    async def test_perfect_five_item_session(self, settings, clock, catalog, practiced_progress, store):
        session = PrecisionMode(settings, rng=random.Random(22), clock=clock)
        session.initialize(catalog.get_items_for_scope("de"), practiced_progress, target_count=5)

        outcomes = []
        while session.is_active:
            question = await session.get_next()
            outcomes.append(session.record_answer(question.item.id, True, 5.0))

        assert outcomes[-1] == AnswerOutcome.TERMINATE
        assert len(outcomes) == 5
        assert session.status == SessionStatus.COMPLETED

        summary = session.summary()
        assert summary.completed is True
        assert summary.failure_point == 0
        assert summary.accuracy == 1.0

        assert await session.save_performance("learner-b", store) is True
        assert (await store.load("learner-b")).precision.perfect_session_rate == 1.0

    @pytest.mark.asyncio
    async def test_progress_updates_feed_next_session(self, settings, clock, catalog, practiced_progress):
        first = PrecisionMode(settings, rng=random.Random(23), clock=clock)
        first.initialize(catalog.get_items_for_scope("de"), practiced_progress, target_count=2)
        question = await first.get_next()
        first.record_answer(question.item.id, True, 3.0)

        updated = first.progress_updates[question.item.id]
        assert updated.times_correct == practiced_progress[question.item.id].times_correct + 1
        assert updated.mastery_score > practiced_progress[question.item.id].mastery_score


class TestDeepDiveScenario:
    @pytest.mark.asyncio
    async def test_consolidation_phase_late_in_session(self, settings, clock, catalog, store):
        session = DeepDive(settings, rng=random.Random(24), clock=clock)
        session.initialize(catalog.get_items_for_scope("de"), target_items=15, exploration_depth=3)

        question = await session.get_next(current_progress=12)

        assert session.session_progress == pytest.approx(0.8)
        assert question.phase == ExplorationPhase.CONSOLIDATION
        assert question.depth == 4

        outcome = AnswerOutcome.CONTINUE
        while outcome == AnswerOutcome.CONTINUE:
            outcome = session.record_answer(question.item.id, True, 40.0)
            if outcome == AnswerOutcome.CONTINUE:
                question = await session.get_next()

        assert session.status == SessionStatus.COMPLETED
        assert session.completed == 15
        assert await session.save_performance("learner-c", store) is True

    def test_unknown_scope_is_empty(self, catalog):
        assert catalog.get_items_for_scope("fr") == []
