"""
Deep Dive.

A small set of items explored at increasing comprehension depth (1-5).
Depth grows with session progress and, unlike Streak and Precision, with
the item's own mastery: well-known items are pushed into harder
examination modes.

Depth -> quiz mode:
- 1-2: multiple-choice (recognition)
- 3: contextual-analysis
- 4: usage-example
- 5: synonym-antonym

Phases follow completed/target: exploration (<0.3), validation (<0.7),
consolidation. The session never fails.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger

from levelup.adaptive.risk import ChallengeType, calculate_item_difficulty
from levelup.challenges.base import AnswerOutcome, ChallengeQuestion, ChallengeSession, SessionStatus
from levelup.challenges.selection import multiple_choice_options
from levelup.core.exceptions import EmptyCatalogError
from levelup.core.mastery import hours_since
from levelup.core.models import Item, ProgressMap, ProgressRecord, QuizMode
from levelup.core.validation import coerce_int, coerce_number
from levelup.profile.models import DeepDivePerformance
from levelup.profile.store import ProfileStore

MIN_DEPTH = 1
MAX_DEPTH = 5

EXPLORATION_PHASES = [
    "Initial Discovery",
    "Contextual Exploration",
    "Comprehension Validation",
    "Knowledge Consolidation",
]

# Distractor themes keyed by words found in the definition
THEMED_DISTRACTORS: list[tuple[tuple[str, ...], list[str]]] = [
    (("study", "learn"), [
        "The process of forgetting information over time",
        "A method of avoiding intellectual challenges",
        "The tendency to reject new information",
    ]),
    (("process", "method"), [
        "A static state without change or development",
        "An unpredictable series of random events",
        "A fixed outcome determined in advance",
    ]),
    (("feeling", "emotion"), [
        "A logical reasoning pattern without sentiment",
        "A mathematical calculation method",
        "A systematic approach to problem-solving",
    ]),
]
GENERIC_DISTRACTORS = [
    "A theoretical framework for analyzing concepts",
    "A systematic approach to understanding patterns",
    "A methodological process for evaluation",
]
PADDING_DISTRACTORS = [
    "An alternative interpretation of the concept",
    "A different perspective on the subject matter",
    "A contrasting viewpoint on the topic",
]

MODE_TIME_BONUS: dict[QuizMode, int] = {
    QuizMode.SYNONYM_ANTONYM: 20,
    QuizMode.USAGE_EXAMPLE: 15,
    QuizMode.CONTEXTUAL_ANALYSIS: 10,
    QuizMode.MULTIPLE_CHOICE: 5,
}


class ExplorationPhase(str, Enum):
    EXPLORATION = "exploration"
    VALIDATION = "validation"
    CONSOLIDATION = "consolidation"

    @classmethod
    def from_progress(cls, session_progress: float) -> ExplorationPhase:
        if session_progress < 0.3:
            return cls.EXPLORATION
        if session_progress < 0.7:
            return cls.VALIDATION
        return cls.CONSOLIDATION


@dataclass
class ComprehensionQuestion:
    question: str
    expected_answer: str
    type: str  # definition, usage, context, relationship

    def to_dict(self) -> dict[str, str]:
        return {"question": self.question, "expected_answer": self.expected_answer, "type": self.type}


@dataclass
class DeepDiveQuestion(ChallengeQuestion):
    """Deep dive question with comprehension material."""

    depth: int = MIN_DEPTH
    phase: ExplorationPhase = ExplorationPhase.EXPLORATION
    difficulty_level: int = 1
    context_sentence: str = ""
    comprehension_questions: list[ComprehensionQuestion] = field(default_factory=list)
    contextual_hints: list[str] = field(default_factory=list)
    comprehension_boost: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "depth": self.depth,
            "phase": self.phase.value,
            "difficulty_level": self.difficulty_level,
            "context_sentence": self.context_sentence,
            "comprehension_questions": [q.to_dict() for q in self.comprehension_questions],
            "contextual_hints": list(self.contextual_hints),
            "comprehension_boost": list(self.comprehension_boost),
        })
        return data


# =============================================================================
# Pure helpers
# =============================================================================


def clamp_depth(depth: float) -> int:
    return coerce_int(depth, default=MIN_DEPTH, minimum=MIN_DEPTH, maximum=MAX_DEPTH)


def mastery_bonus(effective_mastery: float) -> int:
    """+2 for mastered items, +1 for learned ones."""
    if effective_mastery >= 90:
        return 2
    if effective_mastery >= 70:
        return 1
    return 0


def comprehension_depth(base_depth: int, session_progress: float, bonus: int = 0) -> int:
    """
    Depth for one question, always within 1-5.

        base + floor(progress * 2) + mastery bonus
    """
    progress = coerce_number(session_progress, 0.0, 0.0, 1.0)
    return clamp_depth(clamp_depth(base_depth) + math.floor(progress * 2) + coerce_int(bonus, 0, minimum=0))


def quiz_mode_for_depth(depth: int) -> QuizMode:
    depth = clamp_depth(depth)
    if depth <= 2:
        return QuizMode.MULTIPLE_CHOICE
    if depth == 3:
        return QuizMode.CONTEXTUAL_ANALYSIS
    if depth == 4:
        return QuizMode.USAGE_EXAMPLE
    return QuizMode.SYNONYM_ANTONYM


def comprehension_score(item: Item, progress: ProgressRecord | None, now: datetime | None = None) -> float:
    """Base selection score, 0-100, before the depth bonus."""
    score = 50.0
    if progress is not None:
        score += progress.mastery_score * 0.3
        score += progress.effective_mastery(now) * 0.15
        if progress.last_practiced_at is not None:
            days = hours_since(progress.last_practiced_at, now) / 24
            if days > 7:
                score += 20
            elif days < 1:
                score -= 10

    if len(item.term) >= 6:
        score += 15
    if item.level >= 3:
        score += 20
    return max(0.0, min(100.0, score))


def depth_bonus(item: Item, depth: int) -> float:
    """Favor complex items at high depth and approachable ones at low depth."""
    if depth >= 4 and item.level >= 4:
        return 25.0
    if depth <= 2 and item.level <= 3:
        return 15.0
    return 0.0


def comprehension_time(item: Item, quiz_mode: QuizMode, depth: int) -> int:
    """Seconds allowed, clamped to 30-120."""
    seconds = 45 + MODE_TIME_BONUS.get(quiz_mode, 0) + clamp_depth(depth) * 10
    if len(item.term) > 8:
        seconds += 10
    if item.level >= 4:
        seconds += 15
    return max(30, min(120, seconds))


def context_sentence(item: Item) -> str:
    if item.example:
        return item.example
    return f'Understanding "{item.term}" in context: {item.definition}'


def comprehension_questions(item: Item, depth: int) -> list[ComprehensionQuestion]:
    term = item.term
    questions = [ComprehensionQuestion(f'What does "{term}" mean?', item.definition, "definition")]
    if depth >= 2:
        questions.append(ComprehensionQuestion(
            f'How would you use "{term}" in a sentence?',
            f'A sentence using "{term}" with proper context and meaning.',
            "usage",
        ))
    if depth >= 3:
        questions.append(ComprehensionQuestion(
            f'What situations would you use "{term}" in?',
            f'Appropriate contexts and scenarios where "{term}" would be used effectively.',
            "context",
        ))
    if depth >= 4:
        questions.append(ComprehensionQuestion(
            f'What words are related to "{term}"?',
            f'Synonyms, antonyms, and related concepts connected to "{term}".',
            "relationship",
        ))
    return questions


def contextual_hints(item: Item, quiz_mode: QuizMode, depth: int) -> list[str]:
    if quiz_mode == QuizMode.CONTEXTUAL_ANALYSIS:
        hints = [
            "Consider how this word is used in different situations",
            "Think about the emotional or cultural context",
        ]
    elif quiz_mode == QuizMode.USAGE_EXAMPLE:
        hints = [
            "Create a mental image of how you would use this word",
            "Consider both formal and informal usage",
        ]
    elif quiz_mode == QuizMode.SYNONYM_ANTONYM:
        hints = [
            "Think about words with similar and opposite meanings",
            "Consider subtle differences between similar words",
        ]
    else:
        hints = ["Take time to fully understand all aspects of this word"]

    if depth >= 3:
        hints.append("Explore connections to related concepts")
        hints.append("Consider how this word relates to your personal experience")
    if len(item.term) > 8:
        hints.append("Break down complex words into meaningful parts")
    return hints


def comprehension_boosts(item: Item, depth: int) -> list[str]:
    boosts = [
        "Deep learning builds lasting understanding",
        "Take time to truly grasp this concept",
    ]
    if depth >= 3:
        boosts.append("You're building comprehensive knowledge")
        boosts.append("Deep exploration leads to mastery")
    if len(item.term) >= 6:
        boosts.append("Complex words offer rich learning opportunities")
    boosts.append("Understanding deeply is more valuable than speed")
    return boosts


def themed_distractors(item: Item) -> list[str]:
    """Three definition-style distractors for a single-item session."""
    correct = item.definition
    lowered = correct.lower()
    pool = GENERIC_DISTRACTORS
    for keywords, distractors in THEMED_DISTRACTORS:
        if any(keyword in lowered for keyword in keywords):
            pool = distractors
            break

    selected = [d for d in pool if d != correct and abs(len(d) - len(correct)) < 50][:3]
    for padding in PADDING_DISTRACTORS:
        if len(selected) >= 3:
            break
        if padding not in selected:
            selected.append(padding)
    return selected


# =============================================================================
# Session
# =============================================================================


class DeepDive(ChallengeSession):
    """Depth-scaling exploration over a candidate list."""

    challenge_type = ChallengeType.DEEP_DIVE

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.target = self.settings.deep_dive_default_target
        self.base_depth = self.settings.deep_dive_default_depth
        self.completed = 0
        self.phase = ExplorationPhase.EXPLORATION
        self.current_depth = self.base_depth
        self.last_item_id: str | None = None
        self.presentations = 0
        self.presented_ids: set[str] = set()
        self.first_attempts: dict[str, bool] = {}
        self.contextual_scores: list[float] = []
        self.connections: dict[str, int] = {}
        self.strategies: list[str] = []

    def initialize(
        self,
        items: Sequence[Item],
        progress_map: ProgressMap | None = None,
        target_items: int | None = None,
        exploration_depth: int | None = None,
    ) -> dict[str, Any]:
        """
        Start a deep dive.

        Args:
            items: Candidate items (e.g. a catalog scope)
            progress_map: Progress records keyed by item id
            target_items: Answers that complete the session
            exploration_depth: Starting depth, clamped to 1-5

        Returns:
            session_id, estimated_duration (seconds) and exploration_phases

        Raises:
            EmptyCatalogError: If no items were supplied
        """
        if not items:
            raise EmptyCatalogError("Deep dive needs at least one item")

        self._start(items, progress_map)
        self.target = coerce_int(target_items, self.settings.deep_dive_default_target, minimum=1)
        self.base_depth = clamp_depth(
            exploration_depth if exploration_depth is not None else self.settings.deep_dive_default_depth
        )
        self._reset_counters()

        estimated_duration = self.target * (30 + self.base_depth * 15)
        logger.info(
            f"{self.session_id}: {self.target} items at depth {self.base_depth}, ~{estimated_duration}s"
        )
        return {
            "session_id": self.session_id,
            "estimated_duration": estimated_duration,
            "exploration_phases": list(EXPLORATION_PHASES),
        }

    def _reset_counters(self) -> None:
        self.completed = 0
        self.phase = ExplorationPhase.EXPLORATION
        self.current_depth = self.base_depth
        self.last_item_id = None
        self.presentations = 0
        self.presented_ids = set()
        self.first_attempts = {}
        self.contextual_scores = []
        self.connections = {}
        self.strategies = []

    @property
    def session_progress(self) -> float:
        return min(1.0, self.completed / self.target) if self.target else 0.0

    # =========================================================================
    # Selection
    # =========================================================================

    def _mastery(self, item: Item, now: datetime) -> float:
        progress = self.progress.get(item.id)
        return progress.effective_mastery(now) if progress else 0.0

    def _select_item(self, depth: int, now: datetime) -> Item:
        candidates = self.items
        if len(candidates) > 1 and self.last_item_id is not None:
            candidates = [item for item in candidates if item.id != self.last_item_id]

        scored = sorted(
            candidates,
            key=lambda item: comprehension_score(item, self.progress.get(item.id), now) + depth_bonus(item, depth),
            reverse=True,
        )
        top = scored[: max(1, math.floor(len(scored) * self.settings.deep_dive_top_fraction))]
        return self.rng.choice(top)

    def _options(self, item: Item, mode: QuizMode) -> list[str]:
        if mode != QuizMode.MULTIPLE_CHOICE:
            return []
        options = multiple_choice_options(item, self.items, self.rng)
        # Pad with themed distractors when the candidate list is too small
        for distractor in themed_distractors(item):
            if len(options) >= 4:
                break
            if distractor not in options:
                options.append(distractor)
        self.rng.shuffle(options)
        return options

    # =========================================================================
    # Session driver contract
    # =========================================================================

    async def get_next(
        self,
        progress_map: ProgressMap | None = None,
        current_progress: int | None = None,
    ) -> DeepDiveQuestion:
        """
        Pick the next item and its comprehension depth.

        Args:
            progress_map: Fresh progress records to merge in
            current_progress: Overrides the completed-answer count

        Returns:
            DeepDiveQuestion with depth, phase and comprehension material
        """
        self._require_active()
        self._merge_progress(progress_map)
        if current_progress is not None:
            self.completed = coerce_int(current_progress, self.completed, minimum=0)

        now = self.clock()
        progress = self.session_progress
        self.phase = ExplorationPhase.from_progress(progress)

        # Provisional pick at depth 2 to learn the mastery bonus, then
        # re-select at the real depth
        provisional = self._select_item(2, now)
        depth = comprehension_depth(self.base_depth, progress, mastery_bonus(self._mastery(provisional, now)))
        item = self._select_item(depth, now)
        depth = comprehension_depth(self.base_depth, progress, mastery_bonus(self._mastery(item, now)))
        reasoning = [f"Progress {progress:.2f} ({self.phase.value}), depth {depth}"]

        ai_enhanced = False
        if self.enhancements_enabled:
            analysis = await self._analyze(quiz_mode_for_depth(depth))
            reasoning.extend(analysis.reasoning)
            if analysis.should_intervene and analysis.difficulty_adjustment < 0 and depth > MIN_DEPTH:
                depth -= 1
                reasoning.append(f"Struggling, depth lowered to {depth}")
            ai_enhanced = not analysis.fallback_used

        mode = quiz_mode_for_depth(depth)
        self.current_depth = depth
        self.strategies.append(f"comprehension-depth-{depth}")

        question = DeepDiveQuestion(
            item=item,
            quiz_mode=mode,
            options=self._options(item, mode),
            ai_enhanced=ai_enhanced,
            reasoning=reasoning,
            timing_hint=comprehension_time(item, mode, depth),
            depth=depth,
            phase=self.phase,
            difficulty_level=calculate_item_difficulty(item, self.progress.get(item.id), now),
            context_sentence=context_sentence(item),
            comprehension_questions=comprehension_questions(item, depth),
            contextual_hints=contextual_hints(item, mode, depth),
            comprehension_boost=comprehension_boosts(item, depth),
        )
        self.last_item_id = item.id
        self.presentations += 1
        self.presented_ids.add(item.id)
        return self._present(question)

    def record_answer(
        self,
        item_id: str,
        is_correct: bool,
        time_spent: float = 0.0,
        error_type: str | None = None,
    ) -> AnswerOutcome:
        """
        Record an answer; every answer counts toward the target.

        Returns TERMINATE once the target is reached.
        """
        self._require_active()
        depth = self.current_depth
        self._record(item_id, is_correct, time_spent, error_type)

        self.first_attempts.setdefault(item_id, bool(is_correct))
        self.contextual_scores.append(depth / MAX_DEPTH if is_correct else 0.0)
        if is_correct:
            self.connections[item_id] = max(self.connections.get(item_id, 0), depth)

        self.completed += 1
        self.phase = ExplorationPhase.from_progress(self.session_progress)
        if self.completed >= self.target:
            self.status = SessionStatus.COMPLETED
            logger.info(f"{self.session_id}: deep dive complete after {self.completed} items")
            return AnswerOutcome.TERMINATE
        return AnswerOutcome.CONTINUE

    def reset(self) -> None:
        """Back to a fresh exploration state over the same candidates."""
        if self.status == SessionStatus.IDLE:
            return
        self._reset_counters()
        self.history.clear()
        self.current_question = None
        self.mode_counts.clear()
        self.attempts = 0
        self.correct = 0
        self.total_time = 0.0
        self.ai_enhanced_questions = 0
        self.status = SessionStatus.ACTIVE

    # =========================================================================
    # Analytics
    # =========================================================================

    @property
    def contextual_connections(self) -> dict[str, int]:
        """Deepest depth answered correctly, per item id."""
        return dict(self.connections)

    def summary(self) -> DeepDivePerformance:
        first_attempt_accuracy = (
            sum(1 for correct in self.first_attempts.values() if correct) / len(self.first_attempts)
            if self.first_attempts else 0.0
        )
        contextual_score = (
            sum(self.contextual_scores) / len(self.contextual_scores) if self.contextual_scores else 0.0
        )
        return DeepDivePerformance(
            completed=self.completed >= self.target,
            items_completed=self.completed,
            retention_rate=self.accuracy,
            contextual_score=contextual_score,
            repetition_count=max(0, self.presentations - len(self.presented_ids)),
            first_attempt_accuracy=first_attempt_accuracy,
            ai_enhanced=self.ai_enhanced_questions > 0,
        )

    async def _persist(self, store: ProfileStore, user_id: str) -> None:
        await store.update_deep_dive_data(user_id, self.summary())

    def get_state(self) -> dict[str, Any]:
        state = super().get_state()
        state.update({
            "target": self.target,
            "completed": self.completed,
            "phase": self.phase.value,
            "base_depth": self.base_depth,
            "current_depth": self.current_depth,
            "session_progress": round(self.session_progress, 3),
            "contextual_connections": len(self.connections),
        })
        return state
