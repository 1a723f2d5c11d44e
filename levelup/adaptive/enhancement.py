"""
Enhancement Strategies.

The optional "AI" enrichment step sits behind a strategy interface:

- HeuristicEnhancer: full cognitive-load/momentum analysis plus
  mode-specific overlays
- RuleBasedEnhancer: the deterministic fallback, used when enhancements
  are disabled in settings

Challenge sessions only call analyze_with_fallback(), which bounds the
call with a timeout and replaces any failure with the rule-based
analysis. Enhancement faults are logged, never raised.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from loguru import logger

from levelup.adaptive.cognitive_model import (
    PerformanceAnalysis,
    analyze_performance,
    apply_streak_overlay,
    fallback_analysis,
)
from levelup.config import EngineSettings, get_settings
from levelup.core.models import AnswerRecord, QuizMode


@dataclass
class EnhancementContext:
    """Inputs to one enhancement call."""

    history: list[AnswerRecord]
    baseline_mode: QuizMode
    challenge: str = "streak"  # streak, precision, deep-dive
    streak: int = 0
    window: int = 5


class EnhancementStrategy(ABC):
    """Produces a PerformanceAnalysis for the next question."""

    name: ClassVar[str] = "base"

    @abstractmethod
    async def analyze(self, context: EnhancementContext) -> PerformanceAnalysis:
        """Analyze recent performance and recommend a quiz mode."""
        ...


class HeuristicEnhancer(EnhancementStrategy):
    """Cognitive-load and momentum heuristics."""

    name = "heuristic"

    async def analyze(self, context: EnhancementContext) -> PerformanceAnalysis:
        analysis = analyze_performance(context.history, context.baseline_mode, context.window)
        if context.challenge == "streak":
            analysis = apply_streak_overlay(analysis, context.streak)
        return analysis


class RuleBasedEnhancer(EnhancementStrategy):
    """Deterministic fallback; no analysis beyond consecutive misses."""

    name = "rule-based"

    async def analyze(self, context: EnhancementContext) -> PerformanceAnalysis:
        return fallback_analysis(context.history, context.window)


def get_enhancer(settings: EngineSettings | None = None) -> EnhancementStrategy:
    """Select the strategy from the ai_enhancements_enabled flag."""
    settings = settings or get_settings()
    if settings.ai_enhancements_enabled:
        return HeuristicEnhancer()
    return RuleBasedEnhancer()


async def analyze_with_fallback(
    strategy: EnhancementStrategy,
    context: EnhancementContext,
    timeout: float = 2.0,
) -> PerformanceAnalysis:
    """
    Run a strategy, falling back to the rule-based analysis on failure.

    Args:
        strategy: Enhancement strategy to run
        context: Inputs for the call
        timeout: Seconds before the call is abandoned

    Returns:
        PerformanceAnalysis from the strategy or from the fallback
    """
    try:
        return await asyncio.wait_for(strategy.analyze(context), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{strategy.name} enhancement timed out after {timeout}s, using fallback")
    except Exception as e:
        logger.warning(f"{strategy.name} enhancement failed, using fallback: {e}")

    return fallback_analysis(context.history, context.window)
