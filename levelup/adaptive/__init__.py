"""Cognitive-load heuristics, enhancement strategies and risk helpers."""

from levelup.adaptive.cognitive_model import (
    CognitiveLoad,
    LoadLevel,
    Momentum,
    MomentumTrend,
    PerformanceAnalysis,
    analyze_momentum,
    analyze_performance,
    apply_streak_overlay,
    detect_cognitive_load,
    easier_mode,
    fallback_analysis,
    harder_mode,
)
from levelup.adaptive.enhancement import (
    EnhancementContext,
    EnhancementStrategy,
    HeuristicEnhancer,
    RuleBasedEnhancer,
    analyze_with_fallback,
    get_enhancer,
)
from levelup.adaptive.risk import (
    ChallengeType,
    adjust_strategy_for_risk,
    calculate_error_risk,
    calculate_time_allocation,
)

__all__ = [
    "ChallengeType",
    "CognitiveLoad",
    "EnhancementContext",
    "EnhancementStrategy",
    "HeuristicEnhancer",
    "LoadLevel",
    "Momentum",
    "MomentumTrend",
    "PerformanceAnalysis",
    "RuleBasedEnhancer",
    "adjust_strategy_for_risk",
    "analyze_momentum",
    "analyze_performance",
    "analyze_with_fallback",
    "apply_streak_overlay",
    "calculate_error_risk",
    "calculate_time_allocation",
    "detect_cognitive_load",
    "easier_mode",
    "fallback_analysis",
    "get_enhancer",
    "harder_mode",
]
