"""
LevelUp adaptive engine.

Mastery modelling, cognitive-load heuristics and the challenge-mode
session state machines behind the vocabulary game.

Subpackages:
- core: item/progress data model and the mastery gain/decay model
- adaptive: cognitive load, momentum and enhancement strategies
- challenges: Streak, Precision and Deep Dive sessions
- profile: learning-profile persistence contract
"""

__version__ = "1.0.0"
