"""Challenge-mode session state machines."""

from levelup.challenges.base import AnswerOutcome, ChallengeQuestion, ChallengeSession, SessionStatus
from levelup.challenges.deep_dive import DeepDive, DeepDiveQuestion, ExplorationPhase
from levelup.challenges.precision import PrecisionMode, PrecisionQuestion
from levelup.challenges.streak import StreakChallenge, StreakQuestion

__all__ = [
    "AnswerOutcome",
    "ChallengeQuestion",
    "ChallengeSession",
    "DeepDive",
    "DeepDiveQuestion",
    "ExplorationPhase",
    "PrecisionMode",
    "PrecisionQuestion",
    "SessionStatus",
    "StreakChallenge",
    "StreakQuestion",
]
