"""Learning-profile documents and the Profile Store contract."""

from levelup.profile.models import (
    DeepDiveAnalytics,
    DeepDivePerformance,
    LearningProfile,
    PrecisionAnalytics,
    PrecisionPerformance,
    StreakAnalytics,
    StreakPerformance,
)
from levelup.profile.store import InMemoryProfileStore, JsonProfileStore, ProfileStore

__all__ = [
    "DeepDiveAnalytics",
    "DeepDivePerformance",
    "InMemoryProfileStore",
    "JsonProfileStore",
    "LearningProfile",
    "PrecisionAnalytics",
    "PrecisionPerformance",
    "ProfileStore",
    "StreakAnalytics",
    "StreakPerformance",
]
