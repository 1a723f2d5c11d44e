"""Data model, mastery model and engine exceptions."""

from levelup.core.exceptions import (
    EmptyCatalogError,
    LevelUpError,
    SessionNotInitializedError,
    SessionTerminatedError,
)
from levelup.core.mastery import (
    MasteryBand,
    calculate_mastery_decay,
    calculate_mastery_gain,
    is_learned,
    is_mastered,
    next_mastery_quiz_mode,
    should_switch_quiz_mode,
)
from levelup.core.models import (
    QUIZ_MODE_LADDER,
    AnswerRecord,
    DisplayDirection,
    Item,
    ProgressMap,
    ProgressRecord,
    QuizMode,
)

__all__ = [
    "QUIZ_MODE_LADDER",
    "AnswerRecord",
    "DisplayDirection",
    "EmptyCatalogError",
    "Item",
    "LevelUpError",
    "MasteryBand",
    "ProgressMap",
    "ProgressRecord",
    "QuizMode",
    "SessionNotInitializedError",
    "SessionTerminatedError",
    "calculate_mastery_decay",
    "calculate_mastery_gain",
    "is_learned",
    "is_mastered",
    "next_mastery_quiz_mode",
    "should_switch_quiz_mode",
]
