"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from levelup.config import EngineSettings  # noqa: E402
from levelup.core.models import DisplayDirection, Item, ProgressRecord  # noqa: E402

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

VOCABULARY = [
    ("Haus", "house", 1),
    ("Hund", "dog", 1),
    ("Katze", "cat", 1),
    ("Baum", "tree", 1),
    ("Wasser", "water", 1),
    ("Brot", "bread", 1),
    ("Fenster", "window", 2),
    ("Schule", "school", 2),
    ("Freund", "friend", 2),
    ("Zeitung", "newspaper", 2),
    ("Bahnhof", "train station", 2),
    ("Kuchen", "cake", 2),
    ("Erfahrung", "experience", 3),
    ("Gesellschaft", "society", 3),
    ("Umgebung", "surroundings", 3),
    ("Verantwortung", "responsibility", 3),
    ("Entscheidung", "decision", 3),
    ("Wissenschaft", "science", 3),
    ("Gerechtigkeit", "justice", 4),
    ("Nachhaltigkeit", "sustainability", 4),
    ("Auseinandersetzung", "dispute", 4),
    ("Rücksichtnahme", "consideration", 4),
    ("Zusammenhang", "connection", 4),
    ("Vergangenheit", "the past", 4),
    ("Weltanschauung", "world view", 5),
    ("Gemütlichkeit", "coziness", 5),
    ("Schadenfreude", "joy at another's misfortune", 5),
    ("Fernweh", "longing for distant places", 5),
    ("Zeitgeist", "spirit of the age", 5),
    ("Sehnsucht", "yearning", 5),
]


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: End-to-end session scenarios")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def make_item(index: int, term: str, definition: str, level: int) -> Item:
    return Item(
        id=f"w{index:02d}",
        term=term,
        definition=definition,
        direction=DisplayDirection.DEFINITION_TO_TERM if index % 2 else DisplayDirection.TERM_TO_DEFINITION,
        level=level,
    )


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference time."""
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock callable returning the fixed reference time."""
    return lambda: FIXED_NOW


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment, heuristics enabled."""
    return EngineSettings(_env_file=None, ai_enhancements_enabled=True, profile_dir=tmp_path / "profiles")


@pytest.fixture
def baseline_settings(tmp_path):
    """Settings with enhancements disabled (rule-based strategy)."""
    return EngineSettings(_env_file=None, ai_enhancements_enabled=False, profile_dir=tmp_path / "profiles")


@pytest.fixture
def vocabulary():
    """Thirty German/English items across all five levels."""
    return [make_item(i, term, definition, level) for i, (term, definition, level) in enumerate(VOCABULARY)]


@pytest.fixture
def sample_item():
    """Provide a single sample item."""
    return Item(
        id="sample-001",
        term="Bibliothek",
        definition="library",
        direction=DisplayDirection.DEFINITION_TO_TERM,
        level=3,
        example="Ich lerne jeden Tag in der Bibliothek.",
    )


@pytest.fixture
def practiced_progress(vocabulary):
    """Progress in the precision sweet spot for the first twenty items."""
    practiced_at = FIXED_NOW - timedelta(hours=1)
    return {
        item.id: ProgressRecord(
            item_id=item.id,
            mastery_score=75 + (i % 4) * 5,
            last_practiced_at=practiced_at,
            times_correct=8,
            times_incorrect=1,
        )
        for i, item in enumerate(vocabulary[:20])
    }
