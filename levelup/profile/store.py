"""
Learning-profile persistence.

Profiles are keyed by user id. The three update_* aggregations are
implemented once on top of save/load, so a backend only provides those
two calls.

Backends:
- InMemoryProfileStore: process-local dict (tests, ephemeral use)
- JsonProfileStore: one JSON document per user under a directory
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from levelup.profile.models import (
    DeepDivePerformance,
    LearningProfile,
    PrecisionPerformance,
    StreakPerformance,
)


class ProfileStore(ABC):
    """Durable, user-keyed learning-profile store."""

    @abstractmethod
    async def save(self, user_id: str, profile: LearningProfile) -> None:
        """Persist a profile, replacing any previous one."""
        ...

    @abstractmethod
    async def load(self, user_id: str) -> LearningProfile | None:
        """Load a profile, or None if the user has none."""
        ...

    async def _load_or_create(self, user_id: str) -> LearningProfile:
        profile = await self.load(user_id)
        if profile is None:
            logger.info(f"Creating learning profile for {user_id}")
            profile = LearningProfile(user_id=user_id)
        return profile

    async def update_streak_data(self, user_id: str, data: StreakPerformance) -> LearningProfile:
        profile = await self._load_or_create(user_id)
        profile.streak.record(data)
        profile.touch()
        await self.save(user_id, profile)
        return profile

    async def update_precision_data(self, user_id: str, data: PrecisionPerformance) -> LearningProfile:
        profile = await self._load_or_create(user_id)
        profile.precision.record(data)
        profile.touch()
        await self.save(user_id, profile)
        return profile

    async def update_deep_dive_data(self, user_id: str, data: DeepDivePerformance) -> LearningProfile:
        profile = await self._load_or_create(user_id)
        profile.deep_dive.record(data)
        profile.touch()
        await self.save(user_id, profile)
        return profile


class InMemoryProfileStore(ProfileStore):
    """Keeps profiles in a dict; copies on the way in and out."""

    def __init__(self) -> None:
        self._profiles: dict[str, LearningProfile] = {}

    async def save(self, user_id: str, profile: LearningProfile) -> None:
        self._profiles[user_id] = profile.model_copy(deep=True)

    async def load(self, user_id: str) -> LearningProfile | None:
        profile = self._profiles.get(user_id)
        return profile.model_copy(deep=True) if profile else None


class JsonProfileStore(ProfileStore):
    """
    One JSON file per user: {profile_dir}/{user_id}.json

    File I/O runs in a worker thread. Corrupt or unreadable documents
    are treated as absent.
    """

    def __init__(self, profile_dir: Path):
        self.profile_dir = Path(profile_dir)
        self.profile_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", user_id)
        return self.profile_dir / f"{safe}.json"

    def _write(self, user_id: str, profile: LearningProfile) -> Path:
        filepath = self._path(user_id)
        tmp_path = filepath.with_name(f"{filepath.name}.tmp")
        # Old document stays intact until the new one is complete
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(profile.model_dump_json(indent=2))
            tmp_path.replace(filepath)
        finally:
            tmp_path.unlink(missing_ok=True)
        return filepath

    def _read(self, user_id: str) -> LearningProfile | None:
        filepath = self._path(user_id)
        if not filepath.exists():
            return None

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
            return LearningProfile.model_validate(data)
        except (json.JSONDecodeError, ValidationError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable profile {filepath.name}: {e}")
            return None

    async def save(self, user_id: str, profile: LearningProfile) -> None:
        filepath = await asyncio.to_thread(self._write, user_id, profile)
        logger.debug(f"Saved profile {user_id} -> {filepath}")

    async def load(self, user_id: str) -> LearningProfile | None:
        return await asyncio.to_thread(self._read, user_id)

    def delete(self, user_id: str) -> bool:
        """Delete a profile file."""
        filepath = self._path(user_id)
        if filepath.exists():
            filepath.unlink()
            return True
        return False
