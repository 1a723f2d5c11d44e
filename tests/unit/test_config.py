"""Unit tests for settings and logging setup."""

import sys

import pytest
from loguru import logger
from pydantic import ValidationError

from levelup.adaptive.enhancement import HeuristicEnhancer, RuleBasedEnhancer, get_enhancer
from levelup.config import EngineSettings, configure_logging, get_settings


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.__stderr__, level="WARNING")


class TestEngineSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEVELUP_AI_ENHANCEMENTS_ENABLED", raising=False)
        settings = EngineSettings(_env_file=None)

        assert settings.ai_enhancements_enabled is True
        assert settings.performance_window == 10
        assert settings.precision_pool_size == 25
        assert settings.deep_dive_default_depth == 3

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("LEVELUP_PRECISION_POOL_SIZE", "12")
        monkeypatch.setenv("LEVELUP_AI_ENHANCEMENTS_ENABLED", "false")

        settings = EngineSettings(_env_file=None)

        assert settings.precision_pool_size == 12
        assert settings.ai_enhancements_enabled is False
        assert isinstance(get_enhancer(settings), RuleBasedEnhancer)

    def test_enabled_selects_heuristics(self, settings):
        assert isinstance(get_enhancer(settings), HeuristicEnhancer)

    def test_out_of_range_rejected(self, monkeypatch):
        monkeypatch.setenv("LEVELUP_DEEP_DIVE_DEFAULT_DEPTH", "9")
        with pytest.raises(ValidationError):
            EngineSettings(_env_file=None)

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestConfigureLogging:
    def test_level_filters_messages(self, capsys, restore_logger):
        configure_logging("info")

        logger.debug("hidden message")
        logger.info("visible message")

        err = capsys.readouterr().err
        assert "visible message" in err
        assert "hidden message" not in err
