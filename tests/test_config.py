"""
Tests for centralized configuration module.

Run with: pytest tests/test_config.py -v
"""

from pathlib import Path

import pytest


class TestPathConfig:
    """Test path configuration."""

    def test_project_root_is_absolute(self):
        from copysmith.config import config
        assert config.paths.PROJECT_ROOT.is_absolute()

    def test_state_dir_default(self, monkeypatch):
        from copysmith.config import config
        monkeypatch.delenv("COPYSMITH_STATE_DIR", raising=False)
        assert config.paths.STATE_DIR == config.paths.PROJECT_ROOT / ".state"

    def test_state_dir_override(self, monkeypatch, tmp_path):
        """COPYSMITH_STATE_DIR moves autosave and usage files."""
        from copysmith.config import config
        monkeypatch.setenv("COPYSMITH_STATE_DIR", str(tmp_path))
        assert config.paths.STATE_DIR == tmp_path

    def test_path_types(self):
        from copysmith.config import config
        assert isinstance(config.paths.STATE_DIR, Path)
        assert isinstance(config.paths.LOGS_DIR, Path)


class TestDefaults:
    """Defaults match the documented product behaviour."""

    def test_daily_limits(self):
        from copysmith.config import config
        assert config.usage.DAILY_GENERATION_LIMIT == 10
        assert config.usage.CONTENT_GENERATION_LIMIT == 10
        assert config.usage.TOPIC_GENERATION_LIMIT == 10

    def test_long_form_band(self):
        from copysmith.config import config
        band = config.generation.long_form_band()
        assert (band.minimum, band.maximum, band.target) == (2200, 2800, 2500)
        assert config.generation.LONG_FORM_WORD_COUNT == "2500"
        assert config.generation.LONG_FORM_MAX_ATTEMPTS == 3
        assert band.contains(2200) and band.contains(2800)
        assert not band.contains(2199) and not band.contains(2801)

    def test_models(self):
        from copysmith.config import config
        assert config.models.CONTENT_MODEL == "gemini-2.5-flash"
        assert config.models.SEARCH_MODEL == "gemini-2.5-flash"


class TestSourceSizing:
    @pytest.mark.parametrize("word_count,target", [(50, 2), (800, 2), (801, 3), (1500, 4), (2000, 5), (2500, 5)])
    def test_target_count_clamped(self, word_count, target):
        from copysmith.config import config
        assert config.sources.target_count(word_count) == target

    @pytest.mark.parametrize("word_count,searched", [(50, 8), (1500, 8), (2000, 10)])
    def test_search_count(self, word_count, searched):
        from copysmith.config import config
        assert config.sources.search_count(word_count) == searched


class TestValidation:
    def test_missing_key_is_an_issue(self, monkeypatch):
        from copysmith.config import config
        monkeypatch.setattr(config.api, "GOOGLE_API_KEY", None)
        monkeypatch.setattr(config.api, "GEMINI_API_KEY", None)
        result = config.validate()
        assert result["valid"] is False
        assert any("API key" in issue for issue in result["issues"])

    def test_key_from_either_variable(self, monkeypatch):
        from copysmith.config import config
        monkeypatch.setattr(config.api, "GOOGLE_API_KEY", None)
        monkeypatch.setattr(config.api, "GEMINI_API_KEY", "test-key")
        assert config.api.resolve_key() == "test-key"
        assert config.validate()["valid"] is True

    def test_singleton(self):
        from copysmith.config import config, get_config
        assert get_config() is config
