"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from config import Config


class TestConfigLoad:
    def test_defaults(self, monkeypatch):
        for key in ("GEMINI_API_KEY", "LANGUAGE", "NEWS_ITEM_COUNT", "REQUEST_TIMEOUT_SECONDS", "LOG_DIR"):
            monkeypatch.delenv(key, raising=False)
        config = Config.load()
        assert config.language == "zh"
        assert config.news_item_count == 6
        assert config.search_window_days == 30
        assert config.output_retries == 0
        assert config.log_dir == Path("log")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        monkeypatch.setenv("LANGUAGE", "en")
        monkeypatch.setenv("NEWS_ITEM_COUNT", "4")
        monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("ENABLE_LOGFIRE", "yes")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        config = Config.load()
        assert config.gemini_api_key == "k"
        assert config.language == "en"
        assert config.language_name == "English"
        assert config.news_item_count == 4
        assert config.request_timeout_seconds == 12.5
        assert config.enable_logfire is True
        assert config.log_level == "DEBUG"

    def test_invalid_integer_raises(self, monkeypatch):
        monkeypatch.setenv("NEWS_ITEM_COUNT", "six")
        with pytest.raises(ValueError, match="NEWS_ITEM_COUNT"):
            Config.load()


class TestConfigValidate:
    def test_valid(self):
        assert Config(gemini_api_key="k").validate() is None

    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"gemini_api_key": ""}, "GEMINI_API_KEY"),
            ({"language": "fr"}, "LANGUAGE"),
            ({"news_item_count": 0}, "NEWS_ITEM_COUNT"),
            ({"request_timeout_seconds": 0}, "REQUEST_TIMEOUT_SECONDS"),
            ({"output_retries": -1}, "OUTPUT_RETRIES"),
            ({"image_aspect_ratio": "2:1"}, "IMAGE_ASPECT_RATIO"),
            ({"log_level": "LOUD"}, "LOG_LEVEL"),
            ({"log_format": "xml"}, "LOG_FORMAT"),
        ],
    )
    def test_invalid(self, overrides, fragment):
        values = {"gemini_api_key": "k", **overrides}
        error = Config(**values).validate()
        assert error is not None
        assert fragment in error
