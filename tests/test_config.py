"""Tests for environment-driven settings."""

import pytest

from stylevision.config import DEFAULT_IMAGE_MODELS, Settings
from stylevision.errors import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("AI_MAX_RETRIES", "AI_TIMEOUT_SECONDS", "PREDICTION_MAX_POLLS", "PREDICTION_POLL_INTERVAL",
                 "GEMINI_IMAGE_MODELS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettingsFromEnv:

    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.max_retries == 2
        assert settings.timeout_seconds == 60.0
        assert settings.image_models == DEFAULT_IMAGE_MODELS

    def test_numbers_parsed(self, clean_env):
        clean_env.setenv("AI_MAX_RETRIES", "5")
        clean_env.setenv("PREDICTION_POLL_INTERVAL", "0.25")
        settings = Settings.from_env()
        assert settings.max_retries == 5
        assert settings.prediction_poll_interval == 0.25

    @pytest.mark.parametrize("name,value", [
        ("AI_MAX_RETRIES", "two"),
        ("AI_TIMEOUT_SECONDS", "1m"),
        ("PREDICTION_MAX_POLLS", "6.5"),
        ("PREDICTION_POLL_INTERVAL", ""),
    ])
    def test_malformed_number(self, clean_env, name, value):
        clean_env.setenv(name, value)
        with pytest.raises(ConfigError) as info:
            Settings.from_env()
        assert info.value.setting == name
        assert name in str(info.value)

    def test_model_list(self, clean_env):
        clean_env.setenv("GEMINI_IMAGE_MODELS", " img-1, ,img-2 ")
        assert Settings.from_env().image_models == ["img-1", "img-2"]
