"""
Tests for settings loading.
"""

import pytest

from gitbrief.config import ConfigurationError, Settings, get_settings


@pytest.fixture
def env(monkeypatch):
    for name in (
        "OSS_INSIGHT_TOKEN",
        "GITHUB_TOKEN",
        "LANGUAGE_THRESHOLD",
        "RENORMALIZE_REPO_LANGUAGES",
        "COLLECT_CRON",
        "CORS_ORIGINS",
        "TRENDING_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")
    return monkeypatch


def test_defaults(env):
    settings = Settings.from_env()

    assert settings.deepseek_api_key == "sk-test"
    assert settings.language_threshold == 0.2
    assert settings.language_threshold_percent == pytest.approx(20.0)
    assert settings.renormalize_repo_languages is False
    assert settings.trending_limit == 100
    assert settings.collect_cron == "0 0 * * *"
    assert settings.summary_language == "Korean"
    assert settings.oss_insight_token is None


def test_missing_api_key_raises(env):
    env.delenv("DEEPSEEK_API_KEY")

    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_overrides(env):
    env.setenv("LANGUAGE_THRESHOLD", "0.05")
    env.setenv("RENORMALIZE_REPO_LANGUAGES", "true")
    env.setenv("COLLECT_CRON", "")
    env.setenv("CORS_ORIGINS", "http://localhost:3000, https://brief.example.com")
    env.setenv("TRENDING_LIMIT", "not-a-number")

    settings = Settings.from_env()

    assert settings.language_threshold_percent == pytest.approx(5.0)
    assert settings.renormalize_repo_languages is True
    assert settings.collect_cron is None
    assert settings.cors_origins == ["http://localhost:3000", "https://brief.example.com"]
    assert settings.trending_limit == 100


def test_get_settings_caches(env):
    first = get_settings(force_reload=True)
    env.setenv("DEEPSEEK_MODEL", "other-model")

    assert get_settings() is first
    assert get_settings(force_reload=True).deepseek_model == "other-model"


@pytest.mark.parametrize("name,value", [("LANGUAGE_THRESHOLD", "20"), ("TRENDING_LIMIT", "0")])
def test_out_of_range_value_raises_configuration_error(env, name, value):
    env.setenv(name, value)

    with pytest.raises(ConfigurationError):
        Settings.from_env()
