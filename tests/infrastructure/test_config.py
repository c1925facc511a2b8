"""Tests for environment-driven settings."""

from datetime import timedelta

import pytest

from feedback_market.infrastructure.config import Settings

ENV_VARS = [
    "OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_EMBEDDING_MODEL", "SEARCH_PROVIDER",
    "SEARCH_BASE_URL", "SEARCH_API_KEY", "SEARCH_LIMIT", "CLAIM_STORE", "STEP_RUNNER",
    "DATABASE_PATH", "SIMILARITY_THRESHOLD", "WEIGHT_DELTA", "STALENESS_DAYS",
    "DIMINISHING_RETURNS", "STEP_TIMEOUT", "STEP_MAX_ATTEMPTS", "STEP_BACKOFF", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    empty = tmp_path / ".env"
    empty.write_text("")
    return str(empty)


def test_defaults(clean_env):
    settings = Settings.from_env(clean_env)

    assert settings.similarity_threshold == 0.75
    assert settings.weight_delta == 5
    assert settings.search_limit == 3
    assert settings.claim_store == "memory"
    assert settings.diminishing_returns is False


def test_reads_environment(clean_env, monkeypatch):
    monkeypatch.setenv("SIMILARITY_THRESHOLD", "0.8")
    monkeypatch.setenv("CLAIM_STORE", "SQLite")
    monkeypatch.setenv("DIMINISHING_RETURNS", "true")
    monkeypatch.setenv("STEP_MAX_ATTEMPTS", "5")

    settings = Settings.from_env(clean_env)

    assert settings.similarity_threshold == 0.8
    assert settings.claim_store == "sqlite"
    assert settings.diminishing_returns is True
    assert settings.step_max_attempts == 5


def test_reads_dotenv_file(clean_env, tmp_path, monkeypatch):
    env_file = tmp_path / "custom.env"
    env_file.write_text("WEIGHT_DELTA=7\nOPENAI_API_KEY=from-file\n")

    settings = Settings.from_env(str(env_file))

    assert settings.weight_delta == 7
    assert settings.openai_api_key == "from-file"
    for name in ("WEIGHT_DELTA", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_policy_and_retry_config():
    settings = Settings(staleness_days=7, weight_delta=3, step_max_attempts=4)

    policy = settings.reinforcement_policy()
    retry = settings.retry_config()

    assert policy.staleness_window == timedelta(days=7)
    assert policy.weight_delta == 3
    assert retry.max_attempts == 4
