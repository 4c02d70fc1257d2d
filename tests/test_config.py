from datetime import timedelta

from repo_ranker.config import load_settings

ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
    "CACHE_FRESHNESS_SECONDS",
    "SCORE_DECAY_DAYS",
    "SCORE_STAR_WEIGHT",
    "STORE_BACKEND",
    "STORE_PATH",
    "POSTGRES_HOST",
    "POSTGRES_DB",
)


def clear_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    clear_env(monkeypatch)

    settings = load_settings()

    assert settings.github_token is None
    assert settings.github_api_url == "https://api.github.com"
    assert settings.freshness_window == timedelta(minutes=5)
    assert settings.decay_days == 30.0
    assert settings.star_weight == 2.0
    assert settings.store_backend == "file"
    assert settings.store_path.endswith("store.json")
    assert "dbname=repo_ranker" in settings.postgres_dsn


def test_environment_overrides(monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("GITHUB_TOKEN", "abc")
    monkeypatch.setenv("GITHUB_API_URL", "https://github.example.com/api/v3/")
    monkeypatch.setenv("CACHE_FRESHNESS_SECONDS", "60")
    monkeypatch.setenv("SCORE_DECAY_DAYS", "14")
    monkeypatch.setenv("SCORE_STAR_WEIGHT", "0.5")
    monkeypatch.setenv("STORE_BACKEND", "Postgres")
    monkeypatch.setenv("POSTGRES_HOST", "db")

    settings = load_settings()

    assert settings.github_token == "abc"
    assert settings.github_api_url == "https://github.example.com/api/v3"
    assert settings.freshness_window == timedelta(seconds=60)
    assert settings.decay_days == 14.0
    assert settings.star_weight == 0.5
    assert settings.store_backend == "postgres"
    assert "host=db" in settings.postgres_dsn


def test_malformed_values_fall_back_to_defaults(monkeypatch):
    clear_env(monkeypatch)
    monkeypatch.setenv("CACHE_FRESHNESS_SECONDS", "five minutes")
    monkeypatch.setenv("STORE_BACKEND", "redis")

    settings = load_settings()

    assert settings.freshness_window == timedelta(minutes=5)
    assert settings.store_backend == "file"
