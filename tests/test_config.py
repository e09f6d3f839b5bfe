import dataclasses

from triagebot.config import BotConfig
from triagebot.config_utils import env_bool, env_int, env_optional_str


def test_defaults(monkeypatch, tmp_path):
    for name in (
        "TRIAGEBOT_DATABASE_URL",
        "SCHEDULER_TICK_SECONDS",
        "SCHEDULER_MAX_JOBS_PER_TICK",
        "GITHUB_TOKEN",
        "GITHUB_API_URL",
        "DECISION_AUTO_MERGE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PLATFORM_DATABASE_URL", f"sqlite:///{tmp_path}/shared.db")

    cfg = BotConfig.from_env()
    assert cfg.database_url.endswith("/shared.db")
    assert cfg.tick_seconds == 5
    assert cfg.max_jobs_per_tick == 20
    assert cfg.github_api_url == "https://api.github.com"
    assert cfg.github_token is None
    assert cfg.decision_auto_merge is False
    assert cfg.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("TRIAGEBOT_DATABASE_URL", "postgresql+psycopg2://bot:bot@db:5432/bot")
    monkeypatch.setenv("PLATFORM_DATABASE_URL", "sqlite:///ignored.db")
    monkeypatch.setenv("SCHEDULER_TICK_SECONDS", "0")
    monkeypatch.setenv("SCHEDULER_MAX_JOBS_PER_TICK", "junk")
    monkeypatch.setenv("GITHUB_TOKEN", "s3cret")
    monkeypatch.setenv("DECISION_AUTO_MERGE", "yes")
    monkeypatch.setenv("LOG_LEVEL", "trace")

    cfg = BotConfig.from_env()
    assert cfg.database_url.startswith("postgresql")
    assert cfg.tick_seconds == 1
    assert cfg.max_jobs_per_tick == 20
    assert cfg.decision_auto_merge is True
    assert cfg.log_level == "TRACE"

    data = cfg.to_dict()
    assert data["db"] == "postgresql+psycopg2"
    assert data["has_token"] is True
    assert "s3cret" not in str(data)


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("X_EMPTY", "  ")
    monkeypatch.setenv("X_BOOL", "off")
    monkeypatch.setenv("X_INT", " 42 ")
    assert env_optional_str("X_EMPTY", "d") == "d"
    assert env_bool("X_BOOL", True) is False
    assert env_bool("X_MISSING", True) is True
    assert env_int("X_INT", 0) == 42
    assert env_int("X_INT", 0, minimum=50) == 50


def test_defaults_are_not_constructor_fields():
    names = {f.name for f in dataclasses.fields(BotConfig)}
    assert "DEFAULT_GITHUB_API_URL" not in names
    assert "DEFAULT_TEAM_API_URL" not in names
    assert BotConfig.DEFAULT_GITHUB_API_URL == "https://api.github.com"
