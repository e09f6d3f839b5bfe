from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional

from triagebot.config_utils import env_bool, env_int, env_optional_str, env_str


@dataclass(frozen=True)
class BotConfig:
    """Runtime configuration for the bot core.

    DB selection:
    - TRIAGEBOT_DATABASE_URL: bot-specific DB URL (preferred)
    - PLATFORM_DATABASE_URL: shared DB URL
    - If neither is set, defaults to local SQLite at data/triagebot.db

    Loop:
    - SCHEDULER_TICK_SECONDS: how often to check for due jobs (default: 5)
    - SCHEDULER_MAX_JOBS_PER_TICK: cap due jobs executed per tick (default: 20)

    MCP control surface:
    - SCHEDULER_MCP_HOST (default: 0.0.0.0)
    - SCHEDULER_MCP_PORT (default: 8010)

    Collaborators:
    - GITHUB_API_URL (default: https://api.github.com)
    - GITHUB_TOKEN
    - TEAM_API_URL: team-data JSON API (default: rust-lang team API)
    - DECISION_AUTO_MERGE: merge the PR when a ballot resolves to merge

    - LOG_LEVEL (default: INFO, TRACE is accepted)
    """

    database_url: str
    tick_seconds: int
    max_jobs_per_tick: int

    mcp_host: str
    mcp_port: int

    github_api_url: str
    github_token: Optional[str]
    team_api_url: str
    decision_auto_merge: bool

    log_level: str

    DEFAULT_GITHUB_API_URL: ClassVar[str] = "https://api.github.com"
    DEFAULT_TEAM_API_URL: ClassVar[str] = "https://team-api.infra.rust-lang.org/v1"

    @classmethod
    def from_env(cls) -> "BotConfig":
        db_url = env_optional_str("TRIAGEBOT_DATABASE_URL") or env_optional_str("PLATFORM_DATABASE_URL")
        if not db_url:
            # Default sqlite path under repo-root data/.
            data_dir = Path(__file__).resolve().parents[2] / "data"
            data_dir.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{(data_dir / 'triagebot.db').as_posix()}"

        return cls(
            database_url=db_url,
            tick_seconds=env_int("SCHEDULER_TICK_SECONDS", 5, minimum=1),
            max_jobs_per_tick=env_int("SCHEDULER_MAX_JOBS_PER_TICK", 20, minimum=1),
            mcp_host=env_str("SCHEDULER_MCP_HOST", "0.0.0.0"),
            mcp_port=env_int("SCHEDULER_MCP_PORT", 8010),
            github_api_url=env_str("GITHUB_API_URL", cls.DEFAULT_GITHUB_API_URL).rstrip("/"),
            github_token=env_optional_str("GITHUB_TOKEN"),
            team_api_url=env_str("TEAM_API_URL", cls.DEFAULT_TEAM_API_URL).rstrip("/"),
            decision_auto_merge=env_bool("DECISION_AUTO_MERGE", False),
            log_level=env_str("LOG_LEVEL", "INFO").upper(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "db": self.database_url.split(":", 1)[0],
            "tick_seconds": self.tick_seconds,
            "max_jobs_per_tick": self.max_jobs_per_tick,
            "mcp_host": self.mcp_host,
            "mcp_port": self.mcp_port,
            "github_api_url": self.github_api_url,
            "has_token": bool(self.github_token),
            "team_api_url": self.team_api_url,
            "decision_auto_merge": self.decision_auto_merge,
            "log_level": self.log_level,
        }
