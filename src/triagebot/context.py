from __future__ import annotations

from dataclasses import dataclass

from triagebot.config import BotConfig
from triagebot.github import GithubAuthConfig, GithubClient
from triagebot.team_data import TeamClient


@dataclass
class Context:
    """Everything an operation needs, passed in explicitly.

    Tests build one with fake clients and a throwaway SQLite URL.
    """

    database_url: str
    github: GithubClient
    teams: TeamClient
    decision_auto_merge: bool = False

    @classmethod
    def from_config(cls, cfg: BotConfig) -> "Context":
        return cls(
            database_url=cfg.database_url,
            github=GithubClient(GithubAuthConfig(api_url=cfg.github_api_url, token=cfg.github_token)),
            teams=TeamClient(cfg.team_api_url),
            decision_auto_merge=cfg.decision_auto_merge,
        )
