"""Team directory lookups (membership and rosters).

Reads a static team-data JSON API shaped like
`{"<team>": {"name": ..., "members": [{"github": "<login>", ...}, ...]}}`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from triagebot.errors import GithubError


@dataclass(frozen=True)
class TeamMember:
    github: str
    name: str = ""


@dataclass(frozen=True)
class Team:
    name: str
    members: List[TeamMember] = field(default_factory=list)

    @classmethod
    def from_api(cls, name: str, body: Dict[str, Any]) -> "Team":
        members = [
            TeamMember(github=str(m["github"]), name=str(m.get("name") or ""))
            for m in (body.get("members") or [])
            if isinstance(m, dict) and m.get("github")
        ]
        return cls(name=str(body.get("name") or name), members=members)


class TeamClient:
    def __init__(self, api_url: str, *, timeout: int = 15) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def get_teams(self) -> Dict[str, Team]:
        url = f"{self.api_url}/teams.json"
        try:
            resp = requests.request("GET", url, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise GithubError(f"fetch teams ({url}): {exc}") from exc
        if not isinstance(body, dict):
            raise GithubError(f"fetch teams ({url}): expected a JSON object")
        return {name: Team.from_api(name, t) for name, t in body.items() if isinstance(t, dict)}

    def get_team(self, name: str) -> Optional[Team]:
        """Return the team roster, or None if no such team exists."""
        return self.get_teams().get(name)

    def is_team_member(self, login: str) -> bool:
        for team in self.get_teams().values():
            if any(m.github == login for m in team.members):
                return True
        return False
