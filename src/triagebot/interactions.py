from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from triagebot.github import GithubClient, Issue


@dataclass(frozen=True)
class ErrorComment:
    issue: Issue
    message: str

    def body(self) -> str:
        return f":rotating_light: Error: {self.message}"

    def post(self, github: GithubClient) -> None:
        github.post_comment(self.issue, self.body())


@dataclass(frozen=True)
class PingComment:
    issue: Issue
    users: Sequence[str]
    message: str

    def body(self) -> str:
        lines = [self.message, ""]
        lines.extend(f"@{user}" for user in self.users)
        return "\n".join(lines)

    def post(self, github: GithubClient) -> None:
        github.post_comment(self.issue, self.body())
