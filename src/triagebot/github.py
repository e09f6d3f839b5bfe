from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from triagebot.errors import GithubError


@dataclass(frozen=True)
class Issue:
    number: int
    title: str
    html_url: str
    # API URL of the owning repository, e.g. https://api.github.com/repos/o/r
    repository_url: str
    is_pull_request: bool = False

    @property
    def reference(self) -> str:
        """API URL that fetches this issue back; stored in job metadata."""
        return f"{self.repository_url.rstrip('/')}/issues/{self.number}"

    @classmethod
    def from_api(cls, body: Dict[str, Any]) -> "Issue":
        try:
            return cls(
                number=int(body["number"]),
                title=str(body.get("title") or ""),
                html_url=str(body.get("html_url") or ""),
                repository_url=str(body["repository_url"]),
                is_pull_request="pull_request" in body,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GithubError(f"unexpected issue payload: {exc}") from exc


@dataclass
class GithubAuthConfig:
    api_url: str = "https://api.github.com"
    token: Optional[str] = None
    timeout: int = 15


class GithubClient:
    """Minimal GitHub REST client for the calls the bot core makes."""

    def __init__(self, config: GithubAuthConfig) -> None:
        self.config = config
        self.api_url = config.api_url.rstrip("/")

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = path if path.startswith("http") else f"{self.api_url}/{path.lstrip('/')}"
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "triagebot",
            **kwargs.pop("headers", {}),
        }
        if self.config.token:
            headers["Authorization"] = f"token {self.config.token}"

        try:
            resp = requests.request(method, url, headers=headers, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as exc:
            return {"ok": False, "error": str(exc), "url": url}

        content_type = resp.headers.get("content-type", "")
        body: Any
        if "application/json" in content_type:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
        else:
            body = resp.text

        return {
            "ok": resp.ok,
            "status": resp.status_code,
            "url": url,
            "body": body,
        }

    def _checked(self, what: str, method: str, path: str, **kwargs: Any) -> Any:
        res = self._request(method, path, **kwargs)
        if not res.get("ok"):
            detail = res.get("error") or f"HTTP {res.get('status')}"
            raise GithubError(f"{what} ({res['url']}): {detail}")
        return res.get("body")

    def get_issue(self, reference: str) -> Issue:
        body = self._checked("fetch issue", "GET", reference)
        if not isinstance(body, dict):
            raise GithubError(f"fetch issue ({reference}): expected a JSON object")
        return Issue.from_api(body)

    def post_comment(self, issue: Issue, body: str) -> None:
        self._checked("post comment", "POST", f"{issue.reference}/comments", json={"body": body})

    def add_labels(self, issue: Issue, labels: List[str]) -> None:
        self._checked("apply labels", "POST", f"{issue.reference}/labels", json={"labels": list(labels)})

    def merge(self, issue: Issue) -> None:
        if not issue.is_pull_request:
            raise GithubError(f"issue #{issue.number} is not a pull request")
        url = f"{issue.repository_url.rstrip('/')}/pulls/{issue.number}/merge"
        self._checked("merge", "PUT", url, json={})
