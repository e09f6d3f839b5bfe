from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from triagebot.context import Context
from triagebot.decision.repo import get_decision_state
from triagebot.decision.types import Resolution
from triagebot.errors import DecisionError, GithubError, JobMetadataError
from triagebot.interactions import PingComment

logger = logging.getLogger(__name__)

DECISION_PROCESS_JOB_NAME = "decision_process_action"


@dataclass(frozen=True)
class DecisionProcessActionMetadata:
    message: str
    issue_reference: str
    resolution: Resolution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "issue_reference": self.issue_reference,
            "resolution": self.resolution.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "DecisionProcessActionMetadata":
        if not isinstance(data, dict):
            raise JobMetadataError(f"{DECISION_PROCESS_JOB_NAME}: metadata must be an object, got {type(data).__name__}")
        try:
            return cls(
                message=str(data.get("message") or ""),
                issue_reference=str(data["issue_reference"]),
                resolution=Resolution(data["resolution"]),
            )
        except (KeyError, ValueError) as exc:
            raise JobMetadataError(f"{DECISION_PROCESS_JOB_NAME}: invalid metadata: {exc!r}") from exc


def run_decision_process_action(ctx: Context, metadata: DecisionProcessActionMetadata) -> None:
    """Ping every ballot participant once the decision period is over.

    A failure to fetch the issue is logged and swallowed; the ballot itself
    is left as is.
    """
    try:
        issue = ctx.github.get_issue(metadata.issue_reference)
    except GithubError as exc:
        logger.error("Failed to get issue %s, error: %s", metadata.issue_reference, exc)
        return

    state = get_decision_state(ctx.database_url, issue.number)
    if state is None:
        raise DecisionError(f"no decision state for issue #{issue.number}")

    users = list(state.current)
    PingComment(
        issue,
        users,
        f"The final comment period has resolved, with a decision to **{metadata.resolution}**. "
        "Ping involved people once again.",
    ).post(ctx.github)
    logger.info("Decision on issue #%s resolved to %s; pinged %d people", issue.number, metadata.resolution, len(users))

    if ctx.decision_auto_merge and metadata.resolution is Resolution.MERGE and issue.is_pull_request:
        ctx.github.merge(issue)
        logger.info("Merged #%s after decision", issue.number)
