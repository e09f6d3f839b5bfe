from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from triagebot.context import Context
from triagebot.db import get_sessionmaker
from triagebot.decision.job import DECISION_PROCESS_JOB_NAME, DecisionProcessActionMetadata
from triagebot.decision.render import build_status_comment
from triagebot.decision.repo import get_decision_state, insert_decision_state
from triagebot.decision.types import Current, DecisionCommand, History, UserStatus
from triagebot.errors import DecisionStateExists, GithubError, StorageError
from triagebot.github import Issue
from triagebot.interactions import ErrorComment
from triagebot.scheduler.models import JobKind, utcnow
from triagebot.scheduler.repo import upsert_job

logger = logging.getLogger(__name__)

DECISION_PERIOD = timedelta(days=10)

CONCURRENT_BALLOT_MESSAGE = "We don't support having more than one vote yet. Coming soon :)"
NOT_A_MEMBER_MESSAGE = "Only team members can be part of the decision process."
MISSING_TEAM_MESSAGE = (
    "In the first vote, is necessary to specify the team name that will be involved in the decision process."
)
UNKNOWN_TEAM_MESSAGE = "Failed to resolve to a known team."


@dataclass(frozen=True)
class VoteEvent:
    """The comment that carried a vote command."""

    issue: Issue
    user: str
    comment_url: str
    comment_body: str


def handle_command(ctx: Context, event: VoteEvent, cmd: DecisionCommand) -> None:
    """Open a ballot on the event's issue with the invoking user's vote.

    Rejections (existing ballot, non-member, missing or unknown team) are
    answered with a comment and return normally. Storage and tracker
    failures while opening the ballot propagate.
    """
    issue = event.issue

    if get_decision_state(ctx.database_url, issue.number) is not None:
        ErrorComment(issue, CONCURRENT_BALLOT_MESSAGE).post(ctx.github)
        return

    try:
        is_member = ctx.teams.is_team_member(event.user)
    except GithubError as exc:
        logger.warning("Membership lookup for %s failed, treating as non-member: %s", event.user, exc)
        is_member = False
    if not is_member:
        ErrorComment(issue, NOT_A_MEMBER_MESSAGE).post(ctx.github)
        return

    if not cmd.team:
        ErrorComment(issue, MISSING_TEAM_MESSAGE).post(ctx.github)
        return

    try:
        team = ctx.teams.get_team(cmd.team)
    except GithubError as exc:
        logger.warning("Team lookup for %r failed: %s", cmd.team, exc)
        team = None
    if team is None:
        ErrorComment(issue, UNKNOWN_TEAM_MESSAGE).post(ctx.github)
        return

    start_time = utcnow()
    end_time = start_time + DECISION_PERIOD

    current: Current = {}
    history: History = {}
    for member in team.members:
        current[member.github] = None
        history[member.github] = []

    current[event.user] = UserStatus(
        source_reference=event.comment_url,
        rationale=event.comment_body,
        resolution=cmd.resolution,
    )
    history[event.user] = []

    metadata = DecisionProcessActionMetadata(
        message=f"Decision process on #{issue.number} ({cmd.team})",
        issue_reference=issue.reference,
        resolution=cmd.resolution,
    )

    # The ballot and its resolution job commit or roll back together.
    sm = get_sessionmaker(ctx.database_url)
    try:
        with sm() as s, s.begin():
            insert_decision_state(
                ctx.database_url,
                issue_id=issue.number,
                initiator=event.user,
                start_time=start_time,
                end_time=end_time,
                current=current,
                history=history,
                session=s,
            )
            upsert_job(
                ctx.database_url,
                name=DECISION_PROCESS_JOB_NAME,
                kind=JobKind.SINGLE_EXECUTION,
                expected_time=end_time,
                metadata=metadata.to_dict(),
                session=s,
            )
    except DecisionStateExists:
        # Lost a race with another command on the same issue.
        ErrorComment(issue, CONCURRENT_BALLOT_MESSAGE).post(ctx.github)
        return
    except SQLAlchemyError as exc:
        raise StorageError(f"Opening decision process: {exc}") from exc

    ctx.github.post_comment(issue, build_status_comment(history, current))
    ctx.github.add_labels(issue, [str(cmd.resolution)])

    logger.info(
        "Opened decision process on #%s by %s for team %s, resolves at %s",
        issue.number,
        event.user,
        cmd.team,
        end_time.isoformat(),
    )
