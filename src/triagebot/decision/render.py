from __future__ import annotations

from typing import List

from triagebot.decision.types import Current, History
from triagebot.errors import DecisionError

TABLE_HEADER = "| Team member | State |\n|-------------|-------|"


def build_status_comment(history: History, current: Current) -> str:
    """Render the ballot as a markdown table, one row per participant.

    Past votes are struck through (oldest first), the current vote is bold.
    Rows are sorted by login so the output doesn't depend on insertion order.
    """
    rows: List[str] = [TABLE_HEADER]
    for user in sorted(current):
        if user not in history:
            raise DecisionError(f"user {user} not present in history statuses list")

        row = f"| @{user} |"
        for status in history[user]:
            row += f" [~~{status.resolution}~~]({status.source_reference}) "

        status = current[user]
        cell = f"[**{status.resolution}**]({status.source_reference})" if status else ""
        row += f" {cell} |"
        rows.append(row)

    return "\n".join(rows)
