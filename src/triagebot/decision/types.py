from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Resolution(str, Enum):
    MERGE = "merge"
    HOLD = "hold"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class UserStatus:
    """One cast vote.

    `source_reference` is the URL of the comment carrying the vote; it is both
    the display link and the identity used when striking a vote through.
    """

    source_reference: str
    rationale: str
    resolution: Resolution

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_reference": self.source_reference,
            "rationale": self.rationale,
            "resolution": self.resolution.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserStatus":
        return cls(
            source_reference=str(data["source_reference"]),
            rationale=str(data.get("rationale") or ""),
            resolution=Resolution(data["resolution"]),
        )


Current = Dict[str, Optional[UserStatus]]
History = Dict[str, List[UserStatus]]


@dataclass
class DecisionState:
    issue_id: int
    initiator: str
    start_time: datetime
    end_time: datetime
    current: Current = field(default_factory=dict)
    history: History = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_id": self.issue_id,
            "initiator": self.initiator,
            "start_time": self.start_time.isoformat() + "Z",
            "end_time": self.end_time.isoformat() + "Z",
            "current": {user: s.to_dict() if s else None for user, s in self.current.items()},
            "history": {user: [s.to_dict() for s in statuses] for user, statuses in self.history.items()},
        }


@dataclass(frozen=True)
class DecisionCommand:
    """A parsed vote command; `team` is only required on the opening vote."""

    resolution: Resolution
    team: Optional[str] = None
