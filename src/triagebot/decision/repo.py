from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from triagebot.db import get_engine, get_sessionmaker
from triagebot.decision.models import Base, IssueDecisionState
from triagebot.decision.types import Current, DecisionState, History, UserStatus
from triagebot.errors import DecisionStateExists, StorageError
from triagebot.logging_setup import trace

logger = logging.getLogger(__name__)


def init_db(database_url: str) -> None:
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)


def _encode_current(current: Current) -> str:
    return json.dumps({user: s.to_dict() if s else None for user, s in current.items()})


def _encode_history(history: History) -> str:
    return json.dumps({user: [s.to_dict() for s in statuses] for user, statuses in history.items()})


def _to_state(row: IssueDecisionState) -> DecisionState:
    current = json.loads(row.current_json or "{}")
    history = json.loads(row.history_json or "{}")
    return DecisionState(
        issue_id=int(row.issue_id),
        initiator=row.initiator,
        start_time=row.start_time,
        end_time=row.end_time,
        current={user: UserStatus.from_dict(s) if s else None for user, s in current.items()},
        history={user: [UserStatus.from_dict(s) for s in statuses] for user, statuses in history.items()},
    )


def get_decision_state(database_url: str, issue_id: int) -> Optional[DecisionState]:
    """Return the ballot for `issue_id`, or None when there is none."""
    trace(logger, "get_decision_state(issue_id=%s)", issue_id)
    sm = get_sessionmaker(database_url)
    try:
        with sm() as s:
            row = s.get(IssueDecisionState, int(issue_id))
            return _to_state(row) if row else None
    except SQLAlchemyError as exc:
        raise StorageError(f"Getting decision state: {exc}") from exc


def insert_decision_state(
    database_url: str,
    *,
    issue_id: int,
    initiator: str,
    start_time: datetime,
    end_time: datetime,
    current: Current,
    history: History,
    session: Optional[Session] = None,
) -> DecisionState:
    """Create the ballot for an issue.

    Raises DecisionStateExists if the issue already has one, which also
    covers two commands racing past the workflow's existence check. Other
    constraint failures are plain StorageErrors.

    With `session`, the row is flushed into the caller's transaction and is
    committed (or rolled back) with it.
    """
    trace(logger, "insert_decision_state(issue_id=%s)", issue_id)
    row = IssueDecisionState(
        issue_id=int(issue_id),
        initiator=str(initiator),
        start_time=start_time,
        end_time=end_time,
        current_json=_encode_current(current),
        history_json=_encode_history(history),
    )
    try:
        if session is not None:
            session.add(row)
            session.flush()
        else:
            sm = get_sessionmaker(database_url)
            with sm() as s, s.begin():
                s.add(row)
    except IntegrityError as exc:
        # Only a conflict on the issue's primary key means "already has a ballot".
        if get_decision_state(database_url, issue_id) is not None:
            raise DecisionStateExists(f"Inserting decision state: issue {issue_id} already has a ballot") from exc
        raise StorageError(f"Inserting decision state: {exc}") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"Inserting decision state: {exc}") from exc
    return _to_state(row)
