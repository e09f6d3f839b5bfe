from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class IssueDecisionState(Base):
    __tablename__ = "issue_decision_state"

    # One ballot per issue: the primary key is the uniqueness guarantee,
    # not the workflow's existence check.
    issue_id = Column(Integer, primary_key=True, autoincrement=False)
    initiator = Column(String(128), nullable=False)

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)

    current_json = Column("current", Text, default="{}", nullable=False)  # {login: UserStatus | null}
    history_json = Column("history", Text, default="{}", nullable=False)  # {login: [UserStatus, ...]}
