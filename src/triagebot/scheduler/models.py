from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

from triagebot.errors import JobMetadataError
from triagebot.scheduler.cron import CronUnit


Base = declarative_base()

# Backoff before a job with a recorded error is selected again.
RETRY_BACKOFF_MINUTES = 60


def utcnow() -> datetime:
    # Stored naive, always UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JobKind(str, Enum):
    CRON = "cron"
    SINGLE_EXECUTION = "single_execution"


class ScheduledJob(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(128), nullable=False, index=True)
    kind = Column(String(32), nullable=False, default=JobKind.SINGLE_EXECUTION.value)
    expected_time = Column(DateTime, nullable=False, index=True)

    cron_period = Column(Integer, nullable=True)
    cron_unit = Column(String(16), nullable=True)

    # "metadata" is reserved on declarative classes, so map it by column name.
    metadata_json = Column("metadata", Text, default="{}", nullable=False)

    executed_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("name", "expected_time", name="uq_jobs_name_expected_time"),)

    @property
    def job_kind(self) -> JobKind:
        return JobKind(self.kind)

    @property
    def unit(self) -> Optional[CronUnit]:
        return CronUnit(self.cron_unit) if self.cron_unit else None

    @property
    def job_metadata(self) -> Any:
        try:
            return json.loads(self.metadata_json or "null")
        except ValueError as exc:
            raise JobMetadataError(f"job {self.id} ({self.name}) has invalid metadata: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "expected_time": self.expected_time.isoformat() + "Z" if self.expected_time else None,
            "cron_period": self.cron_period,
            "cron_unit": self.cron_unit,
            "metadata": _safe_json_loads(self.metadata_json),
            "executed_at": self.executed_at.isoformat() + "Z" if self.executed_at else None,
            "error_message": self.error_message,
        }


def _safe_json_loads(raw: Optional[str]) -> Optional[Any]:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None
