from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from triagebot.db import get_engine, get_sessionmaker
from triagebot.errors import StorageError
from triagebot.logging_setup import trace
from triagebot.scheduler.cron import CronUnit
from triagebot.scheduler.models import RETRY_BACKOFF_MINUTES, Base, JobKind, ScheduledJob, utcnow

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def init_db(database_url: str) -> None:
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"{operation}: {exc}") from exc


def upsert_job(
    database_url: str,
    *,
    name: str,
    kind: JobKind,
    expected_time: datetime,
    cron_period: Optional[int] = None,
    cron_unit: Optional[CronUnit] = None,
    metadata: Any = None,
    session: Optional[Session] = None,
) -> None:
    """Insert a job, or replace only the metadata of the job already scheduled
    under the same (name, expected_time).

    With `session`, the write joins the caller's transaction and is committed
    (or rolled back) with it.
    """
    trace(logger, "upsert_job(name=%s)", name)

    if (cron_period is None) != (cron_unit is None):
        raise ValueError("cron_period and cron_unit must be given together")

    values = {
        "name": str(name),
        "kind": JobKind(kind).value,
        "expected_time": expected_time,
        "cron_period": int(cron_period) if cron_period is not None else None,
        "cron_unit": CronUnit(cron_unit).value if cron_unit is not None else None,
        "metadata": json.dumps(metadata if metadata is not None else {}),
    }

    if session is not None:
        with _storage_errors("Inserting job"):
            _write_job(session, values)
        return

    sm = get_sessionmaker(database_url)
    with _storage_errors("Inserting job"), sm() as s, s.begin():
        _write_job(s, values)


def _write_job(s: Session, values: Dict[str, Any]) -> None:
    insert = _UPSERT_DIALECTS.get(s.get_bind().dialect.name)
    if insert is not None:
        table = ScheduledJob.__table__
        stmt = insert(table).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["name", "expected_time"],
            set_={"metadata": stmt.excluded["metadata"]},
        )
        s.execute(stmt)
        return

    # No native ON CONFLICT; settle for a read-then-write in the same transaction.
    existing = s.execute(
        select(ScheduledJob)
        .where(ScheduledJob.name == values["name"])
        .where(ScheduledJob.expected_time == values["expected_time"])
    ).scalar_one_or_none()
    if existing is not None:
        existing.metadata_json = values["metadata"]
    else:
        fields = dict(values)
        metadata_json = fields.pop("metadata")
        s.add(ScheduledJob(metadata_json=metadata_json, **fields))
        s.flush()


def delete_job(database_url: str, job_id: str) -> None:
    trace(logger, "delete_job(id=%s)", job_id)
    sm = get_sessionmaker(database_url)
    with _storage_errors("Deleting job"), sm() as s, s.begin():
        s.execute(delete(ScheduledJob).where(ScheduledJob.id == str(job_id)))


def record_error(database_url: str, job_id: str, message: str) -> None:
    trace(logger, "record_error(id=%s)", job_id)
    sm = get_sessionmaker(database_url)
    with _storage_errors("Updating job error message"), sm() as s, s.begin():
        s.execute(update(ScheduledJob).where(ScheduledJob.id == str(job_id)).values(error_message=str(message)))


def record_executed(database_url: str, job_id: str, *, now: Optional[datetime] = None) -> None:
    trace(logger, "record_executed(id=%s)", job_id)
    sm = get_sessionmaker(database_url)
    with _storage_errors("Updating job executed at"), sm() as s, s.begin():
        s.execute(update(ScheduledJob).where(ScheduledJob.id == str(job_id)).values(executed_at=now or utcnow()))


def due_jobs(database_url: str, *, now: Optional[datetime] = None, limit: Optional[int] = None) -> List[ScheduledJob]:
    """Return jobs whose expected time has passed.

    A job with a recorded error is only returned again once its last
    execution is at least RETRY_BACKOFF_MINUTES old. Jobs that never failed
    come back on every call until the caller records or deletes them.

    Note: selection does not claim jobs; a single poller is assumed.
    """
    now = now or utcnow()
    retry_before = now - timedelta(minutes=RETRY_BACKOFF_MINUTES)

    q = (
        select(ScheduledJob)
        .where(ScheduledJob.expected_time <= now)
        .where(or_(ScheduledJob.error_message.is_(None), ScheduledJob.executed_at <= retry_before))
        .order_by(ScheduledJob.expected_time.asc())
    )
    if limit is not None:
        q = q.limit(int(limit))

    sm = get_sessionmaker(database_url)
    with _storage_errors("Getting jobs data"), sm() as s:
        jobs = s.execute(q).scalars().all()
        # Detach for use outside session
        for j in jobs:
            s.expunge(j)
        return list(jobs)


def list_jobs(database_url: str) -> List[Dict[str, Any]]:
    sm = get_sessionmaker(database_url)
    with _storage_errors("Listing jobs"), sm() as s:
        jobs = s.execute(select(ScheduledJob).order_by(ScheduledJob.expected_time.asc())).scalars().all()
        return [j.to_dict() for j in jobs]


def get_job(database_url: str, job_id: str) -> Optional[Dict[str, Any]]:
    sm = get_sessionmaker(database_url)
    with _storage_errors("Getting job"), sm() as s:
        j = s.get(ScheduledJob, str(job_id))
        return j.to_dict() if j else None
