from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Event
from typing import Any, Dict, Optional

from triagebot.context import Context
from triagebot.jobs import handle_job
from triagebot.scheduler.cron import duration
from triagebot.scheduler.models import JobKind, ScheduledJob, utcnow
from triagebot.scheduler.repo import delete_job, due_jobs, record_error, record_executed, upsert_job

logger = logging.getLogger(__name__)


@dataclass
class SchedulerRuntimeState:
    started_at_utc: str
    last_tick_at_utc: Optional[str] = None
    last_tick_summary: Optional[Dict[str, Any]] = None


def _utc_now_iso() -> str:
    return utcnow().replace(microsecond=0).isoformat() + "Z"


def next_expected_time(job: ScheduledJob, now: datetime) -> datetime:
    """First occurrence of a cron job strictly after `now`.

    Missed occurrences are skipped rather than replayed.
    """
    if job.cron_period is None or job.unit is None:
        raise ValueError(f"cron job {job.id} ({job.name}) has no period/unit")
    step = duration(job.cron_period, job.unit)
    if step <= timedelta(0):
        raise ValueError(f"cron job {job.id} ({job.name}) has a non-positive period")

    next_time = job.expected_time + step
    if next_time <= now:
        missed = (now - next_time) // step + 1
        next_time += step * missed
    return next_time


def _run_job(ctx: Context, job: ScheduledJob, now: datetime) -> None:
    record_executed(ctx.database_url, job.id)
    handle_job(ctx, job.name, job.job_metadata)

    if job.job_kind is JobKind.CRON:
        upsert_job(
            ctx.database_url,
            name=job.name,
            kind=JobKind.CRON,
            expected_time=next_expected_time(job, now),
            cron_period=job.cron_period,
            cron_unit=job.unit,
            metadata=job.job_metadata,
        )
    delete_job(ctx.database_url, job.id)


def run_scheduled_jobs(ctx: Context, *, now: Optional[datetime] = None, limit: Optional[int] = None) -> Dict[str, Any]:
    """Run one sweep over the due jobs.

    A failing job gets its error recorded (which puts it under the retry
    backoff) and the sweep moves on to the next one.
    """
    now = now or utcnow()
    due = due_jobs(ctx.database_url, now=now, limit=limit)

    ok = 0
    failed = 0
    for job in due:
        try:
            _run_job(ctx, job, now)
            ok += 1
        except Exception as exc:  # noqa: BLE001
            failed += 1
            logger.exception("Job %s (%s) failed", job.id, job.name)
            try:
                record_error(ctx.database_url, job.id, f"{type(exc).__name__}: {exc}")
            except Exception:  # noqa: BLE001
                logger.exception("Could not record error for job %s", job.id)

    return {
        "jobs_due": len(due),
        "executed": ok + failed,
        "ok": ok,
        "failed": failed,
    }


def run_scheduler_forever(
    ctx: Context,
    stop_event: Event,
    state: SchedulerRuntimeState,
    *,
    tick_seconds: int,
    max_jobs_per_tick: int,
) -> None:
    """Blocking loop that executes due jobs on a wall-clock timer."""

    while not stop_event.is_set():
        tick_started = utcnow()
        state.last_tick_at_utc = _utc_now_iso()

        try:
            state.last_tick_summary = run_scheduled_jobs(ctx, now=tick_started, limit=max_jobs_per_tick)
        except Exception as exc:  # noqa: BLE001
            # Selecting due jobs failed (DB unreachable); try again next tick.
            logger.exception("Scheduler tick failed")
            state.last_tick_summary = {"error": str(exc)}

        # Sleep for tick interval (minus time spent), but wake quickly on stop.
        elapsed = (utcnow() - tick_started).total_seconds()
        sleep_s = max(0.2, float(tick_seconds) - float(elapsed))
        stop_event.wait(timeout=sleep_s)
