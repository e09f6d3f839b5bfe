from __future__ import annotations

from datetime import datetime, timezone
from threading import Event, Thread
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from triagebot.config import BotConfig
from triagebot.context import Context
from triagebot.decision import repo as decision_repo
from triagebot.errors import TriagebotError
from triagebot.logging_setup import setup_logging
from triagebot.scheduler import repo as job_repo
from triagebot.scheduler.cron import CronUnit
from triagebot.scheduler.models import JobKind, utcnow
from triagebot.scheduler.runner import SchedulerRuntimeState, run_scheduler_forever


mcp = FastMCP("triagebot-scheduler")

_STOP = Event()
_THREAD: Optional[Thread] = None
_STATE = SchedulerRuntimeState(started_at_utc=utcnow().replace(microsecond=0).isoformat() + "Z")


def start_background_scheduler(cfg: BotConfig) -> None:
    global _THREAD
    if _THREAD is not None and _THREAD.is_alive():
        return

    job_repo.init_db(cfg.database_url)
    decision_repo.init_db(cfg.database_url)

    _THREAD = Thread(
        target=run_scheduler_forever,
        args=(Context.from_config(cfg), _STOP, _STATE),
        kwargs={"tick_seconds": cfg.tick_seconds, "max_jobs_per_tick": cfg.max_jobs_per_tick},
        name="scheduler-loop",
        daemon=True,
    )
    _THREAD.start()


def _parse_time(raw: str) -> datetime:
    # Stored naive UTC; accept a trailing Z or an explicit offset.
    value = datetime.fromisoformat(str(raw).strip().rstrip("Z"))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@mcp.tool
def scheduler_health() -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    alive = bool(_THREAD and _THREAD.is_alive())
    return {
        "ok": True,
        "service": "scheduler",
        "thread_alive": alive,
        "config": cfg.to_dict(),
        "started_at_utc": _STATE.started_at_utc,
        "last_tick_at_utc": _STATE.last_tick_at_utc,
        "last_tick_summary": _STATE.last_tick_summary,
    }


@mcp.tool
def scheduler_list_jobs() -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    return {"ok": True, "jobs": job_repo.list_jobs(cfg.database_url)}


@mcp.tool
def scheduler_get_job(job_id: str) -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    job = job_repo.get_job(cfg.database_url, str(job_id))
    if not job:
        return {"ok": False, "error": "not_found"}
    return {"ok": True, "job": job}


@mcp.tool
def scheduler_upsert_job(
    *,
    name: str,
    expected_time: str,
    kind: str = JobKind.SINGLE_EXECUTION.value,
    cron_period: Optional[int] = None,
    cron_unit: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    try:
        job_repo.upsert_job(
            cfg.database_url,
            name=str(name),
            kind=JobKind(kind),
            expected_time=_parse_time(expected_time),
            cron_period=cron_period,
            cron_unit=CronUnit(cron_unit) if cron_unit else None,
            metadata=dict(metadata or {}),
        )
    except (ValueError, TriagebotError) as exc:
        return {"ok": False, "error": str(exc)}
    return {"ok": True}


@mcp.tool
def scheduler_delete_job(job_id: str) -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    try:
        job_repo.delete_job(cfg.database_url, str(job_id))
    except TriagebotError as exc:
        return {"ok": False, "error": str(exc)}
    return {"ok": True}


@mcp.tool
def decision_get_state(issue_id: int) -> Dict[str, Any]:
    cfg = BotConfig.from_env()
    state = decision_repo.get_decision_state(cfg.database_url, int(issue_id))
    if state is None:
        return {"ok": False, "error": "not_found"}
    return {"ok": True, "state": state.to_dict()}


def run() -> None:
    cfg = BotConfig.from_env()
    setup_logging(cfg.log_level)
    start_background_scheduler(cfg)
    mcp.run(transport="http", host=cfg.mcp_host, port=int(cfg.mcp_port))


if __name__ == "__main__":
    run()
