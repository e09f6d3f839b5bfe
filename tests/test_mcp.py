from datetime import datetime

from sqlalchemy import inspect

from triagebot.db import get_engine
from triagebot.errors import StorageError
from triagebot.scheduler import repo as job_repo
from triagebot.scheduler import mcp


def test_parse_time_accepts_trailing_z():
    assert mcp._parse_time("2026-10-29T12:00:00Z") == datetime(2026, 10, 29, 12, 0, 0)


def test_parse_time_converts_offset_to_utc():
    assert mcp._parse_time("2026-10-29T14:00:00+02:00") == datetime(2026, 10, 29, 12, 0, 0)


def test_background_scheduler_initialises_both_stores(monkeypatch, tmp_path):
    url = f"sqlite:///{(tmp_path / 'bot.db').as_posix()}"
    monkeypatch.setenv("TRIAGEBOT_DATABASE_URL", url)
    monkeypatch.setattr(mcp, "run_scheduler_forever", lambda *args, **kwargs: None)
    monkeypatch.setattr(mcp, "_THREAD", None)

    mcp.start_background_scheduler(mcp.BotConfig.from_env())
    mcp._THREAD.join(timeout=5)

    assert {"jobs", "issue_decision_state"} <= set(inspect(get_engine(url)).get_table_names())


def _tool_fn(tool):
    # FastMCP wraps decorated functions in a tool object that keeps the original as `fn`.
    return getattr(tool, "fn", tool)


def test_delete_job_reports_storage_failure(monkeypatch, tmp_path):
    monkeypatch.setenv("TRIAGEBOT_DATABASE_URL", f"sqlite:///{(tmp_path / 'bot.db').as_posix()}")

    def broken(database_url, job_id):
        raise StorageError("Deleting job: database is locked")

    monkeypatch.setattr(job_repo, "delete_job", broken)

    assert _tool_fn(mcp.scheduler_delete_job)("abc") == {
        "ok": False,
        "error": "Deleting job: database is locked",
    }


def test_delete_job_ok(monkeypatch, tmp_path):
    url = f"sqlite:///{(tmp_path / 'bot.db').as_posix()}"
    monkeypatch.setenv("TRIAGEBOT_DATABASE_URL", url)
    job_repo.init_db(url)

    assert _tool_fn(mcp.scheduler_delete_job)("missing") == {"ok": True}
