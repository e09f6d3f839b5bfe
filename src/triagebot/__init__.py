"""Scheduling and governance-workflow core of the triage bot.

- `triagebot.scheduler`: durable job store, cron arithmetic and the poll loop.
- `triagebot.decision`: team vote ("decision process") attached to an issue.
- `triagebot.jobs`: routes a stored job name to the handler that runs it.
"""

__version__ = "0.1.0"
