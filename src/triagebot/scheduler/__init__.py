"""Durable job scheduler.

- Persists one-off and recurring jobs to a DB (PostgreSQL, SQLite locally).
- Selects due jobs with a 60 minute backoff for jobs that previously failed.
- Runs sweeps on a timer loop and exposes a small FastMCP control surface.
"""
