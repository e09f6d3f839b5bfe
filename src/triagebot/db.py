from __future__ import annotations

import threading
from typing import Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker


_LOCK = threading.Lock()
_ENGINES: Dict[str, Engine] = {}
_SESSIONMAKERS: Dict[str, sessionmaker] = {}


def get_engine(database_url: str) -> Engine:
    """Return the engine for `database_url`, creating it on first use.

    Engines are cached per URL so the job store and the decision store share
    one pool when they point at the same database.
    """
    with _LOCK:
        engine = _ENGINES.get(database_url)
        if engine is not None:
            return engine

        # The poll loop runs in a background thread.
        connect_args = {}
        if database_url.startswith("sqlite:"):
            connect_args = {"check_same_thread": False}

        engine = create_engine(
            database_url,
            future=True,
            echo=False,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        _ENGINES[database_url] = engine
        _SESSIONMAKERS[database_url] = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False, future=True
        )
        return engine


def get_sessionmaker(database_url: str) -> sessionmaker:
    if database_url not in _SESSIONMAKERS:
        get_engine(database_url)
    return _SESSIONMAKERS[database_url]


def dispose_engines() -> None:
    with _LOCK:
        for engine in _ENGINES.values():
            engine.dispose()
        _ENGINES.clear()
        _SESSIONMAKERS.clear()
