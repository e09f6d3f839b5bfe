"""Logging initialisation.

Every module logs through `logging.getLogger(__name__)`; this only decides
where records go and at which level.
"""

from __future__ import annotations

import logging
import sys

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(logger: logging.Logger, msg: str, *args) -> None:
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, msg, *args)


def setup_logging(level: str = "INFO") -> None:
    # Don't configure twice (runner thread + MCP entrypoint both call this).
    if getattr(setup_logging, "_configured", False):
        return

    name = (level or "INFO").upper()
    numeric_level = TRACE if name == "TRACE" else getattr(logging, name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    # noisy libs
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    setup_logging._configured = True  # type: ignore[attr-defined]
