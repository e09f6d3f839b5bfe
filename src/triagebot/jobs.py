"""Routing from a stored job name to the handler that runs it.

Known jobs decode their metadata into a typed variant here, at the edge;
anything else becomes `UnknownJob` and is a no-op. To add a job, add a
variant, decode it in `parse_job` and handle it in `handle_job`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from triagebot.context import Context
from triagebot.decision.job import (
    DECISION_PROCESS_JOB_NAME,
    DecisionProcessActionMetadata,
    run_decision_process_action,
)
from triagebot.logging_setup import trace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionProcessAction:
    metadata: DecisionProcessActionMetadata


@dataclass(frozen=True)
class UnknownJob:
    name: str
    metadata: Any


Job = Union[DecisionProcessAction, UnknownJob]

KNOWN_JOB_NAMES = frozenset({DECISION_PROCESS_JOB_NAME})


def parse_job(name: str, metadata: Any) -> Job:
    """Decode a stored (name, metadata) pair; raises JobMetadataError for a
    known name with undecodable metadata."""
    if name == DECISION_PROCESS_JOB_NAME:
        return DecisionProcessAction(DecisionProcessActionMetadata.from_dict(metadata))
    return UnknownJob(name=name, metadata=metadata)


def handle_job(ctx: Context, name: str, metadata: Any) -> None:
    job = parse_job(name, metadata)

    if isinstance(job, DecisionProcessAction):
        trace(logger, "handle_job fell into decision process case: (metadata=%r)", job.metadata)
        run_decision_process_action(ctx, job.metadata)
    elif isinstance(job, UnknownJob):
        trace(logger, "handle_job fell into default case: (name=%r, metadata=%r)", job.name, job.metadata)
    else:  # pragma: no cover
        raise TypeError(f"unhandled job variant {job!r}")
