"""Exception types shared across the bot core.

Business rejections (an existing ballot, a non-member voting, ...) are not
errors and never surface here; they end up as an issue comment instead.
"""

from __future__ import annotations


class TriagebotError(Exception):
    """Base class for hard failures propagated to the caller."""


class StorageError(TriagebotError):
    """A database operation failed; the message names the operation."""


class DecisionStateExists(StorageError):
    """A ballot already exists for the issue (primary key conflict)."""


class GithubError(TriagebotError):
    """The issue tracker API could not be reached or rejected a request."""


class DecisionError(TriagebotError):
    """Ballot state is inconsistent or missing."""


class JobMetadataError(TriagebotError):
    """Stored job metadata does not decode into the job's expected shape."""
