"""Errors raised while collecting debug information."""

from __future__ import annotations


class CollectorError(Exception):
    """Base class for errors that stop a collection run."""


class UsageError(CollectorError):
    """Invalid combination of command-line arguments."""


class PreconditionError(CollectorError):
    """The environment is not ready for a collection run."""


class TopologyError(CollectorError):
    """No supported operator installation was found in the cluster."""


class DebugStartError(CollectorError):
    """The workspace could not be switched into debug-start mode."""


class ClusterQueryError(CollectorError):
    """A single read or write against the cluster API failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404
