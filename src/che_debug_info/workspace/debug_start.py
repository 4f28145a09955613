"""Start a DevWorkspace in debug mode and wait for it to succeed or fail."""

from __future__ import annotations

import logging
import signal
import time
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator

from pydantic import BaseModel

from che_debug_info.cluster import ClusterClient, query
from che_debug_info.cluster.resources import DEVWORKSPACE
from che_debug_info.errors import ClusterQueryError, DebugStartError
from che_debug_info.topology.models import WorkspaceTarget

logger = logging.getLogger(__name__)

DEBUG_START_ANNOTATION = "controller.devfile.io/debug-start"
TERMINAL_PHASES = ("Running", "Failing")
DEFAULT_POLL_INTERVAL_SECONDS = 3.0
DEFAULT_POLL_ATTEMPTS = 60

_CLEANUP_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class SequencerState(str, Enum):
    IDLE = "idle"
    ANNOTATING = "annotating"
    POLLING = "polling"
    RUNNING = "running"
    FAILING = "failing"
    TIMED_OUT = "timed_out"
    RESET = "reset"


class PollOutcome(BaseModel):
    """Result of waiting for the DevWorkspace phase."""

    phase: str
    attempts: int
    timed_out: bool


class DebugStartSequencer:
    """Annotate and start a DevWorkspace, poll its phase, then remove the annotation.

    ``reset`` removes the annotation at most once, whichever path reaches it first.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        target: WorkspaceTarget,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        poll_attempts: int = DEFAULT_POLL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cluster = cluster
        self.target = target
        self.poll_interval = poll_interval
        self.poll_attempts = poll_attempts
        self._sleep = sleep
        self.state = SequencerState.IDLE
        self.annotated = False
        self.outcome: PollOutcome | None = None

    def annotate(self) -> None:
        """Set the debug-start annotation. Any failure is fatal."""
        logger.info(
            "Starting DevWorkspace %s in namespace %s with debug enabled",
            self.target.name,
            self.target.namespace,
        )
        self.state = SequencerState.ANNOTATING
        # Set before the request so a signal arriving mid-call still resets.
        self.annotated = True
        try:
            self.cluster.annotate(
                DEVWORKSPACE,
                self.target.name,
                self.target.namespace,
                {DEBUG_START_ANNOTATION: "true"},
            )
        except ClusterQueryError as e:
            self.annotated = False
            raise DebugStartError(f"Failed to annotate DevWorkspace {self.target.name}: {e}") from e

    def start_workspace(self) -> None:
        try:
            self.cluster.merge_patch(
                DEVWORKSPACE,
                self.target.name,
                self.target.namespace,
                {"spec": {"started": True}},
            )
        except ClusterQueryError as e:
            raise DebugStartError(f"Failed to start DevWorkspace {self.target.name}: {e}") from e

    def _read_phase(self) -> str:
        try:
            workspace = self.cluster.get(DEVWORKSPACE, self.target.name, self.target.namespace)
        except ClusterQueryError as e:
            logger.debug("Failed to read DevWorkspace phase: %s", e)
            return ""
        return query(workspace, "status.phase")

    def poll(self) -> PollOutcome:
        """Wait for the phase to become Running or Failing; a timeout only warns."""
        self.state = SequencerState.POLLING
        total = self.poll_interval * self.poll_attempts
        logger.info(
            "Waiting for DevWorkspace to enter 'Running' or 'Failing' state (timeout is %.0f seconds).",
            total,
        )
        phase = ""
        attempt = 0
        for attempt in range(1, self.poll_attempts + 1):
            phase = self._read_phase()
            logger.debug("Attempt %d: DevWorkspace phase is %r", attempt, phase)
            if phase in TERMINAL_PHASES:
                break
            if attempt < self.poll_attempts:
                self._sleep(self.poll_interval)

        if phase in TERMINAL_PHASES:
            self.state = SequencerState.RUNNING if phase == "Running" else SequencerState.FAILING
            logger.info("Workspace phase is %s. Continuing.", phase)
            self.outcome = PollOutcome(phase=phase, attempts=attempt, timed_out=False)
        else:
            self.state = SequencerState.TIMED_OUT
            logger.warning("Waiting for DevWorkspace timed out. Current DevWorkspace phase is %s", phase or "<unknown>")
            self.outcome = PollOutcome(phase=phase, attempts=attempt, timed_out=True)
        return self.outcome

    def reset(self) -> None:
        """Remove the debug-start annotation if it was applied."""
        if not self.annotated:
            return
        self.annotated = False
        self.state = SequencerState.RESET
        try:
            self.cluster.annotate(
                DEVWORKSPACE,
                self.target.name,
                self.target.namespace,
                {DEBUG_START_ANNOTATION: None},
            )
        except ClusterQueryError as e:
            logger.warning("Failed to remove %s annotation from DevWorkspace %s: %s", DEBUG_START_ANNOTATION, self.target.name, e)
            return
        logger.debug("Removed %s annotation from DevWorkspace %s", DEBUG_START_ANNOTATION, self.target.name)


def _install_signal_handlers(sequencer: DebugStartSequencer) -> dict[int, object]:
    def _handler(signum, frame):
        sequencer.reset()
        if signum == signal.SIGINT:
            raise KeyboardInterrupt
        raise SystemExit(128 + signum)

    previous = {}
    for sig in _CLEANUP_SIGNALS:
        try:
            previous[sig] = signal.signal(sig, _handler)
        except ValueError:
            # Not the main thread; the finally block still resets.
            break
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for sig, handler in previous.items():
        # None: the previous handler was not installed from Python
        if handler is not None:
            signal.signal(sig, handler)


@contextmanager
def debug_workspace_start(sequencer: DebugStartSequencer) -> Iterator[DebugStartSequencer]:
    """
    Scope in which the DevWorkspace runs with the debug-start annotation.

    The annotation is removed on exit, whether the body finishes, raises, or the
    process receives SIGINT/SIGTERM/SIGHUP.
    """
    previous = _install_signal_handlers(sequencer)
    try:
        sequencer.annotate()
        sequencer.start_workspace()
        sequencer.poll()
        yield sequencer
    finally:
        _restore_signal_handlers(previous)
        sequencer.reset()
