"""Workspace layer: debug-start a DevWorkspace before collecting its data."""

from che_debug_info.workspace.debug_start import (
    DEBUG_START_ANNOTATION,
    DebugStartSequencer,
    PollOutcome,
    SequencerState,
    debug_workspace_start,
)

__all__ = [
    "DEBUG_START_ANNOTATION",
    "DebugStartSequencer",
    "PollOutcome",
    "SequencerState",
    "debug_workspace_start",
]
