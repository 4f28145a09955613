"""Collection run: prepare → detect → (debug-start) → export → archive."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from che_debug_info.cluster import ClusterClient
from che_debug_info.config import Settings, get_settings
from che_debug_info.errors import PreconditionError, UsageError
from che_debug_info.export import ExportReport, ExportRunner, archive_results, build_export_plan
from che_debug_info.topology import Topology, WorkspaceTarget, detect_topology, resolve_workspace_id
from che_debug_info.workspace import DebugStartSequencer, PollOutcome, debug_workspace_start

logger = logging.getLogger(__name__)


def default_dest_dir(now: datetime | None = None) -> Path:
    """``./che-debug-<yymmddHHMMSS>`` in UTC."""
    now = now or datetime.now(timezone.utc)
    return Path.cwd() / f"che-debug-{now:%y%m%d%H%M%S}"


@dataclass
class CollectionOptions:
    """What the user asked to collect."""

    dest_dir: Path = field(default_factory=default_dest_dir)
    zip: bool = False
    workspace_name: str | None = None
    workspace_namespace: str | None = None
    checluster_namespace: str | None = None
    debug_workspace_start: bool = False

    def validate(self) -> None:
        if self.workspace_name and not self.workspace_namespace:
            raise UsageError("Argument '--workspace-namespace' must be provided when '--workspace-name' is used")
        if self.workspace_namespace and not self.workspace_name:
            raise UsageError("Argument '--workspace-name' must be provided when '--workspace-namespace' is used")
        if self.debug_workspace_start and not self.workspace_name:
            raise UsageError(
                "Arguments '--workspace-name' and '--workspace-namespace' must be provided with --debug-workspace-start"
            )

    @property
    def workspace(self) -> WorkspaceTarget | None:
        if self.workspace_name and self.workspace_namespace:
            return WorkspaceTarget(name=self.workspace_name, namespace=self.workspace_namespace)
        return None


@dataclass
class CollectionResult:
    """Result of a full collection run."""

    out_dir: Path
    topology: Topology
    export: ExportReport
    archive: Path | None = None
    debug_start: PollOutcome | None = None


def prepare_output_dir(dest_dir: Path) -> Path:
    """Create the output directory; it must not exist yet."""
    dest_dir = Path(dest_dir)
    if dest_dir.exists():
        raise PreconditionError(f"Directory {dest_dir} already exists")
    try:
        dest_dir.mkdir(parents=True)
    except FileExistsError as e:
        raise PreconditionError(f"Directory {dest_dir} already exists") from e
    except OSError as e:
        raise PreconditionError(f"Could not create directory {dest_dir}: {e.strerror}") from e
    return dest_dir


def log_topology(topology: Topology, out_dir: Path) -> None:
    name = topology.variant.display_name
    logger.info("Detected installation:")
    logger.info("  * %s Operator installed in namespace %s", name, topology.operator.namespace or "<unknown>")
    logger.info("  * DevWorkspace Operator installed in namespace %s", topology.dwo.namespace or "<unknown>")
    if topology.checluster is not None:
        logger.info("  * %s installed in namespace %s", name, topology.checluster.namespace)
    logger.info("Results will be saved to %s", out_dir)


def run_collection(
    options: CollectionOptions,
    settings: Settings | None = None,
    cluster: ClusterClient | None = None,
) -> CollectionResult:
    """
    Run the full collection: create the output directory, detect the installation,
    optionally debug-start the workspace, export every task and archive the result.
    """
    opts = settings or get_settings()
    options.validate()
    out_dir = prepare_output_dir(options.dest_dir)

    if cluster is None:
        cluster = ClusterClient.from_settings(
            kubeconfig=str(opts.kubeconfig) if opts.kubeconfig else None,
            context=opts.context,
        )

    topology = detect_topology(
        cluster,
        checluster_namespace=options.checluster_namespace,
        catalog_namespace=opts.catalog_namespace,
    )
    log_topology(topology, out_dir)

    workspace = options.workspace
    scope: contextlib.AbstractContextManager = contextlib.nullcontext()
    sequencer = None
    if options.debug_workspace_start and workspace is not None:
        sequencer = DebugStartSequencer(
            cluster,
            workspace,
            poll_interval=opts.poll_interval_seconds,
            poll_attempts=opts.poll_attempts,
        )
        scope = debug_workspace_start(sequencer)

    archive = None
    with scope:
        workspace_id = ""
        if workspace is not None:
            logger.info(
                "Getting information about DevWorkspace %s in namespace %s",
                workspace.name,
                workspace.namespace,
            )
            workspace_id = resolve_workspace_id(cluster, workspace)
        tasks = build_export_plan(topology, workspace, workspace_id)
        logger.debug("Export plan has %d tasks", len(tasks))
        report = ExportRunner(cluster, out_dir).run(tasks)
        if options.zip:
            archive = archive_results(out_dir, topology.variant.distribution_id)

    return CollectionResult(
        out_dir=out_dir,
        topology=topology,
        export=report,
        archive=archive,
        debug_start=sequencer.outcome if sequencer else None,
    )


def print_result(result: CollectionResult, console: Console | None = None) -> None:
    """Print a summary of the run using Rich."""
    c = console or Console()
    topology = result.topology
    lines = [
        f"[bold]Installation:[/bold] {topology.variant.display_name} on {topology.platform.value}",
        f"[bold]Output:[/bold] {escape(str(result.out_dir))}",
        f"[bold]Files written:[/bold] {len(result.export.written)}",
    ]
    if result.debug_start is not None:
        state = "timed out" if result.debug_start.timed_out else result.debug_start.phase
        lines.append(f"[bold]Debug start:[/bold] {state} after {result.debug_start.attempts} checks")
    if result.archive is not None:
        lines.append(f"[bold]Archive:[/bold] {escape(str(result.archive))}")
    c.print(Panel("\n".join(lines), title="Che Debug Info", border_style="blue"))
