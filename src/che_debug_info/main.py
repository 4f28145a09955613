"""CLI entrypoint for the debug info collector."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from che_debug_info import __version__
from che_debug_info.collector import CollectionOptions, print_result, run_collection
from che_debug_info.config import get_settings
from che_debug_info.errors import CollectorError

DESCRIPTION = """\
Gather information about an Eclipse Che or Red Hat OpenShift Dev Spaces
installation that is useful for diagnosing issues.

By default this gathers any objects owned by the DevWorkspace Operator or the
Eclipse Che/Dev Spaces operator in each operator's namespace, and any objects
related to an existing installation in the namespace of a CheCluster. Objects
retrieved are deployments, pods, services, configmaps, routes/ingresses,
events and ClusterServiceVersions (if present).

With --workspace-name and --workspace-namespace, information about that
workspace is gathered too. --debug-workspace-start starts the workspace with
debug enabled first, to capture why it fails to start.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Exits with status 1 (not argparse's 2) on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        prog="che-debug-info",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--dest-dir",
        "-d",
        type=Path,
        default=None,
        help="Output debug information into this directory; it must not already exist "
        "(default: ./che-debug-<timestamp>)",
    )
    parser.add_argument(
        "--zip",
        "-z",
        action="store_true",
        help="Compress debug information to a zip file for sharing in a bug report",
    )
    parser.add_argument(
        "--workspace-name",
        default=None,
        help="Gather debugging information on the DevWorkspace with this name",
    )
    parser.add_argument(
        "--workspace-namespace",
        default=None,
        help="Namespace of the DevWorkspace given with --workspace-name",
    )
    parser.add_argument(
        "--checluster-namespace",
        default=None,
        help="Search this namespace for the CheCluster (default: all namespaces)",
    )
    parser.add_argument(
        "--debug-workspace-start",
        action="store_true",
        help="Start the DevWorkspace with debug enabled before gathering data; "
        "use for workspaces that fail to start",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def _options_from_args(args: argparse.Namespace) -> CollectionOptions:
    options = CollectionOptions(
        zip=args.zip,
        workspace_name=args.workspace_name,
        workspace_namespace=args.workspace_namespace,
        checluster_namespace=args.checluster_namespace,
        debug_workspace_start=args.debug_workspace_start,
    )
    if args.dest_dir is not None:
        options.dest_dir = args.dest_dir
    return options


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for che-debug-info CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=args.verbose)],
    )
    logger = logging.getLogger("che_debug_info")

    try:
        options = _options_from_args(args)
        options.validate()
        result = run_collection(options, get_settings())
        print_result(result, Console())
        return 0
    except CollectorError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception:
        logging.exception("Collection failed")
        return 2


if __name__ == "__main__":
    sys.exit(main())
