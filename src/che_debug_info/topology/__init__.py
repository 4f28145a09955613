"""Topology layer: detect what is installed in the cluster and where."""

from che_debug_info.topology.detector import detect_topology, resolve_workspace_id
from che_debug_info.topology.models import (
    ClusterContext,
    ManagedInstallation,
    OperatorComponent,
    OperatorInstallation,
    Platform,
    ProductVariant,
    Topology,
    WorkspaceTarget,
)
from che_debug_info.topology.variants import DEV_SPACES, DEVWORKSPACE_OPERATOR, ECLIPSE_CHE

__all__ = [
    "detect_topology",
    "resolve_workspace_id",
    "ClusterContext",
    "ManagedInstallation",
    "OperatorComponent",
    "OperatorInstallation",
    "Platform",
    "ProductVariant",
    "Topology",
    "WorkspaceTarget",
    "DEV_SPACES",
    "DEVWORKSPACE_OPERATOR",
    "ECLIPSE_CHE",
]
