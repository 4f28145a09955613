"""Detect platform, product variant, operator namespaces and the CheCluster."""

from __future__ import annotations

import logging
from typing import Any

from che_debug_info.cluster import ClusterClient, items, query
from che_debug_info.cluster.resources import (
    CHE_CLUSTER,
    CLUSTER_SERVICE_VERSION,
    DEPLOYMENT,
    DEVWORKSPACE,
    ROUTE_API_GROUP,
)
from che_debug_info.errors import ClusterQueryError, TopologyError
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
from che_debug_info.topology.variants import (
    DEVWORKSPACE_OPERATOR,
    KUBERNETES_VARIANT,
    OPENSHIFT_VARIANTS,
)

logger = logging.getLogger(__name__)

CSV_INSTALL_SUCCEEDED = "InstallSucceeded"
CSV_COPIED_FROM_LABEL = "olm.copiedFrom"


def detect_platform(cluster: ClusterClient) -> ClusterContext:
    """OpenShift is recognised by the route API group."""
    if cluster.has_api_group(ROUTE_API_GROUP):
        return ClusterContext(platform=Platform.OPENSHIFT)
    return ClusterContext(platform=Platform.KUBERNETES)


def _list_catalog_csvs(cluster: ClusterClient, catalog_namespace: str) -> list[dict[str, Any]]:
    try:
        return items(cluster.list(CLUSTER_SERVICE_VERSION, catalog_namespace))
    except ClusterQueryError as e:
        logger.warning("Failed to list ClusterServiceVersions in %s: %s", catalog_namespace, e)
        return []


def detect_variant(
    cluster: ClusterClient,
    context: ClusterContext,
    catalog_namespace: str,
) -> ProductVariant:
    """Pick the installed product variant; fatal on OpenShift if none is installed."""
    if not context.is_openshift:
        return KUBERNETES_VARIANT
    csv_names = [query(csv, "metadata.name") for csv in _list_catalog_csvs(cluster, catalog_namespace)]
    for variant in OPENSHIFT_VARIANTS:
        if any(variant.csv_marker in name for name in csv_names):
            return variant
    raise TopologyError("Could not find operator installation")


def _csv_install_namespace(csv: dict[str, Any]) -> str:
    # CSVs of globally installed operators are copied into every namespace; a copy
    # points at the namespace the operator really runs in.
    if query(csv, "status.reason") == CSV_INSTALL_SUCCEEDED:
        return query(csv, "metadata.namespace")
    return query(csv, ("metadata", "labels", CSV_COPIED_FROM_LABEL))


def _resolve_from_csv(
    cluster: ClusterClient,
    component: OperatorComponent,
    catalog_namespace: str,
) -> OperatorInstallation:
    for csv in _list_catalog_csvs(cluster, catalog_namespace):
        if query(csv, "spec.displayName") == component.display_name:
            return OperatorInstallation(
                namespace=_csv_install_namespace(csv),
                csv_name=query(csv, "metadata.name"),
            )
    logger.warning("No ClusterServiceVersion found for %s", component.display_name)
    return OperatorInstallation(namespace="", csv_name="")


def _resolve_from_deployment(cluster: ClusterClient, component: OperatorComponent) -> OperatorInstallation:
    try:
        deployments = items(cluster.list(DEPLOYMENT, None, component.label_selector))
    except ClusterQueryError as e:
        logger.warning("Failed to find %s deployment: %s", component.display_name, e)
        return OperatorInstallation()
    if not deployments:
        logger.warning("No deployment found for %s (selector %s)", component.display_name, component.label_selector)
        return OperatorInstallation()
    if len(deployments) > 1:
        logger.warning(
            "Found %d %s deployments, using namespace of the first",
            len(deployments),
            component.display_name,
        )
    return OperatorInstallation(namespace=query(deployments[0], "metadata.namespace"))


def resolve_operator(
    cluster: ClusterClient,
    context: ClusterContext,
    component: OperatorComponent,
    catalog_namespace: str,
) -> OperatorInstallation:
    """Find the namespace an operator is installed in (and its CSV on OpenShift)."""
    if context.is_openshift:
        return _resolve_from_csv(cluster, component, catalog_namespace)
    return _resolve_from_deployment(cluster, component)


def resolve_checluster(cluster: ClusterClient, namespace: str | None = None) -> ManagedInstallation | None:
    """
    Return the CheCluster to collect, or None if there is none.

    With several CheClusters the first one returned by the API is used; the API does not
    define an order, so which one that is may differ between API server versions.
    """
    try:
        checlusters = items(cluster.list(CHE_CLUSTER, namespace or None))
    except ClusterQueryError as e:
        logger.warning("Failed to list CheClusters: %s", e)
        checlusters = []
    if not checlusters:
        logger.warning("No CheClusters found in cluster, cannot get CheCluster info")
        return None
    if len(checlusters) > 1:
        logger.warning("Found %d CheClusters in cluster, checking only the first", len(checlusters))
    first = checlusters[0]
    return ManagedInstallation(
        name=query(first, "metadata.name"),
        namespace=query(first, "metadata.namespace"),
    )


def detect_topology(
    cluster: ClusterClient,
    checluster_namespace: str | None = None,
    catalog_namespace: str = "openshift-operators",
) -> Topology:
    """Detect the installation. Read-only; raises TopologyError if no operator is installed."""
    context = detect_platform(cluster)
    variant = detect_variant(cluster, context, catalog_namespace)
    logger.info("Detected %s install in cluster", variant.display_name)
    dwo = resolve_operator(cluster, context, DEVWORKSPACE_OPERATOR, catalog_namespace)
    operator = resolve_operator(cluster, context, variant.operator, catalog_namespace)
    checluster = resolve_checluster(cluster, checluster_namespace)
    return Topology(
        context=context,
        variant=variant,
        dwo=dwo,
        operator=operator,
        checluster=checluster,
    )


def resolve_workspace_id(cluster: ClusterClient, target: WorkspaceTarget) -> str:
    """Return ``status.devworkspaceId`` of the DevWorkspace, or an empty string."""
    try:
        workspace = cluster.get(DEVWORKSPACE, target.name, target.namespace)
    except ClusterQueryError as e:
        logger.warning("Failed to get DevWorkspace %s in %s: %s", target.name, target.namespace, e)
        return ""
    workspace_id = query(workspace, "status.devworkspaceId")
    if not workspace_id:
        logger.warning("DevWorkspace %s has no devworkspaceId in its status", target.name)
    return workspace_id
