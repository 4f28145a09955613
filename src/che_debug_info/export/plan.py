"""Build the ordered list of export tasks for a detected installation."""

from __future__ import annotations

from che_debug_info.cluster.resources import (
    CHE_CLUSTER,
    CLUSTER_SERVICE_VERSION,
    CONFIG_MAP,
    DEPLOYMENT,
    DEVWORKSPACE,
    DEVWORKSPACE_OPERATOR_CONFIG,
    EVENT,
    INGRESS,
    PERSISTENT_VOLUME_CLAIM,
    POD,
    ROUTE,
    SERVICE,
    SERVICE_ACCOUNT,
)
from che_debug_info.export.models import ExportAction, ExportTask, OutputFormat
from che_debug_info.topology.models import (
    ManagedInstallation,
    OperatorComponent,
    OperatorInstallation,
    Topology,
    WorkspaceTarget,
)
from che_debug_info.topology.variants import DEVWORKSPACE_OPERATOR

OPERATORS_DIR = "operators"
CHECLUSTER_DIR = "checluster"
WORKSPACE_DIR = "devworkspaces"

# The Che server deployment is called "devspaces" in Dev Spaces, but its service is
# named "che-host" in both distributions.
CANONICAL_SERVER_DEPLOYMENTS = frozenset({"che", "devspaces"})
CANONICAL_SERVER_SERVICE = "che-host"

WORKSPACE_ID_LABEL = "controller.devfile.io/devworkspace_id"
MOUNT_TO_DEVWORKSPACE_LABEL = "controller.devfile.io/mount-to-devworkspace"


def service_name_for(deployment: str) -> str:
    """Service exposing a managed deployment."""
    if deployment in CANONICAL_SERVER_DEPLOYMENTS:
        return CANONICAL_SERVER_SERVICE
    return deployment


def _get(path: str, resource, name: str, namespace: str, **kwargs) -> ExportTask:
    return ExportTask(
        output_subpath=path,
        action=ExportAction.GET,
        resource=resource,
        name=name,
        namespace=namespace,
        **kwargs,
    )


def _list(path: str, resource, namespace: str, label_selector: str | None = None, **kwargs) -> ExportTask:
    return ExportTask(
        output_subpath=path,
        action=ExportAction.LIST,
        resource=resource,
        namespace=namespace,
        label_selector=label_selector,
        **kwargs,
    )


def _logs(directory: str, deployment: str, namespace: str) -> ExportTask:
    return ExportTask(
        output_subpath=directory,
        action=ExportAction.LOGS,
        resource=DEPLOYMENT,
        name=deployment,
        namespace=namespace,
    )


def _events(directory: str, namespace: str) -> list[ExportTask]:
    return [
        _list(f"{directory}/events.yaml", EVENT, namespace),
        _list(f"{directory}/events.txt", EVENT, namespace, output_format=OutputFormat.TEXT),
    ]


def _workload(directory: str, prefix: str, deploy: str, selector: str, service: str, namespace: str) -> list[ExportTask]:
    return [
        _get(f"{directory}/{prefix}.deploy.yaml", DEPLOYMENT, deploy, namespace),
        _list(f"{directory}/{prefix}.pods.yaml", POD, namespace, selector),
        _get(f"{directory}/{prefix}.svc.yaml", SERVICE, service, namespace),
        _logs(directory, deploy, namespace),
    ]


def operator_tasks(
    component: OperatorComponent,
    installation: OperatorInstallation,
    openshift: bool,
) -> list[ExportTask]:
    """Tasks for one operator: CSV (OpenShift), controller, webhook server, config, events."""
    directory = f"{OPERATORS_DIR}/{component.output_id}"
    ns = installation.namespace
    tasks: list[ExportTask] = []
    if openshift:
        csv_name = installation.csv_name or ""
        tasks.append(
            _get(
                f"{directory}/version.txt",
                CLUSTER_SERVICE_VERSION,
                csv_name,
                ns,
                output_format=OutputFormat.TEXT,
                field="spec.version",
            )
        )
        tasks.append(_get(f"{directory}/csv.yaml", CLUSTER_SERVICE_VERSION, csv_name, ns))

    tasks.extend(
        _workload(directory, "controller", component.deploy_name, component.label_selector, component.service_name, ns)
    )
    webhook = component.webhook_server
    if webhook is not None:
        tasks.extend(
            _workload(directory, "webhook-server", webhook.deploy_name, webhook.label_selector, webhook.service_name, ns)
        )
    if component.global_config_name:
        tasks.append(
            _get(
                f"{directory}/operator-config.yaml",
                DEVWORKSPACE_OPERATOR_CONFIG,
                component.global_config_name,
                ns,
                optional=True,
            )
        )
    tasks.extend(_events(directory, ns))
    return tasks


def checluster_tasks(
    checluster: ManagedInstallation,
    deployment_names: tuple[str, ...],
    openshift: bool,
) -> list[ExportTask]:
    """Tasks for the CheCluster and the deployments it manages."""
    ns = checluster.namespace
    tasks = [_get(f"{CHECLUSTER_DIR}/checluster.yaml", CHE_CLUSTER, checluster.name, ns)]
    for deploy in deployment_names:
        directory = f"{CHECLUSTER_DIR}/{deploy}"
        tasks.append(_get(f"{directory}/deployment.yaml", DEPLOYMENT, deploy, ns))
        tasks.append(_logs(directory, deploy, ns))
        tasks.append(_get(f"{directory}/service.yaml", SERVICE, service_name_for(deploy), ns))
    if openshift:
        tasks.append(_list(f"{CHECLUSTER_DIR}/route.yaml", ROUTE, ns))
    else:
        tasks.append(_list(f"{CHECLUSTER_DIR}/ingress.yaml", INGRESS, ns))
    tasks.append(_list(f"{CHECLUSTER_DIR}/devworkspaceoperatorconfig.yaml", DEVWORKSPACE_OPERATOR_CONFIG, ns))
    tasks.extend(_events(CHECLUSTER_DIR, ns))
    return tasks


def workspace_tasks(target: WorkspaceTarget, workspace_id: str, openshift: bool) -> list[ExportTask]:
    """Tasks for one DevWorkspace; objects are matched by its devworkspace id."""
    ns = target.namespace
    selector = f"{WORKSPACE_ID_LABEL}={workspace_id}"
    tasks = [
        _get(f"{WORKSPACE_DIR}/devworkspace.yaml", DEVWORKSPACE, target.name, ns),
        _list(f"{WORKSPACE_DIR}/services.yaml", SERVICE, ns, selector),
        _list(f"{WORKSPACE_DIR}/deployments.yaml", DEPLOYMENT, ns, selector),
        _list(f"{WORKSPACE_DIR}/pods.yaml", POD, ns, selector),
    ]
    if openshift:
        tasks.append(_list(f"{WORKSPACE_DIR}/routes.yaml", ROUTE, ns, selector))
    else:
        tasks.append(_list(f"{WORKSPACE_DIR}/ingresses.yaml", INGRESS, ns, selector))
    tasks.extend(
        [
            _list(f"{WORKSPACE_DIR}/workspace-configmaps.yaml", CONFIG_MAP, ns, selector),
            _list(f"{WORKSPACE_DIR}/mounted-configmaps.yaml", CONFIG_MAP, ns, MOUNT_TO_DEVWORKSPACE_LABEL),
            _list(f"{WORKSPACE_DIR}/serviceaccounts.yaml", SERVICE_ACCOUNT, ns, selector),
            # Every PVC in the namespace; common storage is shared between workspaces.
            _list(f"{WORKSPACE_DIR}/pvcs.yaml", PERSISTENT_VOLUME_CLAIM, ns),
        ]
    )
    tasks.extend(_events(WORKSPACE_DIR, ns))
    # The workspace deployment is named after the devworkspace id.
    tasks.append(_logs(WORKSPACE_DIR, workspace_id, ns))
    return tasks


def build_export_plan(
    topology: Topology,
    workspace: WorkspaceTarget | None = None,
    workspace_id: str = "",
) -> list[ExportTask]:
    """Return every export task for the run, in execution order. Performs no cluster I/O."""
    openshift = topology.context.is_openshift
    tasks = operator_tasks(DEVWORKSPACE_OPERATOR, topology.dwo, openshift)
    tasks += operator_tasks(topology.variant.operator, topology.operator, openshift)
    if topology.checluster is not None:
        tasks += checluster_tasks(topology.checluster, topology.variant.managed_deployment_names, openshift)
    if workspace is not None:
        tasks += workspace_tasks(workspace, workspace_id, openshift)
    return tasks
