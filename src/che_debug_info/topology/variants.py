"""Known product variants and the DevWorkspace Operator."""

from __future__ import annotations

from che_debug_info.topology.models import OperatorComponent, ProductVariant, WebhookServer

ECLIPSE_CHE = ProductVariant(
    distribution_id="che",
    display_name="Eclipse Che",
    csv_marker="eclipse-che",
    operator_deploy_name="che-operator",
    operator_label_selector="app=che-operator",
    operator_service_name="che-operator-service",
    managed_deployment_names=(
        "che",
        "che-dashboard",
        "che-gateway",
        "devfile-registry",
        "plugin-registry",
    ),
)

DEV_SPACES = ProductVariant(
    distribution_id="devspaces",
    display_name="Red Hat OpenShift Dev Spaces",
    csv_marker="devspacesoperator",
    operator_deploy_name="devspaces-operator",
    operator_label_selector="app=devspaces-operator",
    operator_service_name="devspaces-operator-service",
    managed_deployment_names=(
        "devspaces",
        "devspaces-dashboard",
        "che-gateway",
        "devfile-registry",
        "plugin-registry",
    ),
)

# Checked in order on OpenShift
OPENSHIFT_VARIANTS: tuple[ProductVariant, ...] = (ECLIPSE_CHE, DEV_SPACES)

# Dev Spaces is not available on plain Kubernetes
KUBERNETES_VARIANT = ECLIPSE_CHE

DEVWORKSPACE_OPERATOR = OperatorComponent(
    display_name="DevWorkspace Operator",
    output_id="devworkspace-operator",
    deploy_name="devworkspace-controller-manager",
    label_selector="app.kubernetes.io/name=devworkspace-controller,app.kubernetes.io/part-of=devworkspace-operator",
    service_name="devworkspace-controller-manager-service",
    webhook_server=WebhookServer(
        deploy_name="devworkspace-webhook-server",
        label_selector="app.kubernetes.io/name=devworkspace-webhook-server,app.kubernetes.io/part-of=devworkspace-operator",
        service_name="devworkspace-webhookserver",
    ),
    global_config_name="devworkspace-operator-config",
)
