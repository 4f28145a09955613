"""Installation topology of Eclipse Che / Dev Spaces in a cluster."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Kind of cluster the collector runs against."""

    KUBERNETES = "kubernetes"
    OPENSHIFT = "openshift"


class ClusterContext(BaseModel):
    """Cluster facts determined once at startup."""

    model_config = ConfigDict(frozen=True)

    platform: Platform

    @property
    def is_openshift(self) -> bool:
        return self.platform is Platform.OPENSHIFT


class WebhookServer(BaseModel):
    """Webhook server workload shipped alongside an operator."""

    model_config = ConfigDict(frozen=True)

    deploy_name: str
    label_selector: str
    service_name: str


class OperatorComponent(BaseModel):
    """Static description of an operator workload and where its data is exported."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="CSV spec.displayName of the operator")
    output_id: str = Field(..., description="Directory name under operators/")
    deploy_name: str
    label_selector: str
    service_name: str
    webhook_server: WebhookServer | None = None
    global_config_name: str | None = Field(
        default=None,
        description="Name of the cluster-wide DevWorkspaceOperatorConfig, if the operator has one",
    )


class ProductVariant(BaseModel):
    """One distribution of the workspace platform (Eclipse Che or Dev Spaces)."""

    model_config = ConfigDict(frozen=True)

    distribution_id: str = Field(..., description="che or devspaces")
    display_name: str
    csv_marker: str = Field(..., description="Substring identifying the operator's CSV name")
    operator_deploy_name: str
    operator_label_selector: str
    operator_service_name: str
    managed_deployment_names: tuple[str, ...]

    @property
    def operator(self) -> OperatorComponent:
        return OperatorComponent(
            display_name=self.display_name,
            output_id=f"{self.distribution_id}-operator",
            deploy_name=self.operator_deploy_name,
            label_selector=self.operator_label_selector,
            service_name=self.operator_service_name,
        )


class OperatorInstallation(BaseModel):
    """Where an operator is installed. ``csv_name`` is only known on OpenShift."""

    model_config = ConfigDict(frozen=True)

    namespace: str = ""
    csv_name: str | None = None


class ManagedInstallation(BaseModel):
    """The CheCluster custom resource of the running installation."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str


class WorkspaceTarget(BaseModel):
    """DevWorkspace selected by the user for collection."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str


class Topology(BaseModel):
    """Everything detection learned about the installation."""

    model_config = ConfigDict(frozen=True)

    context: ClusterContext
    variant: ProductVariant
    dwo: OperatorInstallation
    operator: OperatorInstallation
    checluster: ManagedInstallation | None = None

    @property
    def platform(self) -> Platform:
        return self.context.platform
