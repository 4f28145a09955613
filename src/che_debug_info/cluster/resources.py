"""API resource kinds read or patched by the collector."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ResourceRef:
    """Identifies an API resource by group version and kind."""

    api_version: str
    kind: str
    namespaced: bool = True

    @property
    def group(self) -> str:
        return self.api_version.rpartition("/")[0]


DEPLOYMENT = ResourceRef("apps/v1", "Deployment")
POD = ResourceRef("v1", "Pod")
SERVICE = ResourceRef("v1", "Service")
EVENT = ResourceRef("v1", "Event")
CONFIG_MAP = ResourceRef("v1", "ConfigMap")
SERVICE_ACCOUNT = ResourceRef("v1", "ServiceAccount")
PERSISTENT_VOLUME_CLAIM = ResourceRef("v1", "PersistentVolumeClaim")
INGRESS = ResourceRef("networking.k8s.io/v1", "Ingress")

# OpenShift
ROUTE = ResourceRef("route.openshift.io/v1", "Route")
CLUSTER_SERVICE_VERSION = ResourceRef("operators.coreos.com/v1alpha1", "ClusterServiceVersion")

# Eclipse Che / DevWorkspace Operator
CHE_CLUSTER = ResourceRef("org.eclipse.che/v2", "CheCluster")
DEVWORKSPACE = ResourceRef("workspace.devfile.io/v1alpha2", "DevWorkspace")
DEVWORKSPACE_OPERATOR_CONFIG = ResourceRef("controller.devfile.io/v1alpha1", "DevWorkspaceOperatorConfig")

ROUTE_API_GROUP = ROUTE.group
