"""Read and patch Kubernetes objects as plain dicts."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from kubernetes import client, config, dynamic
from kubernetes.client.rest import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError
from urllib3.exceptions import HTTPError

from che_debug_info.cluster.query import items, query
from che_debug_info.cluster.resources import DEPLOYMENT, POD, ResourceRef
from che_debug_info.errors import ClusterQueryError, PreconditionError

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"


def _load_kube_config(kubeconfig_path: str | None, context: str | None) -> client.Configuration:
    """Load in-cluster or kubeconfig-based configuration."""
    try:
        config.load_incluster_config()
        return client.Configuration.get_default_copy()
    except config.ConfigException:
        pass
    kwargs: dict[str, Any] = {}
    if kubeconfig_path:
        kwargs["config_file"] = str(kubeconfig_path)
    if context:
        kwargs["context"] = context
    config.load_kube_config(**kwargs)
    return client.Configuration.get_default_copy()


@contextmanager
def _api_errors(action: str) -> Iterator[None]:
    """Re-raise API and transport errors as :class:`ClusterQueryError`."""
    try:
        yield
    except ApiException as e:
        raise ClusterQueryError(f"{action}: {e.reason}", e.status) from e
    except HTTPError as e:
        # Connection reset, read timeout, retries exhausted
        raise ClusterQueryError(f"{action}: {e}") from e


def as_list(ref: ResourceRef, objects: list[dict[str, Any]]) -> dict[str, Any]:
    """Wrap objects in a ``v1/List`` the way ``kubectl get -o yaml`` prints them."""
    wrapped = []
    for obj in objects:
        obj = dict(obj)
        obj.setdefault("apiVersion", ref.api_version)
        obj.setdefault("kind", ref.kind)
        wrapped.append(obj)
    return {
        "apiVersion": "v1",
        "kind": "List",
        "items": wrapped,
        "metadata": {"resourceVersion": ""},
    }


def selector_from_match_labels(match_labels: dict[str, str] | None) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted((match_labels or {}).items()))


class ClusterClient:
    """Facade over the cluster API used by every collection step.

    Objects come back as plain dicts (camelCase keys, as the API serves them) and every
    failure is raised as :class:`ClusterQueryError`.
    """

    def __init__(self, api_client: client.ApiClient) -> None:
        self._api_client = api_client
        self._dynamic = dynamic.DynamicClient(api_client)
        self._core = client.CoreV1Api(api_client)
        self._apis = client.ApisApi(api_client)

    @classmethod
    def from_settings(cls, kubeconfig: str | None = None, context: str | None = None) -> "ClusterClient":
        try:
            cfg = _load_kube_config(kubeconfig, context)
        except (config.ConfigException, OSError) as e:
            raise PreconditionError(f"Could not load Kubernetes configuration: {e}") from e
        try:
            return cls(client.ApiClient(cfg))
        except ApiException as e:
            raise PreconditionError(f"Could not reach the cluster API: {e.reason}") from e
        except HTTPError as e:
            raise PreconditionError(f"Could not reach the cluster API: {e}") from e

    def _resource(self, ref: ResourceRef) -> Any:
        with _api_errors(f"Failed to discover {ref.kind} ({ref.api_version})"):
            try:
                return self._dynamic.resources.get(api_version=ref.api_version, kind=ref.kind)
            except ResourceNotFoundError as e:
                raise ClusterQueryError(f"{ref.kind} ({ref.api_version}) is not served by the cluster", 404) from e

    @staticmethod
    def _check_namespace(ref: ResourceRef, namespace: str | None) -> None:
        # An empty namespace is an unresolved one; None means all namespaces.
        if ref.namespaced and namespace == "":
            raise ClusterQueryError(f"Namespace for {ref.kind} is not resolved")

    def has_api_group(self, group: str) -> bool:
        """Return True if the API group is registered in the cluster."""
        with _api_errors("Failed to list API groups"):
            groups = self._apis.get_api_versions().groups or []
        return any(g.name == group for g in groups)

    def get(self, ref: ResourceRef, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Return a single object."""
        self._check_namespace(ref, namespace)
        if not name:
            raise ClusterQueryError(f"Name for {ref.kind} is not resolved")
        resource = self._resource(ref)
        with _api_errors(f"Failed to get {ref.kind} {name}"):
            obj = resource.get(name=name, namespace=namespace if ref.namespaced else None)
        return obj.to_dict()

    def exists(self, ref: ResourceRef, name: str, namespace: str | None = None) -> bool:
        try:
            self.get(ref, name, namespace)
        except ClusterQueryError as e:
            if e.not_found:
                return False
            raise
        return True

    def list(
        self,
        ref: ResourceRef,
        namespace: str | None = None,
        label_selector: str | None = None,
    ) -> dict[str, Any]:
        """Return a ``v1/List`` of objects; ``namespace=None`` lists across all namespaces."""
        self._check_namespace(ref, namespace)
        resource = self._resource(ref)
        kwargs: dict[str, Any] = {}
        if namespace and ref.namespaced:
            kwargs["namespace"] = namespace
        if label_selector:
            kwargs["label_selector"] = label_selector
        where = f"namespace {namespace}" if namespace else "all namespaces"
        with _api_errors(f"Failed to list {ref.kind} in {where}"):
            result = resource.get(**kwargs)
        return as_list(ref, items(result.to_dict()))

    def deployment_logs(self, deployment: str, namespace: str, container: str) -> str:
        """Return logs of one container of a pod belonging to the deployment."""
        dep = self.get(DEPLOYMENT, deployment, namespace)
        selector = selector_from_match_labels(query(dep, "spec.selector.matchLabels", default={}))
        if not selector:
            raise ClusterQueryError(f"Deployment {deployment} has no matchLabels selector")
        pods = items(self.list(POD, namespace, selector))
        if not pods:
            raise ClusterQueryError(f"No pods found for deployment {deployment}", 404)
        running = [p for p in pods if query(p, "status.phase") == "Running"]
        pod_name = query((running or pods)[0], "metadata.name")
        with _api_errors(f"Failed to get logs for {pod_name}/{container}"):
            return self._core.read_namespaced_pod_log(
                name=pod_name,
                namespace=namespace,
                container=container,
                timestamps=False,
            ) or ""

    def merge_patch(self, ref: ResourceRef, name: str, namespace: str | None, body: dict[str, Any]) -> dict[str, Any]:
        """Apply a JSON merge patch to a single object."""
        self._check_namespace(ref, namespace)
        resource = self._resource(ref)
        with _api_errors(f"Failed to patch {ref.kind} {name}"):
            obj = resource.patch(
                body=body,
                name=name,
                namespace=namespace if ref.namespaced else None,
                content_type=MERGE_PATCH,
            )
        return obj.to_dict()

    def annotate(
        self,
        ref: ResourceRef,
        name: str,
        namespace: str | None,
        annotations: dict[str, str | None],
    ) -> dict[str, Any]:
        """Set annotations, overwriting existing values; a None value removes the annotation."""
        logger.debug("Annotating %s %s/%s: %s", ref.kind, namespace, name, annotations)
        return self.merge_patch(ref, name, namespace, {"metadata": {"annotations": annotations}})
