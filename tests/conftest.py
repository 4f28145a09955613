"""Shared fixtures: an in-memory cluster implementing the ClusterClient interface."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from che_debug_info.cluster.client import as_list
from che_debug_info.cluster.resources import (
    CHE_CLUSTER,
    CLUSTER_SERVICE_VERSION,
    DEPLOYMENT,
    DEVWORKSPACE,
    ROUTE_API_GROUP,
    ResourceRef,
)
from che_debug_info.errors import ClusterQueryError


def _matches(labels: dict[str, str], selector: str | None) -> bool:
    if not selector:
        return True
    for term in selector.split(","):
        if "=" in term:
            key, value = term.split("=", 1)
            if labels.get(key) != value:
                return False
        elif term not in labels:
            return False
    return True


class FakeCluster:
    """Objects are stored by (kind, namespace, name); every call is recorded."""

    def __init__(self, api_groups: set[str] | None = None) -> None:
        self.api_groups = set(api_groups or ())
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.logs: dict[tuple[str, str, str], str] = {}
        self.calls: list[tuple] = []
        self.failing: set[tuple[str, str | None]] = set()
        self.phases: list[str] = []

    # Setup helpers

    def add(self, ref: ResourceRef, name: str, namespace: str, **fields: Any) -> dict[str, Any]:
        labels = fields.pop("labels", {})
        obj = {
            "apiVersion": ref.api_version,
            "kind": ref.kind,
            "metadata": {"name": name, "namespace": namespace, "labels": labels, "annotations": {}},
        }
        obj.update(fields)
        self.objects[(ref.kind, namespace, name)] = obj
        return obj

    def fail(self, ref: ResourceRef, namespace: str | None = None) -> None:
        """Make every call for ``ref`` (optionally only in ``namespace``) fail."""
        self.failing.add((ref.kind, namespace))

    def _check_failure(self, ref: ResourceRef, namespace: str | None) -> None:
        if (ref.kind, None) in self.failing or (ref.kind, namespace) in self.failing:
            raise ClusterQueryError(f"forbidden: {ref.kind}", 403)

    def calls_for(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[1] == kind]

    # ClusterClient interface

    def has_api_group(self, group: str) -> bool:
        self.calls.append(("has_api_group", group))
        return group in self.api_groups

    def get(self, ref: ResourceRef, name: str, namespace: str | None = None) -> dict[str, Any]:
        self.calls.append(("get", ref.kind, namespace, name))
        if ref.namespaced and namespace == "":
            raise ClusterQueryError(f"Namespace for {ref.kind} is not resolved")
        self._check_failure(ref, namespace)
        if ref == DEVWORKSPACE and self.phases:
            key = (ref.kind, namespace, name)
            if key in self.objects:
                self.objects[key].setdefault("status", {})["phase"] = self.phases.pop(0)
        obj = self.objects.get((ref.kind, namespace, name))
        if obj is None:
            raise ClusterQueryError(f"{ref.kind} {name} not found", 404)
        return copy.deepcopy(obj)

    def exists(self, ref: ResourceRef, name: str, namespace: str | None = None) -> bool:
        try:
            self.get(ref, name, namespace)
        except ClusterQueryError as e:
            if e.not_found:
                return False
            raise
        return True

    def list(self, ref: ResourceRef, namespace: str | None = None, label_selector: str | None = None) -> dict[str, Any]:
        self.calls.append(("list", ref.kind, namespace, label_selector))
        if ref.namespaced and namespace == "":
            raise ClusterQueryError(f"Namespace for {ref.kind} is not resolved")
        self._check_failure(ref, namespace)
        found = [
            copy.deepcopy(obj)
            for (kind, ns, _), obj in self.objects.items()
            if kind == ref.kind
            and (namespace is None or ns == namespace)
            and _matches(obj["metadata"].get("labels") or {}, label_selector)
        ]
        return as_list(ref, found)

    def deployment_logs(self, deployment: str, namespace: str, container: str) -> str:
        self.calls.append(("logs", deployment, namespace, container))
        try:
            return self.logs[(namespace, deployment, container)]
        except KeyError:
            raise ClusterQueryError(f"no logs for {deployment}/{container}", 400) from None

    def merge_patch(self, ref: ResourceRef, name: str, namespace: str | None, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("patch", ref.kind, namespace, name, copy.deepcopy(body)))
        self._check_failure(ref, namespace)
        obj = self.objects.get((ref.kind, namespace, name))
        if obj is None:
            raise ClusterQueryError(f"{ref.kind} {name} not found", 404)
        _merge(obj, body)
        return copy.deepcopy(obj)

    def annotate(self, ref: ResourceRef, name: str, namespace: str | None, annotations: dict[str, str | None]) -> dict[str, Any]:
        return self.merge_patch(ref, name, namespace, {"metadata": {"annotations": annotations}})


def _merge(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


def add_deployment(cluster: FakeCluster, name: str, namespace: str, containers=("main",), init_containers=(), labels=None):
    return cluster.add(
        DEPLOYMENT,
        name,
        namespace,
        labels=labels or {},
        spec={
            "selector": {"matchLabels": {"app": name}},
            "template": {
                "spec": {
                    "containers": [{"name": c} for c in containers],
                    "initContainers": [{"name": c} for c in init_containers],
                }
            },
        },
    )


@pytest.fixture
def kubernetes_cluster() -> FakeCluster:
    """Plain Kubernetes with Eclipse Che, DWO and one CheCluster."""
    cluster = FakeCluster()
    add_deployment(
        cluster,
        "devworkspace-controller-manager",
        "devworkspace-controller",
        containers=("devworkspace-controller", "kube-rbac-proxy"),
        labels={
            "app.kubernetes.io/name": "devworkspace-controller",
            "app.kubernetes.io/part-of": "devworkspace-operator",
        },
    )
    add_deployment(cluster, "che-operator", "eclipse-che", labels={"app": "che-operator"})
    cluster.add(CHE_CLUSTER, "eclipse-che", "eclipse-che")
    return cluster


@pytest.fixture
def openshift_cluster() -> FakeCluster:
    """OpenShift with Dev Spaces installed globally (CSVs copied into openshift-operators)."""
    cluster = FakeCluster(api_groups={ROUTE_API_GROUP, "apps"})
    cluster.add(
        CLUSTER_SERVICE_VERSION,
        "devworkspace-operator.v0.26.0",
        "openshift-operators",
        spec={"displayName": "DevWorkspace Operator", "version": "0.26.0"},
        status={"reason": "InstallSucceeded"},
    )
    cluster.add(
        CLUSTER_SERVICE_VERSION,
        "devspacesoperator.v3.11.0",
        "openshift-operators",
        labels={"olm.copiedFrom": "devspaces-system"},
        spec={"displayName": "Red Hat OpenShift Dev Spaces", "version": "3.11.0"},
        status={"reason": "Copied"},
    )
    cluster.add(
        CLUSTER_SERVICE_VERSION,
        "devspacesoperator.v3.11.0",
        "devspaces-system",
        spec={"displayName": "Red Hat OpenShift Dev Spaces", "version": "3.11.0"},
        status={"reason": "InstallSucceeded"},
    )
    cluster.add(CHE_CLUSTER, "devspaces", "openshift-devspaces")
    return cluster
