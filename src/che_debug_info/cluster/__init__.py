"""Cluster access: read/patch facade, resource kinds and field queries."""

from che_debug_info.cluster.client import ClusterClient
from che_debug_info.cluster.query import items, query
from che_debug_info.cluster.resources import ResourceRef

__all__ = [
    "ClusterClient",
    "ResourceRef",
    "items",
    "query",
]
