"""Declarative export tasks."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from che_debug_info.cluster.resources import ResourceRef


class ExportAction(str, Enum):
    """What an export task asks of the cluster."""

    GET = "get"  # single object by name
    LIST = "list"  # objects in a namespace, optionally label-selected
    LOGS = "logs"  # container and init-container logs of a deployment


class OutputFormat(str, Enum):
    YAML = "yaml"
    JSON = "json"
    TEXT = "text"  # field value for GET, table for LIST


class ExportTask(BaseModel):
    """One file (or, for logs, one set of files) written under the output directory."""

    model_config = ConfigDict(frozen=True)

    output_subpath: str = Field(
        ...,
        description="File path relative to the output directory; the target directory for LOGS",
    )
    action: ExportAction
    resource: ResourceRef | None = None
    name: str | None = None
    namespace: str | None = None
    label_selector: str | None = None
    output_format: OutputFormat = OutputFormat.YAML
    field: str | None = Field(default=None, description="Dotted path written for TEXT output of GET")
    optional: bool = Field(default=False, description="Skip silently if the object does not exist")

    @property
    def namespaced(self) -> bool:
        return self.resource is None or self.resource.namespaced

    def describe(self) -> str:
        target = self.name or self.label_selector or "*"
        kind = self.resource.kind if self.resource else "Deployment"
        return f"{self.action.value} {kind} {target} in {self.namespace or '<unresolved>'}"
