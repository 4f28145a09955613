"""Execute export tasks against the cluster and write the results to disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from che_debug_info.cluster import ClusterClient, query
from che_debug_info.cluster.resources import DEPLOYMENT
from che_debug_info.errors import ClusterQueryError
from che_debug_info.export.models import ExportAction, ExportTask, OutputFormat
from che_debug_info.export.render import render_text, to_json, to_yaml

logger = logging.getLogger(__name__)


@dataclass
class ExportReport:
    """Files written by a run of the export tasks."""

    written: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _render(task: ExportTask, payload: dict[str, Any]) -> str:
    if task.output_format is OutputFormat.JSON:
        return to_json(payload)
    if task.output_format is OutputFormat.TEXT:
        return render_text(payload, task.field, task.namespace)
    return to_yaml(payload)


def _section(task: ExportTask) -> str:
    parts = task.output_subpath.split("/")
    return "/".join(parts[:2]) if parts[0] == "operators" else parts[0]


class ExportRunner:
    """Runs export tasks one by one; a failing task never stops the others."""

    def __init__(self, cluster: ClusterClient, out_dir: Path) -> None:
        self.cluster = cluster
        self.out_dir = Path(out_dir)

    def run(self, tasks: list[ExportTask]) -> ExportReport:
        report = ExportReport()
        section = None
        for task in tasks:
            if _section(task) != section:
                section = _section(task)
                logger.info("Collecting %s", section)
            try:
                self._run_task(task, report)
            except ClusterQueryError as e:
                logger.warning("Failed to %s: %s", task.describe(), e)
                report.skipped.append(task.output_subpath)
        return report

    def _write(self, subpath: str, content: str, report: ExportReport) -> None:
        path = self.out_dir / subpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        report.written.append(path)

    def _run_task(self, task: ExportTask, report: ExportReport) -> None:
        if task.action is ExportAction.LOGS:
            self._export_logs(task, report)
            return
        if task.action is ExportAction.GET:
            if task.optional and not self.cluster.exists(task.resource, task.name or "", task.namespace):
                logger.debug("Skipping %s: not present", task.describe())
                return
            payload = self.cluster.get(task.resource, task.name or "", task.namespace)
        else:
            payload = self.cluster.list(task.resource, task.namespace, task.label_selector)
        self._write(task.output_subpath, _render(task, payload), report)

    def _export_logs(self, task: ExportTask, report: ExportReport) -> None:
        """Write ``<deploy>.<container>.log`` and ``<deploy>.init-<container>.log`` files."""
        deploy = task.name or ""
        namespace = task.namespace or ""
        spec = self.cluster.get(DEPLOYMENT, deploy, namespace)
        containers = [
            (query(c, "name"), f"{deploy}.{query(c, 'name')}.log")
            for c in query(spec, "spec.template.spec.containers", default=[])
        ]
        containers += [
            (query(c, "name"), f"{deploy}.init-{query(c, 'name')}.log")
            for c in query(spec, "spec.template.spec.initContainers", default=[])
        ]
        for container, filename in containers:
            try:
                log = self.cluster.deployment_logs(deploy, namespace, container)
            except ClusterQueryError as e:
                # Pod may not be running
                logger.debug("No logs for %s/%s: %s", deploy, container, e)
                continue
            self._write(f"{task.output_subpath}/{filename}", log, report)
