from datetime import datetime, timezone

import yaml

from conftest import FakeCluster, add_deployment

from che_debug_info.cluster.query import query
from che_debug_info.cluster.resources import (
    CLUSTER_SERVICE_VERSION,
    DEPLOYMENT,
    DEVWORKSPACE_OPERATOR_CONFIG,
    EVENT,
    POD,
    SERVICE,
)
from che_debug_info.export import ExportAction, ExportRunner, ExportTask, OutputFormat
from che_debug_info.export.render import events_table, format_age


def _get(path, ref, name, namespace, **kwargs):
    return ExportTask(output_subpath=path, action=ExportAction.GET, resource=ref, name=name, namespace=namespace, **kwargs)


def test_get_writes_yaml(tmp_path):
    cluster = FakeCluster()
    cluster.add(SERVICE, "che-host", "che-ns", spec={"ports": [{"port": 8080}]})

    report = ExportRunner(cluster, tmp_path).run([_get("checluster/che/service.yaml", SERVICE, "che-host", "che-ns")])

    path = tmp_path / "checluster/che/service.yaml"
    assert report.written == [path]
    data = yaml.safe_load(path.read_text())
    assert data["metadata"]["name"] == "che-host"
    assert data["spec"]["ports"][0]["port"] == 8080


def test_list_writes_kubectl_style_list(tmp_path):
    cluster = FakeCluster()
    cluster.add(POD, "a", "ns", labels={"app": "x"})
    cluster.add(POD, "b", "ns", labels={"app": "y"})
    task = ExportTask(output_subpath="pods.yaml", action=ExportAction.LIST, resource=POD, namespace="ns", label_selector="app=x")

    ExportRunner(cluster, tmp_path).run([task])

    data = yaml.safe_load((tmp_path / "pods.yaml").read_text())
    assert data["kind"] == "List"
    assert [query(i, "metadata.name") for i in data["items"]] == ["a"]


def test_text_field_output(tmp_path):
    cluster = FakeCluster()
    cluster.add(CLUSTER_SERVICE_VERSION, "dwo.v1", "ns", spec={"version": "0.26.0"})
    task = _get("version.txt", CLUSTER_SERVICE_VERSION, "dwo.v1", "ns", output_format=OutputFormat.TEXT, field="spec.version")

    ExportRunner(cluster, tmp_path).run([task])

    assert (tmp_path / "version.txt").read_text() == "0.26.0\n"


def test_json_output(tmp_path):
    cluster = FakeCluster()
    cluster.add(SERVICE, "svc", "ns")

    ExportRunner(cluster, tmp_path).run([_get("svc.json", SERVICE, "svc", "ns", output_format=OutputFormat.JSON)])

    assert '"name": "svc"' in (tmp_path / "svc.json").read_text()


def test_failed_task_does_not_stop_others(tmp_path, caplog):
    cluster = FakeCluster()
    cluster.add(SERVICE, "present", "ns")
    tasks = [
        _get("missing.yaml", SERVICE, "missing", "ns"),
        _get("unresolved.yaml", SERVICE, "present", ""),
        _get("present.yaml", SERVICE, "present", "ns"),
    ]

    report = ExportRunner(cluster, tmp_path).run(tasks)

    assert not (tmp_path / "missing.yaml").exists()
    assert not (tmp_path / "unresolved.yaml").exists()
    assert (tmp_path / "present.yaml").exists()
    assert report.skipped == ["missing.yaml", "unresolved.yaml"]
    assert "Failed to get Service missing" in caplog.text


def test_optional_object_skipped_when_absent(tmp_path, caplog):
    cluster = FakeCluster()
    task = _get("operator-config.yaml", DEVWORKSPACE_OPERATOR_CONFIG, "devworkspace-operator-config", "ns", optional=True)

    report = ExportRunner(cluster, tmp_path).run([task])

    assert report.written == []
    assert report.skipped == []
    assert "Failed" not in caplog.text


def test_optional_object_written_when_present(tmp_path):
    cluster = FakeCluster()
    cluster.add(DEVWORKSPACE_OPERATOR_CONFIG, "devworkspace-operator-config", "ns")
    task = _get("operator-config.yaml", DEVWORKSPACE_OPERATOR_CONFIG, "devworkspace-operator-config", "ns", optional=True)

    ExportRunner(cluster, tmp_path).run([task])

    assert (tmp_path / "operator-config.yaml").exists()


def test_logs_for_containers_and_init_containers(tmp_path):
    cluster = FakeCluster()
    add_deployment(cluster, "che", "che-ns", containers=("che", "sidecar"), init_containers=("setup",))
    cluster.logs[("che-ns", "che", "che")] = "server started\n"
    cluster.logs[("che-ns", "che", "setup")] = "setup done\n"
    task = ExportTask(output_subpath="checluster/che", action=ExportAction.LOGS, resource=DEPLOYMENT, name="che", namespace="che-ns")

    ExportRunner(cluster, tmp_path).run([task])

    assert (tmp_path / "checluster/che/che.che.log").read_text() == "server started\n"
    assert (tmp_path / "checluster/che/che.init-setup.log").read_text() == "setup done\n"
    # Sidecar has no logs (pod not running); skipped without failing
    assert not (tmp_path / "checluster/che/che.sidecar.log").exists()


def test_events_text_table(tmp_path):
    cluster = FakeCluster()
    cluster.add(
        EVENT,
        "ev1",
        "ns",
        type="Warning",
        reason="FailedMount",
        message="MountVolume.SetUp failed for volume [claim-devworkspace]",
        involvedObject={"kind": "Pod", "name": "workspace-abc"},
        lastTimestamp="2024-01-01T00:00:00Z",
    )
    task = ExportTask(output_subpath="events.txt", action=ExportAction.LIST, resource=EVENT, namespace="ns", output_format=OutputFormat.TEXT)

    ExportRunner(cluster, tmp_path).run([task])

    text = (tmp_path / "events.txt").read_text()
    assert "LAST SEEN" in text
    assert "FailedMount" in text
    assert "pod/workspace-abc" in text
    assert "[claim-devworkspace]" in text


def test_events_table_empty():
    assert events_table({"items": []}, "che-ns") == "No resources found in che-ns namespace.\n"


def test_format_age():
    now = datetime(2024, 1, 3, tzinfo=timezone.utc)
    assert format_age(datetime(2024, 1, 2, 23, 59, 30, tzinfo=timezone.utc), now) == "30s"
    assert format_age(datetime(2024, 1, 2, 23, 0, tzinfo=timezone.utc), now) == "60m"
    assert format_age(datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc), now) == "12h"
    assert format_age(datetime(2024, 1, 1, tzinfo=timezone.utc), now) == "2d"
    assert format_age(datetime(2023, 12, 30, tzinfo=timezone.utc), now) == "4d"
    assert format_age(None, now) == "<unknown>"
