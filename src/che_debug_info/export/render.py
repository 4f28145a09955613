"""Render exported objects as YAML, JSON or human-readable text."""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from che_debug_info.cluster.query import items, query

TABLE_WIDTH = 240


def to_yaml(obj: Any) -> str:
    return yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)


def to_json(obj: Any) -> str:
    return json.dumps(obj, indent=4, default=str) + "\n"


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_age(since: datetime | None, now: datetime) -> str:
    """Short age like kubectl prints it: 42s, 7m, 3h, 2d."""
    if since is None:
        return "<unknown>"
    seconds = max(int((now - since).total_seconds()), 0)
    if seconds < 120:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 120:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 48:
        return f"{hours}h"
    return f"{hours // 24}d"


def _event_last_seen(event: dict[str, Any]) -> datetime | None:
    for path in ("lastTimestamp", "eventTime", "firstTimestamp", "metadata.creationTimestamp"):
        ts = _parse_timestamp(query(event, path, default=None))
        if ts is not None:
            return ts
    return None


def events_table(list_obj: dict[str, Any], namespace: str | None = None, now: datetime | None = None) -> str:
    """Render events the way ``kubectl get events`` lists them, oldest first."""
    events = items(list_obj)
    if not events:
        where = f" in {namespace} namespace" if namespace else ""
        return f"No resources found{where}.\n"
    now = now or datetime.now(timezone.utc)
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    events = sorted(events, key=lambda ev: _event_last_seen(ev) or oldest)

    table = Table(box=None, show_edge=False, pad_edge=False, header_style="")
    for column in ("LAST SEEN", "TYPE", "REASON", "OBJECT"):
        table.add_column(column, no_wrap=True)
    table.add_column("MESSAGE", overflow="fold")
    for ev in events:
        involved = f"{query(ev, 'involvedObject.kind').lower()}/{query(ev, 'involvedObject.name')}"
        cells = (
            format_age(_event_last_seen(ev), now),
            query(ev, "type"),
            query(ev, "reason"),
            involved,
            str(query(ev, "message")).strip(),
        )
        # Plain Text cells, no console markup parsing
        table.add_row(*(Text(str(cell)) for cell in cells))

    buf = io.StringIO()
    Console(file=buf, width=TABLE_WIDTH, color_system=None, highlight=False, soft_wrap=False).print(table)
    return buf.getvalue()


def render_text(payload: dict[str, Any], field: str | None = None, namespace: str | None = None) -> str:
    """Human-readable output: a single field of an object, or a table of listed events."""
    if field:
        value = query(payload, field)
        return f"{value}\n"
    return events_table(payload, namespace)
