"""Export layer: plan, execute and archive the collected data."""

from che_debug_info.export.archive import archive_results
from che_debug_info.export.models import ExportAction, ExportTask, OutputFormat
from che_debug_info.export.plan import build_export_plan, service_name_for
from che_debug_info.export.runner import ExportReport, ExportRunner

__all__ = [
    "archive_results",
    "build_export_plan",
    "service_name_for",
    "ExportAction",
    "ExportReport",
    "ExportRunner",
    "ExportTask",
    "OutputFormat",
]
