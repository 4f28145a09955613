"""Compress the output directory for attaching to a bug report."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def archive_name(distribution_id: str) -> str:
    return f"{distribution_id}_debug_info"


def archive_results(out_dir: Path, distribution_id: str) -> Path:
    """
    Zip ``out_dir`` into ``<distribution>_debug_info.zip`` next to it.

    The archive contains the output directory itself, so it unpacks to the same tree.
    An existing archive of the same name is replaced.
    """
    out_dir = Path(out_dir).resolve()
    base_name = out_dir.parent / archive_name(distribution_id)
    logger.info("Compressing debug info to %s.zip", base_name.name)
    archive = shutil.make_archive(
        str(base_name),
        "zip",
        root_dir=str(out_dir.parent),
        base_dir=out_dir.name,
    )
    return Path(archive)
