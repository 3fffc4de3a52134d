from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from ...core.aggregator import SortOrder
from ...core.logger import get_logger
from ...core.report import (
    format_atlas_lines,
    format_texture_lines,
    result_to_dict,
    write_report,
)
from .common import load_hunter

log = get_logger(__name__)


def run(args: Namespace) -> int:
    loaded = load_hunter(args)
    if loaded is None:
        return 1
    hunter, _store, _config = loaded

    result = hunter.scan()
    if result is None:
        log.error("Scan did not complete")
        return 1

    order = SortOrder(getattr(args, "sort", None) or SortOrder.SEVERITY_DESC.value)
    result.sort_atlases(order)
    result.sort_textures(order)

    path_filter = getattr(args, "path_filter", None)
    warnings_only = getattr(args, "warnings_only", False)
    atlases = result.filter_atlases(path_filter, warnings_only)
    textures = result.filter_textures(path_filter, warnings_only)

    print(result.output_description)
    print(f"[{len(atlases)}] Atlases")
    for line in format_atlas_lines(atlases):
        print(line)
    print(f"[{len(textures)}] Textures (non-atlas)")
    for line in format_texture_lines(textures):
        print(line)

    report_path = getattr(args, "report", None)
    if report_path:
        out = write_report(
            result_to_dict(result, atlases, textures),
            Path(report_path),
            pretty=getattr(args, "pretty", False),
        )
        log.info(f"Wrote report: {out}")
    return 0
