from __future__ import annotations

from argparse import Namespace

from ...core.batch import BatchReport
from ...core.logger import get_logger
from .common import load_hunter

log = get_logger(__name__)


def print_report(report: BatchReport) -> None:
    for line in report.summary_lines:
        print(line)
    mode = " (dry run)" if report.dry_run else ""
    print(
        f"{report.operation} {report.platform} [{report.scope.value}]{mode}: "
        f"eligible {report.eligible}, planned {report.planned}, "
        f"changed {report.changed}, failed {report.failed}"
    )


def run(args: Namespace) -> int:
    loaded = load_hunter(args)
    if loaded is None:
        return 1
    hunter, store, _config = loaded

    if hunter.scan() is None:
        log.error("Scan did not complete")
        return 1

    report = hunter.normalize(
        args.platform,
        args.scope,
        dry_run=args.dry_run,
        crunch_quality=getattr(args, "crunch_quality", None),
        astc_quality=getattr(args, "astc_quality", None),
    )
    if not args.dry_run:
        store.flush()
    print_report(report)
    return 1 if report.failed else 0
