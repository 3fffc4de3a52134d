from __future__ import annotations

from argparse import Namespace

from ...core.logger import get_logger
from .common import load_hunter
from .normalize import print_report

log = get_logger(__name__)


def run(args: Namespace) -> int:
    loaded = load_hunter(args)
    if loaded is None:
        return 1
    hunter, store, _config = loaded

    if hunter.scan() is None:
        log.error("Scan did not complete")
        return 1

    report = hunter.fix_automatic(
        args.platform,
        args.scope,
        target_format=args.format,
        quality=getattr(args, "quality", None),
        dry_run=args.dry_run,
    )
    if not args.dry_run:
        store.flush()
    print_report(report)
    return 1 if report.failed else 0
