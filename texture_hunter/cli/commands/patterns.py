from __future__ import annotations

import re
from argparse import Namespace
from pathlib import Path

from pydantic import ValidationError

from ...core.logger import get_logger
from .common import resolve_config

log = get_logger(__name__)


def run(args: Namespace) -> int:
    """List or edit the ignore patterns stored in the configuration."""
    root = Path(args.project_root) if getattr(args, "project_root", None) else None
    config = resolve_config(args, root)
    try:
        model = config.load()
    except ValidationError as e:
        log.error(f"Invalid configuration {config.path}: {e}")
        return 1
    patterns = model.search_patterns
    changed = False

    if getattr(args, "reset", False):
        patterns.reset()
        changed = True

    for pattern in getattr(args, "add", None) or []:
        try:
            re.compile(pattern)
        except re.error as e:
            log.error(f"Invalid pattern {pattern!r}: {e}")
            return 1
        if pattern not in patterns.ignored_patterns:
            patterns.ignored_patterns.append(pattern)
            changed = True

    for pattern in getattr(args, "remove", None) or []:
        if pattern in patterns.ignored_patterns:
            patterns.ignored_patterns.remove(pattern)
            changed = True
        else:
            log.warning(f"Pattern not present: {pattern!r}")

    if changed:
        config.save(model)

    print(f"Patterns ignored in output: {len(patterns.ignored_patterns)}")
    for pattern in patterns.ignored_patterns:
        print(pattern)
    return 0
