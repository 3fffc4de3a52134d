from __future__ import annotations
import argparse
import sys
from typing import List, Optional

from .commands import (
    scan as cmd_scan,
    normalize as cmd_normalize,
    fix_automatic as cmd_fix_automatic,
    patterns as cmd_patterns,
)
from ..core.aggregator import SortOrder
from ..core.batch import BatchScope, DEFAULT_FIX_FORMAT
from ..core.formats import ANDROID, TextureFormat, canonical_platform


def entrypoint():
    sys.exit(main())


def _add_project_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--manifest",
        type=str,
        required=True,
        help="Project manifest (JSON export of assets and import settings)",
    )
    p.add_argument(
        "--project-root",
        type=str,
        default=None,
        help="Project directory used to read image files (defaults to the manifest folder)",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Configuration file (defaults to $TEXTURE_HUNTER_CONFIG or <root>/.texture_hunter.json)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Texture Hunter: atlas membership and compression settings audit"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    s = sub.add_parser("scan", help="Analyze atlases and textures and list warnings")
    _add_project_args(s)
    s.add_argument(
        "--sort",
        type=str,
        choices=[o.value for o in SortOrder],
        default=SortOrder.SEVERITY_DESC.value,
        help="Output order (default: severity-desc)",
    )
    s.add_argument(
        "--warnings-only",
        action="store_true",
        help="Only list entries with warning level 2 or higher",
    )
    s.add_argument(
        "--path-filter", type=str, default=None, help="Only list paths containing this text"
    )
    s.add_argument("--report", type=str, default=None, help="Write a JSON report here")
    s.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")

    n = sub.add_parser(
        "normalize", help="Normalize crunch/ASTC quality and ASTC block sizes"
    )
    _add_project_args(n)
    n.add_argument(
        "--platform", type=canonical_platform, default=ANDROID, help="Platform to normalize"
    )
    n.add_argument(
        "--scope",
        type=str,
        choices=[s.value for s in BatchScope],
        default=BatchScope.ALL.value,
    )
    n.add_argument("--crunch-quality", type=int, default=None)
    n.add_argument("--astc-quality", type=int, default=None)
    n.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the changes without writing the manifest",
    )

    f = sub.add_parser(
        "fix-automatic",
        help="Set an explicit format on flagged entries still using automatic compression",
    )
    _add_project_args(f)
    f.add_argument("--platform", type=canonical_platform, default=ANDROID)
    f.add_argument(
        "--scope",
        type=str,
        choices=[s.value for s in BatchScope],
        default=BatchScope.ALL.value,
    )
    f.add_argument(
        "--format",
        type=str,
        choices=[fmt.value for fmt in TextureFormat if fmt is not TextureFormat.AUTOMATIC],
        default=DEFAULT_FIX_FORMAT.value,
    )
    f.add_argument("--quality", type=int, default=None)
    f.add_argument("--dry-run", action="store_true")

    p = sub.add_parser("patterns", help="Show or edit ignore patterns for reports")
    p.add_argument("--config", type=str, default=None)
    p.add_argument("--project-root", type=str, default=None)
    p.add_argument("--add", action="append", default=None, help="Regex to ignore")
    p.add_argument("--remove", action="append", default=None)
    p.add_argument("--reset", action="store_true", help="Restore the default patterns")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "scan":
        return cmd_scan.run(args)
    elif args.command == "normalize":
        return cmd_normalize.run(args)
    elif args.command == "fix-automatic":
        return cmd_fix_automatic.run(args)
    elif args.command == "patterns":
        return cmd_patterns.run(args)
    return 2


if __name__ == "__main__":
    sys.exit(main())
