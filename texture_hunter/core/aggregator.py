from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .classifier import Classifier
from .logger import get_logger
from .models import AtlasAsset, TextureAsset
from .severity import SEVERITY_WARNING

log = get_logger(__name__)


class SortOrder(str, Enum):
    SEVERITY_DESC = "severity-desc"
    SEVERITY_ASC = "severity-asc"
    PATH_ASC = "path-asc"
    PATH_DESC = "path-desc"
    SIZE_ASC = "size-asc"
    SIZE_DESC = "size-desc"


_SORT_KEYS: Dict[SortOrder, Tuple[str, bool]] = {
    SortOrder.SEVERITY_DESC: ("severity", True),
    SortOrder.SEVERITY_ASC: ("severity", False),
    SortOrder.PATH_ASC: ("path", False),
    SortOrder.PATH_DESC: ("path", True),
    SortOrder.SIZE_ASC: ("size", False),
    SortOrder.SIZE_DESC: ("size", True),
}


def _sorted(items: List[Any], order: SortOrder, size_of: Callable[[Any], int]) -> List[Any]:
    attr, reverse = _SORT_KEYS[SortOrder(order)]
    if attr == "severity":
        key = lambda item: item.severity  # noqa: E731
    elif attr == "path":
        key = lambda item: item.path  # noqa: E731
    else:
        key = size_of
    # list.sort is stable, also with reverse=True, so ties keep discovery order.
    return sorted(items, key=key, reverse=reverse)


def is_valid_for_output(path: str, patterns: Iterable[str]) -> bool:
    return all(not pattern or re.search(pattern, path) is None for pattern in patterns)


@dataclass
class ScanResult:
    atlases: List[AtlasAsset] = field(default_factory=list)
    textures: List[TextureAsset] = field(default_factory=list)
    ignored_paths: List[str] = field(default_factory=list)

    @property
    def output_description(self) -> str:
        return f"Atlases: {len(self.atlases)}. Textures: {len(self.textures)}"

    def summary(self) -> Dict[str, Any]:
        atlas_levels = Counter(a.severity for a in self.atlases)
        texture_levels = Counter(t.severity for t in self.textures)
        return {
            "atlases": len(self.atlases),
            "textures": len(self.textures),
            "sprites": sum(a.sprite_count for a in self.atlases),
            "ignored": len(self.ignored_paths),
            "atlas_severity": dict(sorted(atlas_levels.items())),
            "texture_severity": dict(sorted(texture_levels.items())),
        }

    def sort_atlases(self, order: SortOrder = SortOrder.SEVERITY_DESC) -> None:
        self.atlases = _sorted(self.atlases, order, lambda a: a.sprite_count)

    def sort_textures(self, order: SortOrder = SortOrder.SEVERITY_DESC) -> None:
        self.textures = _sorted(self.textures, order, lambda t: t.size_bytes)

    def filter_atlases(
        self, path_contains: Optional[str] = None, warnings_only: bool = False
    ) -> List[AtlasAsset]:
        return _filter(self.atlases, path_contains, warnings_only)

    def filter_textures(
        self, path_contains: Optional[str] = None, warnings_only: bool = False
    ) -> List[TextureAsset]:
        return _filter(self.textures, path_contains, warnings_only)


def _filter(items: Sequence[Any], path_contains: Optional[str], warnings_only: bool):
    out = list(items)
    if warnings_only:
        out = [item for item in out if item.severity >= SEVERITY_WARNING]
    if path_contains:
        out = [item for item in out if path_contains in item.path]
    return out


def aggregate(
    atlases: Sequence[AtlasAsset],
    textures: Sequence[TextureAsset],
    classifier: Classifier,
    ignore_patterns: Iterable[str] = (),
) -> ScanResult:
    """Finalize a scan into a reportable result.

    *textures* are the ones left outside every atlas. Ignore patterns only
    hide entries from the result; matching and classification already ran
    over everything.
    """
    patterns = [p for p in ignore_patterns if p]
    result = ScanResult()

    for atlas in atlases:
        classifier.post_process_atlas(atlas)
        if is_valid_for_output(atlas.path, patterns):
            result.atlases.append(atlas)
        else:
            result.ignored_paths.append(atlas.path)

    for texture in textures:
        if is_valid_for_output(texture.path, patterns):
            result.textures.append(texture)
        else:
            result.ignored_paths.append(texture.path)

    result.sort_atlases(SortOrder.SEVERITY_DESC)
    result.sort_textures(SortOrder.SEVERITY_DESC)

    if result.ignored_paths:
        log.debug("Assets ignored by pattern:\n" + "\n".join(result.ignored_paths))
    log.info(result.output_description)
    return result
