from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .profiles import ImportProfile
from .severity import SeverityState

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def readable_size(size_bytes: int) -> str:
    """Human readable byte size, e.g. ``1536 -> '1.5 KB'``."""
    value = float(size_bytes)
    order = 0
    while value >= 1024 and order < len(_SIZE_UNITS) - 1:
        order += 1
        value /= 1024
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[order]}"


def readable_type_name(type_name: Optional[str]) -> str:
    if not type_name:
        return "Unknown Type"
    return type_name.replace("UnityEngine.", "").replace("UnityEditor.", "")


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


def _is_power_of_two(value: int) -> bool:
    return value != 0 and (value & (value - 1)) == 0


@dataclass(frozen=True)
class TextureGeometry:
    width: int
    height: int

    @property
    def is_pot(self) -> bool:
        return _is_power_of_two(self.width) and _is_power_of_two(self.height)

    @property
    def is_multiple_of_four(self) -> bool:
        return self.width % 4 == 0 and self.height % 4 == 0

    def exceeds(self, limit: int) -> bool:
        return self.width > limit or self.height > limit

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class RuleKind(str, Enum):
    EXACT_FILE = "file"
    FOLDER_PREFIX = "folder"


@dataclass(eq=False)
class PackableRule:
    """One packable entry of an atlas: a single file or a folder prefix."""

    key: str
    matches: List["TextureAsset"] = field(default_factory=list)

    @property
    def kind(self) -> RuleKind:
        # Kind is inferred from the key's shape, never declared.
        _, ext = posixpath.splitext(normalize_path(self.key).rstrip("/"))
        return RuleKind.EXACT_FILE if ext else RuleKind.FOLDER_PREFIX

    @property
    def is_folder(self) -> bool:
        return self.kind is RuleKind.FOLDER_PREFIX


@dataclass(eq=False)
class AtlasAsset(SeverityState):
    path: str
    size_bytes: int = 0
    type_name: str = "SpriteAtlas"
    rules: List[PackableRule] = field(default_factory=list)
    handle: Any = None
    import_profiles: Dict[str, ImportProfile] = field(default_factory=dict)
    sprite_count: int = 0

    @property
    def name(self) -> str:
        return posixpath.basename(normalize_path(self.path))

    @property
    def readable_size(self) -> str:
        return readable_size(self.size_bytes)

    def update_sprite_count(self) -> int:
        self.sprite_count = sum(len(rule.matches) for rule in self.rules)
        return self.sprite_count

    def __repr__(self) -> str:
        return f"AtlasAsset({self.path!r}, severity={self.severity})"


@dataclass(eq=False)
class TextureAsset(SeverityState):
    path: str
    size_bytes: int = 0
    type_name: str = "Texture2D"
    geometry: Optional[TextureGeometry] = None
    is_addressable: bool = False
    import_profiles: Dict[str, ImportProfile] = field(default_factory=dict)
    atlas: Optional[AtlasAsset] = None

    @property
    def name(self) -> str:
        return posixpath.basename(normalize_path(self.path))

    @property
    def in_resources(self) -> bool:
        return "/Resources/" in normalize_path(self.path)

    @property
    def readable_size(self) -> str:
        return readable_size(self.size_bytes)

    def __repr__(self) -> str:
        return f"TextureAsset({self.path!r}, severity={self.severity})"
