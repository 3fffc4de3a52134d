"""
Asset store collaborator.

The engine never touches project files directly. Everything it needs to
know about assets, and every mutation it performs, goes through an object
implementing :class:`AssetStore`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .formats import TextureFormat
from .models import TextureGeometry
from .profiles import RawPlatformSettings

ATLAS_TYPE = "SpriteAtlas"
TEXTURE_TYPES = frozenset({"Texture", "Texture2D"})


@dataclass
class TextureImporterSettings:
    mipmap_enabled: bool = False
    is_readable: bool = False
    # Keyed by canonical platform name (Default, iOS, Android, ...).
    platforms: Dict[str, RawPlatformSettings] = field(default_factory=dict)

    def platform_settings(self, platform: str) -> Optional[RawPlatformSettings]:
        return self.platforms.get(platform)


@dataclass
class AtlasDeclaration:
    """Atlas container contents as declared in the project."""

    handle: Any
    # Project paths of packed folders and directly packed textures, in
    # declaration order. Duplicates are preserved; the scan collapses them.
    packables: List[str] = field(default_factory=list)
    generate_mipmaps: bool = False
    platforms: Dict[str, RawPlatformSettings] = field(default_factory=dict)

    def platform_settings(self, platform: str) -> Optional[RawPlatformSettings]:
        return self.platforms.get(platform)


class AssetStore(Protocol):
    def all_asset_paths(self) -> Iterable[str]: ...

    def asset_type(self, path: str) -> Optional[str]: ...

    def file_size(self, path: str) -> int: ...

    def texture_geometry(self, path: str) -> Optional[TextureGeometry]: ...

    def load_texture_importer(self, path: str) -> Optional[TextureImporterSettings]: ...

    def automatic_format(self, path: str, platform: str) -> TextureFormat: ...

    def load_atlas(self, path: str) -> Optional[AtlasDeclaration]: ...

    def save_texture_platform_settings(
        self, path: str, platform: str, settings: RawPlatformSettings
    ) -> None: ...

    def save_atlas_platform_settings(
        self, handle: Any, platform: str, settings: RawPlatformSettings
    ) -> None: ...

    def reimport(self, path: str) -> None: ...


def is_addressable(store: AssetStore, path: str) -> bool:
    """Addressable lookup is an optional store capability."""
    lookup = getattr(store, "is_addressable", None)
    if lookup is None:
        return False
    return bool(lookup(path))
