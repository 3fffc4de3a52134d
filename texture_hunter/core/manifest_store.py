"""
Asset store backed by a JSON project manifest.

The manifest is an export of the project's asset database: every asset
path with its type, and the importer or atlas declarations the engine
reads and rewrites. Pixel dimensions and file sizes that the manifest
omits are read from the project files themselves.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field, field_validator

from .formats import (
    ANDROID,
    DEFAULT_PLATFORM,
    IOS,
    TextureFormat,
    canonical_platform,
    parse_format,
)
from .logger import get_logger
from .models import TextureGeometry
from .profiles import RawPlatformSettings
from .store import AtlasDeclaration, TextureImporterSettings

log = get_logger(__name__)

MANIFEST_VERSION = 1

DEFAULT_AUTOMATIC_FORMATS: Dict[str, TextureFormat] = {
    DEFAULT_PLATFORM: TextureFormat.RGBA32,
    ANDROID: TextureFormat.ETC2_RGBA8,
    IOS: TextureFormat.ASTC_6x6,
}


class PlatformSettingsModel(BaseModel):
    format: TextureFormat = TextureFormat.AUTOMATIC
    overridden: bool = False
    quality: int = Field(50, ge=0, le=100)

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value):
        return parse_format(value)

    def to_raw(self) -> RawPlatformSettings:
        return RawPlatformSettings(
            format=self.format,
            overridden=self.overridden,
            compression_quality=self.quality,
        )

    @classmethod
    def from_raw(cls, raw: RawPlatformSettings) -> "PlatformSettingsModel":
        return cls(
            format=raw.format,
            overridden=raw.overridden,
            quality=raw.compression_quality,
        )


class ImporterModel(BaseModel):
    mipmap_enabled: bool = False
    is_readable: bool = False
    platforms: Dict[str, PlatformSettingsModel] = Field(default_factory=dict)
    automatic_formats: Dict[str, TextureFormat] = Field(default_factory=dict)

    @field_validator("automatic_formats", mode="before")
    @classmethod
    def _parse_automatic(cls, value):
        if not isinstance(value, dict):
            return value
        return {canonical_platform(k): parse_format(v) for k, v in value.items()}

    @field_validator("platforms", mode="before")
    @classmethod
    def _canonical_platforms(cls, value):
        if not isinstance(value, dict):
            return value
        return {canonical_platform(k): v for k, v in value.items()}


class AtlasModel(BaseModel):
    packables: List[str] = Field(default_factory=list)
    generate_mipmaps: bool = False
    platforms: Dict[str, PlatformSettingsModel] = Field(default_factory=dict)

    @field_validator("platforms", mode="before")
    @classmethod
    def _canonical_platforms(cls, value):
        if not isinstance(value, dict):
            return value
        return {canonical_platform(k): v for k, v in value.items()}


class AssetEntryModel(BaseModel):
    path: str
    type: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    addressable: bool = False
    importer: Optional[ImporterModel] = None
    atlas: Optional[AtlasModel] = None


class ManifestModel(BaseModel):
    version: int = MANIFEST_VERSION
    assets: List[AssetEntryModel] = Field(default_factory=list)


class ManifestAssetStore:
    """In-memory view of a project manifest with write-back on :meth:`flush`."""

    def __init__(
        self,
        manifest: ManifestModel,
        *,
        path: Optional[Path] = None,
        project_root: Optional[Path] = None,
    ):
        self.manifest = manifest
        self.path = path
        self.project_root = project_root
        self._entries: Dict[str, AssetEntryModel] = {}
        for entry in manifest.assets:
            if entry.path in self._entries:
                log.warning(f"Asset [{entry.path}] is listed in the manifest twice")
                continue
            self._entries[entry.path] = entry
        self._geometry_cache: Dict[str, Optional[TextureGeometry]] = {}
        self.reimported: List[str] = []
        self._dirty = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> "ManifestAssetStore":
        return cls(ManifestModel.model_validate(data), **kwargs)

    @classmethod
    def load(cls, path: Path, project_root: Optional[Path] = None) -> "ManifestAssetStore":
        data = json.loads(path.read_text(encoding="utf-8"))
        log.debug(f"Loaded manifest: {path}")
        return cls(
            ManifestModel.model_validate(data),
            path=path,
            project_root=project_root if project_root is not None else path.parent,
        )

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def _entry(self, path: str) -> AssetEntryModel:
        try:
            return self._entries[path]
        except KeyError:
            raise KeyError(f"Unknown asset path: {path}") from None

    def _project_file(self, path: str) -> Optional[Path]:
        if self.project_root is None:
            return None
        return self.project_root / path

    # -- reading ---------------------------------------------------------

    def all_asset_paths(self) -> Iterable[str]:
        return list(self._entries)

    def asset_type(self, path: str) -> Optional[str]:
        entry = self._entries.get(path)
        return entry.type if entry is not None else None

    def file_size(self, path: str) -> int:
        entry = self._entry(path)
        if entry.size is not None:
            return entry.size
        file_path = self._project_file(path)
        if file_path is None:
            return 0
        try:
            return os.stat(file_path).st_size
        except OSError as e:
            log.debug(f"Unable to stat {file_path}: {e}")
            return 0

    def texture_geometry(self, path: str) -> Optional[TextureGeometry]:
        if path in self._geometry_cache:
            return self._geometry_cache[path]
        entry = self._entry(path)
        geometry = None
        if entry.width is not None and entry.height is not None:
            geometry = TextureGeometry(entry.width, entry.height)
        else:
            geometry = self._read_geometry(path)
        self._geometry_cache[path] = geometry
        return geometry

    def _read_geometry(self, path: str) -> Optional[TextureGeometry]:
        file_path = self._project_file(path)
        if file_path is None or not file_path.exists():
            return None
        try:
            with Image.open(file_path) as img:
                width, height = img.size
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
            log.warning(f"Failed to read image {file_path}: {e}")
            return None
        return TextureGeometry(width, height)

    def load_texture_importer(self, path: str) -> Optional[TextureImporterSettings]:
        importer = self._entry(path).importer
        if importer is None:
            return None
        return TextureImporterSettings(
            mipmap_enabled=importer.mipmap_enabled,
            is_readable=importer.is_readable,
            platforms={k: v.to_raw() for k, v in importer.platforms.items()},
        )

    def automatic_format(self, path: str, platform: str) -> TextureFormat:
        importer = self._entry(path).importer
        if importer is not None and platform in importer.automatic_formats:
            return importer.automatic_formats[platform]
        return DEFAULT_AUTOMATIC_FORMATS.get(platform, TextureFormat.AUTOMATIC)

    def load_atlas(self, path: str) -> Optional[AtlasDeclaration]:
        atlas = self._entry(path).atlas
        if atlas is None:
            return None
        return AtlasDeclaration(
            handle=path,
            packables=list(atlas.packables),
            generate_mipmaps=atlas.generate_mipmaps,
            platforms={k: v.to_raw() for k, v in atlas.platforms.items()},
        )

    def is_addressable(self, path: str) -> bool:
        entry = self._entries.get(path)
        return bool(entry and entry.addressable)

    # -- writing ---------------------------------------------------------

    def save_texture_platform_settings(
        self, path: str, platform: str, settings: RawPlatformSettings
    ) -> None:
        entry = self._entry(path)
        if entry.importer is None:
            entry.importer = ImporterModel()
        entry.importer.platforms[platform] = PlatformSettingsModel.from_raw(settings)
        self._dirty = True

    def save_atlas_platform_settings(
        self, handle: Any, platform: str, settings: RawPlatformSettings
    ) -> None:
        entry = self._entry(str(handle))
        if entry.atlas is None:
            raise ValueError(f"Asset [{handle}] is not an atlas")
        entry.atlas.platforms[platform] = PlatformSettingsModel.from_raw(settings)
        self._dirty = True

    def reimport(self, path: str) -> None:
        self._entry(path)
        self.reimported.append(path)

    def flush(self, path: Optional[Path] = None) -> Optional[Path]:
        """Write the manifest back if anything changed."""
        target = path or self.path
        if not self._dirty or target is None:
            return None
        target.write_text(
            json.dumps(self.manifest.model_dump(mode="json"), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        self._dirty = False
        log.info(f"Saved manifest: {target}")
        return target
