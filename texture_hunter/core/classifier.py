"""
Rule tables that turn resolved import profiles, geometry and atlas
membership into severity escalations and warning messages.

Rules run in a fixed order and do not suppress each other; only the
"cannot load settings" rules stop the rest of their pipeline.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from .config import AnalysisSettings
from .formats import (
    ANALYZED_PLATFORMS,
    ANDROID,
    DEFAULT_PLATFORM,
    DEFAULT_RECOMMENDED_FORMATS,
    IOS,
    MOBILE_PLATFORMS,
    TextureFormat,
)
from .models import AtlasAsset, TextureAsset
from .profiles import (
    AutomaticFormatResolver,
    ImportProfile,
    resolve_atlas_profile,
    resolve_texture_profile,
)
from .severity import SEVERITY_NOTICE, SEVERITY_WARNING
from .store import AtlasDeclaration, TextureImporterSettings

SIZE_LIMIT = 4096

WARNING_NO_DEFAULT_SETTINGS = "Unable to retrieve default importer settings"
WARNING_NOT_RECOMMENDED = "{platform}: does not use recommended compression ({format})"
WARNING_MIPMAPS = "Mipmap is enabled. Is it intended?"
WARNING_READABLE = "Texture is readable. Is it intended?"
WARNING_ATLAS_AUTOMATIC = "Atlas uses Automatic compression. Is it intended?"
WARNING_TEXTURE_AUTOMATIC = "Texture uses Automatic compression. Is it intended?"
WARNING_EMPTY_PACKABLES = "Packables list is empty"
WARNING_NO_SPRITES = (
    "Unable to detect sprites. Might be an issue with packables, or sprites "
    "live in subfolders that could not be resolved. Marked as a warning "
    "because this atlas configuration is likely to confuse users."
)
WARNING_DIMENSIONS = (
    "Texture is neither POT nor multiple of 4: possible compression issue"
)
WARNING_OVERSIZE = f"Size over {SIZE_LIMIT}"
WARNING_NO_IMPORTER = "Unable to load an importer"
WARNING_UNKNOWN_DIMENSIONS = "Unable to read texture dimensions"
WARNING_CRUNCH = "{platform}: only multiple of 4 textures can use crunch compression"
WARNING_PVRTC = "{platform}: only POT textures can use PVRTC format"

# Default first so sibling platforms can inherit its format.
ATLAS_PLATFORM_ORDER = (DEFAULT_PLATFORM, ANDROID, IOS)


def _atlas_platforms(declaration: AtlasDeclaration) -> List[str]:
    ordered = [p for p in ATLAS_PLATFORM_ORDER if p in declaration.platforms]
    ordered.extend(p for p in declaration.platforms if p not in ordered)
    return ordered


class Classifier:
    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        recommended_formats: Optional[Iterable[TextureFormat]] = None,
    ):
        self.settings = settings or AnalysisSettings()
        if recommended_formats is None:
            recommended_formats = DEFAULT_RECOMMENDED_FORMATS
        self.recommended_formats: Set[TextureFormat] = set(recommended_formats)

    def is_recommended(self, fmt: TextureFormat) -> bool:
        return fmt in self.recommended_formats

    def classify_atlas(
        self, atlas: AtlasAsset, declaration: Optional[AtlasDeclaration]
    ) -> None:
        default_raw = (
            declaration.platform_settings(DEFAULT_PLATFORM) if declaration else None
        )
        if declaration is None or default_raw is None:
            atlas.flag(SEVERITY_WARNING, WARNING_NO_DEFAULT_SETTINGS)
            return

        for platform in _atlas_platforms(declaration):
            is_default = platform == DEFAULT_PLATFORM
            profile = resolve_atlas_profile(
                platform,
                declaration.platform_settings(platform),
                is_default,
                default_raw.format,
            )
            if profile is not None:
                atlas.import_profiles[platform] = profile

        for platform, profile in atlas.import_profiles.items():
            if profile.is_explicit_override and not self.is_recommended(
                profile.resolved_format
            ):
                atlas.flag(
                    SEVERITY_WARNING,
                    WARNING_NOT_RECOMMENDED.format(
                        platform=platform, format=profile.resolved_format.value
                    ),
                )

        if self.settings.mipmaps_are_errors and declaration.generate_mipmaps:
            atlas.flag(SEVERITY_WARNING, WARNING_MIPMAPS)

        if self.settings.no_overridden_compression_as_errors and _any_automatic(
            atlas.import_profiles, MOBILE_PLATFORMS
        ):
            atlas.flag(SEVERITY_WARNING, WARNING_ATLAS_AUTOMATIC)

    def post_process_atlas(self, atlas: AtlasAsset) -> None:
        atlas.update_sprite_count()
        if not atlas.rules:
            atlas.flag(SEVERITY_WARNING, WARNING_EMPTY_PACKABLES)
        elif atlas.sprite_count == 0:
            atlas.flag(SEVERITY_NOTICE, WARNING_NO_SPRITES)

    def classify_texture(
        self,
        texture: TextureAsset,
        importer: Optional[TextureImporterSettings],
        automatic_format: AutomaticFormatResolver,
    ) -> None:
        """Run the non-atlas texture rules against *texture*."""
        info = texture.geometry

        if info is None:
            texture.add_warning(WARNING_UNKNOWN_DIMENSIONS)
        else:
            if not info.is_pot and not info.is_multiple_of_four:
                texture.flag(SEVERITY_NOTICE, WARNING_DIMENSIONS)
            if self.settings.size_higher_4k_are_errors and info.exceeds(SIZE_LIMIT):
                texture.flag(SEVERITY_WARNING, WARNING_OVERSIZE)

        if importer is None:
            texture.flag(SEVERITY_WARNING, WARNING_NO_IMPORTER)
            return

        if self.settings.mipmaps_are_errors and importer.mipmap_enabled:
            texture.flag(SEVERITY_WARNING, WARNING_MIPMAPS)

        if self.settings.readable_are_errors and importer.is_readable:
            texture.flag(SEVERITY_WARNING, WARNING_READABLE)

        for platform in ANALYZED_PLATFORMS:
            profile = resolve_texture_profile(
                platform, importer.platform_settings(platform), automatic_format
            )
            if profile is not None:
                texture.import_profiles[platform] = profile

        if self.settings.no_overridden_compression_as_errors and _any_automatic(
            texture.import_profiles, MOBILE_PLATFORMS
        ):
            texture.flag(SEVERITY_WARNING, WARNING_TEXTURE_AUTOMATIC)

        for platform, profile in texture.import_profiles.items():
            fmt = profile.resolved_format
            if info is not None:
                if fmt.is_crunched and not info.is_multiple_of_four:
                    texture.flag(SEVERITY_WARNING, WARNING_CRUNCH.format(platform=platform))
                if fmt.is_pvrtc and not info.is_pot:
                    texture.flag(SEVERITY_WARNING, WARNING_PVRTC.format(platform=platform))
            if not profile.is_default_platform and not self.is_recommended(fmt):
                texture.flag(
                    SEVERITY_WARNING,
                    WARNING_NOT_RECOMMENDED.format(platform=platform, format=fmt.value),
                )


def _any_automatic(profiles: dict, platforms: Iterable[str]) -> bool:
    for platform in platforms:
        profile: Optional[ImportProfile] = profiles.get(platform)
        if profile is not None and profile.is_using_default_settings:
            return True
    return False
