"""
Per-platform import profile resolution.

A profile captures what a platform declares (requested format, override
flag, quality) and what is actually in effect once "automatic" requests
have been resolved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .formats import DEFAULT_PLATFORM, TextureFormat, parse_format

# Strategy used to resolve an automatic texture format for a platform.
AutomaticFormatResolver = Callable[[str], TextureFormat]


@dataclass(frozen=True)
class RawPlatformSettings:
    """Import declaration exactly as the asset store exposes it."""

    format: TextureFormat = TextureFormat.AUTOMATIC
    overridden: bool = False
    compression_quality: int = 50

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", parse_format(self.format))


@dataclass(frozen=True)
class ImportProfile:
    platform: str
    is_default_platform: bool
    requested_format: TextureFormat
    is_using_default_settings: bool
    resolved_format: TextureFormat
    compression_quality: int
    description: str

    @property
    def is_explicit_override(self) -> bool:
        return not self.is_default_platform and not self.is_using_default_settings


def describe(resolved: TextureFormat, quality: int, *, automatic: bool) -> str:
    if automatic:
        if resolved is TextureFormat.AUTOMATIC:
            text = "Automatic"
        else:
            text = f"Automatic -> {resolved.value}"
    else:
        text = resolved.value
    return f"{text}[Q{quality}]"


def resolve_texture_profile(
    platform: str,
    raw: Optional[RawPlatformSettings],
    automatic_format: AutomaticFormatResolver,
) -> Optional[ImportProfile]:
    """Resolve a standalone texture's declaration for *platform*.

    Automatic requests, and non-default platforms without an override, are
    resolved through *automatic_format*.
    """
    if raw is None:
        return None
    is_default = platform == DEFAULT_PLATFORM
    automatic = raw.format is TextureFormat.AUTOMATIC or (
        not is_default and not raw.overridden
    )
    if automatic:
        resolved = parse_format(automatic_format(platform))
    else:
        resolved = raw.format
    return ImportProfile(
        platform=platform,
        is_default_platform=is_default,
        requested_format=raw.format,
        is_using_default_settings=automatic,
        resolved_format=resolved,
        compression_quality=raw.compression_quality,
        description=describe(resolved, raw.compression_quality, automatic=automatic),
    )


def resolve_atlas_profile(
    platform: str,
    raw: Optional[RawPlatformSettings],
    is_default_platform: bool,
    default_format: TextureFormat,
) -> Optional[ImportProfile]:
    """Resolve an atlas container's declaration for *platform*.

    Platforms without an override inherit the atlas's own default-platform
    format; the default platform always resolves to what it declares.
    """
    if raw is None:
        return None
    using_default = not raw.overridden
    automatic = not is_default_platform and using_default
    resolved = parse_format(default_format) if automatic else raw.format
    return ImportProfile(
        platform=platform,
        is_default_platform=is_default_platform,
        requested_format=raw.format,
        is_using_default_settings=using_default,
        resolved_format=resolved,
        compression_quality=raw.compression_quality,
        description=describe(resolved, raw.compression_quality, automatic=automatic),
    )
