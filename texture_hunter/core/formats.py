"""
Texture compression formats and platform names.

Format names follow the editor's importer enumeration so that manifests
exported from a project can be read without translation.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional, Tuple


class TextureFormat(str, Enum):
    """Compression format declared or resolved for a platform."""

    AUTOMATIC = "Automatic"

    ALPHA8 = "Alpha8"
    RGB16 = "RGB16"
    RGBA16 = "RGBA16"
    RGB24 = "RGB24"
    RGBA32 = "RGBA32"
    ARGB32 = "ARGB32"

    ETC_RGB4 = "ETC_RGB4"
    ETC_RGB4_CRUNCHED = "ETC_RGB4Crunched"
    ETC2_RGB4 = "ETC2_RGB4"
    ETC2_RGBA8 = "ETC2_RGBA8"
    ETC2_RGBA8_CRUNCHED = "ETC2_RGBA8Crunched"

    DXT1 = "DXT1"
    DXT5 = "DXT5"
    DXT1_CRUNCHED = "DXT1Crunched"
    DXT5_CRUNCHED = "DXT5Crunched"
    BC7 = "BC7"

    PVRTC_RGB2 = "PVRTC_RGB2"
    PVRTC_RGBA2 = "PVRTC_RGBA2"
    PVRTC_RGB4 = "PVRTC_RGB4"
    PVRTC_RGBA4 = "PVRTC_RGBA4"

    ASTC_4x4 = "ASTC_4x4"
    ASTC_5x5 = "ASTC_5x5"
    ASTC_6x6 = "ASTC_6x6"
    ASTC_8x8 = "ASTC_8x8"
    ASTC_10x10 = "ASTC_10x10"
    ASTC_12x12 = "ASTC_12x12"

    def __str__(self) -> str:
        return self.value

    @property
    def lowered(self) -> str:
        return self.value.lower()

    @property
    def is_crunched(self) -> bool:
        return "crunch" in self.lowered

    @property
    def is_pvrtc(self) -> bool:
        return "pvrtc" in self.lowered

    @property
    def is_astc(self) -> bool:
        return self.value.startswith("ASTC_")

    @property
    def astc_block_size(self) -> Optional[int]:
        """Edge length of the ASTC block (``ASTC_6x6`` -> 6), None otherwise."""
        if not self.is_astc:
            return None
        return int(self.value[len("ASTC_"):].split("x", 1)[0])


DEFAULT_PLATFORM = "Default"
IOS = "iOS"
ANDROID = "Android"

# Order in which per-platform profiles are resolved for standalone textures.
ANALYZED_PLATFORMS: Tuple[str, ...] = (IOS, ANDROID, DEFAULT_PLATFORM)
MOBILE_PLATFORMS: Tuple[str, ...] = (IOS, ANDROID)

# Atlas containers store platforms under their build-target names.
PLATFORM_ALIASES = {
    "DefaultTexturePlatform": DEFAULT_PLATFORM,
    "iPhone": IOS,
}

CRUNCHED_ETC2 = TextureFormat.ETC2_RGBA8_CRUNCHED
REDUNDANT_ASTC: FrozenSet[TextureFormat] = frozenset(
    {TextureFormat.ASTC_4x4, TextureFormat.ASTC_5x5}
)
MIN_ASTC = TextureFormat.ASTC_6x6

DEFAULT_CRUNCH_QUALITY = 30
DEFAULT_ASTC_QUALITY = 50

DEFAULT_RECOMMENDED_FORMATS: FrozenSet[TextureFormat] = frozenset(
    {
        TextureFormat.ASTC_6x6,
        TextureFormat.ASTC_8x8,
        TextureFormat.ASTC_10x10,
        TextureFormat.ASTC_12x12,
        TextureFormat.ETC2_RGBA8_CRUNCHED,
        TextureFormat.ETC_RGB4_CRUNCHED,
    }
)


def canonical_platform(name: str) -> str:
    return PLATFORM_ALIASES.get(name, name)


def parse_format(value) -> TextureFormat:
    """Accept a format enum member or its name, case-insensitively."""
    if isinstance(value, TextureFormat):
        return value
    text = str(value).strip()
    try:
        return TextureFormat(text)
    except ValueError:
        lowered = text.lower()
        for member in TextureFormat:
            if member.lowered == lowered:
                return member
        raise
