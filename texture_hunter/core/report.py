"""
Report export for scan results.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .aggregator import ScanResult
from .models import AtlasAsset, TextureAsset


def _profiles_to_dict(profiles) -> Dict[str, Any]:
    return {
        platform: {
            "requested": profile.requested_format.value,
            "resolved": profile.resolved_format.value,
            "quality": profile.compression_quality,
            "automatic": profile.is_using_default_settings,
            "description": profile.description,
        }
        for platform, profile in profiles.items()
    }


def atlas_to_dict(atlas: AtlasAsset) -> Dict[str, Any]:
    return {
        "path": atlas.path,
        "type": atlas.type_name,
        "size": atlas.size_bytes,
        "severity": atlas.severity,
        "sprites": atlas.sprite_count,
        "packables": [
            {
                "key": rule.key,
                "kind": rule.kind.value,
                "textures": [texture.path for texture in rule.matches],
            }
            for rule in atlas.rules
        ],
        "platforms": _profiles_to_dict(atlas.import_profiles),
        "warnings": list(atlas.warnings),
    }


def texture_to_dict(texture: TextureAsset) -> Dict[str, Any]:
    geometry = texture.geometry
    return {
        "path": texture.path,
        "type": texture.type_name,
        "size": texture.size_bytes,
        "severity": texture.severity,
        "width": geometry.width if geometry else None,
        "height": geometry.height if geometry else None,
        "addressable": texture.is_addressable,
        "in_resources": texture.in_resources,
        "platforms": _profiles_to_dict(texture.import_profiles),
        "warnings": list(texture.warnings),
    }


def result_to_dict(
    result: ScanResult,
    atlases: Optional[Iterable[AtlasAsset]] = None,
    textures: Optional[Iterable[TextureAsset]] = None,
) -> Dict[str, Any]:
    atlases = result.atlases if atlases is None else atlases
    textures = result.textures if textures is None else textures
    return {
        "summary": result.summary(),
        "atlases": [atlas_to_dict(a) for a in atlases],
        "textures": [texture_to_dict(t) for t in textures],
    }


def write_report(data: Dict[str, Any], path: Path, pretty: bool = False) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    indent = 2 if pretty else None
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)
    return path


def _platform_columns(profiles) -> str:
    return "  ".join(f"{platform}: {p.description}" for platform, p in profiles.items())


def format_atlas_lines(atlases: Iterable[AtlasAsset]) -> List[str]:
    lines: List[str] = []
    for index, atlas in enumerate(atlases):
        lines.append(
            f"{index:>4}  W{atlas.severity}  {atlas.type_name:<12} {atlas.name:<40} "
            f"Sprites: {atlas.sprite_count:<5} {_platform_columns(atlas.import_profiles)}"
        )
        for warning in atlas.warnings:
            lines.append(f"        ! {warning}")
    return lines


def format_texture_lines(textures: Iterable[TextureAsset]) -> List[str]:
    lines: List[str] = []
    for index, texture in enumerate(textures):
        dims = str(texture.geometry) if texture.geometry else "unknown"
        lines.append(
            f"{index:>4}  W{texture.severity}  {texture.type_name:<12} {texture.path:<60} "
            f"{texture.readable_size:>10}  {dims:<11} "
            f"{_platform_columns(texture.import_profiles)}"
        )
        for warning in texture.warnings:
            lines.append(f"        ! {warning}")
    return lines
