"""
Resolves textures against atlas packable rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .logger import get_logger
from .models import AtlasAsset, PackableRule, TextureAsset, normalize_path
from .severity import SEVERITY_ERROR, SEVERITY_NOTICE, SEVERITY_WARNING

log = get_logger(__name__)

WARNING_DUPLICATE_IN_ADDRESSABLES = (
    "Possible duplicate in build: this texture is addressable and in atlas"
)
WARNING_DUPLICATE_IN_RESOURCES = (
    "Possible duplicate in build: this texture is in Resources and in atlas"
)
WARNING_DUPLICATE_IN_ATLAS = "Duplicate in atlas: {atlas}"
WARNING_ATLAS_SHARES_TEXTURE = "Contains texture {texture} that exists in another atlas"
WARNING_AMBIGUOUS_TEXTURE = (
    "This texture's links to atlases ({atlas}, {candidate}) are ambiguous. "
    "The packer probably resolves it deterministically, but it is marked as a "
    "warning because it is error-prone."
)
WARNING_AMBIGUOUS_ATLAS = "Atlas has ambiguous packables with atlas {atlas} and its packable {key}"


@dataclass
class MatchResult:
    atlas: Optional[AtlasAsset] = None
    rule: Optional[PackableRule] = None
    found: bool = False
    ambiguous: bool = False


def folder_prefix(key: str) -> str:
    # Both separator styles are accepted. The trailing separator keeps
    # "Assets/Buildings" from claiming "Assets/BuildingsIcons/...".
    key = normalize_path(key)
    return key if key.endswith("/") else key + "/"


def rule_matches(rule: PackableRule, texture_path: str) -> bool:
    path = normalize_path(texture_path)
    if not rule.is_folder:
        return path == normalize_path(rule.key)
    return path.startswith(folder_prefix(rule.key))


def match_atlas(texture: TextureAsset, atlases: Iterable[AtlasAsset]) -> MatchResult:
    """Find the atlas *texture* is packed into.

    Matches are visited in atlas-then-rule order against a single running
    candidate. Every additional match flags the texture and both atlases as
    ambiguous; the held candidate survives only when its key is strictly
    longer, otherwise the newer match replaces it. With equal key lengths
    the result therefore depends on atlas enumeration order.
    """
    result = MatchResult()

    for atlas in atlases:
        for rule in atlas.rules:
            if not rule_matches(rule, texture.path):
                continue

            result.found = True

            if result.atlas is not None and result.rule is not None:
                result.ambiguous = True
                texture.flag(
                    SEVERITY_WARNING,
                    WARNING_AMBIGUOUS_TEXTURE.format(
                        atlas=atlas.name, candidate=result.atlas.name
                    ),
                )
                atlas.flag(
                    SEVERITY_WARNING,
                    WARNING_AMBIGUOUS_ATLAS.format(
                        atlas=result.atlas.name, key=result.rule.key
                    ),
                )
                result.atlas.flag(
                    SEVERITY_WARNING,
                    WARNING_AMBIGUOUS_ATLAS.format(atlas=atlas.name, key=rule.key),
                )

                if len(result.rule.key) > len(rule.key):
                    # Longer keys are treated as more specific.
                    continue

            result.atlas = atlas
            result.rule = rule

    return result


def assign_to_atlas(texture: TextureAsset, atlas: AtlasAsset, rule: PackableRule) -> None:
    if texture.is_addressable:
        texture.flag(SEVERITY_NOTICE, WARNING_DUPLICATE_IN_ADDRESSABLES)
        atlas.raise_severity(SEVERITY_NOTICE)

    # Assignment happens once per texture after full resolution, so this
    # only fires if a caller assigns the same texture twice.
    if texture.atlas is not None:
        previous = texture.atlas
        texture.flag(SEVERITY_ERROR, WARNING_DUPLICATE_IN_ATLAS.format(atlas=previous.name))
        previous.flag(
            SEVERITY_WARNING, WARNING_ATLAS_SHARES_TEXTURE.format(texture=texture.name)
        )

    texture.atlas = atlas

    if texture.in_resources:
        texture.flag(SEVERITY_WARNING, WARNING_DUPLICATE_IN_RESOURCES)

    rule.matches.append(texture)
    log.debug(f"{texture.path} -> {atlas.name} ({rule.key})")
