from texture_hunter.core.matcher import (
    WARNING_DUPLICATE_IN_ADDRESSABLES,
    WARNING_DUPLICATE_IN_RESOURCES,
    assign_to_atlas,
    match_atlas,
    rule_matches,
)
from texture_hunter.core.models import AtlasAsset, PackableRule, TextureAsset


def _atlas(path, *keys):
    return AtlasAsset(path=path, rules=[PackableRule(k) for k in keys])


def test_folder_rule_is_directory_bounded():
    rule = PackableRule("Assets/UI")
    assert rule_matches(rule, "Assets/UI/icon.png")
    assert rule_matches(rule, "Assets/UI/Deep/icon.png")
    assert not rule_matches(rule, "Assets/UIX/icon.png")


def test_folder_rule_accepts_either_separator():
    assert rule_matches(PackableRule("Assets\\UI"), "Assets/UI/icon.png")
    assert rule_matches(PackableRule("Assets/UI"), "Assets\\UI\\icon.png")


def test_exact_rule_needs_identical_path():
    rule = PackableRule("Assets/UI/icon.png")
    assert rule_matches(rule, "Assets/UI/icon.png")
    assert not rule_matches(rule, "Assets/UI/icon.png.meta")
    assert not rule_matches(rule, "Assets/UI/other.png")


def test_no_match():
    texture = TextureAsset("Assets/Art/hero.png")
    result = match_atlas(texture, [_atlas("A.spriteatlas", "Assets/UI")])
    assert not result.found
    assert result.atlas is None
    assert texture.severity == 0


def test_longer_key_wins_when_held():
    broad = _atlas("Broad.spriteatlas", "Assets/UI")
    narrow = _atlas("Narrow.spriteatlas", "Assets/UI/Icons")
    texture = TextureAsset("Assets/UI/Icons/a.png")

    result = match_atlas(texture, [narrow, broad])

    assert result.found and result.ambiguous
    assert result.atlas is narrow
    assert result.rule.key == "Assets/UI/Icons"
    assert texture.severity == 2
    assert narrow.severity == 2
    assert broad.severity == 2


def test_later_match_replaces_shorter_candidate():
    broad = _atlas("Broad.spriteatlas", "Assets/UI")
    narrow = _atlas("Narrow.spriteatlas", "Assets/UI/Icons")
    texture = TextureAsset("Assets/UI/Icons/a.png")

    result = match_atlas(texture, [broad, narrow])

    assert result.atlas is narrow


def test_equal_keys_let_last_match_win():
    first = _atlas("First.spriteatlas", "Assets/UI")
    second = _atlas("Second.spriteatlas", "Assets/UI")
    texture = TextureAsset("Assets/UI/a.png")

    result = match_atlas(texture, [first, second])

    assert result.atlas is second
    assert any("ambiguous" in w for w in texture.warnings)
    assert first.has_warnings and second.has_warnings


def test_assign_addressable_texture():
    atlas = _atlas("A.spriteatlas", "Assets/UI")
    texture = TextureAsset("Assets/UI/a.png", is_addressable=True)
    assign_to_atlas(texture, atlas, atlas.rules[0])

    assert texture.atlas is atlas
    assert texture.severity == 1
    assert WARNING_DUPLICATE_IN_ADDRESSABLES in texture.warnings
    assert atlas.severity == 1
    assert atlas.rules[0].matches == [texture]


def test_assign_resources_texture():
    atlas = _atlas("A.spriteatlas", "Assets/Resources/UI")
    texture = TextureAsset("Assets/Resources/UI/a.png")
    assign_to_atlas(texture, atlas, atlas.rules[0])

    assert texture.severity == 2
    assert WARNING_DUPLICATE_IN_RESOURCES in texture.warnings
    assert atlas.severity == 0


def test_assigning_twice_flags_duplicate():
    first = _atlas("First.spriteatlas", "Assets/UI")
    second = _atlas("Second.spriteatlas", "Assets/UI")
    texture = TextureAsset("Assets/UI/a.png")

    assign_to_atlas(texture, first, first.rules[0])
    assign_to_atlas(texture, second, second.rules[0])

    assert texture.atlas is second
    assert texture.severity == 3
    assert first.severity == 2
    assert "Duplicate in atlas: First.spriteatlas" in texture.warnings
