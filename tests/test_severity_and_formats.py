import pytest

from texture_hunter.core.formats import (
    TextureFormat,
    canonical_platform,
    parse_format,
)
from texture_hunter.core.models import (
    PackableRule,
    RuleKind,
    TextureAsset,
    TextureGeometry,
    readable_size,
    readable_type_name,
)
from texture_hunter.core.severity import SeverityState


def test_severity_only_rises():
    state = SeverityState()
    state.raise_severity(2)
    state.raise_severity(1)
    assert state.severity == 2
    state.raise_severity(3)
    assert state.severity == 3


def test_flag_keeps_warning_order():
    state = SeverityState()
    assert not state.has_warnings
    assert state.warnings == ()
    state.flag(2, "first")
    state.flag(1, "second")
    assert state.severity == 2
    assert state.warnings == ("first", "second")


def test_entities_do_not_share_warning_lists():
    a = TextureAsset("Assets/a.png")
    b = TextureAsset("Assets/b.png")
    a.add_warning("only a")
    assert b.warnings == ()


def test_parse_format_is_case_insensitive():
    assert parse_format("astc_6x6") is TextureFormat.ASTC_6x6
    assert parse_format("ETC2_RGBA8Crunched") is TextureFormat.ETC2_RGBA8_CRUNCHED
    assert parse_format(TextureFormat.DXT5) is TextureFormat.DXT5
    with pytest.raises(ValueError):
        parse_format("NotAFormat")


def test_format_families():
    assert TextureFormat.ETC_RGB4_CRUNCHED.is_crunched
    assert TextureFormat.PVRTC_RGBA4.is_pvrtc
    assert not TextureFormat.ETC2_RGBA8.is_crunched
    assert TextureFormat.ASTC_10x10.astc_block_size == 10
    assert TextureFormat.RGBA32.astc_block_size is None


def test_platform_aliases():
    assert canonical_platform("DefaultTexturePlatform") == "Default"
    assert canonical_platform("iPhone") == "iOS"
    assert canonical_platform("Android") == "Android"


def test_geometry_rules():
    assert TextureGeometry(256, 128).is_pot
    assert not TextureGeometry(100, 100).is_pot
    assert TextureGeometry(100, 100).is_multiple_of_four
    assert not TextureGeometry(30, 30).is_multiple_of_four
    assert TextureGeometry(4097, 16).exceeds(4096)
    assert not TextureGeometry(4096, 4096).exceeds(4096)
    assert str(TextureGeometry(64, 32)) == "64x32"


def test_rule_kind_from_key_shape():
    assert PackableRule("Assets/UI/icon.png").kind is RuleKind.EXACT_FILE
    assert PackableRule("Assets/UI").kind is RuleKind.FOLDER_PREFIX
    assert PackableRule("Assets/UI/").is_folder


def test_readable_helpers():
    assert readable_size(512) == "512 B"
    assert readable_size(1536) == "1.5 KB"
    assert readable_size(3 * 1024 * 1024) == "3 MB"
    assert readable_type_name(None) == "Unknown Type"
    assert readable_type_name("UnityEngine.Texture2D") == "Texture2D"


def test_resources_detection():
    assert TextureAsset("Assets/Resources/a.png").in_resources
    assert TextureAsset("Assets\\Game\\Resources\\a.png").in_resources
    assert not TextureAsset("Assets/ResourcesX/a.png").in_resources
