import json
from pathlib import Path

import pytest
from PIL import Image

from texture_hunter.core.formats import TextureFormat
from texture_hunter.core.manifest_store import ManifestAssetStore
from texture_hunter.core.profiles import RawPlatformSettings


def _write_manifest(tmp_path: Path, assets) -> Path:
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps({"version": 1, "assets": assets}), encoding="utf-8")
    return path


def test_geometry_and_size_from_project_files(tmp_path: Path):
    image_path = tmp_path / "Assets" / "UI" / "a.png"
    image_path.parent.mkdir(parents=True)
    Image.new("RGBA", (30, 20)).save(image_path)

    manifest = _write_manifest(
        tmp_path, [{"path": "Assets/UI/a.png", "type": "Texture2D"}]
    )
    store = ManifestAssetStore.load(manifest)

    assert store.project_root == tmp_path
    geometry = store.texture_geometry("Assets/UI/a.png")
    assert (geometry.width, geometry.height) == (30, 20)
    assert store.file_size("Assets/UI/a.png") == image_path.stat().st_size


def test_unreadable_or_missing_images(tmp_path: Path):
    broken = tmp_path / "Assets" / "broken.png"
    broken.parent.mkdir(parents=True)
    broken.write_bytes(b"not an image")

    manifest = _write_manifest(
        tmp_path,
        [
            {"path": "Assets/broken.png", "type": "Texture2D"},
            {"path": "Assets/missing.png", "type": "Texture2D"},
        ],
    )
    store = ManifestAssetStore.load(manifest)

    assert store.texture_geometry("Assets/broken.png") is None
    assert store.texture_geometry("Assets/missing.png") is None
    assert store.file_size("Assets/missing.png") == 0


def test_platform_aliases_and_automatic_formats(store):
    atlas = store.load_atlas("Assets/Atlases/UI.spriteatlas")
    assert atlas.handle == "Assets/Atlases/UI.spriteatlas"
    assert set(atlas.platforms) == {"Default", "Android", "iOS"}
    assert atlas.platform_settings("Android").compression_quality == 80

    assert store.automatic_format("Assets/Art/bg.png", "Android") is TextureFormat.ETC2_RGBA8
    assert store.automatic_format("Assets/Art/bg.png", "iOS") is TextureFormat.ASTC_6x6
    assert store.load_atlas("Assets/Art/bg.png") is None
    assert store.load_texture_importer("Assets/Data/config.asset") is None


def test_explicit_automatic_formats():
    store = ManifestAssetStore.from_dict(
        {
            "assets": [
                {
                    "path": "Assets/a.png",
                    "type": "Texture2D",
                    "importer": {"automatic_formats": {"iPhone": "astc_8x8"}},
                }
            ]
        }
    )
    assert store.automatic_format("Assets/a.png", "iOS") is TextureFormat.ASTC_8x8


def test_unknown_paths(store):
    assert store.asset_type("Assets/nope.png") is None
    assert not store.is_addressable("Assets/nope.png")
    with pytest.raises(KeyError):
        store.load_texture_importer("Assets/nope.png")
    with pytest.raises(KeyError):
        store.reimport("Assets/nope.png")


def test_saving_atlas_settings_requires_an_atlas(store):
    with pytest.raises(ValueError):
        store.save_atlas_platform_settings(
            "Assets/Art/bg.png", "Android", RawPlatformSettings(format="ASTC_6x6")
        )


def test_flush_writes_changes(tmp_path: Path, manifest_data):
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(manifest_data), encoding="utf-8")
    store = ManifestAssetStore.load(path)

    assert store.flush() is None

    store.save_texture_platform_settings(
        "Assets/Art/bg.png",
        "Android",
        RawPlatformSettings(format=TextureFormat.ASTC_8x8, overridden=True, compression_quality=60),
    )
    assert store.flush() == path
    assert not store.is_dirty

    data = json.loads(path.read_text(encoding="utf-8"))
    bg = next(a for a in data["assets"] if a["path"] == "Assets/Art/bg.png")
    assert bg["importer"]["platforms"]["Android"] == {
        "format": "ASTC_8x8",
        "overridden": True,
        "quality": 60,
    }

    reloaded = ManifestAssetStore.load(path)
    saved = reloaded.load_texture_importer("Assets/Art/bg.png").platform_settings("Android")
    assert saved.format is TextureFormat.ASTC_8x8


def test_duplicate_manifest_entries_keep_first(caplog):
    caplog.set_level("INFO")
    store = ManifestAssetStore.from_dict(
        {
            "assets": [
                {"path": "Assets/a.png", "type": "Texture2D", "size": 1},
                {"path": "Assets/a.png", "type": "Texture2D", "size": 2},
            ]
        }
    )
    assert list(store.all_asset_paths()) == ["Assets/a.png"]
    assert store.file_size("Assets/a.png") == 1
    assert any("twice" in rec.message for rec in caplog.records)


def test_oversized_image_reads_as_unknown_geometry(tmp_path: Path, monkeypatch, caplog):
    image_path = tmp_path / "Assets" / "huge.png"
    image_path.parent.mkdir(parents=True)
    Image.new("RGB", (64, 64)).save(image_path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    manifest = _write_manifest(tmp_path, [{"path": "Assets/huge.png", "type": "Texture2D"}])
    store = ManifestAssetStore.load(manifest)
    caplog.set_level("INFO")

    assert store.texture_geometry("Assets/huge.png") is None
    assert any("Failed to read image" in rec.message for rec in caplog.records)
