import copy

import pytest

from texture_hunter.core.manifest_store import ManifestAssetStore


SAMPLE_MANIFEST = {
    "version": 1,
    "assets": [
        {
            "path": "Assets/Atlases/UI.spriteatlas",
            "type": "SpriteAtlas",
            "size": 2048,
            "atlas": {
                "packables": ["Assets/UI"],
                "platforms": {
                    "DefaultTexturePlatform": {"format": "RGBA32"},
                    "Android": {"format": "ASTC_4x4", "overridden": True, "quality": 80},
                    "iPhone": {"format": "ASTC_6x6", "overridden": True, "quality": 50},
                },
            },
        },
        {
            "path": "Assets/UI/button.png",
            "type": "Texture2D",
            "size": 1024,
            "width": 64,
            "height": 64,
            "importer": {"platforms": {"Default": {"format": "RGBA32"}}},
        },
        {
            "path": "Assets/Art/hero.png",
            "type": "Texture2D",
            "size": 4096,
            "width": 256,
            "height": 256,
            "importer": {
                "platforms": {
                    "Default": {"format": "RGBA32"},
                    "Android": {"format": "ASTC_5x5", "overridden": True, "quality": 100},
                    "iOS": {"format": "ASTC_6x6", "overridden": True, "quality": 50},
                }
            },
        },
        {
            "path": "Assets/Art/bg.png",
            "type": "Texture2D",
            "size": 512,
            "width": 512,
            "height": 512,
            "importer": {
                "platforms": {
                    "Default": {"format": "RGBA32"},
                    "Android": {},
                    "iOS": {},
                }
            },
        },
        {
            "path": "Assets/Editor/tool.png",
            "type": "Texture2D",
            "width": 32,
            "height": 32,
            "importer": {"platforms": {"Default": {"format": "RGBA32"}}},
        },
        {"path": "Assets/Data/config.asset", "type": "ScriptableObject"},
    ],
}


class FakeClock:
    """Manual clock; sleeping just advances it."""

    def __init__(self, now: float = 0.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def manifest_data():
    return copy.deepcopy(SAMPLE_MANIFEST)


@pytest.fixture
def store(manifest_data):
    return ManifestAssetStore.from_dict(manifest_data)


@pytest.fixture
def fake_clock():
    return FakeClock()
