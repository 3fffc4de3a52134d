import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from texture_hunter.cli import main as cli_main
from texture_hunter.cli.commands import patterns as cmd_patterns
from texture_hunter.core.config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def manifest_file(tmp_path: Path, manifest_data) -> Path:
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(manifest_data), encoding="utf-8")
    return path


def _android(manifest: Path, asset_path: str):
    data = json.loads(manifest.read_text(encoding="utf-8"))
    entry = next(a for a in data["assets"] if a["path"] == asset_path)
    return entry["importer"]["platforms"]["Android"]


def test_scan_prints_and_writes_report(tmp_path: Path, manifest_file: Path, capsys):
    report = tmp_path / "out" / "report.json"
    code = cli_main.main(
        ["scan", "--manifest", str(manifest_file), "--report", str(report), "--pretty"]
    )
    assert code == 0

    out = capsys.readouterr().out
    assert "Atlases: 1. Textures: 2" in out
    assert "UI.spriteatlas" in out
    assert "Assets/Art/hero.png" in out
    assert "Assets/Editor/tool.png" not in out

    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["atlases"] == 1
    assert data["summary"]["ignored"] == 1
    assert data["atlases"][0]["sprites"] == 1
    assert data["atlases"][0]["packables"][0]["textures"] == ["Assets/UI/button.png"]
    assert {t["path"] for t in data["textures"]} == {"Assets/Art/hero.png", "Assets/Art/bg.png"}


def test_scan_filters(manifest_file: Path, tmp_path: Path):
    report = tmp_path / "report.json"
    code = cli_main.main(
        [
            "scan",
            "--manifest",
            str(manifest_file),
            "--path-filter",
            "bg",
            "--sort",
            "path-asc",
            "--report",
            str(report),
        ]
    )
    assert code == 0
    data = json.loads(report.read_text(encoding="utf-8"))
    assert [t["path"] for t in data["textures"]] == ["Assets/Art/bg.png"]
    assert data["atlases"] == []
    # The summary always describes the whole scan.
    assert data["summary"]["textures"] == 2


def test_missing_manifest(tmp_path: Path):
    code = cli_main.main(["scan", "--manifest", str(tmp_path / "nope.json")])
    assert code == 1


def test_normalize_updates_manifest(manifest_file: Path, capsys):
    code = cli_main.main(["normalize", "--manifest", str(manifest_file), "--platform", "Android"])
    assert code == 0
    assert _android(manifest_file, "Assets/Art/hero.png") == {
        "format": "ASTC_6x6",
        "overridden": True,
        "quality": 50,
    }
    out = capsys.readouterr().out
    assert "changed 2" in out


def test_normalize_dry_run_keeps_manifest(manifest_file: Path, capsys):
    before = manifest_file.read_text(encoding="utf-8")
    code = cli_main.main(
        ["normalize", "--manifest", str(manifest_file), "--platform", "Android", "--dry-run"]
    )
    assert code == 0
    assert manifest_file.read_text(encoding="utf-8") == before
    out = capsys.readouterr().out
    assert "[dry-run]" in out
    assert "planned 2" in out


def test_fix_automatic(manifest_file: Path):
    code = cli_main.main(
        [
            "fix-automatic",
            "--manifest",
            str(manifest_file),
            "--platform",
            "Android",
            "--scope",
            "textures",
            "--format",
            "ASTC_8x8",
            "--quality",
            "60",
        ]
    )
    assert code == 0
    assert _android(manifest_file, "Assets/Art/bg.png") == {
        "format": "ASTC_8x8",
        "overridden": True,
        "quality": 60,
    }


def test_config_file_changes_analysis(tmp_path: Path, manifest_file: Path):
    config = tmp_path / "custom.json"
    config.write_text(json.dumps({"search_patterns": {"ignored_patterns": []}}), encoding="utf-8")
    report = tmp_path / "report.json"
    code = cli_main.main(
        [
            "scan",
            "--manifest",
            str(manifest_file),
            "--config",
            str(config),
            "--report",
            str(report),
        ]
    )
    assert code == 0
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["textures"] == 3


def test_patterns_add_and_remove(tmp_path: Path, capsys):
    config = tmp_path / "config.json"
    code = cli_main.main(["patterns", "--config", str(config), "--add", "/Generated/"])
    assert code == 0
    saved = json.loads(config.read_text(encoding="utf-8"))
    assert "/Generated/" in saved["search_patterns"]["ignored_patterns"]

    args = SimpleNamespace(
        config=str(config), project_root=None, add=None, remove=["/Generated/"], reset=False
    )
    assert cmd_patterns.run(args) == 0
    saved = json.loads(config.read_text(encoding="utf-8"))
    assert "/Generated/" not in saved["search_patterns"]["ignored_patterns"]
    assert "Patterns ignored in output" in capsys.readouterr().out


def test_patterns_rejects_invalid_regex(tmp_path: Path):
    config = tmp_path / "config.json"
    code = cli_main.main(["patterns", "--config", str(config), "--add", "("])
    assert code == 1
    assert not config.exists()


def test_invalid_config_is_reported(tmp_path: Path, manifest_file: Path):
    config = tmp_path / "bad.json"
    config.write_text(
        json.dumps({"search_patterns": {"ignored_patterns": ["[unclosed"]}}), encoding="utf-8"
    )
    code = cli_main.main(["scan", "--manifest", str(manifest_file), "--config", str(config)])
    assert code == 1
    assert cli_main.main(["patterns", "--config", str(config)]) == 1


def test_platform_alias_on_command_line(manifest_file: Path, capsys):
    code = cli_main.main(
        ["fix-automatic", "--manifest", str(manifest_file), "--platform", "iPhone"]
    )
    assert code == 0
    data = json.loads(manifest_file.read_text(encoding="utf-8"))
    bg = next(a for a in data["assets"] if a["path"] == "Assets/Art/bg.png")
    assert bg["importer"]["platforms"]["iOS"]["format"] == "ASTC_6x6"
    assert "fix-automatic iOS" in capsys.readouterr().out
