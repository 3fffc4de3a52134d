from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from ...core.config import HunterConfig, HunterConfigModel, config_path
from ...core.engine import TextureHunter
from ...core.logger import get_logger
from ...core.manifest_store import ManifestAssetStore

log = get_logger(__name__)


def resolve_config(args: Namespace, project_root: Optional[Path] = None) -> HunterConfig:
    explicit = getattr(args, "config", None)
    if explicit:
        return HunterConfig(Path(explicit))
    root = project_root if project_root is not None else Path.cwd()
    return HunterConfig(config_path(root))


def load_hunter(args: Namespace) -> Optional[Tuple[TextureHunter, ManifestAssetStore, HunterConfigModel]]:
    """Build the engine from --manifest/--project-root/--config, or None on error."""
    manifest = Path(args.manifest)
    if not manifest.exists():
        log.error(f"Manifest does not exist: {manifest}")
        return None

    project_root = getattr(args, "project_root", None)
    root = Path(project_root) if project_root else manifest.parent
    config_file = resolve_config(args, root)
    try:
        store = ManifestAssetStore.load(manifest, project_root=root)
        config = config_file.load()
    except ValidationError as e:
        log.error(f"Invalid manifest or configuration: {e}")
        return None
    return TextureHunter(store, config), store, config
