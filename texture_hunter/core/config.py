from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import List, Optional, Set

from pydantic import BaseModel, Field, field_validator

from .formats import (
    DEFAULT_ASTC_QUALITY,
    DEFAULT_CRUNCH_QUALITY,
    DEFAULT_RECOMMENDED_FORMATS,
    TextureFormat,
    parse_format,
)
from .logger import get_logger
from .scheduler import (
    DEFAULT_MUTATION_BATCH_SIZE,
    DEFAULT_PAUSE_SECONDS,
    DEFAULT_SCAN_BATCH_SIZE,
)

log = get_logger(__name__)

CONFIG_ENV_VAR = "TEXTURE_HUNTER_CONFIG"
CONFIG_FILE_NAME = ".texture_hunter.json"

DEFAULT_IGNORE_PATTERNS: List[str] = [
    r"/Editor/",
    r"/Editor Default Resources/",
    r"/Editor Resources/",
    r"ProjectSettings/",
    r"Packages/",
]


class AnalysisSettings(BaseModel):
    mipmaps_are_errors: bool = True
    readable_are_errors: bool = False
    size_higher_4k_are_errors: bool = True
    no_overridden_compression_as_errors: bool = True


class SearchPatternsSettings(BaseModel):
    # Regular expressions; matching paths are hidden from reports only.
    ignored_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS)
    )

    @field_validator("ignored_patterns")
    @classmethod
    def _compile_patterns(cls, value):
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid ignore pattern {pattern!r}: {e}") from e
        return value

    def reset(self) -> None:
        self.ignored_patterns = list(DEFAULT_IGNORE_PATTERNS)


class BatchSettings(BaseModel):
    crunch_quality: int = Field(DEFAULT_CRUNCH_QUALITY, ge=0, le=100)
    astc_quality: int = Field(DEFAULT_ASTC_QUALITY, ge=0, le=100)
    scan_batch_size: int = Field(DEFAULT_SCAN_BATCH_SIZE, ge=1)
    mutation_batch_size: int = Field(DEFAULT_MUTATION_BATCH_SIZE, ge=1)
    pause_seconds: float = Field(DEFAULT_PAUSE_SECONDS, ge=0)


class HunterConfigModel(BaseModel):
    schema_version: int = Field(1, ge=1)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    search_patterns: SearchPatternsSettings = Field(
        default_factory=SearchPatternsSettings
    )
    batch: BatchSettings = Field(default_factory=BatchSettings)
    recommended_formats: List[TextureFormat] = Field(
        default_factory=lambda: sorted(DEFAULT_RECOMMENDED_FORMATS, key=lambda f: f.value)
    )

    @field_validator("recommended_formats", mode="before")
    @classmethod
    def _parse_formats(cls, value):
        if value is None:
            return value
        return [parse_format(item) for item in value]

    @property
    def recommended_format_set(self) -> Set[TextureFormat]:
        return set(self.recommended_formats)


def config_path(root: Path) -> Path:
    """
    Location of the persisted configuration.

    Checks TEXTURE_HUNTER_CONFIG first, otherwise falls back to
    .texture_hunter.json in the project root.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        log.debug(f"Using config from {CONFIG_ENV_VAR}: {path}")
        return path
    return root / CONFIG_FILE_NAME


class HunterConfig:
    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self.model: Optional[HunterConfigModel] = None

    def load(self) -> HunterConfigModel:
        if self.path is None or not self.path.exists():
            self.model = HunterConfigModel()
            return self.model
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.model = HunterConfigModel.model_validate(data)
        return self.model

    def save(self, model: Optional[HunterConfigModel] = None) -> Path:
        if model is not None:
            self.model = model
        if self.model is None:
            raise ValueError("Nothing to save: configuration was never loaded")
        if self.path is None:
            raise ValueError("Configuration has no path to save to")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.model.model_dump_json(indent=2), encoding="utf-8")
        log.info(f"Saved configuration: {self.path}")
        return self.path
