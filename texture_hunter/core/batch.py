"""
Batch remediation of compression settings.

Normalization only touches platform entries that are explicitly
overridden on a non-default platform. It is idempotent: once an entry has
been rewritten, its re-resolved profile no longer needs changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Union

from .formats import (
    CRUNCHED_ETC2,
    DEFAULT_ASTC_QUALITY,
    DEFAULT_CRUNCH_QUALITY,
    DEFAULT_PLATFORM,
    MIN_ASTC,
    REDUNDANT_ASTC,
    TextureFormat,
    parse_format,
)
from .logger import get_logger
from .models import AtlasAsset, TextureAsset
from .profiles import (
    ImportProfile,
    RawPlatformSettings,
    resolve_atlas_profile,
    resolve_texture_profile,
)
from .scheduler import (
    DEFAULT_MUTATION_BATCH_SIZE,
    DEFAULT_PAUSE_SECONDS,
    CooperativeScheduler,
    CooperativeTask,
)
from .severity import SEVERITY_WARNING
from .store import AssetStore

log = get_logger(__name__)

Entity = Union[AtlasAsset, TextureAsset]

DEFAULT_FIX_FORMAT = TextureFormat.ASTC_6x6


class BatchScope(str, Enum):
    ATLASES = "atlases"
    TEXTURES = "textures"
    ALL = "all"

    @property
    def includes_atlases(self) -> bool:
        return self in (BatchScope.ATLASES, BatchScope.ALL)

    @property
    def includes_textures(self) -> bool:
        return self in (BatchScope.TEXTURES, BatchScope.ALL)


@dataclass
class BatchReport:
    """Aggregates the outcome of one batch pass."""

    operation: str
    platform: str
    scope: BatchScope
    dry_run: bool = False
    eligible: int = 0
    planned: int = 0
    changed: int = 0
    failed: int = 0
    cancelled: bool = False
    summary_lines: List[str] = field(default_factory=list)
    task: Optional[CooperativeTask] = field(default=None, repr=False, compare=False)

    @property
    def change_count(self) -> int:
        return self.changed

    @property
    def done(self) -> bool:
        return self.task is None or self.task.done


class NormalizationPolicy:
    """Quality/format targets for overridden platform entries."""

    def __init__(
        self,
        platform: str,
        crunch_quality: int = DEFAULT_CRUNCH_QUALITY,
        astc_quality: int = DEFAULT_ASTC_QUALITY,
    ):
        self.platform = platform
        self.crunch_quality = crunch_quality
        self.astc_quality = astc_quality

    def is_eligible(self, entity: Entity) -> bool:
        profile = entity.import_profiles.get(self.platform)
        return profile is not None and profile.is_explicit_override

    def plan(self, profile: ImportProfile) -> Optional[RawPlatformSettings]:
        fmt = profile.resolved_format
        quality = profile.compression_quality
        dirty = False

        if fmt is CRUNCHED_ETC2:
            if quality != self.crunch_quality:
                quality = self.crunch_quality
                dirty = True
        elif fmt.is_astc:
            if fmt in REDUNDANT_ASTC:
                fmt = MIN_ASTC
                dirty = True
            if quality != self.astc_quality:
                quality = self.astc_quality
                dirty = True

        if not dirty:
            return None
        return RawPlatformSettings(format=fmt, overridden=True, compression_quality=quality)


class AutomaticFixPolicy:
    """Pins an explicit format on entries still left to automatic settings."""

    def __init__(
        self,
        platform: str,
        target_format: TextureFormat = DEFAULT_FIX_FORMAT,
        quality: int = DEFAULT_ASTC_QUALITY,
    ):
        self.platform = platform
        self.target_format = parse_format(target_format)
        self.quality = quality

    def is_eligible(self, entity: Entity) -> bool:
        if entity.severity < SEVERITY_WARNING:
            return False
        profile = entity.import_profiles.get(self.platform)
        return profile is not None and profile.is_using_default_settings

    def plan(self, profile: ImportProfile) -> Optional[RawPlatformSettings]:
        return RawPlatformSettings(
            format=self.target_format, overridden=True, compression_quality=self.quality
        )


Policy = Union[NormalizationPolicy, AutomaticFixPolicy]


class BatchPolicyEngine:
    def __init__(
        self,
        store: AssetStore,
        scheduler: Optional[CooperativeScheduler] = None,
        *,
        batch_size: int = DEFAULT_MUTATION_BATCH_SIZE,
        pause_seconds: float = DEFAULT_PAUSE_SECONDS,
        reclaim: Optional[Callable[[], Any]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.scheduler = scheduler or CooperativeScheduler()
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds
        self._task_kwargs = {}
        if reclaim is not None:
            self._task_kwargs["reclaim"] = reclaim
        if clock is not None:
            self._task_kwargs["clock"] = clock

    # -- normalization -------------------------------------------------

    def normalize_atlases(
        self,
        atlases: Sequence[AtlasAsset],
        platform: str,
        *,
        dry_run: bool = False,
        crunch_quality: int = DEFAULT_CRUNCH_QUALITY,
        astc_quality: int = DEFAULT_ASTC_QUALITY,
        report: Optional[BatchReport] = None,
    ) -> BatchReport:
        policy = NormalizationPolicy(platform, crunch_quality, astc_quality)
        report = report or BatchReport("normalize", platform, BatchScope.ATLASES, dry_run)
        self._run_eager(atlases, policy, report)
        return report

    def normalize_textures(
        self,
        textures: Sequence[TextureAsset],
        platform: str,
        *,
        dry_run: bool = False,
        crunch_quality: int = DEFAULT_CRUNCH_QUALITY,
        astc_quality: int = DEFAULT_ASTC_QUALITY,
        owner: Any = None,
        report: Optional[BatchReport] = None,
    ) -> BatchReport:
        """Queue normalization of *textures*; progress lands in the report."""
        policy = NormalizationPolicy(platform, crunch_quality, astc_quality)
        report = report or BatchReport("normalize", platform, BatchScope.TEXTURES, dry_run)
        self._start_cooperative(textures, policy, report, owner)
        return report

    # -- automatic compression fix ---------------------------------------

    def fix_automatic_atlases(
        self,
        atlases: Sequence[AtlasAsset],
        platform: str,
        *,
        target_format: TextureFormat = DEFAULT_FIX_FORMAT,
        quality: int = DEFAULT_ASTC_QUALITY,
        dry_run: bool = False,
        report: Optional[BatchReport] = None,
    ) -> BatchReport:
        policy = AutomaticFixPolicy(platform, target_format, quality)
        report = report or BatchReport("fix-automatic", platform, BatchScope.ATLASES, dry_run)
        self._run_eager(atlases, policy, report)
        return report

    def fix_automatic_textures(
        self,
        textures: Sequence[TextureAsset],
        platform: str,
        *,
        target_format: TextureFormat = DEFAULT_FIX_FORMAT,
        quality: int = DEFAULT_ASTC_QUALITY,
        dry_run: bool = False,
        owner: Any = None,
        report: Optional[BatchReport] = None,
    ) -> BatchReport:
        policy = AutomaticFixPolicy(platform, target_format, quality)
        report = report or BatchReport("fix-automatic", platform, BatchScope.TEXTURES, dry_run)
        self._start_cooperative(textures, policy, report, owner)
        return report

    # -- internals -------------------------------------------------------

    def _run_eager(self, atlases, policy: Policy, report: BatchReport) -> None:
        eligible = [atlas for atlas in atlases if policy.is_eligible(atlas)]
        report.eligible += len(eligible)
        for atlas in eligible:
            self._apply(atlas, policy, report, self._persist_atlas)
        if not report.scope.includes_textures:
            self._log_report(report)

    def _start_cooperative(
        self, textures, policy: Policy, report: BatchReport, owner: Any
    ) -> None:
        eligible = [texture for texture in textures if policy.is_eligible(texture)]
        report.eligible += len(eligible)

        def on_cancel(_task: CooperativeTask) -> None:
            report.cancelled = True
            self._log_report(report)

        task = CooperativeTask(
            eligible,
            lambda texture: self._apply(texture, policy, report, self._persist_texture),
            owner=owner,
            name=f"{report.operation}:{report.platform}:textures",
            batch_size=self.batch_size,
            pause_seconds=self.pause_seconds,
            on_complete=lambda _task: self._log_report(report),
            on_cancel=on_cancel,
            **self._task_kwargs,
        )
        report.task = self.scheduler.submit(task)

    def _apply(self, entity: Entity, policy: Policy, report: BatchReport, persist) -> None:
        profile = entity.import_profiles[policy.platform]
        settings = policy.plan(profile)
        if settings is None:
            return

        report.planned += 1
        line = (
            f"{entity.path} [{policy.platform}]: {profile.description} -> "
            f"{settings.format.value}[Q{settings.compression_quality}]"
        )

        if report.dry_run:
            log.info(f"[dry-run] {line}")
            report.summary_lines.append(f"[dry-run] {line}")
            return

        try:
            entity.import_profiles[policy.platform] = persist(entity, policy.platform, settings)
        except (OSError, KeyError, ValueError) as exc:
            report.failed += 1
            log.warning(f"Failed to update {entity.path} [{policy.platform}]: {exc}")
            return

        report.changed += 1
        report.summary_lines.append(line)
        log.debug(line)

    def _persist_atlas(
        self, atlas: AtlasAsset, platform: str, settings: RawPlatformSettings
    ) -> ImportProfile:
        self.store.save_atlas_platform_settings(atlas.handle, platform, settings)
        default = atlas.import_profiles.get(DEFAULT_PLATFORM)
        default_format = default.resolved_format if default else settings.format
        return resolve_atlas_profile(
            platform, settings, platform == DEFAULT_PLATFORM, default_format
        )

    def _persist_texture(
        self, texture: TextureAsset, platform: str, settings: RawPlatformSettings
    ) -> ImportProfile:
        self.store.save_texture_platform_settings(texture.path, platform, settings)
        self.store.reimport(texture.path)
        return resolve_texture_profile(
            platform,
            settings,
            lambda p: self.store.automatic_format(texture.path, p),
        )

    def _log_report(self, report: BatchReport) -> None:
        state = "cancelled" if report.cancelled else "done"
        mode = " (dry run)" if report.dry_run else ""
        log.info(
            f"{report.operation} {report.platform} {report.scope.value}{mode}: "
            f"{state}, eligible={report.eligible} planned={report.planned} "
            f"changed={report.changed} failed={report.failed}"
        )
