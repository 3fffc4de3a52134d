"""
Engine facade: scans a project through an asset store and runs batch
remediation over the scan result. One operation may be in flight at a time.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from .aggregator import ScanResult, aggregate
from .batch import (
    DEFAULT_FIX_FORMAT,
    BatchPolicyEngine,
    BatchReport,
    BatchScope,
)
from .classifier import Classifier
from .config import HunterConfigModel
from .formats import TextureFormat, canonical_platform, parse_format
from .logger import get_logger
from .matcher import assign_to_atlas, match_atlas
from .models import AtlasAsset, PackableRule, TextureAsset, readable_type_name
from .scheduler import CooperativeScheduler, CooperativeTask, TaskState
from .store import ATLAS_TYPE, TEXTURE_TYPES, AssetStore, is_addressable

log = get_logger(__name__)


class TextureHunterError(Exception):
    pass


class OperationInProgressError(TextureHunterError):
    pass


class NoScanResultError(TextureHunterError):
    pass


class _ScanJob:
    """State of one scan; each unit handles a single asset path."""

    def __init__(self, hunter: "TextureHunter"):
        self.hunter = hunter
        self.atlases: List[AtlasAsset] = []
        self.unassigned: List[TextureAsset] = []
        self.result: Optional[ScanResult] = None

    def units(self) -> Iterator[Tuple[str, str]]:
        # Textures are matched only after every atlas is known, so the
        # store is walked twice in discovery order.
        paths = list(self.hunter.store.all_asset_paths())
        for path in paths:
            yield ("atlas", path)
        for path in paths:
            yield ("texture", path)

    def process(self, unit: Tuple[str, str]) -> None:
        phase, path = unit
        type_name = self.hunter.store.asset_type(path)
        if type_name is None:
            return
        if phase == "atlas":
            if type_name == ATLAS_TYPE:
                self.atlases.append(self.hunter._create_atlas(path, type_name))
        elif type_name in TEXTURE_TYPES:
            texture = self.hunter._create_texture(path, type_name)
            match = match_atlas(texture, self.atlases)
            if match.found:
                if match.atlas is not None and match.rule is not None:
                    assign_to_atlas(texture, match.atlas, match.rule)
            else:
                self.hunter._classify_texture(texture)
                self.unassigned.append(texture)

    def finish(self, _task: CooperativeTask) -> None:
        hunter = self.hunter
        self.result = aggregate(
            self.atlases,
            self.unassigned,
            hunter.classifier,
            hunter.config.search_patterns.ignored_patterns,
        )
        hunter.result = self.result


class TextureHunter:
    def __init__(
        self,
        store: AssetStore,
        config: Optional[HunterConfigModel] = None,
        *,
        scheduler: Optional[CooperativeScheduler] = None,
        reclaim: Optional[Callable[[], Any]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.config = config or HunterConfigModel()
        self.scheduler = scheduler or CooperativeScheduler()
        self.classifier = Classifier(
            self.config.analysis, self.config.recommended_format_set
        )
        self._task_kwargs: Dict[str, Any] = {}
        if reclaim is not None:
            self._task_kwargs["reclaim"] = reclaim
        if clock is not None:
            self._task_kwargs["clock"] = clock
        self.batch = BatchPolicyEngine(
            store,
            self.scheduler,
            batch_size=self.config.batch.mutation_batch_size,
            pause_seconds=self.config.batch.pause_seconds,
            **self._task_kwargs,
        )
        self.result: Optional[ScanResult] = None
        self._active: Optional[CooperativeTask] = None

    # -- state -----------------------------------------------------------

    @property
    def is_busy(self) -> bool:
        return self._active is not None and not self._active.done

    def _ensure_idle(self) -> None:
        if self.is_busy:
            raise OperationInProgressError(
                f"Operation '{self._active.name}' is still running"
            )

    def _require_result(self) -> ScanResult:
        if self.result is None:
            raise NoScanResultError("Run a scan before starting a batch operation")
        return self.result

    # -- scanning --------------------------------------------------------

    def start_scan(self, owner: Any = None) -> CooperativeTask:
        self._ensure_idle()
        job = _ScanJob(self)
        task = CooperativeTask(
            job.units(),
            job.process,
            owner=owner,
            name="scan",
            batch_size=self.config.batch.scan_batch_size,
            pause_seconds=self.config.batch.pause_seconds,
            on_complete=job.finish,
            **self._task_kwargs,
        )
        self._active = self.scheduler.submit(task)
        return task

    def scan(self, owner: Any = None) -> Optional[ScanResult]:
        """Scan synchronously. Returns None when the owner went away first."""
        task = self.start_scan(owner)
        self.scheduler.run_until_complete(task)
        return self.result if task.state is TaskState.COMPLETED else None

    # -- batch operations ------------------------------------------------

    def start_normalize(
        self,
        platform: str,
        scope: Union[BatchScope, str] = BatchScope.ALL,
        *,
        dry_run: bool = False,
        crunch_quality: Optional[int] = None,
        astc_quality: Optional[int] = None,
        owner: Any = None,
    ) -> BatchReport:
        self._ensure_idle()
        result = self._require_result()
        scope = BatchScope(scope)
        platform = canonical_platform(platform)
        crunch = self.config.batch.crunch_quality if crunch_quality is None else crunch_quality
        astc = self.config.batch.astc_quality if astc_quality is None else astc_quality

        report = BatchReport("normalize", platform, scope, dry_run)
        if scope.includes_atlases:
            self.batch.normalize_atlases(
                result.atlases,
                platform,
                dry_run=dry_run,
                crunch_quality=crunch,
                astc_quality=astc,
                report=report,
            )
        if scope.includes_textures:
            self.batch.normalize_textures(
                result.textures,
                platform,
                dry_run=dry_run,
                crunch_quality=crunch,
                astc_quality=astc,
                owner=owner,
                report=report,
            )
            self._active = report.task
        return report

    def normalize(self, platform: str, scope=BatchScope.ALL, **kwargs) -> BatchReport:
        report = self.start_normalize(platform, scope, **kwargs)
        return self.wait(report)

    def start_fix_automatic(
        self,
        platform: str,
        scope: Union[BatchScope, str] = BatchScope.ALL,
        *,
        target_format: Union[TextureFormat, str] = DEFAULT_FIX_FORMAT,
        quality: Optional[int] = None,
        dry_run: bool = False,
        owner: Any = None,
    ) -> BatchReport:
        self._ensure_idle()
        result = self._require_result()
        scope = BatchScope(scope)
        platform = canonical_platform(platform)
        target_format = parse_format(target_format)
        quality = self.config.batch.astc_quality if quality is None else quality

        report = BatchReport("fix-automatic", platform, scope, dry_run)
        if scope.includes_atlases:
            self.batch.fix_automatic_atlases(
                result.atlases,
                platform,
                target_format=target_format,
                quality=quality,
                dry_run=dry_run,
                report=report,
            )
        if scope.includes_textures:
            self.batch.fix_automatic_textures(
                result.textures,
                platform,
                target_format=target_format,
                quality=quality,
                dry_run=dry_run,
                owner=owner,
                report=report,
            )
            self._active = report.task
        return report

    def fix_automatic(self, platform: str, scope=BatchScope.ALL, **kwargs) -> BatchReport:
        report = self.start_fix_automatic(platform, scope, **kwargs)
        return self.wait(report)

    def wait(self, report: BatchReport) -> BatchReport:
        if report.task is not None:
            self.scheduler.run_until_complete(report.task)
        return report

    # -- entity construction ---------------------------------------------

    def _create_atlas(self, path: str, type_name: str) -> AtlasAsset:
        declaration = self.store.load_atlas(path)
        rules: List[PackableRule] = []
        seen = set()
        for key in declaration.packables if declaration else ():
            if key in seen:
                log.warning(f"Packable [{key}] is listed in the atlas [{path}] twice")
                continue
            seen.add(key)
            rules.append(PackableRule(key))

        atlas = AtlasAsset(
            path=path,
            size_bytes=self.store.file_size(path),
            type_name=readable_type_name(type_name),
            rules=rules,
            handle=declaration.handle if declaration else None,
        )
        self.classifier.classify_atlas(atlas, declaration)
        return atlas

    def _create_texture(self, path: str, type_name: str) -> TextureAsset:
        return TextureAsset(
            path=path,
            size_bytes=self.store.file_size(path),
            type_name=readable_type_name(type_name),
            geometry=self.store.texture_geometry(path),
            is_addressable=is_addressable(self.store, path),
        )

    def _classify_texture(self, texture: TextureAsset) -> None:
        importer = self.store.load_texture_importer(texture.path)
        self.classifier.classify_texture(
            texture,
            importer,
            lambda platform: self.store.automatic_format(texture.path, platform),
        )
