"""
Voxel room generator.

Orchestrates shape composition and marker classification for one room,
and converts the resulting markers into placement sockets. Builds run
either in one call (regenerate) or as a generator of atomic stages
(build_steps) that a time-sliced scheduler can pause between. Results are
committed only after the last stage completes, so a paused or cancelled
build never exposes a half-built room.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from voxel_roomgen.conversion.image_source import SpriteRegionCatalog
from voxel_roomgen.conversion.marker_export import PropSocket, count_markers_by_type, emit_sockets
from voxel_roomgen.conversion.vector_math import Vec3, as_vec3
from voxel_roomgen.generators.primitives.base import ShapeDescriptor
from voxel_roomgen.generators.primitives.image_stamp import ImageSamplingSettings
from voxel_roomgen.generators.voxels.composition import (
    DescriptorLike, generate_voxel_set, validate_descriptors,
)
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet
from voxel_roomgen.validation.core import ConfigError

from .marker_detection import MarkerDetectionRegistry, classify_markers
from .room_state import Marker, RoomSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PipelineStage(Enum):
    INITIALIZE = "initialize"
    GENERATE_VOXELS = "generate_voxels"
    CLASSIFY_MARKERS = "classify_markers"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PipelineError(Exception):
    pass


class GenerationCancelledException(PipelineError):
    pass


# ---------------------------------------------------------------------------
# Progress / Result dataclasses
# ---------------------------------------------------------------------------

@dataclass
class BuildProgress:
    stage: PipelineStage
    overall_progress: float
    message: str
    elapsed_time: float
    stage_time_ms: float = 0.0
    over_frame_budget: bool = False

    @property
    def percentage(self) -> int:
        return int(self.overall_progress * 100)


@dataclass
class RoomBuildResult:
    success: bool
    voxel_count: int = 0
    markers: List[Marker] = field(default_factory=list)
    stages_completed: List[PipelineStage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_time(self) -> float:
        return self.metrics.get("total_time", 0.0)

    def add_error(self, error: str, stage: Optional[PipelineStage] = None):
        if stage:
            error = f"[{stage.value}] {error}"
        self.errors.append(error)

    def add_warning(self, warning: str, stage: Optional[PipelineStage] = None):
        if stage:
            warning = f"[{stage.value}] {warning}"
        self.warnings.append(warning)


# ---------------------------------------------------------------------------
# Progress tracker
# ---------------------------------------------------------------------------

class ProgressTracker:
    STAGE_WEIGHTS = {
        PipelineStage.INITIALIZE: 0.05,
        PipelineStage.GENERATE_VOXELS: 0.60,
        PipelineStage.CLASSIFY_MARKERS: 0.35,
    }

    def __init__(self, frame_budget_ms: float):
        self.start_time = time.time()
        self.stage_start_time = self.start_time
        self.frame_budget_ms = frame_budget_ms

    def start_stage(self):
        self.stage_start_time = time.time()

    def complete_stage(self, stage: PipelineStage, message: str) -> BuildProgress:
        now = time.time()
        stages = list(self.STAGE_WEIGHTS.keys())
        if stage in stages:
            overall = sum(self.STAGE_WEIGHTS[s] for s in stages[:stages.index(stage) + 1])
        else:
            overall = 1.0
        stage_ms = (now - self.stage_start_time) * 1000.0
        return BuildProgress(
            stage=stage,
            overall_progress=min(overall, 1.0),
            message=message,
            elapsed_time=now - self.start_time,
            stage_time_ms=stage_ms,
            over_frame_budget=stage_ms > self.frame_budget_ms,
        )


# ---------------------------------------------------------------------------
# Generator facade
# ---------------------------------------------------------------------------

class VoxelRoomGenerator:
    """Builds one voxel room: composite shape, markers and sockets."""

    def __init__(
        self,
        settings: Optional[RoomSettings] = None,
        shapes: Optional[Sequence[DescriptorLike]] = None,
        regions: Optional[SpriteRegionCatalog] = None,
        registry: Optional[MarkerDetectionRegistry] = None,
        sampling: Optional[ImageSamplingSettings] = None,
    ):
        self.settings = settings or RoomSettings()
        self.regions = regions
        self.registry = registry
        self.sampling = sampling
        self.shapes: List[ShapeDescriptor] = []

        self.is_running = False
        self.is_cancelled = False
        self.current_stage = PipelineStage.INITIALIZE
        self.progress_callback: Optional[Callable[[BuildProgress], None]] = None

        self._voxels = VoxelSet()
        self._markers: List[Marker] = []

        self._validate_settings()
        if shapes:
            self.update_shapes(shapes)

    # -- configuration --

    def _validate_settings(self):
        result = self.settings.validate()
        if result.failed:
            raise ConfigError(result)

    def update_settings(self, settings: Optional[RoomSettings] = None, **changes) -> RoomSettings:
        """
        Replace settings, or change individual fields.

        Invalid settings raise ConfigError and leave the current settings in place.
        Cached voxels and markers are kept until the next build.
        """
        candidate = settings or self.settings
        if changes:
            candidate = dataclasses.replace(candidate, **changes)
        result = candidate.validate()
        if result.failed:
            raise ConfigError(result)
        self.settings = candidate
        logger.debug("Room settings updated: %s", self.settings)
        return self.settings

    def update_shapes(self, shapes: Sequence[DescriptorLike]) -> List[ShapeDescriptor]:
        """Replace the descriptor list. Invalid descriptors raise ConfigError."""
        parsed, result = validate_descriptors(shapes, self.settings.grid_size)
        if result.failed:
            raise ConfigError(result)
        self.shapes = parsed
        logger.debug("Room shapes updated: %d descriptors", len(parsed))
        return self.shapes

    def set_progress_callback(self, callback: Callable[[BuildProgress], None]):
        self.progress_callback = callback

    # -- helpers --

    def cancel(self):
        self.is_cancelled = True

    def _check_cancellation(self):
        if self.is_cancelled:
            raise GenerationCancelledException("Room build cancelled")

    def _report(self, progress: BuildProgress):
        if self.progress_callback:
            try:
                self.progress_callback(progress)
            except Exception:
                logger.warning("Progress callback failed", exc_info=True)

    # -- build --

    def build_steps(self, stage_log: Optional[List[BuildProgress]] = None) -> Iterator[BuildProgress]:
        """
        Build the room one atomic stage at a time.

        With settings.use_async_build, yields a BuildProgress after each
        stage so a time-sliced scheduler can pause between them (e.g. when
        over_frame_budget is set) or call cancel(), in which case resuming
        raises GenerationCancelledException. Without it, every stage runs in
        one step and only the final progress is yielded. Voxels and markers
        are committed only after the last stage either way.

        Args:
            stage_log: Receives the progress of every completed stage,
                including stages that were not yielded

        Raises:
            PipelineError: A build is already running
            ConfigError: Invalid settings or shapes
        """
        if self.is_running:
            raise PipelineError("Room build is already running")
        self.is_running = True
        self.is_cancelled = False
        sliced = self.settings.use_async_build
        tracker = ProgressTracker(self.settings.max_build_time_per_frame)
        if stage_log is None:
            stage_log = []

        try:
            self.current_stage = PipelineStage.INITIALIZE
            self._validate_settings()
            grid = as_vec3(self.settings.grid_size)
            progress = self._complete_stage(tracker, f"{len(self.shapes)} shapes", stage_log)
            if sliced:
                yield progress

            self._check_cancellation()
            self.current_stage = PipelineStage.GENERATE_VOXELS
            tracker.start_stage()
            voxels = generate_voxel_set(self.shapes, grid, regions=self.regions, sampling=self.sampling)
            progress = self._complete_stage(tracker, f"{len(voxels)} voxel cells", stage_log)
            if sliced:
                yield progress

            self._check_cancellation()
            self.current_stage = PipelineStage.CLASSIFY_MARKERS
            tracker.start_stage()
            if voxels:
                markers = classify_markers(voxels, grid, self.registry)
            else:
                logger.warning("Voxel cell list is empty.")
                markers = []

            self._voxels = voxels
            self._markers = markers
            progress = self._complete_stage(tracker, f"{len(markers)} markers", stage_log)
            self.current_stage = PipelineStage.COMPLETE
            yield progress
        finally:
            self.is_running = False

    def _complete_stage(self, tracker: ProgressTracker, message: str,
                        stage_log: List[BuildProgress]) -> BuildProgress:
        progress = tracker.complete_stage(self.current_stage, message)
        stage_log.append(progress)
        self._report(progress)
        return progress

    def regenerate(self) -> RoomBuildResult:
        """
        Build the room synchronously, whatever use_async_build says.

        Cancellation is recorded in the result. ConfigError propagates to the
        caller before any state changes.
        """
        result = RoomBuildResult(success=False)
        start_time = time.time()
        logger.info("Regenerating room: %d shapes, grid %s", len(self.shapes), self.settings.grid_size)

        stages: List[BuildProgress] = []
        try:
            for _ in self.build_steps(stages):
                pass
        except PipelineError as e:
            result.add_error(str(e), self.current_stage)

        for progress in stages:
            result.stages_completed.append(progress.stage)
            result.metrics[f"{progress.stage.value}_ms"] = progress.stage_time_ms
        if result.errors:
            return result

        result.success = True
        result.voxel_count = len(self._voxels)
        result.markers = list(self._markers)
        if not self._voxels:
            result.add_warning("Voxel cell list is empty", PipelineStage.GENERATE_VOXELS)
        result.metrics["marker_counts"] = count_markers_by_type(self._markers)
        result.metrics["total_time"] = time.time() - start_time
        logger.info("Room built in %.3fs: %d voxels, %d markers",
                    result.total_time, result.voxel_count, len(result.markers))
        return result

    def clear(self):
        """Drop the built voxels and markers."""
        self._voxels = VoxelSet()
        self._markers = []

    # -- outputs --

    @property
    def voxels(self) -> VoxelSet:
        return self._voxels.copy()

    @property
    def voxel_cells(self) -> List[Vec3]:
        return self._voxels.to_list()

    @property
    def generated_markers(self) -> List[Marker]:
        return list(self._markers)

    def marker_counts(self) -> Dict[str, int]:
        return count_markers_by_type(self._markers)

    def emit_sockets(self) -> List[PropSocket]:
        """World-space sockets for the current markers, offset by the room offset."""
        if not self._markers:
            logger.warning("No voxel markers were generated to emit.")
            return []
        return emit_sockets(self._markers, self.settings.grid_size, self.settings.room_offset)
