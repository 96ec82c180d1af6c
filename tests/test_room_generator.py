"""Tests for the room generator facade and socket emission."""
import logging

import numpy as np
import pytest

from voxel_roomgen.conversion.marker_export import PropSocket, count_markers_by_type, emit_sockets
from voxel_roomgen.conversion.vector_math import IDENTITY, quaternion_from_euler
from voxel_roomgen.generators.primitives import ShapeType
from voxel_roomgen.pipeline import (
    GenerationCancelledException,
    Marker,
    MarkerType,
    PipelineError,
    PipelineStage,
    RoomSettings,
    VoxelRoomGenerator,
)
from voxel_roomgen.validation import ConfigError

# 3x3 cells on the default (4, 2, 4) grid
ROOM_SHAPES = [{"type": "box", "size": (12, 2, 12)}]


@pytest.fixture
def generator():
    return VoxelRoomGenerator(shapes=ROOM_SHAPES)


class TestRoomSettings:
    """Settings defaults and validation."""

    def test_defaults(self):
        settings = RoomSettings()
        assert settings.grid_size == (4.0, 2.0, 4.0)
        assert settings.room_offset == (0, 0, 0)
        assert settings.use_async_build is True
        assert settings.max_build_time_per_frame == 32
        assert settings.validate().passed

    def test_invalid_settings_rejected(self):
        with pytest.raises(ConfigError) as exc_info:
            VoxelRoomGenerator(RoomSettings(grid_size=(4.0, 0.0, 4.0), max_build_time_per_frame=0))
        assert exc_info.value.codes == ["CFG-001", "CFG-005"]

    def test_update_settings_fields(self, generator):
        generator.update_settings(room_offset=(1, 0, 2))
        assert generator.settings.room_offset == (1, 0, 2)
        assert generator.settings.grid_size == (4.0, 2.0, 4.0)

    def test_invalid_update_keeps_previous_settings(self, generator):
        with pytest.raises(ConfigError):
            generator.update_settings(grid_size=(-1.0, 2.0, 4.0))
        assert generator.settings.grid_size == (4.0, 2.0, 4.0)


class TestRegenerate:
    """Synchronous builds."""

    def test_builds_voxels_and_markers(self, generator):
        result = generator.regenerate()
        assert result.success
        assert result.voxel_count == 9
        assert len(result.markers) == 21
        assert result.stages_completed == [
            PipelineStage.INITIALIZE, PipelineStage.GENERATE_VOXELS, PipelineStage.CLASSIFY_MARKERS,
        ]
        assert result.metrics["marker_counts"]["Floor"] == 1
        assert len(generator.voxel_cells) == 9
        assert generator.generated_markers == result.markers

    def test_marker_positions_follow_grid(self, generator):
        generator.regenerate()
        floor = [m for m in generator.generated_markers if m.is_type(MarkerType.FLOOR)]
        assert floor[0].position == (0.0, 0.0, 0.0)
        xs = sorted({m.position[0] for m in generator.generated_markers})
        assert xs == [-8.0, -4.0, 0.0, 4.0, 8.0]

    def test_update_shapes_then_regenerate(self, generator):
        generator.regenerate()
        generator.update_shapes([
            {"type": "box", "size": (12, 2, 12)},
            {"type": "box", "size": (4, 2, 4), "operation": "difference"},
        ])
        result = generator.regenerate()
        assert result.voxel_count == 8
        assert "Floor" not in generator.marker_counts()

    def test_invalid_shapes_rejected(self, generator):
        with pytest.raises(ConfigError):
            generator.update_shapes([{"type": "torus", "size": (1, 1, 1)}])
        assert generator.shapes[0].shape_type == ShapeType.BOX

    def test_empty_room(self, caplog):
        generator = VoxelRoomGenerator()
        with caplog.at_level(logging.WARNING):
            result = generator.regenerate()
        assert result.success
        assert result.voxel_count == 0
        assert result.markers == []
        assert result.warnings
        assert "Voxel cell list is empty" in caplog.text

    def test_results_are_copies(self, generator):
        generator.regenerate()
        generator.generated_markers.clear()
        generator.voxels.add((100.0, 0.0, 0.0))
        assert len(generator.generated_markers) == 21
        assert len(generator.voxel_cells) == 9

    def test_clear(self, generator):
        generator.regenerate()
        generator.clear()
        assert generator.voxel_cells == []
        assert generator.generated_markers == []


class TestBuildSteps:
    """Time-sliced builds commit only on completion."""

    def test_stages_are_yielded_in_order(self, generator):
        progress = list(generator.build_steps())
        assert [p.stage for p in progress] == [
            PipelineStage.INITIALIZE, PipelineStage.GENERATE_VOXELS, PipelineStage.CLASSIFY_MARKERS,
        ]
        assert progress[-1].overall_progress == pytest.approx(1.0)
        assert progress[-1].percentage == 100
        assert generator.current_stage == PipelineStage.COMPLETE

    def test_no_partial_state_between_steps(self, generator):
        steps = generator.build_steps()
        next(steps)
        next(steps)
        assert generator.voxel_cells == []
        assert generator.generated_markers == []
        next(steps)
        assert len(generator.voxel_cells) == 9
        assert len(generator.generated_markers) == 21

    def test_cancel_between_steps(self, generator):
        steps = generator.build_steps()
        next(steps)
        generator.cancel()
        with pytest.raises(GenerationCancelledException):
            next(steps)
        assert generator.voxel_cells == []
        assert not generator.is_running

    def test_cancelled_build_keeps_previous_result(self, generator):
        generator.regenerate()
        steps = generator.build_steps()
        next(steps)
        next(steps)
        generator.cancel()
        with pytest.raises(GenerationCancelledException):
            next(steps)
        assert len(generator.generated_markers) == 21
        assert generator.regenerate().success

    def test_reentrant_build_rejected(self, generator):
        steps = generator.build_steps()
        next(steps)
        with pytest.raises(PipelineError):
            next(generator.build_steps())
        result = generator.regenerate()
        assert not result.success
        assert result.errors

    def test_single_step_when_not_sliced(self, generator):
        generator.update_settings(use_async_build=False)
        steps = generator.build_steps()
        progress = next(steps)
        assert progress.stage == PipelineStage.CLASSIFY_MARKERS
        assert len(generator.generated_markers) == 21
        with pytest.raises(StopIteration):
            next(steps)

    def test_regenerate_reports_every_stage_when_not_sliced(self, generator):
        generator.update_settings(use_async_build=False)
        stage_log = []
        assert len(list(generator.build_steps(stage_log))) == 1
        assert [p.stage for p in stage_log] == [
            PipelineStage.INITIALIZE, PipelineStage.GENERATE_VOXELS, PipelineStage.CLASSIFY_MARKERS,
        ]
        result = generator.regenerate()
        assert len(result.stages_completed) == 3
        assert "generate_voxels_ms" in result.metrics

    def test_cancel_from_callback_when_not_sliced(self, generator):
        generator.update_settings(use_async_build=False)
        generator.set_progress_callback(lambda p: generator.cancel())
        result = generator.regenerate()
        assert not result.success
        assert result.stages_completed == [PipelineStage.INITIALIZE]
        assert generator.generated_markers == []

    def test_progress_callback(self, generator):
        seen = []
        generator.set_progress_callback(lambda p: seen.append(p.stage))
        generator.regenerate()
        assert seen == [
            PipelineStage.INITIALIZE, PipelineStage.GENERATE_VOXELS, PipelineStage.CLASSIFY_MARKERS,
        ]

    def test_failing_callback_does_not_abort_build(self, generator):
        def broken(progress):
            raise RuntimeError("boom")

        generator.set_progress_callback(broken)
        assert generator.regenerate().success


class TestSockets:
    """Marker to socket conversion."""

    def test_world_position_includes_room_offset(self):
        markers = [Marker(position=(1.0, 0.0, -2.0), rotation=IDENTITY, marker_type="Wall")]
        sockets = emit_sockets(markers, grid_size=(4.0, 2.0, 4.0), room_offset=(1, 1, 0))
        assert len(sockets) == 1
        assert isinstance(sockets[0], PropSocket)
        assert sockets[0].socket_type == "Wall"
        assert sockets[0].position == pytest.approx((8.0, 2.0, -8.0))

    def test_transform_carries_rotation(self):
        rotation = quaternion_from_euler((0.0, 90.0, 0.0))
        markers = [Marker(position=(0.0, 0.0, 0.0), rotation=rotation, marker_type="WallArc")]
        transform = emit_sockets(markers, (1.0, 1.0, 1.0))[0].transform
        assert transform.shape == (4, 4)
        forward = transform @ np.array([0.0, 0.0, 1.0, 0.0])
        assert forward[:3] == pytest.approx([1.0, 0.0, 0.0], abs=1e-9)
        assert transform[3] == pytest.approx([0.0, 0.0, 0.0, 1.0])

    def test_generator_sockets(self, generator):
        generator.update_settings(room_offset=(1, 0, 0))
        generator.regenerate()
        sockets = generator.emit_sockets()
        assert len(sockets) == 21
        assert [s.socket_id for s in sockets] == list(range(21))
        for socket, marker in zip(sockets, generator.generated_markers):
            assert socket.socket_type == marker.marker_type
            expected = ((marker.position[0] + 1) * 4.0, marker.position[1] * 2.0, marker.position[2] * 4.0)
            assert socket.position == pytest.approx(expected)

    def test_no_markers_emits_nothing(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert VoxelRoomGenerator().emit_sockets() == []
        assert "No voxel markers" in caplog.text

    def test_count_markers_by_type(self):
        markers = [
            Marker((0.0, 0.0, 0.0), IDENTITY, "Floor"),
            Marker((1.0, 0.0, 0.0), IDENTITY, "Wall"),
            Marker((2.0, 0.0, 0.0), IDENTITY, "Wall"),
        ]
        assert count_markers_by_type(markers) == {"Floor": 1, "Wall": 2}
        assert count_markers_by_type([]) == {}
