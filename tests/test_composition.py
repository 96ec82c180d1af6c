"""Tests for descriptor validation and shape composition."""
import logging

import pytest

from voxel_roomgen.generators.primitives import CompositionOp, ShapeDescriptor, ShapeType
from voxel_roomgen.generators.voxels.composition import (
    difference,
    generate_voxel_set,
    union,
    validate_descriptors,
)
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet
from voxel_roomgen.validation import ConfigError

GRID = (1.0, 1.0, 1.0)


def box(extents, offset=(0.0, 0.0, 0.0), operation=CompositionOp.UNION):
    return ShapeDescriptor(ShapeType.BOX, extents=extents, offset=offset, operation=operation)


class TestSetOperators:
    """union() and difference() over voxel sets."""

    def test_difference_undoes_disjoint_union(self):
        a = VoxelSet([(x, 0.0, z) for x in (-1.0, 0.0, 1.0) for z in (-1.0, 0.0, 1.0)])
        b = VoxelSet([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])
        offset = (5.0, 0.0, 0.0)
        combined = union(a, b, offset)
        assert len(combined) == 11
        assert difference(combined, b, offset).matches(a)

    def test_operators_return_new_sets(self):
        a = VoxelSet([(0.0, 0.0, 0.0)])
        union(a, [(1.0, 0.0, 0.0)])
        difference(a, [(0.0, 0.0, 0.0)])
        assert a.to_list() == [(0.0, 0.0, 0.0)]


class TestGenerateVoxelSet:
    """Folding descriptor lists into one composite."""

    def test_single_box_scenario(self):
        cells = generate_voxel_set([box((4.0, 2.0, 4.0))], (2.0, 2.0, 2.0))
        assert len(cells) == 4
        assert cells.matches([(-1.0, 0.0, -1.0), (-1.0, 0.0, 1.0), (1.0, 0.0, -1.0), (1.0, 0.0, 1.0)])

    def test_base_stays_centred_on_origin(self):
        cells = generate_voxel_set([box((1.0, 1.0, 1.0), offset=(5.0, 0.0, 0.0))], GRID)
        assert cells.to_list() == [(0.0, 0.0, 0.0)]

    def test_later_offsets_are_relative_to_unshifted_base(self):
        cells = generate_voxel_set([
            box((1.0, 1.0, 1.0), offset=(5.0, 0.0, 0.0)),
            box((1.0, 1.0, 1.0), offset=(1.0, 0.0, 0.0)),
        ], GRID)
        assert cells.matches([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])

    def test_base_operation_is_ignored(self):
        cells = generate_voxel_set([box((1.0, 1.0, 1.0), operation=CompositionOp.DIFFERENCE)], GRID)
        assert len(cells) == 1

    def test_difference_carves_hole(self):
        cells = generate_voxel_set([
            box((3.0, 1.0, 3.0)),
            box((1.0, 1.0, 1.0), operation=CompositionOp.DIFFERENCE),
        ], GRID)
        assert len(cells) == 8
        assert (0.0, 0.0, 0.0) not in cells

    def test_union_with_offset(self):
        cells = generate_voxel_set([
            box((1.0, 1.0, 1.0)),
            box((1.0, 1.0, 1.0), offset=(1.0, 0.0, 0.0)),
            box((1.0, 1.0, 1.0), offset=(1.02, 0.0, 0.0)),
        ], GRID)
        assert len(cells) == 2

    def test_dict_descriptors(self):
        cells = generate_voxel_set([
            {"type": "cube", "size": (3, 1, 3)},
            {"type": "Box", "extents": [1, 1, 1], "operation": "subtract"},
        ], GRID)
        assert len(cells) == 8

    def test_deterministic(self):
        shapes = [
            ShapeDescriptor(ShapeType.ELLIPSOID, extents=(7.0, 3.0, 5.0)),
            ShapeDescriptor(ShapeType.WEDGE, extents=(3.0, 3.0, 3.0), offset=(2.0, 0.0, 0.0),
                            rotation=(0.0, 30.0, 0.0)),
            box((1.0, 3.0, 1.0), operation=CompositionOp.DIFFERENCE),
        ]
        first = generate_voxel_set(shapes, GRID)
        second = generate_voxel_set(shapes, GRID)
        assert len(first) == len(second)
        assert first.matches(second)
        assert first.to_list() == second.to_list()

    def test_empty_descriptor_list(self):
        cells = generate_voxel_set([], GRID)
        assert isinstance(cells, VoxelSet)
        assert len(cells) == 0

    def test_degenerate_stamp_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            cells = generate_voxel_set([
                box((3.0, 1.0, 3.0)),
                ShapeDescriptor(ShapeType.IMAGE_STAMP, extents=(3.0, 1.0, 3.0)),
            ], GRID)
        assert len(cells) == 9
        assert "SHAPE-001" in caplog.text

    def test_first_match_wins_for_overlapping_cells(self):
        cells = generate_voxel_set([
            box((1.0, 1.0, 1.0)),
            box((1.0, 1.0, 1.0), offset=(0.05, 0.0, 0.0)),
        ], GRID)
        assert cells.to_list() == [(0.0, 0.0, 0.0)]


class TestConfigErrors:
    """Invalid configuration is rejected before generation."""

    @pytest.mark.parametrize("grid", [(0.0, 1.0, 1.0), (1.0, -2.0, 1.0), (1.0, 1.0, 0.0)])
    def test_non_positive_grid(self, grid):
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([box((1.0, 1.0, 1.0))], grid)
        assert "CFG-001" in exc_info.value.codes

    def test_non_positive_grid_with_empty_list(self):
        with pytest.raises(ConfigError):
            generate_voxel_set([], (0.0, 1.0, 1.0))

    def test_unknown_shape_tag(self):
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([{"type": "pyramid", "size": (1, 1, 1)}], GRID)
        assert exc_info.value.codes == ["CFG-002"]

    def test_unknown_operation_tag(self):
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([{"type": "box", "size": (1, 1, 1), "operation": "xor"}], GRID)
        assert exc_info.value.codes == ["CFG-003"]

    def test_untyped_descriptor(self):
        descriptor = ShapeDescriptor(shape_type="Box", extents=(1.0, 1.0, 1.0))
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([descriptor], GRID)
        assert "CFG-002" in exc_info.value.codes

    def test_negative_extent(self):
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([box((1.0, -1.0, 1.0))], GRID)
        assert exc_info.value.codes == ["CFG-004"]

    def test_all_problems_reported_together(self):
        _, result = validate_descriptors([
            {"type": "pyramid", "size": (1, 1, 1)},
            {"type": "box", "size": (1, 1)},
        ], (0.0, 1.0, 1.0))
        assert result.failed
        assert result.codes == ["CFG-001", "CFG-002", "CFG-006"]
        assert "shapes[1]" in result.report()

    def test_nothing_generated_on_error(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="voxel_roomgen.generators.primitives"):
            with pytest.raises(ConfigError):
                generate_voxel_set([box((3.0, 1.0, 3.0)), {"type": "nope"}], GRID)
        assert "Box" not in caplog.text


class TestDescriptorParsing:
    """ShapeDescriptor.from_dict."""

    def test_defaults(self):
        descriptor = ShapeDescriptor.from_dict({"type": "sphere", "size": (2, 2, 2)})
        assert descriptor.shape_type == ShapeType.ELLIPSOID
        assert descriptor.operation == CompositionOp.UNION
        assert descriptor.offset == (0.0, 0.0, 0.0)
        assert descriptor.extents == (2.0, 2.0, 2.0)

    def test_image_fields(self):
        descriptor = ShapeDescriptor.from_dict({
            "type": "FromImage", "size": (4, 1, 4), "sprite_name": "door", "rect": (0, 0, 8, 8),
        })
        assert descriptor.shape_type == ShapeType.IMAGE_STAMP
        assert descriptor.region_name == "door"
        assert descriptor.region_rect.width == 8.0

    def test_enum_members_accepted(self):
        descriptor = ShapeDescriptor.from_dict({
            "type": ShapeType.WEDGE, "size": (1, 1, 1), "operation": CompositionOp.DIFFERENCE,
        })
        assert descriptor.shape_type == ShapeType.WEDGE
        assert descriptor.operation == CompositionOp.DIFFERENCE

    def test_malformed_rect_is_a_config_error(self):
        with pytest.raises(ConfigError) as exc_info:
            ShapeDescriptor.from_dict({"type": "image", "size": (4, 1, 4), "rect": (0, 0, 8)}, "shapes[2]")
        assert exc_info.value.codes == ["CFG-007"]
        assert exc_info.value.locations == ["shapes[2]"]

    def test_image_must_be_grayscale_image(self):
        with pytest.raises(ConfigError) as exc_info:
            ShapeDescriptor.from_dict({"type": "image", "size": (4, 1, 4), "image": "door.png"})
        assert exc_info.value.codes == ["CFG-008"]

    def test_stamp_problems_reported_with_other_issues(self):
        with pytest.raises(ConfigError) as exc_info:
            ShapeDescriptor.from_dict({
                "type": "image", "size": (4, 1), "image": [[1, 0]], "rect": "0088",
            })
        assert exc_info.value.codes == ["CFG-006", "CFG-008", "CFG-007"]

    def test_direct_descriptor_with_bad_image(self):
        descriptor = ShapeDescriptor(ShapeType.IMAGE_STAMP, extents=(4.0, 1.0, 4.0), image=object())
        with pytest.raises(ConfigError) as exc_info:
            generate_voxel_set([descriptor], GRID)
        assert exc_info.value.codes == ["CFG-008"]
