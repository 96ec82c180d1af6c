"""
Solid primitives: Box, Ellipsoid and Wedge.

All three walk the same centred lattice (see base.iter_lattice) and differ
only in the membership test. Box and Wedge apply the descriptor's Euler
rotation to accepted cells; an ellipsoid is rasterized unrotated.
"""

from __future__ import annotations
import logging
from typing import Optional

from voxel_roomgen.conversion.vector_math import Vec3
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet

from .base import (
    GenerationContext, ShapeDescriptor, ShapeType, VoxelPrimitive,
    cell_counts, euler_rotation, iter_lattice,
)

logger = logging.getLogger(__name__)


class BoxPrimitive(VoxelPrimitive):
    """Every cell of the index range."""

    shape_type = ShapeType.BOX

    def generate(self, descriptor: ShapeDescriptor, grid_size: Vec3,
                 context: Optional[GenerationContext] = None) -> VoxelSet:
        counts = cell_counts(descriptor.extents, grid_size)
        rotation = euler_rotation(descriptor.rotation)
        cells = VoxelSet()
        for _, p in iter_lattice(counts, grid_size):
            self._emit(cells, p, rotation)
        logger.debug("Box %s -> %d cells", counts, len(cells))
        return cells


class EllipsoidPrimitive(VoxelPrimitive):
    """Cells whose centre lies inside the inscribed ellipsoid."""

    shape_type = ShapeType.ELLIPSOID
    applies_rotation = False

    def generate(self, descriptor: ShapeDescriptor, grid_size: Vec3,
                 context: Optional[GenerationContext] = None) -> VoxelSet:
        counts = cell_counts(descriptor.extents, grid_size)
        hx, hy, hz = (e / 2.0 for e in descriptor.extents)
        cells = VoxelSet()
        for _, p in iter_lattice(counts, grid_size):
            dx = p[0] / hx
            dy = p[1] / hy
            dz = p[2] / hz
            if dx * dx + dy * dy + dz * dz <= 1.0:
                self._emit(cells, p, None)
        logger.debug("Ellipsoid %s -> %d cells", counts, len(cells))
        return cells


class WedgePrimitive(VoxelPrimitive):
    """Pyramidal taper: full cross-section at the base, a point at the top."""

    shape_type = ShapeType.WEDGE

    def generate(self, descriptor: ShapeDescriptor, grid_size: Vec3,
                 context: Optional[GenerationContext] = None) -> VoxelSet:
        counts = cell_counts(descriptor.extents, grid_size)
        hx, hy, hz = (e / 2.0 for e in descriptor.extents)
        rotation = euler_rotation(descriptor.rotation)
        cells = VoxelSet()
        for _, p in iter_lattice(counts, grid_size):
            taper = 1.0 - p[1] / hy
            if abs(p[0]) <= taper * hx and abs(p[2]) <= taper * hz:
                self._emit(cells, p, rotation)
        logger.debug("Wedge %s -> %d cells", counts, len(cells))
        return cells
