"""
Shared test fixtures for voxel room generation tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_roomgen.conversion.image_source import GrayscaleImage
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet


UNIT_GRID = (1.0, 1.0, 1.0)


def block_cells(nx, nz, y=0.0, grid=UNIT_GRID):
    """Cells of an nx by nz slab centred on the origin (odd sizes land on integers)."""
    cx = (nx - 1) / 2.0
    cz = (nz - 1) / 2.0
    return [((i - cx) * grid[0], y, (k - cz) * grid[2]) for i in range(nx) for k in range(nz)]


@pytest.fixture
def unit_grid():
    return UNIT_GRID


@pytest.fixture
def single_cell():
    """One occupied cell at the origin."""
    return VoxelSet([(0.0, 0.0, 0.0)])


@pytest.fixture
def slab_3x3():
    """A solid 3x3x1 block of cells centred on the origin."""
    return VoxelSet(block_cells(3, 3))


@pytest.fixture
def notched_slab_3x3():
    """3x3x1 block with the (+X, +Z) corner removed."""
    cells = [c for c in block_cells(3, 3) if c != (1.0, 0.0, 1.0)]
    return VoxelSet(cells)


@pytest.fixture
def left_half_image():
    """4x4 image: columns 0-1 white, columns 2-3 black."""
    pixels = np.zeros((4, 4), dtype=np.float64)
    pixels[:, :2] = 1.0
    return GrayscaleImage(pixels, name="left_half")


@pytest.fixture
def right_half_image():
    """4x4 image: columns 0-1 black, columns 2-3 white."""
    pixels = np.zeros((4, 4), dtype=np.float64)
    pixels[:, 2:] = 1.0
    return GrayscaleImage(pixels, name="right_half")
