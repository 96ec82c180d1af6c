"""
Tolerance-based voxel cell storage.
"""

from .voxel_set import VoxelSet, CELL_TOLERANCE

__all__ = [
    'VoxelSet',
    'CELL_TOLERANCE',
]
