"""
Voxel primitives and the primitive catalog.
"""

from .base import (
    ShapeType,
    CompositionOp,
    ShapeDescriptor,
    GenerationContext,
    VoxelPrimitive,
    cell_counts,
)
from .solids import BoxPrimitive, EllipsoidPrimitive, WedgePrimitive
from .image_stamp import ImageStampPrimitive, ImageSamplingSettings, DEFAULT_SAMPLING
from .catalog import PrimitiveCatalog, PRIMITIVE_CATALOG

__all__ = [
    'ShapeType',
    'CompositionOp',
    'ShapeDescriptor',
    'GenerationContext',
    'VoxelPrimitive',
    'cell_counts',
    'BoxPrimitive',
    'EllipsoidPrimitive',
    'WedgePrimitive',
    'ImageStampPrimitive',
    'ImageSamplingSettings',
    'DEFAULT_SAMPLING',
    'PrimitiveCatalog',
    'PRIMITIVE_CATALOG',
]
