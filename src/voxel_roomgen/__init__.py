"""
Voxel room toolkit.

Composes room shapes from voxel primitives and classifies the result into
oriented placement markers (Floor, Wall, WallCorner, Wall45, WallArc, Hull).
"""

__version__ = "0.1.0"

from .conversion.image_source import GrayscaleImage, PixelRect, SpriteRegionCatalog
from .generators.primitives import (
    ShapeType,
    CompositionOp,
    ShapeDescriptor,
    ImageSamplingSettings,
    PRIMITIVE_CATALOG,
)
from .generators.voxels import VoxelSet, CELL_TOLERANCE
from .generators.voxels.composition import generate_voxel_set, union, difference
from .pipeline import (
    VoxelRoomGenerator,
    RoomSettings,
    Marker,
    MarkerType,
    MarkerDetectionRegistry,
    MARKER_REGISTRY,
    classify_markers,
)
from .conversion.marker_export import PropSocket, emit_sockets, count_markers_by_type
from .validation import ConfigError, ValidationResult

__all__ = [
    '__version__',
    'GrayscaleImage',
    'PixelRect',
    'SpriteRegionCatalog',
    'ShapeType',
    'CompositionOp',
    'ShapeDescriptor',
    'ImageSamplingSettings',
    'PRIMITIVE_CATALOG',
    'VoxelSet',
    'CELL_TOLERANCE',
    'generate_voxel_set',
    'union',
    'difference',
    'VoxelRoomGenerator',
    'RoomSettings',
    'Marker',
    'MarkerType',
    'MarkerDetectionRegistry',
    'MARKER_REGISTRY',
    'classify_markers',
    'PropSocket',
    'emit_sockets',
    'count_markers_by_type',
    'ConfigError',
    'ValidationResult',
]
