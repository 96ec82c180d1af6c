"""
Voxel Room Pipeline Module.

Provides marker classification and the room generator facade.
"""

from .room_generator import (
    VoxelRoomGenerator,
    RoomBuildResult,
    BuildProgress,
    PipelineStage,
    PipelineError,
    GenerationCancelledException,
)

from .room_state import (
    Marker,
    MarkerType,
    RoomSettings,
)

from .marker_detection import (
    MarkerDetectionRegistry,
    MARKER_REGISTRY,
    create_default_registry,
    classify_markers,
)

__all__ = [
    # Pipeline core
    'VoxelRoomGenerator',
    'RoomBuildResult',
    'BuildProgress',
    'PipelineStage',
    'PipelineError',
    'GenerationCancelledException',
    # Room state
    'Marker',
    'MarkerType',
    'RoomSettings',
    # Classification
    'MarkerDetectionRegistry',
    'MARKER_REGISTRY',
    'create_default_registry',
    'classify_markers',
]
