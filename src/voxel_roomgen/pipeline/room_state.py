"""
Room state data structures for the voxel room pipeline.

This module defines:
- Marker types produced by the classifier
- Markers (typed, oriented placement points)
- Room settings consumed by VoxelRoomGenerator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from voxel_roomgen.conversion.vector_math import IDENTITY, Quat, Vec3
from voxel_roomgen.validation.checks import check_frame_budget, check_grid_size, check_vector
from voxel_roomgen.validation.core import ValidationResult


class MarkerType(Enum):
    """Built-in surface roles, in default detection priority order."""
    HULL = "Hull"                 # Empty cell just outside the solid
    WALL_ARC = "WallArc"          # Exactly one exposed side
    WALL_45 = "Wall45"            # Chamfer: empty diagonal between two occupied sides
    WALL_CORNER = "WallCorner"    # Two or more exposed sides
    WALL = "Wall"                 # At least one exposed side
    FLOOR = "Floor"               # Enclosed on all four sides


@dataclass
class Marker:
    """
    Classified, oriented placement point.

    Markers are derived from the voxel set and recomputed whenever it
    changes. Theme and prop systems consume them to place content.

    Attributes:
        position: Cell centre in grid space (x, y, z)
        rotation: Facing quaternion (x, y, z, w)
        marker_type: Name of the detector that matched (a MarkerType value
            for built-in detectors, any registered name otherwise)
    """
    position: Vec3
    rotation: Quat = IDENTITY
    marker_type: str = MarkerType.FLOOR.value

    def is_type(self, marker_type: Union[MarkerType, str]) -> bool:
        if isinstance(marker_type, MarkerType):
            marker_type = marker_type.value
        return self.marker_type == marker_type


@dataclass
class RoomSettings:
    """
    Per-room build configuration.

    Attributes:
        grid_size: Cell edge lengths (x, y, z)
        room_offset: Integer room translation in cells, applied to emitted sockets
        use_async_build: build_steps pauses after every stage; when False it runs
            all stages in one step
        max_build_time_per_frame: Frame budget for time-sliced builds (ms)
    """
    grid_size: Vec3 = (4.0, 2.0, 4.0)
    room_offset: Tuple[int, int, int] = (0, 0, 0)
    use_async_build: bool = True
    max_build_time_per_frame: int = 32

    def validate(self) -> ValidationResult:
        """Check all fields without raising."""
        result = ValidationResult()
        result.extend(check_grid_size(self.grid_size, "settings.grid_size"))
        result.extend(check_vector("room_offset", self.room_offset, "settings.room_offset"))
        result.extend(check_frame_budget(self.max_build_time_per_frame, "settings.max_build_time_per_frame"))
        return result
