"""
Marker export utilities.

Convert classified markers into placement sockets for theme and prop
systems, and summarize marker lists for statistics.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from voxel_roomgen.conversion.vector_math import Vec3, add, as_vec3, scale, trs_matrix
from voxel_roomgen.pipeline.room_state import Marker


@dataclass
class PropSocket:
    """
    World-space placement socket derived from a marker.

    Attributes:
        socket_id: Sequential id within one emission
        socket_type: Marker type name (e.g. "Floor", "WallArc")
        transform: 4x4 translate-rotate-scale matrix
    """
    socket_id: int
    socket_type: str
    transform: np.ndarray

    @property
    def position(self) -> Vec3:
        return tuple(float(v) for v in self.transform[:3, 3])


def emit_sockets(markers: Sequence[Marker], grid_size: Vec3,
                 room_offset: Vec3 = (0, 0, 0)) -> List[PropSocket]:
    """
    Convert markers to world-space sockets.

    Each socket sits at (marker.position + room_offset) * grid_size with the
    marker's rotation and unit scale.

    Args:
        markers: Classified markers
        grid_size: Cell edge lengths
        room_offset: Room translation, in the same space as marker positions

    Returns:
        One PropSocket per marker, in marker order
    """
    grid = as_vec3(grid_size)
    offset = as_vec3(room_offset)
    sockets = []
    for index, marker in enumerate(markers):
        world = scale(add(marker.position, offset), grid)
        sockets.append(PropSocket(
            socket_id=index,
            socket_type=marker.marker_type,
            transform=trs_matrix(world, marker.rotation),
        ))
    return sockets


def count_markers_by_type(markers: Sequence[Marker]) -> Dict[str, int]:
    """
    Count markers by type for statistics.

    Args:
        markers: List of markers

    Returns:
        Dict mapping marker type names to counts
    """
    counts: Dict[str, int] = {}
    for marker in markers:
        counts[marker.marker_type] = counts.get(marker.marker_type, 0) + 1
    return counts
