"""
Marker detection: classify voxel cells into surface roles.

The classifier scans every lattice cell of the occupied bounding box
(widened by one step on X and Z so the empty ring around the solid can be
classified as Hull) and asks each registered detector, in registration
order, whether the cell matches. The first match wins and produces one
Marker; cells matching nothing produce none.

Adjacency is horizontal only: left, right, forward and back, scaled by the
grid size. Vertical stacking is never inspected.

Built-in detector order:
- Hull: empty, with at least one occupied face neighbour
- WallArc: occupied, exactly 3 occupied face neighbours
- Wall45: occupied, some diagonal is empty while both of its sides are occupied
- WallCorner: occupied, not Wall45, 2 or more exposed sides
- Wall: occupied, at least one exposed side
- Floor: occupied, no exposed side

Callers can register more detectors. They are tried after the built-ins
unless the registry is rebuilt in a different order.
"""

from __future__ import annotations
import logging
import math
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from voxel_roomgen.conversion.vector_math import (
    BACK, FORWARD, IDENTITY, LEFT, RIGHT, Quat, Vec3, add, as_vec3, look_rotation, negate, scale,
)
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet
from voxel_roomgen.validation import require_valid_grid_size

from .room_state import Marker, MarkerType

logger = logging.getLogger(__name__)

DetectorFn = Callable[[Vec3, VoxelSet, Vec3], bool]

# Scan order for neighbours and facing
DIRECTIONS: Tuple[Vec3, ...] = (LEFT, RIGHT, FORWARD, BACK)

# (diagonal, x side, z side)
DIAGONALS: Tuple[Tuple[Vec3, Vec3, Vec3], ...] = tuple(
    (add(x_side, z_side), x_side, z_side)
    for x_side in (LEFT, RIGHT)
    for z_side in (FORWARD, BACK)
)

# Guards floor() in the scan extent against spans like 0.3 / 0.1 = 2.9999999999999996
_SCAN_EPSILON = 1e-6


# ---------------------------------------------------------------------------
# Neighbourhood helpers
# ---------------------------------------------------------------------------

def neighbor(cell: Vec3, direction: Vec3, grid_size: Vec3) -> Vec3:
    return add(cell, scale(direction, grid_size))


def occupied_neighbors(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> int:
    """Number of occupied face neighbours (0-4)."""
    return sum(1 for d in DIRECTIONS if voxels.contains(neighbor(cell, d, grid_size)))


def first_exposed_direction(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> Optional[Vec3]:
    for d in DIRECTIONS:
        if not voxels.contains(neighbor(cell, d, grid_size)):
            return d
    return None


# ---------------------------------------------------------------------------
# Built-in detectors
# ---------------------------------------------------------------------------

def is_hull(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if voxels.contains(cell):
        return False
    return occupied_neighbors(cell, voxels, grid_size) > 0


def is_wall_arc(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if not voxels.contains(cell):
        return False
    return occupied_neighbors(cell, voxels, grid_size) == 3


def is_wall_45(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if not voxels.contains(cell):
        return False
    for diagonal, x_side, z_side in DIAGONALS:
        if (not voxels.contains(neighbor(cell, diagonal, grid_size))
                and voxels.contains(neighbor(cell, x_side, grid_size))
                and voxels.contains(neighbor(cell, z_side, grid_size))):
            return True
    return False


def is_wall_corner(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if not voxels.contains(cell):
        return False
    exposed = len(DIRECTIONS) - occupied_neighbors(cell, voxels, grid_size)
    return exposed >= 2 and not is_wall_45(cell, voxels, grid_size)


def is_wall(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if not voxels.contains(cell):
        return False
    return occupied_neighbors(cell, voxels, grid_size) < len(DIRECTIONS)


def is_floor(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> bool:
    if not voxels.contains(cell):
        return False
    return occupied_neighbors(cell, voxels, grid_size) == len(DIRECTIONS)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class MarkerDetectionRegistry:
    """Ordered mapping of marker type name to detector."""

    def __init__(self):
        self._detectors: Dict[str, DetectorFn] = {}

    def register(self, marker_type: Union[MarkerType, str], detector: DetectorFn) -> None:
        """Register a detector. Re-registering a name replaces it in place."""
        name = marker_type.value if isinstance(marker_type, MarkerType) else str(marker_type)
        if not name:
            raise ValueError("Marker type name cannot be empty")
        if not callable(detector):
            raise TypeError(f"Detector for {name!r} is not callable")
        self._detectors[name] = detector

    def unregister(self, marker_type: Union[MarkerType, str]) -> bool:
        name = marker_type.value if isinstance(marker_type, MarkerType) else str(marker_type)
        return self._detectors.pop(name, None) is not None

    def get(self, marker_type: Union[MarkerType, str]) -> Optional[DetectorFn]:
        name = marker_type.value if isinstance(marker_type, MarkerType) else str(marker_type)
        return self._detectors.get(name)

    def names(self) -> List[str]:
        return list(self._detectors.keys())

    def all_detectors(self) -> Iterator[Tuple[str, DetectorFn]]:
        return iter(list(self._detectors.items()))

    def copy(self) -> 'MarkerDetectionRegistry':
        clone = MarkerDetectionRegistry()
        clone._detectors = dict(self._detectors)
        return clone

    def __len__(self) -> int:
        return len(self._detectors)

    def __contains__(self, marker_type) -> bool:
        return self.get(marker_type) is not None


def create_default_registry() -> MarkerDetectionRegistry:
    registry = MarkerDetectionRegistry()
    registry.register(MarkerType.HULL, is_hull)
    registry.register(MarkerType.WALL_ARC, is_wall_arc)
    registry.register(MarkerType.WALL_45, is_wall_45)
    registry.register(MarkerType.WALL_CORNER, is_wall_corner)
    registry.register(MarkerType.WALL, is_wall)
    registry.register(MarkerType.FLOOR, is_floor)
    return registry


# Global registry used when callers pass none
MARKER_REGISTRY = create_default_registry()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def determine_facing(cell: Vec3, voxels: VoxelSet, grid_size: Vec3) -> Quat:
    """Inward-facing rotation along the first exposed side.

    Empty cells (Hull) and enclosed cells get the identity rotation.
    """
    if not voxels.contains(cell):
        return IDENTITY
    exposed = first_exposed_direction(cell, voxels, grid_size)
    if exposed is None:
        return IDENTITY
    return look_rotation(negate(exposed))


def scan_domain(voxels: VoxelSet, grid_size: Vec3) -> Iterator[Vec3]:
    """Lattice cells of the occupied bounds, one extra step out on X and Z."""
    bounds = voxels.bounds()
    if bounds is None:
        return
    mins, maxs = bounds
    gx, gy, gz = grid_size
    origin = (mins[0] - gx, mins[1], mins[2] - gz)
    nx = math.floor((maxs[0] - mins[0]) / gx + _SCAN_EPSILON) + 3
    ny = math.floor((maxs[1] - mins[1]) / gy + _SCAN_EPSILON) + 1
    nz = math.floor((maxs[2] - mins[2]) / gz + _SCAN_EPSILON) + 3
    for i in range(nx):
        for j in range(ny):
            for k in range(nz):
                yield (origin[0] + i * gx, origin[1] + j * gy, origin[2] + k * gz)


def classify_markers(
    voxels: Union[VoxelSet, Iterable[Vec3]],
    grid_size,
    registry: Optional[MarkerDetectionRegistry] = None,
) -> List[Marker]:
    """
    Classify every candidate cell of a voxel set.

    Args:
        voxels: Composite voxel set (or any iterable of cells); never mutated
        grid_size: Cell edge lengths, all positive
        registry: Detectors to use (MARKER_REGISTRY when None)

    Returns:
        Markers in scan order (X, then Y, then Z), at most one per cell.

    Raises:
        ConfigError: Non-positive grid size
    """
    require_valid_grid_size(grid_size)
    grid = as_vec3(grid_size)
    if registry is None:
        registry = MARKER_REGISTRY
    if not isinstance(voxels, VoxelSet):
        voxels = VoxelSet(voxels)

    if not voxels:
        logger.debug("Empty voxel set, no markers")
        return []

    detectors = list(registry.all_detectors())
    markers: List[Marker] = []
    scanned = 0

    for cell in scan_domain(voxels, grid):
        scanned += 1
        for name, detector in detectors:
            if detector(cell, voxels, grid):
                rotation = determine_facing(cell, voxels, grid)
                markers.append(Marker(position=cell, rotation=rotation, marker_type=name))
                break

    logger.info("Classified %d markers from %d voxel cells (%d candidates scanned)",
                len(markers), len(voxels), scanned)
    return markers
