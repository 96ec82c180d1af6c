"""
Tolerance-based voxel cell set.

Cells are (x, y, z) float tuples. Two cells are the same cell when their
distance is below CELL_TOLERANCE, so composition drift (rotations, float
offsets) never produces near-duplicates.

Membership uses a spatial hash: each cell is filed under its coordinates
quantized to bins one tolerance wide. Any cell within tolerance of a query
point lies in the query's bin or one of its 26 neighbours, so a lookup is
a 27-bin probe with an exact distance test instead of a scan of the set.
Iteration order is insertion order.
"""

from __future__ import annotations
import math
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from voxel_roomgen.conversion.vector_math import Vec3, add, as_vec3

CELL_TOLERANCE = 0.1

BinKey = Tuple[int, int, int]

_NEIGHBOR_BINS = [
    (dx, dy, dz)
    for dx in (-1, 0, 1)
    for dy in (-1, 0, 1)
    for dz in (-1, 0, 1)
]


class VoxelSet:
    """Unordered collection of voxel cells with tolerance-based uniqueness."""

    def __init__(self, cells: Iterable[Vec3] = (), tolerance: float = CELL_TOLERANCE):
        if tolerance <= 0:
            raise ValueError("Tolerance must be positive")
        self.tolerance = tolerance
        self._tolerance_sq = tolerance * tolerance
        self._cells: Dict[int, Vec3] = {}
        self._bins: Dict[BinKey, List[int]] = {}
        self._next_id = 0
        for cell in cells:
            self.add(cell)

    # ---------------------------------------------------------------
    # Spatial hash
    # ---------------------------------------------------------------

    def _bin_key(self, cell: Vec3) -> BinKey:
        t = self.tolerance
        return (math.floor(cell[0] / t), math.floor(cell[1] / t), math.floor(cell[2] / t))

    def _near_ids(self, cell: Vec3) -> Iterator[int]:
        """Ids of stored cells strictly within tolerance of `cell`."""
        bx, by, bz = self._bin_key(cell)
        for dx, dy, dz in _NEIGHBOR_BINS:
            ids = self._bins.get((bx + dx, by + dy, bz + dz))
            if not ids:
                continue
            for cell_id in ids:
                other = self._cells[cell_id]
                ddx = other[0] - cell[0]
                ddy = other[1] - cell[1]
                ddz = other[2] - cell[2]
                if ddx * ddx + ddy * ddy + ddz * ddz < self._tolerance_sq:
                    yield cell_id

    # ---------------------------------------------------------------
    # Set operations
    # ---------------------------------------------------------------

    def find(self, cell: Vec3) -> Optional[Vec3]:
        """Return the stored cell matching `cell` within tolerance, if any."""
        for cell_id in self._near_ids(cell):
            return self._cells[cell_id]
        return None

    def contains(self, cell: Vec3) -> bool:
        return self.find(cell) is not None

    def __contains__(self, cell) -> bool:
        return self.contains(as_vec3(cell))

    def add(self, cell: Vec3) -> bool:
        """Add a cell unless one already lies within tolerance. Returns True if added."""
        cell = as_vec3(cell)
        if self.contains(cell):
            return False
        cell_id = self._next_id
        self._next_id += 1
        self._cells[cell_id] = cell
        self._bins.setdefault(self._bin_key(cell), []).append(cell_id)
        return True

    def discard_near(self, cell: Vec3) -> int:
        """Remove every stored cell within tolerance of `cell`. Returns the count removed."""
        cell = as_vec3(cell)
        doomed = list(self._near_ids(cell))
        for cell_id in doomed:
            stored = self._cells.pop(cell_id)
            key = self._bin_key(stored)
            bucket = self._bins[key]
            bucket.remove(cell_id)
            if not bucket:
                del self._bins[key]
        return len(doomed)

    def copy(self) -> 'VoxelSet':
        result = VoxelSet(tolerance=self.tolerance)
        for cell in self._cells.values():
            result._insert_unchecked(cell)
        return result

    def _insert_unchecked(self, cell: Vec3) -> None:
        cell_id = self._next_id
        self._next_id += 1
        self._cells[cell_id] = cell
        self._bins.setdefault(self._bin_key(cell), []).append(cell_id)

    def union(self, addend: Iterable[Vec3], offset: Vec3 = (0.0, 0.0, 0.0)) -> 'VoxelSet':
        """New set: this set plus every translated addend cell not already present."""
        offset = as_vec3(offset)
        result = self.copy()
        for cell in addend:
            result.add(add(cell, offset))
        return result

    def difference(self, subtrahend: Iterable[Vec3], offset: Vec3 = (0.0, 0.0, 0.0)) -> 'VoxelSet':
        """New set: this set minus every cell within tolerance of a translated subtrahend cell."""
        offset = as_vec3(offset)
        result = self.copy()
        for cell in subtrahend:
            result.discard_near(add(cell, offset))
        return result

    def matches(self, other: Iterable[Vec3]) -> bool:
        """True when both sets hold the same cells within tolerance."""
        other_set = other if isinstance(other, VoxelSet) else VoxelSet(other, self.tolerance)
        if len(other_set) != len(self):
            return False
        return all(self.contains(cell) for cell in other_set)

    # ---------------------------------------------------------------
    # Inspection
    # ---------------------------------------------------------------

    def bounds(self) -> Optional[Tuple[Vec3, Vec3]]:
        """(min, max) corners of the occupied cells, or None when empty."""
        if not self._cells:
            return None
        cells = self._cells.values()
        mins = tuple(min(c[axis] for c in cells) for axis in range(3))
        maxs = tuple(max(c[axis] for c in cells) for axis in range(3))
        return mins, maxs

    def to_list(self) -> List[Vec3]:
        return list(self._cells.values())

    def __iter__(self) -> Iterator[Vec3]:
        return iter(list(self._cells.values()))

    def __len__(self) -> int:
        return len(self._cells)

    def __bool__(self) -> bool:
        return bool(self._cells)

    def __repr__(self) -> str:
        return f"<VoxelSet {len(self)} cells tol={self.tolerance}>"
