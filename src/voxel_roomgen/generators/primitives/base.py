"""
Base classes for voxel primitives.

A ShapeDescriptor names one primitive (type, extents, rotation) plus how it
is folded into the running composite (offset, operation). Each primitive
class rasterizes a descriptor into a VoxelSet of cell centres in its own
local frame, centred on the origin. Offsets are applied later, during
composition.
"""

from __future__ import annotations
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from voxel_roomgen.conversion.image_source import GrayscaleImage, PixelRect
from voxel_roomgen.conversion.vector_math import (
    Quat, Vec3, as_vec3, is_zero, quaternion_from_euler, rotate_vector,
)
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet
from voxel_roomgen.validation.core import ConfigError, ValidationIssue, ValidationResult
from voxel_roomgen.validation.checks import check_extents, check_pixel_rect, check_vector, parse_enum_tag
from voxel_roomgen.validation.rules import CFG_002, CFG_003, CFG_008

if TYPE_CHECKING:
    from voxel_roomgen.conversion.image_source import SpriteRegionCatalog
    from .image_stamp import ImageSamplingSettings


Index3 = Tuple[int, int, int]

# Guards ceil() against quotients like 1.1 / 0.1 = 11.000000000000002
_CEIL_EPSILON = 1e-9


class ShapeType(Enum):
    """Closed set of voxel primitives."""
    BOX = "Box"
    ELLIPSOID = "Ellipsoid"
    WEDGE = "Wedge"
    IMAGE_STAMP = "ImageStamp"


class CompositionOp(Enum):
    """How a descriptor is folded into the running composite."""
    UNION = "Union"
    DIFFERENCE = "Difference"


# Legacy tag names accepted when parsing descriptor dicts
SHAPE_TYPE_ALIASES = {
    'cube': ShapeType.BOX,
    'sphere': ShapeType.ELLIPSOID,
    'fromimage': ShapeType.IMAGE_STAMP,
    'image': ShapeType.IMAGE_STAMP,
}

OPERATION_ALIASES = {
    'add': CompositionOp.UNION,
    'subtract': CompositionOp.DIFFERENCE,
}


@dataclass
class ShapeDescriptor:
    """
    One step of a composite shape.

    Attributes:
        shape_type: Primitive to rasterize
        extents: Full size along each axis (world units)
        offset: Translation applied when folding into the composite
        rotation: Euler angles in degrees, applied before the offset
        operation: Union or Difference (ignored for the first descriptor)
        image: Grayscale source (ImageStamp only)
        region_name: Named sub-region of the image (ImageStamp only)
        region_rect: Explicit sampling rectangle; wins over region_name
    """
    shape_type: ShapeType
    extents: Vec3
    offset: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    operation: CompositionOp = CompositionOp.UNION
    image: Optional[GrayscaleImage] = None
    region_name: Optional[str] = None
    region_rect: Optional[PixelRect] = None

    def validate(self, location: Optional[str] = None) -> ValidationResult:
        """Check tags, vectors and image stamp inputs without raising."""
        result = ValidationResult()
        if not isinstance(self.shape_type, ShapeType):
            result.add(CFG_002.issue(
                location=location, value=self.shape_type,
                choices=", ".join(t.value for t in ShapeType)))
        if not isinstance(self.operation, CompositionOp):
            result.add(CFG_003.issue(
                location=location, value=self.operation,
                choices=", ".join(op.value for op in CompositionOp)))
        result.extend(check_extents(self.extents, location))
        result.extend(check_vector("offset", self.offset, location))
        result.extend(check_vector("rotation", self.rotation, location))
        result.extend(_check_stamp_source(self.image, self.region_rect, location))
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any], location: Optional[str] = None) -> 'ShapeDescriptor':
        """
        Build a descriptor from a configuration dict.

        Recognized keys: type, size/extents, offset, rotation, operation,
        image, region (or sprite_name), rect. Tags are matched
        case-insensitively; unknown tags, bad vectors, a malformed rect or a
        non-GrayscaleImage image raise ConfigError with every issue found.
        """
        result = ValidationResult()

        shape_type, issues = parse_enum_tag(
            ShapeType, data.get('type'), CFG_002, SHAPE_TYPE_ALIASES, location)
        result.extend(issues)
        operation, issues = parse_enum_tag(
            CompositionOp, data.get('operation', CompositionOp.UNION), CFG_003,
            OPERATION_ALIASES, location)
        result.extend(issues)

        extents = data.get('extents', data.get('size', (0.0, 0.0, 0.0)))
        offset = data.get('offset', (0.0, 0.0, 0.0))
        rotation = data.get('rotation', (0.0, 0.0, 0.0))
        image = data.get('image')
        rect = data.get('rect')
        result.extend(check_extents(extents, location))
        result.extend(check_vector("offset", offset, location))
        result.extend(check_vector("rotation", rotation, location))
        result.extend(_check_stamp_source(image, rect, location))

        if result.failed:
            raise ConfigError(result)

        if rect is not None and not isinstance(rect, PixelRect):
            rect = PixelRect.from_sequence(rect)

        return cls(
            shape_type=shape_type,
            extents=as_vec3(extents),
            offset=as_vec3(offset),
            rotation=as_vec3(rotation),
            operation=operation,
            image=image,
            region_name=data.get('region', data.get('sprite_name')),
            region_rect=rect,
        )


def _check_stamp_source(image, rect, location: Optional[str]) -> List[ValidationIssue]:
    issues = []
    if image is not None and not isinstance(image, GrayscaleImage):
        issues.append(CFG_008.issue(location=location, kind=type(image).__name__))
    if rect is not None:
        issues.extend(check_pixel_rect(rect, location))
    return issues


@dataclass
class GenerationContext:
    """Collaborators a primitive may need beyond its descriptor."""
    regions: Optional['SpriteRegionCatalog'] = None
    sampling: Optional['ImageSamplingSettings'] = None
    metrics: Dict[str, Any] = field(default_factory=dict)


def cell_counts(extents: Vec3, grid_size: Vec3) -> Index3:
    """ceil(extents / grid_size) per axis, at least 1 wherever the extent is positive."""
    return tuple(
        max(1, math.ceil(e / g - _CEIL_EPSILON)) if e > 0 else 0
        for e, g in zip(extents, grid_size)
    )


def iter_lattice(counts: Index3, grid_size: Vec3) -> Iterator[Tuple[Index3, Vec3]]:
    """Yield ((i, j, k), p) for every cell index, with p centred on the origin."""
    cx = (counts[0] - 1) * grid_size[0] / 2.0
    cy = (counts[1] - 1) * grid_size[1] / 2.0
    cz = (counts[2] - 1) * grid_size[2] / 2.0
    for i in range(counts[0]):
        for j in range(counts[1]):
            for k in range(counts[2]):
                yield (i, j, k), (i * grid_size[0] - cx, j * grid_size[1] - cy, k * grid_size[2] - cz)


def euler_rotation(rotation: Vec3) -> Optional[Quat]:
    """Quaternion for non-zero Euler angles, None for no rotation."""
    if is_zero(rotation):
        return None
    return quaternion_from_euler(rotation)


class VoxelPrimitive(ABC):
    """Abstract base for all voxel primitives."""

    shape_type: ClassVar[ShapeType]
    applies_rotation: ClassVar[bool] = True

    @abstractmethod
    def generate(self, descriptor: ShapeDescriptor, grid_size: Vec3,
                 context: Optional[GenerationContext] = None) -> VoxelSet:
        """Rasterize the descriptor into cells in the primitive's local frame."""
        ...

    @classmethod
    def get_display_name(cls) -> str:
        return cls.shape_type.value

    def _emit(self, cells: VoxelSet, p: Vec3, rotation: Optional[Quat]) -> None:
        if rotation is not None and self.applies_rotation:
            p = rotate_vector(rotation, p)
        cells.add(p)
