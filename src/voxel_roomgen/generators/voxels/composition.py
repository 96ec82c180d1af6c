"""
Shape composition: fold an ordered descriptor list into one VoxelSet.

The first descriptor is the base: it is rasterized in place, centred on the
origin, and both its operation and its offset are ignored. Every later descriptor
is rasterized in its local frame and folded in with its own operation and
offset. All configuration is validated before any rasterization starts.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from voxel_roomgen.conversion.image_source import SpriteRegionCatalog
from voxel_roomgen.conversion.vector_math import Vec3, as_vec3
from voxel_roomgen.generators.primitives.base import (
    CompositionOp, GenerationContext, ShapeDescriptor, ShapeType,
)
from voxel_roomgen.generators.primitives.catalog import PRIMITIVE_CATALOG, PrimitiveCatalog
from voxel_roomgen.generators.primitives.image_stamp import ImageSamplingSettings
from voxel_roomgen.validation.checks import check_grid_size
from voxel_roomgen.validation.core import ConfigError, ValidationResult
from voxel_roomgen.validation.rules import CFG_002

from .voxel_set import VoxelSet

logger = logging.getLogger(__name__)

DescriptorLike = Union[ShapeDescriptor, Dict[str, Any]]


def union(base: VoxelSet, addend: Iterable[Vec3], offset: Vec3 = (0.0, 0.0, 0.0)) -> VoxelSet:
    """base plus every translated addend cell not already present."""
    return base.union(addend, offset)


def difference(base: VoxelSet, subtrahend: Iterable[Vec3], offset: Vec3 = (0.0, 0.0, 0.0)) -> VoxelSet:
    """base minus every cell within tolerance of a translated subtrahend cell."""
    return base.difference(subtrahend, offset)


def validate_descriptors(
    descriptors: Sequence[DescriptorLike],
    grid_size,
    catalog: Optional[PrimitiveCatalog] = None,
) -> Tuple[List[ShapeDescriptor], ValidationResult]:
    """
    Validate the grid size and every descriptor without generating anything.

    Dict entries are parsed with ShapeDescriptor.from_dict. Every problem is
    collected so the caller sees the full report at once.

    Returns:
        (parsed descriptors, validation result). Descriptors that failed to
        parse are left out of the list.
    """
    catalog = catalog or PRIMITIVE_CATALOG
    result = ValidationResult()
    result.extend(check_grid_size(grid_size))

    parsed: List[ShapeDescriptor] = []
    for index, entry in enumerate(descriptors):
        location = f"shapes[{index}]"
        if isinstance(entry, dict):
            try:
                descriptor = ShapeDescriptor.from_dict(entry, location)
            except ConfigError as e:
                result.extend(e.result.issues)
                continue
        else:
            descriptor = entry
            result.extend(descriptor.validate(location).issues)

        if isinstance(descriptor.shape_type, ShapeType) and catalog.get_primitive(descriptor.shape_type) is None:
            result.add(CFG_002.issue(
                location=location, value=descriptor.shape_type,
                choices=", ".join(catalog.list_primitives())))
        parsed.append(descriptor)

    return parsed, result


def generate_shape(
    descriptor: ShapeDescriptor,
    grid_size: Vec3,
    context: Optional[GenerationContext] = None,
    catalog: Optional[PrimitiveCatalog] = None,
) -> VoxelSet:
    """Rasterize one descriptor in its local frame (offset not applied)."""
    catalog = catalog or PRIMITIVE_CATALOG
    primitive = catalog.create(descriptor.shape_type)
    return primitive.generate(descriptor, grid_size, context)


def generate_voxel_set(
    descriptors: Sequence[DescriptorLike],
    grid_size,
    regions: Optional[SpriteRegionCatalog] = None,
    sampling: Optional[ImageSamplingSettings] = None,
    catalog: Optional[PrimitiveCatalog] = None,
) -> VoxelSet:
    """
    Build the composite voxel set for an ordered descriptor list.

    Args:
        descriptors: ShapeDescriptors or descriptor dicts; the first is the base
        grid_size: Cell edge lengths (x, y, z), all positive
        regions: Named sprite regions for ImageStamp descriptors
        sampling: Image sampling constants (defaults when None)
        catalog: Primitive registry (PRIMITIVE_CATALOG when None)

    Returns:
        A fresh VoxelSet. Empty descriptor lists yield an empty set.

    Raises:
        ConfigError: Non-positive grid size or an invalid descriptor
    """
    parsed, result = validate_descriptors(descriptors, grid_size, catalog)
    if result.failed:
        for location, issues in result.by_location().items():
            logger.error("%s rejected: %s", location, ", ".join(i.code for i in issues))
        raise ConfigError(result)

    grid = as_vec3(grid_size)
    composite = VoxelSet()
    if not parsed:
        logger.debug("No shape descriptors, returning an empty voxel set")
        return composite

    context = GenerationContext(regions=regions, sampling=sampling)
    start = time.time()

    for index, descriptor in enumerate(parsed):
        cells = generate_shape(descriptor, grid, context, catalog)
        if index == 0:
            composite = cells
        elif descriptor.operation == CompositionOp.UNION:
            composite = union(composite, cells, descriptor.offset)
        else:
            composite = difference(composite, cells, descriptor.offset)
        logger.debug("shapes[%d] %s %s: %d cells -> composite %d",
                     index, "Base" if index == 0 else descriptor.operation.value,
                     descriptor.shape_type.value, len(cells), len(composite))

    degenerate = context.metrics.get('degenerate_stamps', 0)
    logger.info("Generated %d voxel cells from %d shapes in %.3fs%s",
                len(composite), len(parsed), time.time() - start,
                f" ({degenerate} degenerate image stamps skipped)" if degenerate else "")
    return composite
