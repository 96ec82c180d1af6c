"""
Primitive catalog: registry of voxel primitive classes by shape type.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional, Type

from .base import ShapeType, VoxelPrimitive
from .image_stamp import ImageStampPrimitive
from .solids import BoxPrimitive, EllipsoidPrimitive, WedgePrimitive

logger = logging.getLogger(__name__)


class PrimitiveCatalog:
    """Registry mapping ShapeType to primitive classes."""

    def __init__(self):
        self._primitives: Dict[ShapeType, Type[VoxelPrimitive]] = {}

    def register(self, cls: Type[VoxelPrimitive]) -> bool:
        """Register a primitive class under its shape_type.

        Returns:
            True if registration succeeded, False if the class declares no valid shape type
        """
        shape_type = getattr(cls, 'shape_type', None)
        if not isinstance(shape_type, ShapeType):
            logger.error("Cannot register %s: shape_type %r is not a ShapeType", cls.__name__, shape_type)
            return False
        if shape_type in self._primitives:
            logger.debug("Replacing primitive for %s with %s", shape_type.value, cls.__name__)
        self._primitives[shape_type] = cls
        return True

    def list_primitives(self) -> List[str]:
        return sorted(cls.get_display_name() for cls in self._primitives.values())

    def get_primitive(self, shape_type: ShapeType) -> Optional[Type[VoxelPrimitive]]:
        return self._primitives.get(shape_type)

    def create(self, shape_type: ShapeType) -> VoxelPrimitive:
        """Instantiate the primitive for shape_type. Raises KeyError if unregistered."""
        cls = self._primitives.get(shape_type)
        if cls is None:
            raise KeyError(f"No primitive registered for {shape_type!r}")
        return cls()


# Global singleton
PRIMITIVE_CATALOG = PrimitiveCatalog()

for _cls in [BoxPrimitive, EllipsoidPrimitive, WedgePrimitive, ImageStampPrimitive]:
    PRIMITIVE_CATALOG.register(_cls)
