"""
Image-derived voxel columns.

An image (or a rectangle of it) is read as a 2D occupancy mask over the X/Z
plane. Each destination column of the grid samples a grayscale value from
the image; columns brighter than the threshold are stamped through every Y
layer of the shape.

Sampling depends on how many source pixels map onto one grid column
(ratio = rect size / cell count, per axis):

- About 1:1, or upscaling on either axis: nearest pixel, no interpolation,
  so single-pixel detail is not smeared across neighbouring columns.
- Downscaling: the column's pixel block is split into ceil(ratio_x) by
  ceil(ratio_z) sub-samples, each averaging a 3x3 bilinear kernel.

Averaging pulls values toward mid-gray, so the threshold drops as the ratio
grows: base_threshold / max(ratio_x, ratio_z, 1). The threshold and kernel
constants were tuned by eye and live in ImageSamplingSettings.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from voxel_roomgen.conversion.image_source import GrayscaleImage, PixelRect
from voxel_roomgen.conversion.vector_math import Vec3
from voxel_roomgen.generators.voxels.voxel_set import VoxelSet
from voxel_roomgen.validation.rules import SHAPE_001, SHAPE_002

from .base import (
    GenerationContext, ShapeDescriptor, ShapeType, VoxelPrimitive,
    cell_counts, euler_rotation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageSamplingSettings:
    """
    Tunable constants for image sampling.

    Attributes:
        base_threshold: Occupancy threshold at 1:1 or upscaled sampling
        kernel_radius: Half-width of the anti-aliasing kernel in taps (1 -> 3x3)
        kernel_offset: Pixel distance between kernel taps
        ratio_tolerance: How close a ratio must be to 1 to count as 1:1
    """
    base_threshold: float = 0.5
    kernel_radius: int = 1
    kernel_offset: float = 0.5
    ratio_tolerance: float = 1e-6

    def threshold(self, ratio_x: float, ratio_z: float) -> float:
        return self.base_threshold / max(ratio_x, ratio_z, 1.0)


DEFAULT_SAMPLING = ImageSamplingSettings()


class ImageStampPrimitive(VoxelPrimitive):
    """Columns stamped wherever the sampled image is bright enough."""

    shape_type = ShapeType.IMAGE_STAMP

    def generate(self, descriptor: ShapeDescriptor, grid_size: Vec3,
                 context: Optional[GenerationContext] = None) -> VoxelSet:
        context = context or GenerationContext()
        settings = context.sampling or DEFAULT_SAMPLING
        cells = VoxelSet()

        image = descriptor.image
        if image is None:
            self._skip("no image assigned", context)
            return cells

        counts = cell_counts(descriptor.extents, grid_size)
        if counts[0] <= 0 or counts[1] <= 0 or counts[2] <= 0:
            self._skip(f"cell counts {counts} are not positive", context)
            return cells

        rect = self.resolve_rect(descriptor, context)
        if rect.is_empty:
            self._skip(f"sampling rectangle {rect} is empty", context)
            return cells

        ratio_x = rect.width / counts[0]
        ratio_z = rect.height / counts[2]
        threshold = settings.threshold(ratio_x, ratio_z)

        # Centre of the stamped footprint: counts * grid_size / 2 on X/Z
        center = (
            counts[0] * grid_size[0] / 2.0,
            descriptor.extents[1] / 2.0,
            counts[2] * grid_size[2] / 2.0,
        )
        rotation = euler_rotation(descriptor.rotation)

        occupied = 0
        for x in range(counts[0]):
            for z in range(counts[2]):
                value = self.sample_column(image, rect, counts, (x, z), (ratio_x, ratio_z), settings)
                if value <= threshold:
                    continue
                occupied += 1
                for y in range(counts[1]):
                    p = (
                        x * grid_size[0] - center[0],
                        y * grid_size[1] - center[1],
                        z * grid_size[2] - center[2],
                    )
                    self._emit(cells, p, rotation)

        logger.debug("ImageStamp %r rect=%s ratio=(%.2f, %.2f) threshold=%.3f -> %d/%d columns",
                     image, rect, ratio_x, ratio_z, threshold, occupied, counts[0] * counts[2])
        return cells

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_rect(descriptor: ShapeDescriptor, context: GenerationContext) -> PixelRect:
        """Explicit rect, else the named region, else the whole image; clipped to the image."""
        image = descriptor.image
        rect = descriptor.region_rect
        if rect is not None and not isinstance(rect, PixelRect):
            rect = PixelRect.from_sequence(rect)
        if rect is None and descriptor.region_name:
            if context.regions is not None:
                rect = context.regions.resolve(image, descriptor.region_name)
            if rect is None:
                SHAPE_002.issue(region=descriptor.region_name).log(logger)
        if rect is None:
            rect = PixelRect(0.0, 0.0, float(image.width), float(image.height))
        return rect.clipped(image.width, image.height)

    def sample_column(self, image: GrayscaleImage, rect: PixelRect, counts: Tuple[int, int, int],
                      column: Tuple[int, int], ratios: Tuple[float, float],
                      settings: ImageSamplingSettings) -> float:
        """Grayscale value for destination column (x, z)."""
        x, z = column
        ratio_x, ratio_z = ratios

        one_to_one = (abs(ratio_x - 1.0) <= settings.ratio_tolerance
                      and abs(ratio_z - 1.0) <= settings.ratio_tolerance)
        if one_to_one or ratio_x < 1.0 or ratio_z < 1.0:
            u = x / (counts[0] - 1) if counts[0] > 1 else 0.5
            v = z / (counts[2] - 1) if counts[2] > 1 else 0.5
            pixel_x = rect.x + u * rect.width
            pixel_y = rect.y + v * rect.height
            return image.get_pixel(math.floor(pixel_x), math.floor(pixel_y))

        return self._supersample(image, rect, column, ratios, settings)

    @staticmethod
    def _supersample(image: GrayscaleImage, rect: PixelRect, column: Tuple[int, int],
                     ratios: Tuple[float, float], settings: ImageSamplingSettings) -> float:
        x, z = column
        ratio_x, ratio_z = ratios

        start_x = rect.x + x * ratio_x
        start_y = rect.y + z * ratio_z
        end_x = rect.x + (x + 1) * ratio_x
        end_y = rect.y + (z + 1) * ratio_z

        subs_x = math.ceil(max(1.0, ratio_x))
        subs_z = math.ceil(max(1.0, ratio_z))
        taps = range(-settings.kernel_radius, settings.kernel_radius + 1)

        total = 0.0
        for sx in range(subs_x):
            for sz in range(subs_z):
                px = start_x + (end_x - start_x) * (sx / subs_x)
                py = start_y + (end_y - start_y) * (sz / subs_z)

                kernel_total = 0.0
                kernel_count = 0
                for dx in taps:
                    for dy in taps:
                        u = (px + dx * settings.kernel_offset + 0.5) / image.width
                        v = (py + dy * settings.kernel_offset + 0.5) / image.height
                        kernel_total += image.get_pixel_bilinear(u, v)
                        kernel_count += 1
                total += kernel_total / kernel_count

        return total / (subs_x * subs_z)

    @staticmethod
    def _skip(reason: str, context: GenerationContext) -> None:
        SHAPE_001.issue(reason=reason).log(logger)
        context.metrics['degenerate_stamps'] = context.metrics.get('degenerate_stamps', 0) + 1
