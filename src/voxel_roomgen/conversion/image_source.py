"""
Grayscale pixel access for image-derived voxel shapes.

The shape generator never decodes image files itself. It samples through a
GrayscaleImage, which wraps a 2D numpy array of intensities in [0, 1] with
row 0 at the bottom of the picture (texture-space convention). Pillow is
used to build one from an image file or an already-open PIL image.

Named sub-regions (sprite rectangles) are looked up through a
SpriteRegionCatalog. Regions found by asset introspection are registered
with set_regions(); set_runtime_regions() overrides them per image.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class PixelRect:
    """Pixel rectangle within an image. Origin is the bottom-left pixel."""
    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def clipped(self, image_width: int, image_height: int) -> 'PixelRect':
        """Intersect with the image bounds (may return an empty rect)."""
        x0 = min(max(self.x, 0.0), float(image_width))
        y0 = min(max(self.y, 0.0), float(image_height))
        x1 = min(max(self.x + self.width, 0.0), float(image_width))
        y1 = min(max(self.y + self.height, 0.0), float(image_height))
        return PixelRect(x0, y0, x1 - x0, y1 - y0)

    @classmethod
    def from_sequence(cls, values) -> 'PixelRect':
        x, y, w, h = values
        return cls(float(x), float(y), float(w), float(h))


class GrayscaleImage:
    """Read-only grayscale pixel accessor.

    Args:
        pixels: 2D array indexed [row, column], row 0 at the bottom.
                Integer arrays are treated as 8-bit and scaled to [0, 1].
        name: Optional label used in log messages.
    """

    def __init__(self, pixels: np.ndarray, name: str = ""):
        data = np.asarray(pixels)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2D grayscale array, got shape {data.shape}")
        if np.issubdtype(data.dtype, np.integer):
            data = data.astype(np.float64) / 255.0
        else:
            data = data.astype(np.float64)
        self._pixels = data
        self._pixels.setflags(write=False)
        self.name = name

    # ---------------------------------------------------------------
    # Constructors
    # ---------------------------------------------------------------

    @classmethod
    def from_array(cls, pixels, name: str = "", top_down: bool = False) -> 'GrayscaleImage':
        """Wrap an array. Pass top_down=True when row 0 is the top of the picture."""
        data = np.asarray(pixels)
        if top_down:
            data = data[::-1]
        return cls(data, name=name)

    @classmethod
    def from_pil(cls, image: Image.Image, name: str = "") -> 'GrayscaleImage':
        """Convert a PIL image to luminance and flip it to bottom-up rows."""
        if image.mode != 'L':
            image = image.convert('L')
        image = image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return cls(np.asarray(image, dtype=np.uint8), name=name or getattr(image, 'filename', ''))

    @classmethod
    def open(cls, file_path: Union[str, Path]) -> 'GrayscaleImage':
        """Load an image file (PNG, TGA, JPG, BMP, ...) through Pillow."""
        with Image.open(file_path) as image:
            image.load()
            return cls.from_pil(image, name=Path(file_path).name)

    # ---------------------------------------------------------------
    # Sampling
    # ---------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def get_pixel(self, x: int, y: int) -> float:
        """Grayscale value of pixel (x, y), clamped to the image edges."""
        x = min(max(int(x), 0), self.width - 1)
        y = min(max(int(y), 0), self.height - 1)
        return float(self._pixels[y, x])

    def get_pixel_bilinear(self, u: float, v: float) -> float:
        """Bilinear sample at normalized (u, v); texel centres sit at (i + 0.5) / size."""
        fx = u * self.width - 0.5
        fy = v * self.height - 0.5
        x0 = math.floor(fx)
        y0 = math.floor(fy)
        tx = fx - x0
        ty = fy - y0

        c00 = self.get_pixel(x0, y0)
        c10 = self.get_pixel(x0 + 1, y0)
        c01 = self.get_pixel(x0, y0 + 1)
        c11 = self.get_pixel(x0 + 1, y0 + 1)

        bottom = c00 + (c10 - c00) * tx
        top = c01 + (c11 - c01) * tx
        return bottom + (top - bottom) * ty

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<GrayscaleImage{label} {self.width}x{self.height}>"


class SpriteRegionCatalog:
    """Per-image lookup of named pixel rectangles.

    Runtime regions take precedence over regions registered from asset
    introspection. Images are keyed by identity.
    """

    def __init__(self):
        self._regions: Dict[int, Dict[str, PixelRect]] = {}
        self._runtime_regions: Dict[int, Dict[str, PixelRect]] = {}
        # Keep images alive so id() keys stay unique
        self._images: Dict[int, GrayscaleImage] = {}

    def set_regions(self, image: GrayscaleImage, regions: Dict[str, PixelRect]) -> None:
        """Replace the introspected regions for an image."""
        key = id(image)
        self._images[key] = image
        self._regions[key] = {name: rect for name, rect in regions.items() if name}

    def set_runtime_regions(self, image: GrayscaleImage, regions: Dict[str, PixelRect]) -> None:
        """Override the regions for an image at runtime."""
        key = id(image)
        self._images[key] = image
        self._runtime_regions[key] = {name: rect for name, rect in regions.items() if name}

    def resolve(self, image: Optional[GrayscaleImage], region_name: Optional[str]) -> Optional[PixelRect]:
        """Return the rectangle for region_name, or None when unknown."""
        if image is None or not region_name:
            return None
        key = id(image)
        runtime = self._runtime_regions.get(key, {})
        if region_name in runtime:
            return runtime[region_name]
        return self._regions.get(key, {}).get(region_name)

    def region_names(self, image: GrayscaleImage) -> List[str]:
        key = id(image)
        if key in self._runtime_regions:
            return list(self._runtime_regions[key].keys())
        if key in self._regions:
            return list(self._regions[key].keys())
        return []
