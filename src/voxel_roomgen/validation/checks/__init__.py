"""
Validation check modules.

- config_checks: Grid size, vectors, shape tags, extents, frame budget, pixel rects
"""

from .config_checks import (
    check_vector,
    check_grid_size,
    check_extents,
    check_frame_budget,
    check_pixel_rect,
    parse_enum_tag,
)

__all__ = [
    'check_vector',
    'check_grid_size',
    'check_extents',
    'check_frame_budget',
    'check_pixel_rect',
    'parse_enum_tag',
]
