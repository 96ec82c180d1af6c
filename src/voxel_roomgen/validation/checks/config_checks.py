"""
Configuration validation checks.

Validates caller-supplied configuration before any generation starts:
- Vector arity (CFG-006)
- Grid size positivity (CFG-001)
- Shape type and operation tags (CFG-002, CFG-003)
- Shape extents (CFG-004)
- Frame budget (CFG-005)
- Image stamp pixel rects (CFG-007)
"""

import math
from enum import Enum
from typing import List, Optional, Tuple, Type, TypeVar

from ..core import ValidationIssue
from ..rules import CFG_001, CFG_004, CFG_005, CFG_006, CFG_007, ValidationRule

E = TypeVar('E', bound=Enum)

_AXES = ('x', 'y', 'z')


def check_vector(name: str, value, location: Optional[str] = None) -> List[ValidationIssue]:
    """Check that value is a 3-component numeric vector."""
    # "123" has 3 numeric characters but is not a vector
    if isinstance(value, (str, bytes)):
        return [CFG_006.issue(location=location, name=name, value=value)]
    try:
        ok = len(value) == 3 and all(math.isfinite(float(c)) for c in value)
    except (TypeError, ValueError):
        ok = False
    if ok:
        return []
    return [CFG_006.issue(location=location, name=name, value=value)]


def check_grid_size(grid_size, location: Optional[str] = "grid_size") -> List[ValidationIssue]:
    """Check that every grid size component is strictly positive."""
    issues = check_vector("grid_size", grid_size, location)
    if issues:
        return issues
    for axis, value in zip(_AXES, grid_size):
        if float(value) <= 0:
            issues.append(CFG_001.issue(location=location, axis=axis, value=value))
    return issues


def check_extents(extents, location: Optional[str] = None) -> List[ValidationIssue]:
    """Check that shape extents are a non-negative vector."""
    issues = check_vector("extents", extents, location)
    if issues:
        return issues
    for axis, value in zip(_AXES, extents):
        if float(value) < 0:
            issues.append(CFG_004.issue(location=location, axis=axis, value=value))
    return issues


def check_frame_budget(max_build_time_per_frame, location: Optional[str] = None) -> List[ValidationIssue]:
    if max_build_time_per_frame is None or max_build_time_per_frame <= 0:
        return [CFG_005.issue(location=location, value=max_build_time_per_frame)]
    return []


def check_pixel_rect(rect, location: Optional[str] = None) -> List[ValidationIssue]:
    """Check a PixelRect-like value: anything with x, y, width, height, or 4 numbers."""
    if all(hasattr(rect, attr) for attr in ("x", "y", "width", "height")):
        values = (rect.x, rect.y, rect.width, rect.height)
    elif isinstance(rect, (str, bytes)):
        values = None
    else:
        values = rect
    try:
        ok = values is not None and len(values) == 4 and all(math.isfinite(float(c)) for c in values)
    except (TypeError, ValueError):
        ok = False
    if ok:
        return []
    return [CFG_007.issue(location=location, value=rect)]


def parse_enum_tag(
    enum_cls: Type[E],
    value,
    rule: ValidationRule,
    aliases: Optional[dict] = None,
    location: Optional[str] = None,
) -> Tuple[Optional[E], List[ValidationIssue]]:
    """Resolve an enum member from a member, its value, its name or an alias.

    Matching on strings is case-insensitive. Unknown tags produce one issue
    for `rule` and a None member.
    """
    if isinstance(value, enum_cls):
        return value, []

    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if wanted in (str(member.value).lower(), member.name.lower()):
                return member, []
        for alias, member in (aliases or {}).items():
            if wanted == alias.lower():
                return member, []

    choices = ", ".join(str(m.value) for m in enum_cls)
    return None, [rule.issue(location=location, value=value, choices=choices)]
