"""
Validation rule definitions.

Each rule has:
- Code: Unique identifier (e.g., "CFG-001")
- Severity: FAIL, WARN, or INFO
- Message template: Human-readable description
- Remediation: Suggested fix

Rules are organized by category:
- CFG: Configuration (grid size, descriptors, room settings)
- SHAPE: Shape generation diagnostics
"""

from dataclasses import dataclass
from typing import Optional

from .core import Severity, ValidationIssue


@dataclass(frozen=True)
class ValidationRule:
    """Definition of a validation rule.

    Attributes:
        code: Unique rule code (e.g., "CFG-001")
        severity: Default severity for this rule
        message_template: Template for error message (use {placeholders})
        remediation_template: Template for suggested fix
        description: Full description of the rule
    """
    code: str
    severity: Severity
    message_template: str
    remediation_template: Optional[str] = None
    description: Optional[str] = None

    def format_message(self, **kwargs) -> str:
        return self.message_template.format(**kwargs)

    def format_remediation(self, **kwargs) -> Optional[str]:
        if self.remediation_template:
            return self.remediation_template.format(**kwargs)
        return None

    def issue(self, location: Optional[str] = None, **kwargs) -> ValidationIssue:
        """Build a ValidationIssue for this rule."""
        return ValidationIssue(
            severity=self.severity,
            code=self.code,
            message=self.format_message(**kwargs),
            remediation=self.format_remediation(**kwargs),
            location=location,
        )


# =============================================================================
# CONFIGURATION RULES (CFG)
# =============================================================================

CFG_001 = ValidationRule(
    code="CFG-001",
    severity=Severity.FAIL,
    message_template="Grid size component {axis}={value} is not positive",
    remediation_template="Use a positive cell edge length for {axis}",
    description="All grid size components must be greater than zero"
)

CFG_002 = ValidationRule(
    code="CFG-002",
    severity=Severity.FAIL,
    message_template="Unknown shape type {value!r}",
    remediation_template="Use one of: {choices}",
    description="Shape type must be one of the closed set of primitives"
)

CFG_003 = ValidationRule(
    code="CFG-003",
    severity=Severity.FAIL,
    message_template="Unknown composition operation {value!r}",
    remediation_template="Use one of: {choices}",
    description="Composition operation must be Union or Difference"
)

CFG_004 = ValidationRule(
    code="CFG-004",
    severity=Severity.FAIL,
    message_template="Shape extent {axis}={value} is negative",
    remediation_template="Use a non-negative extent for {axis}",
    description="Shape extents cannot be negative"
)

CFG_005 = ValidationRule(
    code="CFG-005",
    severity=Severity.FAIL,
    message_template="Max build time per frame {value} must be positive",
    remediation_template="Use a frame budget of at least 1 ms",
    description="Time-sliced builds need a positive per-frame budget"
)

CFG_006 = ValidationRule(
    code="CFG-006",
    severity=Severity.FAIL,
    message_template="{name} must have 3 numeric components, got {value!r}",
    remediation_template="Pass {name} as (x, y, z)",
    description="Vectors are 3-component"
)

CFG_007 = ValidationRule(
    code="CFG-007",
    severity=Severity.FAIL,
    message_template="Pixel rect must be (x, y, width, height) numbers, got {value!r}",
    remediation_template="Pass rect as a PixelRect or a 4-number sequence",
    description="Image stamp sampling rectangles have 4 numeric components"
)

CFG_008 = ValidationRule(
    code="CFG-008",
    severity=Severity.FAIL,
    message_template="Image stamp source must be a GrayscaleImage, got {kind}",
    remediation_template="Wrap pixels with GrayscaleImage.from_array, from_pil or open",
    description="Image stamps sample a GrayscaleImage"
)

# =============================================================================
# SHAPE RULES (SHAPE)
# =============================================================================

SHAPE_001 = ValidationRule(
    code="SHAPE-001",
    severity=Severity.WARN,
    message_template="Image stamp skipped: {reason}",
    remediation_template="Assign an image and a non-empty sampling rectangle",
    description="Degenerate image stamps contribute no cells"
)

SHAPE_002 = ValidationRule(
    code="SHAPE-002",
    severity=Severity.INFO,
    message_template="Image region {region!r} not found, sampling the whole image",
    description="Unknown region names fall back to the full image"
)
