"""
Validation package for the voxel room toolkit.

Configuration problems are reported as rule-coded issues and raised as
ConfigError before any generation starts.

Public API:
    - ValidationResult, ValidationIssue, Severity: Core result types
    - ConfigError: Raised with every issue found in an invalid configuration
    - require_valid_grid_size(): Validate a grid size or raise ConfigError
"""

from .core import (
    Severity,
    ValidationIssue,
    ValidationResult,
    ConfigError,
)
from .checks import check_grid_size


def require_valid_grid_size(grid_size) -> None:
    """Raise ConfigError if any grid size component is not positive."""
    issues = check_grid_size(grid_size)
    if issues:
        raise ConfigError(ValidationResult(issues=issues))


__all__ = [
    'Severity',
    'ValidationIssue',
    'ValidationResult',
    'ConfigError',
    'require_valid_grid_size',
]
