"""
Rule-coded configuration diagnostics.

Every problem found while checking grid sizes, room settings and shape
descriptors becomes a ValidationIssue tagged with a rule code and the place
it came from ("grid_size", "shapes[2]", "settings.room_offset"). Issues are
collected in a ValidationResult so the caller sees every problem with a
shape list at once, grouped by location; ConfigError raises that result.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional


class Severity(Enum):
    """Issue severity, valued by the logging level it is reported at.

    Only FAIL issues reject a configuration.
    """
    INFO = logging.INFO
    WARN = logging.WARNING
    FAIL = logging.ERROR


@dataclass
class ValidationIssue:
    severity: Severity
    code: str
    message: str
    remediation: Optional[str] = None
    location: Optional[str] = None

    def format(self) -> str:
        """CODE at LOCATION: message (remediation)"""
        where = f" at {self.location}" if self.location else ""
        fix = f" ({self.remediation})" if self.remediation else ""
        return f"{self.code}{where}: {self.message}{fix}"

    def log(self, logger: logging.Logger) -> None:
        logger.log(self.severity.value, self.format())

    def __str__(self) -> str:
        return self.format()


@dataclass
class ValidationResult:
    """Issues collected from one configuration check, in discovery order."""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(i.severity == Severity.FAIL for i in self.issues)

    @property
    def passed(self) -> bool:
        return not self.failed

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.FAIL]

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self.issues]

    def add(self, issue: ValidationIssue) -> None:
        self.issues.append(issue)

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        self.issues.extend(issues)

    def by_location(self) -> Dict[str, List[ValidationIssue]]:
        """Issues grouped by location, locations in first-seen order."""
        grouped: Dict[str, List[ValidationIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.location or "-", []).append(issue)
        return grouped

    def report(self) -> str:
        """
        Multi-line report, one block per location:

            shapes[1]:
              [FAIL] CFG-002 Unknown shape type 'torus' (Use one of: ...)
        """
        if not self.issues:
            return "No configuration issues"
        lines = [f"{len(self.errors)} configuration error(s) in {len(self.issues)} issue(s)"]
        for location, issues in self.by_location().items():
            lines.append(f"{location}:")
            for issue in issues:
                fix = f" ({issue.remediation})" if issue.remediation else ""
                lines.append(f"  [{issue.severity.name}] {issue.code} {issue.message}{fix}")
        return "\n".join(lines)


class ConfigError(Exception):
    """Invalid grid size, room settings or shape descriptor. Fatal to the call.

    Attributes:
        result: Every issue found, so callers can show all problems at once
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.report())

    @property
    def codes(self) -> List[str]:
        """Rule codes of the failing issues, in order."""
        return [i.code for i in self.result.errors]

    @property
    def locations(self) -> List[str]:
        """Locations with at least one failing issue."""
        return [loc for loc, issues in self.result.by_location().items()
                if any(i.severity == Severity.FAIL for i in issues)]
