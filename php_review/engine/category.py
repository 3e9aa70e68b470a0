"""Standard rule categories with display metadata."""

from enum import Enum

from .violation import Severity


class RuleCategory(Enum):
    """Rule categories used in rule metadata."""

    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    BEST_PRACTICE = "best_practice"
    MAINTAINABILITY = "maintainability"
    COMPATIBILITY = "compatibility"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    ARCHITECTURE = "architecture"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def default_severity(self) -> Severity:
        return _DEFAULT_SEVERITIES[self]

    @property
    def priority(self) -> int:
        """Priority level, 1 is the highest."""
        return _PRIORITIES[self]

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in {c.value for c in cls}

    @classmethod
    def by_priority(cls) -> list["RuleCategory"]:
        """All categories, highest priority first."""
        return sorted(cls, key=lambda c: c.priority)


_DISPLAY_NAMES = {
    RuleCategory.SECURITY: "Security",
    RuleCategory.PERFORMANCE: "Performance",
    RuleCategory.STYLE: "Code Style",
    RuleCategory.BEST_PRACTICE: "Best Practices",
    RuleCategory.MAINTAINABILITY: "Maintainability",
    RuleCategory.COMPATIBILITY: "Compatibility",
    RuleCategory.DOCUMENTATION: "Documentation",
    RuleCategory.TESTING: "Testing",
    RuleCategory.ARCHITECTURE: "Architecture",
    RuleCategory.GENERAL: "General",
}

_DESCRIPTIONS = {
    RuleCategory.SECURITY: "Rules that check for security vulnerabilities",
    RuleCategory.PERFORMANCE: "Rules that identify performance issues",
    RuleCategory.STYLE: "Rules that enforce coding style and formatting standards",
    RuleCategory.BEST_PRACTICE: "Rules that enforce general best practices",
    RuleCategory.MAINTAINABILITY: "Rules that improve maintainability and readability",
    RuleCategory.COMPATIBILITY: "Rules that ensure compatibility across environments",
    RuleCategory.DOCUMENTATION: "Rules that check for proper documentation",
    RuleCategory.TESTING: "Rules that ensure proper testing practices",
    RuleCategory.ARCHITECTURE: "Rules that enforce architectural boundaries",
    RuleCategory.GENERAL: "Rules that don't fit a specific category",
}

_DEFAULT_SEVERITIES = {
    RuleCategory.SECURITY: Severity.ERROR,
    RuleCategory.PERFORMANCE: Severity.WARNING,
    RuleCategory.STYLE: Severity.INFO,
    RuleCategory.BEST_PRACTICE: Severity.WARNING,
    RuleCategory.MAINTAINABILITY: Severity.WARNING,
    RuleCategory.COMPATIBILITY: Severity.WARNING,
    RuleCategory.DOCUMENTATION: Severity.INFO,
    RuleCategory.TESTING: Severity.WARNING,
    RuleCategory.ARCHITECTURE: Severity.WARNING,
    RuleCategory.GENERAL: Severity.WARNING,
}

_PRIORITIES = {
    RuleCategory.SECURITY: 1,
    RuleCategory.PERFORMANCE: 2,
    RuleCategory.BEST_PRACTICE: 3,
    RuleCategory.MAINTAINABILITY: 4,
    RuleCategory.ARCHITECTURE: 5,
    RuleCategory.TESTING: 6,
    RuleCategory.COMPATIBILITY: 7,
    RuleCategory.DOCUMENTATION: 8,
    RuleCategory.STYLE: 9,
    RuleCategory.GENERAL: 10,
}


__all__ = ["RuleCategory"]
