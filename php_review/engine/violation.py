"""Violation records produced by rules.

A violation is a single reported rule failure with a location, message,
severity, category tag, and suggested fix. Violations are immutable once
created and are the only thing the runner hands to reporting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(Enum):
    """Violation severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def coerce(cls, value: "Severity | str") -> "Severity":
        """Convert a string such as "Warning" into a Severity.

        Raises:
            ValueError: If the value is not a known severity.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class Violation:
    """A single rule violation.

    ``line`` is always >= 1; unknown or invalid locations are reported on
    the first line of the file.
    """

    file: str
    line: int
    message: str
    bad_code: str = "N/A"
    suggested_fix: str = "N/A"
    severity: Severity = Severity.WARNING
    category: str = "general"
    rule: str = ""
    tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "file", str(self.file))
        object.__setattr__(self, "line", _normalize_line(self.line))
        object.__setattr__(self, "severity", Severity.coerce(self.severity))
        category = self.category
        if isinstance(category, Enum):
            category = category.value
        object.__setattr__(self, "category", str(category))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "metadata", dict(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.file,
            "line": self.line,
            "message": self.message,
            "bad_code": self.bad_code,
            "suggested_fix": self.suggested_fix,
            "severity": self.severity.value,
            "category": self.category,
            "rule": self.rule,
            "tags": list(self.tags),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], file_path: str = "") -> "Violation":
        """Create a Violation from a mapping.

        Accepts the legacy ``bad``/``good`` keys as aliases for
        ``bad_code``/``suggested_fix``. Unknown keys are kept in metadata.

        Args:
            data: Mapping with at least a non-empty "message"
            file_path: File to use when the mapping has no "file" key

        Returns:
            Violation instance

        Raises:
            ValueError: If the message is missing or the severity is unknown.
        """
        message = data.get("message")
        if not message:
            raise ValueError("Violation must have a message field")

        known = {
            "file",
            "line",
            "message",
            "bad_code",
            "bad",
            "suggested_fix",
            "good",
            "severity",
            "category",
            "rule",
            "tags",
            "metadata",
        }
        metadata = dict(data.get("metadata") or {})
        metadata.update({k: v for k, v in data.items() if k not in known})

        return cls(
            file=data.get("file") or file_path,
            line=data.get("line"),
            message=str(message),
            bad_code=str(data.get("bad_code", data.get("bad", "N/A"))),
            suggested_fix=str(data.get("suggested_fix", data.get("good", "N/A"))),
            severity=data.get("severity", Severity.WARNING),
            category=data.get("category", "general"),
            rule=str(data.get("rule", "")),
            tags=tuple(data.get("tags") or ()),
            metadata=metadata,
        )

    def __str__(self) -> str:
        """Format violation for display."""
        return (
            f"{self.file}:{self.line}: [{self.severity.value.upper()}] "
            f"{self.message}"
        )


def _normalize_line(line: Any) -> int:
    try:
        value = int(line)
    except (TypeError, ValueError, OverflowError):
        return 1
    return value if value >= 1 else 1


__all__ = ["Severity", "Violation"]
