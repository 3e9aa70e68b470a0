"""Error taxonomy and the engine's error handler.

Failures raised while checking a file never escape a rule. They are
classified into a fixed set of categories, appended to the error or warning
log of the run, and turned into a violation-shaped record. The logs stay
queryable for the whole run so reporting can show what went wrong next to
what was found.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any

from ..exceptions import (
    ConfigurationError,
    ParseError,
    ResourceLimitExceeded,
    ReviewError,
    TimeLimitExceeded,
    UnknownRuleError,
    ViolationValidationError,
)
from ..review_logging import get_logger
from .violation import Severity, Violation

logger = get_logger("engine.errors")


class ErrorCategory(Enum):
    """Categories of failures the engine distinguishes."""

    PARSING = "PARSING"
    VALIDATION = "VALIDATION"
    FILE_ACCESS = "FILE_ACCESS"
    MEMORY = "MEMORY"
    PERFORMANCE = "PERFORMANCE"
    CONFIGURATION = "CONFIGURATION"
    RULE_PROCESSING = "RULE_PROCESSING"

    @property
    def description(self) -> str:
        return _CATEGORY_INFO[self][0]

    @property
    def severity(self) -> Severity:
        return _CATEGORY_INFO[self][1]

    @property
    def recoverable(self) -> bool:
        """Whether a scan is expected to continue productively after it."""
        return _CATEGORY_INFO[self][2]

    @property
    def bad_code(self) -> str:
        return _CATEGORY_INFO[self][3]


# description, severity, recoverable, bad_code
_CATEGORY_INFO: dict[ErrorCategory, tuple[str, Severity, bool, str]] = {
    ErrorCategory.PARSING: (
        "PHP parsing errors",
        Severity.ERROR,
        False,
        "Invalid PHP syntax",
    ),
    ErrorCategory.VALIDATION: (
        "Data validation errors",
        Severity.WARNING,
        True,
        "Nullable type access",
    ),
    ErrorCategory.FILE_ACCESS: (
        "File access issues",
        Severity.ERROR,
        False,
        "File access denied",
    ),
    ErrorCategory.MEMORY: (
        "Memory-related issues",
        Severity.ERROR,
        True,
        "Large file processing",
    ),
    ErrorCategory.PERFORMANCE: (
        "Performance warnings",
        Severity.WARNING,
        True,
        "Slow processing detected",
    ),
    ErrorCategory.CONFIGURATION: (
        "Configuration issues",
        Severity.ERROR,
        True,
        "Invalid rule configuration",
    ),
    ErrorCategory.RULE_PROCESSING: (
        "Rule processing errors",
        Severity.ERROR,
        False,
        "Rule processing failure",
    ),
}

# Checked in order against the lower-cased parser message
PARSING_SUGGESTIONS: tuple[tuple[str, str], ...] = (
    ("unterminated", "Check for unclosed strings or comments"),
    ("unexpected", "Check for syntax errors around the reported line"),
    ("missing", "Check for missing semicolons, brackets, or quotes"),
)
DEFAULT_PARSING_SUGGESTION = "Review PHP syntax near the reported line"

# Minimum number of PERFORMANCE records before caching advice is given
CACHE_ADVICE_THRESHOLD = 2


@dataclass(frozen=True)
class ErrorRecord:
    """An entry in the error or warning log."""

    category: ErrorCategory
    file: str
    line: int
    message: str
    bad_code: str
    severity: Severity
    suggested_fix: str
    recoverable: bool
    rule: str = ""
    timestamp: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.category.value,
            "file": self.file,
            "line": self.line,
            "message": self.message,
            "bad_code": self.bad_code,
            "severity": self.severity.value,
            "suggested_fix": self.suggested_fix,
            "recoverable": self.recoverable,
            "rule": self.rule,
            "timestamp": self.timestamp,
        }


def parsing_suggestion(message: str) -> str:
    """Pick a fix suggestion for a parser message."""
    lowered = message.lower()
    for needle, suggestion in PARSING_SUGGESTIONS:
        if needle in lowered:
            return suggestion
    return DEFAULT_PARSING_SUGGESTION


class ErrorHandler:
    """Classifies failures and keeps the run's error and warning logs.

    Thread-safe; one instance is shared by every rule in a run through the
    engine context.
    """

    def __init__(self) -> None:
        self._errors: list[ErrorRecord] = []
        self._warnings: list[ErrorRecord] = []
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Classification

    @staticmethod
    def classify(error: BaseException) -> ErrorCategory:
        """Map an exception onto an error category."""
        if isinstance(error, ParseError):
            return ErrorCategory.PARSING
        if isinstance(error, (MemoryError, ResourceLimitExceeded)):
            return ErrorCategory.MEMORY
        if isinstance(error, TimeLimitExceeded):
            return ErrorCategory.PERFORMANCE
        if isinstance(error, ConfigurationError):
            return ErrorCategory.CONFIGURATION
        if isinstance(error, (OSError, UnicodeDecodeError)):
            return ErrorCategory.FILE_ACCESS
        if isinstance(
            error,
            (
                TypeError,
                AttributeError,
                KeyError,
                IndexError,
                ViolationValidationError,
            ),
        ):
            return ErrorCategory.VALIDATION
        return ErrorCategory.RULE_PROCESSING

    def handle(
        self,
        error: BaseException,
        file_path: str,
        message: str | None = None,
        rule: str = "",
    ) -> Violation:
        """Classify ``error``, log it, and return a violation-shaped record.

        Args:
            error: The raised exception
            file_path: File being processed when it was raised
            message: Optional context message to use instead of str(error)
            rule: Name of the rule that was running, if any

        Returns:
            Violation describing the failure
        """
        category = self.classify(error)
        if category is ErrorCategory.PARSING:
            return self.handle_parsing_error(file_path, error, rule=rule)
        if category is ErrorCategory.VALIDATION:
            return self.handle_validation_error(file_path, error, rule=rule)
        if category is ErrorCategory.FILE_ACCESS:
            return self.handle_file_access_error(file_path, error, rule=rule)
        if category is ErrorCategory.MEMORY:
            return self.handle_memory_error(file_path, error, rule=rule)
        if category is ErrorCategory.PERFORMANCE:
            return self.handle_performance_warning(
                file_path, message or str(error), rule=rule
            )
        if category is ErrorCategory.CONFIGURATION:
            return self.handle_configuration_error(
                rule or file_path, error, file_path=file_path
            )
        return self.handle_rule_error(file_path, error, rule=rule, message=message)

    # ------------------------------------------------------------------
    # Category handlers

    def handle_parsing_error(
        self, file_path: str, error: BaseException, rule: str = ""
    ) -> Violation:
        raw = str(error)
        line = getattr(error, "line", 1) or 1
        suggestion = parsing_suggestion(raw)
        self._append(
            ErrorCategory.PARSING,
            file_path,
            f"PHP parsing error: {raw}",
            suggestion,
            line=line,
            rule=rule,
        )
        return self._violation(
            ErrorCategory.PARSING,
            file_path,
            f"PHP parsing error: {raw}",
            suggestion,
            line=line,
            rule=rule,
        )

    def handle_validation_error(
        self, file_path: str, error: BaseException, rule: str = ""
    ) -> Violation:
        self._append(
            ErrorCategory.VALIDATION,
            file_path,
            f"Type handling error: {_describe(error)}",
            "Update rule to handle missing or nullable AST nodes",
            rule=rule,
        )
        return self._violation(
            ErrorCategory.VALIDATION,
            file_path,
            "Type handling issue detected",
            "Update rule implementation to handle nullable types",
            rule=rule,
        )

    def handle_file_access_error(
        self, file_path: str, error: BaseException, rule: str = ""
    ) -> Violation:
        self._append(
            ErrorCategory.FILE_ACCESS,
            file_path,
            f"File access error: {_describe(error)}",
            "Check file permissions and existence",
            rule=rule,
        )
        return self._violation(
            ErrorCategory.FILE_ACCESS,
            file_path,
            f"Cannot access file: {os.path.basename(str(file_path))}",
            "Check file permissions and ensure file exists",
            rule=rule,
        )

    def handle_memory_error(
        self, file_path: str, error: BaseException, rule: str = ""
    ) -> Violation:
        self._append(
            ErrorCategory.MEMORY,
            file_path,
            f"Memory limit exceeded: {_describe(error)}",
            "Raise the size ceiling or process the file in chunks",
            rule=rule,
        )
        return self._violation(
            ErrorCategory.MEMORY,
            file_path,
            "Memory limit exceeded while processing file",
            "Raise the file size ceiling or use chunked processing",
            rule=rule,
        )

    def handle_performance_warning(
        self,
        file_path: str,
        message: str,
        threshold: float = 1.0,
        rule: str = "",
    ) -> Violation:
        self._append(
            ErrorCategory.PERFORMANCE,
            file_path,
            f"Performance warning: {message} (threshold {threshold:g}s)",
            "Consider optimizing rule implementation or using caching",
            rule=rule,
        )
        return self._violation(
            ErrorCategory.PERFORMANCE,
            file_path,
            f"Performance issue detected: {message}",
            "Optimize rule implementation or enable caching",
            rule=rule,
        )

    def handle_configuration_error(
        self,
        identifier: str,
        error: BaseException,
        file_path: str = "",
    ) -> Violation:
        self._append(
            ErrorCategory.CONFIGURATION,
            file_path,
            f"Configuration error for '{identifier}': {_describe(error)}",
            "Check the rule identifier and its options",
            rule=identifier,
        )
        return self._violation(
            ErrorCategory.CONFIGURATION,
            file_path,
            f"Rule '{identifier}' could not be loaded",
            "Check the rule identifier and its options",
            rule=identifier,
        )

    def handle_rule_error(
        self,
        file_path: str,
        error: BaseException,
        rule: str = "",
        message: str | None = None,
    ) -> Violation:
        text = message or _describe(error)
        self._append(
            ErrorCategory.RULE_PROCESSING,
            file_path,
            f"Rule processing error: {text}",
            "Check the rule implementation for bugs or compatibility issues",
            rule=rule,
        )
        return self._violation(
            ErrorCategory.RULE_PROCESSING,
            file_path,
            f"Rule '{rule or 'unknown'}' failed on this file",
            "Check the rule implementation for bugs or compatibility issues",
            rule=rule,
        )

    # ------------------------------------------------------------------
    # Queries

    def get_errors(self) -> list[ErrorRecord]:
        with self._lock:
            return list(self._errors)

    def get_warnings(self) -> list[ErrorRecord]:
        with self._lock:
            return list(self._warnings)

    def clear(self) -> None:
        """Clear both logs."""
        with self._lock:
            self._errors.clear()
            self._warnings.clear()

    def error_stats(self) -> dict[str, Any]:
        """Totals plus per-category counts across both logs."""
        with self._lock:
            records = self._errors + self._warnings
            stats: dict[str, Any] = {
                "total_errors": len(self._errors),
                "total_warnings": len(self._warnings),
                "categories": {
                    category.value: {"description": category.description, "count": 0}
                    for category in ErrorCategory
                },
            }
        for record in records:
            stats["categories"][record.category.value]["count"] += 1
        return stats

    def has_recoverable_errors(self) -> bool:
        """True if any logged error belongs to a recoverable category."""
        with self._lock:
            return any(record.recoverable for record in self._errors)

    def detailed_report(self) -> dict[str, Any]:
        """Summary, raw logs, recoverability, and improvement suggestions."""
        return {
            "summary": self.error_stats(),
            "errors": [record.to_dict() for record in self.get_errors()],
            "warnings": [record.to_dict() for record in self.get_warnings()],
            "has_recoverable_errors": self.has_recoverable_errors(),
            "suggestions": self._generate_suggestions(),
        }

    def _generate_suggestions(self) -> list[str]:
        counts: dict[ErrorCategory, int] = {}
        for record in self.get_errors() + self.get_warnings():
            counts[record.category] = counts.get(record.category, 0) + 1

        suggestions = []
        if counts.get(ErrorCategory.PARSING, 0) > 0:
            suggestions.append(
                "Consider adding syntax validation before rule processing"
            )
        if counts.get(ErrorCategory.MEMORY, 0) > 0:
            suggestions.append("Implement chunked processing for large files")
        if counts.get(ErrorCategory.PERFORMANCE, 0) >= CACHE_ADVICE_THRESHOLD:
            suggestions.append(
                "Enable AST caching and tune its size and TTL for this workload"
            )
        return suggestions

    # ------------------------------------------------------------------
    # Internals

    def _append(
        self,
        category: ErrorCategory,
        file_path: str,
        message: str,
        suggestion: str,
        line: int = 1,
        rule: str = "",
    ) -> ErrorRecord:
        record = ErrorRecord(
            category=category,
            file=str(file_path),
            line=line if line and line >= 1 else 1,
            message=message,
            bad_code=category.bad_code,
            severity=category.severity,
            suggested_fix=suggestion,
            recoverable=category.recoverable,
            rule=rule,
            timestamp=time.time(),
        )
        with self._lock:
            if category.severity is Severity.WARNING:
                self._warnings.append(record)
            else:
                self._errors.append(record)

        log_message = f"{message} [{category.value}]"
        if file_path:
            log_message += f" file={file_path}"
        if rule:
            log_message += f" rule={rule}"
        if category.severity is Severity.WARNING:
            logger.warning(log_message)
        else:
            logger.error(log_message)
        return record

    def _violation(
        self,
        category: ErrorCategory,
        file_path: str,
        message: str,
        suggested_fix: str,
        line: int = 1,
        rule: str = "",
    ) -> Violation:
        return Violation(
            file=str(file_path),
            line=line,
            message=message,
            bad_code=category.bad_code,
            suggested_fix=suggested_fix,
            severity=category.severity,
            category=category.value.lower(),
            rule=rule,
            metadata={"recoverable": category.recoverable},
        )


def _describe(error: BaseException) -> str:
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__


__all__ = [
    "ConfigurationError",
    "ErrorCategory",
    "ErrorHandler",
    "ErrorRecord",
    "ParseError",
    "ResourceLimitExceeded",
    "ReviewError",
    "TimeLimitExceeded",
    "UnknownRuleError",
    "ViolationValidationError",
    "parsing_suggestion",
]
