"""Tests for error classification and the error handler."""

import logging

import pytest

from php_review.engine.errors import (
    ErrorCategory,
    ErrorHandler,
    parsing_suggestion,
)
from php_review.engine.violation import Severity
from php_review.exceptions import (
    ConfigurationError,
    ParseError,
    ResourceLimitExceeded,
    TimeLimitExceeded,
    UnknownRuleError,
    ViolationValidationError,
)


class TestErrorCategory:
    """Test the fixed category table."""

    @pytest.mark.parametrize(
        "category,severity,recoverable",
        [
            (ErrorCategory.PARSING, Severity.ERROR, False),
            (ErrorCategory.VALIDATION, Severity.WARNING, True),
            (ErrorCategory.FILE_ACCESS, Severity.ERROR, False),
            (ErrorCategory.MEMORY, Severity.ERROR, True),
            (ErrorCategory.PERFORMANCE, Severity.WARNING, True),
            (ErrorCategory.CONFIGURATION, Severity.ERROR, True),
            (ErrorCategory.RULE_PROCESSING, Severity.ERROR, False),
        ],
    )
    def test_severity_and_recoverability(self, category, severity, recoverable):
        assert category.severity is severity
        assert category.recoverable is recoverable
        assert category.description
        assert category.bad_code


class TestParsingSuggestion:
    """Test fix suggestions for parser messages."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            (
                "Syntax error, unterminated string starting on line 3",
                "Check for unclosed strings or comments",
            ),
            (
                "Syntax error, unexpected '}' on line 9",
                "Check for syntax errors around the reported line",
            ),
            (
                "Syntax error, missing ';' on line 2",
                "Check for missing semicolons, brackets, or quotes",
            ),
            ("Something odd", "Review PHP syntax near the reported line"),
        ],
    )
    def test_suggestions(self, message, expected):
        assert parsing_suggestion(message) == expected


class TestClassify:
    """Test mapping exceptions onto categories."""

    @pytest.mark.parametrize(
        "error,category",
        [
            (ParseError("Syntax error", 1), ErrorCategory.PARSING),
            (MemoryError(), ErrorCategory.MEMORY),
            (ResourceLimitExceeded("too big"), ErrorCategory.MEMORY),
            (TimeLimitExceeded("too slow"), ErrorCategory.PERFORMANCE),
            (ConfigurationError("bad"), ErrorCategory.CONFIGURATION),
            (UnknownRuleError("nope"), ErrorCategory.CONFIGURATION),
            (PermissionError("denied"), ErrorCategory.FILE_ACCESS),
            (TypeError("NoneType"), ErrorCategory.VALIDATION),
            (AttributeError("x"), ErrorCategory.VALIDATION),
            (ViolationValidationError("x"), ErrorCategory.VALIDATION),
            (RuntimeError("boom"), ErrorCategory.RULE_PROCESSING),
        ],
    )
    def test_classify(self, error, category):
        assert ErrorHandler.classify(error) is category


class TestErrorHandler:
    """Test logging and reporting."""

    @pytest.fixture
    def handler(self) -> ErrorHandler:
        return ErrorHandler()

    def test_parsing_error(self, handler):
        error = ParseError("Syntax error, missing ';' on line 4", 4)
        violation = handler.handle(error, "src/a.php", rule="StyleRule")

        assert violation.line == 4
        assert violation.message == "PHP parsing error: Syntax error, missing ';' on line 4"
        assert violation.bad_code == "Invalid PHP syntax"
        assert violation.suggested_fix == "Check for missing semicolons, brackets, or quotes"
        assert violation.severity is Severity.ERROR
        assert violation.category == "parsing"
        assert violation.metadata == {"recoverable": False}

        errors = handler.get_errors()
        assert len(errors) == 1
        assert errors[0].category is ErrorCategory.PARSING
        assert errors[0].rule == "StyleRule"
        assert handler.get_warnings() == []

    def test_validation_goes_to_warnings(self, handler):
        violation = handler.handle(TypeError("bad"), "a.php")
        assert violation.message == "Type handling issue detected"
        assert violation.severity is Severity.WARNING
        assert len(handler.get_warnings()) == 1
        assert handler.get_errors() == []

    def test_file_access_error_uses_basename(self, handler):
        violation = handler.handle(PermissionError("denied"), "/var/app/secret.php")
        assert violation.message == "Cannot access file: secret.php"
        assert violation.bad_code == "File access denied"

    def test_memory_error(self, handler):
        violation = handler.handle(ResourceLimitExceeded("big"), "big.php")
        assert violation.message == "Memory limit exceeded while processing file"
        assert violation.metadata == {"recoverable": True}

    def test_performance_warning(self, handler):
        violation = handler.handle_performance_warning(
            "slow.php", "Rule took 2.5s", threshold=1.0
        )
        assert violation.message == "Performance issue detected: Rule took 2.5s"
        assert violation.bad_code == "Slow processing detected"
        warnings = handler.get_warnings()
        assert len(warnings) == 1
        assert warnings[0].category is ErrorCategory.PERFORMANCE

    def test_configuration_error(self, handler):
        violation = handler.handle_configuration_error(
            "style.nope", UnknownRuleError("style.nope")
        )
        assert violation.message == "Rule 'style.nope' could not be loaded"
        assert handler.get_errors()[0].category is ErrorCategory.CONFIGURATION

    def test_rule_error(self, handler):
        violation = handler.handle(RuntimeError("boom"), "a.php", rule="BrokenRule")
        assert violation.message == "Rule 'BrokenRule' failed on this file"
        assert "boom" in handler.get_errors()[0].message

    def test_records_are_logged(self, handler, caplog):
        with caplog.at_level(logging.WARNING, logger="php_review"):
            handler.handle(RuntimeError("boom"), "a.php")
            handler.handle(TypeError("bad"), "b.php")
        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.ERROR, logging.WARNING]

    def test_error_stats(self, handler):
        handler.handle(ParseError("Syntax error", 1), "a.php")
        handler.handle(ParseError("Syntax error", 1), "b.php")
        handler.handle(TypeError("x"), "c.php")

        stats = handler.error_stats()
        assert stats["total_errors"] == 2
        assert stats["total_warnings"] == 1
        assert stats["categories"]["PARSING"]["count"] == 2
        assert stats["categories"]["VALIDATION"]["count"] == 1
        assert stats["categories"]["MEMORY"]["count"] == 0

    def test_has_recoverable_errors(self, handler):
        handler.handle(ParseError("Syntax error", 1), "a.php")
        assert handler.has_recoverable_errors() is False
        handler.handle(MemoryError(), "a.php")
        assert handler.has_recoverable_errors() is True

    def test_warnings_do_not_count_as_recoverable_errors(self, handler):
        handler.handle(TypeError("x"), "a.php")
        assert handler.has_recoverable_errors() is False

    def test_detailed_report_suggestions(self, handler):
        handler.handle(ParseError("Syntax error", 1), "a.php")
        handler.handle(MemoryError(), "b.php")
        handler.handle_performance_warning("c.php", "slow")

        report = handler.detailed_report()
        assert report["has_recoverable_errors"] is True
        assert len(report["errors"]) == 2
        assert report["errors"][0]["type"] == "PARSING"
        assert len(report["warnings"]) == 1
        assert report["suggestions"] == [
            "Consider adding syntax validation before rule processing",
            "Implement chunked processing for large files",
        ]

        handler.handle_performance_warning("d.php", "slow")
        suggestions = handler.detailed_report()["suggestions"]
        assert len(suggestions) == 3
        assert "caching" in suggestions[2].lower()

    def test_clear(self, handler):
        handler.handle(RuntimeError("x"), "a.php")
        handler.handle(TypeError("x"), "a.php")
        handler.clear()
        assert handler.get_errors() == []
        assert handler.get_warnings() == []
