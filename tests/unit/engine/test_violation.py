"""Tests for violation records and severities."""

import pytest

from php_review.engine.category import RuleCategory
from php_review.engine.violation import Severity, Violation


class TestSeverity:
    """Test severity coercion."""

    def test_coerce_string(self):
        assert Severity.coerce("Warning") is Severity.WARNING
        assert Severity.coerce(" error ") is Severity.ERROR

    def test_coerce_passthrough(self):
        assert Severity.coerce(Severity.INFO) is Severity.INFO

    def test_coerce_unknown_raises(self):
        with pytest.raises(ValueError):
            Severity.coerce("critical")


class TestViolation:
    """Test violation normalisation."""

    def test_defaults(self):
        violation = Violation(file="a.php", line=3, message="Something")
        assert violation.bad_code == "N/A"
        assert violation.suggested_fix == "N/A"
        assert violation.severity is Severity.WARNING
        assert violation.category == "general"
        assert violation.tags == ()
        assert violation.metadata == {}

    @pytest.mark.parametrize("line", [0, -4, None, "abc", float("inf"), float("nan")])
    def test_invalid_line_normalises_to_one(self, line):
        violation = Violation(file="a.php", line=line, message="m")
        assert violation.line == 1

    def test_numeric_string_line(self):
        assert Violation(file="a.php", line="12", message="m").line == 12

    def test_category_enum_is_stored_as_value(self):
        violation = Violation(
            file="a.php", line=1, message="m", category=RuleCategory.SECURITY
        )
        assert violation.category == "security"

    def test_severity_string_is_coerced(self):
        violation = Violation(file="a.php", line=1, message="m", severity="error")
        assert violation.severity is Severity.ERROR

    def test_is_immutable(self):
        violation = Violation(file="a.php", line=1, message="m")
        with pytest.raises(AttributeError):
            violation.line = 5

    def test_metadata_is_copied(self):
        data = {"key": "value"}
        violation = Violation(file="a.php", line=1, message="m", metadata=data)
        data["key"] = "changed"
        assert violation.metadata == {"key": "value"}

    def test_to_dict(self):
        violation = Violation(
            file="a.php",
            line=2,
            message="Bad thing",
            severity=Severity.ERROR,
            category="security",
            rule="SomeRule",
            tags=("x", "y"),
        )
        data = violation.to_dict()
        assert data["file"] == "a.php"
        assert data["line"] == 2
        assert data["severity"] == "error"
        assert data["category"] == "security"
        assert data["tags"] == ["x", "y"]

    def test_str(self):
        violation = Violation(file="a.php", line=7, message="Oops")
        assert str(violation) == "a.php:7: [WARNING] Oops"


class TestViolationFromDict:
    """Test building violations from mappings."""

    def test_legacy_aliases(self):
        violation = Violation.from_dict(
            {"message": "m", "line": 4, "bad": "eval($x)", "good": "json_decode($x)"},
            file_path="b.php",
        )
        assert violation.file == "b.php"
        assert violation.bad_code == "eval($x)"
        assert violation.suggested_fix == "json_decode($x)"

    def test_unknown_keys_go_to_metadata(self):
        violation = Violation.from_dict(
            {"message": "m", "confidence": 0.8}, file_path="b.php"
        )
        assert violation.metadata == {"confidence": 0.8}

    def test_missing_line_becomes_one(self):
        violation = Violation.from_dict({"message": "m"}, file_path="b.php")
        assert violation.line == 1

    def test_missing_message_raises(self):
        with pytest.raises(ValueError, match="message"):
            Violation.from_dict({"line": 3}, file_path="b.php")
