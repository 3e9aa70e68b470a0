"""Laravel best practices.

Checks controllers for unvalidated input and flags security and
performance anti-patterns common in Laravel code bases.
"""

from ...engine.base import AstRule, ConfigOption
from ...engine.category import RuleCategory
from ...engine.nodes import Node, NodeKind, ParsedTree, find_kind, walk
from ...engine.violation import Severity, Violation
from ..helpers import (
    declared_name,
    is_static,
    parameters,
    short_name,
    visibility,
)

VALIDATION_MARKERS = ("validate", "Validator::make", "FormRequest")

# Query builder / Eloquent calls that hit the database
QUERY_METHODS = frozenset({"find", "get", "first", "where", "select"})

DEFAULT_MAX_METHOD_LINES = 50


class LaravelBestPracticesRule(AstRule):
    """Enforces Laravel validation, security and performance practices."""

    @property
    def name(self) -> str:
        return "Laravel Best Practices"

    @property
    def description(self) -> str:
        return (
            "Enforces Laravel best practices including validation, security, "
            "and common anti-patterns."
        )

    @property
    def category(self) -> str:
        return RuleCategory.BEST_PRACTICE.value

    @property
    def severity(self) -> Severity:
        return Severity.WARNING

    @property
    def tags(self) -> tuple[str, ...]:
        return ("laravel", "best-practices", "validation", "security", "performance")

    @property
    def configuration_options(self) -> dict[str, ConfigOption]:
        return {
            "max_method_lines": ConfigOption(
                type="integer",
                default=DEFAULT_MAX_METHOD_LINES,
                description="Methods longer than this many lines are reported",
            ),
        }

    def perform_checks(self, tree: ParsedTree, file_path: str) -> list[Violation]:
        root = tree.root
        violations = []
        violations.extend(self._check_validation(root, file_path))
        violations.extend(self._check_security(root, file_path))
        violations.extend(self._check_queries_in_loops(root, file_path))
        violations.extend(self._check_method_size(root, file_path))
        return violations

    def _check_validation(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        for cls in find_kind(root, NodeKind.CLASS_DECLARATION):
            if "Controller" not in declared_name(cls):
                continue
            for method in find_kind(cls, NodeKind.METHOD_DECLARATION):
                if visibility(method) != "public" or is_static(method):
                    continue
                if not parameters(method):
                    continue
                text = method.text
                if any(marker in text for marker in VALIDATION_MARKERS):
                    continue
                violations.append(
                    self._create_violation(
                        file_path,
                        method.start_line,
                        "Public controller method should include validation "
                        "for user input.",
                        bad_code=f"{declared_name(method)}() method",
                        suggested_fix="Add Form Request validation or use "
                        "Validator facade.",
                        severity=Severity.WARNING,
                        category="validation",
                    )
                )
        return violations

    def _check_security(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        for call in find_kind(root, NodeKind.FUNCTION_CALL):
            if short_name(call.field_text("function") or "").lower() != "eval":
                continue
            violations.append(
                self._create_violation(
                    file_path,
                    call.start_line,
                    "Avoid using eval() as it poses security risks.",
                    bad_code="eval($code);",
                    suggested_fix="Use safe alternatives like json_decode() or "
                    "custom parsers.",
                    severity=Severity.ERROR,
                    category=RuleCategory.SECURITY.value,
                )
            )

        for call in find_kind(root, NodeKind.SCOPED_CALL):
            scope = short_name(call.field_text("scope") or "")
            method = (call.field_text("name") or "").lower()
            if scope != "DB" or method != "raw":
                continue
            violations.append(
                self._create_violation(
                    file_path,
                    call.start_line,
                    "Avoid raw SQL queries. Use Eloquent ORM or Query Builder.",
                    bad_code="DB::raw($sql);",
                    suggested_fix="Use Eloquent models or Query Builder methods.",
                    severity=Severity.WARNING,
                    category=RuleCategory.SECURITY.value,
                )
            )
        return violations

    def _check_queries_in_loops(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        for loop in find_kind(root, NodeKind.FOREACH_STATEMENT):
            body = loop.child_by_field("body") or (
                loop.children[-1] if loop.children else None
            )
            if body is None or not _calls_query_method(body):
                continue
            violations.append(
                self._create_violation(
                    file_path,
                    loop.start_line,
                    "Potential N+1 query issue detected in foreach loop.",
                    bad_code="foreach($items as $item) { $item->relation; }",
                    suggested_fix="Use eager loading: Model::with('relation')->get()",
                    severity=Severity.WARNING,
                    category=RuleCategory.PERFORMANCE.value,
                )
            )
        return violations

    def _check_method_size(self, root: Node, file_path: str) -> list[Violation]:
        limit = int(self.options["max_method_lines"])
        violations = []
        for method in find_kind(root, NodeKind.METHOD_DECLARATION):
            line_count = method.line_count
            if line_count <= limit:
                continue
            violations.append(
                self._create_violation(
                    file_path,
                    method.start_line,
                    f"Method {declared_name(method)}() is too large "
                    f"({line_count} lines).",
                    bad_code="Large method with many responsibilities",
                    suggested_fix="Extract logic into service classes or smaller "
                    "methods.",
                    severity=Severity.WARNING,
                    category=RuleCategory.ARCHITECTURE.value,
                    line_count=line_count,
                )
            )
        return violations


def _calls_query_method(body: Node) -> bool:
    for node in walk(body):
        if node.is_kind(
            NodeKind.MEMBER_CALL, NodeKind.NULLSAFE_MEMBER_CALL, NodeKind.SCOPED_CALL
        ):
            if (node.field_text("name") or "").lower() in QUERY_METHODS:
                return True
    return False


__all__ = ["LaravelBestPracticesRule"]
