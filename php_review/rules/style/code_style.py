"""Code style standards: naming, structure, readability and conventions."""

import re

from ...engine.base import AstRule, ConfigOption
from ...engine.category import RuleCategory
from ...engine.nodes import Node, NodeKind, ParsedTree, find_kind, visit
from ...engine.violation import Severity, Violation
from ..helpers import (
    UseImport,
    declared_name,
    parse_int_literal,
    return_type,
    use_imports,
)

PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")

BOOLEAN_PREFIXES = ("is", "has", "can")

# Integers up to this value are not magic numbers
MAGIC_NUMBER_THRESHOLD = 10
ALLOWED_NUMBERS = frozenset({1000})

MIN_CLASS_NAME_LENGTH = 3
DEFAULT_MAX_LINE_LENGTH = 120

CONVENTION_SUFFIXES = ("Controller", "Model")


class CodeStyleRule(AstRule):
    """Enforces naming, structure and readability standards."""

    @property
    def name(self) -> str:
        return "Code Style Standards"

    @property
    def description(self) -> str:
        return (
            "Enforces comprehensive code style standards including naming "
            "conventions, structure, and readability."
        )

    @property
    def category(self) -> str:
        return RuleCategory.STYLE.value

    @property
    def severity(self) -> Severity:
        return Severity.WARNING

    @property
    def tags(self) -> tuple[str, ...]:
        return ("style", "naming", "structure", "readability", "conventions")

    @property
    def configuration_options(self) -> dict[str, ConfigOption]:
        return {
            "max_line_length": ConfigOption(
                type="integer",
                default=DEFAULT_MAX_LINE_LENGTH,
                description="Lines longer than this many characters are reported",
            ),
        }

    def perform_checks(self, tree: ParsedTree, file_path: str) -> list[Violation]:
        violations = []
        violations.extend(self._check_naming(tree.root, file_path))
        violations.extend(self._check_structure(tree.root, file_path))
        violations.extend(self._check_readability(tree, file_path))
        violations.extend(self._check_conventions(tree.root, file_path))
        return violations

    # ------------------------------------------------------------------
    # Naming

    def _check_naming(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        for cls in find_kind(root, NodeKind.CLASS_DECLARATION):
            name = declared_name(cls)
            if not name:
                continue
            if not PASCAL_CASE.match(name):
                violations.append(
                    self._naming_violation(
                        file_path,
                        cls,
                        f"Class name should use PascalCase: {name}",
                        f"class {name}",
                        f"class {_pascal_case(name)}",
                    )
                )
            if len(name) < MIN_CLASS_NAME_LENGTH:
                violations.append(
                    self._naming_violation(
                        file_path,
                        cls,
                        f"Class name should be descriptive: {name}",
                        f"class {name}",
                        "Use a more descriptive name",
                        severity=Severity.INFO,
                    )
                )

        for method in find_kind(root, NodeKind.METHOD_DECLARATION):
            name = declared_name(method)
            if not name or name.startswith("__"):
                continue
            if not CAMEL_CASE.match(name):
                violations.append(
                    self._naming_violation(
                        file_path,
                        method,
                        f"Method name should use camelCase: {name}",
                        f"function {name}",
                        f"function {_camel_case(name)}",
                    )
                )
            returns = return_type(method)
            if (
                returns is not None
                and returns.lower() == "bool"
                and not name.startswith(BOOLEAN_PREFIXES)
            ):
                violations.append(
                    self._naming_violation(
                        file_path,
                        method,
                        f"Boolean method should start with is/has/can: {name}",
                        f"function {name}",
                        f"function is{name[:1].upper()}{name[1:]}",
                        severity=Severity.INFO,
                    )
                )
        return violations

    def _naming_violation(
        self,
        file_path: str,
        node: Node,
        message: str,
        bad_code: str,
        suggested_fix: str,
        severity: Severity = Severity.WARNING,
    ) -> Violation:
        return self._create_violation(
            file_path,
            node.start_line,
            message,
            bad_code=bad_code,
            suggested_fix=suggested_fix,
            severity=severity,
            category="naming",
        )

    # ------------------------------------------------------------------
    # Structure

    def _check_structure(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        if not find_kind(root, NodeKind.NAMESPACE_DEFINITION):
            violations.append(
                self._create_violation(
                    file_path,
                    1,
                    "File should use proper namespace declaration.",
                    bad_code="No namespace declared",
                    suggested_fix="namespace App\\YourNamespace;",
                    severity=Severity.WARNING,
                    category="structure",
                )
            )

        imports = use_imports(root)
        if imports:
            referenced = _referenced_names(root)
            for imp in imports:
                if _is_used(imp, referenced):
                    continue
                violations.append(
                    self._create_violation(
                        file_path,
                        imp.line,
                        f"Unused import: {imp.name}",
                        bad_code=imp.statement,
                        suggested_fix="Remove unused import",
                        severity=Severity.WARNING,
                        category="structure",
                    )
                )
        return violations

    # ------------------------------------------------------------------
    # Readability

    def _check_readability(self, tree: ParsedTree, file_path: str) -> list[Violation]:
        violations = []
        for number in _magic_numbers(tree.root):
            value = parse_int_literal(number.text)
            violations.append(
                self._create_violation(
                    file_path,
                    number.start_line,
                    f"Magic number detected: {value}",
                    bad_code=number.text.strip(),
                    suggested_fix="Define as a named constant",
                    severity=Severity.INFO,
                    category="readability",
                )
            )

        limit = int(self.options["max_line_length"])
        for index, line in enumerate(tree.lines):
            if len(line) <= limit:
                continue
            violations.append(
                self._create_violation(
                    file_path,
                    index + 1,
                    f"Line is too long ({len(line)} characters)",
                    bad_code=line.strip(),
                    suggested_fix="Break into multiple lines",
                    severity=Severity.WARNING,
                    category="readability",
                )
            )
        return violations

    # ------------------------------------------------------------------
    # Framework conventions

    def _check_conventions(self, root: Node, file_path: str) -> list[Violation]:
        violations = []
        for cls in find_kind(root, NodeKind.CLASS_DECLARATION):
            name = declared_name(cls)
            for suffix in CONVENTION_SUFFIXES:
                if suffix not in name or name.endswith(suffix):
                    continue
                violations.append(
                    self._create_violation(
                        file_path,
                        cls.start_line,
                        f'{suffix} class should end with "{suffix}": {name}',
                        bad_code=f"class {name}",
                        suggested_fix=f"class {name.replace(suffix, '')}{suffix}",
                        severity=Severity.WARNING,
                        category="conventions",
                    )
                )
        return violations


def _pascal_case(name: str) -> str:
    parts = [part for part in re.split(r"[_\W]+", name) if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) or name


def _camel_case(name: str) -> str:
    pascal = _pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def _referenced_names(root: Node) -> tuple[set[str], str]:
    """Names referenced outside ``use`` declarations, plus all comment text.

    Class names are case-insensitive in PHP, so names are lower-cased.
    """
    names: set[str] = set()
    comments: list[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_kind(NodeKind.NAMESPACE_USE_DECLARATION, NodeKind.VARIABLE_NAME):
            continue
        if node.is_kind(NodeKind.NAMESPACE_DEFINITION):
            # The namespace's own name is not a reference
            stack.extend(
                child
                for child in node.children
                if not child.is_kind(NodeKind.NAMESPACE_NAME)
            )
            continue
        if node.is_kind(NodeKind.COMMENT):
            comments.append(node.text)
            continue
        if node.is_kind(NodeKind.QUALIFIED_NAME):
            first = node.text.strip().lstrip("\\").split("\\", 1)[0]
            names.add(first.lower())
            continue
        if node.is_kind(NodeKind.NAME):
            names.add(node.text.strip().lower())
            continue
        stack.extend(node.children)
    return names, "\n".join(comments)


def _is_used(imp: UseImport, referenced: tuple[set[str], str]) -> bool:
    names, comments = referenced
    alias = imp.alias.lower()
    if alias in names:
        return True
    # Docblock references such as "@var Client" or "@throws Client"
    return re.search(rf"(?<![\w\\]){re.escape(imp.alias)}\b", comments) is not None


def _magic_numbers(root: Node) -> list[Node]:
    """Integer literals worth naming, skipping constant declarations."""
    numbers = []

    def collect(node: Node) -> bool | None:
        if node.is_kind(NodeKind.CONST_DECLARATION):
            return False
        if node.is_kind(NodeKind.INTEGER):
            value = parse_int_literal(node.text)
            if (
                value is not None
                and value > MAGIC_NUMBER_THRESHOLD
                and value not in ALLOWED_NUMBERS
            ):
                numbers.append(node)
        return None

    visit(root, collect)
    return numbers


__all__ = ["CodeStyleRule"]
