"""Raw MongoDB access in controllers.

Controllers should talk to a repository, never to the MongoDB driver
directly. Every place a controller touches the driver is reported:
imports, instantiation, static calls, calls on driver-looking objects,
and the legacy ``mongodb_*`` functions.
"""

import os
from dataclasses import dataclass
from typing import Any

from ...engine.base import AstRule, ConfigOption
from ...engine.category import RuleCategory
from ...engine.nodes import Node, NodeKind, ParsedTree, walk
from ...engine.violation import Severity, Violation
from ...exceptions import ParseError
from ..helpers import (
    alias_map,
    class_reference,
    normalize_name,
    receiver_name,
    resolve_class_name,
    short_name,
    use_imports,
)

DEFAULT_TARGET_PATHS = ["app/Http/Controllers/"]

DEFAULT_MONGO_PATTERNS = [
    "MongoDB\\",
    "Mongo\\",
    "MongoDB\\Client",
    "MongoDB\\Collection",
    "MongoDB\\Database",
    "MongoDB\\Cursor",
    "MongoDB\\BSON\\",
]

DEFAULT_SUGGESTED_FIX = "Use a Repository layer to abstract MongoDB queries."

MESSAGE = "Avoid raw MongoDB access inside controllers."

# Receivers that are almost always a driver handle
MONGO_RECEIVERS = frozenset({"collection", "client", "db", "mongo", "mongodb"})

MONGO_FUNCTION_PREFIX = "mongodb_"


@dataclass(frozen=True)
class MongoUsage:
    """A single place where a file touches the MongoDB driver."""

    kind: str  # "use", "new", "static_call", "method_call" or "function_call"
    line: int
    code: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "line": self.line, "code": self.code}


class NoMongoInControllerRule(AstRule):
    """Flags raw MongoDB usage inside Laravel controllers."""

    @property
    def name(self) -> str:
        return "No MongoDB in Controllers"

    @property
    def description(self) -> str:
        return (
            "Detects raw MongoDB access inside Laravel controllers and "
            "suggests using a Repository layer for better separation of "
            "concerns and maintainability."
        )

    @property
    def category(self) -> str:
        return RuleCategory.ARCHITECTURE.value

    @property
    def severity(self) -> Severity:
        return Severity.WARNING

    @property
    def tags(self) -> tuple[str, ...]:
        return (
            "laravel",
            "mongodb",
            "architecture",
            "repository-pattern",
            "separation-of-concerns",
        )

    @property
    def configuration_options(self) -> dict[str, ConfigOption]:
        return {
            "target_paths": ConfigOption(
                type="array",
                default=list(DEFAULT_TARGET_PATHS),
                description="Paths to scan for MongoDB usage",
            ),
            "mongo_patterns": ConfigOption(
                type="array",
                default=list(DEFAULT_MONGO_PATTERNS),
                description="MongoDB namespace patterns to detect",
            ),
            "suggested_fix": ConfigOption(
                type="string",
                default=DEFAULT_SUGGESTED_FIX,
                description="Suggested fix for MongoDB usage",
            ),
        }

    def applies_to(self, file_path: str) -> bool:
        path = str(file_path).replace("\\", "/")
        return any(target in path for target in self.options["target_paths"])

    def perform_checks(self, tree: ParsedTree, file_path: str) -> list[Violation]:
        fix = self.options["suggested_fix"]
        return [
            self._create_violation(
                file_path,
                usage.line,
                MESSAGE,
                bad_code=usage.code,
                suggested_fix=fix,
                usage=usage.kind,
            )
            for usage in self.find_usages(tree)
        ]

    def find_usages(self, tree: ParsedTree) -> list[MongoUsage]:
        """All MongoDB usage sites in source order."""
        imports = use_imports(tree.root)
        aliases = alias_map(imports)

        usages = [
            MongoUsage("use", imp.line, imp.statement)
            for imp in imports
            if imp.kind == "class" and self._is_mongo_name(imp.name)
        ]

        for node in walk(tree.root):
            usage = self._classify(node, aliases)
            if usage is not None:
                usages.append(usage)

        usages.sort(key=lambda usage: usage.line)
        return usages

    def _classify(self, node: Node, aliases: dict[str, str]) -> MongoUsage | None:
        if node.is_kind(NodeKind.OBJECT_CREATION):
            reference = class_reference(node)
            if reference is None:
                return None
            class_name = resolve_class_name(reference.text, aliases)
            if self._is_mongo_name(class_name):
                return MongoUsage("new", node.start_line, f"new {class_name}()")
            return None

        if node.is_kind(NodeKind.SCOPED_CALL):
            scope = node.field_text("scope")
            if not scope:
                return None
            class_name = resolve_class_name(scope, aliases)
            if self._is_mongo_name(class_name):
                method = node.field_text("name") or "method"
                return MongoUsage(
                    "static_call", node.start_line, f"{class_name}::{method}()"
                )
            return None

        if node.is_kind(NodeKind.MEMBER_CALL, NodeKind.NULLSAFE_MEMBER_CALL):
            receiver = receiver_name(node)
            if receiver and receiver.lower() in MONGO_RECEIVERS:
                method = node.field_text("name") or "method"
                return MongoUsage(
                    "method_call", node.start_line, f"${receiver}->{method}()"
                )
            return None

        if node.is_kind(NodeKind.FUNCTION_CALL):
            function = short_name(node.field_text("function") or "")
            if function.lower().startswith(MONGO_FUNCTION_PREFIX):
                return MongoUsage("function_call", node.start_line, f"{function}()")
        return None

    def _is_mongo_name(self, name: str) -> bool:
        qualified = normalize_name(name)
        return any(
            qualified.startswith(normalize_name(pattern))
            for pattern in self.options["mongo_patterns"]
        )

    def usage_details(self, file_path: str) -> list[dict[str, Any]]:
        """Describe every MongoDB usage in a controller file.

        Intended for debugging a rule result; returns an empty list for
        files outside the target paths or files that cannot be parsed.
        """
        if not self.applies_to(file_path):
            return []
        try:
            with open(file_path, "rb") as f:
                content = f.read()
            mtime = os.stat(file_path).st_mtime_ns
        except OSError as e:
            self.context.errors.handle_file_access_error(
                file_path, e, rule=self.rule_type
            )
            return []
        try:
            tree = self.context.cache.get_or_parse(file_path, content, mtime)
        except ParseError as e:
            self.context.errors.handle_parsing_error(file_path, e, rule=self.rule_type)
            return []
        return [usage.to_dict() for usage in self.find_usages(tree)]


__all__ = ["MongoUsage", "NoMongoInControllerRule"]
