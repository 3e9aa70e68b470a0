"""PHP syntax helpers shared by the bundled rules.

Small, stateless functions over ``Node`` so each rule reads as a list of
patterns rather than tree plumbing.
"""

import re
from dataclasses import dataclass

from ..engine.nodes import Node, NodeKind, find_kind

_USE_TYPE = re.compile(r"^\s*use\s+(function|const)\b", re.IGNORECASE)


@dataclass(frozen=True)
class UseImport:
    """One name imported by a ``use`` declaration."""

    name: str  # fully qualified, without a leading backslash
    alias: str  # name the file refers to it by
    kind: str  # "class", "function" or "const"
    line: int
    declaration: Node

    @property
    def statement(self) -> str:
        prefix = "" if self.kind == "class" else f"{self.kind} "
        if self.alias != short_name(self.name):
            return f"use {prefix}{self.name} as {self.alias};"
        return f"use {prefix}{self.name};"


def normalize_name(name: str | None) -> str:
    """Strip whitespace and the leading namespace separator."""
    return (name or "").strip().lstrip("\\")


def short_name(name: str) -> str:
    return normalize_name(name).rsplit("\\", 1)[-1]


def use_imports(root: Node) -> list[UseImport]:
    """All ``use`` imports of a file in source order.

    Handles plain, aliased, and grouped forms::

        use MongoDB\\Client;
        use MongoDB\\Collection as Mongo;
        use MongoDB\\{Database, Cursor};
    """
    imports = []
    for declaration in find_kind(root, NodeKind.NAMESPACE_USE_DECLARATION):
        match = _USE_TYPE.match(declaration.text)
        kind = match.group(1).lower() if match else "class"

        group = declaration.first_child_of_kind(NodeKind.NAMESPACE_USE_GROUP)
        if group is not None:
            prefix_node = declaration.first_child_of_kind(
                NodeKind.NAMESPACE_NAME, NodeKind.QUALIFIED_NAME
            )
            prefix = normalize_name(prefix_node.text) if prefix_node else ""
            clauses = group.children_of_kind(
                NodeKind.NAMESPACE_USE_CLAUSE, NodeKind.NAMESPACE_USE_GROUP_CLAUSE
            )
        else:
            prefix = ""
            clauses = declaration.children_of_kind(NodeKind.NAMESPACE_USE_CLAUSE)

        for clause in clauses:
            imported = _clause_import(clause, prefix)
            if imported is None:
                continue
            name, alias = imported
            imports.append(
                UseImport(
                    name=name,
                    alias=alias,
                    kind=kind,
                    line=clause.start_line,
                    declaration=declaration,
                )
            )
    return imports


def _clause_import(clause: Node, prefix: str) -> tuple[str, str] | None:
    names = clause.children_of_kind(
        NodeKind.QUALIFIED_NAME, NodeKind.NAMESPACE_NAME, NodeKind.NAME
    )
    if not names:
        return None

    path = normalize_name(names[0].text)
    name = f"{prefix}\\{path}" if prefix else path

    alias_node = clause.child_by_field("alias")
    if alias_node is None:
        aliasing = clause.first_child_of_kind(NodeKind.NAMESPACE_ALIASING_CLAUSE)
        if aliasing is not None:
            alias_node = aliasing.first_child_of_kind(NodeKind.NAME)
    if alias_node is None and len(names) > 1:
        alias_node = names[-1]

    alias = alias_node.text.strip() if alias_node is not None else short_name(name)
    return name, alias


def alias_map(imports: list[UseImport]) -> dict[str, str]:
    """Lower-cased class alias -> fully qualified name."""
    return {imp.alias.lower(): imp.name for imp in imports if imp.kind == "class"}


def resolve_class_name(name: str, aliases: dict[str, str]) -> str:
    """Resolve a class reference through the file's ``use`` imports.

    Fully qualified references are returned without their leading
    backslash; unknown short names are returned unchanged.
    """
    text = name.strip()
    if text.startswith("\\"):
        return normalize_name(text)
    first, _, rest = text.partition("\\")
    target = aliases.get(first.lower())
    if target is None:
        return text
    return f"{target}\\{rest}" if rest else target


def declared_name(node: Node) -> str:
    """Name of a class, method, or function declaration."""
    return (node.field_text("name") or "").strip()


def visibility(method: Node) -> str:
    """Visibility keyword of a method; PHP defaults to public."""
    modifier = method.first_child_of_kind(NodeKind.VISIBILITY_MODIFIER)
    return modifier.text.strip().lower() if modifier is not None else "public"


def is_static(method: Node) -> bool:
    return method.first_child_of_kind(NodeKind.STATIC_MODIFIER) is not None


def parameters(function: Node) -> list[Node]:
    params = function.child_by_field("parameters")
    if params is None:
        params = function.first_child_of_kind(NodeKind.FORMAL_PARAMETERS)
    if params is None:
        return []
    return [child for child in params.children if not child.is_kind(NodeKind.COMMENT)]


def return_type(function: Node) -> str | None:
    node = function.child_by_field("return_type")
    return node.text.strip() if node is not None else None


def class_reference(node: Node) -> Node | None:
    """Class name node of a ``new`` expression, None for dynamic forms."""
    return node.first_child_of_kind(NodeKind.NAME, NodeKind.QUALIFIED_NAME)


def receiver_name(call: Node) -> str | None:
    """Name of the variable or property a method is called on.

    ``$collection->find()`` gives "collection" and
    ``$this->db->insert()`` gives "db".
    """
    target = call.child_by_field("object")
    if target is None:
        return None
    if target.is_kind(NodeKind.VARIABLE_NAME):
        return target.text.lstrip("$")
    if target.is_kind(NodeKind.MEMBER_ACCESS):
        return target.field_text("name")
    return None


def parse_int_literal(text: str) -> int | None:
    """Value of a PHP integer literal, None if it cannot be read."""
    literal = text.strip().replace("_", "").lower()
    try:
        if literal.startswith(("0x", "0b", "0o")):
            return int(literal, 0)
        if len(literal) > 1 and literal.startswith("0"):
            return int(literal, 8)
        return int(literal)
    except ValueError:
        return None


__all__ = [
    "UseImport",
    "alias_map",
    "class_reference",
    "declared_name",
    "is_static",
    "normalize_name",
    "parameters",
    "parse_int_literal",
    "receiver_name",
    "resolve_class_name",
    "return_type",
    "short_name",
    "use_imports",
    "visibility",
]
