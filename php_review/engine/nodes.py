"""Immutable syntax tree and traversal helpers.

The parser converts the tree-sitter tree into plain frozen ``Node`` records
so a cached tree can be shared by every rule (and every thread) without any
chance of mutation. Each node carries its grammar kind, its location, and
its named children; the text is sliced lazily from the source bytes the
whole tree shares.

Rules express patterns as predicates over nodes::

    for call in find_kind(tree.root, NodeKind.FUNCTION_CALL):
        if call.field_text("function") == "eval":
            ...
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property


class NodeKind(str, Enum):
    """Grammar node kinds the engine and bundled rules inspect.

    Nodes of any other kind still appear in the tree with their raw grammar
    name as ``Node.kind``.
    """

    PROGRAM = "program"
    ERROR = "ERROR"
    NAMESPACE_DEFINITION = "namespace_definition"
    NAMESPACE_USE_DECLARATION = "namespace_use_declaration"
    NAMESPACE_USE_CLAUSE = "namespace_use_clause"
    NAMESPACE_USE_GROUP = "namespace_use_group"
    NAMESPACE_USE_GROUP_CLAUSE = "namespace_use_group_clause"
    NAMESPACE_ALIASING_CLAUSE = "namespace_aliasing_clause"
    NAMESPACE_NAME = "namespace_name"
    QUALIFIED_NAME = "qualified_name"
    NAME = "name"
    CLASS_DECLARATION = "class_declaration"
    METHOD_DECLARATION = "method_declaration"
    FUNCTION_DEFINITION = "function_definition"
    FORMAL_PARAMETERS = "formal_parameters"
    VISIBILITY_MODIFIER = "visibility_modifier"
    STATIC_MODIFIER = "static_modifier"
    COMPOUND_STATEMENT = "compound_statement"
    OBJECT_CREATION = "object_creation_expression"
    SCOPED_CALL = "scoped_call_expression"
    MEMBER_CALL = "member_call_expression"
    NULLSAFE_MEMBER_CALL = "nullsafe_member_call_expression"
    FUNCTION_CALL = "function_call_expression"
    MEMBER_ACCESS = "member_access_expression"
    VARIABLE_NAME = "variable_name"
    FOREACH_STATEMENT = "foreach_statement"
    CONST_DECLARATION = "const_declaration"
    INTEGER = "integer"
    PRIMITIVE_TYPE = "primitive_type"
    NAMED_TYPE = "named_type"
    OPTIONAL_TYPE = "optional_type"
    COMMENT = "comment"


@dataclass(frozen=True, eq=False)
class Node:
    """A single syntax tree node.

    Lines are 1-indexed. ``fields`` is parallel to ``children`` and holds
    the grammar field name of each child (or None).
    """

    kind: str
    start_byte: int
    end_byte: int
    start_line: int
    end_line: int
    children: tuple["Node", ...] = ()
    fields: tuple[str | None, ...] = ()
    is_error: bool = False
    is_missing: bool = False
    source: bytes = field(default=b"", repr=False)

    @cached_property
    def text(self) -> str:
        """Source text covered by this node."""
        return self.source[self.start_byte : self.end_byte].decode(
            "utf-8", errors="replace"
        )

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line

    def is_kind(self, *kinds: "NodeKind | str") -> bool:
        return self.kind in {str(getattr(k, "value", k)) for k in kinds}

    def child_by_field(self, name: str) -> "Node | None":
        """First child stored under the given grammar field."""
        for child, field_name in zip(self.children, self.fields):
            if field_name == name:
                return child
        return None

    def children_by_field(self, name: str) -> list["Node"]:
        return [
            child
            for child, field_name in zip(self.children, self.fields)
            if field_name == name
        ]

    def field_text(self, name: str) -> str | None:
        """Text of a field child, or None when the field is absent."""
        child = self.child_by_field(name)
        return child.text if child is not None else None

    def children_of_kind(self, *kinds: "NodeKind | str") -> list["Node"]:
        return [child for child in self.children if child.is_kind(*kinds)]

    def first_child_of_kind(self, *kinds: "NodeKind | str") -> "Node | None":
        for child in self.children:
            if child.is_kind(*kinds):
                return child
        return None

    def __repr__(self) -> str:
        return f"<Node {self.kind} {self.start_line}-{self.end_line}>"


@dataclass(frozen=True, eq=False)
class ParsedTree:
    """A parsed source file: the root node plus the bytes it was built from."""

    root: Node
    source: bytes = field(repr=False)

    @cached_property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")

    @cached_property
    def lines(self) -> tuple[str, ...]:
        """Source lines split on newlines only, as the parser numbers them."""
        lines = [line.removesuffix("\r") for line in self.text.split("\n")]
        if lines[-1] == "":
            lines.pop()
        return tuple(lines)


def walk(root: Node) -> Iterator[Node]:
    """Depth-first, pre-order traversal in source order.

    Iterative so deeply nested expressions cannot hit the recursion limit.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def visit(root: Node, visitor: Callable[[Node], bool | None]) -> None:
    """Call ``visitor`` for every node in pre-order.

    Returning False from the visitor skips that node's subtree.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        if visitor(node) is False:
            continue
        stack.extend(reversed(node.children))


def find_all(root: Node, predicate: Callable[[Node], bool]) -> list[Node]:
    """All nodes matching ``predicate`` in source order."""
    return [node for node in walk(root) if predicate(node)]


def find_first(root: Node, predicate: Callable[[Node], bool]) -> Node | None:
    for node in walk(root):
        if predicate(node):
            return node
    return None


def find_kind(root: Node, *kinds: NodeKind | str) -> list[Node]:
    """All nodes of the given kinds in source order."""
    wanted = {str(getattr(k, "value", k)) for k in kinds}
    return [node for node in walk(root) if node.kind in wanted]


__all__ = [
    "Node",
    "NodeKind",
    "ParsedTree",
    "find_all",
    "find_first",
    "find_kind",
    "visit",
    "walk",
]
