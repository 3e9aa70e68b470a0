"""PHP parser adapter backed by tree-sitter.

tree-sitter always produces a tree, recovering from bad input with ERROR
and MISSING nodes. The adapter turns such a tree into a ``ParseError`` that
names the first offending location so callers see the same contract as a
conventional parser: a clean tree or a located failure.
"""

import threading

import tree_sitter_php as tsphp
from tree_sitter import Language, Parser

from ..exceptions import ParseError
from .nodes import Node, ParsedTree, find_first

# Longest snippet quoted in an "unexpected" message
SNIPPET_LENGTH = 30


class PhpParser:
    """Converts PHP source into an immutable ``ParsedTree``.

    tree-sitter parsers are not safe to share between threads, so one is
    created lazily per thread.
    """

    def __init__(self) -> None:
        self._language = Language(tsphp.language_php())
        self._local = threading.local()

    def _parser(self) -> Parser:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = Parser(self._language)
            self._local.parser = parser
        return parser

    def parse(self, content: bytes | str) -> ParsedTree:
        """Parse PHP source.

        Args:
            content: Source text or UTF-8 bytes

        Returns:
            ParsedTree rooted at the program node

        Raises:
            ParseError: If the source contains syntax errors.
        """
        source = content.encode("utf-8") if isinstance(content, str) else content
        ts_tree = self._parser().parse(source)
        root = _convert(ts_tree, source)

        if ts_tree.root_node.has_error:
            raise _parse_error(root, source)

        return ParsedTree(root=root, source=source)


def _convert(ts_tree, source: bytes) -> Node:
    """Copy a tree-sitter tree into frozen ``Node`` records.

    Anonymous tokens (punctuation, keywords) are dropped unless they are
    MISSING placeholders. Iterative so deep trees cannot overflow the stack.
    """
    cursor = ts_tree.walk()
    # frame: [ts_node, field_name, children, field_names]
    stack: list[list] = [[cursor.node, None, [], []]]

    while True:
        if cursor.goto_first_child():
            stack.append([cursor.node, cursor.field_name, [], []])
            continue

        while True:
            ts_node, field_name, children, fields = stack.pop()
            node = Node(
                kind=ts_node.type,
                start_byte=ts_node.start_byte,
                end_byte=ts_node.end_byte,
                start_line=ts_node.start_point[0] + 1,
                end_line=ts_node.end_point[0] + 1,
                children=tuple(children),
                fields=tuple(fields),
                is_error=ts_node.is_error,
                is_missing=ts_node.is_missing,
                source=source,
            )
            if not stack:
                return node

            if ts_node.is_named or ts_node.is_missing:
                stack[-1][2].append(node)
                stack[-1][3].append(field_name)

            if cursor.goto_next_sibling():
                stack.append([cursor.node, cursor.field_name, [], []])
                break
            cursor.goto_parent()


def _parse_error(root: Node, source: bytes) -> ParseError:
    bad = find_first(root, lambda n: n.is_missing or n.is_error)
    if bad is None:
        return ParseError("Syntax error", line=1)

    line = bad.start_line
    if bad.is_missing:
        return ParseError(f"Syntax error, missing '{bad.kind}' on line {line}", line)

    text = bad.text.strip()
    if _runs_to_end(bad, source):
        if text.startswith("/*"):
            return ParseError(
                f"Syntax error, unterminated comment starting on line {line}", line
            )
        if text[:1] in ("'", '"', "`") or text.startswith("<<<"):
            return ParseError(
                f"Syntax error, unterminated string starting on line {line}", line
            )

    snippet = text.splitlines()[0] if text else "end of file"
    if len(snippet) > SNIPPET_LENGTH:
        snippet = snippet[:SNIPPET_LENGTH] + "..."
    return ParseError(f"Syntax error, unexpected '{snippet}' on line {line}", line)


def _runs_to_end(node: Node, source: bytes) -> bool:
    return node.end_byte >= len(source.rstrip())


__all__ = ["PhpParser"]
