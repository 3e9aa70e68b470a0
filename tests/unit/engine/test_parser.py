"""Tests for the tree-sitter parser adapter and tree traversal."""

import pytest

from php_review.engine.nodes import (
    Node,
    NodeKind,
    find_all,
    find_first,
    find_kind,
    visit,
    walk,
)
from php_review.engine.parser import PhpParser
from php_review.exceptions import ParseError

SAMPLE = """<?php

namespace App\\Services;

class UserService
{
    public function isActive(): bool
    {
        return true;
    }

    private static function load($id)
    {
        return $id;
    }
}
"""


@pytest.fixture(scope="module")
def parser() -> PhpParser:
    return PhpParser()


class TestPhpParser:
    """Test parsing valid and invalid PHP."""

    def test_root_is_program(self, parser):
        tree = parser.parse(SAMPLE)
        assert tree.root.kind == NodeKind.PROGRAM.value
        assert tree.root.start_line == 1

    def test_accepts_bytes(self, parser):
        tree = parser.parse(SAMPLE.encode("utf-8"))
        assert tree.source == SAMPLE.encode("utf-8")

    def test_finds_declarations(self, parser):
        tree = parser.parse(SAMPLE)
        classes = find_kind(tree.root, NodeKind.CLASS_DECLARATION)
        methods = find_kind(tree.root, NodeKind.METHOD_DECLARATION)
        assert [c.field_text("name") for c in classes] == ["UserService"]
        assert [m.field_text("name") for m in methods] == ["isActive", "load"]

    def test_lines_are_one_based(self, parser):
        tree = parser.parse(SAMPLE)
        cls = find_kind(tree.root, NodeKind.CLASS_DECLARATION)[0]
        assert cls.start_line == 5
        assert cls.end_line == 16

    def test_node_text_slices_source(self, parser):
        tree = parser.parse(SAMPLE)
        method = find_kind(tree.root, NodeKind.METHOD_DECLARATION)[0]
        assert method.text.startswith("public function isActive")
        assert method.field_text("return_type") == "bool"

    def test_tree_lines(self, parser):
        tree = parser.parse(SAMPLE)
        assert tree.lines[0] == "<?php"
        assert tree.lines[2] == "namespace App\\Services;"

    def test_tree_lines_split_on_newlines_only(self, parser):
        tree = parser.parse("<?php\r\n$a = 'x\u2028y';\r\n$b = 1;\n")
        assert tree.lines == ("<?php", "$a = 'x\u2028y';", "$b = 1;")

    def test_tree_lines_keep_trailing_blank_line(self, parser):
        assert parser.parse("<?php\n\n").lines == ("<?php", "")

    def test_empty_source(self, parser):
        tree = parser.parse("")
        assert tree.root.kind == "program"
        assert tree.root.children == ()

    def test_syntax_error_raises_parse_error(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse("<?php\nclass {\n  function (\n")
        assert str(exc_info.value).startswith("Syntax error")
        assert exc_info.value.line >= 1

    def test_parse_error_line_points_into_file(self, parser):
        source = "<?php\n\n$ok = 1;\n\n$broken = ;\n"
        with pytest.raises(ParseError) as exc_info:
            parser.parse(source)
        assert 1 <= exc_info.value.line <= 5

    def test_deeply_nested_source(self, parser):
        expression = "(" * 400 + "1" + ")" * 400
        tree = parser.parse(f"<?php\n$x = {expression};\n")
        assert len(find_kind(tree.root, NodeKind.INTEGER)) == 1


def _leaf(kind: str, start: int, end: int) -> Node:
    return Node(kind=kind, start_byte=start, end_byte=end, start_line=1, end_line=1)


class TestTraversal:
    """Test traversal helpers on hand-built trees."""

    @pytest.fixture
    def root(self) -> Node:
        left = Node(
            kind="left",
            start_byte=0,
            end_byte=2,
            start_line=1,
            end_line=1,
            children=(_leaf("a", 0, 1), _leaf("b", 1, 2)),
            fields=("first", None),
        )
        right = _leaf("c", 2, 3)
        return Node(
            kind="program",
            start_byte=0,
            end_byte=3,
            start_line=1,
            end_line=1,
            children=(left, right),
            fields=(None, "tail"),
            source=b"abc",
        )

    def test_walk_is_preorder(self, root):
        assert [n.kind for n in walk(root)] == ["program", "left", "a", "b", "c"]

    def test_visit_can_skip_subtree(self, root):
        seen = []

        def visitor(node):
            seen.append(node.kind)
            return node.kind != "left"

        visit(root, visitor)
        assert seen == ["program", "left", "c"]

    def test_find_helpers(self, root):
        assert [n.kind for n in find_all(root, lambda n: not n.children)] == [
            "a",
            "b",
            "c",
        ]
        assert find_first(root, lambda n: n.kind == "b").kind == "b"
        assert find_first(root, lambda n: n.kind == "zzz") is None
        assert [n.kind for n in find_kind(root, "a", "c")] == ["a", "c"]

    def test_field_access(self, root):
        left = root.children[0]
        assert left.child_by_field("first").kind == "a"
        assert left.child_by_field("missing") is None
        assert root.child_by_field("tail").kind == "c"
        assert root.children_by_field("tail") == [root.children[1]]

    def test_is_kind_accepts_enum_and_str(self):
        node = _leaf(NodeKind.INTEGER.value, 0, 1)
        assert node.is_kind(NodeKind.INTEGER)
        assert node.is_kind("integer")
        assert not node.is_kind(NodeKind.NAME)

    def test_nodes_are_frozen(self, root):
        with pytest.raises(AttributeError):
            root.kind = "other"
