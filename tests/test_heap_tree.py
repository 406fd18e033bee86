# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

from massif_profiler.analyzer import walk_heap_tree
from massif_profiler.heap_tree import parse_heap_tree


def _lines(text):
    return text.split("\n")


def test_nested_tree():
    lines = _lines(
        "n2: 3000 (heap allocation functions) malloc/new/new[], --alloc-fns, etc.\n"
        " n1: 2000 0x4005BB: g (example.c:10)\n"
        "  n0: 2000 0x4005E9: main (example.c:25)\n"
        " n0: 1000 0x4005D6: main (example.c:24)\n"
        "#-----------"
    )
    root, cursor = parse_heap_tree(lines, 0)

    assert cursor == 4
    assert root.bytes == 3000
    assert [c.function for c in root.children] == ["g", "main"]
    assert root.children[0].children[0].file_info == "example.c:25"
    assert root.children[1].children == []


def test_short_child_list_stops_at_dedent():
    lines = _lines(
        "n2: 150 0x1: root (a.c:1)\n"
        " n3: 100 0x2: mid (a.c:2)\n"
        "  n0: 60 0x3: a (a.c:3)\n"
        "  n0: 40 0x4: b (a.c:4)\n"
        " n0: 50 0x5: c (a.c:5)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    mid = root.children[0]
    assert mid.declared_child_count == 3
    assert [c.function for c in mid.children] == ["a", "b"]
    # The dedented line went back up to the root
    assert [c.function for c in root.children] == ["mid", "c"]
    assert cursor == 5


def test_truncated_input():
    lines = _lines(
        "n3: 100 0x1: root (a.c:1)\n"
        " n0: 60 0x3: a (a.c:3)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    assert len(root.children) == 1
    assert cursor == 2


def test_child_count_is_not_exceeded():
    lines = _lines(
        "n1: 100 0x1: root (a.c:1)\n"
        " n0: 60 0x2: a (a.c:2)\n"
        " n0: 40 0x3: b (a.c:3)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    assert [c.function for c in root.children] == ["a"]
    assert cursor == 2


def test_sibling_at_same_depth_is_not_a_child():
    lines = _lines(
        "n1: 100 0x1: root (a.c:1)\n"
        " n1: 60 0x2: a (a.c:2)\n"
        " n0: 40 0x3: b (a.c:3)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    a = root.children[0]
    assert a.children == []
    assert cursor == 2


def test_non_node_line_ends_subtree():
    lines = _lines(
        "n2: 100 0x1: root (a.c:1)\n"
        " n0: 60 0x2: a (a.c:2)\n"
        "#-----------\n"
        " n0: 40 0x3: b (a.c:3)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    assert len(root.children) == 1
    assert cursor == 2


def test_not_a_node_leaves_cursor():
    root, cursor = parse_heap_tree(["#-----------"], 0)
    assert root is None
    assert cursor == 0


def test_past_end():
    root, cursor = parse_heap_tree(["n0: 1 0x1: f"], 1)
    assert root is None
    assert cursor == 1


def test_unparsable_root_is_skipped(capsys):
    root, cursor = parse_heap_tree(["nX: 10 0x1: f (a.c:1)", "n0: 1 0x1: g"], 0)

    assert root is None
    assert cursor == 1
    assert "Warning: Could not parse heap tree node at line 1" in capsys.readouterr().err


def test_unparsable_child_ends_collection_once(capsys):
    lines = _lines(
        "n1: 100 0x1: root (a.c:1)\n"
        " n1: 100 0x2: mid (a.c:2)\n"
        "  nX: garbage\n"
        "  n0: 40 0x3: b (a.c:3)"
    )
    root, cursor = parse_heap_tree(lines, 0)

    assert root.children[0].children == []
    # The broken line is not consumed by the tree
    assert cursor == 2
    assert capsys.readouterr().err.count("Warning:") == 1


def test_expected_indent_applies_to_start_line():
    lines = ["n0: 10 0x1: f (a.c:1)"]
    root, cursor = parse_heap_tree(lines, 0, expected_indent=2)
    assert root is None
    assert cursor == 0


def test_deep_tree_does_not_recurse():
    depth = 5000
    lines = [" " * d + f"n1: 8 0x{d:x}: f{d} (deep.c:{d})" for d in range(depth)]
    lines.append(" " * depth + "n0: 8 0x0: leaf (deep.c:0)")

    root, cursor = parse_heap_tree(lines, 0)

    assert cursor == depth + 1
    nodes = list(walk_heap_tree(root))
    assert len(nodes) == depth + 1
    assert nodes[-1][0] == depth
    assert nodes[-1][1].function == "leaf"


def test_tab_indentation():
    lines = ["n1: 10 0x1: root", "\tn0: 10 0x2: child"]
    root, cursor = parse_heap_tree(lines, 0)
    assert [c.function for c in root.children] == ["child"]
    assert cursor == 2
