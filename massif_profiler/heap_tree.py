# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Heap tree reconstruction from indented node lines.

Massif writes each snapshot's allocation tree depth-first, one node per line,
with one extra space of indentation per level:

    n2: 3000 (heap allocation functions) malloc/new/new[], --alloc-fns, etc.
     n1: 2000 0x4005BB: g (example.c:10)
      n0: 2000 0x4005E9: main (example.c:25)
     n0: 1000 0x4005D6: main (example.c:24)

Every node declares how many children follow it. A tree is rebuilt by
collecting that many children at the next indentation level, stopping early
when a line is not a node or is indented less than expected.
"""

import sys
from typing import List, Optional, Tuple

from .data_types import NODE_MARKER, HeapNode
from .node_parser import parse_heap_node_line


def _indentation(line: str) -> int:
    return len(line) - len(line.lstrip())


def _read_node(
    lines: List[str], index: int, expected_indent: int
) -> Tuple[Optional[HeapNode], int, int]:
    """
    Read the node line at index without its children.

    Returns:
        Tuple of (node, indentation, next_index). When node is None,
        next_index is index if the subtree ended here, or index + 1 if the
        line looked like a node but could not be parsed.
    """
    if index >= len(lines):
        return None, 0, index

    line = lines[index]
    stripped = line.strip()
    if not stripped.startswith(NODE_MARKER):
        return None, 0, index

    indent = _indentation(line)
    if expected_indent > 0 and indent < expected_indent:
        return None, indent, index

    node = parse_heap_node_line(stripped)
    if node is None:
        return None, indent, index + 1

    return node, indent, index + 1


def _warn_unparsable(lines: List[str], index: int) -> None:
    print(
        f"Warning: Could not parse heap tree node at line {index + 1}: {lines[index].strip()}",
        file=sys.stderr,
    )


def parse_heap_tree(
    lines: List[str], start: int, expected_indent: int = 0
) -> Tuple[Optional[HeapNode], int]:
    """
    Parse one heap tree node and its whole subtree.

    Args:
        lines: All lines of the Massif file
        start: Index of the line holding the subtree root
        expected_indent: Minimum indentation of the root line (0 = any)

    Returns:
        Tuple of (root node or None, index just past the last consumed line)
    """
    root, root_indent, cursor = _read_node(lines, start, expected_indent)
    if root is None:
        if cursor > start:
            _warn_unparsable(lines, start)
        return None, cursor

    # Open nodes still collecting children, innermost last
    stack: List[Tuple[HeapNode, int]] = [(root, root_indent)]
    warned_at = -1

    while stack:
        parent, parent_indent = stack[-1]
        if len(parent.children) >= parent.declared_child_count or cursor >= len(lines):
            stack.pop()
            continue

        child, child_indent, next_cursor = _read_node(lines, cursor, parent_indent + 1)
        if child is None:
            if next_cursor > cursor and warned_at != cursor:
                _warn_unparsable(lines, cursor)
                warned_at = cursor
            # Short child list; the line is offered to the ancestors instead
            stack.pop()
            continue

        parent.children.append(child)
        cursor = next_cursor
        stack.append((child, child_indent))

    return root, cursor
