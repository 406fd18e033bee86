# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Parser for single heap tree node lines.

Expected formats:
    n2: 1024 0x4C2DB8F: malloc (vg_replace_malloc.c:299)
    n0: 512 in 3 places, all below massif's threshold (1.00%)
"""

import re
from typing import Optional, Tuple

from .data_types import AGGREGATE_MARKER, NODE_MARKER, UINT32_MAX, UINT64_MAX, HeapNode

UINT_RE = re.compile(r"\+?[0-9]+")


def parse_uint(text: str, max_value: int = UINT64_MAX) -> Optional[int]:
    """
    Parse an unsigned decimal integer.

    Only ASCII digits (with an optional leading '+') are accepted, and the
    value must not exceed max_value.

    Returns:
        The parsed value, or None if the text is not a valid unsigned integer
    """
    if not UINT_RE.fullmatch(text):
        return None
    value = int(text)
    if value > max_value:
        return None
    return value


def parse_uint_or_zero(text: str, max_value: int = UINT64_MAX) -> int:
    """Parse an unsigned integer, falling back to 0."""
    value = parse_uint(text, max_value)
    return value if value is not None else 0


def parse_heap_node_line(line: str) -> Optional[HeapNode]:
    """
    Parse one trimmed heap tree node line into a HeapNode without children.

    Only an unparsable child count invalidates the line. A bad byte count
    becomes 0, and a description that does not match the detailed form is
    kept whole as the function name.

    Args:
        line: Node line with surrounding whitespace removed

    Returns:
        HeapNode, or None if the line is not a valid node line
    """
    if not line.startswith(NODE_MARKER):
        return None

    colon_pos = line.find(":")
    if colon_pos < 0:
        return None

    num_children = parse_uint(line[len(NODE_MARKER):colon_pos], UINT32_MAX)
    if num_children is None:
        return None

    rest = line[colon_pos + 1 :].strip()
    parts = rest.split(" ", 1)
    node_bytes = parse_uint_or_zero(parts[0])

    if len(parts) == 1:
        return HeapNode(
            declared_child_count=num_children,
            bytes=node_bytes,
            address="",
            function="",
        )

    description = parts[1]

    # "in N places, all below massif's threshold" keeps the whole remainder
    if description.startswith(AGGREGATE_MARKER):
        return HeapNode(
            declared_child_count=num_children,
            bytes=node_bytes,
            address="",
            function=rest,
        )

    address, function, file_info = split_description(description)
    return HeapNode(
        declared_child_count=num_children,
        bytes=node_bytes,
        address=address,
        function=function,
        file_info=file_info,
    )


def split_description(description: str) -> Tuple[str, str, Optional[str]]:
    """
    Split '<address>: <function> (<file_info>)' into its three parts.

    Returns:
        Tuple of (address, function, file_info); file_info may be None
    """
    addr_end = description.find(": ")
    if addr_end < 0:
        return "", description, None

    address = description[:addr_end].strip()
    func_part = description[addr_end + 2 :]

    # File info is the last parenthesized group running to the end of the line
    if func_part.endswith(")"):
        paren_start = func_part.rfind(" (")
        if paren_start >= 0:
            return address, func_part[:paren_start], func_part[paren_start + 2 : -1]

    return address, func_part, None
