# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""Data types and line prefixes for parsed Massif output."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

# Top-level header prefixes
DESC_PREFIX = "desc:"
CMD_PREFIX = "cmd:"
TIME_UNIT_PREFIX = "time_unit:"

# Snapshot block lines
SNAPSHOT_PREFIX = "snapshot="
COMMENT_PREFIX = "#"
TIME_PREFIX = "time="
MEM_HEAP_PREFIX = "mem_heap_B="
MEM_HEAP_EXTRA_PREFIX = "mem_heap_extra_B="
MEM_STACKS_PREFIX = "mem_stacks_B="

HEAP_TREE_DETAILED = "heap_tree=detailed"
HEAP_TREE_PEAK = "heap_tree=peak"
HEAP_TREE_EMPTY = "heap_tree=empty"

NODE_MARKER = "n"
AGGREGATE_MARKER = "in "

UINT32_MAX = 2**32 - 1
UINT64_MAX = 2**64 - 1


@dataclass
class HeapNode:
    """One allocation call site in a snapshot's heap tree."""
    declared_child_count: int
    bytes: int
    address: str
    function: str
    file_info: Optional[str] = None
    children: List["HeapNode"] = field(default_factory=list)

    @property
    def is_aggregate(self) -> bool:
        # "N places, all below massif's threshold" nodes carry no breakdown
        return self.address == "" and self.file_info is None

    def _fields_dict(self) -> Dict[str, Any]:
        return {
            "declared_child_count": self.declared_child_count,
            "bytes": self.bytes,
            "address": self.address,
            "function": self.function,
            "file_info": self.file_info,
            "children": [],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the subtree to nested dicts without recursing per level."""
        result = self._fields_dict()
        stack = [(self, result)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = child._fields_dict()
                out["children"].append(child_out)
                stack.append((child, child_out))
        return result


@dataclass
class Snapshot:
    """Memory measurement taken at one point in time."""
    snapshot_num: int
    time: int = 0
    mem_heap_bytes: int = 0
    mem_heap_extra_bytes: int = 0
    mem_stack_bytes: int = 0
    heap_tree: Optional[HeapNode] = None
    is_peak: bool = False

    @property
    def total_bytes(self) -> int:
        return self.mem_heap_bytes + self.mem_heap_extra_bytes + self.mem_stack_bytes

    def to_dict(self) -> Dict[str, Any]:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["heap_tree"] = self.heap_tree.to_dict() if self.heap_tree is not None else None
        return result


@dataclass
class MassifData:
    """Parsed contents of one Massif output file."""
    desc: str = ""
    cmd: str = ""
    time_unit: str = ""
    snapshots: List[Snapshot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "desc": self.desc,
            "cmd": self.cmd,
            "time_unit": self.time_unit,
            "snapshots": [s.to_dict() for s in self.snapshots],
        }
