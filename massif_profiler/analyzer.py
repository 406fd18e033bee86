# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Memory usage analysis for parsed Massif data.

Utilities used by the text report and the CLI:
- Peak snapshot detection
- Summary statistics over all snapshots
- Heap tree traversal and top allocation sites
"""

from typing import Dict, Iterator, List, Optional, Tuple

from .data_types import HeapNode, MassifData, Snapshot


def find_peak_snapshot(data: MassifData) -> Tuple[int, int, Optional[Snapshot]]:
    """
    Find the snapshot with peak total memory usage.

    Ties go to the earliest snapshot.

    Returns:
        Tuple of (index, peak_total_bytes, snapshot), or (-1, 0, None) if
        there are no snapshots
    """
    peak_idx = -1
    peak_val = 0

    for i, snapshot in enumerate(data.snapshots):
        if peak_idx < 0 or snapshot.total_bytes > peak_val:
            peak_val = snapshot.total_bytes
            peak_idx = i

    if peak_idx >= 0:
        return peak_idx, peak_val, data.snapshots[peak_idx]
    return -1, 0, None


def compute_memory_statistics(data: MassifData) -> Dict:
    """
    Compute basic statistics of total memory usage across all snapshots.

    Returns:
        Dictionary with count, min, max, mean and median of total bytes,
        plus the highest heap and stack usage seen
    """
    totals = [s.total_bytes for s in data.snapshots]
    if not totals:
        return {
            "count": 0,
            "min": 0,
            "max": 0,
            "mean": 0.0,
            "median": 0.0,
            "peak_heap_bytes": 0,
            "peak_stack_bytes": 0,
        }

    ordered = sorted(totals)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        median = float(ordered[mid])
    else:
        median = (ordered[mid - 1] + ordered[mid]) / 2

    return {
        "count": len(totals),
        "min": ordered[0],
        "max": ordered[-1],
        "mean": sum(totals) / len(totals),
        "median": median,
        "peak_heap_bytes": max(s.mem_heap_bytes for s in data.snapshots),
        "peak_stack_bytes": max(s.mem_stack_bytes for s in data.snapshots),
    }


def walk_heap_tree(
    root: Optional[HeapNode], max_depth: Optional[int] = None
) -> Iterator[Tuple[int, HeapNode]]:
    """
    Yield (depth, node) pairs of a heap tree in pre-order.

    Args:
        root: Root node, or None for an empty walk
        max_depth: Deepest level to visit (root is 0); None walks everything
    """
    if root is None:
        return

    stack = [(0, root)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        if max_depth is not None and depth >= max_depth:
            continue
        for child in reversed(node.children):
            stack.append((depth + 1, child))


def detailed_snapshots(data: MassifData) -> List[Snapshot]:
    """Get snapshots that carry a heap tree."""
    return [s for s in data.snapshots if s.heap_tree is not None]


def top_allocation_sites(snapshot: Optional[Snapshot], n: int = 10) -> List[HeapNode]:
    """
    Get the top N allocation sites directly below the heap tree root.

    Returns:
        Child nodes of the root sorted by bytes, largest first
    """
    if snapshot is None or snapshot.heap_tree is None:
        return []

    sites = sorted(snapshot.heap_tree.children, key=lambda node: node.bytes, reverse=True)
    return sites[:n]


def select_tree_snapshot(data: MassifData) -> Optional[Snapshot]:
    """
    Pick the snapshot whose heap tree best represents the run.

    Prefers the snapshot Massif marked as peak, then the detailed snapshot
    with the highest total, falling back to None when no tree was recorded.
    """
    trees = detailed_snapshots(data)
    if not trees:
        return None

    for snapshot in trees:
        if snapshot.is_peak:
            return snapshot

    return max(trees, key=lambda s: s.total_bytes)
