# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
LLM-friendly text report generator for Massif profiling data.

Generates compact, markdown-formatted reports designed for LLM consumption,
following the llms.txt standard (https://llmstxt.org/).
"""

from pathlib import Path
from typing import List, Optional

from .analyzer import (
    compute_memory_statistics,
    detailed_snapshots,
    find_peak_snapshot,
    select_tree_snapshot,
    top_allocation_sites,
    walk_heap_tree,
)
from .data_types import HeapNode, MassifData

MAX_TIMELINE_ROWS = 50


def format_bytes(size_bytes: int) -> str:
    """Format a byte count as B, KB or MB."""
    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes} B"


def describe_node(node: HeapNode) -> str:
    """One-line label for a heap tree node."""
    if node.is_aggregate:
        return node.function
    label = node.function or "???"
    if node.file_info:
        label = f"{label} ({node.file_info})"
    if node.address:
        label = f"{node.address}: {label}"
    return label


class MassifTextFormatter:
    """Generate LLM-friendly text reports from parsed Massif data"""

    def __init__(self, data: MassifData, name: Optional[str] = None, max_depth: int = 6):
        """
        Initialize formatter with parsed Massif data.

        Args:
            data: Parsed Massif file
            name: Report title. Defaults to the profiled command.
            max_depth: Deepest heap tree level listed in the allocation tree
        """
        self.data = data
        self.name = name or data.cmd or "massif"
        self.max_depth = max_depth
        self.time_unit = data.time_unit or "i"

    def generate_report(self, output_file: Optional[Path] = None) -> str:
        """
        Generate LLM-friendly text report.

        Args:
            output_file: Optional output file path. If provided, writes report to file.

        Returns:
            The generated report as a string
        """
        if not self.data.snapshots:
            report = f"# Memory Profile: {self.name}\n\n> No snapshots recorded.\n"
            if output_file:
                Path(output_file).write_text(report)
            return report

        sections = [
            self._format_header(),
            self._format_configuration(),
            self._format_peak_table(),
            self._format_timeline_table(),
            self._format_top_sites_table(n=10),
            self._format_allocation_tree(),
        ]

        report = "\n".join(s for s in sections if s)

        if output_file:
            Path(output_file).write_text(report)

        return report

    def _format_header(self) -> str:
        """Format H1 title and blockquote summary"""
        _, peak_total, _ = find_peak_snapshot(self.data)
        stats = compute_memory_statistics(self.data)

        parts = [
            f"Peak: {format_bytes(peak_total)}",
            f"Snapshots: {stats['count']:,}",
            f"Detailed: {len(detailed_snapshots(self.data)):,}",
        ]
        summary = " | ".join(parts)

        return f"# Memory Profile: {self.name}\n\n> {summary}\n"

    def _format_configuration(self) -> str:
        """Format configuration section"""
        lines = ["## Configuration"]
        if self.data.cmd:
            lines.append(f"- Command: `{self.data.cmd}`")
        if self.data.desc:
            lines.append(f"- Options: {self.data.desc}")
        lines.append(f"- Time unit: {self.time_unit}")
        return "\n".join(lines) + "\n"

    def _format_peak_table(self) -> str:
        """Format peak snapshot as markdown table"""
        _, _, peak = find_peak_snapshot(self.data)
        if peak is None:
            return ""

        lines = ["## Peak Snapshot"]
        lines.append(f"| Snapshot | Time ({self.time_unit}) | Heap | Extra | Stacks | Total |")
        lines.append("|----------|------|------|-------|--------|-------|")
        lines.append(
            f"| {peak.snapshot_num} | {peak.time:,} | {format_bytes(peak.mem_heap_bytes)} | "
            f"{format_bytes(peak.mem_heap_extra_bytes)} | {format_bytes(peak.mem_stack_bytes)} | "
            f"{format_bytes(peak.total_bytes)} |"
        )
        return "\n".join(lines) + "\n"

    def _format_timeline_table(self) -> str:
        """Format memory usage over time as markdown table"""
        lines = ["## Snapshots"]
        lines.append(f"| # | Time ({self.time_unit}) | Heap | Extra | Stacks | Tree |")
        lines.append("|---|------|------|-------|--------|------|")

        for snapshot in self.data.snapshots[:MAX_TIMELINE_ROWS]:
            if snapshot.is_peak:
                tree = "peak"
            elif snapshot.heap_tree is not None:
                tree = "detailed"
            else:
                tree = "-"
            lines.append(
                f"| {snapshot.snapshot_num} | {snapshot.time:,} | "
                f"{format_bytes(snapshot.mem_heap_bytes)} | "
                f"{format_bytes(snapshot.mem_heap_extra_bytes)} | "
                f"{format_bytes(snapshot.mem_stack_bytes)} | {tree} |"
            )

        remaining = len(self.data.snapshots) - MAX_TIMELINE_ROWS
        if remaining > 0:
            lines.append(f"\n*... and {remaining} more snapshots*")

        return "\n".join(lines) + "\n"

    def _format_top_sites_table(self, n: int = 10) -> str:
        """Format top allocation sites as markdown table"""
        snapshot = select_tree_snapshot(self.data)
        sites = top_allocation_sites(snapshot, n=n)
        if not sites:
            return ""

        root_bytes = snapshot.heap_tree.bytes
        lines = [f"## Top Allocation Sites (snapshot {snapshot.snapshot_num})"]
        lines.append("| Rank | Site | Size | Share |")
        lines.append("|------|------|------|-------|")

        for rank, node in enumerate(sites, 1):
            share = (node.bytes / root_bytes * 100) if root_bytes > 0 else 0
            lines.append(
                f"| {rank} | {describe_node(node)} | {format_bytes(node.bytes)} | {share:.1f}% |"
            )

        return "\n".join(lines) + "\n"

    def _format_allocation_tree(self) -> str:
        """Format the representative heap tree as an indented list"""
        snapshot = select_tree_snapshot(self.data)
        if snapshot is None:
            return ""

        lines: List[str] = [f"## Allocation Tree (snapshot {snapshot.snapshot_num})"]
        for depth, node in walk_heap_tree(snapshot.heap_tree, max_depth=self.max_depth):
            indent = "  " * depth
            lines.append(f"{indent}- {format_bytes(node.bytes)} {describe_node(node)}")

        return "\n".join(lines) + "\n"
