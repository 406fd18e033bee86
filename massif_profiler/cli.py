# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Command line viewer for Massif heap profiler output.

  massif-view massif.out.1234                   # Summary + peak heap tree
  massif-view massif.out.1234 --snapshot 12     # Heap tree of one snapshot
  massif-view massif.out.1234 --json out.json   # JSON export
  massif-view massif.out.1234 --llm -o report.md
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .analyzer import compute_memory_statistics, find_peak_snapshot, select_tree_snapshot
from .data_types import HeapNode, MassifData, Snapshot
from .parser import MassifReadError, parse_massif_file, save_parsed_massif
from .text_formatter import MassifTextFormatter, describe_node, format_bytes

DEFAULT_DEPTH = 6
DEFAULT_THRESHOLD = 1.0


def _env_number(name: str, default, cast):
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        print(f"Warning: Ignoring invalid {name}={value!r}, using {default}", file=sys.stderr)
        return default


def get_default_depth() -> int:
    """Tree depth shown by default; MASSIF_VIEW_DEPTH overrides it."""
    return _env_number("MASSIF_VIEW_DEPTH", DEFAULT_DEPTH, int)


def get_default_threshold() -> float:
    """Percent of the tree root below which nodes are hidden; MASSIF_VIEW_THRESHOLD overrides it."""
    return _env_number("MASSIF_VIEW_THRESHOLD", DEFAULT_THRESHOLD, float)


def build_rich_tree(node: HeapNode, max_depth: int, threshold: float) -> Tree:
    """
    Build a rich Tree for a heap tree.

    Args:
        node: Heap tree root
        max_depth: Deepest level to include (root is level 0)
        threshold: Hide nodes smaller than this percentage of the root
    """
    root_bytes = node.bytes
    min_bytes = root_bytes * threshold / 100

    def node_label(n: HeapNode) -> str:
        share = (n.bytes / root_bytes * 100) if root_bytes > 0 else 0
        text = escape(describe_node(n))
        style = "dim" if n.is_aggregate else "bold"
        return f"[cyan]{format_bytes(n.bytes)}[/cyan] [dim]({share:.1f}%)[/dim] [{style}]{text}[/{style}]"

    tree = Tree(node_label(node))
    stack = [(tree, node, 0)]
    while stack:
        branch, current, depth = stack.pop()
        if depth >= max_depth:
            continue

        shown = [c for c in current.children if c.bytes >= min_bytes]
        hidden = len(current.children) - len(shown)
        sub_branches = [(branch.add(node_label(c)), c) for c in shown]
        if hidden:
            branch.add(f"[dim]{hidden} node(s) below {threshold:g}% threshold[/dim]")
        for sub_branch, child in reversed(sub_branches):
            stack.append((sub_branch, child, depth + 1))

    return tree


def build_snapshot_table(data: MassifData) -> Table:
    """Build a rich Table with one row per snapshot."""
    peak_idx, _, _ = find_peak_snapshot(data)
    time_unit = data.time_unit or "i"

    table = Table(title="Snapshots", border_style="cyan")
    table.add_column("#", justify="right")
    table.add_column(f"Time ({time_unit})", justify="right")
    table.add_column("Heap", justify="right")
    table.add_column("Extra", justify="right")
    table.add_column("Stacks", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Tree")

    for i, snapshot in enumerate(data.snapshots):
        if snapshot.is_peak:
            tree = "peak"
        elif snapshot.heap_tree is not None:
            tree = "detailed"
        else:
            tree = ""
        table.add_row(
            str(snapshot.snapshot_num),
            f"{snapshot.time:,}",
            format_bytes(snapshot.mem_heap_bytes),
            format_bytes(snapshot.mem_heap_extra_bytes),
            format_bytes(snapshot.mem_stack_bytes),
            format_bytes(snapshot.total_bytes),
            tree,
            style="bold yellow" if i == peak_idx else None,
        )

    return table


def display_summary(console: Console, data: MassifData, path: Path) -> None:
    """Display the header panel and snapshot table."""
    stats = compute_memory_statistics(data)
    _, peak_total, _ = find_peak_snapshot(data)

    summary = (
        f"[bold]Command:[/bold] {escape(data.cmd) or 'N/A'}\n"
        f"[bold]Options:[/bold] {escape(data.desc) or 'N/A'}\n"
        f"[bold]Time unit:[/bold] {escape(data.time_unit) or 'N/A'}\n"
        f"[bold]Snapshots:[/bold] {stats['count']:,}    "
        f"[bold]Peak:[/bold] {format_bytes(peak_total)}    "
        f"[bold]Mean:[/bold] {format_bytes(int(stats['mean']))}"
    )
    console.print(Panel(summary, title=f"[bold]{path.name}[/bold]", border_style="cyan", padding=(1, 2)))

    if data.snapshots:
        console.print(build_snapshot_table(data))


def display_heap_tree(
    console: Console, snapshot: Optional[Snapshot], max_depth: int, threshold: float
) -> None:
    """Display the heap tree of a snapshot."""
    if snapshot is None or snapshot.heap_tree is None:
        console.print("[yellow]No detailed heap tree recorded.[/yellow]")
        return

    title = f"Heap tree of snapshot {snapshot.snapshot_num}"
    if snapshot.is_peak:
        title += " (peak)"
    console.print()
    console.print(f"[bold]{title}[/bold]")
    console.print(build_rich_tree(snapshot.heap_tree, max_depth, threshold))


def export_json(data: MassifData, output: str) -> int:
    """Write JSON to a file, or to stdout when output is '-'."""
    try:
        if output == "-":
            print(json.dumps(data.to_dict(), indent=2))
            return 0
        save_parsed_massif(data, output)
    except RecursionError:
        print("Error: Heap tree is too deep to export as JSON", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error writing JSON output: {e}", file=sys.stderr)
        return 1
    print(f"Parsed data written to: {output}", file=sys.stderr)
    return 0


def generate_llm_report(data: MassifData, name: str, output_file: Optional[Path], max_depth: int) -> int:
    """
    Generate LLM-friendly text report.

    Returns:
        0 on success, 1 on failure
    """
    formatter = MassifTextFormatter(data, name=name, max_depth=max_depth)
    try:
        report = formatter.generate_report(output_file=output_file)
    except OSError as e:
        print(f"Error writing LLM report: {e}", file=sys.stderr)
        return 1

    if output_file:
        print(f"LLM report written to: {output_file}", file=sys.stderr)
    else:
        print(report)
    return 0


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Massif viewer - inspect heap profiler snapshots in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summary table and heap tree of the peak snapshot
  massif-view massif.out.1234

  # Heap tree of the snapshot at position 12
  massif-view massif.out.1234 --snapshot 12

  # JSON export (use - for stdout)
  massif-view massif.out.1234 --json massif.json

  # LLM-friendly text report
  massif-view massif.out.1234 --llm -o report.md

Environment:
  MASSIF_VIEW_DEPTH       default for --depth
  MASSIF_VIEW_THRESHOLD   default for --threshold
        """,
    )
    parser.add_argument("massif_file", metavar="MASSIF_FILE", help="Massif output file")
    parser.add_argument(
        "--snapshot",
        type=int,
        metavar="INDEX",
        help="Show the heap tree of the snapshot at this position (default: peak)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help=f"Maximum heap tree depth to show (default: {DEFAULT_DEPTH})",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        metavar="PCT",
        help=f"Hide tree nodes below this percentage of the root (default: {DEFAULT_THRESHOLD})",
    )
    parser.add_argument(
        "--json",
        metavar="FILE",
        help="Write parsed data as JSON to FILE ('-' for stdout)",
    )
    parser.add_argument(
        "--llm",
        action="store_true",
        help="Output LLM-friendly text report instead of terminal view",
    )
    parser.add_argument(
        "-o", "--output-file",
        metavar="FILE",
        help="Write LLM report to file instead of stdout (use with --llm)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for the massif-view CLI."""
    args = parse_args(argv)
    massif_path = Path(args.massif_file)
    max_depth = args.depth if args.depth is not None else get_default_depth()
    threshold = args.threshold if args.threshold is not None else get_default_threshold()

    try:
        data = parse_massif_file(massif_path)
    except MassifReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        return export_json(data, args.json)

    if args.llm:
        output_file = Path(args.output_file) if args.output_file else None
        return generate_llm_report(data, massif_path.name, output_file, max_depth)

    if args.snapshot is not None:
        if not 0 <= args.snapshot < len(data.snapshots):
            print(
                f"Error: Snapshot index {args.snapshot} out of range ({len(data.snapshots)} snapshots)",
                file=sys.stderr,
            )
            return 1
        snapshot = data.snapshots[args.snapshot]
    else:
        snapshot = select_tree_snapshot(data)

    console = Console()
    display_summary(console, data, massif_path)
    display_heap_tree(console, snapshot, max_depth, threshold)
    return 0


if __name__ == "__main__":
    sys.exit(main())
