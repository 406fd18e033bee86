# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Main parser for Massif heap profiler output files.

A Massif file is a short header followed by snapshot blocks:

    desc: --time-unit=ms
    cmd: ./example
    time_unit: ms
    #-----------
    snapshot=0
    #-----------
    time=0
    mem_heap_B=0
    mem_heap_extra_B=0
    mem_stacks_B=0
    heap_tree=empty
    #-----------
    snapshot=1
    ...

Parsing is best-effort: numbers that cannot be read become 0 and broken heap
tree lines cost at most their own subtree. Only failing to read the file is
an error.
"""

import json
from pathlib import Path
from typing import List, Tuple, Union

from .data_types import (
    CMD_PREFIX,
    COMMENT_PREFIX,
    DESC_PREFIX,
    HEAP_TREE_DETAILED,
    HEAP_TREE_EMPTY,
    HEAP_TREE_PEAK,
    MEM_HEAP_EXTRA_PREFIX,
    MEM_HEAP_PREFIX,
    MEM_STACKS_PREFIX,
    SNAPSHOT_PREFIX,
    TIME_PREFIX,
    TIME_UNIT_PREFIX,
    UINT32_MAX,
    MassifData,
    Snapshot,
)
from .heap_tree import parse_heap_tree
from .node_parser import parse_uint_or_zero

PathLike = Union[str, Path]

# Scalar snapshot lines and the Snapshot field each one sets
SCALAR_FIELDS = [
    (TIME_PREFIX, "time"),
    (MEM_HEAP_PREFIX, "mem_heap_bytes"),
    (MEM_HEAP_EXTRA_PREFIX, "mem_heap_extra_bytes"),
    (MEM_STACKS_PREFIX, "mem_stack_bytes"),
]


class MassifReadError(OSError):
    """Raised when a Massif file cannot be read."""

    def __init__(self, path: PathLike, reason: str):
        super().__init__(f"Could not read massif file {path}: {reason}")
        self.path = str(path)


def parse_massif_file(path: PathLike) -> MassifData:
    """
    Read and parse a Massif output file.

    Args:
        path: Path to the massif.out file

    Returns:
        Parsed MassifData

    Raises:
        MassifReadError: If the file cannot be read or is not valid UTF-8.
            Nothing is parsed then.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise MassifReadError(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise MassifReadError(path, f"invalid UTF-8 at byte {e.start}") from e

    return parse_massif_content(content)


def parse_massif_content(content: str) -> MassifData:
    """
    Parse the text of a Massif output file.

    Never raises; malformed lines are skipped or default to zero values.
    """
    lines = [line.rstrip("\r") for line in content.split("\n")]
    data = MassifData()

    i = 0
    while i < len(lines):
        line = lines[i].strip()

        if line.startswith(SNAPSHOT_PREFIX):
            snapshot, i = parse_snapshot_block(lines, i)
            data.snapshots.append(snapshot)
            continue

        parse_header_line(line, data)
        i += 1

    return data


def parse_header_line(line: str, data: MassifData) -> bool:
    """
    Store a 'desc:', 'cmd:' or 'time_unit:' value into data.

    Later occurrences overwrite earlier ones.

    Returns:
        True if the line was a recognized header line
    """
    if line.startswith(DESC_PREFIX):
        data.desc = line[len(DESC_PREFIX):].strip()
    elif line.startswith(CMD_PREFIX):
        data.cmd = line[len(CMD_PREFIX):].strip()
    elif line.startswith(TIME_UNIT_PREFIX):
        data.time_unit = line[len(TIME_UNIT_PREFIX):].strip()
    else:
        return False
    return True


def _is_block_boundary(line: str) -> bool:
    return line.startswith(COMMENT_PREFIX) or line.startswith(SNAPSHOT_PREFIX)


def parse_snapshot_block(lines: List[str], start_idx: int) -> Tuple[Snapshot, int]:
    """
    Parse one snapshot block starting at its 'snapshot=N' line.

    Args:
        lines: All lines of the Massif file
        start_idx: Index of the 'snapshot=' line

    Returns:
        Tuple of (Snapshot, index of the first line after the block)
    """
    header = lines[start_idx].strip()
    snapshot = Snapshot(
        snapshot_num=parse_uint_or_zero(header[len(SNAPSHOT_PREFIX):], UINT32_MAX)
    )

    i = start_idx + 1
    # Skip separator line(s)
    while i < len(lines) and lines[i].strip().startswith(COMMENT_PREFIX):
        i += 1

    tree_seen = False
    while i < len(lines):
        line = lines[i].strip()

        if _is_block_boundary(line):
            break

        if _parse_scalar_line(line, snapshot):
            i += 1
            continue

        if line.startswith(HEAP_TREE_EMPTY):
            snapshot.heap_tree = None
            tree_seen = True
        elif line.startswith(HEAP_TREE_DETAILED) or line.startswith(HEAP_TREE_PEAK):
            if line.startswith(HEAP_TREE_PEAK):
                snapshot.is_peak = True
            if not tree_seen:
                tree_seen = True
                snapshot.heap_tree, i = parse_heap_tree(lines, i + 1, 0)
                continue

        i += 1

    return snapshot, i


def _parse_scalar_line(line: str, snapshot: Snapshot) -> bool:
    for prefix, attr in SCALAR_FIELDS:
        if line.startswith(prefix):
            setattr(snapshot, attr, parse_uint_or_zero(line[len(prefix):]))
            return True
    return False


def save_parsed_massif(data: MassifData, output_path: PathLike) -> None:
    """
    Save parsed Massif data to JSON.

    The payload is encoded before the output file is opened, so a heap tree
    too deep for the JSON encoder raises RecursionError and leaves no file.
    """
    payload = json.dumps(data.to_dict(), indent=2)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(payload)
