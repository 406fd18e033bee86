# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

"""
Massif profiler package for reading Valgrind Massif heap profiles.

This package provides tools to:
- Parse massif.out files into snapshots and allocation call trees
- Export parsed data as JSON for visualization front ends
- Find peak memory usage and top allocation sites
- Generate LLM-friendly text reports and terminal views
"""

from .data_types import HeapNode, MassifData, Snapshot
from .parser import MassifReadError, parse_massif_content, parse_massif_file, save_parsed_massif
from .text_formatter import MassifTextFormatter

__all__ = [
    "HeapNode",
    "MassifData",
    "Snapshot",
    "MassifReadError",
    "parse_massif_content",
    "parse_massif_file",
    "save_parsed_massif",
    "MassifTextFormatter",
]
