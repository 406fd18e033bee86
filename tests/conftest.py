# SPDX-FileCopyrightText: (c) 2025 Tenstorrent AI ULC
#
# SPDX-License-Identifier: Apache-2.0

import pytest

SAMPLE_MASSIF = """\
desc: --time-unit=ms
cmd: ./example arg
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
#-----------
time=10
mem_heap_B=3000
mem_heap_extra_B=24
mem_stacks_B=100
heap_tree=detailed
n2: 3000 (heap allocation functions) malloc/new/new[], --alloc-fns, etc.
 n1: 2000 0x4005BB: g (example.c:10)
  n0: 2000 0x4005E9: main (example.c:25)
 n0: 1000 0x4005D6: main (example.c:24)
#-----------
snapshot=2
#-----------
time=20
mem_heap_B=5000
mem_heap_extra_B=40
mem_stacks_B=200
heap_tree=peak
n3: 5000 (heap allocation functions) malloc/new/new[], --alloc-fns, etc.
 n0: 4000 0x4005BB: g (example.c:10)
 n0: 900 0x4005D6: f (example.c:24)
 n0: 100 in 2 places, all below massif's threshold (1.00%)
#-----------
snapshot=3
#-----------
time=30
mem_heap_B=1000
mem_heap_extra_B=8
mem_stacks_B=50
heap_tree=empty
"""


@pytest.fixture
def massif_text():
    return SAMPLE_MASSIF


@pytest.fixture
def massif_file(tmp_path):
    path = tmp_path / "massif.out.1234"
    path.write_text(SAMPLE_MASSIF)
    return path


DEEP_TREE_LEVELS = 5000


@pytest.fixture
def deep_massif_text():
    """One detailed snapshot whose heap tree is a single chain of calls."""
    lines = [
        "desc: --depth=5000",
        "cmd: ./recurse",
        "time_unit: i",
        "#-----------",
        "snapshot=0",
        "#-----------",
        "time=0",
        "mem_heap_B=8",
        "mem_heap_extra_B=0",
        "mem_stacks_B=0",
        "heap_tree=detailed",
    ]
    lines += [" " * d + f"n1: 8 0x{d:x}: f{d} (deep.c:{d})" for d in range(DEEP_TREE_LEVELS)]
    lines.append(" " * DEEP_TREE_LEVELS + "n0: 8 0x0: leaf (deep.c:0)")
    return "\n".join(lines) + "\n"
