"""
Fork-join execution over disjoint slabs of a grid.

Worker functions receive one region (a tuple of slices in numpy order) and
must only write to their own region of any shared output. Results are returned
in region order once every worker has finished.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar
import numpy as np

logger = logging.getLogger(__name__)

Region = Tuple[slice, ...]
T = TypeVar('T')

def default_number_of_workers() -> int:
    return os.cpu_count() or 1

def split_regions(shape: Sequence[int], number_of_partitions: int) -> List[Region]:
    """Split a grid into slabs along its slowest axis

    Args:
        shape: Grid shape in numpy order
        number_of_partitions: Requested number of slabs; fewer are returned
            when the slowest axis is shorter

    Returns:
        List of non-empty, disjoint regions covering the whole grid
    """
    if len(shape) == 0 or shape[0] == 0:
        return []
    number_of_partitions = max(1, min(int(number_of_partitions), int(shape[0])))
    bounds = np.linspace(0, shape[0], number_of_partitions + 1).astype(int)
    rest = tuple(slice(0, int(n)) for n in shape[1:])
    return [
        (slice(int(start), int(stop)),) + rest
        for start, stop in zip(bounds[:-1], bounds[1:])
        if stop > start
    ]

def run_partitioned(
    func: Callable[[int, Region], T],
    regions: Sequence[Region],
    number_of_workers: Optional[int] = None
) -> List[T]:
    """Run func(partition_index, region) for every region

    Args:
        func: Worker function
        regions: Disjoint regions, typically from split_regions
        number_of_workers: Thread count; 1 runs everything in the caller

    Returns:
        Worker results in region order
    """
    if number_of_workers is None:
        number_of_workers = default_number_of_workers()

    if number_of_workers <= 1 or len(regions) <= 1:
        return [func(i, region) for i, region in enumerate(regions)]

    logger.debug(f"Running {len(regions)} partitions on {number_of_workers} threads")
    # numpy and LAPACK release the GIL for the heavy per-slab work
    with ThreadPoolExecutor(max_workers=number_of_workers) as executor:
        futures = [executor.submit(func, i, region) for i, region in enumerate(regions)]
        return [future.result() for future in futures]
