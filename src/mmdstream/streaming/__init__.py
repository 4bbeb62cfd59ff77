"""
Streaming data sources for block-structured two-sample estimation.

Provides the burst container, an in-memory streaming source and the
iteration protocol the estimators drive.

Design Principles:
    - Single pass: a pass yields bursts until an empty burst
    - Bounded memory: only the current burst is materialized
    - Equal block counts: every burst pairs P block i with Q block i

Usage:
    >>> from mmdstream.streaming import DataManager, iter_bursts
    >>>
    >>> dm = DataManager(samples_p, samples_q)
    >>> dm.set_blocksize(64)
    >>> dm.set_num_blocks_per_burst(8)
    >>> for burst in iter_bursts(dm):
    ...     print(burst.num_blocks())
"""

from mmdstream.streaming.burst import Burst

from mmdstream.streaming.data_manager import DataManager

from mmdstream.streaming.iterators import (
    iter_bursts,
    count_blocks,
)

__all__ = [
    # Data containers
    "Burst",
    # Sources
    "DataManager",
    # Iterators
    "iter_bursts",
    "count_blocks",
]
