"""
Per-block computation jobs and their data-parallel executor.

Usage:
    >>> from mmdstream.computation import ComputationManager, UnbiasedFull
    >>> cm = ComputationManager()
    >>> cm.enqueue_job(UnbiasedFull(n_x=32))
"""

from mmdstream.computation.jobs import (
    UnbiasedFull,
    UnbiasedIncomplete,
    BiasedFull,
    WithinBlockPermutation,
    WithinBlockDirect,
    create_statistic_job,
)

from mmdstream.computation.manager import (
    ComputationManager,
    parallel_map,
)

__all__ = [
    # Jobs
    "UnbiasedFull",
    "UnbiasedIncomplete",
    "BiasedFull",
    "WithinBlockPermutation",
    "WithinBlockDirect",
    "create_statistic_job",
    # Execution
    "ComputationManager",
    "parallel_map",
]
