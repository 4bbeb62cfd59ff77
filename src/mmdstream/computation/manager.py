"""
Data-parallel job execution over per-block kernel matrices.

ComputationManager evaluates every enqueued job on every kernel matrix slot.
Work fans out over a thread pool (numpy releases the GIL in the heavy
reductions); results are stored per job in slot order, so slot i always
holds the result for kernel matrix i regardless of scheduling.

Usage:
    >>> cm = ComputationManager()
    >>> cm.enqueue_job(UnbiasedFull(n_x))
    >>> cm.num_data(len(matrices))
    >>> for i, km in enumerate(matrices):
    ...     cm.set_data(i, km)
    >>> cm.use_cpu().compute_data_parallel_jobs()
    >>> mmds = cm.result(0)
    >>> cm.done()
"""

import warnings
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: Optional[int] = None,
) -> List[R]:
    """
    Apply fn to every item on a thread pool, keeping input order.

    The first exception raised by fn propagates to the caller after all
    submitted tasks have finished.

    Args:
        fn: Task function
        items: Task inputs
        max_workers: Pool size (None: executor default); 1 runs inline

    Returns:
        [fn(item) for item in items]
    """
    if len(items) <= 1 or max_workers == 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(fn, items))


class ComputationManager:
    """
    Evaluates enqueued jobs on kernel matrix slots.

    Attributes:
        jobs: Enqueued jobs, evaluated in order
        max_workers: Thread pool size (None: executor default)
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self.jobs: List[Callable[[np.ndarray], float]] = []
        self.max_workers = max_workers
        self._data: List[Optional[np.ndarray]] = []
        self._results: List[List[float]] = []
        self._gpu = False
        self._warned_gpu = False

    def enqueue_job(self, job: Callable[[np.ndarray], float]) -> None:
        self.jobs.append(job)

    def num_data(self, n: int) -> None:
        """Resize the kernel matrix slots (existing matrices are dropped)."""
        self._data = [None] * n

    def set_data(self, i: int, matrix: np.ndarray) -> None:
        self._data[i] = matrix

    def data(self, i: int) -> Optional[np.ndarray]:
        return self._data[i]

    def use_cpu(self) -> "ComputationManager":
        self._gpu = False
        return self

    def use_gpu(self) -> "ComputationManager":
        """
        Request accelerator execution.

        No accelerator backend is available; jobs run on the CPU path and
        produce the same results.
        """
        if not self._warned_gpu:
            warnings.warn(
                "No accelerator backend available, computing jobs on the CPU",
                RuntimeWarning,
            )
            self._warned_gpu = True
        self._gpu = True
        return self

    @property
    def is_gpu(self) -> bool:
        return self._gpu

    def compute_data_parallel_jobs(self) -> None:
        """
        Evaluate every job on every slot.

        A job exposing spawn(num_slots) is replaced by the per-slot jobs it
        returns, created in the calling thread before any task starts.

        Raises:
            RuntimeError: If a slot has no kernel matrix
        """
        missing = [i for i, km in enumerate(self._data) if km is None]
        if missing:
            raise RuntimeError(f"Kernel matrix slots {missing} are not set")

        # Jobs with per-slot randomness draw it here, before the fan-out
        num_slots = len(self._data)
        slot_jobs = [
            job.spawn(num_slots) if hasattr(job, "spawn") else [job] * num_slots
            for job in self.jobs
        ]

        def run(i: int) -> List[float]:
            km = self._data[i]
            return [float(jobs[i](km)) for jobs in slot_jobs]

        per_block = parallel_map(run, range(num_slots), self.max_workers)
        self._results = [
            [block_results[j] for block_results in per_block] for j in range(len(self.jobs))
        ]

    def result(self, job_index: int) -> List[float]:
        """Per-slot results of the job at job_index."""
        return self._results[job_index]

    def done(self) -> None:
        """Release jobs, kernel matrices and results."""
        self.jobs = []
        self._data = []
        self._results = []
