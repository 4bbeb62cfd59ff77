"""
Streaming (online) accumulators for the MMD estimation engine.

Provides constant-memory running estimates that are folded one scalar at a
time by the burst loop:
    - RunningMean: online mean with a term counter starting at 1
    - OnePassVariance: one-pass streaming variance (Welford recurrence)
    - RunningMeanVector: one running mean per index (kernels, null replicates)
    - RunningCovarianceMatrix: per-cell running means with explicit
      lower-triangle updates and mirroring

Reference:
    Welford, B. P. (1962). "Note on a method for calculating
    corrected sums of squares and products"

Memory Budget:
    - RunningMean / OnePassVariance: O(1)
    - RunningMeanVector: O(n)
    - RunningCovarianceMatrix: O(n^2) for n kernels
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class RunningMean:
    """
    Online mean over an a-priori unknown number of terms.

    Formula:
        mean_n = mean_{n-1} + (x_n - mean_{n-1}) / n

    Attributes:
        mean: Current mean estimate
        counter: Index of the next term (starts at 1)
    """
    mean: float = 0.0
    counter: int = 1

    def update(self, x: float) -> None:
        """
        Fold a single value into the mean.

        Args:
            x: New observation
        """
        delta = x - self.mean
        self.mean += delta / self.counter
        self.counter += 1

    def update_batch(self, values: Iterable[float]) -> None:
        """Fold values in order."""
        for x in values:
            self.update(x)

    @property
    def n(self) -> int:
        """Number of folded terms."""
        return self.counter - 1


@dataclass
class OnePassVariance:
    """
    One-pass streaming variance used for permutation-based variance.

    The running mean is updated BEFORE it is used as the center of the
    cross-term:

        delta = x - mean_{n-1}
        mean_n = mean_{n-1} + delta / n
        m2_n = m2_{n-1} + delta * (x - mean_n)

    ``m2`` is the accumulated sum of the cross-terms, not a variance; the
    caller's normalization rule turns it into one. Results depend on the
    order of updates in floating point.

    Attributes:
        running: Running mean of the values
        m2: Accumulated cross-term sum
    """
    running: RunningMean = field(default_factory=RunningMean)
    m2: float = 0.0

    def update(self, x: float) -> None:
        delta = x - self.running.mean
        self.running.update(x)
        self.m2 += delta * (x - self.running.mean)

    def update_batch(self, values: Iterable[float]) -> None:
        for x in values:
            self.update(x)

    @property
    def mean(self) -> float:
        return self.running.mean

    @property
    def n(self) -> int:
        return self.running.n


class RunningMeanVector:
    """
    Independent running means, one per index.

    Used for the per-kernel statistic vector and for the per-replicate
    null distribution sample.

    Attributes:
        values: (size,) float64 array of current means
        counters: (size,) int64 array of next-term indices (start at 1)
    """

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self.values = np.zeros(size, dtype=np.float64)
        self.counters = np.ones(size, dtype=np.int64)

    def __len__(self) -> int:
        return len(self.values)

    def update(self, index: int, x: float) -> None:
        """Fold value x into the mean at index."""
        delta = x - self.values[index]
        self.values[index] += delta / self.counters[index]
        self.counters[index] += 1

    def update_batch(self, index: int, values: Iterable[float]) -> None:
        for x in values:
            self.update(index, x)


class RunningCovarianceMatrix:
    """
    Symmetric matrix of running means indexed by kernel pairs.

    Only cells with j <= i are ever updated; callers mirror each updated
    cell into (j, i) with mirror() once they are done with it.

    Attributes:
        values: (n, n) float64 array of current means
        counters: (n, n) int64 array of next-term indices (start at 1)
    """

    def __init__(self, n: int) -> None:
        self.values = np.zeros((n, n), dtype=np.float64)
        self.counters = np.ones((n, n), dtype=np.int64)

    @property
    def shape(self):
        return self.values.shape

    def update(self, i: int, j: int, x: float) -> None:
        """
        Fold value x into cell (i, j) of the lower triangle.

        Raises:
            IndexError: If (i, j) is above the diagonal
        """
        if j > i:
            raise IndexError(f"Only the lower triangle is updated, got ({i}, {j})")
        delta = x - self.values[i, j]
        self.values[i, j] += delta / self.counters[i, j]
        self.counters[i, j] += 1

    def mirror(self, i: int, j: int) -> None:
        """Copy cell (i, j) into (j, i)."""
        self.values[j, i] = self.values[i, j]

    def is_symmetric(self) -> bool:
        return bool(np.array_equal(self.values, self.values.T))
