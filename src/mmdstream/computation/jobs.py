"""
Per-block computation jobs.

A job maps the kernel matrix of one merged block to a scalar. The first
``n_x`` rows/columns of the matrix belong to P, the remaining ``n_y`` to Q:

    K = | K_xx  K_xy |
        | K_yx  K_yy |

Jobs:
    UnbiasedFull: unbiased MMD^2 (U-statistic on both within-sample terms)
    UnbiasedIncomplete: unbiased MMD^2 that also drops the K_xy diagonal
    BiasedFull: biased MMD^2 (V-statistic)
    WithinBlockPermutation: statistic on a random relabelling of the block
    WithinBlockDirect: direct variance estimate of the unbiased statistic

Sums are taken in float64 regardless of the kernel matrix precision.

References:
    - Gretton, A. et al. (2012). A kernel two-sample test. JMLR 13.
    - Zaremba, W., Gretton, A., Blaschko, M. (2013). B-test: A non-parametric,
      low variance kernel two-sample test. NIPS.
"""

import threading
import numpy as np
from functools import partial
from typing import Callable, Dict, List, Optional, Tuple

from mmdstream.constants import StatisticType
from mmdstream.exceptions import DataShapeError


Job = Callable[[np.ndarray], float]


class _BlockJob:
    """Splits a merged kernel matrix into its P/Q sub-blocks."""

    def __init__(self, n_x: int) -> None:
        if n_x < 1:
            raise ValueError(f"n_x must be positive, got {n_x}")
        self.n_x = int(n_x)

    def _split(self, km: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        if km.ndim != 2 or km.shape[0] != km.shape[1]:
            raise DataShapeError(f"Kernel matrix must be square, got shape {km.shape}")
        if km.shape[0] <= self.n_x:
            raise DataShapeError(
                f"Kernel matrix of size {km.shape[0]} has no samples from Q (n_x={self.n_x})"
            )
        km = np.asarray(km, dtype=np.float64)
        n = self.n_x
        return km[:n, :n], km[n:, n:], km[:n, n:]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_x={self.n_x})"


def _offdiag_mean(k: np.ndarray) -> float:
    n = k.shape[0]
    if n < 2:
        raise DataShapeError(f"Unbiased estimates need at least 2 samples per block, got {n}")
    return (k.sum() - np.trace(k)) / (n * (n - 1))


class UnbiasedFull(_BlockJob):
    """
    Unbiased MMD^2 estimate.

    Formula:
        MMD^2 = sum_{i!=j} k(x_i,x_j) / (n_x (n_x - 1))
              + sum_{i!=j} k(y_i,y_j) / (n_y (n_y - 1))
              - 2 sum_{i,j} k(x_i,y_j) / (n_x n_y)
    """

    def __call__(self, km: np.ndarray) -> float:
        kxx, kyy, kxy = self._split(km)
        return float(_offdiag_mean(kxx) + _offdiag_mean(kyy) - 2.0 * kxy.mean())


class UnbiasedIncomplete(_BlockJob):
    """
    Unbiased MMD^2 estimate with the diagonal of K_xy removed as well.

    Requires equal block sizes; this is the estimator of the linear-time
    MMD when blocks hold two samples per distribution.
    """

    def __call__(self, km: np.ndarray) -> float:
        kxx, kyy, kxy = self._split(km)
        if kxy.shape[0] != kxy.shape[1]:
            raise DataShapeError(
                f"Incomplete statistic needs equal block sizes, got {kxy.shape[0]} and {kxy.shape[1]}"
            )
        return float(_offdiag_mean(kxx) + _offdiag_mean(kyy) - 2.0 * _offdiag_mean(kxy))


class BiasedFull(_BlockJob):
    """Biased MMD^2 estimate: mean(K_xx) + mean(K_yy) - 2 mean(K_xy)."""

    def __call__(self, km: np.ndarray) -> float:
        kxx, kyy, kxy = self._split(km)
        return float(kxx.mean() + kyy.mean() - 2.0 * kxy.mean())


_STATISTIC_JOBS: Dict[StatisticType, type] = {
    StatisticType.UNBIASED_FULL: UnbiasedFull,
    StatisticType.UNBIASED_INCOMPLETE: UnbiasedIncomplete,
    StatisticType.BIASED_FULL: BiasedFull,
}


def create_statistic_job(statistic_type: StatisticType, n_x: int) -> _BlockJob:
    """
    Statistic job for a statistic type.

    Raises:
        ValueError: If the statistic type is unknown
    """
    try:
        job_cls = _STATISTIC_JOBS[StatisticType(statistic_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown statistic type: {statistic_type}") from None
    return job_cls(n_x)


class WithinBlockPermutation:
    """
    Statistic of a randomly relabelled block.

    Each call draws a fresh uniform permutation of the n_x + n_y merged
    samples and evaluates the statistic job on the permuted kernel matrix,
    so the first n_x permuted samples play the role of P.

    For data-parallel evaluation the executor calls spawn() once per burst
    from the driver thread: the permutations of all slots are drawn there,
    in slot order, so a seeded run does not depend on thread scheduling.

    Attributes:
        n_x: Block size of P
        n_y: Block size of Q
        statistic_type: Statistic evaluated on the permuted matrix
    """

    def __init__(
        self,
        n_x: int,
        n_y: int,
        statistic_type: StatisticType = StatisticType.UNBIASED_FULL,
        seed: Optional[int] = None,
    ) -> None:
        self.n_x = int(n_x)
        self.n_y = int(n_y)
        self.statistic_type = StatisticType(statistic_type)
        self._statistic = create_statistic_job(self.statistic_type, self.n_x)
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def __call__(self, km: np.ndarray) -> float:
        with self._lock:
            perm = self._rng.permutation(self.n_x + self.n_y)
        return self._evaluate(perm, km)

    def spawn(self, num_slots: int) -> List[Job]:
        """
        Per-slot jobs with their permutations drawn now, in slot order.

        Args:
            num_slots: Number of kernel matrix slots

        Returns:
            num_slots jobs; job i evaluates the statistic under the i-th draw
        """
        size = self.n_x + self.n_y
        with self._lock:
            perms = [self._rng.permutation(size) for _ in range(num_slots)]
        return [partial(self._evaluate, perm) for perm in perms]

    def _evaluate(self, perm: np.ndarray, km: np.ndarray) -> float:
        size = self.n_x + self.n_y
        if km.shape != (size, size):
            raise DataShapeError(
                f"Expected a {size}x{size} kernel matrix, got shape {km.shape}"
            )
        return self._statistic(km[np.ix_(perm, perm)])

    def __repr__(self) -> str:
        return (
            f"WithinBlockPermutation(n_x={self.n_x}, n_y={self.n_y}, "
            f"statistic_type={self.statistic_type.name})"
        )


class WithinBlockDirect(_BlockJob):
    """
    Direct variance estimate of the unbiased statistic within one block.

    With h-matrix H = K_xx + K_yy - K_xy - K_yx (diagonal removed), row sums
    r_i and off-diagonal mean h_bar:

        var = 4 / n * ( sum_i r_i^2 / (n (n - 1)^2) - h_bar^2 )

    Requires equal block sizes for P and Q.
    """

    def __call__(self, km: np.ndarray) -> float:
        kxx, kyy, kxy = self._split(km)
        n = kxx.shape[0]
        if kyy.shape[0] != n:
            raise DataShapeError(
                f"Direct variance estimation needs equal block sizes, got {n} and {kyy.shape[0]}"
            )
        if n < 2:
            raise DataShapeError(f"Direct variance estimation needs at least 2 samples per block, got {n}")
        h = kxx + kyy - kxy - kxy.T
        np.fill_diagonal(h, 0.0)
        row_sums = h.sum(axis=1)
        h_bar = h.sum() / (n * (n - 1))
        return float(4.0 / n * ((row_sums ** 2).sum() / (n * (n - 1) ** 2) - h_bar ** 2))
