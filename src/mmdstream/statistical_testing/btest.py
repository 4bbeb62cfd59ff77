"""
Block-based MMD two-sample tests.

BTestMMD averages the per-block statistic over all blocks of the stream and
scales it by Nx * Ny / (Nx + Ny). Its null distribution is approximated
either by within-block permutations or by a Gaussian (the block average is
asymptotically normal in the number of blocks). LinearTimeMMD is the B-test
with two samples per distribution and block.

References:
    - Zaremba, W., Gretton, A., Blaschko, M. (2013). B-test: A non-parametric,
      low variance kernel two-sample test. NIPS.
    - Gretton, A. et al. (2012). A kernel two-sample test. JMLR 13.
"""

import numpy as np
from scipy.stats import norm
from typing import Any, Optional

from mmdstream.constants import (
    DEFAULT_ALPHA,
    NullApproximationMethod,
    StatisticType,
    VarianceEstimationMethod,
)
from mmdstream.exceptions import ConfigurationError
from mmdstream.kernels.kernel import Kernel
from mmdstream.statistical_testing.config import MMDConfig
from mmdstream.statistical_testing.mmd import MMD


class BTestMMD(MMD):
    """
    B-test: MMD averaged over blocks of a stream.

    Normalization:
        statistic: Nx * Ny / (Nx + Ny) * mean block statistic
        variance (permutation): m2 / (num_blocks - 1), the sample variance
            of a single block statistic
    """

    def _scale(self) -> float:
        nx = self.data_manager.num_samples_at(0)
        ny = self.data_manager.num_samples_at(1)
        return nx * ny / (nx + ny)

    def normalize_statistic(self, statistic: float) -> float:
        return self._scale() * statistic

    def normalize_variance(self, variance: float) -> float:
        num_blocks = self.data_manager.num_blocks()
        if num_blocks < 2:
            return 0.0
        return variance / (num_blocks - 1)

    def _null_std(self) -> float:
        """Standard deviation of the normalized statistic under the null."""
        num_blocks = max(self.data_manager.num_blocks(), 1)
        variance = self.compute_variance()
        return self._scale() * float(np.sqrt(max(variance, 0.0) / num_blocks))

    def compute_p_value(self, statistic: float) -> float:
        """
        p-value of a normalized statistic.

        PERMUTATION: fraction of null samples at least as large.
        MMD1_GAUSSIAN: upper tail of N(0, std^2) with std from the variance
        estimate of one block statistic.
        """
        if self.null_approximation_method == NullApproximationMethod.PERMUTATION:
            null_samples = self.sample_null()
            return float(np.mean(null_samples >= statistic))
        std = self._null_std()
        if std == 0.0:
            return 0.0 if statistic > 0 else 1.0
        return float(norm.sf(statistic / std))

    def compute_threshold(self, alpha: float = DEFAULT_ALPHA) -> float:
        """Rejection threshold of the normalized statistic at level alpha."""
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        if self.null_approximation_method == NullApproximationMethod.PERMUTATION:
            return float(np.quantile(self.sample_null(), 1.0 - alpha))
        return float(norm.isf(alpha) * self._null_std())

    def perform_test(self, alpha: float = DEFAULT_ALPHA) -> bool:
        """True if H0 (P == Q) is rejected at level alpha."""
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        return self.compute_p_value(self.compute_statistic()) < alpha


class LinearTimeMMD(BTestMMD):
    """
    Linear-time MMD: blocks of two samples per distribution.

    Uses the incomplete unbiased statistic and permutation-based variance
    unless a config says otherwise. P and Q must have the same size.

    The data manager passed in is reconfigured in place: its block size is
    set to 4 (two samples per distribution), which also switches it to
    blockwise streaming.
    """

    def __init__(
        self,
        data_manager: Any,
        kernel: Optional[Kernel] = None,
        config: Optional[MMDConfig] = None,
    ) -> None:
        if data_manager.num_samples_at(0) != data_manager.num_samples_at(1):
            raise ConfigurationError("Linear time MMD needs the same number of samples from P and Q")
        data_manager.set_blocksize(4)
        if config is None:
            config = MMDConfig(
                statistic_type=StatisticType.UNBIASED_INCOMPLETE,
                variance_estimation_method=VarianceEstimationMethod.PERMUTATION,
            )
        super().__init__(data_manager, kernel=kernel, config=config)
