"""
Streaming MMD two-sample tests.

Usage:
    >>> from mmdstream.streaming import DataManager
    >>> from mmdstream.kernels import GaussianKernel
    >>> from mmdstream.statistical_testing import BTestMMD
    >>>
    >>> dm = DataManager(samples_p, samples_q)
    >>> dm.set_blocksize(64)
    >>> dm.set_num_blocks_per_burst(4)
    >>> mmd = BTestMMD(dm, kernel=GaussianKernel(width=2.0))
    >>> statistic, variance = mmd.compute_statistic_variance()
    >>> null_samples = mmd.sample_null()
"""

from mmdstream.statistical_testing.config import MMDConfig

from mmdstream.statistical_testing.mmd import MMD

from mmdstream.statistical_testing.btest import (
    BTestMMD,
    LinearTimeMMD,
)

from mmdstream.statistical_testing.kernel_selection import (
    KernelSelection,
    register_selection_policy,
    unregister_selection_policy,
    get_selection_policy,
)

from mmdstream.statistical_testing.stages import (
    merge_samples,
    compute_kernel,
    compute_jobs,
)

__all__ = [
    # Configuration
    "MMDConfig",
    # Estimators
    "MMD",
    "BTestMMD",
    "LinearTimeMMD",
    # Kernel selection
    "KernelSelection",
    "register_selection_policy",
    "unregister_selection_policy",
    "get_selection_policy",
    # Stages
    "merge_samples",
    "compute_kernel",
    "compute_jobs",
]
