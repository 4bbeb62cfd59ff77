"""
mmdstream - Streaming Maximum Mean Discrepancy estimation.

Estimates the MMD two-sample statistic from block-structured streams,
together with its variance, a permutation null distribution and the
cross-kernel covariance used for kernel learning.

Modules:
    constants: Method enumerations and defaults
    streaming: Burst container, in-memory streaming source, iterators
    kernels: Kernel objects, distances, kernel registry
    computation: Per-block jobs and the data-parallel job executor
    statistical_testing: The estimation engine and B-test flavours
    analysis: Online accumulators and result summaries

Quick Start:
    >>> import numpy as np
    >>> from mmdstream import BTestMMD, DataManager, GaussianKernel
    >>>
    >>> rng = np.random.default_rng(0)
    >>> dm = DataManager(rng.normal(size=(1000, 2)), rng.normal(0.5, size=(1000, 2)))
    >>> dm.set_blocksize(100)
    >>> dm.set_num_blocks_per_burst(4)
    >>> mmd = BTestMMD(dm, kernel=GaussianKernel(width=2.0))
    >>> statistic, variance = mmd.compute_statistic_variance()
    >>> print(f"statistic = {statistic:.4f}, variance = {variance:.6f}")
"""

__version__ = "0.1.0"

from mmdstream.constants import (
    StatisticType,
    VarianceEstimationMethod,
    NullApproximationMethod,
    KernelSelectionMethod,
    KernelType,
)

from mmdstream.exceptions import (
    MMDError,
    ConfigurationError,
    DataShapeError,
    ComputationError,
)

from mmdstream.streaming import Burst, DataManager

from mmdstream.kernels import (
    GaussianKernel,
    CustomKernel,
    CombinedKernel,
    KernelManager,
)

from mmdstream.statistical_testing import (
    MMDConfig,
    MMD,
    BTestMMD,
    LinearTimeMMD,
    KernelSelection,
    register_selection_policy,
)

__all__ = [
    # Version
    "__version__",
    # Enumerations
    "StatisticType",
    "VarianceEstimationMethod",
    "NullApproximationMethod",
    "KernelSelectionMethod",
    "KernelType",
    # Errors
    "MMDError",
    "ConfigurationError",
    "DataShapeError",
    "ComputationError",
    # Streaming
    "Burst",
    "DataManager",
    # Kernels
    "GaussianKernel",
    "CustomKernel",
    "CombinedKernel",
    "KernelManager",
    # Estimators
    "MMDConfig",
    "MMD",
    "BTestMMD",
    "LinearTimeMMD",
    "KernelSelection",
    "register_selection_policy",
]
