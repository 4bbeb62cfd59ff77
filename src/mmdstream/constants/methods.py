"""
Method enumerations and engine defaults.

This module defines the configuration vocabulary shared by the estimators,
the computation jobs and the kernel selection layer. Values are IntEnums so
they can be passed either as members or as their integer codes.

Enumerations:
    StatisticType: Which per-block MMD estimator is evaluated
    VarianceEstimationMethod: How the variance of the statistic is estimated
    NullApproximationMethod: How the null distribution is approximated
    KernelSelectionMethod: Which selection policy picks the kernel
    KernelType: Kind of kernel object (custom kernels cannot be templates)
"""

from enum import IntEnum
from typing import Dict, Final

import numpy as np


# =============================================================================
# Engine Defaults
# =============================================================================

DEFAULT_NUM_NULL_SAMPLES: Final[int] = 250
"""Number of permutation replicates drawn by sample_null()."""

DEFAULT_TRAIN_TEST_RATIO: Final[float] = 1.0
"""Train:test ratio used by select_kernel() (1.0 = half/half)."""

DEFAULT_NUM_RUNS: Final[int] = 10
"""Cross-validation runs for MAXIMIZE_XVALIDATION."""

DEFAULT_ALPHA: Final[float] = 0.05
"""Significance level for tests and cross-validation."""

KERNEL_MATRIX_DTYPE: Final[type] = np.float32
"""Kernel and distance matrices are single precision."""


# =============================================================================
# Enumerations
# =============================================================================

class StatisticType(IntEnum):
    """Per-block MMD estimator."""

    UNBIASED_FULL = 0
    UNBIASED_INCOMPLETE = 1
    BIASED_FULL = 2


class VarianceEstimationMethod(IntEnum):
    """
    Variance estimation method.

    DIRECT averages a within-block variance estimate over all blocks.
    PERMUTATION accumulates the one-pass streaming variance of the
    within-block permutation statistic.
    """

    DIRECT = 0
    PERMUTATION = 1


class NullApproximationMethod(IntEnum):
    """Null distribution approximation used by compute_p_value()."""

    PERMUTATION = 0
    MMD1_GAUSSIAN = 1


class KernelSelectionMethod(IntEnum):
    """Kernel selection policies understood by select_kernel()."""

    MEDIAN_HEURISTIC = 0
    MAXIMIZE_MMD = 1
    MAXIMIZE_POWER = 2
    MAXIMIZE_XVALIDATION = 3


class KernelType(IntEnum):
    """Kernel object kinds."""

    GAUSSIAN = 0
    CUSTOM = 1
    COMBINED = 2


STATISTIC_NAMES: Final[Dict[StatisticType, str]] = {
    StatisticType.UNBIASED_FULL: "unbiased_full",
    StatisticType.UNBIASED_INCOMPLETE: "unbiased_incomplete",
    StatisticType.BIASED_FULL: "biased_full",
}
"""Human-readable statistic names (used in summaries)."""
