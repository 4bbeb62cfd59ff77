"""
Enumerations and defaults for the MMD estimation engine.

Usage:
    >>> from mmdstream.constants import StatisticType, VarianceEstimationMethod
    >>> mmd.statistic_type = StatisticType.UNBIASED_INCOMPLETE
"""

from mmdstream.constants.methods import (
    # Defaults
    DEFAULT_NUM_NULL_SAMPLES,
    DEFAULT_TRAIN_TEST_RATIO,
    DEFAULT_NUM_RUNS,
    DEFAULT_ALPHA,
    KERNEL_MATRIX_DTYPE,
    # Enumerations
    StatisticType,
    VarianceEstimationMethod,
    NullApproximationMethod,
    KernelSelectionMethod,
    KernelType,
    STATISTIC_NAMES,
)

__all__ = [
    "DEFAULT_NUM_NULL_SAMPLES",
    "DEFAULT_TRAIN_TEST_RATIO",
    "DEFAULT_NUM_RUNS",
    "DEFAULT_ALPHA",
    "KERNEL_MATRIX_DTYPE",
    "StatisticType",
    "VarianceEstimationMethod",
    "NullApproximationMethod",
    "KernelSelectionMethod",
    "KernelType",
    "STATISTIC_NAMES",
]
