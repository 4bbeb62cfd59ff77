"""
Online accumulators and result summaries.

Modules:
    - streaming_stats: Constant-memory running means and variances
    - summary: Tables and reports of estimation results

Usage:
    >>> from mmdstream.analysis import RunningMean, kernel_statistics_frame
    >>>
    >>> acc = RunningMean()
    >>> acc.update_batch([0.1, 0.3])
    >>> print(acc.mean)
"""

from mmdstream.analysis.streaming_stats import (
    RunningMean,
    OnePassVariance,
    RunningMeanVector,
    RunningCovarianceMatrix,
)

from mmdstream.analysis.summary import (
    NullDistributionSummary,
    kernel_statistics_frame,
    kernel_names_from_manager,
    summarize_null_distribution,
    print_kernel_statistics_summary,
    print_null_distribution_summary,
)

__all__ = [
    # Accumulators
    "RunningMean",
    "OnePassVariance",
    "RunningMeanVector",
    "RunningCovarianceMatrix",
    # Summaries
    "NullDistributionSummary",
    "kernel_statistics_frame",
    "kernel_names_from_manager",
    "summarize_null_distribution",
    "print_kernel_statistics_summary",
    "print_null_distribution_summary",
]
