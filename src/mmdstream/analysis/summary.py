"""
Summaries of estimation results.

Turns the raw outputs of the engine into tables and reports:
- Per-kernel statistics with their Q-matrix variances and power ratios
- Shape and tail statistics of a permutation null distribution

References:
    - Gretton, A. et al. (2012). Optimal kernel choice for large-scale
      two-sample tests. NIPS. (statistic / std ratio as a power proxy)
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, asdict
from scipy.stats import kurtosis, skew
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class NullDistributionSummary:
    """
    Summary of a permutation null distribution.

    Attributes:
        num_samples: Number of null replicates
        mean: Mean of the null samples
        std: Standard deviation of the null samples
        skewness: Third standardized moment
        kurtosis: Excess kurtosis (0 = normal)
        statistic: Observed statistic (None if not given)
        p_value: Fraction of null samples >= statistic (None if not given)
        quantiles: {0.9, 0.95, 0.99} quantiles of the null samples
    """
    num_samples: int
    mean: float
    std: float
    skewness: float
    kurtosis: float
    statistic: Optional[float]
    p_value: Optional[float]
    quantiles: Dict[float, float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def kernel_statistics_frame(
    statistic: np.ndarray,
    Q: np.ndarray,
    kernel_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Tabulate per-kernel statistics from compute_statistic_and_Q().

    Args:
        statistic: (n_kernels,) normalized statistics
        Q: (n_kernels, n_kernels) covariance matrix
        kernel_names: Optional display names (default: kernel_<i>)

    Returns:
        DataFrame with columns:
            - kernel, statistic, variance (Q diagonal), std
            - power_ratio: statistic / std (NaN where std == 0)

    Example:
        >>> statistic, Q = mmd.compute_statistic_and_Q()
        >>> df = kernel_statistics_frame(statistic, Q)
        >>> print(df.sort_values('power_ratio', ascending=False).head())
    """
    statistic = np.asarray(statistic, dtype=np.float64)
    Q = np.asarray(Q, dtype=np.float64)
    n = statistic.shape[0]
    if Q.shape != (n, n):
        raise ValueError(f"Q must be ({n}, {n}), got {Q.shape}")
    if kernel_names is None:
        kernel_names = [f"kernel_{i}" for i in range(n)]
    if len(kernel_names) != n:
        raise ValueError(f"Expected {n} kernel names, got {len(kernel_names)}")

    variance = np.diag(Q).copy()
    std = np.sqrt(np.clip(variance, 0.0, None))
    with np.errstate(divide='ignore', invalid='ignore'):
        power_ratio = np.where(std > 0, statistic / std, np.nan)

    return pd.DataFrame({
        'kernel': list(kernel_names),
        'statistic': statistic,
        'variance': variance,
        'std': std,
        'power_ratio': power_ratio,
    })


def summarize_null_distribution(
    null_samples: np.ndarray,
    statistic: Optional[float] = None,
    quantiles: Sequence[float] = (0.9, 0.95, 0.99),
) -> NullDistributionSummary:
    """
    Summarize null samples from sample_null().

    Args:
        null_samples: (R,) normalized null statistics
        statistic: Observed normalized statistic, for the p-value
        quantiles: Quantile levels to report

    Returns:
        NullDistributionSummary
    """
    null_samples = np.asarray(null_samples, dtype=np.float64)
    if null_samples.size == 0:
        raise ValueError("null_samples is empty")

    if null_samples.size >= 3 and np.std(null_samples) > 0:
        null_skew = float(skew(null_samples))
        null_kurt = float(kurtosis(null_samples))
    else:
        null_skew = 0.0
        null_kurt = 0.0

    p_value = None
    if statistic is not None:
        p_value = float(np.mean(null_samples >= statistic))

    return NullDistributionSummary(
        num_samples=int(null_samples.size),
        mean=float(np.mean(null_samples)),
        std=float(np.std(null_samples)),
        skewness=null_skew,
        kurtosis=null_kurt,
        statistic=None if statistic is None else float(statistic),
        p_value=p_value,
        quantiles={float(q): float(np.quantile(null_samples, q)) for q in quantiles},
    )


def print_kernel_statistics_summary(df: pd.DataFrame) -> None:
    """
    Print formatted per-kernel statistics.

    Args:
        df: DataFrame from kernel_statistics_frame
    """
    print("=" * 80)
    print("KERNEL STATISTICS")
    print("=" * 80)

    df_display = df.copy()
    for col in ['statistic', 'variance', 'std', 'power_ratio']:
        df_display[col] = df_display[col].apply(lambda x: f"{x:+.6f}")
    print(df_display.to_string(index=False))

    ranked = df.dropna(subset=['power_ratio'])
    if len(ranked) > 0:
        best = ranked.loc[ranked['power_ratio'].idxmax()]
        print(f"\n  Highest power ratio: {best['kernel']} ({best['power_ratio']:.4f})")
    best_stat = df.loc[df['statistic'].idxmax()]
    print(f"  Largest statistic:   {best_stat['kernel']} ({best_stat['statistic']:.6f})")
    print("=" * 80)


def print_null_distribution_summary(summary: NullDistributionSummary) -> None:
    """Print a formatted null distribution summary."""
    print("=" * 60)
    print("NULL DISTRIBUTION")
    print("=" * 60)
    print(f"  Replicates: {summary.num_samples}")
    print(f"  Mean:       {summary.mean:+.6f}")
    print(f"  Std:        {summary.std:.6f}")
    print(f"  Skewness:   {summary.skewness:+.4f}")
    print(f"  Kurtosis:   {summary.kurtosis:+.4f}")
    for q, value in summary.quantiles.items():
        print(f"  q{q:<9}: {value:+.6f}")
    if summary.statistic is not None:
        print(f"\n  Statistic:  {summary.statistic:+.6f}")
        print(f"  p-value:    {summary.p_value:.4f}")
    print("=" * 60)


def kernel_names_from_manager(kernel_mgr) -> List[str]:
    """Display names (repr) of the kernels of a KernelManager."""
    return [repr(kernel) for kernel in kernel_mgr]
