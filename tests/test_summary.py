"""
Tests for result summaries.
"""

import numpy as np
import pandas as pd
import pytest


class TestKernelStatisticsFrame:
    """Test kernel_statistics_frame."""

    def test_columns_and_values(self) -> None:
        """Frame holds statistic, Q diagonal, std and power ratio."""
        from mmdstream.analysis import kernel_statistics_frame

        statistic = np.array([0.2, 0.6])
        Q = np.array([[0.04, 0.01], [0.01, 0.09]])

        df = kernel_statistics_frame(statistic, Q, kernel_names=['narrow', 'wide'])

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ['kernel', 'statistic', 'variance', 'std', 'power_ratio']
        assert list(df['kernel']) == ['narrow', 'wide']
        np.testing.assert_allclose(df['std'], [0.2, 0.3])
        np.testing.assert_allclose(df['power_ratio'], [1.0, 2.0])

    def test_zero_variance(self) -> None:
        """Zero variance gives a NaN power ratio."""
        from mmdstream.analysis import kernel_statistics_frame

        df = kernel_statistics_frame(np.array([0.5]), np.zeros((1, 1)))

        assert df['kernel'][0] == 'kernel_0'
        assert np.isnan(df['power_ratio'][0])

    def test_shape_mismatch(self) -> None:
        """Q and names must match the number of statistics."""
        from mmdstream.analysis import kernel_statistics_frame

        with pytest.raises(ValueError, match="Q must be"):
            kernel_statistics_frame(np.zeros(2), np.zeros((3, 3)))
        with pytest.raises(ValueError, match="kernel names"):
            kernel_statistics_frame(np.zeros(2), np.zeros((2, 2)), kernel_names=['a'])

    def test_from_estimator(self) -> None:
        """Works on the output of compute_statistic_and_Q."""
        from mmdstream.analysis import kernel_names_from_manager, kernel_statistics_frame
        from mmdstream.kernels import GaussianKernel
        from mmdstream.statistical_testing import BTestMMD
        from mmdstream.streaming import DataManager

        rng = np.random.default_rng(0)
        dm = DataManager(rng.normal(size=(32, 2)), rng.normal(loc=1.0, size=(32, 2)))
        dm.set_blocksize(16)
        dm.set_num_blocks_per_burst(2)
        mmd = BTestMMD(dm)
        mmd.add_kernel(GaussianKernel(1.0))
        mmd.add_kernel(GaussianKernel(4.0))

        statistic, Q = mmd.compute_statistic_and_Q()
        names = kernel_names_from_manager(mmd.kernel_selection_manager)
        df = kernel_statistics_frame(statistic, Q, names)

        assert names == ['GaussianKernel(width=1)', 'GaussianKernel(width=4)']
        assert len(df) == 2
        assert (df['variance'] >= 0).all()


class TestSummarizeNullDistribution:
    """Test summarize_null_distribution."""

    def test_summary_fields(self) -> None:
        """Moments, quantiles and p-value of the null samples."""
        from mmdstream.analysis import summarize_null_distribution

        null_samples = np.arange(100, dtype=np.float64)
        summary = summarize_null_distribution(null_samples, statistic=90.0)

        assert summary.num_samples == 100
        assert summary.mean == pytest.approx(49.5)
        assert summary.skewness == pytest.approx(0.0, abs=1e-10)
        assert summary.kurtosis < 0
        assert summary.p_value == pytest.approx(0.10)
        assert summary.quantiles[0.9] == pytest.approx(np.quantile(null_samples, 0.9))
        assert summary.to_dict()['num_samples'] == 100

    def test_without_statistic(self) -> None:
        """No p-value without an observed statistic."""
        from mmdstream.analysis import summarize_null_distribution

        summary = summarize_null_distribution(np.ones(5))

        assert summary.p_value is None
        assert summary.statistic is None
        assert summary.std == 0.0
        assert summary.skewness == 0.0

    def test_empty(self) -> None:
        """Empty null samples are rejected."""
        from mmdstream.analysis import summarize_null_distribution

        with pytest.raises(ValueError, match="empty"):
            summarize_null_distribution(np.array([]))


class TestPrintFunctions:
    """Test print functions don't crash."""

    def test_print_kernel_statistics_summary(self, capsys) -> None:
        """Print runs and names the best kernel."""
        from mmdstream.analysis import kernel_statistics_frame, print_kernel_statistics_summary

        df = kernel_statistics_frame(
            np.array([0.2, 0.6]), np.diag([0.04, 0.09]), kernel_names=['narrow', 'wide']
        )
        print_kernel_statistics_summary(df)

        captured = capsys.readouterr()
        assert "KERNEL STATISTICS" in captured.out
        assert "Highest power ratio: wide" in captured.out

    def test_print_null_distribution_summary(self, capsys) -> None:
        """Print runs with and without a statistic."""
        from mmdstream.analysis import (
            print_null_distribution_summary,
            summarize_null_distribution,
        )

        print_null_distribution_summary(summarize_null_distribution(np.arange(10.0), statistic=8.0))
        print_null_distribution_summary(summarize_null_distribution(np.arange(10.0)))

        captured = capsys.readouterr()
        assert "NULL DISTRIBUTION" in captured.out
        assert "p-value" in captured.out
