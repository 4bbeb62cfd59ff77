"""
Tests for kernels, distances and the kernel registry.
"""

import numpy as np
import pytest


def _features(n: int = 10, dim: int = 3, seed: int = 0) -> np.ndarray:
    return np.random.default_rng(seed).normal(size=(n, dim))


class TestGaussianKernel:
    """Test the Gaussian kernel."""

    def test_matrix_values(self) -> None:
        """Entries are exp(-||x - y||^2 / width) in single precision."""
        from scipy.spatial.distance import cdist
        from mmdstream.kernels import GaussianKernel

        x = _features()
        km = GaussianKernel(width=2.0).init(x, x).get_kernel_matrix()

        expected = np.exp(-cdist(x, x, "sqeuclidean") / 2.0)
        assert km.dtype == np.float32
        assert km.shape == (10, 10)
        np.testing.assert_allclose(km, expected, rtol=1e-5, atol=1e-6)
        np.testing.assert_allclose(np.diag(km), 1.0, rtol=1e-6)
        np.testing.assert_array_equal(km, km.T)

    def test_invalid_width(self) -> None:
        """Non-positive widths are rejected."""
        from mmdstream.kernels import GaussianKernel

        with pytest.raises(ValueError, match="width must be positive"):
            GaussianKernel(width=0.0)

    def test_unbound_kernel_matrix(self) -> None:
        """An unbound kernel has no kernel matrix."""
        from mmdstream.kernels import GaussianKernel

        kernel = GaussianKernel()
        assert not kernel.has_features
        with pytest.raises(RuntimeError, match="not initialized"):
            kernel.get_kernel_matrix()

    def test_clone_is_unbound_copy(self) -> None:
        """clone() carries the parameters but not the features."""
        from mmdstream.kernels import GaussianKernel

        x = _features()
        kernel = GaussianKernel(width=3.0).init(x, x)
        clone = kernel.clone()

        assert clone is not kernel
        assert clone.width == 3.0
        assert not clone.has_features
        assert kernel.has_features

        clone.init(x, x)
        clone.remove_lhs_and_rhs()
        assert kernel.lhs is x


class TestOtherKernels:
    """Test custom and combined kernels."""

    def test_custom_kernel(self) -> None:
        """A custom kernel returns its matrix."""
        from mmdstream.constants import KernelType
        from mmdstream.kernels import CustomKernel

        matrix = np.eye(3)
        kernel = CustomKernel(matrix)

        assert kernel.kernel_type == KernelType.CUSTOM
        np.testing.assert_array_equal(kernel.get_kernel_matrix(), np.eye(3, dtype=np.float32))

        with pytest.raises(ValueError, match="2D"):
            CustomKernel(np.ones(3))

    def test_combined_kernel_is_weighted_sum(self) -> None:
        """A combined kernel sums its sub-kernels with their weights."""
        from mmdstream.kernels import CombinedKernel, GaussianKernel

        x = _features()
        k1, k2 = GaussianKernel(1.0), GaussianKernel(4.0)
        combined = CombinedKernel([k1, k2], weights=[0.25, 0.75])

        km = combined.init(x, x).get_kernel_matrix()
        expected = 0.25 * k1.compute(x, x) + 0.75 * k2.compute(x, x)
        np.testing.assert_allclose(km, expected, rtol=1e-5)

        uniform = CombinedKernel([k1, k2])
        np.testing.assert_allclose(uniform.weights, [0.5, 0.5])

        with pytest.raises(ValueError, match="Expected 2 weights"):
            CombinedKernel([k1, k2], weights=[1.0])


class TestKernelManager:
    """Test the kernel registry."""

    def test_slots(self) -> None:
        """Kernels are kept in order; out of range slots are None."""
        from mmdstream.kernels import GaussianKernel, KernelManager

        mgr = KernelManager()
        k1, k2 = GaussianKernel(1.0), GaussianKernel(2.0)
        mgr.push_back(k1)
        mgr.set_kernel_at(1, k2)

        assert mgr.num_kernels() == 2
        assert list(mgr) == [k1, k2]
        assert mgr.kernel_at(5) is None

        k3 = GaussianKernel(3.0)
        mgr.set_kernel_at(0, k3)
        assert mgr.kernel_at(0) is k3

        mgr.clear()
        assert len(mgr) == 0

    def test_precompute_and_restore(self) -> None:
        """A precomputed override shadows the slot until restored."""
        from mmdstream.kernels import CustomKernel, GaussianKernel, KernelManager

        x = _features()
        kernel = GaussianKernel(2.0)
        mgr = KernelManager([kernel])

        override = mgr.precompute_kernel_at(0, x)

        assert mgr.kernel_at(0) is override
        assert isinstance(override, CustomKernel)
        np.testing.assert_allclose(
            override.get_kernel_matrix(),
            GaussianKernel(2.0).init(x, x).get_kernel_matrix(),
        )
        assert not kernel.has_features

        mgr.restore_kernel_at(0)
        assert mgr.kernel_at(0) is kernel
        mgr.restore_kernel_at(7)


class TestDistances:
    """Test pairwise distances."""

    def test_euclidean_distance(self) -> None:
        """Condensed Euclidean distances match cdist."""
        from scipy.spatial.distance import cdist
        from mmdstream.kernels import EuclideanDistance

        x = _features(n=6)
        dist = EuclideanDistance().compute(x)
        full = cdist(x, x)

        assert dist.num_vectors == 6
        assert dist.condensed.dtype == np.float32
        for i in range(6):
            for j in range(6):
                assert dist.distance(i, j) == pytest.approx(full[i, j], rel=1e-5, abs=1e-6)
        np.testing.assert_allclose(dist.get_distance_matrix(), full, rtol=1e-5, atol=1e-6)

    def test_from_full_and_median(self) -> None:
        """A custom distance built from a full matrix keeps the upper triangle."""
        from mmdstream.kernels import CustomDistance

        full = np.array([
            [0.0, 1.0, 2.0],
            [1.0, 0.0, 4.0],
            [2.0, 4.0, 0.0],
        ])
        dist = CustomDistance.from_full(full)

        assert dist.distance(0, 2) == 2.0
        assert dist.distance(2, 1) == 4.0
        assert dist.distance(1, 1) == 0.0
        assert dist.median() == 2.0

    def test_invalid_condensed_size(self) -> None:
        """The condensed array must match the number of vectors."""
        from mmdstream.kernels import CustomDistance

        with pytest.raises(ValueError, match="need 3 entries"):
            CustomDistance(np.zeros(4), 3)
