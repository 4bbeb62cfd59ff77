"""
Kernel objects consumed by the estimation engine.

The engine only relies on the bind/compute/release life cycle defined by
Kernel: a template kernel is cloned per block, bound to that block against
itself, asked for its kernel matrix and released again.

Classes:
    Kernel: Abstract base with the bind/compute/release life cycle
    GaussianKernel: exp(-||x - y||^2 / width)
    CustomKernel: Precomputed kernel matrix
    CombinedKernel: Weighted sum of kernels
"""

import copy
import numpy as np
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sklearn.metrics.pairwise import rbf_kernel

from mmdstream.constants import KERNEL_MATRIX_DTYPE, KernelType


class Kernel(ABC):
    """
    Base kernel with bound left/right-hand side features.

    Subclasses implement compute(lhs, rhs) on raw feature arrays.
    """

    kernel_type: KernelType

    def __init__(self) -> None:
        self.lhs: Optional[np.ndarray] = None
        self.rhs: Optional[np.ndarray] = None

    @abstractmethod
    def compute(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        """Kernel matrix between the rows of lhs and rhs."""

    def init(self, lhs: np.ndarray, rhs: np.ndarray) -> "Kernel":
        """Bind the kernel to features (returns self)."""
        self.lhs = np.asarray(lhs)
        self.rhs = np.asarray(rhs)
        return self

    @property
    def has_features(self) -> bool:
        return self.lhs is not None and self.rhs is not None

    def get_kernel_matrix(self, dtype=KERNEL_MATRIX_DTYPE) -> np.ndarray:
        """
        Full kernel matrix over the bound features.

        Raises:
            RuntimeError: If the kernel is not bound to features
        """
        if not self.has_features:
            raise RuntimeError(f"{type(self).__name__} is not initialized with features")
        return np.asarray(self.compute(self.lhs, self.rhs), dtype=dtype)

    def remove_lhs_and_rhs(self) -> None:
        """Release the bound features."""
        self.lhs = None
        self.rhs = None

    def clone(self) -> "Kernel":
        """Unbound deep copy carrying the same parameters."""
        lhs, rhs = self.lhs, self.rhs
        self.lhs = self.rhs = None
        try:
            return copy.deepcopy(self)
        finally:
            self.lhs, self.rhs = lhs, rhs

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class GaussianKernel(Kernel):
    """
    Gaussian kernel k(x, y) = exp(-||x - y||^2 / width).

    Attributes:
        width: Kernel width (sklearn gamma = 1 / width)
    """

    kernel_type = KernelType.GAUSSIAN

    def __init__(self, width: float = 1.0) -> None:
        super().__init__()
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        self.width = float(width)

    def compute(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        return rbf_kernel(lhs, rhs, gamma=1.0 / self.width)

    def __repr__(self) -> str:
        return f"GaussianKernel(width={self.width:g})"


class CustomKernel(Kernel):
    """
    Precomputed kernel matrix.

    A custom kernel is bound to one specific set of features and therefore
    cannot serve as a template for per-block computation.
    """

    kernel_type = KernelType.CUSTOM

    def __init__(self, matrix: np.ndarray) -> None:
        super().__init__()
        matrix = np.asarray(matrix, dtype=KERNEL_MATRIX_DTYPE)
        if matrix.ndim != 2:
            raise ValueError(f"Custom kernel matrix must be 2D, got shape {matrix.shape}")
        self.matrix = matrix

    def compute(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        return self.matrix

    def get_kernel_matrix(self, dtype=KERNEL_MATRIX_DTYPE) -> np.ndarray:
        return self.matrix.astype(dtype, copy=False)


class CombinedKernel(Kernel):
    """
    Weighted sum of kernels, as installed by weighted kernel selection.

    Attributes:
        kernels: Sub-kernels
        weights: (n_kernels,) non-negative weights
    """

    kernel_type = KernelType.COMBINED

    def __init__(self, kernels: Sequence[Kernel], weights: Optional[Sequence[float]] = None) -> None:
        super().__init__()
        self.kernels: List[Kernel] = list(kernels)
        if not self.kernels:
            raise ValueError("CombinedKernel needs at least one kernel")
        if weights is None:
            weights = np.full(len(self.kernels), 1.0 / len(self.kernels))
        self.weights = np.asarray(weights, dtype=np.float64)
        if self.weights.shape != (len(self.kernels),):
            raise ValueError(
                f"Expected {len(self.kernels)} weights, got shape {self.weights.shape}"
            )

    def compute(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        total = np.zeros((lhs.shape[0], rhs.shape[0]), dtype=np.float64)
        for weight, kernel in zip(self.weights, self.kernels):
            total += weight * kernel.compute(lhs, rhs)
        return total

    def __repr__(self) -> str:
        return f"CombinedKernel({self.kernels!r}, weights={self.weights.tolist()})"
