"""
Kernel, distance and kernel registry objects used by the estimators.

Usage:
    >>> from mmdstream.kernels import GaussianKernel, KernelManager
    >>> km = KernelManager()
    >>> km.push_back(GaussianKernel(width=2.0))
"""

from mmdstream.kernels.kernel import (
    Kernel,
    GaussianKernel,
    CustomKernel,
    CombinedKernel,
)

from mmdstream.kernels.distance import (
    CustomDistance,
    EuclideanDistance,
)

from mmdstream.kernels.manager import KernelManager

__all__ = [
    "Kernel",
    "GaussianKernel",
    "CustomKernel",
    "CombinedKernel",
    "CustomDistance",
    "EuclideanDistance",
    "KernelManager",
]
