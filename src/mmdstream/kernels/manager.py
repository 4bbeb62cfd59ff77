"""
Kernel registry with temporary precomputed overrides.

A slot holds a kernel; a slot may additionally be overridden by a
precomputed CustomKernel (e.g. during cross-validation), which kernel_at()
returns until restore_kernel_at() drops it again.
"""

import numpy as np
from typing import Iterator, List, Optional

from mmdstream.kernels.kernel import CustomKernel, Kernel


class KernelManager:
    """
    Ordered kernel slots.

    Attributes:
        kernels: Kernels as registered or assigned
        precomputed: Per-slot CustomKernel override, or None
    """

    def __init__(self, kernels: Optional[List[Kernel]] = None) -> None:
        self.kernels: List[Optional[Kernel]] = list(kernels or [])
        self.precomputed: List[Optional[CustomKernel]] = [None] * len(self.kernels)

    def num_kernels(self) -> int:
        return len(self.kernels)

    def __len__(self) -> int:
        return len(self.kernels)

    def __iter__(self) -> Iterator[Optional[Kernel]]:
        return (self.kernel_at(i) for i in range(len(self.kernels)))

    def push_back(self, kernel: Kernel) -> None:
        """Append a kernel slot."""
        self.kernels.append(kernel)
        self.precomputed.append(None)

    def kernel_at(self, i: int) -> Optional[Kernel]:
        """Effective kernel of slot i (the precomputed override if any)."""
        if i >= len(self.kernels):
            return None
        override = self.precomputed[i]
        return override if override is not None else self.kernels[i]

    def set_kernel_at(self, i: int, kernel: Kernel) -> None:
        """Assign slot i, growing the registry if i is the next free slot."""
        if i == len(self.kernels):
            self.push_back(kernel)
        else:
            self.kernels[i] = kernel

    def precompute_kernel_at(self, i: int, features: np.ndarray) -> CustomKernel:
        """
        Override slot i with its kernel matrix over features.

        Returns:
            The installed CustomKernel
        """
        kernel = self.kernels[i]
        if kernel is None:
            raise ValueError(f"Kernel slot {i} is empty")
        template = kernel.clone()
        template.init(features, features)
        override = CustomKernel(template.get_kernel_matrix())
        template.remove_lhs_and_rhs()
        self.precomputed[i] = override
        return override

    def restore_kernel_at(self, i: int) -> None:
        """Drop the precomputed override of slot i, if any."""
        if i < len(self.precomputed):
            self.precomputed[i] = None

    def clear(self) -> None:
        self.kernels = []
        self.precomputed = []
