"""
Burst container for block-structured streaming.

A burst is the unit fetched from a streaming source in one call: an ordered
pair of block sequences, one for distribution P and one for Q. A burst is
consumed exactly once and then cleared.

Classes:
    Burst: Paired P/Q block sequences
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List

from mmdstream.exceptions import DataShapeError


@dataclass
class Burst:
    """
    Paired block sequences fetched together from a streaming source.

    Attributes:
        blocks_p: Blocks from distribution P, each (Bx, d)
        blocks_q: Blocks from distribution Q, each (By, d)

    Contract:
        len(blocks_p) == len(blocks_q); the i-th P block is merged with
        the i-th Q block. An empty burst signals an exhausted stream.
    """
    blocks_p: List[np.ndarray] = field(default_factory=list)
    blocks_q: List[np.ndarray] = field(default_factory=list)

    def __getitem__(self, distribution: int) -> List[np.ndarray]:
        """Block sequence of distribution 0 (P) or 1 (Q)."""
        if distribution == 0:
            return self.blocks_p
        if distribution == 1:
            return self.blocks_q
        raise IndexError(f"distribution must be 0 or 1, got {distribution}")

    def num_blocks(self) -> int:
        """Number of P/Q block pairs."""
        return len(self.blocks_p)

    def empty(self) -> bool:
        return not self.blocks_p and not self.blocks_q

    def clear(self) -> None:
        """Drop all blocks (the burst has been consumed)."""
        self.blocks_p = []
        self.blocks_q = []

    @property
    def memory_bytes(self) -> int:
        """Approximate memory usage in bytes."""
        return sum(b.nbytes for b in self.blocks_p) + sum(b.nbytes for b in self.blocks_q)

    def validate(self, require_even: bool = False) -> None:
        """
        Check the burst's shape contract.

        Args:
            require_even: Also require an even number of blocks (pairwise
                covariance estimation pairs block 2k with block 2k+1)

        Raises:
            DataShapeError: On unequal P/Q block counts or an odd count
                when require_even is set
        """
        if len(self.blocks_p) != len(self.blocks_q):
            raise DataShapeError(
                f"Burst has {len(self.blocks_p)} blocks from P but "
                f"{len(self.blocks_q)} blocks from Q!"
            )
        num_blocks = self.num_blocks()
        if require_even and num_blocks % 2 != 0:
            raise DataShapeError(
                f"The number of blocks per burst ({num_blocks} this burst) has to be even!"
            )
