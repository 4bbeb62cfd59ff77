"""
In-memory streaming source for two-sample data.

DataManager holds the samples of P and Q and serves them as a single-pass
sequence of bursts. Each burst carries up to ``num_blocks_per_burst`` blocks
per distribution; the pass ends with an empty burst.

Design Principles:
    - Bursts are views into the held arrays (no copy until merging)
    - Block sizes are proportional to the sample sizes of P and Q
    - A train/test split restricts every pass to one side of the split
    - Non-blockwise mode serves each whole sample as a single block

Usage:
    >>> dm = DataManager(samples_p, samples_q)
    >>> dm.set_blocksize(32)
    >>> dm.set_num_blocks_per_burst(4)
    >>> dm.start()
    >>> burst = dm.next()
    >>> while not burst.empty():
    ...     burst = dm.next()
    >>> dm.end()
"""

import warnings
import numpy as np
from typing import Generator, List, Optional

from mmdstream.exceptions import ConfigurationError
from mmdstream.streaming.burst import Burst


def _as_samples(samples: np.ndarray, name: str) -> np.ndarray:
    samples = np.asarray(samples)
    if samples.ndim == 1:
        samples = samples.reshape(-1, 1)
    if samples.ndim != 2:
        raise ValueError(f"Samples from {name} must be 1D or 2D, got shape {samples.shape}")
    if samples.shape[0] == 0:
        raise ValueError(f"Samples from {name} are empty")
    return samples


class DataManager:
    """
    Single-pass burst source over in-memory samples of P and Q.

    Attributes:
        samples: [P, Q] sample arrays, each (N, d)
    """

    def __init__(self, samples_p: np.ndarray, samples_q: np.ndarray) -> None:
        p = _as_samples(samples_p, "P")
        q = _as_samples(samples_q, "Q")
        if p.shape[1] != q.shape[1]:
            raise ValueError(
                f"P and Q must have the same dimension, got {p.shape[1]} and {q.shape[1]}"
            )
        self.samples: List[np.ndarray] = [p, q]
        self._blocksize: Optional[int] = None
        self._num_blocks_per_burst = 1
        self._blockwise = False
        self._train_test_ratio = 0.0
        self._train_mode = False
        self._iterator: Optional[Generator[Burst, None, None]] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_blocksize(self, blocksize: int) -> None:
        """
        Set the combined block size and switch to blockwise streaming.

        The block size of each distribution is proportional to its share of
        the total sample size and must come out as a whole number.

        Raises:
            ConfigurationError: If the block size cannot be split exactly
        """
        blocksize = int(blocksize)
        n_total = self.samples[0].shape[0] + self.samples[1].shape[0]
        for i in range(2):
            share = blocksize * self.samples[i].shape[0]
            if blocksize < 2 or share % n_total != 0 or share // n_total < 1:
                raise ConfigurationError(
                    f"Block size {blocksize} cannot be split proportionally between "
                    f"{self.samples[0].shape[0]} and {self.samples[1].shape[0]} samples"
                )
        self._blocksize = blocksize
        self._blockwise = True

    def set_num_blocks_per_burst(self, num_blocks_per_burst: int) -> None:
        if num_blocks_per_burst < 1:
            raise ConfigurationError(
                f"num_blocks_per_burst must be positive, got {num_blocks_per_burst}"
            )
        self._num_blocks_per_burst = int(num_blocks_per_burst)

    @property
    def num_blocks_per_burst(self) -> int:
        return self._num_blocks_per_burst

    def is_blockwise(self) -> bool:
        return self._blockwise

    def set_blockwise(self, blockwise: bool) -> None:
        """
        Toggle blockwise streaming.

        Raises:
            ConfigurationError: If blockwise is requested without a block size
        """
        if blockwise and self._blocksize is None:
            raise ConfigurationError("Block size is not set! Call set_blocksize() first")
        self._blockwise = bool(blockwise)

    def set_train_test_ratio(self, ratio: float) -> None:
        """
        Set the train:test ratio (0 disables the split).

        A ratio r places the first N * r / (r + 1) samples of each
        distribution in the training set.
        """
        if ratio < 0:
            raise ConfigurationError(f"train_test_ratio must be non-negative, got {ratio}")
        self._train_test_ratio = float(ratio)

    def get_train_test_ratio(self) -> float:
        return self._train_test_ratio

    def set_train_mode(self, on: bool) -> None:
        self._train_mode = bool(on)

    def is_train_mode(self) -> bool:
        return self._train_mode

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    def _active_samples(self, i: int) -> np.ndarray:
        samples = self.samples[i]
        if self._train_test_ratio == 0:
            return samples
        r = self._train_test_ratio
        n_train = int(samples.shape[0] * r / (r + 1))
        return samples[:n_train] if self._train_mode else samples[n_train:]

    def num_samples_at(self, i: int) -> int:
        """Number of samples of distribution i served by a pass."""
        return self._active_samples(i).shape[0]

    def blocksize_at(self, i: int) -> int:
        """Block size of distribution i (the whole sample when not blockwise)."""
        if not self._blockwise:
            return self.num_samples_at(i)
        n_total = self.samples[0].shape[0] + self.samples[1].shape[0]
        return self._blocksize * self.samples[i].shape[0] // n_total

    def num_blocks(self) -> int:
        """Number of block pairs served by a pass."""
        return min(
            self.num_samples_at(i) // max(self.blocksize_at(i), 1) for i in range(2)
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def _iter_bursts(self) -> Generator[Burst, None, None]:
        p = self._active_samples(0)
        q = self._active_samples(1)
        bx = self.blocksize_at(0)
        by = self.blocksize_at(1)
        num_blocks = self.num_blocks()

        dropped_p = p.shape[0] - num_blocks * bx
        dropped_q = q.shape[0] - num_blocks * by
        if dropped_p or dropped_q:
            warnings.warn(
                f"Dropping {dropped_p} samples from P and {dropped_q} samples from Q "
                f"that do not fill a whole block"
            )

        for first in range(0, num_blocks, self._num_blocks_per_burst):
            last = min(first + self._num_blocks_per_burst, num_blocks)
            yield Burst(
                blocks_p=[p[b * bx:(b + 1) * bx] for b in range(first, last)],
                blocks_q=[q[b * by:(b + 1) * by] for b in range(first, last)],
            )

    def start(self) -> None:
        """Begin a new pass over the data."""
        self._iterator = self._iter_bursts()

    def next(self) -> Burst:
        """
        Fetch the next burst of the current pass.

        Returns:
            The next Burst, or an empty Burst once the pass is exhausted

        Raises:
            RuntimeError: If no pass has been started
        """
        if self._iterator is None:
            raise RuntimeError("Stream is not started! Call start() first")
        return next(self._iterator, Burst())

    def end(self) -> None:
        """Finish the current pass."""
        if self._iterator is not None:
            self._iterator.close()
        self._iterator = None

    def reset(self) -> None:
        """Drop any pass in progress; the next pass starts from the first block."""
        self.end()
