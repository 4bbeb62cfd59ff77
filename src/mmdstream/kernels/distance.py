"""
Pairwise distances for the median heuristic.

The distance matrix over the merged P and Q sample is stored in condensed
(upper-triangle) form, as produced by scipy's pdist.
"""

import numpy as np
from scipy.spatial.distance import pdist, squareform

from mmdstream.constants import KERNEL_MATRIX_DTYPE


class CustomDistance:
    """
    Precomputed symmetric distance matrix in condensed form.

    Attributes:
        condensed: (n * (n - 1) / 2,) upper-triangle distances
        num_vectors: Number of samples n
    """

    def __init__(self, condensed: np.ndarray, num_vectors: int) -> None:
        expected = num_vectors * (num_vectors - 1) // 2
        if condensed.shape != (expected,):
            raise ValueError(
                f"Condensed distances for {num_vectors} vectors need {expected} entries, "
                f"got shape {condensed.shape}"
            )
        self.condensed = condensed
        self.num_vectors = num_vectors

    @classmethod
    def from_full(cls, matrix: np.ndarray) -> "CustomDistance":
        """Build from a full square distance matrix (upper triangle is kept)."""
        matrix = np.asarray(matrix, dtype=KERNEL_MATRIX_DTYPE)
        condensed = squareform(matrix, checks=False)
        return cls(condensed, matrix.shape[0])

    def distance(self, i: int, j: int) -> float:
        """Distance between samples i and j."""
        if i == j:
            return 0.0
        if i > j:
            i, j = j, i
        n = self.num_vectors
        return float(self.condensed[n * i - i * (i + 1) // 2 + (j - i - 1)])

    def get_distance_matrix(self) -> np.ndarray:
        """Full square distance matrix."""
        return squareform(self.condensed)

    def median(self) -> float:
        """Median pairwise distance."""
        return float(np.median(self.condensed)) if self.condensed.size else 0.0


class EuclideanDistance:
    """Euclidean distance between the rows of a feature array."""

    def compute(self, features: np.ndarray) -> CustomDistance:
        features = np.asarray(features)
        condensed = pdist(features, metric="euclidean").astype(KERNEL_MATRIX_DTYPE)
        return CustomDistance(condensed, features.shape[0])
