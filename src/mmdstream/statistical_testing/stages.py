"""
Per-burst stages of the estimation engine.

    merge_samples: P block i + Q block i -> merged block i
    compute_kernel: merged blocks -> kernel matrices in the computation manager
    compute_jobs: evaluate the enqueued jobs on CPU or accelerator

Each stage fans out over the block index; slot i always corresponds to
input block i.
"""

import numpy as np
from typing import List, Optional

from mmdstream.computation.manager import ComputationManager, parallel_map
from mmdstream.constants import KernelType
from mmdstream.exceptions import ComputationError, ConfigurationError
from mmdstream.kernels.kernel import Kernel
from mmdstream.streaming.burst import Burst


def merge_samples(burst: Burst, max_workers: Optional[int] = None) -> List[np.ndarray]:
    """
    Merge every P block with the matching Q block (P rows first).

    The burst is cleared once merged.

    Raises:
        DataShapeError: If the burst has unequal P/Q block counts
    """
    burst.validate()
    pairs = list(zip(burst[0], burst[1]))
    blocks = parallel_map(lambda pair: np.vstack(pair), pairs, max_workers)
    burst.clear()
    return blocks


def compute_kernel(
    cm: ComputationManager,
    blocks: List[np.ndarray],
    kernel: Kernel,
    max_workers: Optional[int] = None,
) -> None:
    """
    Fill the computation manager with one kernel matrix per block.

    The template kernel is cloned per block so no bound state is shared
    between tasks.

    Numeric and library failures of a block (ValueError, including
    numpy's LinAlgError, TypeError, ArithmeticError and MemoryError) are
    reported as ComputationError. Any other exception is a defect of the
    kernel itself and propagates unchanged.

    Raises:
        ConfigurationError: If the template is a precomputed custom kernel
        ComputationError: If a block's kernel matrix cannot be computed
    """
    if kernel.kernel_type == KernelType.CUSTOM:
        raise ConfigurationError("Underlying kernel cannot be custom!")

    def kernel_matrix(block: np.ndarray) -> np.ndarray:
        clone = kernel.clone()
        try:
            clone.init(block, block)
            return clone.get_kernel_matrix()
        except (ValueError, TypeError, ArithmeticError, MemoryError) as e:
            raise ComputationError(f"{e}, try using fewer blocks per burst!") from e
        finally:
            clone.remove_lhs_and_rhs()

    matrices = parallel_map(kernel_matrix, blocks, max_workers)
    cm.num_data(len(matrices))
    for i, km in enumerate(matrices):
        cm.set_data(i, km)


def compute_jobs(cm: ComputationManager, use_gpu: bool) -> None:
    """Evaluate all enqueued jobs on the selected executor."""
    if use_gpu:
        cm.use_gpu().compute_data_parallel_jobs()
    else:
        cm.use_cpu().compute_data_parallel_jobs()
