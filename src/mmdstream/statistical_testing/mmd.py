"""
Streaming MMD estimation engine.

MMD drives a single burst loop over its data manager for every operation:

    start -> next burst -> merge -> kernel matrices -> jobs -> fold -> ...
          -> empty burst -> end -> normalize

Operations:
    compute_statistic_variance: statistic and variance over the whole stream
    compute_statistic_and_Q: per-kernel statistics and their covariance (Q)
    sample_null: permutation null distribution
    compute_distance: pairwise distances for the median heuristic
    select_kernel: run a registered kernel selection policy

Per-block stages run in parallel within a burst; all accumulators are
owned by the driver and folded only after a stage has returned, in block
order. Bursts are processed strictly one after another.

Normalization of the statistic and variance depends on the test flavour
and is provided by subclasses (see btest.py).
"""

import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Tuple

from mmdstream.analysis.streaming_stats import (
    OnePassVariance,
    RunningCovarianceMatrix,
    RunningMean,
    RunningMeanVector,
)
from mmdstream.computation.jobs import (
    WithinBlockDirect,
    WithinBlockPermutation,
    create_statistic_job,
)
from mmdstream.computation.manager import ComputationManager
from mmdstream.constants import (
    DEFAULT_ALPHA,
    DEFAULT_NUM_RUNS,
    DEFAULT_TRAIN_TEST_RATIO,
    KernelSelectionMethod,
    NullApproximationMethod,
    StatisticType,
    VarianceEstimationMethod,
)
from mmdstream.exceptions import ComputationError, ConfigurationError
from mmdstream.kernels.distance import CustomDistance, EuclideanDistance
from mmdstream.kernels.kernel import Kernel
from mmdstream.kernels.manager import KernelManager
from mmdstream.statistical_testing.config import MMDConfig
from mmdstream.statistical_testing.kernel_selection import (
    check_selection_request,
    get_selection_policy,
)
from mmdstream.statistical_testing.stages import compute_jobs, compute_kernel, merge_samples
from mmdstream.streaming.iterators import iter_bursts

logger = logging.getLogger(__name__)

Job = Callable[[np.ndarray], float]


@dataclass
class _EngineState:
    """Configuration plus the jobs resolved from it for the current operation."""
    config: MMDConfig
    statistic_job: Optional[Job] = None
    permutation_job: Optional[Job] = None
    variance_job: Optional[Job] = None


class MMD(ABC):
    """
    Streaming MMD two-sample estimator.

    Attributes:
        data_manager: Streaming source (start/next/end, block sizes,
            blockwise flag, train/test split)
        kernel_manager: Slot 0 holds the kernel used by the test
        kernel_selection_manager: Candidate kernels for selection and for
            compute_statistic_and_Q()
    """

    def __init__(
        self,
        data_manager: Any,
        kernel: Optional[Kernel] = None,
        config: Optional[MMDConfig] = None,
    ) -> None:
        self.data_manager = data_manager
        self.kernel_manager = KernelManager()
        if kernel is not None:
            self.kernel_manager.push_back(kernel)
        self.kernel_selection_manager = KernelManager()
        self._state = _EngineState(config=config if config is not None else MMDConfig())

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> MMDConfig:
        return self._state.config

    def _configure(self, **changes: Any) -> None:
        self._state.config = replace(self._state.config, **changes)

    @property
    def statistic_type(self) -> StatisticType:
        return self._state.config.statistic_type

    @statistic_type.setter
    def statistic_type(self, value: StatisticType) -> None:
        self._configure(statistic_type=value)

    @property
    def variance_estimation_method(self) -> VarianceEstimationMethod:
        return self._state.config.variance_estimation_method

    @variance_estimation_method.setter
    def variance_estimation_method(self, value: VarianceEstimationMethod) -> None:
        self._configure(variance_estimation_method=value)

    @property
    def null_approximation_method(self) -> NullApproximationMethod:
        return self._state.config.null_approximation_method

    @null_approximation_method.setter
    def null_approximation_method(self, value: NullApproximationMethod) -> None:
        self._configure(null_approximation_method=value)

    @property
    def num_null_samples(self) -> int:
        return self._state.config.num_null_samples

    @num_null_samples.setter
    def num_null_samples(self, value: int) -> None:
        self._configure(num_null_samples=value)

    @property
    def use_gpu(self) -> bool:
        return self._state.config.use_gpu

    @use_gpu.setter
    def use_gpu(self, value: bool) -> None:
        self._configure(use_gpu=value)

    # ------------------------------------------------------------------
    # Kernels
    # ------------------------------------------------------------------

    def set_kernel(self, kernel: Kernel) -> None:
        self.kernel_manager.set_kernel_at(0, kernel)

    def get_kernel(self) -> Optional[Kernel]:
        return self.kernel_manager.kernel_at(0)

    def add_kernel(self, kernel: Kernel) -> None:
        """Add a candidate kernel for kernel selection."""
        self.kernel_selection_manager.push_back(kernel)

    def cleanup(self) -> None:
        """Drop every precomputed kernel override of the test's kernels."""
        for i in range(self.kernel_manager.num_kernels()):
            self.kernel_manager.restore_kernel_at(i)

    def _require_kernel(self) -> Kernel:
        kernel = self.kernel_manager.kernel_at(0)
        if kernel is None:
            raise ConfigurationError("Kernel is not set!")
        return kernel

    # ------------------------------------------------------------------
    # Normalization (test flavour)
    # ------------------------------------------------------------------

    @abstractmethod
    def normalize_statistic(self, statistic: float) -> float:
        """Scale the accumulated block statistic to the test statistic."""

    @abstractmethod
    def normalize_variance(self, variance: float) -> float:
        """Turn the accumulated permutation cross-term sum into a variance."""

    def get_direct_estimation_method(self) -> Job:
        """Variance job used by VarianceEstimationMethod.DIRECT."""
        return WithinBlockDirect(self.data_manager.blocksize_at(0))

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def _create_statistic_job(self) -> None:
        state = self._state
        bx = self.data_manager.blocksize_at(0)
        by = self.data_manager.blocksize_at(1)
        state.statistic_job = create_statistic_job(state.config.statistic_type, bx)
        state.permutation_job = WithinBlockPermutation(
            bx, by, state.config.statistic_type, seed=state.config.seed
        )

    def _create_variance_job(self) -> None:
        state = self._state
        if state.config.variance_estimation_method == VarianceEstimationMethod.DIRECT:
            state.variance_job = self.get_direct_estimation_method()
        else:
            state.variance_job = state.permutation_job

    def _create_computation_jobs(self) -> None:
        self._create_statistic_job()
        self._create_variance_job()

    def _computation_manager(self) -> ComputationManager:
        return ComputationManager(max_workers=self._state.config.max_workers)

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    def compute_statistic_variance(self) -> Tuple[float, float]:
        """
        Statistic and variance over one pass of the stream.

        Direct variance is the running mean of the per-block variance
        estimates and is returned as is. Permutation variance is the
        one-pass streaming variance of the permuted block statistics,
        normalized through normalize_variance().

        Returns:
            (normalized statistic, variance)

        Raises:
            ConfigurationError: If no kernel is set
        """
        kernel = self._require_kernel()
        config = self._state.config
        max_workers = config.max_workers

        statistic = RunningMean()
        direct_variance = RunningMean()
        permutation_variance = OnePassVariance()
        direct = config.variance_estimation_method == VarianceEstimationMethod.DIRECT

        cm = self._computation_manager()
        self._create_computation_jobs()
        cm.enqueue_job(self._state.statistic_job)
        cm.enqueue_job(self._state.variance_job)

        num_bursts = 0
        bursts = iter_bursts(self.data_manager)
        try:
            for burst in bursts:
                logger.debug("Burst %d: %d blocks", num_bursts, burst.num_blocks())
                blocks = merge_samples(burst, max_workers)
                compute_kernel(cm, blocks, kernel, max_workers)
                del blocks
                compute_jobs(cm, config.use_gpu)

                statistic.update_batch(cm.result(0))
                if direct:
                    direct_variance.update_batch(cm.result(1))
                else:
                    permutation_variance.update_batch(cm.result(1))
                num_bursts += 1
        finally:
            bursts.close()
            cm.done()
        logger.debug("Processed %d bursts", num_bursts)

        if direct:
            variance = direct_variance.mean
        else:
            variance = self.normalize_variance(permutation_variance.m2)
        return self.normalize_statistic(statistic.mean), variance

    def compute_statistic(self) -> float:
        return self.compute_statistic_variance()[0]

    def compute_variance(self) -> float:
        return self.compute_statistic_variance()[1]

    def compute_statistic_and_Q(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Per-kernel statistics and their pairwise covariance matrix Q.

        Blocks are paired as (2k, 2k+1) within each burst; Q(i, j) is the
        running mean of (m_i[2k] - m_i[2k+1]) * (m_j[2k] - m_j[2k+1]) over
        all pairs of the stream. Only the lower triangle is accumulated and
        each cell is mirrored after its update.

        Returns:
            (statistic, Q): (n_kernels,) normalized statistics and the
            (n_kernels, n_kernels) symmetric Q matrix

        Raises:
            ConfigurationError: If no candidate kernels were added
            DataShapeError: If a burst holds an odd number of blocks
        """
        num_kernels = self.kernel_selection_manager.num_kernels()
        if num_kernels == 0:
            raise ConfigurationError(
                "No kernels specified for kernel learning! "
                "Please add kernels using add_kernel() method!"
            )
        config = self._state.config
        max_workers = config.max_workers

        statistic = RunningMeanVector(num_kernels)
        Q = RunningCovarianceMatrix(num_kernels)

        cm = self._computation_manager()
        self._create_computation_jobs()
        cm.enqueue_job(self._state.statistic_job)

        num_bursts = 0
        bursts = iter_bursts(self.data_manager)
        try:
            for burst in bursts:
                burst.validate(require_even=True)
                num_blocks = burst.num_blocks()
                logger.debug("Burst %d: %d blocks, %d kernels", num_bursts, num_blocks, num_kernels)
                blocks = merge_samples(burst, max_workers)

                mmds = []
                for k in range(num_kernels):
                    kernel = self.kernel_selection_manager.kernel_at(k)
                    compute_kernel(cm, blocks, kernel, max_workers)
                    compute_jobs(cm, config.use_gpu)
                    mmds.append(list(cm.result(0)))
                del blocks

                for k in range(num_kernels):
                    statistic.update_batch(k, mmds[k])

                for i in range(num_kernels):
                    for j in range(i + 1):
                        for b in range(0, num_blocks - 1, 2):
                            term = (mmds[i][b] - mmds[i][b + 1]) * (mmds[j][b] - mmds[j][b + 1])
                            Q.update(i, j, term)
                        Q.mirror(i, j)
                num_bursts += 1
        finally:
            bursts.close()
            cm.done()
        logger.debug("Processed %d bursts", num_bursts)

        normalized = np.array([self.normalize_statistic(v) for v in statistic.values])
        return normalized, Q.values

    def sample_null(self) -> np.ndarray:
        """
        Permutation null distribution.

        Every burst's kernel matrices are computed once; the permutation
        job is then evaluated num_null_samples times on them. Replicate j
        folds its per-block values into its own running mean.

        Returns:
            (num_null_samples,) normalized null statistics

        Raises:
            ConfigurationError: If no kernel is set
        """
        kernel = self._require_kernel()
        config = self._state.config
        max_workers = config.max_workers
        num_null_samples = config.num_null_samples

        null_samples = RunningMeanVector(num_null_samples)

        cm = self._computation_manager()
        self._create_statistic_job()
        cm.enqueue_job(self._state.permutation_job)

        num_bursts = 0
        bursts = iter_bursts(self.data_manager)
        try:
            for burst in bursts:
                blocks = merge_samples(burst, max_workers)
                compute_kernel(cm, blocks, kernel, max_workers)
                del blocks
                for j in range(num_null_samples):
                    compute_jobs(cm, config.use_gpu)
                    null_samples.update_batch(j, cm.result(0))
                num_bursts += 1
        finally:
            bursts.close()
            cm.done()
        logger.debug("Sampled %d null replicates over %d bursts", num_null_samples, num_bursts)

        return np.array([self.normalize_statistic(v) for v in null_samples.values])

    # ------------------------------------------------------------------
    # Kernel selection
    # ------------------------------------------------------------------

    def compute_distance(self) -> CustomDistance:
        """
        Euclidean distances over the merged P and Q samples.

        Streams with blockwise mode off, so the first burst carries the
        whole (active) sample of each distribution as a single block.

        Raises:
            ComputationError: If no samples can be fetched or the distance
                matrix does not fit in memory
        """
        dm = self.data_manager
        blockwise = dm.is_blockwise()
        dm.set_blockwise(False)
        try:
            dm.start()
            try:
                samples = dm.next()
            finally:
                dm.end()
            if samples.empty():
                raise ComputationError("Could not fetch samples!")
            try:
                p_and_q = merge_samples(samples, max_workers=1)[0]
                return EuclideanDistance().compute(p_and_q)
            except MemoryError as e:
                raise ComputationError(
                    f"{e}, Data is too large! Computing distance matrix was not possible!"
                ) from e
        finally:
            dm.set_blockwise(blockwise)

    def select_kernel(
        self,
        method: KernelSelectionMethod,
        weighted: bool = False,
        train_test_ratio: float = DEFAULT_TRAIN_TEST_RATIO,
        num_runs: int = DEFAULT_NUM_RUNS,
        alpha: float = DEFAULT_ALPHA,
    ) -> Kernel:
        """
        Select the test kernel among the added candidates.

        The data manager is switched to training mode with the requested
        split while the policy runs; training mode is turned off and the
        split ratio reset to 0 before returning, also on failure.

        Args:
            method: Selection method
            weighted: Select a weighted combination (MAXIMIZE_MMD and
                MAXIMIZE_POWER only)
            train_test_ratio: Train:test ratio used during selection
            num_runs: Cross-validation runs (MAXIMIZE_XVALIDATION)
            alpha: Significance level (MAXIMIZE_XVALIDATION)

        Returns:
            The installed kernel

        Raises:
            ConfigurationError: On unsupported or incompatible options, no
                registered policy, or no candidate kernels
        """
        logger.debug("Entering kernel selection")
        method = check_selection_request(method, weighted)
        policy_cls = get_selection_policy(method, weighted)
        num_kernels = self.kernel_selection_manager.num_kernels()
        if num_kernels == 0:
            raise ConfigurationError(
                "No kernels specified for kernel selection! "
                "Please add kernels using add_kernel() method!"
            )
        logger.debug("Selecting kernels from a total of %d kernels", num_kernels)

        dm = self.data_manager
        dm.set_train_test_ratio(train_test_ratio)
        dm.set_train_mode(True)
        try:
            if method == KernelSelectionMethod.MEDIAN_HEURISTIC:
                distance = self.compute_distance()
                policy = policy_cls(self.kernel_selection_manager, self, distance=distance)
                dm.set_train_test_ratio(0)
                dm.reset()
            elif method == KernelSelectionMethod.MAXIMIZE_XVALIDATION:
                policy = policy_cls(
                    self.kernel_selection_manager, self, num_runs=num_runs, alpha=alpha
                )
            else:
                policy = policy_cls(self.kernel_selection_manager, self)

            selected = policy.select_kernel()
            if selected is None:
                raise ConfigurationError(f"{policy_cls.__name__} did not select a kernel!")
            self.kernel_manager.set_kernel_at(0, selected)
            self.kernel_manager.restore_kernel_at(0)
        finally:
            dm.set_train_mode(False)
            dm.set_train_test_ratio(0)
        logger.debug("Leaving kernel selection with %r", selected)
        return selected
