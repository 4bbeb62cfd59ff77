"""
Estimator configuration.

MMDConfig collects everything that selects which jobs run and how the
engine dispatches them. Enum fields accept members or integer codes.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from mmdstream.constants import (
    DEFAULT_NUM_NULL_SAMPLES,
    NullApproximationMethod,
    StatisticType,
    VarianceEstimationMethod,
)
from mmdstream.exceptions import ConfigurationError


def _coerce(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(m.name for m in enum_cls)
        raise ConfigurationError(f"Invalid {name}: {value!r} (expected one of {valid})") from None


@dataclass
class MMDConfig:
    """
    Configuration of the MMD estimation engine.

    Attributes:
        statistic_type: Per-block statistic estimator
        variance_estimation_method: DIRECT or PERMUTATION
        null_approximation_method: PERMUTATION or MMD1_GAUSSIAN (p-values)
        num_null_samples: Permutation replicates drawn by sample_null()
        use_gpu: Request accelerator execution of the jobs
        max_workers: Thread pool size for per-block stages (None: default)
        seed: Seed of the within-block permutation generator
    """
    statistic_type: StatisticType = StatisticType.UNBIASED_FULL
    variance_estimation_method: VarianceEstimationMethod = VarianceEstimationMethod.DIRECT
    null_approximation_method: NullApproximationMethod = NullApproximationMethod.PERMUTATION
    num_null_samples: int = DEFAULT_NUM_NULL_SAMPLES
    use_gpu: bool = False
    max_workers: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.statistic_type = _coerce(StatisticType, self.statistic_type, "statistic_type")
        self.variance_estimation_method = _coerce(
            VarianceEstimationMethod, self.variance_estimation_method, "variance_estimation_method"
        )
        self.null_approximation_method = _coerce(
            NullApproximationMethod, self.null_approximation_method, "null_approximation_method"
        )
        if int(self.num_null_samples) < 1:
            raise ConfigurationError(
                f"num_null_samples must be positive, got {self.num_null_samples}"
            )
        self.num_null_samples = int(self.num_null_samples)
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive, got {self.max_workers}")
        self.use_gpu = bool(self.use_gpu)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for key in ("statistic_type", "variance_estimation_method", "null_approximation_method"):
            d[key] = d[key].name
        return d
