"""
Kernel selection plug-in contract.

A selection policy receives the candidate kernels (and the estimator that
owns them) and returns the kernel to install for the test. Policies are
registered per (method, weighted) pair; MMD.select_kernel() looks them up
here and only ever calls select_kernel() on the policy it built.

Usage:
    >>> @register_selection_policy(KernelSelectionMethod.MAXIMIZE_MMD)
    ... class MaxMeasure(KernelSelection):
    ...     def select_kernel(self):
    ...         statistic, _ = self.estimator.compute_statistic_and_Q()
    ...         return self.kernel_mgr.kernel_at(int(np.argmax(statistic)))

Options passed to the policy constructor:
    MEDIAN_HEURISTIC: distance (CustomDistance over the merged sample)
    MAXIMIZE_XVALIDATION: num_runs, alpha
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Tuple, Type

from mmdstream.constants import KernelSelectionMethod
from mmdstream.exceptions import ConfigurationError
from mmdstream.kernels.kernel import Kernel
from mmdstream.kernels.manager import KernelManager


_UNWEIGHTED_ONLY = (
    KernelSelectionMethod.MEDIAN_HEURISTIC,
    KernelSelectionMethod.MAXIMIZE_XVALIDATION,
)


class KernelSelection(ABC):
    """
    Base class of kernel selection policies.

    Attributes:
        kernel_mgr: Candidate kernels
        estimator: Estimator owning the candidates (its data manager is in
            training mode while the policy runs)
        options: Method-specific options
    """

    def __init__(self, kernel_mgr: KernelManager, estimator: Any = None, **options: Any) -> None:
        self.kernel_mgr = kernel_mgr
        self.estimator = estimator
        self.options = options

    @abstractmethod
    def select_kernel(self) -> Kernel:
        """Return the chosen kernel (a candidate or a combination of them)."""


_POLICIES: Dict[Tuple[KernelSelectionMethod, bool], Type[KernelSelection]] = {}


def check_selection_request(method: Any, weighted: bool) -> KernelSelectionMethod:
    """
    Validate a (method, weighted) request.

    Raises:
        ConfigurationError: If the method is unknown or does not support
            weighted selection
    """
    try:
        method = KernelSelectionMethod(method)
    except ValueError:
        raise ConfigurationError(
            f"Unsupported kernel selection method {method!r}! Presently only accepted values are "
            + ", ".join(m.name for m in KernelSelectionMethod)
        ) from None
    if weighted and method in _UNWEIGHTED_ONLY:
        raise ConfigurationError(f"Weighted kernel selection is not possible with {method.name}!")
    return method


def register_selection_policy(
    method: KernelSelectionMethod,
    weighted: bool = False,
) -> Callable[[Type[KernelSelection]], Type[KernelSelection]]:
    """Class decorator registering a policy for (method, weighted)."""
    method = check_selection_request(method, weighted)

    def decorator(cls: Type[KernelSelection]) -> Type[KernelSelection]:
        if not (isinstance(cls, type) and issubclass(cls, KernelSelection)):
            raise TypeError(f"{cls!r} is not a KernelSelection subclass")
        _POLICIES[(method, bool(weighted))] = cls
        return cls

    return decorator


def unregister_selection_policy(method: KernelSelectionMethod, weighted: bool = False) -> None:
    _POLICIES.pop((KernelSelectionMethod(method), bool(weighted)), None)


def get_selection_policy(method: Any, weighted: bool = False) -> Type[KernelSelection]:
    """
    Registered policy class for (method, weighted).

    Raises:
        ConfigurationError: If the request is invalid or no policy is registered
    """
    method = check_selection_request(method, weighted)
    try:
        return _POLICIES[(method, bool(weighted))]
    except KeyError:
        kind = "weighted" if weighted else "unweighted"
        raise ConfigurationError(
            f"Unsupported kernel selection method: no {kind} policy registered for {method.name}!"
        ) from None
