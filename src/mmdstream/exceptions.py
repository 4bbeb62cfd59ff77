"""
Error taxonomy for the estimation engine.

All errors are terminal: the engine never retries and never returns a
partial result. Callers own any retry policy (e.g. re-blocking the stream).

    ConfigurationError: missing kernel, empty kernel set, unsupported or
        incompatible selection options, custom kernel used as a template
    DataShapeError: malformed bursts (unequal or odd block counts) and
        kernel matrices that do not match a job's block sizes
    ComputationError: per-block kernel or distance computation failures
"""


class MMDError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(MMDError, ValueError):
    """Invalid or incomplete estimator configuration."""


class DataShapeError(MMDError, ValueError):
    """Burst or kernel matrix with an unusable shape."""


class ComputationError(MMDError, RuntimeError):
    """A numeric or library failure while computing a block."""
