"""
Burst iteration over any streaming source.

A streaming source is any object exposing start(), next() and end(), where
next() returns bursts until an empty one marks the end of the pass. These
generators wrap that protocol so drivers can use a plain for-loop while the
pass is still started and ended exactly once.

Functions:
    iter_bursts: Iterate over the non-empty bursts of one pass
    count_blocks: Count block pairs of one pass
"""

from typing import Generator

from mmdstream.streaming.burst import Burst


def iter_bursts(source) -> Generator[Burst, None, None]:
    """
    Iterate over one full pass of a streaming source.

    The source is started before the first burst and ended after the last
    one, also when the consumer stops early or raises.

    Args:
        source: Object with start(), next() -> Burst and end()

    Yields:
        Each non-empty Burst, in stream order

    Example:
        >>> for burst in iter_bursts(data_manager):
        ...     print(burst.num_blocks())
    """
    source.start()
    try:
        burst = source.next()
        while not burst.empty():
            yield burst
            burst = source.next()
    finally:
        source.end()


def count_blocks(source) -> int:
    """Count the block pairs served by one pass (consumes a pass)."""
    return sum(burst.num_blocks() for burst in iter_bursts(source))
