"""
Human-like pauses between browser actions.
"""

import random
import time


def delay(min_ms: int, max_ms: int) -> int:
    """
    Sleep for a uniformly random whole number of milliseconds in
    ``[min_ms, max_ms]`` (both inclusive).

    Returns the chosen duration in milliseconds.
    """
    if min_ms < 0 or max_ms < min_ms:
        raise ValueError(f"invalid delay range: {min_ms}..{max_ms}")
    ms = random.randint(min_ms, max_ms)
    time.sleep(ms / 1000)
    return ms


def pause(ms: int) -> None:
    """Sleep for a fixed number of milliseconds."""
    time.sleep(ms / 1000)
