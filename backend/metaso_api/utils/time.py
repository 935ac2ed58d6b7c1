"""
Time utilities for the metaso adapter.
"""

import time


def unix_timestamp() -> int:
    """Current time in whole unix seconds (used for `created` fields)."""
    return int(time.time())


def timestamp_ms() -> int:
    """Monotonic clock in milliseconds, for measuring transfer durations."""
    return int(time.monotonic() * 1000)
