import time


def _now_ms() -> int:
    """Return current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
