import time
from contextlib import contextmanager
from typing import Callable, Generator


@contextmanager
def measure(record: Callable[[float], None]) -> Generator[None, None, None]:
    """
    Time the enclosed block and hand the elapsed seconds to `record`.

    `record` runs on every exit path (return, exception, cancellation), so
    exactly one measurement is emitted per block.

    Example:
        >>> with measure(lambda elapsed: metrics.observe_histogram("x_time", elapsed)):
        ...     run_query()
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        record(time.perf_counter() - start)
