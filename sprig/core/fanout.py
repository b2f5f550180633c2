"""Fan-out/fan-in of independent read-only sub-queries.

Operations such as resolving every branch's head commit issue one git
invocation per item. Those invocations only read a stable repository, so they
run on a thread pool and are joined before the operation returns.
"""

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def fan_out(func: Callable[[T], R], items: Iterable[T], max_workers: int = 8) -> list[R]:
    """Apply func to every item concurrently and collect results in input order.

    All submitted calls finish before this returns (join-all). If any call
    raises, the exception of the earliest failing item (in input order) is
    re-raised after the join.

    Args:
        func: Function applied to each item.
        items: Inputs.
        max_workers: Upper bound on concurrent calls.

    Returns:
        Results in the same order as items.
    """
    items = list(items)
    if not items:
        return []
    if len(items) == 1 or max_workers == 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        futures = [executor.submit(func, item) for item in items]
    # Leaving the with block waited for every future
    return [future.result() for future in futures]
