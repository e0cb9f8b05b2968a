"""
Bounded fan-out for independent, idempotent tool calls.

Calls run on a thread pool; the caller blocks until every call has finished
or the shared deadline has passed (join barrier). Each item yields exactly
one ``CallOutcome`` in input order, so a slow or failing call never affects
its siblings.
"""

import concurrent.futures as _fut
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from linkd.errors import ToolTimeout

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class CallOutcome(Generic[T, R]):
    item: T
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def map_with_timeout(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: int,
    timeout: float,
) -> List[CallOutcome]:
    """Run ``fn`` over ``items`` concurrently with one deadline for the batch.

    Args:
        fn: Callable applied to each item.
        items: Inputs; order is preserved in the result.
        max_workers: Upper bound on parallel calls.
        timeout: Seconds to wait for the whole batch.

    Returns:
        One CallOutcome per item. Calls still running at the deadline get a
        ``ToolTimeout`` error; exceptions raised by ``fn`` are captured.
    """
    if not items:
        return []

    executor = _fut.ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items))))
    deadline = time.monotonic() + timeout
    try:
        futures = [executor.submit(fn, item) for item in items]
        _fut.wait(futures, timeout=max(0.0, deadline - time.monotonic()))

        outcomes: List[CallOutcome[Any, Any]] = []
        for item, future in zip(items, futures):
            if not future.done():
                future.cancel()
                outcomes.append(CallOutcome(item=item, error=ToolTimeout(f"timed out after {timeout:.1f}s")))
                continue
            exc = future.exception()
            if exc is not None:
                outcomes.append(CallOutcome(item=item, error=exc))
            else:
                outcomes.append(CallOutcome(item=item, value=future.result()))
        return outcomes
    finally:
        # Do not block on stragglers; their results are discarded.
        executor.shutdown(wait=False, cancel_futures=True)
