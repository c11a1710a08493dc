from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def ordered_map(fn: Callable[[T], R], items: Sequence[T], max_workers: int = 1) -> List[R]:
    """Apply fn to every item, on a thread pool when max_workers > 1.

    Results are returned in input order regardless of completion order.
    """

    if max_workers <= 1 or len(items) <= 1:
        return [fn(it) for it in items]

    results: List[Optional[R]] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=int(max_workers)) as ex:
        futs = {ex.submit(fn, it): i for i, it in enumerate(items)}
        for fut in as_completed(futs):
            results[futs[fut]] = fut.result()
    return results  # type: ignore[return-value]


class SessionPool:
    """One requests.Session per thread.

    An injected session is returned as is to every thread.
    """

    def __init__(self, session: Any = None) -> None:
        self._shared = session
        self._local = threading.local()

    def get(self) -> Any:
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            import requests

            session = requests.Session()
            self._local.session = session
        return session
