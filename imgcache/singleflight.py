from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar


T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Collapse concurrent calls for the same key into one execution.

    The first caller for a key runs `fn`; callers arriving while it runs wait on
    the same Future and get its result (or its exception). The key is released
    as soon as the leader finishes, so a failure is not remembered and the next
    call retries.

    Usage:
        sf = SingleFlight()
        data, leader = sf.do(digest, lambda: renderer.render(req), timeout=15)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inflight: Dict[str, Future] = {}

    def do(self, key: str, fn: Callable[[], T], timeout: Optional[float] = None) -> Tuple[T, bool]:
        """
        Returns (result, leader) where leader is True for the caller that ran `fn`.
        Waiters raise concurrent.futures.TimeoutError after `timeout` seconds;
        the leader itself is bounded only by `fn`.
        """
        with self._lock:
            fut = self._inflight.get(key)
            leader = fut is None
            if leader:
                fut = Future()
                fut.set_running_or_notify_cancel()
                self._inflight[key] = fut

        if not leader:
            return fut.result(timeout=timeout), False

        try:
            result = fn()
        except BaseException as e:
            fut.set_exception(e)
            raise
        else:
            fut.set_result(result)
            return result, True
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def pending(self) -> int:
        with self._lock:
            return len(self._inflight)
