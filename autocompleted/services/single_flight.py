# autocompleted/services/single_flight.py
# Responsibility: Lets concurrent cache misses for the same key share one store lookup.

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Tuple


class SingleFlight:
    """
    Per-key in-flight markers.

    The first caller for a key becomes the leader and runs the work; callers
    arriving while it runs wait on the leader's Future and receive the same
    result (or the same exception).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[str, Future] = {}

    def join(self, key: str) -> Tuple[Future, bool]:
        """
        Returns the in-flight Future for ``key`` and whether the caller is the
        leader. The leader must call ``finish`` when done.
        """
        with self._lock:
            future = self._calls.get(key)
            if future is not None:
                return future, False
            future = Future()
            self._calls[key] = future
            return future, True

    def finish(self, key: str, future: Future) -> None:
        """Removes the marker. Waiters already holding the Future are unaffected."""
        with self._lock:
            if self._calls.get(key) is future:
                del self._calls[key]

    def run(self, key: str, work: Callable[[], str], timeout: float) -> str:
        """
        Runs ``work`` once per concurrent group of callers for ``key``.

        Raises:
            concurrent.futures.TimeoutError: A follower waited longer than ``timeout``.
            Exception: Whatever ``work`` raised in the leader.
        """
        future, leader = self.join(key)
        if not leader:
            return future.result(timeout=timeout)

        try:
            result = work()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self.finish(key, future)

    def __len__(self) -> int:
        with self._lock:
            return len(self._calls)
