import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from autocompleted.services.single_flight import SingleFlight


class CountingFlight(SingleFlight):
    def __init__(self):
        super().__init__()
        self.joined = threading.Semaphore(0)

    def join(self, key):
        result = super().join(key)
        self.joined.release()
        return result


def test_concurrent_callers_share_one_execution():
    flight = CountingFlight()
    started = threading.Event()
    release = threading.Event()
    calls = []

    def work():
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return "[]"

    with ThreadPoolExecutor(max_workers=5) as pool:
        leader = pool.submit(flight.run, "cat", work, 5)
        assert started.wait(timeout=5)
        followers = [pool.submit(flight.run, "cat", work, 5) for _ in range(4)]
        # Leader plus four followers have joined the in-flight marker
        for _ in range(5):
            assert flight.joined.acquire(timeout=5)
        release.set()
        results = [leader.result()] + [f.result() for f in followers]

    assert results == ["[]"] * 5
    assert len(calls) == 1
    assert len(flight) == 0


def test_sequential_calls_run_again():
    flight = SingleFlight()
    calls = []

    def work():
        calls.append(1)
        return str(len(calls))

    assert flight.run("cat", work, 1) == "1"
    assert flight.run("cat", work, 1) == "2"


def test_leader_failure_is_shared_and_marker_cleared():
    flight = SingleFlight()

    def boom():
        raise RuntimeError("db down")

    with pytest.raises(RuntimeError):
        flight.run("cat", boom, 1)

    assert len(flight) == 0


def test_follower_receives_leader_exception():
    flight = SingleFlight()
    future, leader = flight.join("cat")
    assert leader is True

    follower_future, follower_is_leader = flight.join("cat")
    assert follower_is_leader is False
    assert follower_future is future

    future.set_exception(RuntimeError("db down"))
    flight.finish("cat", future)

    with pytest.raises(RuntimeError):
        follower_future.result(timeout=1)
    assert len(flight) == 0
