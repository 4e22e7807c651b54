import threading
import time

import pytest

from assayeval.distributed import multi


@pytest.mark.parametrize(("requested", "available", "expected"), [
    (0, 8, 8),
    (None, 8, 8),
    (-2, 8, 1),
    (4, 8, 4),
    (16, 8, 8),
])
def test_get_cores(requested, available, expected):
    assert multi.get_cores(requested, available) == expected


def test_get_cores_uses_machine(mocker):
    mocker.patch("assayeval.distributed.multi.multiprocessing.cpu_count", return_value=6)
    assert multi.get_cores(0) == 6


def _slow_square(x, delay):
    time.sleep(delay)
    return x * x


def test_run_multicore_keeps_input_order():
    items = [(1, 0.3), (2, 0.0), (3, 0.1)]
    assert multi.run_multicore(_slow_square, items, 3) == [1, 4, 9]


def test_run_multicore_waits_for_every_item():
    seen = []
    lock = threading.Lock()

    def record(x):
        time.sleep(0.05)
        with lock:
            seen.append(x)
        return x

    out = multi.run_multicore(record, [(i,) for i in range(6)], 2)
    assert out == list(range(6))
    assert sorted(seen) == list(range(6))


def test_run_multicore_no_items():
    assert multi.run_multicore(_slow_square, [], 4) == []
