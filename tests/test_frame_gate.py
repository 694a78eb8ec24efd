"""
Drowsy Guard -- Frame Gate Tests
================================
Single-flight admission: drops while busy, recovers after errors,
close() drains the item in flight.
"""

import threading

from drowsy_guard.frame_gate import FrameGate


def test_admits_when_idle():
    seen = []
    gate = FrameGate(seen.append)
    assert gate.submit("a") is True
    assert gate.submit("b") is True
    assert seen == ["a", "b"]
    assert gate.admitted == 2
    assert gate.dropped == 0


def test_drops_while_busy():
    started = threading.Event()
    release = threading.Event()
    seen = []

    def slow_handler(item):
        seen.append(item)
        started.set()
        release.wait(5)

    gate = FrameGate(slow_handler)
    worker = threading.Thread(target=gate.submit, args=("first",))
    worker.start()
    assert started.wait(5)

    assert gate.busy
    assert gate.submit("second") is False

    release.set()
    worker.join(5)

    assert seen == ["first"]
    assert gate.dropped == 1
    assert not gate.busy
    assert gate.submit("third") is True
    assert seen == ["first", "third"]


def test_handler_error_clears_busy_flag():
    calls = []

    def failing(item):
        calls.append(item)
        raise RuntimeError("boom")

    gate = FrameGate(failing)
    assert gate.submit(1) is True
    assert not gate.busy
    assert gate.submit(2) is True
    assert calls == [1, 2]


def test_reentrant_submit_is_dropped():
    results = []
    gate = None

    def handler(item):
        results.append(gate.submit("nested"))

    gate = FrameGate(handler)
    gate.submit("outer")
    assert results == [False]


def test_closed_gate_rejects():
    seen = []
    gate = FrameGate(seen.append)
    gate.close()
    assert gate.submit("x") is False
    assert seen == []


def test_only_one_handler_runs_at_a_time():
    active = []
    peak = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def handler(item):
        with lock:
            active.append(item)
            peak.append(len(active))
        threading.Event().wait(0.01)
        with lock:
            active.remove(item)

    gate = FrameGate(handler)

    def submit_many(n):
        barrier.wait()
        for i in range(20):
            gate.submit((n, i))

    threads = [threading.Thread(target=submit_many, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert max(peak) == 1
    assert gate.admitted == len(peak)


def test_close_waits_for_item_in_flight():
    started = threading.Event()
    release = threading.Event()
    seen = []

    def slow_handler(item):
        started.set()
        release.wait(5)
        seen.append(item)

    gate = FrameGate(slow_handler)
    worker = threading.Thread(target=gate.submit, args=("first",))
    worker.start()
    assert started.wait(5)

    closer = threading.Thread(target=gate.close)
    closer.start()
    closer.join(0.05)
    assert closer.is_alive()
    assert seen == []

    release.set()
    worker.join(5)
    closer.join(5)
    assert not closer.is_alive()
    assert seen == ["first"]
    assert gate.closed
    assert gate.submit("late") is False
    assert seen == ["first"]


def test_close_twice_returns():
    gate = FrameGate(lambda item: None)
    gate.close()
    closer = threading.Thread(target=gate.close)
    closer.start()
    closer.join(2)
    assert not closer.is_alive()


def test_every_submission_is_counted_under_contention():
    gate = FrameGate(lambda item: threading.Event().wait(0.001))
    barrier = threading.Barrier(8)

    def submit_many():
        barrier.wait()
        for i in range(200):
            gate.submit(i)

    threads = [threading.Thread(target=submit_many) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(20)

    assert gate.admitted + gate.dropped == 8 * 200
    assert gate.dropped > 0
