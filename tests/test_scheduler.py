import threading

import pytest

from studyroom.core.scheduler import ManualScheduler, ThreadedScheduler


def test_manual_scheduler_fires_in_due_order():
    scheduler = ManualScheduler()
    calls = []

    scheduler.call_later(30, lambda: calls.append("late"))
    scheduler.call_later(10, lambda: calls.append("early"))
    scheduler.call_soon(lambda: calls.append("soon"))

    scheduler.advance(20)
    assert calls == ["soon", "early"]
    assert scheduler.now == 20

    scheduler.advance(10)
    assert calls == ["soon", "early", "late"]


def test_manual_scheduler_periodic_and_cancel():
    scheduler = ManualScheduler()
    ticks = []

    ticker = scheduler.call_every(100, lambda: ticks.append(scheduler.now))
    assert scheduler.active_tickers() == 1

    scheduler.advance(350)
    assert ticks == [100, 200, 300]

    ticker.cancel()
    scheduler.advance(500)
    assert ticks == [100, 200, 300]
    assert not ticker.active
    assert scheduler.active_tickers() == 0


def test_manual_scheduler_forgets_cancelled_tickers_while_advancing():
    scheduler = ManualScheduler()

    for _ in range(50):
        scheduler.call_every(10, lambda: None).cancel()
    scheduler.advance(10)

    assert scheduler._entries == []


def test_one_shot_ticker_becomes_inactive_after_firing():
    scheduler = ManualScheduler()
    ticker = scheduler.call_later(5, lambda: None)

    assert ticker.active
    scheduler.advance(5)
    assert not ticker.active


def test_call_every_rejects_non_positive_interval():
    scheduler = ManualScheduler()
    with pytest.raises(ValueError):
        scheduler.call_every(0, lambda: None)


def test_threaded_scheduler_runs_callbacks_on_worker_thread():
    scheduler = ThreadedScheduler()
    seen = []
    done = threading.Event()

    def record():
        seen.append(threading.current_thread().name)
        done.set()

    try:
        scheduler.call_later(10, record)
        assert done.wait(2)
    finally:
        scheduler.close()

    assert seen == ["studyroom-scheduler"]


def test_threaded_scheduler_survives_failing_callback():
    scheduler = ThreadedScheduler()
    done = threading.Event()

    def fail():
        raise RuntimeError("boom")

    try:
        scheduler.call_soon(fail)
        scheduler.call_soon(done.set)
        assert done.wait(2)
    finally:
        scheduler.close()


def test_threaded_scheduler_periodic_until_cancelled():
    scheduler = ThreadedScheduler()
    count = 0
    reached = threading.Event()

    def tick():
        nonlocal count
        count += 1
        if count == 3:
            reached.set()

    try:
        ticker = scheduler.call_every(5, tick)
        assert reached.wait(2)
        ticker.cancel()
    finally:
        scheduler.close()

    assert count >= 3
