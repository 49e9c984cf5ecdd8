# tests/test_scheduling.py
# How to run:
#   pytest -q
#
# Verifies:
#   - manual scheduling never runs anything
#   - deferred runs are replaced (not stacked) and cancellable
#   - the polled fallback fires only once its delay has elapsed

import asyncio

from humancadence.app.controller.scheduling import DeferredScheduler, ManualScheduler

def test_manual_is_inert():
    calls = []
    s = ManualScheduler()
    s.request(lambda: calls.append(1))
    assert not s.pending
    assert not s.run_pending()
    assert calls == []

def test_polled_request_replaces_and_pushes_due_time():
    now = [0.0]
    calls = []
    s = DeferredScheduler(fallback_delay_s=0.1, clock=lambda: now[0])
    s.request(lambda: calls.append("a"))
    now[0] = 0.08
    s.request(lambda: calls.append("b"))
    assert not s.run_pending(now=0.12)
    assert s.run_pending(now=0.18)
    assert calls == ["b"]
    assert not s.pending

def test_polled_cancel():
    calls = []
    s = DeferredScheduler(clock=lambda: 0.0)
    s.request(lambda: calls.append(1))
    s.cancel()
    assert not s.pending
    assert not s.run_pending(now=5.0)
    assert calls == []

def test_loop_request_replaces_and_cancel():
    loop = asyncio.new_event_loop()
    try:
        calls = []
        s = DeferredScheduler(loop)
        s.request(lambda: calls.append("a"))
        s.request(lambda: calls.append("b"))
        loop.run_until_complete(asyncio.sleep(0.01))
        assert calls == ["b"]
        assert not s.pending

        s.request(lambda: calls.append("c"))
        s.cancel()
        loop.run_until_complete(asyncio.sleep(0.01))
        assert calls == ["b"]
        # loop mode is never polled
        assert not s.run_pending(now=1e9)
    finally:
        loop.close()
