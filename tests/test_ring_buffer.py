# tests/test_ring_buffer.py
# How to run:
#   pytest -q
#
# Verifies:
#   - oldest-first order before and after wrap-around
#   - length never exceeds capacity
#   - clear() leaves a buffer indistinguishable from a fresh one

import numpy as np
import pytest

from humancadence.core.utils.ring_buffer import RingBuffer

def test_push_below_capacity_keeps_insertion_order():
    buf = RingBuffer(5)
    for v in (1, 2, 3):
        buf.push(v)
    assert len(buf) == 3
    assert buf.to_list() == [1.0, 2.0, 3.0]
    assert list(buf) == [1.0, 2.0, 3.0]

def test_overflow_keeps_last_capacity_values():
    buf = RingBuffer(4)
    for v in range(1, 11):
        buf.push(v)
        assert len(buf) <= 4
    assert len(buf) == 4
    assert buf.to_list() == [7.0, 8.0, 9.0, 10.0]

def test_exactly_full_and_one_past():
    buf = RingBuffer(3)
    for v in (10, 20, 30):
        buf.push(v)
    assert buf.to_list() == [10.0, 20.0, 30.0]
    buf.push(40)
    assert buf.to_list() == [20.0, 30.0, 40.0]

def test_for_each_visits_oldest_first():
    buf = RingBuffer(3)
    for v in range(5):
        buf.push(v)
    seen = []
    buf.for_each(seen.append)
    assert seen == [2.0, 3.0, 4.0]

def test_clear_then_push_behaves_like_fresh():
    used = RingBuffer(3)
    for v in range(7):
        used.push(v)
    used.clear()
    assert len(used) == 0
    assert used.to_list() == []

    fresh = RingBuffer(3)
    for v in (5, 6, 7, 8):
        used.push(v)
        fresh.push(v)
        assert used.to_list() == fresh.to_list()

def test_snapshot_is_a_copy():
    buf = RingBuffer(3)
    buf.push(1)
    snap = buf.to_array()
    buf.push(2)
    assert snap.tolist() == [1.0]

def test_numpy_conversion_matches_to_array():
    buf = RingBuffer(2)
    for v in (1, 2, 3):
        buf.push(v)
    assert np.asarray(buf).tolist() == [2.0, 3.0]
    assert np.asarray(buf, dtype=np.float32).dtype == np.float32

def test_numpy_conversion_never_pretends_to_share_memory():
    buf = RingBuffer(2)
    for v in (1, 2, 3):
        buf.push(v)
    with pytest.raises(ValueError):
        buf.__array__(copy=False)
    arr = buf.__array__(copy=True)
    arr[0] = 99.0
    assert buf.to_list() == [2.0, 3.0]

def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        RingBuffer(0)
