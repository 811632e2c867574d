"""Tests for the bounded sample history."""

import numpy as np
import pytest

from phasescope.core.ring_buffer import RingBuffer


class TestConstruction:
    def test_starts_empty(self):
        buf = RingBuffer(4, fill=0.0)
        assert len(buf) == 0
        assert buf.is_empty
        assert not buf.is_full
        assert buf.capacity == 4

    def test_prefilled_storage(self):
        buf = RingBuffer(3, fill=7.0)
        assert np.all(buf.data == 7.0)

    @pytest.mark.parametrize("capacity", [0, -3])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            RingBuffer(capacity)


class TestPushPop:
    def test_fifo_order(self):
        buf = RingBuffer(4)
        for v in (1.0, 2.0, 3.0):
            buf.push(v)
        assert buf.pop() == 1.0
        assert buf.pop() == 2.0
        assert buf.pop() == 3.0
        assert buf.pop() is None

    def test_pop_empty_returns_none(self):
        assert RingBuffer(2).pop() is None

    def test_count_never_exceeds_capacity(self):
        buf = RingBuffer(5)
        for i in range(23):
            buf.push(float(i))
            assert len(buf) <= buf.capacity
        assert buf.is_full

    def test_overwrite_evicts_oldest(self):
        buf = RingBuffer(3)
        for v in (1.0, 2.0, 3.0, 4.0):
            buf.push(v)
        assert len(buf) == 3
        assert buf.pop() == 2.0

    def test_interleaved_push_pop(self):
        buf = RingBuffer(3)
        buf.push(1.0)
        buf.push(2.0)
        assert buf.pop() == 1.0
        buf.push(3.0)
        buf.push(4.0)
        buf.push(5.0)
        assert [buf.pop() for _ in range(3)] == [3.0, 4.0, 5.0]


class TestIndexing:
    def test_retains_most_recent_capacity_samples(self):
        capacity = 8
        buf = RingBuffer(capacity)
        values = np.arange(27, dtype=np.float64)
        for v in values:
            buf.push(v)
        got = [buf.at(i) for i in range(capacity)]
        assert got == list(values[-capacity:])

    def test_getitem_matches_at(self):
        buf = RingBuffer(4)
        for v in (5.0, 6.0, 7.0, 8.0, 9.0):
            buf.push(v)
        assert [buf[i] for i in range(4)] == [buf.at(i) for i in range(4)]

    def test_read_past_count_returns_fill(self):
        buf = RingBuffer(4, fill=-1.0)
        buf.push(0.5)
        assert buf.at(0) == 0.5
        assert buf.at(2) == -1.0

    def test_read_past_count_returns_stale_sample(self):
        buf = RingBuffer(3)
        for v in (1.0, 2.0, 3.0):
            buf.push(v)
        assert buf.pop() == 1.0
        # slot of the popped element is still readable
        assert buf.at(2) == 1.0

    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_out_of_capacity_raises(self, index):
        buf = RingBuffer(4)
        buf.push(1.0)
        with pytest.raises(IndexError):
            buf.at(index)

    def test_ordered_matches_at(self):
        buf = RingBuffer(6)
        for v in range(10):
            buf.push(float(v))
        ordered = buf.ordered()
        assert len(ordered) == 6
        for i in range(6):
            assert ordered[i] == buf.at(i)


class TestRendererAccess:
    def test_data_is_read_only(self):
        buf = RingBuffer(4)
        with pytest.raises(ValueError):
            buf.data[0] = 1.0

    def test_start_tracks_oldest_slot(self):
        buf = RingBuffer(4)
        for v in range(6):
            buf.push(float(v))
        assert buf.data[buf.start] == buf.at(0) == 2.0


class TestDrain:
    def test_drain_returns_oldest_first_and_empties(self):
        buf = RingBuffer(4)
        for v in range(6):
            buf.push(float(v))
        out = buf.drain()
        np.testing.assert_array_equal(out, [2.0, 3.0, 4.0, 5.0])
        assert buf.is_empty
        assert buf.pop() is None

    def test_drain_empty(self):
        assert len(RingBuffer(3).drain()) == 0

    def test_drain_result_is_independent_of_storage(self):
        buf = RingBuffer(3)
        buf.push(1.0)
        buf.push(2.0)
        out = buf.drain()
        out[0] = 99.0
        np.testing.assert_array_equal(buf.data, [1.0, 2.0, 0.0])

    def test_push_after_drain(self):
        buf = RingBuffer(3)
        buf.push(1.0)
        buf.drain()
        buf.push(2.0)
        assert len(buf) == 1
        assert buf.at(0) == 2.0

    def test_clear(self):
        buf = RingBuffer(3)
        buf.push(1.0)
        buf.clear()
        assert len(buf) == 0
