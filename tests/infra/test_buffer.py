"""Tests for PipeBuffer."""

import pytest

from futureproc.buffer import STDIN, STDOUT, PipeBuffer


@pytest.mark.unit
class TestPipeBuffer:
    def test_drain_returns_everything_and_empties(self):
        buf = PipeBuffer(STDOUT)
        buf.append(b"Hello ")
        buf.append(b"World")
        assert buf.drain() == b"Hello World"
        assert buf.drain() == b""
        assert len(buf) == 0

    def test_total_counts_all_appended_bytes(self):
        buf = PipeBuffer(STDOUT)
        buf.append(b"abc")
        buf.drain()
        buf.append(b"de")
        assert buf.total == 5

    def test_empty_append_is_ignored(self):
        buf = PipeBuffer(STDOUT)
        buf.append(b"")
        assert len(buf) == 0
        assert buf.total == 0

    def test_peek_and_consume_track_partial_writes(self):
        buf = PipeBuffer(STDIN)
        buf.append(b"0123456789")
        assert buf.peek(4) == b"0123"
        buf.consume(4)
        assert buf.peek(100) == b"456789"
        assert len(buf) == 6

    def test_clear(self):
        buf = PipeBuffer(STDIN)
        buf.append(b"pending")
        buf.clear()
        assert buf.drain() == b""

    def test_repr_names_the_pipe(self):
        assert "stdout" in repr(PipeBuffer(STDOUT))
