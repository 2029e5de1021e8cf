"""
Unit tests for the buffered line reader.
"""

import io

import pytest

from rawhttp.http.line_reader import LineReader


def reader_for(data: bytes, buffer_size: int = 4096) -> LineReader:
    return LineReader(io.BytesIO(data), buffer_size)


class TestReadLine:
    """Tests for LineReader.read_line()."""

    def test_strips_crlf(self):
        """CRLF terminators are removed."""
        reader = reader_for(b"first\r\nsecond\r\n")
        assert reader.read_line() == b"first"
        assert reader.read_line() == b"second"
        assert reader.read_line() is None

    def test_bare_lf(self):
        """A bare LF also ends a line."""
        reader = reader_for(b"one\ntwo\n")
        assert reader.read_line() == b"one"
        assert reader.read_line() == b"two"

    def test_empty_line(self):
        """An empty line comes back as b'', not None."""
        reader = reader_for(b"\r\nrest")
        assert reader.read_line() == b""
        assert reader.read_line() == b"rest"

    def test_unterminated_final_line(self):
        """A trailing line without terminator is returned, then None."""
        reader = reader_for(b"a\r\ntail")
        assert reader.read_line() == b"a"
        assert reader.read_line() == b"tail"
        assert reader.read_line() is None

    def test_empty_stream(self):
        """An empty stream yields None right away."""
        assert reader_for(b"").read_line() is None

    def test_line_spanning_chunks(self):
        """Lines longer than the buffer are reassembled."""
        reader = reader_for(b"abcdefghij\r\nk\r\n", buffer_size=3)
        assert reader.read_line() == b"abcdefghij"
        assert reader.read_line() == b"k"

    def test_crlf_split_across_chunks(self):
        """A CR at the end of one chunk and LF at the start of the next."""
        reader = reader_for(b"ab\r\ncd", buffer_size=3)
        assert reader.read_line() == b"ab"
        assert reader.read_line() == b"cd"

    def test_invalid_buffer_size(self):
        """buffer_size must be positive."""
        with pytest.raises(ValueError):
            LineReader(io.BytesIO(b""), 0)


class TestReadExact:
    """Tests for LineReader.read_exact()."""

    def test_after_lines(self):
        """Bytes buffered while reading lines are not lost."""
        reader = reader_for(b"head\r\n\r\nbody bytes")
        assert reader.read_line() == b"head"
        assert reader.read_line() == b""
        assert reader.read_exact(4) == b"body"
        assert reader.read_exact(6) == b" bytes"

    def test_zero(self):
        """Reading zero bytes always succeeds."""
        assert reader_for(b"").read_exact(0) == b""

    def test_short_stream(self):
        """A stream that ends early raises EOFError."""
        reader = reader_for(b"abc", buffer_size=2)
        with pytest.raises(EOFError):
            reader.read_exact(10)

    def test_negative_size(self):
        """Negative sizes are rejected."""
        with pytest.raises(ValueError):
            reader_for(b"abc").read_exact(-1)
