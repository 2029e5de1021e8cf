"""
=============================================================================
LINE READER
=============================================================================

HTTP/1.1 frames its head as lines. The request line and every header end
with CRLF, and an empty line marks the end of the headers.

The bytes do not arrive line by line. We pull fixed-size chunks from the
underlying stream and a single line may straddle several of them:

    source.read(8) → b"GET / HT"
    source.read(8) → b"TP/1.1\r\n"        ← line complete here
    source.read(8) → b"Host: lo"

    read_line()    → b"GET / HTTP/1.1"

LineReader keeps the leftover bytes of each chunk in ``_buffer`` and keeps
reading until it finds a terminator.

=============================================================================
THREE DIFFERENT RESULTS
=============================================================================

    b"Host: example.com"   a line
    b""                    an EMPTY line (end of headers)
    None                   END OF STREAM, nothing left to read

Keeping "empty line" and "end of stream" apart is what lets the parser
tell a complete header block from a truncated one.

=============================================================================
"""

from typing import BinaryIO, Optional

DEFAULT_BUFFER_SIZE = 4096


class LineReader:
    """
    Reads CRLF (or bare LF) terminated lines from a binary stream.

    Also serves exact-length reads for message bodies, so the head and the
    body come out of the same buffer without losing bytes in between.

    Usage:
        reader = LineReader(io.BytesIO(raw))
        request_line = reader.read_line()
        while (line := reader.read_line()):
            ...
        body = reader.read_exact(content_length)
    """

    def __init__(self, source: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        self._source = source
        self._buffer_size = buffer_size
        self._buffer = b""
        self._eof = False

    def _fill(self) -> bool:
        """
        Pull one more chunk from the source into the buffer.

        Returns False once the source is exhausted. Read errors from the
        source propagate to the caller untouched.
        """
        if self._eof:
            return False
        chunk = self._source.read(self._buffer_size)
        if not chunk:
            self._eof = True
            return False
        self._buffer += chunk
        return True

    def read_line(self) -> Optional[bytes]:
        """
        Return the next line without its terminator, or None at end of stream.

        A trailing line that ends without a terminator is still returned;
        the call after it returns None.
        """
        search_from = 0
        while True:
            newline = self._buffer.find(b"\n", search_from)
            if newline != -1:
                line = self._buffer[:newline]
                self._buffer = self._buffer[newline + 1:]
                if line.endswith(b"\r"):
                    line = line[:-1]
                return line

            # Nothing in the current buffer, skip it on the next scan
            search_from = len(self._buffer)
            if not self._fill():
                break

        if not self._buffer:
            return None
        line, self._buffer = self._buffer, b""
        return line

    def read_exact(self, size: int) -> bytes:
        """
        Return exactly ``size`` bytes.

        Raises:
            EOFError: If the stream ends before ``size`` bytes were seen.
        """
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        while len(self._buffer) < size:
            if not self._fill():
                raise EOFError(f"expected {size} bytes, got {len(self._buffer)}")
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data
