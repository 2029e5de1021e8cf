"""
Unit tests for HTTP response encoding.
"""

import logging
import threading

import pytest

from rawhttp.errors import ErrorKind, UnsupportedEncodingError
from rawhttp.http.response import (
    HTTPResponse,
    NOT_IMPLEMENTED_RESPONSE,
    PING_RESPONSE,
)


class TestHTTPResponse:
    """Tests for HTTPResponse.to_bytes()."""

    def test_no_body(self):
        """Without a body only the status line and empty line are written."""
        assert HTTPResponse(status_code=200).to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_body_with_content_type(self):
        """Content-Type then Content-Length, then the raw body."""
        response = HTTPResponse(status_code=200, content_type="text/plain").set_body("abc")
        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_empty_body_still_has_length(self):
        """An empty but present body is sent with Content-Length: 0."""
        response = HTTPResponse(status_code=200).set_body(b"")
        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n"

    def test_content_type_without_body_omitted(self):
        """Headers are tied to the presence of a body."""
        response = HTTPResponse(status_code=404, content_type="text/plain")
        assert response.to_bytes() == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_unknown_status_falls_back_to_500(self):
        """Codes outside the table are written as 500."""
        assert HTTPResponse(status_code=418).to_bytes().startswith(
            b"HTTP/1.1 500 Internal Server Error\r\n"
        )

    def test_utf8_body_length_in_bytes(self):
        """Content-Length counts bytes, not characters."""
        response = HTTPResponse().set_body("héllo")
        assert b"Content-Length: 6\r\n" in response.to_bytes()

    def test_gzip_labelled(self):
        """gzip is announced, the body is sent unchanged."""
        response = HTTPResponse(
            content_type="text/plain", encoding_method="gzip"
        ).set_body("abc")
        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Encoding: gzip\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_gzip_with_whitespace(self):
        """Surrounding whitespace in the label is ignored."""
        response = HTTPResponse(encoding_method="  gzip ").set_body("x")
        assert b"Content-Encoding: gzip\r\n" in response.to_bytes()

    def test_gzip_without_body(self):
        """No body means no Content-Encoding either."""
        response = HTTPResponse(encoding_method="gzip")
        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_unsupported_encoding_dropped(self, caplog):
        """An unsupported label is logged and the response sent plain."""
        response = HTTPResponse(encoding_method="br").set_body("abc")
        with caplog.at_level(logging.WARNING):
            data = response.to_bytes()

        assert b"Content-Encoding" not in data
        assert data.endswith(b"Content-Length: 3\r\n\r\nabc")
        assert "unsupported encoding method: br" in caplog.text

    def test_encoding_list_not_negotiated(self):
        """A list of encodings is not the gzip label."""
        response = HTTPResponse(encoding_method="gzip, deflate").set_body("abc")
        assert b"Content-Encoding" not in response.to_bytes()


class TestEncode:
    """Tests for encode() and safe_encode()."""

    def test_encode_gzip(self):
        """encode() marks the response as encoded."""
        response = HTTPResponse(encoding_method="gzip").set_body("abc")
        response.encode()
        assert response.encoded
        assert response.body == b"abc"

    def test_encode_unsupported_raises(self):
        """encode() raises a recoverable error and clears the method."""
        response = HTTPResponse(encoding_method="deflate").set_body("abc")
        with pytest.raises(UnsupportedEncodingError) as exc_info:
            response.encode()

        assert exc_info.value.method == "deflate"
        assert exc_info.value.kind is ErrorKind.ENCODING
        assert not exc_info.value.fatal
        assert response.encoding_method == ""
        assert not response.encoded

    def test_encode_noop_without_method(self):
        """Nothing to do when no encoding was requested."""
        response = HTTPResponse().set_body("abc")
        response.encode()
        assert not response.encoded

    def test_safe_encode_leaves_original(self):
        """safe_encode() returns an encoded copy."""
        original = HTTPResponse(encoding_method="gzip").set_body("abc")
        encoded = original.safe_encode()

        assert encoded.encoded
        assert not original.encoded
        assert encoded is not original

    def test_safe_encode_unsupported_leaves_original(self):
        """A failing safe_encode() does not clear the original's method."""
        original = HTTPResponse(encoding_method="br").set_body("abc")
        with pytest.raises(UnsupportedEncodingError):
            original.safe_encode()
        assert original.encoding_method == "br"

    def test_non_mutating_to_bytes(self):
        """to_bytes(mutate=False) never touches the response."""
        response = HTTPResponse(encoding_method="br").set_body("abc")
        response.to_bytes(mutate=False)
        assert response.encoding_method == "br"

    def test_mutating_to_bytes(self):
        """to_bytes(mutate=True) encodes in place."""
        response = HTTPResponse(encoding_method="gzip").set_body("abc")
        response.to_bytes(mutate=True)
        assert response.encoded


class TestClone:
    """Tests for HTTPResponse.clone()."""

    def test_clone_copies_fields(self):
        """Every field is carried over."""
        original = HTTPResponse(
            status_code=201, content_type="text/plain", encoding_method="gzip"
        ).set_body("abc")
        copy = original.clone()
        assert copy == original
        assert copy is not original

    def test_clone_body_is_independent(self):
        """The clone does not share the body buffer."""
        original = HTTPResponse().set_body(b"abc")
        copy = original.clone()
        copy.body = copy.body + b"d"
        assert original.body == b"abc"

    def test_clone_keeps_absent_body(self):
        """No body stays no body."""
        assert HTTPResponse().clone().body is None

    def test_clone_not_shared(self):
        """Clones of templates are private."""
        assert PING_RESPONSE.clone().shared is False


class TestTemplates:
    """Tests for the shared response templates."""

    def test_ping(self):
        """The ping template is a bare 200."""
        assert PING_RESPONSE.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_not_implemented(self):
        """The 501 template has no body."""
        assert NOT_IMPLEMENTED_RESPONSE.to_bytes() == b"HTTP/1.1 501 Not Implemented\r\n\r\n"

    def test_templates_not_mutated(self):
        """Serializing a template leaves it as it was."""
        before = PING_RESPONSE.clone()
        PING_RESPONSE.to_bytes()
        assert PING_RESPONSE == before

    def test_concurrent_serialization(self):
        """Many threads can serialize the same template at once."""
        template = HTTPResponse(encoding_method="br", shared=True).set_body("shared")
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                data = template.to_bytes()
                with lock:
                    results.append(data)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 400
        assert len(set(results)) == 1
        assert template.encoding_method == "br"
