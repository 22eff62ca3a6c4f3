"""Unit tests for HTTP request parsing."""

import pytest

from request import HTTPRequest, HTTPRequestParseError


def test_parse_get_decodes_path_and_drops_query() -> None:
    raw = (
        b"GET /my%20files/caf%C3%A9.txt?download=1 HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )

    request = HTTPRequest.from_bytes(raw)

    assert request.method == "GET"
    assert request.path == "/my files/café.txt"
    assert request.raw_target == "/my%20files/caf%C3%A9.txt?download=1"
    assert request.headers["host"] == "localhost"
    assert request.keep_alive is True


def test_encoded_dot_dot_is_decoded_before_resolution() -> None:
    raw = b"GET /%2e%2e/%2E%2E/etc/passwd HTTP/1.1\r\nHost: localhost\r\n\r\n"

    request = HTTPRequest.from_bytes(raw)

    assert request.path == "/../../etc/passwd"


def test_double_slash_target_is_not_a_network_location() -> None:
    raw = b"GET //etc/passwd HTTP/1.1\r\nHost: localhost\r\n\r\n"

    request = HTTPRequest.from_bytes(raw)

    assert request.path == "//etc/passwd"


def test_absolute_form_target_uses_its_path() -> None:
    raw = b"GET http://localhost:8080/img/ HTTP/1.1\r\nHost: localhost\r\n\r\n"

    assert HTTPRequest.from_bytes(raw).path == "/img/"


def test_invalid_utf8_path_is_rejected() -> None:
    raw = b"GET /%ff%fe HTTP/1.1\r\nHost: localhost\r\n\r\n"

    with pytest.raises(HTTPRequestParseError, match="not valid UTF-8") as exc_info:
        HTTPRequest.from_bytes(raw)
    assert exc_info.value.status_code == 400


def test_connection_close_disables_keep_alive() -> None:
    raw = b"GET / HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"

    assert HTTPRequest.from_bytes(raw).keep_alive is False


def test_http10_defaults_to_close() -> None:
    raw = b"GET / HTTP/1.0\r\n\r\n"

    assert HTTPRequest.from_bytes(raw).keep_alive is False


def test_parse_invalid_request_line_raises_value_error() -> None:
    raw = b"BROKEN-LINE\r\nHost: localhost\r\n\r\n"

    with pytest.raises(ValueError, match="Invalid request line"):
        HTTPRequest.from_bytes(raw)


def test_missing_host_on_http11_is_rejected() -> None:
    with pytest.raises(HTTPRequestParseError, match="Host header required"):
        HTTPRequest.from_bytes(b"GET / HTTP/1.1\r\n\r\n")


def test_unknown_method_is_not_implemented() -> None:
    with pytest.raises(HTTPRequestParseError) as exc_info:
        HTTPRequest.from_bytes(b"BREW / HTTP/1.1\r\nHost: localhost\r\n\r\n")
    assert exc_info.value.status_code == 501


def test_chunked_request_body_is_not_accepted() -> None:
    raw = (
        b"POST / HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Transfer-Encoding: chunked\r\n"
        b"\r\n"
    )

    with pytest.raises(HTTPRequestParseError) as exc_info:
        HTTPRequest.from_bytes(raw)
    assert exc_info.value.status_code == 501


def test_parse_invalid_content_length_raises_value_error() -> None:
    raw = (
        b"POST /submit HTTP/1.1\r\n"
        b"Host: localhost\r\n"
        b"Content-Length: abc\r\n"
        b"\r\n"
        b"name=test"
    )

    with pytest.raises(ValueError, match="Invalid Content-Length"):
        HTTPRequest.from_bytes(raw)
