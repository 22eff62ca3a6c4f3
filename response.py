"""HTTP response model and serializer."""

import os
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import BinaryIO

from config import SERVER_NAME

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    408: "Request Timeout",
    413: "Payload Too Large",
    414: "URI Too Long",
    431: "Request Header Fields Too Large",
    500: "Internal Server Error",
    501: "Not Implemented",
    503: "Service Unavailable",
    505: "HTTP Version Not Supported",
}


@dataclass(slots=True)
class PreparedResponse:
    head: bytes
    body: bytes | None = None
    file: BinaryIO | None = None
    file_size: int = 0


@dataclass(slots=True)
class HTTPResponse:
    """A response whose body is either in-memory bytes or an open binary file.

    When ``file`` is set the response owns it; whoever writes the response
    must call ``close()`` afterwards.
    """

    status_code: int
    reason_phrase: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str = b""
    file: BinaryIO | None = None
    content_length_override: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")
        if self.file is not None and self.body:
            raise ValueError("Response cannot set both body and file")

    @property
    def content_length(self) -> int:
        if self.content_length_override is not None:
            return self.content_length_override
        if self.file is not None:
            return os.fstat(self.file.fileno()).st_size
        return len(self.body)

    def close(self) -> None:
        if self.file is not None:
            self.file.close()
            self.file = None


def error_response(status_code: int, message: str | None = None) -> HTTPResponse:
    """Plain-text error response, e.g. ``403 Access denied``."""
    return HTTPResponse(
        status_code=status_code,
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=(message or REASON_PHRASES.get(status_code, "Error")) + "\n",
    )


def prepare_response(response: HTTPResponse) -> PreparedResponse:
    reason = response.reason_phrase or REASON_PHRASES.get(response.status_code, "Unknown")
    normalized_headers = dict(response.headers)
    normalized_headers.setdefault(
        "Date",
        formatdate(timeval=None, localtime=False, usegmt=True),
    )
    normalized_headers.setdefault("Server", SERVER_NAME)
    normalized_headers.setdefault("Content-Type", "text/plain; charset=utf-8")
    normalized_headers["Content-Length"] = str(response.content_length)

    header_lines = [f"HTTP/1.1 {response.status_code} {reason}"]
    header_lines.extend(f"{key}: {value}" for key, value in normalized_headers.items())
    head = "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"

    if response.file is not None:
        return PreparedResponse(
            head=head,
            file=response.file,
            file_size=os.fstat(response.file.fileno()).st_size,
        )
    return PreparedResponse(head=head, body=bytes(response.body))
