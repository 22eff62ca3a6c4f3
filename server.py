"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
import time
import webbrowser

from config import (
    HOST,
    KEEPALIVE_TIMEOUT_SECS,
    LOG_FORMAT,
    MAX_KEEPALIVE_REQUESTS,
    PORT,
    ROOT_DIR,
    SOCKET_TIMEOUT_SECS,
    WORKER_COUNT,
)
from handlers.file_handler import FileServerHandler
from request import HTTPRequest, HTTPRequestParseError
from response import REASON_PHRASES, HTTPResponse, error_response
from server_config import LOG_FORMATS, ConfigError, ServerConfig
from socket_handler import (
    HeaderTooLargeError,
    MalformedRequestError,
    PayloadTooLargeError,
    SocketTimeoutError,
    read_http_request_message,
    write_http_response_message,
)
from thread_pool import ThreadPool

logger = logging.getLogger(__name__)

SERVED_METHODS = ("GET", "HEAD")

READ_ERROR_STATUS: dict[type[Exception], int] = {
    PayloadTooLargeError: 413,
    HeaderTooLargeError: 431,
    SocketTimeoutError: 408,
    MalformedRequestError: 400,
}


class HTTPServer:
    """Accepts connections and hands each one to a worker running the file handler."""

    def __init__(
        self,
        config: ServerConfig,
        *,
        keepalive_timeout_secs: int = KEEPALIVE_TIMEOUT_SECS,
    ) -> None:
        self.config = config
        self.host = config.host
        self.port = config.listen_port
        self.keepalive_timeout_secs = keepalive_timeout_secs
        self.handler = FileServerHandler(config.root_directory)

        self._server_socket: socket.socket | None = None
        self._pool: ThreadPool | None = None
        self._running = False

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    def bind(self) -> None:
        """Bind the listening socket; raises OSError if the port is unavailable."""
        server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(128)
        except OSError:
            server_socket.close()
            raise
        server_socket.settimeout(0.2)
        self._server_socket = server_socket
        self.port = server_socket.getsockname()[1]
        logger.info(
            "Serving files from %s on http://%s:%s",
            self.config.root_directory,
            self.host,
            self.port,
        )

    def start(self) -> None:
        """Bind if needed, then accept clients until ``stop`` is called."""
        if self._server_socket is None:
            self.bind()
        self.serve_forever()

    def serve_forever(self) -> None:
        server_socket = self._server_socket
        if server_socket is None:
            raise RuntimeError("bind() must be called before serve_forever()")

        self._pool = ThreadPool(
            worker_count=self.config.worker_count,
            queue_size=self.config.request_queue_size,
            handler=self._handle_client,
        )
        self._pool.start()
        self._running = True
        try:
            while self._running:
                try:
                    client_socket, address = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError:
                    break

                if self._pool is None or not self._pool.submit(client_socket, address):
                    self._send_queue_full_response(client_socket, address)
        finally:
            if self._pool is not None:
                self._pool.shutdown()
                self._pool = None
            server_socket.close()

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _send_queue_full_response(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            started_at = time.perf_counter()
            response = error_response(503)
            response.headers["Connection"] = "close"
            try:
                bytes_sent = write_http_response_message(client_socket, response)
            except OSError:
                return
            self._log_access(address, "-", "-", response, bytes_sent, started_at)

    def _reject(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        status_code: int,
        started_at: float,
    ) -> None:
        response = error_response(status_code, REASON_PHRASES.get(status_code, "Bad Request"))
        response.headers["Connection"] = "close"
        try:
            bytes_sent = write_http_response_message(client_socket, response)
        except OSError:
            return
        self._log_access(address, "-", "-", response, bytes_sent, started_at)

    def _handle_client(self, client_socket: socket.socket, address: tuple[str, int]) -> None:
        with client_socket:
            client_socket.settimeout(min(SOCKET_TIMEOUT_SECS, self.keepalive_timeout_secs))
            request_count = 0
            carry = b""
            while request_count < MAX_KEEPALIVE_REQUESTS:
                started_at = time.perf_counter()
                try:
                    raw_request, carry = read_http_request_message(client_socket, carry)
                except tuple(READ_ERROR_STATUS) as exc:
                    self._reject(client_socket, address, READ_ERROR_STATUS[type(exc)], started_at)
                    return
                except OSError:
                    return

                if not raw_request:
                    return

                try:
                    request = HTTPRequest.from_bytes(raw_request)
                except HTTPRequestParseError as exc:
                    self._reject(client_socket, address, exc.status_code, started_at)
                    return

                request_count += 1
                response = self._dispatch(request)
                should_close = not request.keep_alive or request_count >= MAX_KEEPALIVE_REQUESTS
                if should_close:
                    response.headers.setdefault("Connection", "close")
                else:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={self.keepalive_timeout_secs}, max={MAX_KEEPALIVE_REQUESTS - request_count}",
                    )

                try:
                    bytes_sent = write_http_response_message(client_socket, response)
                except OSError as exc:
                    logger.warning("Write to %s failed for %s: %s", address[0], request.path, exc)
                    return

                self._log_access(address, request.method, request.path, response, bytes_sent, started_at)
                if should_close:
                    return

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        if request.method not in SERVED_METHODS:
            response = error_response(405)
            response.headers["Allow"] = ", ".join(SERVED_METHODS)
            return response

        try:
            response = self.handler(request)
        except Exception:
            logger.exception("Unhandled error in file handler")
            response = error_response(500, "Server error")

        if request.method == "HEAD":
            return self._as_head_response(response)
        return response

    def _as_head_response(self, get_response: HTTPResponse) -> HTTPResponse:
        content_length = get_response.content_length
        get_response.close()
        return HTTPResponse(
            status_code=get_response.status_code,
            reason_phrase=get_response.reason_phrase,
            headers=dict(get_response.headers),
            body=b"",
            content_length_override=content_length,
        )

    def _log_access(
        self,
        address: tuple[str, int],
        method: str,
        path: str,
        response: HTTPResponse,
        bytes_sent: int,
        started_at: float,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": method,
            "path": path,
            "status": response.status_code,
            "bytes_out": bytes_sent,
            "duration_ms": round(duration_ms, 3),
        }
        if self.config.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            "client=%s method=%s path=%s status=%s bytes_out=%s duration_ms=%.2f",
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["bytes_out"],
            duration_ms,
        )


def open_browser(url: str) -> bool:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        logger.warning("Failed to open browser: %s", exc)
        return False
    if opened:
        logger.info("Opened browser at %s", url)
    else:
        logger.warning("Failed to open browser at %s", url)
    return opened


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse and download a directory over HTTP")
    parser.add_argument("--dir", default=ROOT_DIR, help="Directory to serve files from")
    parser.add_argument("--port", type=int, default=PORT, help="Port to run the server on")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--workers", type=int, default=WORKER_COUNT)
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=LOG_FORMAT)
    parser.add_argument("--no-browser", action="store_true", help="Do not open a browser tab")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = ServerConfig.from_args(
            args.dir,
            args.port,
            host=args.host,
            worker_count=args.workers,
            log_format=args.log_format,
            open_browser=not args.no_browser,
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    server = HTTPServer(config)
    try:
        server.bind()
    except OSError as exc:
        logger.error("Server failed: %s", exc)
        return 1

    if config.open_browser:
        open_browser(server.url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
