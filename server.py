"""Main HTTP server entry point and connection lifecycle orchestration."""

from __future__ import annotations

import argparse
import errno
import itertools
import json
import logging
import socket
import sys
import threading
import time
from pathlib import Path

from auth import DEFAULT_CREDENTIALS, Credentials
from config import (
    ACCEPT_TIMEOUT_SECS,
    DOCUMENT_ROOT,
    HOST,
    KEEPALIVE_TIMEOUT_SECS,
    LISTEN_BACKLOG,
    LOG_FORMAT,
    MAX_KEEPALIVE_REQUESTS,
    PORT,
    READ_CHUNK_SIZE,
)
from handlers.file_handlers import serve_file
from request import HTTPRequest
from response import HTTPResponse, apply_connection_headers
from socket_handler import HTTPReadError, read_http_request, write_http_response_message

logger = logging.getLogger(__name__)

ALLOWED_METHODS = {"GET"}


class HTTPServer:
    def __init__(
        self,
        host: str = HOST,
        port: int = PORT,
        document_root: str | Path = DOCUMENT_ROOT,
        credentials: Credentials = DEFAULT_CREDENTIALS,
        *,
        keepalive_timeout_secs: float | None = KEEPALIVE_TIMEOUT_SECS,
        max_keepalive_requests: int = MAX_KEEPALIVE_REQUESTS,
        log_format: str = LOG_FORMAT,
    ) -> None:
        self.host = host
        self.port = port
        self.document_root = Path(document_root)
        self.credentials = credentials
        self.keepalive_timeout_secs = keepalive_timeout_secs
        self.max_keepalive_requests = max_keepalive_requests
        self.log_format = log_format

        self._server_socket: socket.socket | None = None
        self._connection_ids = itertools.count(1)
        self._running = False

    def start(self) -> None:
        """Bind, then hand every accepted connection to its own thread."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            self._server_socket = server_socket
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(LISTEN_BACKLOG)
            server_socket.settimeout(ACCEPT_TIMEOUT_SECS)
            self.port = server_socket.getsockname()[1]

            self._running = True
            logger.info(
                "listening on %s:%s root=%s", self.host, self.port, self.document_root
            )
            while self._running:
                try:
                    client_socket, address = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as exc:
                    if not self._running:
                        break
                    logger.warning("accept failed: %s", exc)
                    if exc.errno in (errno.EMFILE, errno.ENFILE):
                        time.sleep(ACCEPT_TIMEOUT_SECS)
                    continue

                connection_id = next(self._connection_ids)
                worker = threading.Thread(
                    target=self._handle_client,
                    args=(client_socket, address, connection_id),
                    name=f"http-conn-{connection_id}",
                    daemon=True,
                )
                worker.start()

    def stop(self) -> None:
        self._running = False
        if self._server_socket is not None:
            self._server_socket.close()
            self._server_socket = None

    def _handle_client(
        self,
        client_socket: socket.socket,
        address: tuple[str, int],
        connection_id: int,
    ) -> None:
        with client_socket, client_socket.makefile("rb", buffering=READ_CHUNK_SIZE) as reader:
            client_socket.settimeout(self.keepalive_timeout_secs)
            request_count = 0
            try:
                while request_count < self.max_keepalive_requests:
                    request = read_http_request(reader)
                    if request is None:
                        return

                    started_at = time.perf_counter()
                    request_count += 1
                    response = self._dispatch(request)
                    keep_alive = request.keep_alive and (
                        request_count < self.max_keepalive_requests
                    )
                    keep_alive = apply_connection_headers(response, keep_alive)

                    bytes_sent = write_http_response_message(client_socket, response)
                    self._log_request(
                        address=address,
                        request=request,
                        response=response,
                        payload_size=bytes_sent,
                        started_at=started_at,
                        connection_id=connection_id,
                        request_id=request_count,
                    )
                    if not keep_alive:
                        return
            except HTTPReadError as exc:
                logger.debug(
                    "connection %s from %s aborted: %s", connection_id, address[0], exc
                )
            except OSError as exc:
                logger.debug(
                    "connection %s from %s dropped: %s",
                    connection_id,
                    address[0],
                    exc.__class__.__name__,
                )

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        try:
            response = serve_file(request, self.document_root, self.credentials)
        except Exception:
            logger.exception("Unhandled error in file handler")
            response = HTTPResponse(status_code=500, body="<h1>500 Internal Server Error</h1>")

        if request.method in ALLOWED_METHODS:
            return response

        # Bodies are never read, so a non-GET request cannot leave the stream in sync.
        if response.status_code in (401, 500):
            response.headers["Connection"] = "close"
            return response
        return HTTPResponse(
            status_code=405,
            headers={"Allow": "GET", "Connection": "close"},
            body="<h1>405 Method Not Allowed</h1>",
        )

    def _log_request(
        self,
        *,
        address: tuple[str, int],
        request: HTTPRequest,
        response: HTTPResponse,
        payload_size: int,
        started_at: float,
        connection_id: int,
        request_id: int,
    ) -> None:
        duration_ms = (time.perf_counter() - started_at) * 1000
        event = {
            "client": address[0],
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "connection_id": connection_id,
            "request_id": request_id,
            "bytes_out": payload_size,
            "latency_ms": round(duration_ms, 3),
            "connection_reused": request_id > 1,
        }
        if self.log_format == "json":
            logger.info(json.dumps(event, sort_keys=True))
            return

        logger.info(
            (
                "client=%s method=%s path=%s status=%s connection_id=%s "
                "request_id=%s bytes_out=%s duration_ms=%.2f connection_reused=%s"
            ),
            event["client"],
            event["method"],
            event["path"],
            event["status"],
            event["connection_id"],
            event["request_id"],
            event["bytes_out"],
            duration_ms,
            event["connection_reused"],
        )


def _port_number(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from exc
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the keep-alive file server")
    parser.add_argument("port", nargs="?", type=_port_number, default=PORT)
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--root", default=DOCUMENT_ROOT)
    parser.add_argument("--keepalive-timeout", type=float, default=KEEPALIVE_TIMEOUT_SECS)
    parser.add_argument("--log-format", choices=["plain", "json"], default=LOG_FORMAT)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    server = HTTPServer(
        host=args.host,
        port=args.port,
        document_root=args.root,
        keepalive_timeout_secs=args.keepalive_timeout,
        log_format=args.log_format,
    )
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    except OSError as exc:
        logger.error("server startup failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
