"""Low-level socket read/write utilities."""

from __future__ import annotations

import os
import socket
from typing import BinaryIO

from request import HTTPRequest, HTTPRequestParseError, parse_request_line
from response import HTTPResponse, prepare_response


class HTTPReadError(Exception):
    """Raised when a client request cannot be safely read from the socket."""


class MalformedRequestError(HTTPReadError):
    """Raised when the request line lacks a method or a target."""


class ConnectionClosedError(HTTPReadError):
    """Raised when the peer goes away in the middle of a request head."""


def read_line(reader: BinaryIO, encoding: str = "iso-8859-1") -> str | None:
    """Read one line without its terminator, or None at end of stream."""
    raw_line = reader.readline()
    if not raw_line:
        return None
    return raw_line.decode(encoding, "surrogateescape").rstrip("\r\n")


def read_http_request(reader: BinaryIO) -> HTTPRequest | None:
    """Read one request head; None means the peer is done with the connection."""
    # Raw UTF-8 targets are allowed; undecodable bytes survive as surrogates.
    request_line = read_line(reader, encoding="utf-8")
    if not request_line:
        return None

    try:
        method, target, http_version = parse_request_line(request_line)
    except HTTPRequestParseError as exc:
        raise MalformedRequestError(str(exc)) from exc

    header_lines: list[str] = []
    while True:
        line = read_line(reader)
        if line is None:
            raise ConnectionClosedError("Connection closed before headers completed")
        if not line:
            break
        header_lines.append(line)

    return HTTPRequest.from_parts(method, target, http_version, header_lines)


def write_http_response_message(client_socket: socket.socket, response: HTTPResponse) -> int:
    """Write an HTTPResponse, streaming file bodies straight from disk."""
    if response.file_path is not None:
        with response.file_path.open("rb") as file_obj:
            return _write_file_response(client_socket, response, file_obj)

    prepared = prepare_response(response)
    client_socket.sendall(prepared.head)
    bytes_sent = len(prepared.head)

    if prepared.body:
        client_socket.sendall(prepared.body)
        bytes_sent += len(prepared.body)
    elif prepared.stream is not None:
        for chunk in prepared.stream:
            client_socket.sendall(chunk)
            bytes_sent += len(chunk)
    return bytes_sent


def _write_file_response(
    client_socket: socket.socket,
    response: HTTPResponse,
    file_obj: BinaryIO,
) -> int:
    file_size = os.fstat(file_obj.fileno()).st_size
    prepared = prepare_response(response, file_size=file_size)
    client_socket.sendall(prepared.head)

    sent = client_socket.sendfile(file_obj, 0, file_size) if file_size else 0
    if sent != file_size:
        raise OSError(f"Short file write: sent {sent} of {file_size} bytes")
    return len(prepared.head) + sent

