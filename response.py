"""HTTP response model and serializer."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from email.utils import formatdate
from pathlib import Path

from config import KEEPALIVE_TIMEOUT_SECS, MAX_KEEPALIVE_REQUESTS, SERVER_NAME

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    401: "Unauthorized",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
}


@dataclass(slots=True)
class PreparedResponse:
    head: bytes
    body: bytes | None = None
    stream: Iterator[bytes] | None = None
    file_path: Path | None = None


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str = b""
    stream: Iterable[bytes] | None = None
    file_path: Path | None = None

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")
        if self.stream is not None and self.file_path is not None:
            raise ValueError("Response cannot set both stream and file_path")
        if self.file_path is not None and self.body:
            raise ValueError("Response cannot set both body and file_path")

    @property
    def requires_close(self) -> bool:
        """True when this response can only be delimited by closing the connection."""
        if self.headers.get("Connection", "").lower() == "close":
            return True
        return self.stream is not None

    def to_bytes(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes."""
        prepared = prepare_response(self)
        payload = bytearray(prepared.head)
        if prepared.body is not None:
            payload.extend(prepared.body)
        elif prepared.stream is not None:
            for chunk in prepared.stream:
                payload.extend(chunk)
        elif prepared.file_path is not None:
            payload.extend(prepared.file_path.read_bytes())
        return bytes(payload)


def apply_connection_headers(response: HTTPResponse, keep_alive: bool) -> bool:
    """Set the persistence headers and return whether the connection stays open."""
    keep_alive = keep_alive and not response.requires_close
    if keep_alive:
        response.headers["Connection"] = "keep-alive"
        response.headers["Keep-Alive"] = (
            f"timeout={KEEPALIVE_TIMEOUT_SECS}, max={MAX_KEEPALIVE_REQUESTS}"
        )
    else:
        response.headers["Connection"] = "close"
        response.headers.pop("Keep-Alive", None)
    return keep_alive


def prepare_response(response: HTTPResponse, *, file_size: int | None = None) -> PreparedResponse:
    """Build the status line and header block; the body source is passed through."""
    reason = REASON_PHRASES.get(response.status_code, "Unknown")
    normalized_headers = dict(response.headers)
    normalized_headers.setdefault("Content-Type", "text/html; charset=UTF-8")

    body: bytes | None = None
    stream: Iterator[bytes] | None = None
    file_path: Path | None = None
    if response.stream is not None:
        stream = iter(response.stream)
        normalized_headers.pop("Content-Length", None)
        normalized_headers["Connection"] = "close"
        normalized_headers.pop("Keep-Alive", None)
    elif response.file_path is not None:
        file_path = response.file_path
        content_length = file_size if file_size is not None else file_path.stat().st_size
        normalized_headers["Content-Length"] = str(content_length)
    else:
        body = response.body
        normalized_headers["Content-Length"] = str(len(body))

    normalized_headers.setdefault("Date", formatdate(timeval=None, localtime=False, usegmt=True))
    normalized_headers.setdefault("Server", SERVER_NAME)

    header_lines = [f"HTTP/1.1 {response.status_code} {reason}"]
    header_lines.extend(_ordered_header_lines(normalized_headers))
    head = "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"
    return PreparedResponse(head=head, body=body, stream=stream, file_path=file_path)


_LEADING_HEADERS = ("Content-Type", "Content-Length", "Connection", "Keep-Alive")


def _ordered_header_lines(headers: dict[str, str]) -> list[str]:
    lines = [f"{name}: {headers[name]}" for name in _LEADING_HEADERS if name in headers]
    lines.extend(
        f"{name}: {value}" for name, value in headers.items() if name not in _LEADING_HEADERS
    )
    return lines
