"""Async stdlib load generator for exercising concurrent keep-alive connections."""

from __future__ import annotations

import argparse
import asyncio
import json
import time
from collections import Counter
from dataclasses import dataclass, field
from urllib.parse import urlencode

from config import VALID_PASSWORD, VALID_USERNAME


@dataclass(slots=True)
class LoadResult:
    total_requests: int
    errors: int
    status_counts: dict[str, int]
    latencies_ms: list[float] = field(default_factory=list)
    duration_secs: float = 0.0

    def summary(self) -> dict[str, float | int | dict[str, int]]:
        rps = self.total_requests / self.duration_secs if self.duration_secs > 0 else 0.0
        error_rate = self.errors / self.total_requests if self.total_requests > 0 else 0.0
        return {
            "requests": self.total_requests,
            "errors": self.errors,
            "error_rate": round(error_rate, 6),
            "rps": round(rps, 2),
            "p50_ms": round(percentile(self.latencies_ms, 50), 2),
            "p95_ms": round(percentile(self.latencies_ms, 95), 2),
            "status_counts": self.status_counts,
        }


def build_target(path: str, username: str | None, password: str | None) -> str:
    """Append the credential query string the server expects on every request."""
    params = {}
    if username is not None:
        params["username"] = username
    if password is not None:
        params["password"] = password
    if not params:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{urlencode(params)}"


async def run_load(
    host: str,
    port: int,
    target: str,
    *,
    concurrency: int,
    duration_secs: float,
    timeout_secs: float,
    keepalive: bool = False,
) -> LoadResult:
    status_counts: Counter[str] = Counter()
    latencies_ms: list[float] = []
    total_requests = 0
    errors = 0
    stop_at = time.perf_counter() + duration_secs
    connection_header = "keep-alive" if keepalive else "close"
    request_bytes = (
        f"GET {target} HTTP/1.1\r\n"
        f"Host: {host}:{port}\r\n"
        f"Connection: {connection_header}\r\n"
        "\r\n"
    ).encode("ascii")

    def record(status: int, latency_ms: float, is_error: bool) -> None:
        nonlocal total_requests, errors
        total_requests += 1
        latencies_ms.append(latency_ms)
        if is_error:
            errors += 1
        else:
            status_counts[str(status)] += 1

    async def worker() -> None:
        reader: asyncio.StreamReader | None = None
        writer: asyncio.StreamWriter | None = None
        try:
            while time.perf_counter() < stop_at:
                started = time.perf_counter()
                try:
                    if writer is None:
                        reader, writer = await asyncio.wait_for(
                            asyncio.open_connection(host, port),
                            timeout=timeout_secs,
                        )
                    writer.write(request_bytes)
                    await writer.drain()
                    status, reusable = await _read_response(reader, timeout=timeout_secs)
                except (OSError, ValueError, asyncio.TimeoutError, asyncio.IncompleteReadError):
                    record(0, (time.perf_counter() - started) * 1000, True)
                    await _close_writer(writer)
                    reader = None
                    writer = None
                    continue

                record(status, (time.perf_counter() - started) * 1000, False)
                if not (keepalive and reusable):
                    await _close_writer(writer)
                    reader = None
                    writer = None
        finally:
            await _close_writer(writer)

    started = time.perf_counter()
    await asyncio.gather(*(worker() for _ in range(concurrency)))
    duration = time.perf_counter() - started

    return LoadResult(
        total_requests=total_requests,
        errors=errors,
        status_counts=dict(status_counts),
        latencies_ms=latencies_ms,
        duration_secs=duration,
    )


async def _close_writer(writer: asyncio.StreamWriter | None) -> None:
    if writer is None:
        return
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


async def _read_response(reader: asyncio.StreamReader, timeout: float) -> tuple[int, bool]:
    """Read one response; returns (status, whether the connection can be reused)."""
    status_line = await asyncio.wait_for(reader.readline(), timeout=timeout)
    if not status_line.startswith(b"HTTP/"):
        raise ValueError("Invalid status line")
    parts = status_line.decode("iso-8859-1").strip().split(" ")
    if len(parts) < 2:
        raise ValueError("Malformed status line")
    status = int(parts[1])

    headers: dict[str, str] = {}
    while True:
        line = await asyncio.wait_for(reader.readline(), timeout=timeout)
        if line in {b"\r\n", b"\n", b""}:
            break
        if b":" not in line:
            raise ValueError("Malformed header line")
        key, value = line.decode("iso-8859-1").strip().split(":", 1)
        headers[key.strip().lower()] = value.strip()

    if "content-length" not in headers:
        # Close-delimited body.
        await asyncio.wait_for(reader.read(), timeout=timeout)
        return status, False

    content_length = int(headers["content-length"])
    if content_length > 0:
        await asyncio.wait_for(reader.readexactly(content_length), timeout=timeout)
    return status, headers.get("connection", "").lower() != "close"


def percentile(values: list[float], pct: int) -> float:
    if not values:
        return 0.0
    if pct <= 0:
        return min(values)
    if pct >= 100:
        return max(values)

    ordered = sorted(values)
    rank = (len(ordered) - 1) * (pct / 100)
    lower = int(rank)
    upper = min(lower + 1, len(ordered) - 1)
    weight = rank - lower
    return ordered[lower] * (1 - weight) + ordered[upper] * weight


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run HTTP load against the file server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=6789)
    parser.add_argument("--path", default="/")
    parser.add_argument("--username", default=VALID_USERNAME)
    parser.add_argument("--password", default=VALID_PASSWORD)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--duration", type=float, default=10.0)
    parser.add_argument("--timeout", type=float, default=2.0)
    parser.add_argument("--keepalive", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    result = asyncio.run(
        run_load(
            host=args.host,
            port=args.port,
            target=build_target(args.path, args.username, args.password),
            concurrency=args.concurrency,
            duration_secs=args.duration,
            timeout_secs=args.timeout,
            keepalive=args.keepalive,
        )
    )
    print(json.dumps(result.summary(), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
