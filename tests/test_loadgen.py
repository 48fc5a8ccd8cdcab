"""Tests for the stdlib load generator."""

import asyncio
import threading
import time
from pathlib import Path

from server import HTTPServer
from tools.loadgen import LoadResult, build_target, percentile, run_load


def _start_server(document_root: Path) -> tuple[HTTPServer, threading.Thread]:
    server = HTTPServer(host="127.0.0.1", port=0, document_root=document_root)
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()

    deadline = time.time() + 2
    while server.port == 0 and time.time() < deadline:
        time.sleep(0.01)
    if server.port == 0:
        raise RuntimeError("Server did not bind to a port")
    return server, thread


def _stop_server(server: HTTPServer, thread: threading.Thread) -> None:
    server.stop()
    thread.join(timeout=2)


def test_percentile_interpolation() -> None:
    values = [10.0, 20.0, 30.0, 40.0]
    assert percentile(values, 0) == 10.0
    assert percentile(values, 100) == 40.0
    assert percentile(values, 50) == 25.0


def test_load_result_summary_fields() -> None:
    result = LoadResult(
        total_requests=10,
        errors=1,
        status_counts={"200": 9},
        latencies_ms=[10.0, 20.0, 30.0, 40.0],
        duration_secs=2.0,
    )
    summary = result.summary()
    assert summary["requests"] == 10
    assert summary["errors"] == 1
    assert summary["status_counts"] == {"200": 9}
    assert summary["rps"] == 5.0
    assert summary["p50_ms"] == 25.0


def test_build_target_appends_credentials() -> None:
    assert build_target("/", "admin", "123456") == "/?username=admin&password=123456"
    assert build_target("/a.gif?t=1", "admin", "x") == "/a.gif?t=1&username=admin&password=x"
    assert build_target("/", None, None) == "/"


def test_run_load_reuses_keep_alive_connections(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_text("<h1>load</h1>", encoding="utf-8")
    server, thread = _start_server(tmp_path)
    try:
        result = asyncio.run(
            run_load(
                host=server.host,
                port=server.port,
                target=build_target("/", "admin", "123456"),
                concurrency=4,
                duration_secs=0.3,
                timeout_secs=2.0,
                keepalive=True,
            )
        )
    finally:
        _stop_server(server, thread)

    assert result.total_requests > 0
    assert result.errors == 0
    assert result.status_counts.get("200", 0) == result.total_requests


def test_run_load_without_credentials_sees_401(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_text("<h1>load</h1>", encoding="utf-8")
    server, thread = _start_server(tmp_path)
    try:
        result = asyncio.run(
            run_load(
                host=server.host,
                port=server.port,
                target="/",
                concurrency=2,
                duration_secs=0.2,
                timeout_secs=2.0,
            )
        )
    finally:
        _stop_server(server, thread)

    assert result.total_requests > 0
    assert set(result.status_counts) == {"401"}
