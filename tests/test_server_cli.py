"""Tests for command-line startup handling."""

import logging
import socket

import pytest

from config import DOCUMENT_ROOT, PORT
from server import _parse_args, main


def test_default_port_and_root() -> None:
    args = _parse_args([])

    assert args.port == PORT == 6789
    assert args.root == DOCUMENT_ROOT
    assert args.log_format == "plain"


def test_positional_port_overrides_default() -> None:
    assert _parse_args(["8081"]).port == 8081


@pytest.mark.parametrize("value", ["abc", "-1", "70000", "80.5"])
def test_invalid_port_is_fatal(value: str) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _parse_args([value])

    assert exc_info.value.code == 2


def test_bind_failure_returns_non_zero(caplog: pytest.LogCaptureFixture) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen(1)
        port = occupied.getsockname()[1]

        with caplog.at_level(logging.ERROR):
            exit_code = main([str(port), "--host", "127.0.0.1"])

    assert exit_code == 1
    assert "server startup failed" in caplog.text
