"""Query-string credential check."""

from __future__ import annotations

import hmac
from collections.abc import Mapping
from dataclasses import dataclass

from config import VALID_PASSWORD, VALID_USERNAME


@dataclass(frozen=True, slots=True)
class Credentials:
    username: str
    password: str


DEFAULT_CREDENTIALS = Credentials(username=VALID_USERNAME, password=VALID_PASSWORD)


def _matches(supplied: str | None, expected: str) -> bool:
    if supplied is None:
        return False
    return hmac.compare_digest(
        supplied.encode("utf-8", "surrogateescape"),
        expected.encode("utf-8", "surrogateescape"),
    )


def validate_credentials(
    query_params: Mapping[str, str],
    credentials: Credentials = DEFAULT_CREDENTIALS,
) -> bool:
    """Return True only when both ``username`` and ``password`` match exactly."""
    username_ok = _matches(query_params.get("username"), credentials.username)
    password_ok = _matches(query_params.get("password"), credentials.password)
    return username_ok and password_ok
