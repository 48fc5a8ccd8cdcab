"""Per-request outcomes that decide which response gets written."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Success:
    file_path: Path
    content_type: str


@dataclass(frozen=True, slots=True)
class AuthFailure:
    pass


@dataclass(frozen=True, slots=True)
class NotFound:
    requested: str


ResponseOutcome = Success | AuthFailure | NotFound
