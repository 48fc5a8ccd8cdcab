"""Unit tests for document-root file resolution and content types."""

from pathlib import Path

import pytest

from outcome import NotFound, Success
from utils import get_content_type, resolve_file


def _make_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "test.gif").write_bytes(b"GIF89a")
    (root / "images").mkdir()
    (root / "images" / "photo.jpeg").write_bytes(b"\xff\xd8\xff")
    (root / "my file.htm").write_text("spaced", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("outside", encoding="utf-8")
    return root


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("index.html", "text/html; charset=UTF-8"),
        ("page.htm", "text/html; charset=UTF-8"),
        ("anim.gif", "image/gif"),
        ("photo.jpg", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("missing.png", "application/octet-stream"),
        ("archive", "application/octet-stream"),
        ("PAGE.HTML", "application/octet-stream"),
        ("photo.JPG", "application/octet-stream"),
    ],
)
def test_content_type_by_exact_suffix(name: str, expected: str) -> None:
    assert get_content_type(name) == expected


def test_root_path_maps_to_index(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    outcome = resolve_file("/", root)

    assert outcome == Success(
        file_path=(root / "index.html").resolve(),
        content_type="text/html; charset=UTF-8",
    )


def test_nested_file_resolves(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    outcome = resolve_file("/images/photo.jpeg", root)

    assert isinstance(outcome, Success)
    assert outcome.content_type == "image/jpeg"
    assert outcome.file_path.read_bytes() == b"\xff\xd8\xff"


def test_percent_encoded_path_is_decoded(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    outcome = resolve_file("/my%20file.htm", root)

    assert isinstance(outcome, Success)
    assert outcome.file_path.name == "my file.htm"


def test_missing_file_is_not_found(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    assert resolve_file("/missing.png", root) == NotFound(requested="/missing.png")


def test_directory_is_not_found(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    assert isinstance(resolve_file("/images", root), NotFound)
    assert isinstance(resolve_file("/images/", root), NotFound)


@pytest.mark.parametrize(
    "path",
    ["/../secret.txt", "/images/../../secret.txt", "/%2e%2e/secret.txt", "/..%2fsecret.txt"],
)
def test_traversal_outside_root_is_not_found(tmp_path: Path, path: str) -> None:
    root = _make_root(tmp_path)

    assert isinstance(resolve_file(path, root), NotFound)


def test_symlink_escaping_root_is_not_found(tmp_path: Path) -> None:
    root = _make_root(tmp_path)
    (root / "link.html").symlink_to(tmp_path / "secret.txt")

    assert isinstance(resolve_file("/link.html", root), NotFound)


def test_embedded_null_byte_is_not_found(tmp_path: Path) -> None:
    root = _make_root(tmp_path)

    assert isinstance(resolve_file("/index.html%00.gif", root), NotFound)


def test_unreadable_path_is_not_found(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = _make_root(tmp_path)

    def denied(self: Path) -> bool:
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "is_file", denied)

    assert isinstance(resolve_file("/index.html", root), NotFound)
