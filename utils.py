"""File resolution helpers for the document root."""

from pathlib import Path
from urllib.parse import unquote

from config import DOCUMENT_ROOT, INDEX_FILE
from outcome import NotFound, Success

CONTENT_TYPES: dict[str, str] = {
    ".htm": "text/html; charset=UTF-8",
    ".html": "text/html; charset=UTF-8",
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_content_type(file_name: str) -> str:
    # Case-sensitive on purpose: ".HTML" is not ".html".
    for suffix, content_type in CONTENT_TYPES.items():
        if file_name.endswith(suffix):
            return content_type
    return DEFAULT_CONTENT_TYPE


def resolve_file(request_path: str, document_root: str | Path = DOCUMENT_ROOT) -> Success | NotFound:
    """Map a request path to a regular file inside ``document_root``."""
    if request_path == "/":
        relative_path = INDEX_FILE
    else:
        relative_path = unquote(request_path).lstrip("/")

    if not relative_path:
        return NotFound(requested=request_path)

    root = Path(document_root).resolve()
    try:
        candidate = (root / relative_path).resolve()
        candidate.relative_to(root)
    except (OSError, ValueError):
        return NotFound(requested=request_path)

    try:
        is_regular_file = candidate.is_file()
    except OSError:
        # e.g. PermissionError for a file inside an unreadable directory
        return NotFound(requested=request_path)
    if not is_regular_file:
        return NotFound(requested=request_path)

    return Success(
        file_path=candidate,
        content_type=get_content_type(Path(relative_path).name),
    )
