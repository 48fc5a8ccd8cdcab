"""Authenticated static file handler."""

from html import escape
from pathlib import Path

from auth import DEFAULT_CREDENTIALS, Credentials, validate_credentials
from config import DOCUMENT_ROOT
from outcome import AuthFailure, NotFound, ResponseOutcome, Success
from request import HTTPRequest
from response import HTTPResponse
from utils import resolve_file

HTML_CONTENT_TYPE = "text/html; charset=UTF-8"

UNAUTHORIZED_PAGE = (
    "<!DOCTYPE html>"
    '<html lang="en">'
    "<head>"
    '<meta charset="UTF-8">'
    "<title>401 Unauthorized</title>"
    "</head>"
    "<body>"
    "<h1>401 Unauthorized</h1>"
    "<p>Unauthorized access: the username or password is incorrect.</p>"
    "</body></html>"
)

NOT_FOUND_TEMPLATE = (
    "<!DOCTYPE html>"
    '<html lang="en">'
    "<head>"
    '<meta charset="UTF-8">'
    "<title>404 Not Found</title>"
    "</head>"
    "<body>"
    "<h1>404 Not Found</h1>"
    "<p>File not found: {requested}</p>"
    "<p>Please check that the file path is correct.</p>"
    "</body></html>"
)


def decide_outcome(
    request: HTTPRequest,
    document_root: str | Path = DOCUMENT_ROOT,
    credentials: Credentials = DEFAULT_CREDENTIALS,
) -> ResponseOutcome:
    if not validate_credentials(request.query_params, credentials):
        return AuthFailure()
    return resolve_file(request.path, document_root)


def _printable(requested: str) -> str:
    # Undecodable request bytes arrive as surrogates.
    return requested.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def build_response(outcome: ResponseOutcome) -> HTTPResponse:
    if isinstance(outcome, Success):
        return HTTPResponse(
            status_code=200,
            headers={"Content-Type": outcome.content_type},
            file_path=outcome.file_path,
        )
    if isinstance(outcome, NotFound):
        return HTTPResponse(
            status_code=404,
            headers={"Content-Type": HTML_CONTENT_TYPE},
            body=NOT_FOUND_TEMPLATE.format(requested=escape(_printable(outcome.requested))),
        )
    return HTTPResponse(
        status_code=401,
        headers={"Content-Type": HTML_CONTENT_TYPE},
        body=UNAUTHORIZED_PAGE,
    )


def serve_file(
    request: HTTPRequest,
    document_root: str | Path = DOCUMENT_ROOT,
    credentials: Credentials = DEFAULT_CREDENTIALS,
) -> HTTPResponse:
    return build_response(decide_outcome(request, document_root, credentials))
