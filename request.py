"""HTTP request model and line-level parsers."""

from dataclasses import dataclass, field


class HTTPRequestParseError(ValueError):
    """Raised when a request line does not carry a method and a target."""


@dataclass(frozen=True, slots=True)
class HTTPRequest:
    method: str
    raw_target: str
    path: str
    http_version: str = ""
    query_params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    keep_alive: bool = True

    @classmethod
    def from_lines(cls, request_line: str, header_lines: list[str]) -> "HTTPRequest":
        """Build a request from an already-read request line and header lines."""
        method, target, http_version = parse_request_line(request_line)
        return cls.from_parts(method, target, http_version, header_lines)

    @classmethod
    def from_parts(
        cls,
        method: str,
        target: str,
        http_version: str,
        header_lines: list[str],
    ) -> "HTTPRequest":
        path, query_string = split_target(target)

        headers: dict[str, str] = {}
        for line in header_lines:
            parsed = parse_header_line(line)
            if parsed is None:
                continue
            name, value = parsed
            headers[name] = value

        return cls(
            method=method,
            raw_target=target,
            path=path,
            http_version=http_version,
            query_params=parse_query_string(query_string),
            headers=headers,
            keep_alive=is_keep_alive(headers),
        )


def parse_request_line(line: str) -> tuple[str, str, str]:
    """Split a request line on whitespace runs into (method, target, version)."""
    tokens = line.split()
    if len(tokens) < 2:
        raise HTTPRequestParseError("Request line needs a method and a target")
    http_version = tokens[2] if len(tokens) > 2 else ""
    return tokens[0], tokens[1], http_version


def split_target(target: str) -> tuple[str, str]:
    path, _separator, query_string = target.partition("?")
    return path, query_string


def parse_query_string(query_string: str) -> dict[str, str]:
    """Parse ``a=1&b=2`` pairs, silently dropping anything that is not one clean pair."""
    params: dict[str, str] = {}
    if not query_string:
        return params

    for pair in query_string.split("&"):
        if pair.count("=") != 1:
            continue
        key, value = pair.split("=", 1)
        if not key or not value:
            continue
        params[key] = value
    return params


def parse_header_line(line: str) -> tuple[str, str] | None:
    if ":" not in line:
        return None
    name, value = line.split(":", 1)
    header_name = name.strip().lower()
    if not header_name:
        return None
    return header_name, value.strip()


def is_keep_alive(headers: dict[str, str]) -> bool:
    # HTTP/1.1 default regardless of the version token.
    return headers.get("connection", "").strip().lower() != "close"
