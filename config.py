"""Configuration constants for the keep-alive file server."""

HOST: str = "0.0.0.0"
PORT: int = 6789
DOCUMENT_ROOT: str = "public"
INDEX_FILE: str = "index.html"
VALID_USERNAME: str = "admin"
VALID_PASSWORD: str = "123456"
KEEPALIVE_TIMEOUT_SECS: int = 5
MAX_KEEPALIVE_REQUESTS: int = 100
READ_CHUNK_SIZE: int = 8192
LISTEN_BACKLOG: int = 128
ACCEPT_TIMEOUT_SECS: float = 0.2
LOG_FORMAT: str = "plain"
SERVER_NAME: str = "KeepAliveFileServer/1.0"
