"""Request-terminal error kinds raised while serving a path."""


class FileServerError(Exception):
    """Base error carrying the HTTP status code answered to the client."""

    status_code: int = 500
    public_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class MalformedPathError(FileServerError):
    """Raised when a request path cannot be normalized."""

    status_code = 400
    public_message = "Invalid path"


class PathEscapeError(FileServerError):
    """Raised when a normalized path lies outside the served root."""

    status_code = 403
    public_message = "Access denied: Path outside directory"


class NotFoundError(FileServerError):
    status_code = 404
    public_message = "Not found"


class IOFailureError(FileServerError):
    """Raised for any other filesystem failure (permissions, unreadable dirs)."""

    status_code = 500
    public_message = "Server error"
