"""Application error taxonomy.

Each error carries the HTTP status it maps to. Handlers raise these and the
application layer (see ``main.py``) turns them into plain-text responses,
so nothing on a request path ever terminates the process.
"""


class CourtsideError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(CourtsideError):
    """Malformed input: bad email, empty field, unparsable id."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(CourtsideError):
    """Credentials did not match a stored user."""

    status_code = 401
    default_message = "Invalid email or password"


class LoginRequired(AuthError):
    """No authenticated session on a protected route. Rendered as a redirect to the login page."""

    status_code = 303
    default_message = "Login required"


class NotFoundError(CourtsideError):
    status_code = 404
    default_message = "User not found"


class MethodNotAllowedError(CourtsideError):
    status_code = 405
    default_message = "Method not allowed"


class StorageError(CourtsideError):
    """A query, statement or session write failed."""

    status_code = 500
    default_message = "Internal server error"
