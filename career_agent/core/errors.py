"""Errors the HTTP layer turns into the error envelope.

Services and routes raise these; ``main.api_error_handler`` renders them.
Anything else that escapes a route becomes a 500 INTERNAL_ERROR.
"""


class APIError(Exception):
    """An error with a stable code and an HTTP status.

    Attributes:
        code: Machine-readable code, e.g. "NOT_FOUND".
        message: Text safe to show the caller.
        status_code: HTTP status to respond with.
        details: Field-level problems, when there are any.
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(APIError):
    """The request was well-formed JSON but its values are unacceptable."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(APIError):
    """The resource does not exist or belongs to another user.

    Both cases produce the same response so that ids owned by other users
    cannot be guessed. The id is kept on the exception for logging only.
    """

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id
