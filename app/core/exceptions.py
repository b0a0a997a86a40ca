"""Custom exceptions for the movie lists application.

Every error carries:
- an internal message for logs
- a safe ``user_message`` rendered on the error page
- the HTTP ``status_code`` the route layer answers with
"""


class MovieListsError(Exception):
    """Base exception for movie lists errors."""

    status_code: int = 500

    def __init__(self, message: str, user_message: str | None = None):
        """
        Initialize the error.

        Args:
            message: Internal error message for logging/debugging
            user_message: Safe message to show to users (defaults to generic message)
        """
        super().__init__(message)
        self.user_message = user_message or "An error occurred while processing your request."


class NotFoundError(MovieListsError):
    """Requested document or resource does not exist."""

    status_code = 404

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message, user_message or message)


class ConflictError(MovieListsError):
    """Duplicate id or stale revision token."""

    status_code = 409

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(
            message,
            user_message or "This item was changed by someone else. Reload and try again.",
        )


class UpstreamError(MovieListsError):
    """The document store or the movie catalog answered with an error."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        user_message: str | None = None,
    ):
        super().__init__(message, user_message or "Something broke!")
        self.status_code = status_code


class BulkUpdateError(UpstreamError):
    """Some documents of a bulk write were rejected.

    ``failures`` maps each rejected document id to the store's error name.
    Documents not listed were written.
    """

    def __init__(self, failures: dict[str, str], status_code: int = 409):
        super().__init__(
            f"Bulk update rejected {len(failures)} document(s): {failures}",
            status_code=status_code,
        )
        self.failures = failures


class ForbiddenError(MovieListsError):
    """Ownership or guest permission check failed."""

    status_code = 403

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message, user_message or "Forbidden - You do not have permission to access this list")


class InvalidCredentialsError(MovieListsError):
    """Login failed."""

    status_code = 401

    def __init__(self, message: str = "Invalid Credentials", user_message: str | None = None):
        super().__init__(message, user_message or "Invalid username or password")


class InvalidInputError(MovieListsError):
    """Request data violates a domain rule."""

    status_code = 400

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message, user_message or message)


class LoginRequiredError(MovieListsError):
    """No valid session. The app answers with a redirect to the login page."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, "Please log in.")
