"""Exception classes for the dropy client."""


class DropyError(Exception):
    """Base error for all dropy failures."""


class AuthenticationError(DropyError):
    """Raised when no access token is available for a request."""


class ConfigurationError(DropyError):
    """Raised when upload or listing arguments are inconsistent.

    Always raised before any network call is made.
    """


class ExhaustedInputError(DropyError):
    """Raised when a bounded listing request yields no entries."""


class ApiError(DropyError):
    """Raised when the remote API answers a call with an error status."""

    def __init__(self, endpoint: str, status_code: int, summary: str | None):
        """Initialize ApiError with the failing call's details.

        Args:
            endpoint: API endpoint that failed, e.g. ``files/upload_session/start``.
            status_code: HTTP status code returned by the server.
            summary: Error summary extracted from the response body.
        """
        self.endpoint = endpoint
        self.status_code = status_code
        self.summary = summary
        super().__init__(f"{endpoint} failed with HTTP {status_code}: {summary}")
