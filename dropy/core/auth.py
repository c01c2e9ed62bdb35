"""Bearer token handling for Dropbox API requests."""

import os

from dropy.core.const import ACCESS_TOKEN_ENV_VAR
from dropy.core.exceptions import AuthenticationError


class Auth:
    """Holds the access token used to authorize API requests.

    Token refresh is not handled here; callers supply a valid token or set
    the ``DROPBOX_ACCESS_TOKEN`` environment variable.
    """

    def __init__(self, access_token: str | None = None):
        self._access_token = access_token

    @property
    def access_token(self) -> str | None:
        """Return the explicit token, falling back to the environment."""
        return self._access_token or os.getenv(ACCESS_TOKEN_ENV_VAR)

    def get_headers(self) -> dict[str, str]:
        """Get the authorization headers for a request.

        Returns:
            Headers carrying the bearer token.

        Raises:
            AuthenticationError: If no token is configured.
        """
        token = self.access_token
        if not token:
            raise AuthenticationError(
                f"No access token provided. Pass one explicitly or set "
                f"{ACCESS_TOKEN_ENV_VAR}."
            )
        return {"Authorization": f"Bearer {token}"}
