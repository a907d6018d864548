"""
core/errors.py -- Domain exception taxonomy for UniDirectory.

Stores and services raise these; api/main.py maps them to HTTP responses and
web/routes.py turns the page-level ones into redirects. Nothing here knows
about HTTP.
"""


class DirectoryError(Exception):
    """Base class for every error the application raises on purpose."""


class DuplicateUsernameError(DirectoryError):
    """Registration conflict: the normalized username is already taken."""

    def __init__(self, username: str) -> None:
        super().__init__(f"Username {username!r} is already registered.")
        self.username = username


class AuthenticationFailure(DirectoryError):
    """Bad credentials.

    Deliberately carries no detail: an unknown username and a wrong password
    must be indistinguishable to the caller.
    """

    def __init__(self) -> None:
        super().__init__("Invalid username or password.")


class NotFound(DirectoryError):
    """A user or profile lookup found nothing."""


class Unauthorized(DirectoryError):
    """A protected API operation was called without a valid session."""

    def __init__(self) -> None:
        super().__init__("Unauthorized API Usage.")


class StoreError(DirectoryError):
    """The underlying persistence layer failed (connectivity, schema, ...)."""
