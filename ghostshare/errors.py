"""Error hierarchy for ghostshare.

Denied access is not an error: it is returned as an ``AccessResult``
value. These exceptions cover bad input, missing resources, storage
failures and confirmation token misuse.
"""


class GhostShareError(Exception):
    """Base for all ghostshare errors."""

    pass


class ValidationError(GhostShareError, ValueError):
    """Malformed input, rejected before anything is written."""

    pass


class NotFoundError(GhostShareError, LookupError):
    """A referenced record or document does not exist."""

    pass


class PermissionDeniedError(GhostShareError, PermissionError):
    """The caller is not allowed to perform a write or moderation action."""

    pass


class StorageError(GhostShareError):
    """Raised by store implementations on storage failures."""

    pass


class VersionConflictError(StorageError):
    """Raised when a compare-and-set finds a different version than expected."""

    def __init__(self, path: str, expected_version: int, actual_version: int):
        self.path = path
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Version conflict on {path}: expected version {expected_version}, "
            f"found version {actual_version}"
        )


class TokenError(GhostShareError):
    """Base for confirmation token misuse."""

    def __init__(self, token: str, message: str):
        self.token = token
        super().__init__(message)


class TokenNotFoundError(TokenError):
    def __init__(self, token: str):
        super().__init__(token, "Confirmation token not found.")


class TokenExpiredError(TokenError):
    def __init__(self, token: str):
        super().__init__(token, "Confirmation token has expired. Create a new request.")


class TokenConsumedError(TokenError):
    def __init__(self, token: str, status: str):
        self.status = status
        super().__init__(token, f"Confirmation token was already used (status: {status}).")
