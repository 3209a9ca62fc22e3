"""Custom exceptions for StreamGuard."""


class StreamGuardError(Exception):
    """Base exception for all StreamGuard errors."""

    pass


class ValidationError(StreamGuardError):
    """Validation failed."""

    pass


class NotFoundError(StreamGuardError):
    """Resource not found."""

    pass


class DuplicateUsernameError(StreamGuardError):
    """A user with the same (case-insensitive) username already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already taken: {username}")


class InvalidCredentialsError(StreamGuardError):
    """Username and password did not match any user."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class UserNotFoundError(NotFoundError):
    """No user with the given id."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class CheckInError(StreamGuardError):
    """Daily check-in cannot be claimed."""

    pass


class ExternalServiceError(StreamGuardError):
    """External service (JSONBin, Last.fm) failed."""

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class NetworkError(ExternalServiceError):
    """The request never got a response."""

    pass


class CloudSyncError(ExternalServiceError):
    """Remote document store request failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__("JSONBin", message)


class CloudAuthError(CloudSyncError):
    """Remote document store rejected the access key."""

    pass


class CloudNotFoundError(CloudSyncError):
    """Remote document id does not exist."""

    pass


class CloudSaveError(CloudSyncError):
    """Remote document could not be written."""

    pass


class CloudConnectionError(CloudSyncError):
    """New remote credentials failed verification."""

    pass


class HistoryApiError(ExternalServiceError):
    """Listening-history service returned an error."""

    def __init__(self, message: str):
        super().__init__("Last.fm", message)
