"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class NotInitializedError(AppError):
    """Raised when the coordinator is used before its state was loaded."""

    def __init__(self, message: str = "Portfolio state has not been loaded yet"):
        super().__init__(message, code="NOT_INITIALIZED")


class SignInRequiredError(AppError):
    """Raised when an operation needs a signed-in identity."""

    def __init__(self, action: str):
        super().__init__(f"Please sign in to {action}", code="SIGN_IN_REQUIRED")


class IdentityMismatchError(AppError):
    """Raised when a row is mutated by someone other than its owner."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} {identifier} is not owned by the current user",
            code="IDENTITY_MISMATCH",
        )


class StorageUnavailableError(AppError):
    """Raised by a local store that cannot be read or written."""

    def __init__(self, message: str = "Local storage is unavailable"):
        super().__init__(message, code="STORAGE_UNAVAILABLE")


class RemoteStoreError(AppError):
    """Raised when the remote store cannot complete a request."""

    def __init__(self, message: str):
        super().__init__(message, code="REMOTE_STORE_ERROR")


class RemoteWriteError(AppError):
    """Raised by a manual sync when the remote write fails."""

    def __init__(self, message: str):
        super().__init__(message, code="REMOTE_WRITE_FAILED")
