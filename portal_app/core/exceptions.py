class PortalError(Exception):
    """Base class for every failure raised by the portal core."""

    detail = "Something went wrong on our end. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.detail)
        self.message = message or self.detail


class ConfigurationError(PortalError):
    detail = "Portal is misconfigured"


class ValidationError(PortalError):
    detail = "Invalid or missing input"


class ApplicationNotFound(ValidationError):
    detail = "Application not found"


class ApplicationAlreadyDecided(ValidationError):
    detail = "Application has already been decided"


class AuthError(PortalError):
    """Recoverable by re-authenticating. The precise subclass is only logged."""

    detail = "Not authenticated"


class SessionNotFound(AuthError):
    detail = "Session token not found"


class SessionExpired(AuthError):
    detail = "Session token expired"


class InvalidCSRF(AuthError):
    detail = "CSRF token does not match the session"


class InvalidCredentials(AuthError):
    detail = "Invalid credentials"


class ConcurrentRotation(AuthError):
    detail = "Session was rotated by a concurrent request"


class AccessDenied(AuthError):
    detail = "Access denied"


class CryptoError(PortalError):
    detail = "Unable to process protected data"


class DecryptionFailed(CryptoError):
    detail = "Ciphertext failed authentication"


class CorruptCredential(CryptoError):
    detail = "Stored password hash is malformed"


class StorageError(PortalError):
    detail = "Storage operation failed"


class NotificationError(PortalError):
    detail = "Notification could not be delivered"

    def __init__(
        self,
        message: str | None = None,
        application_id: int | None = None,
        message_id: int | None = None,
    ):
        super().__init__(message)
        self.application_id = application_id
        self.message_id = message_id


class ApprovalIncomplete(PortalError):
    """Raised when an approval was persisted but a later step failed.

    The application stays ``approved``; ``step`` tells an operator what
    still has to be reconciled by hand.
    """

    detail = "Application approved but provisioning did not complete"

    def __init__(self, application_id: int, step: str, cause: Exception):
        super().__init__(
            f"Application {application_id} approved but step '{step}' failed: "
            f"{type(cause).__name__}"
        )
        self.application_id = application_id
        self.step = step
        self.cause = cause
