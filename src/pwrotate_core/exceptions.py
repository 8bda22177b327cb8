"""Standardized exceptions for the password rotator.

This module provides consistent exception types and error handling patterns
across the credential store, the protocol client and the application layer.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pwrotate_core.core import RotationOutcome


class PasswordRotatorError(Exception):
    """Base exception for all password rotator errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize the error with a message and optional error code.

        Args:
            message: Human-readable error message.
            error_code: Optional error code for programmatic handling.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(PasswordRotatorError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, component: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue.
            component: Optional component name where the error occurred.
        """
        super().__init__(message, "CONFIG_ERROR")
        self.component = component


class RotationConnectionError(PasswordRotatorError):
    """Raised when the control connection cannot be established."""

    def __init__(self, message: str, host: str | None = None) -> None:
        """Initialize connection error.

        Args:
            message: Error message describing the connection issue.
            host: Optional remote host that could not be reached.
        """
        super().__init__(message, "CONNECTION_ERROR")
        self.host = host


class ProtocolError(PasswordRotatorError):
    """Raised when the session is aborted before the rotation is confirmed."""

    def __init__(
        self,
        message: str,
        step: str | None = None,
        error_code: str = "PROTOCOL_ERROR",
    ) -> None:
        """Initialize protocol error.

        Args:
            message: Error message describing the protocol failure.
            step: Optional session step ("banner", "user", "pass") that failed.
            error_code: Error code, overridden by subclasses.
        """
        super().__init__(message, error_code)
        self.step = step


class UnexpectedReplyError(ProtocolError):
    """Raised when strict reply checking finds an unexpected reply code."""

    def __init__(
        self, message: str, step: str | None = None, reply: str | None = None
    ) -> None:
        """Initialize unexpected reply error.

        Args:
            message: Error message describing the mismatch.
            step: Session step whose reply did not match.
            reply: The reply line that was received.
        """
        super().__init__(message, step, "UNEXPECTED_REPLY")
        self.reply = reply


class CredentialFileError(PasswordRotatorError):
    """Raised when the credential file cannot be read or written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize credential file error.

        Args:
            message: Error message describing the storage issue.
            path: Optional path of the credential file.
        """
        super().__init__(message, "STORAGE_ERROR")
        self.path = path


class MissingSecretError(CredentialFileError):
    """Raised when a credential file holds comment lines but no secret line."""


class RotationFailedError(PasswordRotatorError):
    """Raised when the remote system did not confirm the password change."""

    def __init__(self, outcome: "RotationOutcome") -> None:
        """Initialize the error from a failed rotation outcome.

        Args:
            outcome: The failed outcome reported by the protocol client.
        """
        reason = outcome.reason.value if outcome.reason else "unknown"
        detail = outcome.error.message if outcome.error else "no detail"
        super().__init__(
            f"Password rotation failed ({reason}): {detail}", "ROTATION_FAILED"
        )
        self.outcome = outcome


class SecretNotPersistedError(PasswordRotatorError):
    """Raised when the remote password changed but the local file was not updated.

    The new secret is carried on the error so the operator can repair the
    credential file by hand; without it the account would be locked out of
    future rotations.
    """

    def __init__(self, new_secret: str, cause: CredentialFileError) -> None:
        """Initialize the error.

        Args:
            new_secret: The secret that is now live on the remote system.
            cause: The storage error that prevented the save.
        """
        super().__init__(
            "Remote password was changed but the credential file was not "
            f"updated: {cause.message}",
            "SECRET_NOT_PERSISTED",
        )
        self.new_secret = new_secret
        self.cause = cause
