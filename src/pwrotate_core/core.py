"""Core data types shared by the rotator components.

This module defines the account, credential and rotation outcome types that
flow between the credential store, the secret sources and the protocol
clients, together with the protocol client interface itself.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol

from pwrotate_core.exceptions import (
    MissingSecretError,
    PasswordRotatorError,
    ProtocolError,
    RotationConnectionError,
    UnexpectedReplyError,
)

DEFAULT_CONTROL_PORT = 21


@dataclass(frozen=True)
class Account:
    """Remote account whose password is rotated.

    Read-only configuration handed to the protocol client on every call.
    """

    host: str
    user_name: str
    port: int = DEFAULT_CONTROL_PORT

    def __str__(self) -> str:
        return f"{self.user_name}@{self.host}:{self.port}"


@dataclass
class Credential:
    """The live secret plus the comment lines that precede it on disk."""

    secret_value: str | None = None
    preamble: list[str] = field(default_factory=list)

    def require_secret(self, path: str | None = None) -> str:
        """Return the secret, failing when the file held no secret line.

        Raises:
            MissingSecretError: If no secret line was found during load.
        """
        if self.secret_value is None:
            location = f" in '{path}'" if path else ""
            error_message = f"No password line found{location}"
            raise MissingSecretError(error_message, path)
        return self.secret_value


class FailureReason(enum.Enum):
    """Why a rotation did not happen."""

    CONNECTION_ERROR = "connection_error"
    PROTOCOL_ERROR = "protocol_error"
    UNEXPECTED_REPLY = "unexpected_reply"


@dataclass(frozen=True)
class RotationOutcome:
    """Tagged result of a rotation attempt.

    Either the new secret is confirmed live on the remote system, or the
    rotation is considered not to have happened. There is no partial state.
    """

    success: bool
    reason: FailureReason | None = None
    error: PasswordRotatorError | None = None

    @classmethod
    def succeeded(cls) -> RotationOutcome:
        return cls(success=True)

    @classmethod
    def failed(cls, error: PasswordRotatorError) -> RotationOutcome:
        """Build a failed outcome, deriving the reason from the error type."""
        if isinstance(error, RotationConnectionError):
            reason = FailureReason.CONNECTION_ERROR
        elif isinstance(error, UnexpectedReplyError):
            reason = FailureReason.UNEXPECTED_REPLY
        elif isinstance(error, ProtocolError):
            reason = FailureReason.PROTOCOL_ERROR
        else:
            raise TypeError(f"Not a rotation failure: {type(error).__name__}")
        return cls(success=False, reason=reason, error=error)


class PasswordChanger(Protocol):
    """Interface for clients that change a password on a remote system."""

    async def rotate(
        self, account: Account, old_secret: str, new_secret: str
    ) -> RotationOutcome:
        """Replace ``old_secret`` with ``new_secret`` for ``account``.

        Args:
            account: The remote account.
            old_secret: The password currently live on the remote system.
            new_secret: The password to install.

        Returns:
            The outcome of the attempt.
        """
        ...
