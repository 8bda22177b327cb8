"""Password rotation orchestration.

The rotator reads the current password, asks for a new one, has the remote
system change it and only then writes the new password to the password
file. A password the remote system never confirmed is never persisted:
doing so would leave the file out of step with the real password and lock
out every later rotation.
"""

from dataclasses import dataclass

import structlog

from pwrotate_core.core import Account, PasswordChanger, RotationOutcome
from pwrotate_core.credential_store import CredentialStore
from pwrotate_core.exceptions import (
    CredentialFileError,
    RotationFailedError,
    SecretNotPersistedError,
)

# Get logger for this module
logger = structlog.get_logger(__name__)


@dataclass
class RotationResult:
    """Summary of a completed rotation."""

    account: Account
    outcome: RotationOutcome
    new_secret: str


class Rotator:
    """Rotate one account's password and keep the password file in step."""

    def __init__(self, store: CredentialStore, client: PasswordChanger) -> None:
        """Initialize the rotator.

        Args:
            store: Password file, composed with the source of new passwords.
            client: Protocol client that performs the remote change.
        """
        self.store = store
        self.client = client

    async def rotate(self, account: Account) -> RotationResult:
        """Run one rotation.

        Raises:
            CredentialFileError: If the password file cannot be read or has no
                password line. Nothing is sent to the remote system.
            RotationFailedError: If the remote system did not confirm the
                change. The password file is left untouched.
            SecretNotPersistedError: If the remote password changed but the
                password file could not be written.
        """
        self.store.load()
        current_secret = self.store.current_secret()
        new_secret = self.store.generate_new_secret()

        logger.info(
            "Rotating password", account=str(account), path=str(self.store.path)
        )
        outcome = await self.client.rotate(account, current_secret, new_secret)
        if not outcome.success:
            logger.error(
                "Password rotation failed, password file left unchanged",
                account=str(account),
                reason=outcome.reason.value if outcome.reason else None,
                error=str(outcome.error),
            )
            raise RotationFailedError(outcome)

        try:
            self.store.save(new_secret)
        except CredentialFileError as e:
            logger.critical(
                "Remote password changed but password file was not updated",
                account=str(account),
                path=str(self.store.path),
                error=e.message,
            )
            raise SecretNotPersistedError(new_secret, e) from e

        logger.info("Password rotated", account=str(account), path=str(self.store.path))
        return RotationResult(account=account, outcome=outcome, new_secret=new_secret)
