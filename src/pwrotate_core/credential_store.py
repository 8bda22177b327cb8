"""Password file storage.

A password file holds any number of leading comment lines (lines starting
with ``#``) followed by the password on the first non-comment line.
Everything after the password is ignored. When the file is re-saved, the
leading comments are written back verbatim and in order, followed by the
new password; anything that followed the old password is dropped.

Example::

    # rotated nightly by cron
    # owner: library systems
    s3cr3tpw
"""

import contextlib
import os
import stat
import tempfile
from collections.abc import Iterable
from pathlib import Path

import structlog

from pwrotate_core.core import Credential
from pwrotate_core.exceptions import ConfigurationError, CredentialFileError
from pwrotate_core.secret_source import SecretSource

# Get logger for this module
logger = structlog.get_logger(__name__)

COMMENT_PREFIX = "#"
DEFAULT_PASSWORD_FILE = "password.txt"
FILE_ENCODING = "utf-8"


def load_credential(path: str | os.PathLike[str]) -> Credential:
    """Read the preamble and password from a password file.

    Args:
        path: Location of the password file.

    Returns:
        The loaded credential. ``secret_value`` is None when the file only
        holds comment lines.

    Raises:
        CredentialFileError: If the file cannot be opened or read.
    """
    credential = Credential()
    try:
        with open(path, encoding=FILE_ENCODING) as f:
            for line in f:
                line = line.rstrip("\r\n")
                if line.startswith(COMMENT_PREFIX):
                    credential.preamble.append(line)
                else:
                    credential.secret_value = line.strip()
                    break  # anything after the password is not kept
    except (OSError, UnicodeDecodeError) as e:
        error_message = f"Unable to read password file '{path}': {e}"
        raise CredentialFileError(error_message, str(path)) from e

    logger.debug(
        "Password file loaded",
        path=str(path),
        comment_lines=len(credential.preamble),
        has_secret=credential.secret_value is not None,
    )
    return credential


def render_credential(preamble: Iterable[str], secret_value: str) -> str:
    """Return the textual layout of a password file."""
    return "".join(f"{line}\n" for line in preamble) + secret_value


def save_credential(
    path: str | os.PathLike[str], preamble: Iterable[str], secret_value: str
) -> None:
    """Replace the password file with the preamble and a new password.

    The content is written to a temporary file in the same directory and
    moved over the original, so a failure part way through leaves the old
    file intact.

    Raises:
        CredentialFileError: If the new content cannot be written.
    """
    target = Path(path)
    content = render_credential(preamble, secret_value)

    try:
        mode = stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        mode = None
    except OSError as e:
        error_message = f"Unable to inspect password file '{target}': {e}"
        raise CredentialFileError(error_message, str(target)) from e

    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding=FILE_ENCODING, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as e:
        error_message = f"Unable to write password file '{target}': {e}"
        raise CredentialFileError(error_message, str(target)) from e
    finally:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)

    logger.debug("Password file saved", path=str(target))


class CredentialStore:
    """Password file bound to a path and composed with a secret source."""

    def __init__(
        self,
        path: str | os.PathLike[str] = DEFAULT_PASSWORD_FILE,
        secret_source: SecretSource | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            path: Location of the password file.
            secret_source: Source of new passwords, used by
                ``generate_new_secret``.
        """
        self.path = Path(path)
        self.secret_source = secret_source
        self._credential: Credential | None = None

    @property
    def credential(self) -> Credential:
        """The credential read by the last ``load`` call."""
        if self._credential is None:
            self._credential = self.load()
        return self._credential

    def load(self) -> Credential:
        """Read the password file, replacing any previously loaded state."""
        self._credential = load_credential(self.path)
        return self._credential

    def current_secret(self) -> str:
        """Return the stored password.

        Raises:
            MissingSecretError: If the file has no password line.
        """
        return self.credential.require_secret(str(self.path))

    def generate_new_secret(self) -> str:
        """Ask the composed secret source for the next password."""
        if self.secret_source is None:
            error_message = "No secret source configured for the credential store"
            raise ConfigurationError(error_message, "credential_store")
        return self.secret_source.generate()

    def save(self, new_secret: str) -> None:
        """Persist ``new_secret`` behind the preserved comment lines.

        The in-memory credential is only updated once the file is written.
        """
        credential = self.credential
        save_credential(self.path, credential.preamble, new_secret)
        credential.secret_value = new_secret
