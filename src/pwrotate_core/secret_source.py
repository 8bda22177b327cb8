"""Secret sources used to produce the next password.

The credential store does not know how new passwords are made; it is
composed with a ``SecretSource``. ``RandomSecretGenerator`` draws random
alphanumeric strings that always contain a digit, and ``StaticSecretSource``
hands back a password chosen by the operator.
"""

import random
import string
from typing import Protocol

from pwrotate_core.exceptions import ConfigurationError

DEFAULT_SECRET_LENGTH = 8
DEFAULT_ALPHABET = string.ascii_lowercase + string.digits

# Characters that would break the PASS old/new/new idiom or the line framing.
FORBIDDEN_SECRET_CHARACTERS = frozenset("/\r\n")


class SecretSource(Protocol):
    """Interface for anything that can supply a new secret."""

    def generate(self) -> str:
        """Return the next secret."""
        ...


def validate_secret(secret: str, label: str = "secret") -> str:
    """Check that a secret can travel on the control channel.

    Raises:
        ConfigurationError: If the secret is empty or contains whitespace,
            a slash or a line break.
    """
    if not secret:
        raise ConfigurationError(f"The {label} must not be empty", "secret")
    if any(ch in FORBIDDEN_SECRET_CHARACTERS or ch.isspace() for ch in secret):
        raise ConfigurationError(
            f"The {label} must not contain whitespace or '/'", "secret"
        )
    return secret


def contains_digit(word: str) -> bool:
    return any(ch.isdigit() for ch in word)


class RandomSecretGenerator:
    """Generate fixed-length random secrets with at least one digit.

    Whole strings are resampled until one contains a digit, so every position
    keeps the same character distribution. The alphabet must contain a digit,
    which is checked here rather than discovered as an endless loop.
    """

    def __init__(
        self,
        length: int = DEFAULT_SECRET_LENGTH,
        alphabet: str = DEFAULT_ALPHABET,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            length: Number of characters in each generated secret.
            alphabet: Characters to draw from. Must be alphanumeric and
                contain at least one digit.
            rng: Random source. Defaults to ``random.SystemRandom``.
        """
        self._check_length(length)
        if not alphabet:
            raise ConfigurationError("Secret alphabet must not be empty", "secret")
        if not alphabet.isalnum():
            raise ConfigurationError(
                "Secret alphabet must only contain letters and digits", "secret"
            )
        if not contains_digit(alphabet):
            raise ConfigurationError(
                "Secret alphabet must contain at least one digit", "secret"
            )
        self.length = length
        self.alphabet = alphabet
        self._rng = rng or random.SystemRandom()

    @staticmethod
    def _check_length(length: int) -> None:
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise ConfigurationError(
                f"Secret length must be a positive integer, got {length!r}", "secret"
            )

    def generate_with_length(self, length: int) -> str:
        """Return a random secret of ``length`` characters containing a digit."""
        self._check_length(length)
        while True:
            candidate = "".join(self._rng.choice(self.alphabet) for _ in range(length))
            if contains_digit(candidate):
                return candidate

    def generate(self) -> str:
        return self.generate_with_length(self.length)


class StaticSecretSource:
    """Secret source that always returns the operator-supplied password."""

    def __init__(self, secret: str) -> None:
        self._secret = validate_secret(secret, "new password")

    def generate(self) -> str:
        return self._secret
