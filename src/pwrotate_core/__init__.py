"""Password rotator core.

Credential storage, secret sources, shared types and rotation
orchestration. Protocol clients live in their own packages.
"""

from .core import Account, Credential, FailureReason, PasswordChanger, RotationOutcome
from .credential_store import CredentialStore, load_credential, save_credential
from .rotator import RotationResult, Rotator
from .secret_source import RandomSecretGenerator, SecretSource, StaticSecretSource

__all__ = [
    "Account",
    "Credential",
    "CredentialStore",
    "FailureReason",
    "PasswordChanger",
    "RandomSecretGenerator",
    "RotationOutcome",
    "RotationResult",
    "Rotator",
    "SecretSource",
    "StaticSecretSource",
    "load_credential",
    "save_credential",
]
