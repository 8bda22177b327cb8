"""Account settings providers."""

from .aws import AWSSecretsAccountProvider
from .base import AccountProvider, parse_port, resolve_account
from .environment import EnvironmentAccountProvider
from .factory import UnknownProviderTypeError, create_account_provider

__all__ = [
    "AWSSecretsAccountProvider",
    "AccountProvider",
    "EnvironmentAccountProvider",
    "UnknownProviderTypeError",
    "create_account_provider",
    "parse_port",
    "resolve_account",
]
