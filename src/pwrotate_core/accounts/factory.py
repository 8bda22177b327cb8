"""Account provider factory functions.

This module provides the factory function for creating account provider
instances backed by AWS Secrets Manager or environment variables.
"""

from pwrotate_core.exceptions import ConfigurationError

from .aws import AWSSecretsAccountProvider
from .base import AccountProvider
from .environment import DEFAULT_ENV_PREFIX, EnvironmentAccountProvider


class UnknownProviderTypeError(ConfigurationError):
    """Raised when an unknown account provider type is specified."""

    def __init__(self, provider_type: str) -> None:
        """Initialize the unknown provider type error.

        Args:
            provider_type: The unknown provider type that was specified.
        """
        super().__init__(f"Unknown provider type: {provider_type}", "accounts")
        self.provider_type = provider_type


def create_account_provider(
    provider_type: str = "environment",
    aws_region: str | None = None,
    aws_endpoint_url: str | None = None,
    env_prefix: str | None = None,
) -> AccountProvider:
    """Create an account provider instance.

    Args:
        provider_type: Provider type to use ("environment"/"env" or "aws").
        aws_region: AWS region for Secrets Manager. If None, the provider
            falls back to AWS_REGION.
        aws_endpoint_url: AWS endpoint URL for LocalStack testing.
        env_prefix: Environment variable prefix for the environment provider.

    Returns:
        Configured account provider instance.
    """
    provider_type = provider_type.lower()

    if provider_type == "aws":
        return AWSSecretsAccountProvider(
            region=aws_region, endpoint_url=aws_endpoint_url
        )
    if provider_type in ("environment", "env"):
        if env_prefix is None:
            env_prefix = DEFAULT_ENV_PREFIX

        return EnvironmentAccountProvider(prefix=env_prefix)
    raise UnknownProviderTypeError(provider_type)
