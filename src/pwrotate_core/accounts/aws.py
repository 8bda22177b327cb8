"""AWS Secrets Manager account provider.

This module provides the AWSSecretsAccountProvider class for reading account
settings stored as a JSON secret in AWS Secrets Manager.
"""

import json
import os

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from pwrotate_core.exceptions import ConfigurationError

# Get logger for this module
logger = structlog.get_logger(__name__)

SECRET_NAME_SUFFIX = "-ftp-account"


class AWSSecretsAccountProvider:
    """Account provider that fetches settings from AWS Secrets Manager."""

    def __init__(
        self, region: str | None = None, endpoint_url: str | None = None
    ) -> None:
        """Initialize the AWS Secrets account provider.

        Args:
            region: AWS region to use for Secrets Manager. Defaults to the
                AWS_REGION env var or eu-west-2.
            endpoint_url: Optional custom endpoint URL for testing or local
                development.
        """
        if region is None:
            region = os.getenv("AWS_REGION", "eu-west-2")
        self.region = region
        self.endpoint_url = endpoint_url
        self._secrets_cache: dict[str, dict[str, object]] = {}

    def _create_client(self):  # noqa: ANN202
        profile_name = os.getenv("AWS_PROFILE")
        if profile_name:
            session = boto3.session.Session(profile_name=profile_name)
        else:
            session = boto3.session.Session()
        client_kwargs = {"service_name": "secretsmanager", "region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        return session.client(**client_kwargs)  # type: ignore[call-overload]

    def _fetch_secret(self, account_name: str) -> dict[str, object]:
        secret_name = f"{account_name}{SECRET_NAME_SUFFIX}"
        try:
            response = self._create_client().get_secret_value(SecretId=secret_name)
            secret_data = json.loads(response["SecretString"])
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code == "ResourceNotFoundException":
                raise ConfigurationError(
                    f"Secret '{secret_name}' not found", "accounts"
                ) from e
            if error_code == "AccessDeniedException":
                raise ConfigurationError(
                    f"Access denied to secret '{secret_name}'", "accounts"
                ) from e
            raise ConfigurationError(
                f"AWS Secrets Manager error: {e}", "accounts"
            ) from e
        except BotoCoreError as e:
            raise ConfigurationError(
                f"AWS Secrets Manager error: {e}", "accounts"
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Secret '{secret_name}' not valid JSON", "accounts"
            ) from e

        if not isinstance(secret_data, dict):
            raise ConfigurationError(
                f"Secret '{secret_name}' must hold a JSON object", "accounts"
            )
        logger.debug("Account secret fetched", secret_name=secret_name)
        return secret_data

    async def get_value(self, account_name: str, key: str) -> str | None:
        """Get an account setting from the ``{account}-ftp-account`` secret.

        The whole secret is fetched once per account and cached.
        """
        if account_name not in self._secrets_cache:
            self._secrets_cache[account_name] = self._fetch_secret(account_name)

        value = self._secrets_cache[account_name].get(key)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, str | int):
            raise ConfigurationError(
                f"Setting '{key}' of account '{account_name}' is not a string: "
                f"{type(value).__name__}",
                "accounts",
            )
        return str(value)

    def clear(self) -> None:
        """Clear the secrets cache."""
        self._secrets_cache.clear()
