"""Tests for the account settings providers."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from pwrotate_core.accounts import (
    AWSSecretsAccountProvider,
    EnvironmentAccountProvider,
    UnknownProviderTypeError,
    create_account_provider,
    resolve_account,
)
from pwrotate_core.core import Account
from pwrotate_core.exceptions import ConfigurationError


def _client_returning(secret: object) -> MagicMock:
    client = MagicMock()
    client.get_secret_value.return_value = {"SecretString": json.dumps(secret)}
    return client


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetSecretValue")


class TestEnvironmentAccountProvider:
    """Test reading account settings from environment variables."""

    def test_variable_name(self) -> None:
        """Test the variable naming scheme."""
        provider = EnvironmentAccountProvider()

        assert provider.variable_name("oclc", "host") == "PWROTATE_ACCOUNT_OCLC_HOST"
        assert (
            provider.variable_name("my-account", "user_name")
            == "PWROTATE_ACCOUNT_MY_ACCOUNT_USER_NAME"
        )

    @pytest.mark.asyncio
    async def test_resolve_account(self) -> None:
        """Test resolving a full account from the environment."""
        env = {
            "PWROTATE_ACCOUNT_OCLC_HOST": "ftp.example.org",
            "PWROTATE_ACCOUNT_OCLC_USER_NAME": "tcpuser",
            "PWROTATE_ACCOUNT_OCLC_PORT": "2121",
        }
        with patch.dict(os.environ, env):
            account = await resolve_account(EnvironmentAccountProvider(), "oclc")

        assert account == Account(
            host="ftp.example.org", user_name="tcpuser", port=2121
        )

    @pytest.mark.asyncio
    async def test_port_defaults_to_21(self) -> None:
        """Test that the port setting is optional."""
        env = {
            "T_OCLC_HOST": "ftp.example.org",
            "T_OCLC_USER_NAME": "tcpuser",
        }
        with patch.dict(os.environ, env):
            account = await resolve_account(EnvironmentAccountProvider("T_"), "oclc")

        assert account.port == 21

    @pytest.mark.asyncio
    async def test_missing_settings_reported(self) -> None:
        """Test that every missing required setting is named."""
        provider = EnvironmentAccountProvider("PWROTATE_TEST_NONE_")

        with pytest.raises(ConfigurationError, match="host, user_name"):
            await resolve_account(provider, "ghost")

        assert "PWROTATE_TEST_NONE_GHOST_HOST" in provider.get_missing_variables()
        provider.clear()
        assert provider.get_missing_variables() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("port", ["0", "65536", "ftp"])
    async def test_invalid_port_rejected(self, port: str) -> None:
        """Test that the port must be a valid TCP port."""
        env = {
            "T_OCLC_HOST": "ftp.example.org",
            "T_OCLC_USER_NAME": "tcpuser",
            "T_OCLC_PORT": port,
        }
        with patch.dict(os.environ, env):
            with pytest.raises(ConfigurationError, match="Invalid port"):
                await resolve_account(EnvironmentAccountProvider("T_"), "oclc")


class TestAWSSecretsAccountProvider:
    """Test reading account settings from AWS Secrets Manager."""

    @pytest.mark.asyncio
    async def test_reads_account_secret(self) -> None:
        """Test that settings come from the {account}-ftp-account secret."""
        client = _client_returning(
            {"host": "ftp.example.org", "user_name": "tcpuser", "port": 2121}
        )
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            account = await resolve_account(provider, "oclc")

        assert account == Account(
            host="ftp.example.org", user_name="tcpuser", port=2121
        )
        client.get_secret_value.assert_called_once_with(SecretId="oclc-ftp-account")

    @pytest.mark.asyncio
    async def test_secret_is_cached(self) -> None:
        """Test that the secret is fetched once per account until cleared."""
        client = _client_returning({"host": "h", "user_name": "u"})
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            assert await provider.get_value("oclc", "host") == "h"
            assert await provider.get_value("oclc", "user_name") == "u"
            assert await provider.get_value("oclc", "port") is None
            provider.clear()
            await provider.get_value("oclc", "host")

        assert client.get_secret_value.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("code", "message"),
        [
            ("ResourceNotFoundException", "not found"),
            ("AccessDeniedException", "Access denied"),
            ("ThrottlingException", "AWS Secrets Manager error"),
        ],
    )
    async def test_client_errors_become_configuration_errors(
        self, code: str, message: str
    ) -> None:
        """Test the mapping of Secrets Manager errors."""
        client = MagicMock()
        client.get_secret_value.side_effect = _client_error(code)
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            with pytest.raises(ConfigurationError, match=message):
                await provider.get_value("oclc", "host")

    @pytest.mark.asyncio
    async def test_botocore_error(self) -> None:
        """Test that transport errors become configuration errors."""
        client = MagicMock()
        client.get_secret_value.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:4566"
        )
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            with pytest.raises(ConfigurationError, match="AWS Secrets Manager error"):
                await provider.get_value("oclc", "host")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Test that a secret that is not JSON is rejected."""
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretString": "not json"}
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            with pytest.raises(ConfigurationError, match="not valid JSON"):
                await provider.get_value("oclc", "host")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("secret", [["h", "u"], {"host": True}])
    async def test_unexpected_shapes_rejected(self, secret: object) -> None:
        """Test that non-object secrets and non-string values are rejected."""
        client = _client_returning(secret)
        provider = AWSSecretsAccountProvider(region="eu-west-2")

        with patch.object(provider, "_create_client", return_value=client):
            with pytest.raises(ConfigurationError):
                await provider.get_value("oclc", "host")

    def test_client_uses_profile_and_endpoint(self) -> None:
        """Test that the boto3 session honours the profile and endpoint."""
        provider = AWSSecretsAccountProvider(
            region="eu-west-1", endpoint_url="http://localhost:4566"
        )

        with (
            patch("boto3.session.Session") as mock_boto_session,
            patch.dict(os.environ, {"AWS_PROFILE": "ops"}),
        ):
            provider._create_client()

        mock_boto_session.assert_called_once_with(profile_name="ops")
        mock_boto_session.return_value.client.assert_called_once_with(
            service_name="secretsmanager",
            region_name="eu-west-1",
            endpoint_url="http://localhost:4566",
        )

    def test_region_defaults_from_environment(self) -> None:
        """Test the AWS_REGION fallback."""
        with patch.dict(os.environ, {"AWS_REGION": "us-east-1"}):
            assert AWSSecretsAccountProvider().region == "us-east-1"


class TestCreateAccountProvider:
    """Test the account provider factory."""

    def test_environment_provider(self) -> None:
        """Test creating the environment provider with a custom prefix."""
        provider = create_account_provider("env", env_prefix="X_")

        assert isinstance(provider, EnvironmentAccountProvider)
        assert provider.prefix == "X_"

    def test_aws_provider(self) -> None:
        """Test creating the AWS provider from explicit settings."""
        provider = create_account_provider(
            "AWS",
            aws_region="eu-central-1",
            aws_endpoint_url="http://localhost:4566",
        )

        assert isinstance(provider, AWSSecretsAccountProvider)
        assert provider.region == "eu-central-1"
        assert provider.endpoint_url == "http://localhost:4566"

    def test_default_ignores_provider_environment_variables(self) -> None:
        """Test that provider settings only come from the arguments given."""
        env = {
            "PWROTATE_ACCOUNT_PROVIDER_TYPE": "aws",
            "PWROTATE_ACCOUNT_PROVIDER_AWS_REGION": "eu-central-1",
        }
        with patch.dict(os.environ, env):
            provider = create_account_provider()

        assert isinstance(provider, EnvironmentAccountProvider)

    def test_unknown_provider(self) -> None:
        """Test that an unknown provider type is a configuration error."""
        with pytest.raises(UnknownProviderTypeError, match="vault") as exc_info:
            create_account_provider("vault")

        assert exc_info.value.provider_type == "vault"
