"""Base account provider interface and account resolution.

Account providers supply the connection settings of the remote account
(host, user name and optionally port) by account name, so the same binary
can rotate different accounts without code changes.
"""

from typing import Protocol

from pwrotate_core.core import DEFAULT_CONTROL_PORT, Account
from pwrotate_core.exceptions import ConfigurationError

HOST_KEY = "host"
USER_NAME_KEY = "user_name"
PORT_KEY = "port"


class AccountProvider(Protocol):
    """Interface for account settings providers."""

    async def get_value(self, account_name: str, key: str) -> str | None:
        """Get a setting of the named account.

        Args:
            account_name: The account name (e.g., "oclc")
            key: The setting key ("host", "user_name" or "port")

        Returns:
            The setting value, or None when the provider has no such setting.
        """
        ...

    def clear(self) -> None:
        """Clear any cached settings."""
        ...


def parse_port(value: str | int, account_name: str) -> int:
    """Parse a port setting, rejecting values outside 1-65535."""
    try:
        port = int(value)
    except ValueError:
        port = 0
    if not 0 < port < 65536:  # noqa: PLR2004
        raise ConfigurationError(
            f"Invalid port {value!r} for account '{account_name}'", "accounts"
        )
    return port


async def resolve_account(provider: AccountProvider, account_name: str) -> Account:
    """Build an ``Account`` from the settings held by ``provider``.

    Raises:
        ConfigurationError: If the host or user name is missing, or the port
            is not a valid TCP port.
    """
    host = await provider.get_value(account_name, HOST_KEY)
    user_name = await provider.get_value(account_name, USER_NAME_KEY)
    port_value = await provider.get_value(account_name, PORT_KEY)

    required = ((HOST_KEY, host), (USER_NAME_KEY, user_name))
    missing = [key for key, value in required if not value]
    if missing:
        raise ConfigurationError(
            f"Account '{account_name}' is missing settings: {', '.join(missing)}",
            "accounts",
        )

    port = parse_port(port_value, account_name) if port_value else DEFAULT_CONTROL_PORT
    return Account(host=host, user_name=user_name, port=port)  # type: ignore[arg-type]
