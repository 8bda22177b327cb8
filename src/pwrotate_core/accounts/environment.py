"""Environment variable account provider.

This module provides the EnvironmentAccountProvider class for reading
account settings from environment variables, the usual choice when the
rotator runs from cron.
"""

import os

DEFAULT_ENV_PREFIX = "PWROTATE_ACCOUNT_"


class EnvironmentAccountProvider:
    """Account provider that reads settings from environment variables."""

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        """Initialize the environment account provider.

        Args:
            prefix: Prefix added to environment variable names.
        """
        self.prefix = prefix
        self._requested_vars: list[str] = []

    def variable_name(self, account_name: str, key: str) -> str:
        """Return the variable holding ``key`` for ``account_name``.

        The format is ``{prefix}{ACCOUNT}_{KEY}`` with dashes turned into
        underscores, e.g. ``PWROTATE_ACCOUNT_OCLC_HOST``.
        """
        account_part = account_name.upper().replace("-", "_")
        return f"{self.prefix}{account_part}_{key.upper()}"

    async def get_value(self, account_name: str, key: str) -> str | None:
        """Get an account setting from the environment."""
        env_var_name = self.variable_name(account_name, key)

        # Track requested variables for better error reporting
        if env_var_name not in self._requested_vars:
            self._requested_vars.append(env_var_name)

        return os.getenv(env_var_name)

    def clear(self) -> None:
        """Forget which variables were requested."""
        self._requested_vars.clear()

    def get_missing_variables(self) -> list[str]:
        """Get list of environment variables that were requested but not found.

        Returns:
            List of environment variable names that are missing.
        """
        return [var for var in self._requested_vars if os.getenv(var) is None]
