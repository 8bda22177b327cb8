"""CLI configuration using environ-config.

This module defines the configuration classes for the command line
commands. Every field can be set from an environment variable prefixed with
``PWROTATE_`` or from the matching ``--kebab-case`` option; options take
precedence over the environment.
"""

import argparse
import os
from collections.abc import Mapping
from typing import TypeVar

import attrs
import environ

from pwrotate_core.credential_store import DEFAULT_PASSWORD_FILE
from pwrotate_core.secret_source import DEFAULT_ALPHABET, DEFAULT_SECRET_LENGTH

CONFIG_PREFIX = "PWROTATE"

C = TypeVar("C")


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    return int(value)  # type: ignore[call-overload]


@environ.config(prefix=CONFIG_PREFIX)
class RotateConfig:
    """Configuration for the rotate command."""

    password_file: str = environ.var(
        default=DEFAULT_PASSWORD_FILE, help="Password file holding the current password"
    )
    account: str = environ.var(
        default="oclc", help="Account name used to look up connection settings"
    )
    account_provider: str = environ.var(
        default="environment",
        help="Where account settings come from (environment or aws)",
    )
    account_env_prefix: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="Environment variable prefix for the environment account provider",
    )
    account_aws_region: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="AWS region for the aws account provider",
    )
    account_aws_endpoint_url: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="AWS endpoint URL for the aws account provider (e.g., LocalStack)",
    )

    # Explicit account settings override the account provider
    host: str | None = environ.var(
        default=None, converter=_optional_str, help="FTP host"
    )
    port: int | None = environ.var(
        default=None, converter=_optional_int, help="FTP control port"
    )
    user_name: str | None = environ.var(
        default=None, converter=_optional_str, help="FTP user name"
    )

    new_password: str | None = environ.var(
        default=None,
        converter=_optional_str,
        help="Use this password instead of generating one",
    )
    secret_length: int = environ.var(
        default=DEFAULT_SECRET_LENGTH, converter=int, help="Generated password length"
    )
    secret_alphabet: str = environ.var(
        default=DEFAULT_ALPHABET, help="Characters generated passwords are drawn from"
    )

    connect_timeout: float = environ.var(
        default=20.0, converter=float, help="Connect timeout in seconds"
    )
    read_timeout: float = environ.var(
        default=30.0, converter=float, help="Per-reply read timeout in seconds"
    )
    write_timeout: float = environ.var(
        default=30.0, converter=float, help="Per-command write timeout in seconds"
    )
    connect_retries: int = environ.var(
        default=0, converter=int, help="Connection attempts to retry before failing"
    )
    strict_replies: bool = environ.bool_var(
        default=False, help="Fail on unexpected FTP reply codes"
    )

    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )


@environ.config(prefix=CONFIG_PREFIX)
class CheckConfig:
    """Configuration for the check command."""

    password_file: str = environ.var(
        default=DEFAULT_PASSWORD_FILE, help="Password file to check"
    )
    log_level: str = environ.var(default="INFO", help="Log level")
    dev_mode: bool = environ.bool_var(
        default=False, help="Enable development mode logging"
    )


def _build_parser(config_cls: type, prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=environ.generate_help(config_cls, display_defaults=True),
    )
    for field in attrs.fields(config_cls):
        option = f"--{field.name.replace('_', '-')}"
        if isinstance(field.default, bool):
            # Boolean flags may be given bare (--dev-mode) or with a value
            parser.add_argument(option, dest=field.name, nargs="?", const="1")
        else:
            parser.add_argument(option, dest=field.name)
    return parser


def args_to_config(
    config_cls: type[C],
    args: list[str] | None = None,
    env: Mapping[str, str] | None = None,
    prog: str = "pwrotate",
) -> C:
    """Create a config instance from command line arguments and environment.

    Options are mapped onto their ``PWROTATE_*`` variables and the combined
    mapping is converted by environ-config, so both sources go through the
    same converters.

    Raises:
        SystemExit: If the arguments cannot be parsed.
        ValueError: If a value cannot be converted.
    """
    parsed = _build_parser(config_cls, prog).parse_args(args or [])
    merged = dict(os.environ if env is None else env)
    for name, value in vars(parsed).items():
        if value is not None:
            merged[f"{CONFIG_PREFIX}_{name.upper()}"] = value
    return environ.to_config(config_cls, environ=merged)


def create_rotate_config(args: list[str] | None = None) -> RotateConfig:
    """Create a RotateConfig from command line arguments and environment variables.

    Args:
        args: Command line arguments following the command name.

    Returns:
        RotateConfig instance populated from args and environment variables.
    """
    return args_to_config(RotateConfig, args, prog="pwrotate rotate")


def create_check_config(args: list[str] | None = None) -> CheckConfig:
    """Create a CheckConfig from command line arguments and environment variables.

    Args:
        args: Command line arguments following the command name.

    Returns:
        CheckConfig instance populated from args and environment variables.
    """
    return args_to_config(CheckConfig, args, prog="pwrotate check")
