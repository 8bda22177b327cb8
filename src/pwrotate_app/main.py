"""Command-line interface and main entry point.

This module provides the command line interface for rotating the FTP
account password, including configuration parsing, logging setup, wiring of
the rotation components and mapping of failures to exit codes.
"""
# ruff: noqa: T201

import asyncio
import sys
from datetime import UTC, datetime
from typing import NoReturn

import structlog

from pwrotate_app import __version__
from pwrotate_app.cli_config import (
    CheckConfig,
    RotateConfig,
    create_check_config,
    create_rotate_config,
)
from pwrotate_app.observability import configure_logging, log_bind, observe_around
from pwrotate_core.accounts import (
    create_account_provider,
    parse_port,
    resolve_account,
)
from pwrotate_core.core import DEFAULT_CONTROL_PORT, Account
from pwrotate_core.credential_store import CredentialStore
from pwrotate_core.exceptions import PasswordRotatorError, SecretNotPersistedError
from pwrotate_core.rotator import RotationResult, Rotator
from pwrotate_core.secret_source import (
    RandomSecretGenerator,
    SecretSource,
    StaticSecretSource,
)
from pwrotate_ftp.ftp_client import FtpPasswordClient
from pwrotate_ftp.ftp_config import FtpProtocolConfig

# Get logger for this module
logger = structlog.get_logger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
# The remote password changed but the password file still holds the old one
EXIT_SECRET_NOT_PERSISTED = 2


def generate_run_id(account_name: str) -> str:
    """Generate a unique run ID combining the account name and timestamp.

    Args:
        account_name: The account being rotated.

    Returns:
        A unique run ID in the format: pwrotate_{account_name}_{timestamp}
    """
    timestamp = datetime.now(tz=UTC).strftime("%Y%m%d%H%M%S")
    return f"pwrotate_{account_name}_{timestamp}"


def _exit_on_usage_error(exit_request: SystemExit) -> NoReturn:
    """Map argparse usage errors onto the general failure code.

    argparse exits with 2, which is reserved for a password that changed
    remotely but was not written to the password file. Help output keeps
    its own exit code.
    """
    if exit_request.code:
        sys.exit(EXIT_FAILURE)
    raise exit_request


async def build_account(config: RotateConfig) -> Account:
    """Resolve the remote account from explicit settings and the account provider.

    Explicit host, port and user name win. The account provider is only
    consulted when the host or user name was not given.
    """
    port = None
    if config.port is not None:
        port = parse_port(config.port, config.account)

    if config.host and config.user_name:
        return Account(
            host=config.host,
            user_name=config.user_name,
            port=port or DEFAULT_CONTROL_PORT,
        )

    provider = create_account_provider(
        provider_type=config.account_provider,
        aws_region=config.account_aws_region,
        aws_endpoint_url=config.account_aws_endpoint_url,
        env_prefix=config.account_env_prefix,
    )
    resolved = await resolve_account(provider, config.account)
    return Account(
        host=config.host or resolved.host,
        user_name=config.user_name or resolved.user_name,
        port=port or resolved.port,
    )


def build_secret_source(config: RotateConfig) -> SecretSource:
    """Use the operator's password when given, otherwise generate one."""
    if config.new_password:
        return StaticSecretSource(config.new_password)
    return RandomSecretGenerator(
        length=config.secret_length, alphabet=config.secret_alphabet
    )


def build_protocol_config(config: RotateConfig) -> FtpProtocolConfig:
    return FtpProtocolConfig(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
        write_timeout=config.write_timeout,
        connect_retries=config.connect_retries,
        strict_replies=config.strict_replies,
    )


async def rotate_async(config: RotateConfig, run_id: str) -> RotationResult:
    """Wire the rotation components and run one rotation."""
    with log_bind(run_id=run_id, account=config.account):
        account = await build_account(config)
        store = CredentialStore(config.password_file, build_secret_source(config))
        client = FtpPasswordClient(build_protocol_config(config))

        logger.info(
            "ROTATION_STARTING",
            host=account.host,
            port=account.port,
            user_name=account.user_name,
            password_file=config.password_file,
        )
        with observe_around(logger, "PASSWORD_ROTATION"):
            return await Rotator(store, client).rotate(account)


def rotate_command(args: list[str] | None = None) -> None:
    """Rotate the account password and update the password file.

    Args:
        args: Command line arguments following the command name.
    """
    try:
        config = create_rotate_config(args)
        configure_logging(log_level=config.log_level, dev_mode=config.dev_mode)
    except SystemExit as e:
        _exit_on_usage_error(e)
    except (ValueError, PasswordRotatorError) as e:
        print(f"Error: {e!s}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    run_id = generate_run_id(config.account)
    try:
        result = asyncio.run(rotate_async(config, run_id))
    except SecretNotPersistedError as e:
        logger.critical(
            "PASSWORD_FILE_NOT_UPDATED",
            run_id=run_id,
            password_file=config.password_file,
            error=e.message,
        )
        # The new password only exists in this process; hand it to the operator.
        print(
            f"Error: {e.message}\n"
            f"The remote password is now: {e.new_secret}\n"
            f"Update {config.password_file} by hand before the next rotation.",
            file=sys.stderr,
        )
        sys.exit(EXIT_SECRET_NOT_PERSISTED)
    except PasswordRotatorError as e:
        logger.error(  # noqa: TRY400
            "ROTATION_ABORTED", run_id=run_id, error=e.message, error_code=e.error_code
        )
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        logger.exception("ROTATE_COMMAND_ERROR", run_id=run_id, error=str(e))
        sys.exit(EXIT_FAILURE)

    logger.info(
        "ROTATION_COMPLETED", run_id=run_id, account=str(result.account)
    )


def check_command(args: list[str] | None = None) -> None:
    """Check that the password file can be read and holds a password.

    The password itself is never printed.

    Args:
        args: Command line arguments following the command name.
    """
    try:
        config: CheckConfig = create_check_config(args)
        configure_logging(log_level=config.log_level, dev_mode=config.dev_mode)

        store = CredentialStore(config.password_file)
        secret = store.current_secret()
    except SystemExit as e:
        _exit_on_usage_error(e)
    except (ValueError, PasswordRotatorError) as e:
        print(f"Error: {e!s}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    print(f"Password file: {config.password_file}")
    print(f"  comment lines: {len(store.credential.preamble)}")
    print(f"  password length: {len(secret)}")


def show_help() -> None:
    """Show help information for the CLI."""
    help_text = """
FTP Password Rotator

Usage:
    pwrotate <command> [options]

Commands:
    rotate             Change the remote password and update the password file
    check              Check that the password file holds a password
    --help, -h         Show this help message
    --version, -v      Show version information

Options for rotate command:
    --password-file <path>       Password file (default: password.txt)
    --account <name>             Account name for the account provider
    --account-provider <type>    Account settings source (environment, aws)
    --host <host>                FTP host, overrides the account provider
    --port <port>                FTP control port (default: 21)
    --user-name <name>           FTP user name, overrides the account provider
    --new-password <password>    Use this password instead of generating one
    --strict-replies             Fail on unexpected reply codes
    --log-level <level>          Log level (DEBUG, INFO, WARNING, ERROR)
    --dev-mode                   Enable development mode

    Run "pwrotate rotate --help" for every option and its PWROTATE_* variable.

Exit codes:
    0    Password rotated
    1    Nothing changed on the remote system, including usage errors
    2    Remote password changed but the password file was not updated

Examples:
    pwrotate rotate --host edx.example.org --user-name tcnuser1
    PWROTATE_ACCOUNT_OCLC_HOST=edx.example.org pwrotate rotate --account oclc
    pwrotate check --password-file /etc/pwrotate/password.txt
"""
    print(help_text)


def main() -> None:
    """Main entry point for the CLI."""
    min_args = 2
    if len(sys.argv) < min_args:
        show_help()
        sys.exit(EXIT_FAILURE)

    command = sys.argv[1]
    args = sys.argv[2:]

    if command == "rotate":
        rotate_command(args)
    elif command == "check":
        check_command(args)
    elif command in ["--help", "-h", "help"]:
        show_help()
        sys.exit(EXIT_SUCCESS)
    elif command in ["--version", "-v", "version"]:
        print(f"pwrotate, version {__version__}")
        sys.exit(EXIT_SUCCESS)
    else:
        show_help()
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
