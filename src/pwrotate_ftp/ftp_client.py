"""FTP password change client.

Some FTP servers (IBM z/OS FTP among them) let a user change their password
at login by sending ``PASS old/new/new``. This module drives exactly that
session over a plain control connection:

    server: 220-banner line one
    server: 220 banner line two
    client: USER <name>
    server: 331 Send password please.
    client: PASS <old>/<new>/<new>
    server: 230-Password was changed.
    server: 230 <NAME> is logged on.
    client: QUIT
    server: 221 Quit command received. Goodbye.

The session is positional: the client consumes a fixed number of reply lines
per step. Reply codes are checked and logged, but only enforced when
``strict_replies`` is set, so a server that adds a banner line will break the
session at a later step rather than being detected here.
"""

import asyncio
import contextlib
import enum
from types import TracebackType

import structlog

from pwrotate_core.core import Account, RotationOutcome
from pwrotate_core.exceptions import (
    ProtocolError,
    RotationConnectionError,
    UnexpectedReplyError,
)
from pwrotate_core.secret_source import validate_secret
from pwrotate_core.utils.retry import create_retry_engine
from pwrotate_ftp.ftp_config import FtpProtocolConfig

# Get logger for this module
logger = structlog.get_logger(__name__)

CRLF = "\r\n"

# Reply lines consumed after connecting and after each command
BANNER_LINES = 2
USER_REPLY_LINES = 1
PASS_REPLY_LINES = 2
QUIT_REPLY_LINES = 1

EXPECTED_REPLY_CODES = {
    "banner": "220",
    "user": "331",
    "pass": "230",
    "quit": "221",
}


class SessionState(enum.Enum):
    """Position of the client in the fixed command sequence."""

    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_BANNER = "awaiting_banner"
    SENT_USER = "sent_user"
    SENT_PASS = "sent_pass"
    SENT_QUIT = "sent_quit"
    CLOSED = "closed"
    FAILED = "failed"


class ControlConnection:
    """A line-oriented control connection with bounded reads and writes."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        config: FtpProtocolConfig,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._config = config

    @classmethod
    async def open(
        cls, account: Account, config: FtpProtocolConfig
    ) -> "ControlConnection":
        """Connect to the account's host.

        Raises:
            RotationConnectionError: If the connection cannot be established
                within ``connect_timeout``.
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    account.host, account.port, limit=config.max_line_length
                ),
                timeout=config.connect_timeout,
            )
        except TimeoutError as e:
            error_message = (
                f"Timed out after {config.connect_timeout}s connecting to "
                f"{account.host}:{account.port}"
            )
            raise RotationConnectionError(error_message, account.host) from e
        except (OSError, OverflowError) as e:
            error_message = f"Unable to connect to {account.host}:{account.port}: {e}"
            raise RotationConnectionError(error_message, account.host) from e
        return cls(reader, writer, config)

    async def read_line(self, step: str) -> str:
        """Read one reply line, without its line terminator.

        Raises:
            ProtocolError: On timeout, socket error, an over-long line, or if
                the server closed the connection.
        """
        try:
            raw = await asyncio.wait_for(
                self._reader.readline(), timeout=self._config.read_timeout
            )
        except TimeoutError as e:
            error_message = (
                f"No reply within {self._config.read_timeout}s during {step}"
            )
            raise ProtocolError(error_message, step) from e
        except (OSError, ValueError) as e:
            error_message = f"Unable to read reply during {step}: {e}"
            raise ProtocolError(error_message, step) from e

        # readline returns a partial line when the connection closes mid-line
        if not raw.endswith(b"\n"):
            error_message = f"Connection closed by remote during {step}"
            raise ProtocolError(error_message, step)

        line = raw.decode(self._config.encoding, errors="replace").rstrip(CRLF)
        logger.debug("Control reply", step=step, reply=line)
        return line

    async def send_command(
        self, command: str, step: str, display: str | None = None
    ) -> None:
        """Send one CRLF-terminated command.

        Args:
            command: The command without line terminator.
            step: Session step name, used in errors and logs.
            display: Text to log instead of the command, for commands that
                carry secrets.

        Raises:
            ProtocolError: If the command cannot be written in time.
        """
        logger.debug("Control command", step=step, command=display or command)
        try:
            self._writer.write(f"{command}{CRLF}".encode(self._config.encoding))
            await asyncio.wait_for(
                self._writer.drain(), timeout=self._config.write_timeout
            )
        except TimeoutError as e:
            error_message = (
                f"Unable to send command within {self._config.write_timeout}s "
                f"during {step}"
            )
            raise ProtocolError(error_message, step) from e
        except OSError as e:
            error_message = f"Unable to send command during {step}: {e}"
            raise ProtocolError(error_message, step) from e

    async def close(self) -> None:
        """Close the connection. Errors while closing are ignored."""
        if not self._writer.is_closing():
            self._writer.close()
        with contextlib.suppress(OSError, TimeoutError):
            await asyncio.wait_for(
                self._writer.wait_closed(), timeout=self._config.write_timeout
            )

    async def __aenter__(self) -> "ControlConnection":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


class FtpPasswordClient:
    """Change an account's password through the FTP ``PASS old/new/new`` idiom.

    One call runs one session over one connection: banner, USER, PASS, QUIT.
    The rotation counts as done once both PASS reply lines are read; a
    failing QUIT is only logged.
    """

    def __init__(self, config: FtpProtocolConfig | None = None) -> None:
        """Initialize the client.

        Args:
            config: Timeouts, retries and reply checking. Defaults to
                ``FtpProtocolConfig()``.
        """
        self.config = config or FtpProtocolConfig()
        self.state = SessionState.IDLE
        self._retry_engine = create_retry_engine(
            max_retries=self.config.connect_retries,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
        )

    def _set_state(self, state: SessionState) -> None:
        logger.debug("Session state", previous=self.state.value, state=state.value)
        self.state = state

    async def _connect(self, account: Account) -> ControlConnection:
        async def _open() -> ControlConnection:
            return await ControlConnection.open(account, self.config)

        return await self._retry_engine.execute_with_retry_async(
            _open, retry_on=(RotationConnectionError,)
        )

    def _check_reply(self, step: str, reply: str, *, enforce: bool) -> None:
        expected = EXPECTED_REPLY_CODES[step]
        if reply.startswith(expected):
            return
        if enforce:
            error_message = (
                f"Unexpected reply during {step}: expected {expected}, got {reply!r}"
            )
            raise UnexpectedReplyError(error_message, step, reply)
        logger.warning(
            "Unexpected reply code", step=step, expected=expected, reply=reply
        )

    async def _read_replies(
        self, connection: ControlConnection, step: str, count: int
    ) -> list[str]:
        replies = []
        for _ in range(count):
            reply = await connection.read_line(step)
            self._check_reply(step, reply, enforce=self.config.strict_replies)
            replies.append(reply)
        return replies

    async def _quit(self, connection: ControlConnection) -> None:
        try:
            await connection.send_command("QUIT", "quit")
            self._set_state(SessionState.SENT_QUIT)
            for _ in range(QUIT_REPLY_LINES):
                reply = await connection.read_line("quit")
                self._check_reply("quit", reply, enforce=False)
        except ProtocolError as e:
            logger.warning(
                "QUIT was not acknowledged, password change already confirmed",
                error=e.message,
            )

    async def change_password(
        self, account: Account, old_secret: str, new_secret: str
    ) -> None:
        """Run the password change session.

        Raises:
            ConfigurationError: If either secret cannot be sent in a PASS
                command. Raised before connecting.
            RotationConnectionError: If the connection cannot be established.
            ProtocolError: If the session fails before the change is confirmed.
            UnexpectedReplyError: If ``strict_replies`` is set and a reply
                code does not match.
        """
        validate_secret(old_secret, "current password")
        validate_secret(new_secret, "new password")

        log = logger.bind(account=str(account))
        self._set_state(SessionState.CONNECTING)
        try:
            connection = await self._connect(account)
        except RotationConnectionError:
            self._set_state(SessionState.FAILED)
            raise

        completed = False
        try:
            async with connection:
                self._set_state(SessionState.AWAITING_BANNER)
                await self._read_replies(connection, "banner", BANNER_LINES)

                await connection.send_command(f"USER {account.user_name}", "user")
                self._set_state(SessionState.SENT_USER)
                await self._read_replies(connection, "user", USER_REPLY_LINES)

                await connection.send_command(
                    f"PASS {old_secret}/{new_secret}/{new_secret}",
                    "pass",
                    display="PASS ****/****/****",
                )
                self._set_state(SessionState.SENT_PASS)
                await self._read_replies(connection, "pass", PASS_REPLY_LINES)
                log.info("Password change confirmed by remote")

                await self._quit(connection)
            completed = True
        finally:
            self._set_state(SessionState.CLOSED if completed else SessionState.FAILED)

    async def rotate(
        self, account: Account, old_secret: str, new_secret: str
    ) -> RotationOutcome:
        """Change the password and report the result as a ``RotationOutcome``.

        Connection and protocol failures become failed outcomes; invalid
        secrets still raise ``ConfigurationError``.
        """
        try:
            await self.change_password(account, old_secret, new_secret)
        except (RotationConnectionError, ProtocolError) as e:
            return RotationOutcome.failed(e)
        return RotationOutcome.succeeded()
