"""Fake FTP control-channel server for tests.

This module provides a scripted server that plays the remote side of the
password change session and can be told to drop the connection, or go
silent, at any step.
"""

import asyncio
import contextlib
from types import TracebackType

DEFAULT_REPLIES = {
    "banner": [
        "220-TCPIPFTP IBM FTP CS at TEST.EXAMPLE.ORG, 17:13:04 on 2013-11-29.",
        "220 Connection will close if idle for more than 10 minutes.",
    ],
    "user": ["331 Send password please."],
    "pass": [
        "230-Password was changed.",
        '230 TESTUSER is logged on.  Working directory is "TESTUSER.".',
    ],
    "quit": ["221 Quit command received. Goodbye."],
}

STEPS = ("banner", "user", "pass", "quit")


class FakeFtpServer:
    """Scripted remote end of the password change session.

    Args:
        fail_at: Step at which the server closes the connection instead of
            replying ("banner", "user", "pass" or "quit"). At "banner" one
            banner line is sent before closing.
        silent_at: Step at which the server stops replying but keeps the
            connection open.
        replies: Per-step reply overrides.
    """

    def __init__(
        self,
        fail_at: str | None = None,
        silent_at: str | None = None,
        replies: dict[str, list[str]] | None = None,
    ) -> None:
        self.fail_at = fail_at
        self.silent_at = silent_at
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self.commands: list[str] = []
        self.connections = 0
        self.client_closed = asyncio.Event()
        self._server: asyncio.AbstractServer | None = None

    @property
    def port(self) -> int:
        assert self._server is not None
        return self._server.sockets[0].getsockname()[1]

    async def __aenter__(self) -> "FakeFtpServer":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        assert self._server is not None
        self._server.close()
        await self._server.wait_closed()

    async def _reply(self, writer: asyncio.StreamWriter, step: str) -> bool:
        """Send the replies of ``step``; return False when the session should end."""
        lines = self.replies[step]
        if self.fail_at == step:
            if step == "banner":
                writer.write(f"{lines[0]}\r\n".encode("latin-1"))
                await writer.drain()
            return False
        for line in lines:
            writer.write(f"{line}\r\n".encode("latin-1"))
        await writer.drain()
        return True

    async def _read_command(self, reader: asyncio.StreamReader) -> str | None:
        raw = await reader.readline()
        if not raw:
            self.client_closed.set()
            return None
        command = raw.decode("latin-1").rstrip("\r\n")
        self.commands.append(command)
        return command

    async def _wait_for_client_close(self, reader: asyncio.StreamReader) -> None:
        with contextlib.suppress(ConnectionError):
            while await reader.read(1024):
                pass
        self.client_closed.set()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self.connections += 1
        try:
            if self.silent_at == "banner":
                await self._wait_for_client_close(reader)
                return
            if not await self._reply(writer, "banner"):
                return
            for step in ("user", "pass", "quit"):
                if await self._read_command(reader) is None:
                    return
                if self.silent_at == step:
                    await self._wait_for_client_close(reader)
                    return
                if not await self._reply(writer, step):
                    return
            await self._wait_for_client_close(reader)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()
