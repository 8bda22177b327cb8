"""FTP control-channel configuration.

This module contains the `FtpProtocolConfig` used by the password client to
configure timeouts, connection retries and reply checking.
"""

from dataclasses import dataclass

from pwrotate_core.exceptions import ConfigurationError


@dataclass(frozen=True)
class FtpProtocolConfig:
    """FTP control-channel configuration.

    Every connect, read and write is bounded by a timeout so an unresponsive
    server fails the session instead of hanging it.
    """

    connect_timeout: float = 20.0
    read_timeout: float = 30.0
    write_timeout: float = 30.0

    # Only connection establishment is retried, never the session itself
    connect_retries: int = 0
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0

    # Raise on unexpected reply codes instead of only logging them
    strict_replies: bool = False

    encoding: str = "latin-1"
    max_line_length: int = 8192

    def __post_init__(self) -> None:
        """Validate the configuration."""
        for name in ("connect_timeout", "read_timeout", "write_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", "ftp")
        if self.connect_retries < 0:
            raise ConfigurationError("connect_retries must be non-negative", "ftp")
        if self.retry_base_delay <= 0 or self.retry_max_delay <= 0:
            raise ConfigurationError("retry delays must be positive", "ftp")
        if self.max_line_length <= 0:
            raise ConfigurationError("max_line_length must be positive", "ftp")
        try:
            "".encode(self.encoding)
        except LookupError as e:
            raise ConfigurationError(f"Unknown encoding: {self.encoding}", "ftp") from e

    def get_protocol_type(self) -> str:
        """Get the protocol type identifier."""
        return "ftp"
