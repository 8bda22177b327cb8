"""FTP control-channel password change client."""

from .ftp_client import ControlConnection, FtpPasswordClient, SessionState
from .ftp_config import FtpProtocolConfig

__all__ = [
    "ControlConnection",
    "FtpPasswordClient",
    "FtpProtocolConfig",
    "SessionState",
]
