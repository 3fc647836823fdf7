"""
This package builds shell command lines for execution on local and remote hosts.
Command lines are immutable token sequences rendered into a single shell-safe string,
and can be rewritten to run under another identity through a configurable sudo prefix.

Connections for local, SSH (SFTP/SCP/sudo/interactive sudo) and CIFS+Telnet access
are selected from the configured access method.
"""

# __init__.py

__version__ = "0.1.0"

from .cmdline import CmdLine, CmdToken, TokenKind
from .connection import (
    AccessMethod,
    ConnectionOptions,
    HostConnection,
    HostSpec,
    OperatingSystemFamily,
    get_host_connection,
    get_host_connection_for_spec,
)
from .errors import (
    CommandLineError,
    ConfigurationError,
    ConnectionFailedError,
    HostcmdError,
    UnsupportedStateError,
)
from .sudo import ElevationConfig, SudoCommandTransform

__all__ = [
    "CmdLine",
    "CmdToken",
    "TokenKind",
    "ElevationConfig",
    "SudoCommandTransform",
    "AccessMethod",
    "ConnectionOptions",
    "HostConnection",
    "HostSpec",
    "OperatingSystemFamily",
    "get_host_connection",
    "get_host_connection_for_spec",
    "HostcmdError",
    "ConfigurationError",
    "UnsupportedStateError",
    "CommandLineError",
    "ConnectionFailedError",
]
