"""
Connection selection package for hostcmd.

Supported access methods:
- local: run under the local shell
- ssh_sftp / ssh_scp: run over SSH
- ssh_sudo / ssh_interactive_sudo: run over SSH as another user
- cifs_telnet: Windows hosts (command execution through an external transport)
"""

from .factory import (
    CONNECTION_TYPES,
    default_temporary_directory_path,
    get_host_connection,
    get_host_connection_for_spec,
)
from .hosts import (
    CifsTelnetConnection,
    HostConnection,
    LocalConnection,
    SshConnection,
    SshInteractiveSudoConnection,
    SshScpConnection,
    SshSftpConnection,
    SshSudoConnection,
)
from .options import (
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_SSH_PORT,
    AccessMethod,
    ConnectionOptions,
    HostSpec,
    OperatingSystemFamily,
)

__all__ = [
    # Options
    "AccessMethod",
    "ConnectionOptions",
    "HostSpec",
    "OperatingSystemFamily",
    "DEFAULT_SSH_PORT",
    "DEFAULT_CONNECTION_TIMEOUT_MS",
    # Connections
    "HostConnection",
    "LocalConnection",
    "SshConnection",
    "SshSftpConnection",
    "SshScpConnection",
    "SshSudoConnection",
    "SshInteractiveSudoConnection",
    "CifsTelnetConnection",
    # Selection
    "CONNECTION_TYPES",
    "default_temporary_directory_path",
    "get_host_connection",
    "get_host_connection_for_spec",
]
