"""
Connection selection for hostcmd.

Maps an access method to the connection class that implements it. The table
is closed: every access method except NONE has exactly one entry.
"""

import logging
import tempfile
from dataclasses import replace
from typing import Dict, Optional, Type, Union

from ..errors import ConfigurationError, UnsupportedStateError
from .hosts import (
    CifsTelnetConnection,
    HostConnection,
    LocalConnection,
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

logger = logging.getLogger(__name__)

CONNECTION_TYPES: Dict[AccessMethod, Type[HostConnection]] = {
    AccessMethod.LOCAL: LocalConnection,
    AccessMethod.SSH_SFTP: SshSftpConnection,
    AccessMethod.SSH_SCP: SshScpConnection,
    AccessMethod.SSH_SUDO: SshSudoConnection,
    AccessMethod.SSH_INTERACTIVE_SUDO: SshInteractiveSudoConnection,
    AccessMethod.CIFS_TELNET: CifsTelnetConnection,
}


def default_temporary_directory_path(
    os_family: OperatingSystemFamily, access_method: AccessMethod
) -> str:
    """Local connections use the local temp dir; remote ones the OS default."""
    if access_method is AccessMethod.LOCAL:
        return tempfile.gettempdir()
    return os_family.default_temporary_directory_path


def get_host_connection(options: ConnectionOptions) -> HostConnection:
    """
    Create the connection for a set of connection options.

    Args:
        options: Connection options

    Returns:
        The connection created

    Raises:
        UnsupportedStateError: If the access method is NONE
        ConfigurationError: If the access method is unknown or the options
            are incomplete for it (e.g. sudo without a sudo username)
    """
    method = options.access_method
    if method is AccessMethod.NONE:
        raise UnsupportedStateError(
            "Cannot connect to a host that has a NONE access method"
        )

    connection_class = CONNECTION_TYPES.get(method)
    if connection_class is None:
        raise ConfigurationError(f"Unknown host access method {method}")

    if not options.temporary_directory_path:
        options = replace(
            options,
            temporary_directory_path=default_temporary_directory_path(
                options.os_family, method
            ),
        )

    connection = connection_class(options)
    logger.debug("Selected %s for %s", connection_class.__name__, connection)
    return connection


def get_host_connection_for_spec(
    os_family: Union[str, OperatingSystemFamily],
    access_method: Union[str, AccessMethod],
    host_specification: Optional[str],
    username: Optional[str] = None,
    password: Optional[str] = None,
    sudo_username: Optional[str] = None,
    temporary_directory_path: Optional[str] = None,
    sudo_command_prefix: Optional[str] = None,
    sudo_quote_command: bool = False,
    default_ssh_port: int = DEFAULT_SSH_PORT,
    connection_timeout_ms: int = DEFAULT_CONNECTION_TIMEOUT_MS,
) -> HostConnection:
    """
    Create a connection from a ``address[:port]`` host specification.

    Raises:
        ConfigurationError: If the host specification has an invalid port or
            the access method is unknown
        UnsupportedStateError: If the access method is NONE
    """
    # Fail on the access method before looking at the host
    method = AccessMethod.parse(access_method)
    if method is AccessMethod.NONE:
        raise UnsupportedStateError(
            "Cannot connect to a host that has a NONE access method"
        )

    host = HostSpec.parse(host_specification, default_port=default_ssh_port)
    options = ConnectionOptions(
        access_method=method,
        os_family=os_family,
        address=host.address,
        port=host.port,
        username=username,
        password=password,
        sudo_username=sudo_username,
        sudo_command_prefix=sudo_command_prefix,
        sudo_quote_command=sudo_quote_command,
        temporary_directory_path=temporary_directory_path,
        default_ssh_port=default_ssh_port,
        connection_timeout_ms=connection_timeout_ms,
    )
    return get_host_connection(options)
