"""
Connection options for hostcmd.

Value types describing how a host is reached: the operating system family,
the access method, the parsed host specification and the complete option
bundle handed to the connection factory.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..errors import ConfigurationError
from ..sudo import ElevationConfig

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22
DEFAULT_CONNECTION_TIMEOUT_MS = 120000


class OperatingSystemFamily(Enum):
    """Operating system family of a target host."""

    UNIX = "unix"
    WINDOWS = "windows"
    ZOS = "zos"

    @property
    def default_temporary_directory_path(self) -> str:
        return {
            OperatingSystemFamily.UNIX: "/tmp",
            OperatingSystemFamily.WINDOWS: "C:\\windows\\temp",
            OperatingSystemFamily.ZOS: "/tmp",
        }[self]

    @property
    def is_posix(self) -> bool:
        return self is not OperatingSystemFamily.WINDOWS

    @classmethod
    def parse(cls, value: Union[str, "OperatingSystemFamily"]) -> "OperatingSystemFamily":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            supported = ", ".join(f.name for f in cls)
            raise ConfigurationError(
                f"Unknown operating system family '{value}'. Supported: {supported}"
            ) from None


class AccessMethod(Enum):
    """The way a host is accessed."""

    NONE = "none"
    LOCAL = "local"
    SSH_SFTP = "ssh_sftp"
    SSH_SCP = "ssh_scp"
    SSH_SUDO = "ssh_sudo"
    SSH_INTERACTIVE_SUDO = "ssh_interactive_sudo"
    CIFS_TELNET = "cifs_telnet"

    @classmethod
    def parse(cls, value: Union[str, "AccessMethod"]) -> "AccessMethod":
        """
        Parse an access method name.

        Names are case-insensitive and may use dashes, so ``ssh-sudo``,
        ``SSH_SUDO`` and ``ssh_sudo`` are equivalent.

        Raises:
            ConfigurationError: If the name is not a known access method.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            supported = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"Unknown host access method '{value}'. Supported: {supported}"
            ) from None


@dataclass(frozen=True)
class HostSpec:
    """A host address with an optional port."""

    address: str
    port: Optional[int] = None

    @classmethod
    def parse(
        cls, specification: Optional[str], default_port: int = DEFAULT_SSH_PORT
    ) -> "HostSpec":
        """
        Parse a host specification of the form ``address[:port]``.

        Args:
            specification: The host specification. Blank means ``localhost``
                without a port.
            default_port: Port used when the specification has none

        Raises:
            ConfigurationError: If the port is not a number.

        Examples:
            >>> HostSpec.parse("example.com:2222")
            HostSpec(address='example.com', port=2222)
            >>> HostSpec.parse("example.com")
            HostSpec(address='example.com', port=22)
            >>> HostSpec.parse("")
            HostSpec(address='localhost', port=None)
        """
        if specification is None or not specification.strip():
            return cls("localhost", None)

        pos = specification.find(":")
        if pos > 0:
            address = specification[:pos]
            port_text = specification[pos + 1 :]
            digits = port_text[1:] if port_text.startswith("+") else port_text
            if not (digits.isascii() and digits.isdigit()):
                raise ConfigurationError(
                    f"Host specification {specification} has an invalid port number"
                )
            return cls(address, int(digits))
        return cls(specification, default_port)

    def __str__(self) -> str:
        if self.port is None:
            return self.address
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class ConnectionOptions:
    """Everything the connection factory needs to pick and build a connection."""

    access_method: AccessMethod
    os_family: OperatingSystemFamily = OperatingSystemFamily.UNIX
    address: str = "localhost"
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    sudo_username: Optional[str] = None
    sudo_command_prefix: Optional[str] = None
    sudo_quote_command: bool = False
    temporary_directory_path: Optional[str] = None
    default_ssh_port: int = DEFAULT_SSH_PORT
    connection_timeout_ms: int = DEFAULT_CONNECTION_TIMEOUT_MS

    def __post_init__(self):
        object.__setattr__(self, "access_method", AccessMethod.parse(self.access_method))
        object.__setattr__(self, "os_family", OperatingSystemFamily.parse(self.os_family))
        if self.port is not None and not 0 < int(self.port) < 65536:
            raise ConfigurationError(f"Port {self.port} is out of range")
        if self.connection_timeout_ms <= 0:
            raise ConfigurationError(
                f"Connection timeout must be positive, got {self.connection_timeout_ms}"
            )

    def elevation(self) -> ElevationConfig:
        """Get the elevation settings carried by these options."""
        return ElevationConfig(
            sudo_username=self.sudo_username,
            sudo_command_prefix=self.sudo_command_prefix,
            quote_command=self.sudo_quote_command,
        )
