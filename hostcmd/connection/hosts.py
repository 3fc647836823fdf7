"""
Host connections for hostcmd.

A connection turns a command line into the exact process invocation that
carries it to the host, and runs that invocation. Local commands run under
``sh -c``; SSH commands are handed to the OpenSSH client, which takes keys,
ports and usernames from ``~/.ssh/config`` unless given explicitly.
"""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import List

from ..cmdline import CmdLine
from ..errors import ConfigurationError, ConnectionFailedError, UnsupportedStateError
from ..sudo import SudoCommandTransform
from .options import AccessMethod, ConnectionOptions

logger = logging.getLogger(__name__)


class HostConnection(ABC):
    """Base class for connections that execute rendered command lines."""

    method: AccessMethod = AccessMethod.NONE

    def __init__(self, options: ConnectionOptions):
        self.options = options
        self.os_family = options.os_family
        self.temporary_directory_path = options.temporary_directory_path

    def process_command_line(self, command_line: CmdLine) -> CmdLine:
        """Get the command line that is actually sent to the host."""
        return command_line

    def render(self, command_line: CmdLine) -> str:
        return self.process_command_line(command_line).render()

    def _require_posix(self) -> None:
        if not self.os_family.is_posix:
            raise UnsupportedStateError(
                f"{self.method.value} connections render POSIX shell commands; "
                f"cannot execute on a {self.os_family.name} host"
            )

    @abstractmethod
    def build_invocation(self, command_line: CmdLine) -> List[str]:
        """
        Build the local process arguments that run a command line on the host.

        Args:
            command_line: The command line as built by the caller

        Returns:
            List of process arguments
        """
        pass

    def execute(self, command_line: CmdLine, capture_output: bool = False) -> int:
        """
        Execute a command line on the host.

        Args:
            command_line: The command line to run
            capture_output: Capture output and re-emit it once the process ends
                instead of letting it go straight to the terminal

        Returns:
            Exit code of the command

        Raises:
            ConnectionFailedError: If the carrying process cannot be started
        """
        invocation = self.build_invocation(command_line)
        logger.info("Executing on %s: %s", self, invocation[-1])
        logger.debug("Full invocation: %s", invocation)

        try:
            if capture_output:
                result = subprocess.run(invocation, capture_output=True, text=True)
                if result.stdout:
                    print(result.stdout, end="")
                if result.stderr:
                    print(result.stderr, end="", file=sys.stderr)
            else:
                result = subprocess.run(invocation)
        except FileNotFoundError:
            raise ConnectionFailedError(
                f"'{invocation[0]}' command not found", method=self.method.value
            )
        except subprocess.SubprocessError as e:
            raise ConnectionFailedError(
                f"Execution failed: {e}", method=self.method.value
            )

        logger.debug("Command exited with code %d", result.returncode)
        return result.returncode

    def __str__(self) -> str:
        return f"{self.method.value}://{self.options.address}"


class LocalConnection(HostConnection):
    """Runs commands on the local host through ``sh -c``."""

    method = AccessMethod.LOCAL

    def build_invocation(self, command_line: CmdLine) -> List[str]:
        self._require_posix()
        return ["sh", "-c", self.render(command_line)]

    def __str__(self) -> str:
        return "local"


class SshConnection(HostConnection):
    """Runs commands through the OpenSSH client."""

    allocate_tty = False

    def __init__(self, options: ConnectionOptions):
        super().__init__(options)
        if not options.address or not options.address.strip():
            raise ConfigurationError(f"{self.method.value} requires a host address")
        self.address = options.address
        self.port = options.port
        self.username = options.username

    @property
    def target(self) -> str:
        if self.username:
            return f"{self.username}@{self.address}"
        return self.address

    def build_invocation(self, command_line: CmdLine) -> List[str]:
        """
        Build the ssh command for a command line.

        Only BatchMode and the connect timeout are forced; everything else is
        left to ``~/.ssh/config``.
        """
        self._require_posix()
        ssh_cmd = ["ssh"]
        if self.allocate_tty:
            ssh_cmd.append("-t")

        connect_timeout = max(1, self.options.connection_timeout_ms // 1000)
        ssh_cmd.extend(
            [
                "-o",
                "BatchMode=yes",
                "-o",
                f"ConnectTimeout={connect_timeout}",
            ]
        )
        if self.port is not None:
            ssh_cmd.extend(["-p", str(self.port)])

        ssh_cmd.append(self.target)
        ssh_cmd.append(self.render(command_line))
        return ssh_cmd

    def __str__(self) -> str:
        port = f":{self.port}" if self.port is not None else ""
        return f"{self.method.value}://{self.target}{port}"


class SshSftpConnection(SshConnection):
    method = AccessMethod.SSH_SFTP


class SshScpConnection(SshConnection):
    method = AccessMethod.SSH_SCP


class SshSudoConnection(SshScpConnection):
    """SSH connection that runs every command as the sudo username."""

    method = AccessMethod.SSH_SUDO

    def __init__(self, options: ConnectionOptions):
        super().__init__(options)
        self.sudo = SudoCommandTransform(options.elevation())

    def process_command_line(self, command_line: CmdLine) -> CmdLine:
        return self.sudo.process_command_line(command_line)

    def prefix_with_sudo_command(self, command_line: CmdLine) -> CmdLine:
        return self.sudo.prefix_with_sudo_command(command_line)


class SshInteractiveSudoConnection(SshSudoConnection):
    """
    Sudo connection for hosts where sudo asks for the password again.

    A TTY is allocated so that sudo can prompt on the remote side.
    """

    method = AccessMethod.SSH_INTERACTIVE_SUDO
    allocate_tty = True


class CifsTelnetConnection(HostConnection):
    """
    Windows host reached over CIFS for files and Telnet for commands.

    Telnet command execution is provided by an external transport; this
    connection only carries the host details.
    """

    method = AccessMethod.CIFS_TELNET

    def __init__(self, options: ConnectionOptions):
        super().__init__(options)
        if not options.address or not options.address.strip():
            raise ConfigurationError(f"{self.method.value} requires a host address")
        if not options.username:
            raise ConfigurationError(f"{self.method.value} requires a username")
        self.address = options.address
        self.port = options.port
        self.username = options.username

    def build_invocation(self, command_line: CmdLine) -> List[str]:
        raise UnsupportedStateError(
            "Telnet command execution is not available from a local process; "
            "use a Telnet transport to run the rendered command"
        )
