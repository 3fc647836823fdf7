"""
Tests for connection options and connection selection.
"""

import subprocess
import tempfile
from unittest.mock import Mock, patch

import pytest

from hostcmd.cmdline import CmdLine
from hostcmd.connection import (
    CONNECTION_TYPES,
    AccessMethod,
    CifsTelnetConnection,
    ConnectionOptions,
    HostSpec,
    LocalConnection,
    OperatingSystemFamily,
    SshInteractiveSudoConnection,
    SshScpConnection,
    SshSftpConnection,
    SshSudoConnection,
    get_host_connection,
    get_host_connection_for_spec,
)
from hostcmd.errors import (
    CommandLineError,
    ConfigurationError,
    ConnectionFailedError,
    UnsupportedStateError,
)


def options(**kwargs):
    values = {
        "access_method": AccessMethod.SSH_SUDO,
        "address": "nowhere.example.com",
        "port": 22,
        "username": "some-user",
        "password": "foo",
        "sudo_username": "some-other-user",
    }
    values.update(kwargs)
    return ConnectionOptions(**values)


class TestHostSpec:
    """Test host specification parsing."""

    @pytest.mark.parametrize("spec", [None, "", "   "])
    def test_blank_is_localhost_without_port(self, spec):
        assert HostSpec.parse(spec) == HostSpec("localhost", None)

    def test_address_only_uses_default_port(self):
        assert HostSpec.parse("example.com") == HostSpec("example.com", 22)
        assert HostSpec.parse("example.com", default_port=2200).port == 2200

    def test_address_and_port(self):
        assert HostSpec.parse("example.com:2222") == HostSpec("example.com", 2222)

    @pytest.mark.parametrize(
        "spec",
        [
            "example.com:ssh",
            "example.com:",
            "h:22:33",
            "h:2_2",
            "h: 22",
            "h:22 ",
            "h:-22",
            "h:+",
            "h:\u0662\u0662",
        ],
    )
    def test_invalid_port(self, spec):
        with pytest.raises(ConfigurationError, match="invalid port number"):
            HostSpec.parse(spec)

    def test_explicit_plus_sign(self):
        assert HostSpec.parse("example.com:+2222") == HostSpec("example.com", 2222)

    def test_leading_colon_is_part_of_address(self):
        assert HostSpec.parse(":22") == HostSpec(":22", 22)

    def test_str(self):
        assert str(HostSpec("db01", 2222)) == "db01:2222"
        assert str(HostSpec("localhost")) == "localhost"


class TestEnums:
    """Test parsing of access methods and OS families."""

    @pytest.mark.parametrize("value", ["ssh_sudo", "SSH_SUDO", "ssh-sudo", " Ssh-Sudo "])
    def test_access_method_names(self, value):
        assert AccessMethod.parse(value) is AccessMethod.SSH_SUDO

    def test_unknown_access_method(self):
        with pytest.raises(ConfigurationError, match="Unknown host access method"):
            AccessMethod.parse("ftp")

    def test_os_family(self):
        assert OperatingSystemFamily.parse("windows") is OperatingSystemFamily.WINDOWS
        with pytest.raises(ConfigurationError, match="Unknown operating system family"):
            OperatingSystemFamily.parse("plan9")

    def test_default_temporary_directories(self):
        assert OperatingSystemFamily.UNIX.default_temporary_directory_path == "/tmp"
        assert (
            OperatingSystemFamily.WINDOWS.default_temporary_directory_path
            == "C:\\windows\\temp"
        )


class TestConnectionOptions:
    """Test the connection option bundle."""

    def test_strings_are_parsed(self):
        opts = options(access_method="ssh-scp", os_family="zos")
        assert opts.access_method is AccessMethod.SSH_SCP
        assert opts.os_family is OperatingSystemFamily.ZOS

    def test_defaults_are_fields(self):
        opts = options()
        assert opts.default_ssh_port == 22
        assert opts.connection_timeout_ms == 120000
        assert options(connection_timeout_ms=5000).connection_timeout_ms == 5000

    def test_password_not_in_repr(self):
        assert "foo" not in repr(options())

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_out_of_range(self, port):
        with pytest.raises(ConfigurationError, match="out of range"):
            options(port=port)

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError, match="timeout"):
            options(connection_timeout_ms=0)

    def test_elevation(self):
        elevation = options(
            sudo_command_prefix="su -u {0}", sudo_quote_command=True
        ).elevation()
        assert elevation.sudo_username == "some-other-user"
        assert elevation.template == "su -u {0}"
        assert elevation.quote_command is True


class TestConnectionSelection:
    """Test mapping access methods to connections."""

    def test_every_method_but_none_has_a_connection(self):
        assert set(CONNECTION_TYPES) == set(AccessMethod) - {AccessMethod.NONE}

    @pytest.mark.parametrize(
        "method,expected",
        [
            (AccessMethod.LOCAL, LocalConnection),
            (AccessMethod.SSH_SFTP, SshSftpConnection),
            (AccessMethod.SSH_SCP, SshScpConnection),
            (AccessMethod.SSH_SUDO, SshSudoConnection),
            (AccessMethod.SSH_INTERACTIVE_SUDO, SshInteractiveSudoConnection),
            (AccessMethod.CIFS_TELNET, CifsTelnetConnection),
        ],
    )
    def test_selected_connection(self, method, expected):
        connection = get_host_connection(options(access_method=method))
        assert type(connection) is expected

    def test_none_access_method(self):
        with pytest.raises(UnsupportedStateError, match="NONE access method"):
            get_host_connection(options(access_method=AccessMethod.NONE))

    def test_none_access_method_from_spec(self):
        with pytest.raises(UnsupportedStateError):
            get_host_connection_for_spec("unix", "none", "host:notaport")

    def test_unknown_access_method_from_spec(self):
        with pytest.raises(ConfigurationError, match="Unknown host access method"):
            get_host_connection_for_spec("unix", "rsh", "host")

    def test_connection_from_spec(self):
        connection = get_host_connection_for_spec(
            "unix", "ssh_scp", "build01:2200", username="deploy"
        )
        assert isinstance(connection, SshScpConnection)
        assert connection.address == "build01"
        assert connection.port == 2200
        assert str(connection) == "ssh_scp://deploy@build01:2200"

    def test_invalid_port_from_spec(self):
        with pytest.raises(ConfigurationError, match="invalid port number"):
            get_host_connection_for_spec("unix", "ssh_sftp", "build01:x")

    def test_sudo_without_sudo_username(self):
        with pytest.raises(ConfigurationError, match="sudo username is required"):
            get_host_connection(options(sudo_username=None))

    def test_sudo_with_bad_template(self):
        with pytest.raises(ConfigurationError):
            get_host_connection(options(sudo_command_prefix="sudo -u {0} {0}"))

    def test_ssh_requires_address(self):
        with pytest.raises(ConfigurationError, match="requires a host address"):
            get_host_connection(options(access_method="ssh_sftp", address=" "))

    def test_cifs_requires_username(self):
        with pytest.raises(ConfigurationError, match="requires a username"):
            get_host_connection(options(access_method="cifs_telnet", username=None))

    def test_local_temporary_directory(self):
        connection = get_host_connection(options(access_method="local"))
        assert connection.temporary_directory_path == tempfile.gettempdir()

    def test_remote_temporary_directory(self):
        connection = get_host_connection(
            options(access_method="cifs_telnet", os_family="windows")
        )
        assert connection.temporary_directory_path == "C:\\windows\\temp"

    def test_explicit_temporary_directory(self):
        connection = get_host_connection(options(temporary_directory_path="/var/tmp"))
        assert connection.temporary_directory_path == "/var/tmp"


class TestInvocations:
    """Test the process arguments built for each connection."""

    def test_local(self):
        connection = get_host_connection(options(access_method="local"))
        invocation = connection.build_invocation(CmdLine.build("echo", "hello world"))
        assert invocation == ["sh", "-c", "echo hello\\ world"]

    def test_local_on_windows_is_unsupported(self):
        connection = get_host_connection(
            options(access_method="local", os_family="windows")
        )
        with pytest.raises(UnsupportedStateError, match="POSIX"):
            connection.build_invocation(CmdLine.build("dir"))

    def test_ssh(self):
        connection = get_host_connection(
            options(
                access_method="ssh_sftp",
                address="example.com",
                port=2222,
                username="deploy",
            )
        )
        invocation = connection.build_invocation(CmdLine.build("ls", "/tmp"))
        assert invocation == [
            "ssh",
            "-o",
            "BatchMode=yes",
            "-o",
            "ConnectTimeout=120",
            "-p",
            "2222",
            "deploy@example.com",
            "ls /tmp",
        ]

    def test_ssh_without_port_or_username(self):
        connection = get_host_connection(
            options(access_method="ssh_scp", port=None, username=None)
        )
        invocation = connection.build_invocation(CmdLine.build("uptime"))
        assert "-p" not in invocation
        assert invocation[-2:] == ["nowhere.example.com", "uptime"]

    def test_sudo_command_is_elevated(self):
        connection = get_host_connection(options())
        invocation = connection.build_invocation(CmdLine.build("a", "|", "b"))
        assert invocation[-1] == "sudo -u some-other-user a | sudo -u some-other-user b"

    def test_sudo_quoted(self):
        connection = get_host_connection(
            options(sudo_command_prefix="su -u {0}", sudo_quote_command=True)
        )
        line = connection.process_command_line(CmdLine.build("ls", "/tmp"))
        assert line.render() == "su -u some-other-user ls\\ /tmp"

    def test_sudo_prefix_primitive(self):
        connection = get_host_connection(options())
        line = connection.prefix_with_sudo_command(CmdLine.build("nosudo", "ls"))
        assert str(line[0]) == "sudo"

    def test_sudo_nosudo(self):
        connection = get_host_connection(options())
        invocation = connection.build_invocation(CmdLine.build("nosudo", "ls"))
        assert invocation[-1] == "ls"

    def test_interactive_sudo_allocates_tty(self):
        connection = get_host_connection(options(access_method="ssh_interactive_sudo"))
        invocation = connection.build_invocation(CmdLine.build("ls"))
        assert invocation[:2] == ["ssh", "-t"]
        assert invocation[-1] == "sudo -u some-other-user ls"

    def test_non_sudo_ssh_leaves_command_alone(self):
        connection = get_host_connection(options(access_method="ssh_sftp"))
        line = CmdLine.build("a", ";", "b")
        assert connection.process_command_line(line) is line

    def test_cifs_telnet_execution_is_external(self):
        connection = get_host_connection(options(access_method="cifs_telnet"))
        with pytest.raises(UnsupportedStateError, match="Telnet"):
            connection.build_invocation(CmdLine.build("dir"))


class TestExecute:
    """Test running invocations."""

    @patch("hostcmd.connection.hosts.subprocess.run")
    def test_exit_code_is_returned(self, mock_run):
        mock_run.return_value = Mock(returncode=3)
        connection = get_host_connection(options(access_method="local"))

        assert connection.execute(CmdLine.build("false")) == 3
        mock_run.assert_called_once_with(["sh", "-c", "false"])

    @patch("hostcmd.connection.hosts.subprocess.run")
    def test_captured_output_is_echoed(self, mock_run, capsys):
        mock_run.return_value = Mock(returncode=0, stdout="out\n", stderr="err\n")
        connection = get_host_connection(options(access_method="ssh_scp"))

        assert connection.execute(CmdLine.build("ls"), capture_output=True) == 0
        captured = capsys.readouterr()
        assert captured.out == "out\n"
        assert captured.err == "err\n"

    @patch("hostcmd.connection.hosts.subprocess.run")
    def test_missing_client(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        connection = get_host_connection(options(access_method="ssh_sftp"))

        with pytest.raises(
            ConnectionFailedError, match="'ssh' command not found"
        ) as exc_info:
            connection.execute(CmdLine.build("ls"))
        assert exc_info.value.suggestions

    @patch("hostcmd.connection.hosts.subprocess.run")
    def test_subprocess_error(self, mock_run):
        mock_run.side_effect = subprocess.SubprocessError("boom")
        connection = get_host_connection(options(access_method="local"))

        with pytest.raises(ConnectionFailedError, match="boom") as exc_info:
            connection.execute(CmdLine.build("ls"))
        assert exc_info.value.suggestions == []

    @patch("hostcmd.connection.hosts.subprocess.run")
    def test_invalid_command_never_runs(self, mock_run):
        connection = get_host_connection(options())

        with pytest.raises(CommandLineError):
            connection.execute(CmdLine.build("a", ";"))
        mock_run.assert_not_called()
