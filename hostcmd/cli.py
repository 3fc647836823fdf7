"""
Command line interface for hostcmd.

Builds command lines, shows how they are elevated and tokenized, and runs
them on a host through the configured connection.
"""

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .cmdline import CmdLine
from .config import ConfigManager, setup_logging
from .connection import get_host_connection
from .errors import ConnectionFailedError, HostcmdError
from .sudo import SudoCommandTransform

console = Console()


def _build_command_line(command, cmd) -> CmdLine:
    """Build from --cmd free text or from positional arguments."""
    if cmd and command:
        raise click.UsageError("Use either --cmd or positional arguments, not both")
    if cmd:
        return CmdLine.parse(cmd)
    if not command:
        raise click.UsageError("No command specified")
    return CmdLine.build(*command)


def _elevate(config_manager, command_line, sudo_user, sudo_prefix, quote):
    """Apply sudo elevation if a sudo username is given or configured."""
    if not (sudo_user or config_manager.get_config_value("sudo.username")):
        return command_line
    elevation = config_manager.elevation_config(
        sudo_username=sudo_user,
        sudo_command_prefix=sudo_prefix,
        quote_command=True if quote else None,
    )
    return SudoCommandTransform(elevation).process_command_line(command_line)


def sudo_options(func):
    """Options shared by commands that can elevate a command line."""
    func = click.option(
        "--quote",
        is_flag=True,
        help="Escape the whole command into one token after a single sudo prefix",
    )(func)
    func = click.option(
        "--sudo-prefix",
        help="Elevation command template; {0} is replaced by the sudo user (default: 'sudo -u {0}')",
    )(func)
    func = click.option(
        "--sudo-user", help="Run the command as this user (default: configured)"
    )(func)
    func = click.option(
        "--cmd", help="Command as free text (alternative to positional arguments)"
    )(func)
    return func


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (use -v, -vv, -vvv for more detail)",
)
@click.pass_context
def hostcmd(ctx, version, verbose):
    """
    hostcmd - build, elevate and run shell command lines on hosts

    Show the line sent to the host when running as another user:
        hostcmd render --sudo-user app -- ls /tmp
        hostcmd render --sudo-user app --cmd "ps aux | grep java"

    Run a command over SSH with sudo:
        hostcmd connect --host build01:2222 --method ssh_sudo --sudo-user app -- ls /tmp
    """
    if version:
        from . import __version__

        click.echo(f"hostcmd {__version__}")
        ctx.exit()

    ctx.ensure_object(dict)
    if "config_manager" not in ctx.obj:
        ctx.obj["config_manager"] = ConfigManager()
    setup_logging(verbose or None, ctx.obj["config_manager"])

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


@hostcmd.command("render")
@sudo_options
@click.argument("command", nargs=-1, required=False)
@click.pass_context
def render_cmd(ctx, command, cmd, sudo_user, sudo_prefix, quote):
    """Print the shell-ready rendering of a command line."""
    config_manager = ctx.obj["config_manager"]
    try:
        command_line = _build_command_line(command, cmd)
        command_line = _elevate(config_manager, command_line, sudo_user, sudo_prefix, quote)
    except HostcmdError as e:
        raise click.ClickException(str(e))
    click.echo(command_line.render())


@hostcmd.command("tokens")
@sudo_options
@click.argument("command", nargs=-1, required=False)
@click.pass_context
def tokens_cmd(ctx, command, cmd, sudo_user, sudo_prefix, quote):
    """Show the tokens of a command line."""
    config_manager = ctx.obj["config_manager"]
    try:
        command_line = _build_command_line(command, cmd)
        command_line = _elevate(config_manager, command_line, sudo_user, sudo_prefix, quote)
    except HostcmdError as e:
        raise click.ClickException(str(e))

    table = Table(title="Command Line Tokens")
    table.add_column("#", justify="right", style="blue")
    table.add_column("Kind", style="magenta")
    table.add_column("Text", style="green")
    table.add_column("Rendered", style="cyan")
    for index, token in enumerate(command_line):
        table.add_row(
            str(index), token.kind.name, Text(token.text or '""'), Text(token.render())
        )
    console.print(table)
    console.print(f"Rendered: {command_line.render()}", markup=False, style="bold")


@hostcmd.command("connect")
@click.option("--host", help="Host as address[:port] (default: configured or localhost)")
@click.option(
    "--method",
    help="Access method: local, ssh_sftp, ssh_scp, ssh_sudo, ssh_interactive_sudo, cifs_telnet",
)
@click.option("--os", "os_family", help="Operating system family: unix, windows, zos")
@click.option("--user", "username", help="Username to log in with")
@click.option("--sudo-user", help="User to run the command as (sudo methods)")
@click.option("--sudo-prefix", help="Elevation command template")
@click.option("--quote", is_flag=True, help="Quote the whole command after sudo")
@click.option("--cmd", help="Command as free text (alternative to positional arguments)")
@click.option(
    "--dry",
    "--dry-run",
    is_flag=True,
    help="Show what would be executed without running it",
)
@click.argument("command", nargs=-1, required=False)
@click.pass_context
def connect_cmd(
    ctx, host, method, os_family, username, sudo_user, sudo_prefix, quote, cmd, dry, command
):
    """
    Run a command line on a host.

    \b
    Examples:
        hostcmd connect --method local -- echo hello
        hostcmd connect --host db01 --method ssh_sudo --sudo-user postgres -- psql -l
        hostcmd connect --host db01 --method ssh_scp --dry --cmd "df -h | sort"
    """
    config_manager = ctx.obj["config_manager"]
    try:
        command_line = _build_command_line(command, cmd)
        options = config_manager.connection_options(
            host=host,
            access_method=method,
            os_family=os_family,
            username=username,
            sudo_username=sudo_user,
            sudo_command_prefix=sudo_prefix,
            sudo_quote_command=True if quote else None,
        )
        connection = get_host_connection(options)
        invocation = connection.build_invocation(command_line)
    except HostcmdError as e:
        raise click.ClickException(str(e))

    if dry:
        click.echo(f"Connection: {connection}")
        click.echo(f"Command: {invocation[-1]}")
        click.echo(f"Invocation: {invocation}")
        return

    try:
        exit_code = connection.execute(command_line)
    except ConnectionFailedError as e:
        console.print(f"❌ {e}", style="red", markup=False)
        for suggestion in e.suggestions:
            console.print(f"  • {suggestion}", style="dim", markup=False)
        ctx.exit(255)
    except HostcmdError as e:
        raise click.ClickException(str(e))
    ctx.exit(exit_code)


@hostcmd.group("config")
def config_cli():
    """Inspect hostcmd configuration."""
    pass


@config_cli.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    config_manager = ctx.obj["config_manager"]

    table = Table(title="hostcmd Configuration")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    def add_rows(prefix, value):
        if isinstance(value, dict):
            for key, sub_value in value.items():
                add_rows(f"{prefix}.{key}" if prefix else str(key), sub_value)
        else:
            table.add_row(prefix, Text(str(value)))

    add_rows("", config_manager.to_dict())
    console.print(table)

    files = Table(title="Config Files")
    files.add_column("Source", style="magenta")
    files.add_column("Path")
    files.add_column("Exists", style="blue")
    for source, path in config_manager.get_config_files().items():
        files.add_row(source, Text(str(path)), "yes" if path.exists() else "no")
    console.print(files)
