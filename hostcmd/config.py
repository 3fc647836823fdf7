"""
Configuration manager for hostcmd with XDG-compliant paths.

Loads and merges configuration from system, user and environment sources
with hierarchical precedence:

    system < user < environment < explicit overrides

Example ``~/.config/hostcmd/config.yaml``::

    connection:
      os: unix
      type: ssh_sudo
      host: build01.example.com:2222
      username: deploy
      timeout_ms: 120000
    sudo:
      username: appuser
      command_prefix: "sudo -u {0}"
      quote_command: false
    verbosity: 1
"""

# pylint: disable=broad-exception-caught

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from omegaconf import DictConfig, OmegaConf

from .connection.options import (
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_SSH_PORT,
    ConnectionOptions,
    HostSpec,
)
from .errors import ConfigurationError
from .sudo import ElevationConfig

# Environment variable -> dotted config key
ENVIRONMENT_KEYS = {
    "HOSTCMD_OS": "connection.os",
    "HOSTCMD_CONNECTION_TYPE": "connection.type",
    "HOSTCMD_HOST": "connection.host",
    "HOSTCMD_USERNAME": "connection.username",
    "HOSTCMD_SUDO_USERNAME": "sudo.username",
    "HOSTCMD_SUDO_COMMAND_PREFIX": "sudo.command_prefix",
    "HOSTCMD_SUDO_QUOTE_COMMAND": "sudo.quote_command",
}

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def parse_bool(value: Any, key: str = "value") -> bool:
    """Interpret config/environment values such as ``"yes"`` or ``0`` as booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: '{value}'")


class ConfigManager:
    """Manages hostcmd configuration loading and merging."""

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        self.overrides = overrides or {}
        self.system_config: Optional[DictConfig] = None
        self.user_config: Optional[DictConfig] = None
        self.env_config: Optional[DictConfig] = None
        self.merged_config: Optional[DictConfig] = None
        self._load_configs()

    def _get_xdg_config_dirs(self) -> List[Path]:
        """Get XDG config directories in precedence order."""
        xdg_config_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
        return [Path(d) / "hostcmd" for d in xdg_config_dirs.split(":") if d]

    def _get_user_config_dir(self) -> Path:
        """Get user config directory following XDG spec."""
        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config_home:
            return Path(xdg_config_home) / "hostcmd"
        return Path.home() / ".config" / "hostcmd"

    def _load_file(self, config_file: Path, label: str) -> Optional[DictConfig]:
        if not config_file.exists():
            return None
        try:
            loaded = OmegaConf.load(config_file)
        except Exception as e:
            click.echo(
                f"Warning: Failed to load {label} config {config_file}: {e}", err=True
            )
            return None
        if not isinstance(loaded, DictConfig):
            click.echo(
                f"Warning: Ignoring {label} config {config_file}: not a mapping",
                err=True,
            )
            return None
        return loaded

    def _load_system_config(self) -> Optional[DictConfig]:
        """Load the first system-wide configuration found."""
        for config_dir in self._get_xdg_config_dirs():
            loaded = self._load_file(config_dir / "config.yaml", "system")
            if loaded is not None:
                return loaded
        return None

    def _load_user_config(self) -> Optional[DictConfig]:
        return self._load_file(self._get_user_config_dir() / "config.yaml", "user")

    def _load_env_config(self) -> DictConfig:
        """Build a config layer from HOSTCMD_* environment variables."""
        env_config = OmegaConf.create({})
        for env_var, key_path in ENVIRONMENT_KEYS.items():
            if env_var in os.environ:
                OmegaConf.update(env_config, key_path, os.environ[env_var])
        return env_config

    def _load_configs(self):
        """Load and merge all configuration sources."""
        self.system_config = self._load_system_config()
        self.user_config = self._load_user_config()
        self.env_config = self._load_env_config()

        override_config = OmegaConf.create({})
        for key_path, value in self.overrides.items():
            if value is not None:
                OmegaConf.update(override_config, key_path, value)

        configs = [
            c
            for c in (self.system_config, self.user_config, self.env_config)
            if c is not None
        ]
        configs.append(override_config)
        self.merged_config = OmegaConf.merge(*configs)

    def reload_configs(self):
        """Reload configuration files."""
        self._load_configs()

    def get_config_files(self) -> Dict[str, Path]:
        """Get paths to all relevant config files."""
        files = {}
        for i, config_dir in enumerate(self._get_xdg_config_dirs()):
            files[f"system_{i}"] = config_dir / "config.yaml"
        files["user"] = self._get_user_config_dir() / "config.yaml"
        return files

    def get_config_value(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated path (e.g., 'sudo.username')."""
        if not self.merged_config:
            return default
        value = OmegaConf.select(self.merged_config, key_path, default=default)
        if OmegaConf.is_config(value):
            return OmegaConf.to_container(value, resolve=True)
        return value

    def to_dict(self) -> Dict[str, Any]:
        return OmegaConf.to_container(self.merged_config, resolve=True)

    def elevation_config(self, **overrides: Any) -> ElevationConfig:
        """
        Snapshot the elevation settings.

        Keyword overrides (``sudo_username``, ``sudo_command_prefix``,
        ``quote_command``) take precedence over configured values when not
        None.

        Raises:
            ConfigurationError: If the settings are invalid
        """
        username = overrides.get("sudo_username")
        if username is None:
            username = self.get_config_value("sudo.username")
        prefix = overrides.get("sudo_command_prefix")
        if prefix is None:
            prefix = self.get_config_value("sudo.command_prefix")
        quote = overrides.get("quote_command")
        if quote is None:
            quote = self.get_config_value("sudo.quote_command", False)

        config = ElevationConfig(
            sudo_username=username,
            sudo_command_prefix=prefix,
            quote_command=parse_bool(quote, "sudo.quote_command"),
        )
        config.validate()
        return config

    def connection_options(self, **overrides: Any) -> ConnectionOptions:
        """
        Snapshot the connection settings.

        Keyword overrides: ``host`` (``address[:port]``), ``access_method``,
        ``os_family``, ``username``, ``password``, ``sudo_username``,
        ``sudo_command_prefix``, ``sudo_quote_command``,
        ``temporary_directory_path``.

        Raises:
            ConfigurationError: If a value is invalid or no access method is
                configured
        """

        def pick(name: str, key_path: str, default: Any = None) -> Any:
            value = overrides.get(name)
            if value is None:
                value = self.get_config_value(key_path, default)
            return value

        access_method = pick("access_method", "connection.type")
        if access_method is None:
            raise ConfigurationError(
                "No connection type configured (set connection.type or "
                "HOSTCMD_CONNECTION_TYPE)"
            )

        try:
            default_port = int(
                pick("default_ssh_port", "connection.default_port", DEFAULT_SSH_PORT)
            )
            timeout_ms = int(
                pick(
                    "connection_timeout_ms",
                    "connection.timeout_ms",
                    DEFAULT_CONNECTION_TIMEOUT_MS,
                )
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric connection setting: {e}") from e

        host_value = pick("host", "connection.host")
        host = HostSpec.parse(
            None if host_value is None else str(host_value), default_port=default_port
        )

        return ConnectionOptions(
            access_method=access_method,
            os_family=pick("os_family", "connection.os", "unix"),
            address=host.address,
            port=host.port,
            username=pick("username", "connection.username"),
            password=pick("password", "connection.password"),
            sudo_username=pick("sudo_username", "sudo.username"),
            sudo_command_prefix=pick("sudo_command_prefix", "sudo.command_prefix"),
            sudo_quote_command=parse_bool(
                pick("sudo_quote_command", "sudo.quote_command", False),
                "sudo.quote_command",
            ),
            temporary_directory_path=pick(
                "temporary_directory_path", "connection.temporary_directory"
            ),
            default_ssh_port=default_port,
            connection_timeout_ms=timeout_ms,
        )


def setup_logging(verbosity: Optional[int] = None, config_manager: Optional[ConfigManager] = None):
    """
    Configures the logging level based on the verbosity provided by the user.

    Args:
        verbosity (int): The number of '-v' flags used, or from config.
                       - 0: ERROR level (default)
                       - 1: WARNING level
                       - 2: INFO level
                       - 3 or more: DEBUG level
    """
    import logging

    if verbosity is None:
        verbosity = 0
        if config_manager is not None:
            verbosity = int(config_manager.get_config_value("verbosity", 0) or 0)

    root_logger = logging.getLogger()

    # Remove existing handlers to avoid conflicts
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if verbosity == 1:
        level = logging.WARNING
        format_str = "%(levelname)s: %(message)s"
    elif verbosity == 2:
        level = logging.INFO
        format_str = "%(levelname)s: %(message)s"
    elif verbosity >= 3:
        level = logging.DEBUG
        format_str = "%(levelname)s:%(name)s: %(message)s"
    else:
        level = logging.ERROR
        format_str = "%(levelname)s: %(message)s"

    root_logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_str))
    root_logger.addHandler(handler)
