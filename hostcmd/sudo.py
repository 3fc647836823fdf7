"""
Sudo prefixing transform.

Rewrites a command line so that, run by a normal shell, it executes under
another identity. Two strategies are available:

- unquoted (default): every section of the line (each side of a pipe, each
  ``;``-separated statement) gets its own elevation prefix;
- quoted: the whole line is escaped into one token that follows a single
  elevation prefix.
"""

import logging
import string
from dataclasses import dataclass
from typing import Optional, Tuple

from .cmdline import CmdLine, CmdToken
from .errors import CommandLineError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SUDO_COMMAND_PREFIX = "sudo -u {0}"

# Leading pseudo-command that skips elevation for one command line
NOSUDO_PSEUDO_COMMAND = "nosudo"


def count_placeholders(template: str) -> int:
    """
    Count the ``{0}`` placeholders in an elevation template.

    Raises:
        ConfigurationError: If the template has malformed brace syntax or a
            placeholder other than ``{0}``.
    """
    try:
        fields = [
            (name, spec, conversion)
            for _, name, spec, conversion in string.Formatter().parse(template)
            if name is not None
        ]
    except ValueError as e:
        raise ConfigurationError(
            f"Malformed sudo command prefix '{template}': {e}"
        ) from e

    for name, spec, conversion in fields:
        if name != "0" or spec or conversion:
            raise ConfigurationError(
                f"Sudo command prefix '{template}' contains unsupported placeholder "
                f"'{{{name}}}'; only {{0}} (the sudo username) is allowed"
            )
    return len(fields)


@dataclass(frozen=True)
class ElevationConfig:
    """Immutable snapshot of the settings used to elevate a command line."""

    sudo_username: Optional[str] = None
    sudo_command_prefix: Optional[str] = None
    quote_command: bool = False

    @property
    def template(self) -> str:
        if self.sudo_command_prefix is None or not self.sudo_command_prefix.strip():
            return DEFAULT_SUDO_COMMAND_PREFIX
        return self.sudo_command_prefix

    def validate(self) -> None:
        """
        Check the configuration before anything is rendered.

        Raises:
            ConfigurationError: If the sudo username is missing or blank, or
                the template is malformed or has more than one placeholder.
        """
        if self.sudo_username is None or not str(self.sudo_username).strip():
            raise ConfigurationError("A sudo username is required for sudo elevation")

        occurrences = count_placeholders(self.template)
        if occurrences > 1:
            raise ConfigurationError(
                f"Sudo command prefix '{self.template}' contains {occurrences} "
                "placeholders; at most one {0} is allowed"
            )


class SudoCommandTransform:
    """Prefix command lines with the configured elevation command."""

    def __init__(self, config: ElevationConfig):
        config.validate()
        self.config = config
        self._prefix = self._resolve_prefix(config)

    @staticmethod
    def _resolve_prefix(config: ElevationConfig) -> Tuple[CmdToken, ...]:
        try:
            template_line = CmdLine.parse(config.template)
        except CommandLineError as e:
            raise ConfigurationError(
                f"Cannot tokenize sudo command prefix '{config.template}': {e}"
            ) from e

        tokens = []
        for token in template_line:
            if token.is_separator:
                raise ConfigurationError(
                    f"Sudo command prefix '{config.template}' must not contain "
                    f"the separator '{token.text}'"
                )
            # Substituting per token keeps the username a single argument
            tokens.append(CmdToken.argument(token.text.format(config.sudo_username)))
        return tuple(tokens)

    def resolve_prefix(self) -> Tuple[CmdToken, ...]:
        """
        Get the elevation prefix tokens.

        Examples:
            >>> t = SudoCommandTransform(ElevationConfig("bob"))
            >>> [str(tok) for tok in t.resolve_prefix()]
            ['sudo', '-u', 'bob']
        """
        return self._prefix

    def prefix_with_sudo_command(self, command_line: CmdLine) -> CmdLine:
        """
        Elevate a command line.

        Args:
            command_line: The line to elevate; it is not modified.

        Returns:
            A new command line that runs ``command_line`` under the sudo
            username.

        Raises:
            CommandLineError: If the line is empty, or (unquoted mode) one of
                its sections is empty.
        """
        if not len(command_line):
            raise CommandLineError("Cannot elevate an empty command line")

        if self.config.quote_command:
            result = CmdLine(self._prefix + (command_line.quoted(),))
        else:
            sections, separators = command_line.sections()
            tokens: Tuple[CmdToken, ...] = ()
            for index, section in enumerate(sections):
                if not len(section):
                    raise CommandLineError(
                        f"Command line '{command_line.render()}' has an empty "
                        "section; each separator must join two commands"
                    )
                if index > 0:
                    tokens += (separators[index - 1],)
                tokens += self._prefix + section.tokens
            result = CmdLine(tokens)

        logger.debug(
            "Elevated '%s' to '%s'", command_line.render(), result.render()
        )
        return result

    def process_command_line(self, command_line: CmdLine) -> CmdLine:
        """
        Prepare a command line for execution under the sudo username.

        A line starting with the ``nosudo`` pseudo-command is returned
        without it and without elevation. Anything else is elevated with
        :meth:`prefix_with_sudo_command`.
        """
        if len(command_line) and (
            command_line[0] == CmdToken.argument(NOSUDO_PSEUDO_COMMAND)
        ):
            stripped = CmdLine(command_line.tokens[1:])
            if not len(stripped):
                raise CommandLineError(
                    f"'{NOSUDO_PSEUDO_COMMAND}' must be followed by a command"
                )
            logger.debug("Not elevating '%s'", stripped.render())
            return stripped
        return self.prefix_with_sudo_command(command_line)
