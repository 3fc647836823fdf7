"""
Command line model for hostcmd.

A command line is an ordered, immutable sequence of tokens. Each token is a
plain argument, a shell control operator (a separator such as ``|`` or
``;``) or a raw, already-escaped piece of text. Rendering turns the sequence
into one string that a POSIX shell executes exactly as built.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Tuple, Union

from .errors import CommandLineError

logger = logging.getLogger(__name__)

SEPARATORS = ("|", ";", "&&", "||")

# Characters that lose their shell meaning only when backslash-escaped
SPECIAL_CHARS = frozenset(" \t\\'\";|&$`()<>*?[]{}~#!")

# Separators escaped even inside a quoted command line
MUST_ESCAPE_WHEN_QUOTED = frozenset({";", "&&", "||"})


def escape(text: str, chars: Iterable[str]) -> str:
    """Prefix every character of ``text`` found in ``chars`` with a backslash."""
    chars = frozenset(chars)
    return "".join("\\" + c if c in chars else c for c in text)


def escape_argument(text: str) -> str:
    """
    Escape a single argument for a POSIX shell.

    Special characters are backslash-escaped. A newline cannot be escaped that
    way (backslash-newline is a line continuation), so it is single-quoted.
    The empty argument renders as ``""``.

    Examples:
        >>> escape_argument("/tmp")
        '/tmp'
        >>> escape_argument("my file")
        'my\\\\ file'
    """
    if text == "":
        return '""'
    return escape(text, SPECIAL_CHARS).replace("\n", "'\n'")


class TokenKind(Enum):
    """Kind of a command line token."""

    ARGUMENT = "argument"
    SEPARATOR = "separator"
    RAW = "raw"


@dataclass(frozen=True)
class CmdToken:
    """One unit of a command line."""

    text: str
    kind: TokenKind = TokenKind.ARGUMENT

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise CommandLineError(
                f"Command line token must be a string, got {type(self.text).__name__}"
            )
        if self.kind is TokenKind.SEPARATOR and self.text not in SEPARATORS:
            raise CommandLineError(
                f"'{self.text}' is not a separator. "
                f"Supported separators: {', '.join(SEPARATORS)}"
            )

    @classmethod
    def argument(cls, text: str) -> "CmdToken":
        return cls(text, TokenKind.ARGUMENT)

    @classmethod
    def separator(cls, text: str) -> "CmdToken":
        return cls(text, TokenKind.SEPARATOR)

    @classmethod
    def raw(cls, text: str) -> "CmdToken":
        return cls(text, TokenKind.RAW)

    @property
    def is_separator(self) -> bool:
        return self.kind is TokenKind.SEPARATOR

    def render(self) -> str:
        """Render this token the way it must appear on the shell command line."""
        if self.kind is TokenKind.ARGUMENT:
            return escape_argument(self.text)
        return self.text

    def __str__(self) -> str:
        return self.text


TokenLike = Union[str, CmdToken]


def _to_token(value: TokenLike) -> CmdToken:
    if isinstance(value, CmdToken):
        return value
    if value in SEPARATORS:
        return CmdToken.separator(value)
    return CmdToken.argument(value)


def _split_words(text: str) -> List[Tuple[str, bool]]:
    """
    Split free text into shell words.

    Returns a list of ``(word, literal)`` pairs where ``literal`` is True when
    any part of the word was quoted or escaped. Only unquoted whitespace
    separates words.
    """
    words: List[Tuple[str, bool]] = []
    buf: List[str] = []
    literal = False
    in_word = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch in " \t\n":
            if in_word:
                words.append(("".join(buf), literal))
                buf, literal, in_word = [], False, False
            i += 1
            continue

        in_word = True
        if ch == "\\":
            if i + 1 >= n:
                raise CommandLineError(f"Trailing backslash in command line: {text!r}")
            buf.append(text[i + 1])
            literal = True
            i += 2
        elif ch == "'":
            end = text.find("'", i + 1)
            if end < 0:
                raise CommandLineError(f"Unterminated single quote in: {text!r}")
            buf.append(text[i + 1 : end])
            literal = True
            i = end + 1
        elif ch == '"':
            i += 1
            while True:
                if i >= n:
                    raise CommandLineError(f"Unterminated double quote in: {text!r}")
                c = text[i]
                if c == '"':
                    break
                if c == "\\" and i + 1 < n and text[i + 1] in '\\"$`':
                    buf.append(text[i + 1])
                    i += 2
                    continue
                buf.append(c)
                i += 1
            literal = True
            i += 1
        else:
            buf.append(ch)
            i += 1

    if in_word:
        words.append(("".join(buf), literal))
    return words


@dataclass(frozen=True)
class CmdLine:
    """
    An ordered, immutable sequence of command tokens.

    Build one with :meth:`build` (one token per string) or :meth:`parse`
    (free text). Every transform returns a new instance; the tokens of an
    existing line never change.
    """

    tokens: Tuple[CmdToken, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "tokens", tuple(_to_token(t) for t in self.tokens))

    @classmethod
    def build(cls, *args: TokenLike) -> "CmdLine":
        """
        Build a command line with one token per argument.

        Strings that are exactly a separator (``|``, ``;``, ``&&``, ``||``)
        become SEPARATOR tokens; every other string is an ARGUMENT.

        Examples:
            >>> CmdLine.build("ls", "/tmp").render()
            'ls /tmp'
            >>> [t.kind.name for t in CmdLine.build("a", "|", "b")]
            ['ARGUMENT', 'SEPARATOR', 'ARGUMENT']
        """
        if not args:
            raise CommandLineError("Cannot build an empty command line")
        return cls(tuple(args))

    @classmethod
    def parse(cls, text: str) -> "CmdLine":
        """
        Tokenize a free-text command line.

        Words are split on unquoted, unescaped whitespace. A word consisting
        solely of an unquoted separator becomes a SEPARATOR token; an escaped
        or quoted separator (``\\|``, ``';'``) stays a literal argument.
        """
        words = _split_words(text or "")
        if not words:
            raise CommandLineError("Cannot parse an empty command line")
        tokens = []
        for word, literal in words:
            if not literal and word in SEPARATORS:
                tokens.append(CmdToken.separator(word))
            else:
                tokens.append(CmdToken.argument(word))
        return cls(tuple(tokens))

    @property
    def arguments(self) -> Tuple[CmdToken, ...]:
        return self.tokens

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[CmdToken]:
        return iter(self.tokens)

    def __getitem__(self, index):
        return self.tokens[index]

    def render(self) -> str:
        """Render the line as a single string ready for a POSIX shell."""
        return " ".join(token.render() for token in self.tokens)

    def __str__(self) -> str:
        return self.render()

    def prepend(self, tokens: Iterable[TokenLike]) -> "CmdLine":
        return CmdLine(tuple(tokens) + self.tokens)

    def append(self, tokens: Iterable[TokenLike]) -> "CmdLine":
        return CmdLine(self.tokens + tuple(tokens))

    @classmethod
    def concat(cls, *lines: "CmdLine") -> "CmdLine":
        tokens: Tuple[CmdToken, ...] = ()
        for line in lines:
            tokens += line.tokens
        return cls(tokens)

    def sections(self) -> Tuple[Tuple["CmdLine", ...], Tuple[CmdToken, ...]]:
        """
        Partition the line into runs of tokens divided by separators.

        Returns:
            Tuple of (sections, separators). There is always exactly one more
            section than separators; a leading, trailing or doubled
            separator yields an empty section.

        Examples:
            >>> sections, seps = CmdLine.build("a", "|", "b").sections()
            >>> [s.render() for s in sections], [str(s) for s in seps]
            (['a', 'b'], ['|'])
        """
        sections: List[CmdLine] = []
        separators: List[CmdToken] = []
        current: List[CmdToken] = []
        for token in self.tokens:
            if token.is_separator:
                sections.append(CmdLine(tuple(current)))
                separators.append(token)
                current = []
            else:
                current.append(token)
        sections.append(CmdLine(tuple(current)))
        return tuple(sections), tuple(separators)

    def quoted(self) -> CmdToken:
        """
        Escape the whole line into one raw token.

        Each token is rendered for the inner shell and then escaped once more
        for the outer shell, and the pieces are joined with escaped spaces.
        Arguments keep every special character behind both layers. Statement
        separators (``;``, ``&&``, ``||``) are escaped in both layers while a
        pipe stays bare.

        Examples:
            >>> str(CmdLine.build("ls", "/tmp").quoted())
            'ls\\\\ /tmp'
            >>> str(CmdLine.build("a", "|", "b").quoted())
            'a\\\\ |\\\\ b'
        """
        parts = []
        for token in self.tokens:
            if token.is_separator:
                if token.text in MUST_ESCAPE_WHEN_QUOTED:
                    nested = escape(token.text, token.text)
                    parts.append(escape(nested, "\\" + token.text))
                else:
                    parts.append(token.text)
            else:
                parts.append(escape_argument(token.render()))
        quoted = "\\ ".join(parts)
        logger.debug("Quoted command line %r as %r", self.render(), quoted)
        return CmdToken.raw(quoted)
