"""SCPI command line encoding.

Builds complete, terminated command lines from a :class:`CommandPath`, a
:class:`CommandMode`, and an optional parameter string. Malformed requests
raise :class:`InvalidCommand` before anything reaches the wire.

Typical usage::

    from pwrtest_scpi.command import CommandMode, CommandPath, encode

    path = CommandPath(("COMMunicate", "HEADer"))
    encode(path, CommandMode.SET, "0")      # ':COMMunicate:HEADer 0\\n'
    encode(path, CommandMode.QUERY)         # ':COMMunicate:HEADer?\\n'
    encode("*CLS", CommandMode.EVENT)       # '*CLS\\n'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pwrtest_scpi.errors import InvalidCommand

TERMINATOR = "\n"
"""Line terminator appended once to every encoded command."""

SEPARATOR = ":"
"""Separator between path segments."""

# Characters that may never appear inside a path segment.
_FORBIDDEN_IN_SEGMENT = frozenset(":?;*# \t\r\n")
_LINE_BREAKS = frozenset("\r\n")


class CommandMode(Enum):
    """How a command line is composed.

    Attributes:
        SET: ``<path> <parameter>``, no response follows.
        QUERY: ``<path>?``, a response read follows.
        EVENT: A literal common command such as ``*CLS`` or ``*IDN?``.
    """

    SET = "set"
    QUERY = "query"
    EVENT = "event"


@dataclass(frozen=True)
class CommandPath:
    """Ordered sequence of SCPI mnemonic segments.

    Segments are stored without separators; :meth:`render` joins them with
    ``:`` and adds the leading root colon.

    Args:
        segments: Mnemonics such as ``("STATus", "FILTer3")``.

    Raises:
        InvalidCommand: If *segments* is a plain string, or a segment is
            empty or contains a separator, query mark, whitespace, or line
            terminator.
    """

    segments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.segments, str):
            raise InvalidCommand(
                f"CommandPath takes a sequence of segments, not a string: {self.segments!r}"
            )
        # Accept any iterable of strings but store a tuple.
        object.__setattr__(self, "segments", tuple(self.segments))
        for segment in self.segments:
            _check_segment(segment)

    def __bool__(self) -> bool:
        return bool(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def child(self, *segments: str) -> CommandPath:
        """Return a new path with *segments* appended."""
        return CommandPath(self.segments + segments)

    def with_suffix(self, suffix: str) -> CommandPath:
        """Return a new path with *suffix* appended to the last segment.

        Used for numbered headers such as ``FILTer3`` or ``MODUle1``; the
        suffix is inserted verbatim.

        Raises:
            InvalidCommand: If the path is empty or the suffix is empty.
        """
        if not self.segments:
            raise InvalidCommand("Cannot add a suffix to an empty command path")
        if not suffix:
            raise InvalidCommand("Header suffix must be non-empty")
        return CommandPath(self.segments[:-1] + (self.segments[-1] + suffix,))

    def render(self) -> str:
        """Render the path as wire text (e.g. ``:COMMunicate:HEADer``)."""
        return "".join(SEPARATOR + segment for segment in self.segments)

    def __str__(self) -> str:
        return self.render()


def _check_segment(segment: str) -> None:
    if not isinstance(segment, str) or not segment:
        raise InvalidCommand(f"Command path segment must be a non-empty string: {segment!r}")
    bad = _FORBIDDEN_IN_SEGMENT.intersection(segment)
    if bad:
        raise InvalidCommand(
            f"Command path segment {segment!r} contains forbidden character(s) "
            f"{''.join(sorted(bad))!r}"
        )


def _check_no_line_break(text: str, what: str) -> None:
    if _LINE_BREAKS.intersection(text):
        raise InvalidCommand(f"{what} must not contain a line terminator: {text!r}")


def encode(
    command: CommandPath | str,
    mode: CommandMode,
    parameter: str | None = None,
) -> str:
    """Encode a complete command line, including its terminator.

    Args:
        command: A :class:`CommandPath` for SET and QUERY, or a literal
            common command string (e.g. ``"*CLS"``) for EVENT.
        mode: How to compose the line.
        parameter: Required for SET, rejected otherwise. Passed through
            verbatim.

    Returns:
        The command line, terminated with a single ``"\\n"``.

    Raises:
        InvalidCommand: If the path is empty for SET/QUERY, a SET lacks its
            parameter, a QUERY or EVENT is given one, EVENT is given a path,
            or any part contains a line terminator.
    """
    if mode is CommandMode.EVENT:
        if not isinstance(command, str):
            raise InvalidCommand("EVENT commands take a literal command string, not a path")
        literal = command.strip(" \t")
        if not literal:
            raise InvalidCommand("EVENT command must be non-empty")
        _check_no_line_break(literal, "EVENT command")
        if parameter is not None:
            raise InvalidCommand(f"EVENT command {literal!r} does not take a parameter")
        return literal + TERMINATOR

    if not isinstance(command, CommandPath):
        raise InvalidCommand(f"{mode.name} commands require a CommandPath, got {command!r}")
    if not command:
        raise InvalidCommand(f"{mode.name} command path must be non-empty")

    if mode is CommandMode.QUERY:
        if parameter is not None:
            raise InvalidCommand(f"Query {command.render()}? does not take a parameter")
        return command.render() + "?" + TERMINATOR

    if parameter is None or not parameter.strip():
        raise InvalidCommand(f"SET command {command.render()} requires a parameter")
    _check_no_line_break(parameter, "Parameter")
    return f"{command.render()} {parameter}{TERMINATOR}"
