r"""
Pennant flag sets: declare flags, parse argument vectors, print defaults.

What this module provides
- Flag: one declared flag (name, usage, value cell, formatted default).
- FlagSet: a named collection of flags that parses the classic single-dash
  grammar and records which flags were explicitly supplied.

Grammar (one token at a time, left to right)
- "-name" / "--name"            boolean flags only (equivalent to "-name=true").
- "-name=value" / "--name=value" any flag.
- "-name value" / "--name value" non-boolean flags; the next token is the value.
- Parsing stops at the first non-flag token (a lone "-" is a non-flag) and
  consumes an explicit "--" terminator. Everything after is left in .args.

Faults (raised after printing usage through .usage)
- MalformedFlagError  "bad flag syntax: ---x"
- UnknownFlagError    "flag provided but not defined: -x"
- MissingValueError   "flag needs an argument: -x"
- InvalidValueError   'invalid value "y" for flag -x: ...' (chained from the cell's error)
- HelpRequested       "-h"/"-help" when no such flag is declared

Quick example:
    >>> flags = FlagSet("tool")
    >>> verbose = flags.bool("v", False, "verbose output")
    >>> flags.parse(["-v", "file.txt"])
    >>> verbose.value, flags.args
    (True, ['file.txt'])
"""
import re
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .faults import (
    MalformedFlagError,
    UnknownFlagError,
    MissingValueError,
    InvalidValueError,
    HelpRequested,
    FlagRedefinedError,
)
from .registerer import Registerer
from .utils import Unset, coalesce, validate_name
from .values import Value

# formatted defaults that are not worth showing in usage output
_ZEROS = frozenset({"", "0", "0.0", "0j", "false", "0s", "[]"})


class Flag:
    """
    A declared flag.

    Attributes
    - name: flag name without dashes.
    - usage: help text.
    - value: the value cell (see pennant.values).
    - default: value.format() at declaration time, shown as "(default ...)".
    """
    __slots__ = ("name", "usage", "value", "default")

    def __init__(self, name, usage, value, default):
        self.name = name
        self.usage = usage
        self.value = value
        self.default = default

    def unquote(self):
        """
        Return (metavar, usage) for display.

        The first back-quoted word of the usage becomes the metavar and loses its
        quotes ("set `URL`" -> ("URL", "set URL")); otherwise the cell's metavar
        is used, and boolean flags have none.
        """
        if match := re.search(r"`([^`]*)`", self.usage):
            return match[1], self.usage[:match.start()] + match[1] + self.usage[match.end():]
        return ("" if self.value.boolean else self.value.metavar), self.usage

    def __repr__(self):
        return f"Flag(name={self.name!r}, value={self.value.format()!r}, default={self.default!r})"


class FlagSet(Registerer):
    """
    A set of flags parsed together.

    The per-type declaration methods (bool, int, string, duration, ...) come
    from Registerer; FlagSet is the registerer's own destination.

    Attributes
    - name: shown in the default usage header and definition errors.
    - usage: zero-argument callable invoked before any parse fault is raised;
      replace it to customize help output (pennant.commands does).
    - console: rich console receiving usage output (stderr by default).
    """

    def __init__(self, name="", /, *, console=Unset):
        if not isinstance(name, str):
            raise TypeError("flag set name must be a string")
        super().__init__(self)
        self._name = name
        self._formal = {}
        self._actual = {}
        self._args = []
        self._parsed = False
        self._console = coalesce(console, Console(stderr=True))
        self.usage = self.print_usage

    @property
    def name(self):
        return self._name

    @property
    def console(self):
        return self._console

    @property
    def args(self):
        """
        Remaining non-flag arguments after parse().
        """
        return list(self._args)

    @property
    def parsed(self):
        return self._parsed

    def var(self, value, name, usage, /):
        """
        Declare a flag backed by the given value cell.

        Raises
        - TypeError: value is not a pennant Value, or name/usage not strings.
        - ValueError: name is empty, starts with '-' or contains '='.
        - FlagRedefinedError: name already declared in this set.
        """
        if not isinstance(value, Value):
            raise TypeError("flag value must be a pennant value")
        if not isinstance(usage, str):
            raise TypeError("flag usage must be a string")
        validate_name(name, "flag")
        if name in self._formal:
            prefix = f"{self._name} " if self._name else ""
            raise FlagRedefinedError(f"{prefix}flag redefined: {name}", flag=name)
        self._formal[name] = Flag(name, usage, value, value.format())

    def lookup(self, name, /):
        return self._formal.get(name)

    def set(self, name, value, /):
        """
        Set a declared flag by name and mark it as explicitly supplied.

        The cell's parse error propagates unchanged.
        """
        try:
            flag = self._formal[name]
        except KeyError:
            raise UnknownFlagError(f"no such flag -{name}", flag=name) from None
        flag.value.set(value)
        self._actual[name] = flag

    def actual(self):
        """
        Flags explicitly supplied (by set() or parse()), sorted by name.
        """
        return [self._actual[name] for name in sorted(self._actual)]

    def visit_all(self):
        """
        Every declared flag, sorted by name.
        """
        return [self._formal[name] for name in sorted(self._formal)]

    def parse(self, arguments, /):
        """
        Parse flags from an argument vector (without the program name).

        On failure the usage printer runs, then the fault is raised.
        """
        self._parsed = True
        self._args = list(arguments)
        for argument in self._args:
            if not isinstance(argument, str):
                raise TypeError("parse() argument must be an iterable of strings")
        try:
            while self._parse_one():
                pass
        except (MalformedFlagError, UnknownFlagError, MissingValueError, InvalidValueError, HelpRequested):
            self.usage()
            raise

    def _parse_one(self):
        if not self._args:
            return False
        token = self._args[0]
        if len(token) < 2 or token[0] != "-":
            return False
        dashes = 1
        if token[1] == "-":
            dashes += 1
            if len(token) == 2:  # "--" terminates the flags
                del self._args[0]
                return False
        name = token[dashes:]
        if not name or name[0] in "-=":
            raise MalformedFlagError(f"bad flag syntax: {token}", token=token)

        del self._args[0]
        name, equal, value = name.partition("=")
        try:
            flag = self._formal[name]
        except KeyError:
            if name in ("help", "h"):
                raise HelpRequested("flag: help requested", flag=name) from None
            raise UnknownFlagError(f"flag provided but not defined: -{name}", flag=name) from None

        if flag.value.boolean:
            if not equal:
                value = "true"
            try:
                flag.value.set(value)
            except (TypeError, ValueError) as exception:
                raise InvalidValueError(
                    f'invalid boolean value "{value}" for -{name}: {exception}', flag=name, value=value
                ) from exception
        else:
            if not equal:
                if not self._args:
                    raise MissingValueError(f"flag needs an argument: -{name}", flag=name)
                value = self._args.pop(0)
            try:
                flag.value.set(value)
            except (TypeError, ValueError) as exception:
                raise InvalidValueError(
                    f'invalid value "{value}" for flag -{name}: {exception}', flag=name, value=value
                ) from exception

        self._actual[name] = flag
        return True

    def defaults(self):
        """
        Render every declared flag as rich Text:

              -int int
                    an int flag (default 12)
        """
        styles = defaultdict(str, {
            "flag-name": "bold #00E6FF",  # cyan flag names
            "metavar": "bold #FFD600",  # amber placeholders
            "flag-usage": "#9CA3AF",  # muted gray help
            "default": "italic #737373",  # dim default
        } | getattr(__import__("__main__"), "__styles__", {}))

        lines = []
        for flag in self.visit_all():
            metavar, usage = flag.unquote()
            line = Text("  ")
            line.append(f"-{flag.name}", styles["flag-name"])
            if metavar:
                line.append(" ").append(metavar, styles["metavar"])
            line.append("\n        ")
            line.append(usage.replace("\n", "\n        "), styles["flag-usage"])
            if flag.default not in _ZEROS:
                default = f'"{flag.default}"' if metavar == "string" else flag.default
                line.append(" ").append(f"(default {default})", styles["default"])
            lines.append(line)
        return Text("\n").join(lines)

    def print_defaults(self):
        if self._formal:
            self._console.print(self.defaults())

    def print_usage(self):
        header = f"Usage of {self._name}:" if self._name else "Usage:"
        self._console.print(Text(header))
        self.print_defaults()

    def __contains__(self, name):
        return name in self._formal

    def __repr__(self):
        return f"FlagSet({self._name!r}, flags={sorted(self._formal)!r})"


__all__ = (
    "Flag",
    "FlagSet",
)
