"""
Pennant faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue,
  grouped by domain (values, argument syntax, dispatch, definitions, lookups).
- FlagException / FlagWarning: base types that carry message + options and know
  how to render themselves with rich.
- FaultGroup / join(): combine several faults into one, in order (used by
  wrapping functions that add their own error to the continuation's error).
- report(): render any exception or warning on a rich console.

Taxonomy
- ParseError: a single value failed to convert from its string form.
- ArgumentSyntaxError: the flag set rejected the token stream
  (MalformedFlagError, UnknownFlagError, MissingValueError, InvalidValueError).
- HelpRequested: -h/-help was given but not declared.
- MissingRequiredFlagError: a required flag had no explicit value.
- DispatchExhaustedError: no child matched and there is no handler.
- DefinitionError: programming errors caught while declaring flags
  (FlagRedefinedError, UndeclaredFlagError).
- FlagNotFoundError / FlagTypeError: typed flag table lookups.

Nothing in the core logs or prints faults; they propagate to the caller, and
hosting programs (see pennant.commands.invoke) decide how to surface them.
"""
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - values (2110x): PARSE_ERROR
    - argument syntax (2111x): MALFORMED_FLAG, UNKNOWN_FLAG, MISSING_VALUE,
      INVALID_VALUE, HELP_REQUESTED
    - dispatch (2112x): MISSING_REQUIRED_FLAG, DISPATCH_EXHAUSTED
    - definitions (2113x): FLAG_REDEFINED, UNDECLARED_FLAG
    - lookups (2114x): FLAG_NOT_FOUND, FLAG_TYPE
    - grouped (2115x): FAULT_GROUP
    - warnings (22xxx): INVALID_ENVIRONMENT
    """
    # --- value errors ---
    PARSE_ERROR           = 21101

    # --- argument syntax errors ---
    MALFORMED_FLAG        = 21111
    UNKNOWN_FLAG          = 21112
    MISSING_VALUE         = 21113
    INVALID_VALUE         = 21114
    HELP_REQUESTED        = 21115

    # --- dispatch errors ---
    MISSING_REQUIRED_FLAG = 21121
    DISPATCH_EXHAUSTED    = 21122

    # --- definition errors ---
    FLAG_REDEFINED        = 21131
    UNDECLARED_FLAG       = 21132

    # --- lookup errors ---
    FLAG_NOT_FOUND        = 21141
    FLAG_TYPE             = 21142

    # --- grouped errors ---
    FAULT_GROUP           = 21151

    # --- warnings ---
    INVALID_ENVIRONMENT   = 22111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program(options):
    main = __import__("__main__")
    return coalesce(options.get("prog", Unset), getattr(main, "__prog__", os.path.basename(sys.argv[0]) or "pennant"))


def _render(fault, palette, title):
    """
    Shared rich layout for exceptions and warnings.

    Layout
    - header: [ prog — code | Title ]
    - body:   message
    - hint:   → hint (omitted when the fault has none)

    Options read from fault.options: colorful (default True), fancy (default False), prog.
    """
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    header = Text.assemble(
        "[ ",
        text(_program(fault.options), "prog-name"),
        " — ",
        text(fault.code.normalize(), "code"),
        " | ",
        text(fault.title.title(), title),
        " ]"
    )
    message = text(fault.message, "message")
    parts = [message]
    if fault.hint:
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(fault.hint, "hint")))

    if fault.options.get("fancy", False):
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class FlagException(Exception):
    """
    Base class of every pennant error.

    Parameters
    - message: str, the user-facing text (also str(exception)).
    - **options: free-form context (flag, value, args, hint, title, code, ...),
      exposed read-only through .options.

    Class-level defaults (__code__, __title__, __hint__) are used when the
    corresponding option is not given.
    """
    __code__ = FaultCode.PARSE_ERROR
    __title__ = "error"
    __hint__ = None

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def hint(self):
        return self.options.get("hint", type(self).__hint__)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, "error-title")


class ParseError(FlagException, ValueError):
    __code__ = FaultCode.PARSE_ERROR
    __title__ = "invalid value"


class ArgumentSyntaxError(FlagException):
    __code__ = FaultCode.MALFORMED_FLAG
    __title__ = "bad arguments"
    __hint__ = "run with -h to see the available options"


class MalformedFlagError(ArgumentSyntaxError):
    __code__ = FaultCode.MALFORMED_FLAG
    __title__ = "malformed flag"


class UnknownFlagError(ArgumentSyntaxError):
    __code__ = FaultCode.UNKNOWN_FLAG
    __title__ = "unknown flag"


class MissingValueError(ArgumentSyntaxError):
    __code__ = FaultCode.MISSING_VALUE
    __title__ = "missing value"


class InvalidValueError(ArgumentSyntaxError):
    __code__ = FaultCode.INVALID_VALUE
    __title__ = "invalid value"


class HelpRequested(FlagException):
    __code__ = FaultCode.HELP_REQUESTED
    __title__ = "help requested"


class MissingRequiredFlagError(FlagException):
    __code__ = FaultCode.MISSING_REQUIRED_FLAG
    __title__ = "missing required flag"


class DispatchExhaustedError(FlagException):
    __code__ = FaultCode.DISPATCH_EXHAUSTED
    __title__ = "cannot proceed"
    __hint__ = "pick one of the listed commands"


class DefinitionError(FlagException):
    __code__ = FaultCode.FLAG_REDEFINED
    __title__ = "bad definition"


class FlagRedefinedError(DefinitionError):
    __code__ = FaultCode.FLAG_REDEFINED
    __title__ = "flag redefined"


class UndeclaredFlagError(DefinitionError):
    __code__ = FaultCode.UNDECLARED_FLAG
    __title__ = "undeclared flag"


class FlagNotFoundError(FlagException, KeyError):
    __code__ = FaultCode.FLAG_NOT_FOUND
    __title__ = "flag not found"


class FlagTypeError(FlagException, TypeError):
    __code__ = FaultCode.FLAG_TYPE
    __title__ = "unexpected flag type"


class FaultGroup(ExceptionGroup):
    """
    Ordered combination of faults.

    str(group) is the member messages joined by newlines, so a wrapper that adds
    its own error after the continuation's reads naturally:

        child failed
        wrapper terminated
    """

    def __new__(cls, exceptions, /, **options):
        return super().__new__(cls, "joined faults", exceptions)

    def __init__(self, exceptions, /, **options):
        super().__init__("joined faults", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __str__(self):
        return "\n".join(map(str, self.exceptions))

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    @property
    def code(self):
        return FaultCode.FAULT_GROUP

    @property
    def title(self):
        return "several errors"

    @property
    def hint(self):
        return None

    def __rich__(self):
        renders = [Text.assemble("[ ", _program(self.options), " — ", self.code.normalize(), " | ", self.title.title(), " ]")]
        for exception in self.exceptions:
            renders.append(exception if hasattr(exception, "__rich__") else Text(str(exception)))
        return Group(*renders)


def join(*exceptions):
    """
    Combine exceptions into a FaultGroup, skipping None.

    Returns None when nothing is left, so it can be used on optional errors:

        raise join(error, RuntimeError("wrapper terminated"))
    """
    if not (exceptions := [exception for exception in exceptions if exception is not None]):
        return None
    for exception in exceptions:
        if not isinstance(exception, Exception):
            raise TypeError("join() arguments must be exceptions or None")
    return FaultGroup(exceptions)


class FlagWarning(Warning):
    """
    Base class of pennant warnings (emitted through the warnings module).
    """
    __code__ = FaultCode.INVALID_ENVIRONMENT
    __title__ = "warning"
    __hint__ = None

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    code = FlagException.code
    title = FlagException.title
    hint = FlagException.hint

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning-title")


class InvalidEnvironmentWarning(FlagWarning):
    __code__ = FaultCode.INVALID_ENVIRONMENT
    __title__ = "invalid environment"
    __hint__ = "fix or unset the environment variable"


def report(fault, /, *, console=Unset):
    """
    render a fault on a rich console (stderr by default).

    exceptions without a rich renderer (plain Python errors coming from user
    handlers) are printed as their message.
    """
    console = coalesce(console, globals()["console"])
    if hasattr(fault, "__rich__"):
        console.print(fault)
    else:
        console.print(Text(str(fault) or type(fault).__name__))


__all__ = (
    "FaultCode",
    "FlagException",
    "ParseError",
    "ArgumentSyntaxError",
    "MalformedFlagError",
    "UnknownFlagError",
    "MissingValueError",
    "InvalidValueError",
    "HelpRequested",
    "MissingRequiredFlagError",
    "DispatchExhaustedError",
    "DefinitionError",
    "FlagRedefinedError",
    "UndeclaredFlagError",
    "FlagNotFoundError",
    "FlagTypeError",
    "FaultGroup",
    "FlagWarning",
    "InvalidEnvironmentWarning",
    "join",
    "report",
)
