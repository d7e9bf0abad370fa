r"""
Pennant value cells: generic parse/format adapters for command-line flags.

Overview
- A value cell wraps a pair of functions
  • parse(text) -> T      (raises ValueError/TypeError on bad input)
  • format(value) -> str  (total)
  into a mutable, string-settable, string-formattable holder of a T.

- Storage disciplines (same parse/format pair, three behaviours on set()):
  • SingleValue: each set() replaces the held value (overwrite).
  • ListValue:   each set() parses one input and appends it (repeatable flag).
  • SliceValue:  each set() splits the input on a separator, parses every
                 fragment and replaces the whole sequence (all-or-nothing).

- Ownership
  • Internal: the cell owns its storage (generic, generic_list, generic_slice).
  • External ("var"): the cell writes through to caller storage, a Slot for
    single values or a plain list for list/slice values (generic_var,
    generic_list_var, generic_slice_var). Var lists are mutated in place.

Formatting rules
- SingleValue formats as "" until its first successful set(), unless it was
  built on an external Slot (then the slot's current value is the default and
  formats immediately). A held None always formats as "". This governs how
  defaults are shown in usage output.
- ListValue formats as "[a b c]" (or "" when empty).
- SliceValue formats as "a<sep>b<sep>c" (or "" when empty).

Errors
- set() lets the parse exception propagate unchanged; the held value is left
  untouched on failure, for every discipline.

Quick example:
    >>> cell = generic_slice(",", int, str)
    >>> cell.set("1,2,3")
    >>> cell.get(), cell.format()
    ([1, 2, 3], '1,2,3')
"""
from collections.abc import MutableSequence

from .utils import Unset


class Slot:
    """
    Caller-owned storage for a single value.

    A SingleValue built with generic_var() writes every parsed value into
    slot.value, so the caller keeps a live reference to the flag's value.
    """
    __slots__ = ("value",)

    def __init__(self, value=None):
        self.value = value

    def __repr__(self):
        return f"Slot({self.value!r})"


def _check_functions(cls, parse, format):
    if not callable(parse):
        raise TypeError(f"{cls.__name__} 'parse' must be callable")
    if not callable(format):
        raise TypeError(f"{cls.__name__} 'format' must be callable")


def _check_sequence(cls, values):
    if not isinstance(values, MutableSequence):
        raise TypeError(f"{cls.__name__} storage must be a mutable sequence")
    return values


def _check_separator(cls, sep):
    if not isinstance(sep, str):
        raise TypeError(f"{cls.__name__} separator must be a string")
    elif not sep:
        raise ValueError(f"{cls.__name__} separator cannot be empty")
    return sep


class Value:
    """
    Base protocol of every flag value.

    Contract
    - set(text): parse text and store it according to the discipline.
    - format(): string form of the current value ("" when nothing to show).
    - get(): the raw stored value.
    - boolean: when True, the flag is presence-only ("-verbose" means
      set("true")) and never consumes the next token.
    - metavar: placeholder shown after the flag name in usage output.
    """
    boolean = False
    metavar = "value"

    def set(self, text, /):
        raise NotImplementedError

    def format(self):
        raise NotImplementedError

    def get(self):
        raise NotImplementedError

    def __str__(self):
        return self.format()

    def __repr__(self):
        return f"{type(self).__name__}({self.format()!r})"


class SingleValue(Value):
    """
    Overwrite discipline: the last successful set() wins.
    """

    def __init__(self, parse, format, /, slot=Unset, *, boolean=False, metavar="value"):
        _check_functions(type(self), parse, format)
        if not isinstance(slot, Slot | type(Unset)):
            raise TypeError(f"{type(self).__name__} storage must be a slot")
        self._parse = parse
        self._format = format
        self._slot = Slot() if slot is Unset else slot
        # external storage carries a usable default from the start
        self._isset = slot is not Unset
        self.boolean = bool(boolean)
        self.metavar = metavar

    def set(self, text, /):
        value = self._parse(text)
        self._slot.value = value
        self._isset = True

    def format(self):
        if not self._isset or self._slot.value is None:
            return ""
        return self._format(self._slot.value)

    def get(self):
        return self._slot.value

    @property
    def slot(self):
        return self._slot


class ListValue(Value):
    """
    Append discipline: every successful set() adds one element.
    """

    def __init__(self, parse, format, /, values=Unset, *, boolean=False, metavar="value"):
        _check_functions(type(self), parse, format)
        self._parse = parse
        self._format = format
        self._values = [] if values is Unset else _check_sequence(type(self), values)
        self.boolean = bool(boolean)
        self.metavar = metavar

    def set(self, text, /):
        self._values.append(self._parse(text))

    def format(self):
        if not self._values:
            return ""
        return "[%s]" % " ".join(map(self._format, self._values))

    def get(self):
        return self._values


class SliceValue(Value):
    """
    Split-and-replace discipline: set() splits its input on the separator and
    replaces the whole sequence; a single bad fragment leaves it unchanged.
    """

    def __init__(self, sep, parse, format, /, values=Unset, *, boolean=False, metavar="value"):
        _check_functions(type(self), parse, format)
        self._sep = _check_separator(type(self), sep)
        self._parse = parse
        self._format = format
        self._values = [] if values is Unset else _check_sequence(type(self), values)
        self.boolean = bool(boolean)
        self.metavar = metavar

    def set(self, text, /):
        # parse everything first so a failing fragment cannot leave a partial write
        parsed = [self._parse(fragment) for fragment in text.split(self._sep)]
        self._values[:] = parsed

    def format(self):
        if not self._values:
            return ""
        return self._sep.join(map(self._format, self._values))

    def get(self):
        return self._values

    @property
    def sep(self):
        return self._sep


class FuncValue(Value):
    """
    Callback discipline: every set() hands the raw text to a function and
    stores nothing (flags such as -version that act instead of holding).
    """

    def __init__(self, function, /, *, boolean=False, metavar="value"):
        if not callable(function):
            raise TypeError(f"{type(self).__name__} 'function' must be callable")
        self._function = function
        self.boolean = bool(boolean)
        self.metavar = metavar

    def set(self, text, /):
        self._function(text)

    def format(self):
        return ""

    def get(self):
        return None


def generic(parse, format, /, **options):
    """
    Build a single value cell with internal storage (formats as "" until set).
    """
    return SingleValue(parse, format, **options)


def generic_var(slot, parse, format, /, **options):
    """
    Build a single value cell writing through to slot (formats slot.value immediately).
    """
    return SingleValue(parse, format, slot, **options)


def generic_list(parse, format, /, **options):
    """
    Build a repeatable (append) cell with internal storage.
    """
    return ListValue(parse, format, **options)


def generic_list_var(values, parse, format, /, **options):
    """
    Build a repeatable (append) cell appending to the caller's list.
    """
    return ListValue(parse, format, values, **options)


def generic_slice(sep, parse, format, /, **options):
    """
    Build a delimited (split-and-replace) cell with internal storage.
    """
    return SliceValue(sep, parse, format, **options)


def generic_slice_var(values, sep, parse, format, /, **options):
    """
    Build a delimited (split-and-replace) cell replacing the caller's list contents.
    """
    return SliceValue(sep, parse, format, values, **options)


__all__ = (
    "Slot",
    "Value",
    "SingleValue",
    "ListValue",
    "SliceValue",
    "FuncValue",
    "generic",
    "generic_var",
    "generic_list",
    "generic_list_var",
    "generic_slice",
    "generic_slice_var",
)
