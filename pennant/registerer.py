"""
Pennant registerer: per-type flag declaration methods and environment overlays.

A Registerer forwards every declaration to a "varer" (anything with a
var(value, name, usage) method, usually a FlagSet). For each supported type it
offers three methods:

- <kind>(name, default, usage)             -> Slot  (single value, last wins)
- <kind>_list(name, default, usage)        -> list  (repeatable, appends)
- <kind>_slice(name, default, sep, usage)  -> list  (delimited, replaces)

Kinds: bool, int, float, complex, string, bytes, duration, url, ip_address,
ip_network, ip_address_port, mail_address, plus time(name, default, layout,
usage) and the generic/generic_list/generic_slice escape hatches. func(name, usage,
function) and bool_func(...) declare flags that act instead of holding a value.

with_env(prefix) / with_env_func(envvar) return a registerer that also reads
each declared flag from the environment right after declaring it
and mention the variable in its usage text:

    >>> flags = FlagSet("tool")
    >>> port = flags.with_env("TOOL_").int("listen-port", 80, "port to bind")
    # TOOL_LISTEN_PORT=8080 in the environment -> port.value == 8080
"""
import os
import warnings

from . import converters
from .faults import InvalidEnvironmentWarning
from .utils import Unset, coalesce, rename
from .values import Slot, FuncValue


class Registerer:
    """
    Declaration front-end writing into a varer.
    """

    def __init__(self, varer, /):
        if not callable(getattr(varer, "var", None)):
            raise TypeError("registerer destination must provide a var(value, name, usage) method")
        self._varer = varer

    def var(self, value, name, usage, /):
        self._varer.var(value, name, usage)

    def generic(self, name, default, usage, parse, format, /):
        """
        Declare a single-value flag for an arbitrary parse/format pair.
        """
        slot = Slot(default)
        self.var(converters.Converter(parse, format).var(slot), name, usage)
        return slot

    def generic_list(self, name, default, usage, parse, format, /):
        values = list(default or ())
        self.var(converters.Converter(parse, format).list_var(values), name, usage)
        return values

    def generic_slice(self, name, default, sep, usage, parse, format, /):
        values = list(default or ())
        self.var(converters.Converter(parse, format).slice_var(values, sep), name, usage)
        return values

    def time(self, name, default, layout, usage, /):
        """
        Declare a datetime flag read with the given layout (see converters.time).
        """
        slot = Slot(default)
        self.var(converters.time(layout).var(slot), name, usage)
        return slot

    def time_list(self, name, default, layout, usage, /):
        values = list(default or ())
        self.var(converters.time(layout).list_var(values), name, usage)
        return values

    def time_slice(self, name, default, layout, sep, usage, /):
        values = list(default or ())
        self.var(converters.time(layout).slice_var(values, sep), name, usage)
        return values

    def func(self, name, usage, function, /):
        """
        Declare a flag that calls function(text) on every occurrence and holds nothing.
        """
        self.var(FuncValue(function), name, usage)

    def bool_func(self, name, usage, function, /):
        """
        Like func(), for a presence-only flag: "-name" calls function("true").
        """
        self.var(FuncValue(function, boolean=True), name, usage)

    def with_env_func(self, envvar, /, environ=Unset):
        """
        Return a registerer that also sets each declared flag from the
        environment variable named envvar(flag_name), when present.

        A value the flag rejects emits InvalidEnvironmentWarning and leaves the
        flag at its default.
        """
        if not callable(envvar):
            raise TypeError("with_env_func() argument must be callable")
        return Registerer(_EnvironmentVarer(self, envvar, coalesce(environ, os.environ)))

    def with_env(self, prefix, /, environ=Unset):
        """
        Like with_env_func(), naming variables PREFIX + NAME: dashes and dots
        become underscores and the name is upper-cased ("listen-port" with
        prefix "TOOL_" reads TOOL_LISTEN_PORT).
        """
        if not isinstance(prefix, str):
            raise TypeError("with_env() prefix must be a string")

        @rename("envvar")
        def envvar(name):
            return prefix + name.replace("-", "_").replace(".", "_").upper()

        return self.with_env_func(envvar, environ)


class _EnvironmentVarer:
    __slots__ = ("_registerer", "_envvar", "_environ")

    def __init__(self, registerer, envvar, environ):
        self._registerer = registerer
        self._envvar = envvar
        self._environ = environ

    def var(self, value, name, usage, /):
        variable = self._envvar(name)
        self._registerer.var(value, name, f"{usage} (env ${variable})")
        if (text := self._environ.get(variable)) is None:
            return
        try:
            value.set(text)
        except (TypeError, ValueError) as exception:
            warnings.warn(InvalidEnvironmentWarning(
                f"ignoring ${variable}={text!r} for flag -{name}: {exception}",
                variable=variable,
                flag=name,
            ), stacklevel=4)


def _single(kind, converter):
    @rename(kind)
    def method(self, name, default, usage, /):
        slot = Slot(default)
        self.var(converter.var(slot), name, usage)
        return slot

    method.__doc__ = f"Declare a {kind} flag; the returned Slot holds its value."
    return method


def _list(kind, converter):
    @rename(kind + "_list")
    def method(self, name, default, usage, /):
        values = list(default or ())
        self.var(converter.list_var(values), name, usage)
        return values

    method.__doc__ = f"Declare a repeatable {kind} flag; every occurrence appends to the returned list."
    return method


def _slice(kind, converter):
    @rename(kind + "_slice")
    def method(self, name, default, sep, usage, /):
        values = list(default or ())
        self.var(converter.slice_var(values, sep), name, usage)
        return values

    method.__doc__ = f"Declare a delimited {kind} flag; each occurrence replaces the returned list's contents."
    return method


_KINDS = {
    "bool": converters.basic(bool),
    "int": converters.basic(int),
    "float": converters.basic(float),
    "complex": converters.basic(complex),
    "string": converters.basic(str),
    "bytes": converters.basic(bytes),
    "duration": converters.duration(),
    "url": converters.URL,
    "ip_address": converters.IP_ADDRESS,
    "ip_network": converters.IP_NETWORK,
    "ip_address_port": converters.IP_ADDRESS_PORT,
    "mail_address": converters.MAIL_ADDRESS,
}

for _kind, _converter in _KINDS.items():
    setattr(Registerer, _kind, _single(_kind, _converter))
    setattr(Registerer, _kind + "_list", _list(_kind, _converter))
    setattr(Registerer, _kind + "_slice", _slice(_kind, _converter))
del _kind, _converter


__all__ = (
    "Registerer",
)
