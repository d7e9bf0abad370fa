"""
Pennant converters: ready-made parse/format pairs built on pennant.values.

A Converter bundles one parse/format pair (plus usage metadata) and builds
value cells for every storage discipline:

    >>> ints = basic(int)
    >>> ints.value(), ints.var(Slot(12)), ints.list(), ints.slice(",")

Families
- basic(kind): bool, int, float, complex, str, bytes.
- stringer(parse): any type whose str() is its command-line form.
- time(layout): datetime values with a strftime layout, or "iso".
- duration(): timedelta values written like 1h30m, 250ms or -1.5s.
- URL, IP_ADDRESS, IP_NETWORK, IP_ADDRESS_PORT, MAIL_ADDRESS: network and mail
  values (stringer-based).

Every built-in parser raises ParseError (a ValueError) on bad input.
"""
import datetime
import email.utils
import ipaddress
import re
from fractions import Fraction
from typing import NamedTuple
from urllib.parse import urlsplit, urlunsplit

from .faults import ParseError
from .values import generic, generic_var, generic_list, generic_list_var, generic_slice, generic_slice_var


class Converter:
    """
    A parse/format pair with cell builders for each storage discipline.

    Attributes
    - parse, format: the pair shared by every cell built here.
    - boolean: presence-only flag (single cells only; list/slice cells need a value).
    - metavar: placeholder shown in usage output.
    """
    __slots__ = ("parse", "format", "boolean", "metavar")

    def __init__(self, parse, format, /, *, boolean=False, metavar="value"):
        if not callable(parse) or not callable(format):
            raise TypeError("converter 'parse' and 'format' must be callable")
        self.parse = parse
        self.format = format
        self.boolean = boolean
        self.metavar = metavar

    def value(self):
        return generic(self.parse, self.format, boolean=self.boolean, metavar=self.metavar)

    def var(self, slot, /):
        return generic_var(slot, self.parse, self.format, boolean=self.boolean, metavar=self.metavar)

    def list(self):
        return generic_list(self.parse, self.format, metavar=self.metavar)

    def list_var(self, values, /):
        return generic_list_var(values, self.parse, self.format, metavar=self.metavar)

    def slice(self, sep, /):
        return generic_slice(sep, self.parse, self.format, metavar=self.metavar)

    def slice_var(self, values, sep, /):
        return generic_slice_var(values, sep, self.parse, self.format, metavar=self.metavar)

    def __repr__(self):
        return f"Converter(metavar={self.metavar!r}, boolean={self.boolean!r})"


# ── basic types ──────────────────────────────────────────────────────────────

_TRUTHS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSITIES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text, /):
    if text in _TRUTHS:
        return True
    if text in _FALSITIES:
        return False
    raise ParseError('parsing "%s": invalid syntax' % text, value=text)


def format_bool(value, /):
    return "true" if value else "false"


def parse_int(text, /):
    # 0x/0o/0b prefixes select the base, a bare leading 0 means octal
    if text != text.strip():
        raise ParseError('parsing "%s": invalid integer' % text, value=text)
    digits = text.lstrip("+-")
    base = 8 if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit() else 0
    try:
        return int(text, base)
    except ValueError:
        raise ParseError('parsing "%s": invalid integer' % text, value=text) from None


def parse_float(text, /):
    try:
        return float(text)
    except ValueError:
        raise ParseError('parsing "%s": invalid number' % text, value=text) from None


def parse_complex(text, /):
    try:
        return complex(text)
    except ValueError:
        raise ParseError('parsing "%s": invalid complex number' % text, value=text) from None


def parse_bytes(text, /):
    return text.encode()


def format_bytes(value, /):
    return bytes(value).decode(errors="backslashreplace")


_BASICS = {
    bool: (parse_bool, format_bool, ""),
    int: (parse_int, str, "int"),
    float: (parse_float, str, "float"),
    complex: (parse_complex, str, "complex"),
    str: (str, str, "string"),
    bytes: (parse_bytes, format_bytes, "bytes"),
}


def basic(kind, /):
    """
    Converter for one of the basic types (bool, int, float, complex, str, bytes).

    Raises TypeError for any other kind: that is a programming error.
    """
    try:
        parse, format, metavar = _BASICS[kind]
    except (KeyError, TypeError):
        raise TypeError(f"basic() unsupported type {kind!r}") from None
    return Converter(parse, format, boolean=kind is bool, metavar=metavar)


# ── string-convertible types ─────────────────────────────────────────────────

def stringer(parse, /, *, metavar="value"):
    """
    Converter for types whose str() is their command-line form.
    """
    return Converter(parse, str, metavar=metavar)


# ── time ─────────────────────────────────────────────────────────────────────

def time(layout, /):
    """
    Converter for datetime values.

    layout is a strftime/strptime pattern ("%Y-%m-%d %H:%M") or "iso" for
    ISO-8601 (datetime.fromisoformat / datetime.isoformat).
    """
    if not isinstance(layout, str) or not layout:
        raise TypeError("time() layout must be a non-empty string")

    if layout == "iso":
        def parse(text, /):
            try:
                return datetime.datetime.fromisoformat(text)
            except ValueError:
                raise ParseError('parsing time "%s": not an ISO-8601 date' % text, value=text) from None

        def format(value, /):
            return value.isoformat()
    else:
        def parse(text, /):
            try:
                return datetime.datetime.strptime(text, layout)
            except ValueError:
                raise ParseError('parsing time "%s" as "%s": cannot parse' % (text, layout), value=text) from None

        def format(value, /):
            return value.strftime(layout)

    return Converter(parse, format, metavar="time")


_DURATION = re.compile(r"[-+]?((\d+(\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h))+")
_SEGMENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# microseconds per unit
_UNITS = {
    "ns": Fraction(1, 1000),
    "us": Fraction(1),
    "µs": Fraction(1),
    "μs": Fraction(1),
    "ms": Fraction(1000),
    "s": Fraction(1000 ** 2),
    "m": Fraction(60 * 1000 ** 2),
    "h": Fraction(3600 * 1000 ** 2),
}


def parse_duration(text, /):
    """
    Parse a duration such as "300ms", "-1.5h" or "2h45m" into a timedelta.

    Valid units are "ns", "us" (or "µs"), "ms", "s", "m", "h"; a bare "0" is
    accepted. Precision below a microsecond is rounded.
    """
    if text in ("0", "+0", "-0"):
        return datetime.timedelta(0)
    if not _DURATION.fullmatch(text):
        raise ParseError('invalid duration "%s"' % text, value=text)
    total = sum(Fraction(number) * _UNITS[unit] for number, unit in _SEGMENT.findall(text))
    try:
        return datetime.timedelta(microseconds=round(-total if text.startswith("-") else total))
    except OverflowError:
        raise ParseError('invalid duration "%s"' % text, value=text) from None


def _fraction(value, unit):
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    return "%d.%s" % (whole, str(rest).rjust(len(str(unit)) - 1, "0").rstrip("0"))


def format_duration(value, /):
    """
    Format a timedelta in the compact form parse_duration() reads ("1h30m0s", "250ms", "0s").
    """
    micros = (value.days * 86400 + value.seconds) * 1000 ** 2 + value.microseconds
    if not micros:
        return "0s"
    sign, micros = ("-" if micros < 0 else ""), abs(micros)
    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1000 ** 2:
        return f"{sign}{_fraction(micros, 1000)}ms"
    hours, micros = divmod(micros, 3600 * 1000 ** 2)
    minutes, micros = divmod(micros, 60 * 1000 ** 2)
    text = sign
    if hours:
        text += f"{hours}h"
    if hours or minutes:
        text += f"{minutes}m"
    return text + _fraction(micros, 1000 ** 2) + "s"


def duration():
    """
    Converter for timedelta values (see parse_duration / format_duration).
    """
    return Converter(parse_duration, format_duration, metavar="duration")


# ── network and mail ─────────────────────────────────────────────────────────

def parse_url(text, /):
    try:
        return urlsplit(text)
    except ValueError as exception:
        raise ParseError('parse "%s": %s' % (text, exception), value=text) from None


def format_url(value, /):
    return urlunsplit(value)


def parse_ip_address(text, /):
    try:
        return ipaddress.ip_address(text)
    except ValueError as exception:
        raise ParseError(str(exception), value=text) from None


def parse_ip_network(text, /):
    try:
        return ipaddress.ip_network(text)
    except ValueError as exception:
        raise ParseError(str(exception), value=text) from None


class AddressPort(NamedTuple):
    """
    An IP address and a port, written "1.2.3.4:80" or "[::1]:80".
    """
    address: ipaddress.IPv4Address | ipaddress.IPv6Address
    port: int

    def __str__(self):
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


def parse_ip_address_port(text, /):
    host, colon, port = text.rpartition(":")
    if not colon or not host:
        raise ParseError('"%s" is not an address:port pair' % text, value=text)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ParseError('"%s": IPv6 addresses must be bracketed' % text, value=text)
    if not port.isdigit() or not 0 <= int(port) <= 65535:
        raise ParseError('"%s": invalid port "%s"' % (text, port), value=text)
    return AddressPort(parse_ip_address(host), int(port))


class MailAddress(NamedTuple):
    """
    A mail address with an optional display name, written "Name <user@host>".
    """
    name: str
    address: str

    def __str__(self):
        return email.utils.formataddr((self.name, self.address))


def parse_mail_address(text, /):
    name, address = email.utils.parseaddr(text)
    local, at, domain = address.rpartition("@")
    if not at or not local or not domain:
        raise ParseError('mail: "%s" has no valid address' % text, value=text)
    return MailAddress(name, address)


URL = Converter(parse_url, format_url, metavar="url")
IP_ADDRESS = stringer(parse_ip_address, metavar="address")
IP_NETWORK = stringer(parse_ip_network, metavar="network")
IP_ADDRESS_PORT = stringer(parse_ip_address_port, metavar="address:port")
MAIL_ADDRESS = stringer(parse_mail_address, metavar="address")


__all__ = (
    "Converter",
    "AddressPort",
    "MailAddress",
    "basic",
    "stringer",
    "time",
    "duration",
    "parse_bool",
    "format_bool",
    "parse_int",
    "parse_float",
    "parse_complex",
    "parse_bytes",
    "format_bytes",
    "parse_duration",
    "format_duration",
    "parse_url",
    "format_url",
    "parse_ip_address",
    "parse_ip_network",
    "parse_ip_address_port",
    "parse_mail_address",
    "URL",
    "IP_ADDRESS",
    "IP_NETWORK",
    "IP_ADDRESS_PORT",
    "MAIL_ADDRESS",
)
