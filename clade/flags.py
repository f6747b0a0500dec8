"""
Clade flag declarations and the per-dispatch flag accessor.

Overview
- FlagKind: closed set of flag value kinds (string, boolean, number).
- Flag: immutable declaration of one option (kind, long name, short alias, usage,
  required/persistent bits and a default). A Flag never stores a parsed value;
  identity matters, since the same object is shared by every descendant that
  inherits it as a persistent flag.
- FlagState: the (value, changed) pair produced for a Flag by one dispatch.
- Flags: read-side accessor handed to command handlers. It maps long names and
  short aliases to declarations and reads their state from the binding table.

Value resolution
- value(name): explicit value, then declared default, then the kind's zero value
  ("", False, 0). When the resolved value is a list, its first element is returned.
- values(name): only the explicit value, normalized to a list ([] when unset).
  The declared default is intentionally not consulted.

Quick example
    >>> port = Flag(type="number", name="port", short="p", default=8080)
    >>> flags = Flags([port], {port: FlagState(9000, True)})
    >>> flags.value("p")
    9000
    >>> flags.values("port")
    [9000]
"""
from collections import namedtuple
from enum import StrEnum

from .faults import InvalidFlagError, RequiredFlagMissingError, UnknownFlagError
from .utils import SpecType


class FlagKind(StrEnum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"


_ZEROS = {
    FlagKind.STRING: "",
    FlagKind.BOOLEAN: False,
    FlagKind.NUMBER: 0,
}


def zero(kind, /):
    """Return the zero value of a flag kind ("", False or 0)."""
    return _ZEROS[FlagKind(kind)]


FlagState = namedtuple("FlagState", ("value", "changed"), defaults=(None, False))
FlagState.__doc__ = """
Per-dispatch state of one flag.

- value: None when the flag was not given and has no default, otherwise the parsed
  scalar, or a list when the flag was repeated.
- changed: True when the parsed value differs from the configured default.
"""


def _sanitize_default(default):
    if isinstance(default, list | tuple):
        for item in default:
            if not isinstance(item, str | bool | int | float):
                raise InvalidFlagError("flag 'default' items must be strings, booleans or numbers")
        return tuple(default)
    if default is not None and not isinstance(default, str | bool | int | float):
        raise InvalidFlagError("flag 'default' must be a string, a boolean, a number or a list of them")
    return default


class Flag(metaclass=SpecType):
    """
    Immutable declaration of a command-line flag.

    Parameters (keyword-only)
    - type: "string" | "boolean" | "number" (default "number")
    - name: long form without dashes (e.g. "output"); may be empty when short is given.
    - short: single-character alias without dash (e.g. "o"); may be empty.
    - usage: help text shown in the flags table.
    - required: the handler may enforce it through Flags.check_required().
    - persistent: descendants of the owning command inherit the flag.
    - default: None, a scalar, or a list of scalars of the declared kind.

    Raises
    - InvalidFlagError when both name and short are empty, when short is longer than
      one character, when a one-character name or short is a digit ("-1" reads as a
      number), when a name carries dashes or whitespace, or on an unknown type.
    """

    __introspectable__ = (
        "type",
        "name",
        "short",
        "usage",
        "required",
        "persistent",
        "default",
    )

    __displayable__ = (
        "type",
        "name",
        "short",
        "required",
        "persistent",
        "default",
    )

    def __init__(
            self,
            *,
            type=FlagKind.NUMBER,
            name=None,
            short=None,
            usage=None,
            required=False,
            persistent=False,
            default=None
    ):
        try:
            kind = FlagKind(type)
        except ValueError:
            raise InvalidFlagError(f"flag 'type' must be one of string, boolean or number, not {type!r}") from None

        name = name if name is not None else ""
        short = short if short is not None else ""
        usage = usage if usage is not None else ""
        for field, value in (("name", name), ("short", short), ("usage", usage)):
            if not isinstance(value, str):
                raise InvalidFlagError(f"flag {field!r} must be a string")

        if not name and not short:
            raise InvalidFlagError("flag must specify a name or a short")
        if len(short) > 1:
            raise InvalidFlagError(f"flag short {short!r} must be a single character")
        for value in (name, short):
            if len(value) == 1 and value.isdigit():
                raise InvalidFlagError(f"flag {value!r} must not be a single digit, it would read as a negative number")
        for value in (name, short):
            if value.startswith("-") or any(char.isspace() or char == "=" for char in value):
                raise InvalidFlagError(f"flag {value!r} must be given without dashes, spaces or '='")

        self._type = kind
        self._name = name
        self._short = short
        self._usage = usage
        self._required = bool(required)
        self._persistent = bool(persistent)
        self._default = _sanitize_default(default)

    @property
    def key(self):
        """Canonical parser key: the short alias when present, else the long name."""
        return self._short or self._name

    @property
    def label(self):
        """Display form used in messages: '--name -s', '--name' or '-s'."""
        return " ".join(part for part in (
            f"--{self._name}" if self._name else "",
            f"-{self._short}" if self._short else "",
        ) if part)


class Flags:
    """
    Accessor over the effective flags of a resolved command and one dispatch's bindings.

    Lookups accept the long name or the short alias. Unknown names raise
    UnknownFlagError naming the requested key.
    """

    def __init__(self, flags=(), bindings=None, /):
        self._bindings = dict(bindings or {})
        self._flags = {}
        for flag in flags:
            if flag.name:
                self._flags[flag.name] = flag
            if flag.short:
                self._flags[flag.short] = flag

    def __iter__(self):
        # Name and short point at the same declaration; yield it once.
        return iter(dict.fromkeys(self._flags.values()))

    def __contains__(self, name):
        return name in self._flags

    def __repr__(self):
        return "flags(%s)" % ", ".join(
            "%s=%r" % (flag.key, self._bindings.get(flag, FlagState()).value) for flag in self
        )

    def _lookup(self, name):
        try:
            return self._flags[name]
        except KeyError:
            raise UnknownFlagError(f"unknown flag '{name}'", flag=name) from None

    def get_flag(self, name, /):
        """Return the declaration registered under a long name or short alias, or None."""
        return self._flags.get(name)

    def state(self, name, /):
        """Return the FlagState bound for this dispatch (unset state when not bound)."""
        return self._bindings.get(self._lookup(name), FlagState())

    def changed(self, name, /):
        return self.state(name).changed

    def value(self, name, /):
        flag = self._lookup(name)
        value = self._bindings.get(flag, FlagState()).value
        if value is None:
            value = flag.default
        if value is None:
            value = zero(flag.type)
        if isinstance(value, list | tuple):
            value = value[0] if value else zero(flag.type)
        return value

    def values(self, name, /):
        value = self.state(name).value
        if value is None:
            return []
        if isinstance(value, list | tuple):
            return list(value)
        return [value]

    def check_required(self):
        """
        Raise RequiredFlagMissingError for the first required flag whose value still
        equals its default.

        Notes
        - This is a literal equality check: a flag explicitly given its default value
          is reported as missing, and so is a flag whose default is None and that was
          not given at all.
        """
        for flag in self:
            value = self._bindings.get(flag, FlagState()).value
            if flag.required and value == flag.default:
                raise RequiredFlagMissingError(
                    f"{flag.label} is required",
                    flag=flag.key,
                    hint=f"pass {flag.label.split()[0]} explicitly",
                )


__all__ = (
    "FlagKind",
    "FlagState",
    "Flag",
    "Flags",
    "zero",
)
