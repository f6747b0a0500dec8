"""
Flag binding: turn raw tokens into per-dispatch flag state for a resolved command.

options(flags)
- Derive the token parser configuration from an effective flag set. The parser key
  of a flag is its short alias when present, else its long name; a flag with both
  registers the long name as alias. Declared defaults are passed through; boolean
  and string kinds are listed; every other flag is a number key.

bind(command, args) -> Flags
- Parse the full raw argument list against the effective flags of the resolved
  command. Positionals are not taken from the parser: the resolver's leftover list is
  authoritative for the handler's arguments.
- Number flags are coerced from text ("12" -> 12, "1.5" -> 1.5). Text that is not a
  number is kept as given.
- changed is True when the parsed value differs from the declared default, or when
  the flag has no default and the parser reported a value for it (absent booleans
  are reported as False).
- Every effective flag starts from an unset FlagState before the parse is applied,
  so nothing survives from a previous dispatch.
"""
import re

from .flags import FlagKind, Flags, FlagState
from .tokens import parse

_INTEGER = re.compile(r"[-+]?\d+")
_REAL = re.compile(r"[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?")
_HEXADECIMAL = re.compile(r"0[xX][0-9a-fA-F]+")


def coerce(value, /):
    """Convert numeric text to int or float; lists are coerced item by item."""
    if isinstance(value, list | tuple):
        return [coerce(item) for item in value]
    if not isinstance(value, str):
        return value
    if _INTEGER.fullmatch(value):
        return int(value)
    if _HEXADECIMAL.fullmatch(value):
        return int(value, 16)
    if _REAL.fullmatch(value):
        return float(value)
    return value


def options(flags, /):
    alias, default, boolean, string, number = {}, {}, [], [], []
    for flag in flags:
        key = flag.key
        if flag.short and flag.name:
            alias[key] = [flag.name]
        if flag.default is not None:
            default[key] = flag.default
        match flag.type:
            case FlagKind.BOOLEAN:
                boolean.append(key)
            case FlagKind.STRING:
                string.append(key)
            case _:
                number.append(key)
    return {
        "alias": alias,
        "default": default,
        "boolean": boolean,
        "string": string,
        "number": number,
    }


def bind(command, args, /):
    flags = command.get_flags()
    config = options(flags)
    parsed = parse(args, **config)

    bindings = {flag: FlagState() for flag in flags}
    for flag in flags:
        key = flag.key
        if key not in parsed.values:
            continue
        value = parsed.values[key]
        if flag.type is FlagKind.NUMBER:
            value = coerce(value)
        changed = key not in config["default"] or value != config["default"][key]
        bindings[flag] = FlagState(value, changed)

    return Flags(flags, bindings)


__all__ = (
    "bind",
    "coerce",
    "options",
)
