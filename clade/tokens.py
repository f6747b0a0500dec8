"""
Token parser boundary: a minimist-style facade over argparse.

The command layer never tokenizes arguments itself. It hands the raw argument list
and a small configuration to parse(), and reads back a Parsed record:

    parse(args, alias={"p": ["port"]}, default={"p": 8080}, boolean=["v"], string=["o"], number=["p"])
    -> Parsed(positionals=[...], values={"p": "9000", "v": True}, passthrough=[...])

Contract
- Everything after the first literal '--' is returned untouched in `passthrough`.
- Single-character keys answer to '-k' and '--k'; longer keys to '--key'. Aliases add
  their own forms. Abbreviated long options are not accepted.
- boolean keys: presence means True; '--no-<long>' means False; an absent key without
  default is False.
- string keys: a missing value yields "".
- number keys: a value is required and is left as text (coercion is up to the caller).
- A key seen once yields a scalar, a repeated key yields a list in order of appearance.
- `default` applies only to keys that were not given.
- Unknown options are ignored; every other non-option token is reported, in order,
  in `positionals`.
- Malformed input (a number key without value, an unknown letter inside a short
  cluster, ...) raises TokenError.
"""
import argparse
import re
from collections import namedtuple

from .faults import TokenError

Parsed = namedtuple("Parsed", ("positionals", "values", "passthrough"))

_NEGATIVE = re.compile(r"-\d+|-\d*\.\d+")


def is_option(token, /):
    """True for '-x', '--name', '-abc' and '--name=value'; False for '-', '--' and negative numbers."""
    return token.startswith("-") and token not in ("-", "--") and not _NEGATIVE.fullmatch(token)


def split(args, /):
    """Split an argument list at the first '--' into (tokens, passthrough)."""
    args = list(args)
    try:
        index = args.index("--")
    except ValueError:
        return args, []
    return args[:index], args[index + 1:]


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise TokenError(message, hint="check the flag values given on the command line")


def _option_strings(key):
    return [f"-{key}", f"--{key}"] if len(key) == 1 else [f"--{key}"]


def parse(args, /, *, alias=None, default=None, boolean=(), string=(), number=()):
    alias = dict(alias or {})
    default = dict(default or {})
    boolean = set(boolean)
    string = set(string)

    tokens, passthrough = split(args)
    parser = _Parser(prog="clade", add_help=False, allow_abbrev=False, exit_on_error=False)

    keys = list(dict.fromkeys([*boolean, *string, *number, *alias, *default]))
    taken = set()
    for key in keys:
        strings = []
        for name in [key, *alias.get(key, ())]:
            # First key wins an option string ('-x' for a long name "x" and a short "x").
            strings.extend(option for option in _option_strings(name) if option not in taken)
        if not strings:
            continue
        taken.update(strings)
        try:
            if key in boolean:
                parser.add_argument(*strings, dest=key, action=argparse.BooleanOptionalAction, default=None)
                taken.update("--no-" + option[2:] for option in strings if option.startswith("--"))
            elif key in string:
                parser.add_argument(*strings, dest=key, action="append", nargs="?", const="", default=None)
            else:
                parser.add_argument(*strings, dest=key, action="append", default=None)
        except argparse.ArgumentError as error:
            raise TokenError(str(error)) from None

    try:
        namespace, extras = parser.parse_known_args(tokens)
    except argparse.ArgumentError as error:
        raise TokenError(str(error), hint="check the flag values given on the command line") from None

    values = {}
    for key in keys:
        value = getattr(namespace, key, None)
        if value is None:
            if key in default:
                values[key] = default[key]
            elif key in boolean:
                values[key] = False
            continue
        if isinstance(value, list) and len(value) == 1:
            value = value[0]
        values[key] = value

    positionals = [token for token in extras if not is_option(token)]
    return Parsed(positionals, values, passthrough)


__all__ = (
    "Parsed",
    "parse",
    "split",
    "is_option",
)
