"""
Clade faults (errors raised while building and dispatching a command tree).

Scope
- FaultCode: canonical, stable numeric identifiers for every fault, grouped by
  domain so that messages and logs stay searchable.
- CommandException: base type carrying a message plus read-only options (code,
  title, hint, ...) and able to render itself through rich.
- One subclass per fault kind. Each one also derives from the closest builtin
  exception (ValueError, TypeError, LookupError) so callers can catch them the
  usual way.

Propagation
- Setup faults (missing usage, duplicate command, flag conflict, invalid flag) are
  raised synchronously while the tree is built and are never caught by the dispatcher.
- AmbiguousCommandError is raised during dispatch and propagates to the caller.
- UnknownFlagError / RequiredFlagMissingError are raised from the flag accessor
  inside handlers; the dispatcher contains them like any other handler failure.
- TokenError is raised by the token parser and converted to exit code 1.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - routing (111xx): AMBIGUOUS_COMMAND
    - flags (112xx): UNKNOWN_FLAG, REQUIRED_FLAG_MISSING, MALFORMED_TOKENS
    - setup (131xx): MISSING_USAGE, DUPLICATE_COMMAND, FLAG_CONFLICT, INVALID_FLAG
    """
    # --- routing errors ---
    AMBIGUOUS_COMMAND     = 11101

    # --- flag errors ---
    UNKNOWN_FLAG          = 11201
    REQUIRED_FLAG_MISSING = 11202
    MALFORMED_TOKENS      = 11203

    # --- setup errors ---
    MISSING_USAGE         = 13101
    DUPLICATE_COMMAND     = 13102
    FLAG_CONFLICT         = 13103
    INVALID_FLAG          = 13104


class CommandException(Exception):
    """
    Base class for every clade fault.

    Parameters
    - message: str
      One-sentence, lowercased description of what went wrong.
    - **options
      Free-form context exposed read-only through .options. The renderer reads
      'code', 'title', 'hint' and 'colorful'; subclasses provide defaults for the
      first three.
    """
    __defaults__ = {}

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(type(self).__defaults__ | options)

    def __str__(self):
        return self.message

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })
        colorful = self.options.get("colorful", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", "clade"), "prog-name"),
            " — ",
            text(int(self.code) if self.code is not None else "?", "code"),
            " | ",
            text(str(self.options.get("title", "error")).title(), "error-title"),
            " ]",
        )
        renders = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingUsageError(CommandException, ValueError):
    __defaults__ = {
        "code": FaultCode.MISSING_USAGE,
        "title": "missing usage",
        "hint": "give every command a use string whose first word is its name",
    }


class DuplicateCommandError(CommandException, ValueError):
    __defaults__ = {
        "code": FaultCode.DUPLICATE_COMMAND,
        "title": "duplicate command",
        "hint": "sibling commands must have distinct names",
    }


class FlagConflictError(CommandException, ValueError):
    __defaults__ = {
        "code": FaultCode.FLAG_CONFLICT,
        "title": "flag conflict",
        "hint": "a flag name or short alias may appear only once along a command's ancestry",
    }


class InvalidFlagError(CommandException, TypeError):
    __defaults__ = {
        "code": FaultCode.INVALID_FLAG,
        "title": "invalid flag",
    }


class AmbiguousCommandError(CommandException, LookupError):
    __defaults__ = {
        "code": FaultCode.AMBIGUOUS_COMMAND,
        "title": "ambiguous command",
        "hint": "more than one sibling command answers to this name",
    }


class UnknownFlagError(CommandException, LookupError):
    __defaults__ = {
        "code": FaultCode.UNKNOWN_FLAG,
        "title": "unknown flag",
    }


class RequiredFlagMissingError(CommandException, ValueError):
    __defaults__ = {
        "code": FaultCode.REQUIRED_FLAG_MISSING,
        "title": "required flag",
    }


class TokenError(CommandException, ValueError):
    __defaults__ = {
        "code": FaultCode.MALFORMED_TOKENS,
        "title": "malformed arguments",
    }


__all__ = (
    "FaultCode",
    "CommandException",
    "MissingUsageError",
    "DuplicateCommandError",
    "FlagConflictError",
    "InvalidFlagError",
    "AmbiguousCommandError",
    "UnknownFlagError",
    "RequiredFlagMissingError",
    "TokenError",
)
