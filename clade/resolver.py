"""
Command resolution: walk raw tokens down the command tree.

resolve(root, args) -> (command, leftover)

Walk
- Start at the root. Every token before the first '--' is inspected in order.
- Option tokens are skipped. An option without an inline '=value' consumes the
  following token as its value, unless that token is itself an option, the option
  names a boolean flag of the current node, or it is a '--no-<name>' negation.
  Options unknown to the current node take a value too, so a descendant's flag
  given before the command word ('--name bob add') does not stop the walk.
  Inside a short cluster ('-vx') only the last letter can consume the next token;
  a known non-boolean letter before the end takes the rest of the cluster inline.
- A word token is matched against the children of the current node by exact name:
  one match descends, none starts the leftover list, several raise
  AmbiguousCommandError. Once the leftover list has started, or when the current
  node has no children, every following word is leftover.
- Tokens after '--' are appended to the leftover list untouched.

The walk never fails for unknown words or unknown flags; the deepest matched node is
returned and the remaining words become the handler's positional arguments.
"""
from collections import deque

from .faults import AmbiguousCommandError
from .flags import FlagKind
from .tokens import is_option, split


def _lookup(flags, key):
    for flag in flags:
        if key in (flag.name, flag.short):
            return flag
    return None


def _takes_value(flags, token):
    if "=" in token:
        return False

    if token.startswith("--"):
        name = token[2:]
        flag = _lookup(flags, name)
        if flag is None:
            return not name.startswith("no-")
        return flag.type is not FlagKind.BOOLEAN

    cluster = token[1:]
    for index, char in enumerate(cluster):
        last = index == len(cluster) - 1
        flag = _lookup(flags, char)
        if flag is None:
            if last:
                return True
            continue
        if flag.type is not FlagKind.BOOLEAN:
            return last
    return False


def resolve(root, args, /):
    tokens, passthrough = split(args)
    tokens = deque(tokens)

    command = root
    flags = command.get_flags()
    leftover = []

    while tokens:
        token = tokens.popleft()

        if is_option(token):
            if _takes_value(flags, token) and tokens and not is_option(tokens[0]):
                tokens.popleft()
            continue

        children = command.commands
        if leftover or not children:
            leftover.append(token)
            continue

        matches = [child for child in children if child.name == token]
        if len(matches) > 1:
            raise AmbiguousCommandError(
                f"ambiguous command '{token}' under '{command.path}'",
                command=token,
                candidates=tuple(matches),
            )
        if not matches:
            leftover.append(token)
            continue

        command, = matches
        flags = command.get_flags()

    return command, leftover + passthrough


__all__ = (
    "resolve",
)
