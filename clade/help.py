"""
Help rendering for command nodes.

Layout (every line ends with a newline)

    <title>
    <blank>
    Usage:
      <use>                          (leaf)
      <name> [commands]              (node with children)
    <blank>
    Available Commands:              (only with children, sorted by use)
      <name padded>   <short>
    <blank>
    Flags:                           (only when the node has effective flags, sorted by name)
      <-s, ><--name>   <usage>

The long form titles the text with long, falling back to short then use; the short
form uses short, falling back to use. Flag columns are padded to the widest short
alias and the widest long name of the listed flags.
"""
from collections import namedtuple

Pad = namedtuple("Pad", ("short", "long"))


def _collate(text):
    # Case-insensitive order with lowercase first on ties.
    return text.casefold(), text.swapcase()


def calc_pad(flags, /):
    """Widths of the longest short alias and the longest long name among flags."""
    flags = list(flags)
    return Pad(
        max((len(flag.short) for flag in flags), default=0),
        max((len(flag.name) for flag in flags), default=0),
    )


def flag_help(flag, pad, /):
    short, long = pad
    if short:
        short += 3
    if long:
        long += 2

    sf = ""
    if flag.short:
        sf = f"-{flag.short}, " if flag.name else f"-{flag.short}  "
    lf = f"--{flag.name}" if flag.name else ""
    return f"{sf:<{short}}{lf:<{long}}   {flag.usage}"


def render(command, /, long=False):
    if long:
        title = next((text for text in (command.long, command.short) if text is not None), command.use)
    else:
        title = command.short if command.short is not None else command.use

    lines = [f"{title}\n", "\nUsage:\n"]

    children = sorted(command.commands, key=lambda child: _collate(child.use))
    if not children:
        lines.append(f"  {command.use}\n")
    else:
        lines.append(f"  {command.name} [commands]\n")
        lines.append("\nAvailable Commands:\n")
        width = max(len(child.name) for child in children)
        for child in children:
            lines.append(f"  {child.name:<{width}}   {child.short or ''}\n")

    flags = sorted(command.get_flags(), key=lambda flag: _collate(flag.name))
    if flags:
        lines.append("\nFlags:\n")
        pad = calc_pad(flags)
        for flag in flags:
            lines.append(f"  {flag_help(flag, pad)}\n")

    return "".join(lines)


__all__ = (
    "Pad",
    "calc_pad",
    "flag_help",
    "render",
)
