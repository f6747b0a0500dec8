"""
Process runtime seen by the command tree: output streams, exit and argument source.

Every write from help rendering, error reporting and handlers goes through a Runtime,
so a test (or an embedding program) can swap it for a recorder. Writes are raw: the
text is emitted as given, with no added newline, markup or highlighting.
"""
import sys

from rich.console import Console

from .utils import coalesce, Unset


class Runtime:
    """
    Parameters
    - stdout / stderr: rich Console instances; default to consoles bound to the
      process streams (resolved at write time).
    - colorful: render faults with colors.
    """

    def __init__(self, *, stdout=Unset, stderr=Unset, colorful=False):
        self._stdout = coalesce(stdout, Console(highlight=False, soft_wrap=True))
        self._stderr = coalesce(stderr, Console(stderr=True, highlight=False, soft_wrap=True))
        self._colorful = bool(colorful)

    @property
    def colorful(self):
        return self._colorful

    def stdout(self, text, /):
        self._stdout.out(text, end="", highlight=False)

    def stderr(self, text, /):
        self._stderr.out(text, end="", highlight=False)

    def fault(self, fault, /):
        """Render a CommandException to stderr through its __rich__ protocol."""
        self._stderr.print(fault.__replace__(colorful=self._colorful))

    def exit(self, code, /):
        sys.exit(code)

    def args(self):
        return sys.argv[1:]


system = Runtime()
"""Runtime bound to the current process."""


__all__ = (
    "Runtime",
    "system",
)
