"""
Shared test helpers.

Recorder is a Runtime that keeps every write in memory and records exit codes
instead of leaving the interpreter. Faults rendered through rich land in a
colorless in-memory console.
"""
import io

from rich.console import Console

from clade import Runtime


class Recorder(Runtime):
    def __init__(self, args=()):
        self.console = io.StringIO()
        super().__init__(stderr=Console(file=self.console, color_system=None, width=200))
        self._args = list(args)
        self.out = []
        self.err = []
        self.codes = []

    @property
    def stdout_text(self):
        return "".join(self.out)

    @property
    def stderr_text(self):
        return "".join(self.err)

    def stdout(self, text, /):
        self.out.append(text)

    def stderr(self, text, /):
        self.err.append(text)

    def exit(self, code, /):
        self.codes.append(code)

    def args(self):
        return list(self._args)
