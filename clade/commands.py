"""
Clade command layer: build a command tree, attach flags and dispatch argument lists.

What this module provides
- Cmd: declaration record of a command (use, short, long, run, show_help).
- Command: one node of the tree. Owns its flags and its children, knows its parent.
  • add_command(cmd) / @command(...) create children.
  • add_flag(**options) declares a flag, rejecting any name or short alias already
    declared on the node or on one of its ancestors.
  • get_flags() lists the effective flags: own flags first, then the persistent
    flags inherited from every ancestor.
  • help(long=False) writes the node's help text to stderr.
- RootCommand: the tree root. Adds the persistent --help/-h flag, owns the runtime
  (output streams, exit) and dispatches argument lists through execute().
- cli(...): build a RootCommand.

Dispatch (RootCommand.execute)
1. Resolve the deepest command addressed by the leading words of the arguments.
2. Bind the effective flags of that command from the arguments. Values never leak
   from one dispatch to the next.
3. Record the dispatch in RootCommand.last.
4. With --help/-h, write the command's long help to stderr and return 1; the
   handler does not run.
5. Otherwise run the handler with (command, positionals, flags). Exceptions raised
   by the handler are reported on stderr and turned into exit code 1.

Quick start
    from clade import cli

    app = cli("greet", short="Greets people")
    app.add_flag(type="string", name="name", short="n", usage="who to greet", default="world")

    @app.command("hello", short="Says hello")
    def hello(command, args, flags):
        command.stdout(f"hello {flags.value('name')}\\n")

    if __name__ == "__main__":
        app.main()
"""
import asyncio
import inspect
import shlex
from collections import namedtuple
from collections.abc import Iterable, Mapping

from .binder import bind
from .faults import *
from .flags import Flag, FlagKind, Flags
from .help import render
from .resolver import resolve
from .runtime import Runtime, system
from .utils import *

Cmd = namedtuple("Cmd", ("use", "short", "long", "run", "show_help"), defaults=(None, None, None, False))
Cmd.__doc__ = """
Declaration of a command.

- use: usage line; its first word is the command name (required, non-blank).
- short: one-line summary, shown in the parent's command list.
- long: long description, used as the title of --help output.
- run: handler called as run(command, args, flags); may be a coroutine function.
- show_help: also write help after a failed or non-zero run.
"""

Dispatch = namedtuple("Dispatch", ("command", "args", "flags", "helped", "code"), defaults=(False, None))
Dispatch.__doc__ = """
Record of the most recent dispatch of a RootCommand.

- command: the resolved Command.
- args: positional arguments handed to the handler.
- flags: the Flags accessor of that dispatch.
- helped: True when --help/-h short-circuited the handler.
- code: exit code, None while the handler is still running.
"""


def _exit_code(result):
    if result is None:
        return 0
    return int(result)


async def _await(awaitable):
    return await awaitable


def _drive(awaitable):
    """Run an awaitable handler result to completion outside of any event loop."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(awaitable))
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    raise RuntimeError("execute() cannot run a coroutine handler inside a running event loop, use aexecute()")


def _sanitize_args(args):
    """
    Normalize an argument source to a list of strings.

    - str: shell-like string, split with shlex.split.
    - Iterable[str]: taken as-is, item by item.
    """
    if isinstance(args, str):
        return shlex.split(args)
    if isinstance(args, Iterable):
        args = list(args)
        for item in args:
            if not isinstance(item, str):
                raise TypeError("execute() argument must be a string or an iterable of strings")
        return args
    raise TypeError("execute() argument must be a string or an iterable of strings")


class Command(metaclass=SpecType):
    """
    A node of the command tree.

    Parameters
    - use: str
      Usage line; the first whitespace-separated word is the command name.
    - short, long: str | None
      Summary and long description used by help.
    - run: callable | None
      Handler run(command, args, flags) -> int | None (or an awaitable of it).
      Without a handler the command writes its short help and returns 1.
    - show_help: bool
      Write help after a failed or non-zero run.

    Raises
    - MissingUsageError when use is missing or blank.
    - TypeError when run is not callable.

    Notes
    - A command is attached to a parent only through add_command(); a Command built
      directly stays detached and can serve as a template.
    """

    __introspectable__ = (
        "use",
        "short",
        "long",
        "show_help",
        "parent",
        "commands",
        "flags",
    )

    __displayable__ = (
        "use",
        "short",
        "show_help",
    )

    def __init__(self, use, /, short=None, long=None, run=None, *, show_help=False):
        if use is None or (isinstance(use, str) and not use.strip()):
            raise MissingUsageError("use is required")
        if not isinstance(use, str):
            raise TypeError(f"{type(self).__typename__} use must be a string")
        for field, value in (("short", short), ("long", long)):
            if value is not None and not isinstance(value, str):
                raise TypeError(f"{type(self).__typename__} {field} must be a string")
        if run is not None and not callable(run):
            raise TypeError(f"{type(self).__typename__} run must be callable")

        self._use = use
        self._short = short
        self._long = long
        self._run = run
        self._show_help = bool(show_help)
        self._parent = None
        self._commands = []
        self._flags = []

    @property
    def name(self):
        """First word of the usage line."""
        return self._use.split()[0]

    @property
    def cmd(self):
        """The Cmd declaration this command was built from."""
        return Cmd(self._use, self._short, self._long, self._run, self._show_help)

    @property
    def root(self):
        """Topmost command of the tree this command belongs to."""
        command = self
        while command._parent is not None:
            command = command._parent
        return command

    @property
    def path(self):
        """Names from the root down to this command, joined by spaces (e.g. 'git remote add')."""
        names = [self.name]
        command = self._parent
        while command is not None:
            names.append(command.name)
            command = command._parent
        return " ".join(reversed(names))

    @property
    def runtime(self):
        return getattr(self.root, "_runtime", system)

    def add_command(self, cmd, /):
        """
        Create a child command from a declaration and attach it.

        Accepted forms
        - Cmd(...) or a mapping with the same keys.
        - An existing Command, used as a template: only its declaration is copied,
          never its flags, its children or its parent.

        Raises
        - DuplicateCommandError when a sibling already has the same name.
        - MissingUsageError when use is missing or blank.
        """
        if isinstance(cmd, Command):
            cmd = cmd.cmd
        elif isinstance(cmd, Mapping):
            cmd = Cmd(**cmd)
        elif not isinstance(cmd, Cmd):
            raise TypeError("add_command() argument must be a Cmd, a mapping or a command")

        child = Command(cmd.use, cmd.short, cmd.long, cmd.run, show_help=cmd.show_help)
        if any(sibling.name == child.name for sibling in self._commands):
            raise DuplicateCommandError(f"a command {child.name} already exists", command=child.name)

        child._parent = self
        self._commands.append(child)
        return child

    def command(self, use, /, short=None, long=None, *, show_help=False):
        """
        Decorator form of add_command().

            @app.command("add <path>", short="Adds a path")
            def add(command, args, flags): ...

        The decorated function becomes the handler and the new child command is
        returned in its place. When short is omitted, the first line of the
        function's docstring is used.
        """
        @rename("command")
        def wrapper(run, /):
            if not callable(run):
                raise TypeError("@command() must be applied to a callable")
            summary = short
            if summary is None and (doc := inspect.getdoc(run)):
                summary = doc.splitlines()[0]
            return self.add_command(Cmd(use, summary, long, run, show_help))

        return wrapper

    def add_flag(self, **options):
        """
        Declare a flag on this command; see Flag for the accepted keywords.

        Raises
        - FlagConflictError when the name or the short alias is already declared on
          this command or on any ancestor, persistent or not.
        - InvalidFlagError for an invalid declaration.
        """
        flag = Flag(**options)
        command = self
        while command is not None:
            for other in command._flags:
                if (flag.name and flag.name == other.name) or (flag.short and flag.short == other.short):
                    raise FlagConflictError(
                        f"{flag.label} has conflict with: {other.label}",
                        flag=flag.key,
                        command=command.path,
                    )
            command = command._parent

        self._flags.append(flag)
        return flag

    def get_flag(self, name, /):
        """Find a flag by long name here, then up the ancestors; None when absent."""
        command = self
        while command is not None:
            for flag in command._flags:
                if flag.name == name:
                    return flag
            command = command._parent
        return None

    def get_flags(self):
        flags = list(self._flags)
        command = self._parent
        while command is not None:
            for flag in command._flags:
                if flag.persistent and flag not in flags:
                    flags.append(flag)
            command = command._parent
        return flags

    def help(self, long=False):
        self.stderr(render(self, long=long))

    def stdout(self, text, /):
        self.runtime.stdout(text)

    def stderr(self, text, /):
        self.runtime.stderr(text)

    def exit(self, code=0, /):
        self.runtime.exit(code)

    def _handler(self, args, flags):
        if self._run is None:
            self.help()
            return 1
        return self._run(self, args, flags)

    def _conclude(self, result):
        code = _exit_code(result)
        if code != 0 and self._show_help:
            self.help()
        return code

    def _fail(self, error):
        self.stderr(f"{str(error) or type(error).__name__}\n")
        if self._show_help:
            self.help()
        return 1

    def _invoke(self, args, flags):
        try:
            result = self._handler(args, flags)
            if inspect.isawaitable(result):
                result = _drive(result)
            return self._conclude(result)
        except Exception as error:
            return self._fail(error)

    async def _ainvoke(self, args, flags):
        try:
            result = self._handler(args, flags)
            if inspect.isawaitable(result):
                result = await result
            return self._conclude(result)
        except Exception as error:
            return self._fail(error)


class RootCommand(Command):
    """
    Root of a command tree and entry point of dispatch.

    Parameters
    - Same as Command, plus runtime: Runtime used for output, exit and the default
      argument source (the current process when omitted).

    Behavior
    - Declares the persistent boolean flag --help/-h ("display <name>'s help").
    - execute(args) returns the exit code; main(args) executes and exits the process.
    - last holds the Dispatch of the most recent execute() call.
    """

    def __init__(self, use, /, short=None, long=None, run=None, *, show_help=False, runtime=Unset):
        super().__init__(use, short, long, run, show_help=show_help)
        runtime = coalesce(runtime, system)
        if not isinstance(runtime, Runtime):
            raise TypeError(f"{type(self).__typename__} runtime must be a Runtime")
        self._runtime = runtime
        self._last = None
        self._help = self.add_flag(
            type=FlagKind.BOOLEAN,
            name="help",
            short="h",
            usage=f"display {self.name}'s help",
            persistent=True,
        )

    @property
    def last(self):
        """Dispatch record of the most recent execute() call, or None."""
        return self._last

    def _dispatch(self, args):
        args = _sanitize_args(self._runtime.args() if args is Unset else args)
        command, leftover = resolve(self, args)

        try:
            flags = bind(command, args)
        except TokenError as error:
            self._last = Dispatch(command, leftover, Flags(command.get_flags()), code=command._fail(error))
            return self._last

        self._last = Dispatch(command, leftover, flags)
        if flags.state(self._help.key).value:
            command.help(long=True)
            self._last = self._last._replace(helped=True, code=1)
        return self._last

    def execute(self, args=Unset, /):
        """
        Dispatch an argument list and return the exit code.

        Parameters
        - args:
          • Unset: read the runtime's arguments (sys.argv[1:]).
          • str: shell-like string, split with shlex.split.
          • Iterable[str]: used as given.

        Notes
        - A coroutine handler is run to completion with asyncio.run(); from inside a
          running event loop use aexecute() instead.

        Raises
        - AmbiguousCommandError when several siblings answer to the same word.
        """
        dispatch = self._dispatch(args)
        if dispatch.code is None:
            code = dispatch.command._invoke(dispatch.args, dispatch.flags)
            self._last = dispatch._replace(code=code)
        return self._last.code

    async def aexecute(self, args=Unset, /):
        """Asynchronous execute(): awaits coroutine handlers on the running loop."""
        dispatch = self._dispatch(args)
        if dispatch.code is None:
            code = await dispatch.command._ainvoke(dispatch.args, dispatch.flags)
            self._last = dispatch._replace(code=code)
        return self._last.code

    def main(self, args=Unset, /):
        """
        Execute and exit the process with the resulting code.

        Dispatch faults (an ambiguous command) are rendered to stderr through rich
        and exit with code 1.
        """
        try:
            code = self.execute(args)
        except AmbiguousCommandError as fault:
            self._runtime.fault(fault.__replace__(prog=self.name))
            code = 1
        self._runtime.exit(code)


def cli(use, /, short=None, long=None, run=None, *, show_help=False, runtime=Unset):
    """
    Create the root of a command tree.

    use may also be a Cmd (or a mapping with the same keys), in which case the
    remaining declaration arguments are ignored.
    """
    if isinstance(use, Mapping):
        use = Cmd(**use)
    if isinstance(use, Cmd):
        use, short, long, run, show_help = use
    return RootCommand(use, short, long, run, show_help=show_help, runtime=runtime)


__all__ = (
    "Cmd",
    "Command",
    "RootCommand",
    "Dispatch",
    "cli",
)
