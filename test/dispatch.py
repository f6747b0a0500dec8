"""
Dispatch behavioral tests (resolution, binding, help short-circuit, handler results).

Scope
- Validate nested resolution and flag binding through RootCommand.execute().
- Validate --help/-h short-circuit and default handlers.
- Validate handler failure containment, show_help and exit codes.
- Validate async handlers, passthrough arguments and per-dispatch isolation.
- Validate main() exit and fault rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured through the Recorder runtime.
"""

from __future__ import annotations

import asyncio
import gc
import unittest
import warnings
from unittest import TestCase

from clade import Cmd, Command, cli
from clade.faults import AmbiguousCommandError
from clade.help import render

from support import Recorder


class TestDispatch(TestCase):
    """RootCommand.execute() end to end."""

    def setUp(self) -> None:
        self.runtime = Recorder()
        self.calls = []
        self.root = cli("root", runtime=self.runtime)

    def record(self, code=0):
        def run(command, args, flags):
            self.calls.append((command, args, flags))
            return code
        return run

    def testNestedMatchAndDefaults(self) -> None:
        hello = self.root.add_command(Cmd("hello"))
        world = hello.add_command(Cmd("world", run=self.record()))
        world.add_flag(name="A", type="boolean")
        world.add_flag(name="all", type="boolean")
        world.add_flag(name="x", default=12)

        self.assertEqual(self.root.execute(["hello", "world", "-A", "--all", "-x=12"]), 0)
        command, args, flags = self.calls[0]
        self.assertIs(command, world)
        self.assertEqual(args, [])
        self.assertIs(flags.value("A"), True)
        self.assertIs(flags.value("all"), True)
        self.assertEqual(flags.value("x"), 12)
        self.assertFalse(flags.changed("x"))
        self.assertTrue(flags.changed("A"))
        self.assertIs(self.root.last.command, world)
        self.assertEqual(self.root.last.code, 0)

    def testUnknownCommandFallsBackToRoot(self) -> None:
        self.root.add_command(Cmd("a", short="does a"))
        self.root.add_command(Cmd("b", short="does b"))

        self.assertEqual(self.root.execute(["c"]), 1)
        self.assertIs(self.root.last.command, self.root)
        self.assertEqual(self.root.last.args, ["c"])
        self.assertEqual(self.runtime.stderr_text, render(self.root))

    def testShortAndLongAlias(self) -> None:
        self.root = cli("root", run=self.record(), runtime=self.runtime)
        self.root.add_flag(type="string", name="long-flag", short="S")

        self.root.execute(["-S", "short flag"])
        self.root.execute(["--long-flag", "long flag"])
        self.assertEqual(self.calls[0][2].value("long-flag"), "short flag")
        self.assertEqual(self.calls[1][2].value("S"), "long flag")

    def testExplicitZeroIsChanged(self) -> None:
        self.root = cli("root", run=self.record(), runtime=self.runtime)
        self.root.add_flag(name="x", default=5)

        self.root.execute(["--x", "0"])
        flags = self.calls[0][2]
        self.assertEqual(flags.value("x"), 0)
        self.assertTrue(flags.changed("x"))

    def testRepeatedFlagValues(self) -> None:
        self.root = cli("root", run=self.record(), runtime=self.runtime)
        self.root.add_flag(name="x")

        self.root.execute(["-x", "1", "-x", "2"])
        self.root.execute(["-x", "1"])
        self.root.execute([])
        self.assertEqual(self.calls[0][2].values("x"), [1, 2])
        self.assertEqual(self.calls[0][2].value("x"), 1)
        self.assertEqual(self.calls[1][2].values("x"), [1])
        self.assertEqual(self.calls[2][2].values("x"), [])
        self.assertEqual(self.calls[2][2].value("x"), 0)

    def testPersistentFlagTwoLevelsDown(self) -> None:
        self.root.add_flag(name="verbose", short="v", type="boolean", persistent=True)
        leaf = self.root.add_command(Cmd("a")).add_command(Cmd("b", run=self.record()))

        self.root.execute(["a", "b", "-v"])
        self.root.execute(["-v", "a", "b"])
        self.root.execute(["a", "b"])
        self.assertIs(self.calls[0][0], leaf)
        self.assertIs(self.calls[0][2].value("verbose"), True)
        self.assertIs(self.calls[1][2].value("v"), True)
        self.assertIs(self.calls[2][2].value("verbose"), False)

    def testHelpShortCircuits(self) -> None:
        child = self.root.add_command(Cmd("a", short="does a", long="Does a, at length.", run=self.record()))

        for option in ("--help", "-h"):
            with self.subTest(option=option):
                self.runtime.err.clear()
                self.assertEqual(self.root.execute(["a", option]), 1)
                self.assertEqual(self.calls, [])
                self.assertTrue(self.root.last.helped)
                self.assertIs(self.root.last.command, child)
                self.assertEqual(self.runtime.stderr_text, render(child, long=True))

    def testHandlerFailureIsContained(self) -> None:
        def run(command, args, flags):
            raise ValueError("boom")

        self.root.add_command(Cmd("a", run=run))
        self.assertEqual(self.root.execute(["a"]), 1)
        self.assertEqual(self.runtime.stderr_text, "boom\n")

    def testShowHelpOnFailure(self) -> None:
        def run(command, args, flags):
            raise RuntimeError("bad input")

        child = self.root.add_command(Cmd("a", run=run, show_help=True))
        self.assertEqual(self.root.execute(["a"]), 1)
        self.assertEqual(self.runtime.stderr_text, "bad input\n" + render(child))

    def testShowHelpOnNonZeroResult(self) -> None:
        child = self.root.add_command(Cmd("a", run=self.record(3), show_help=True))
        self.assertEqual(self.root.execute(["a"]), 3)
        self.assertEqual(self.runtime.stderr_text, render(child))

    def testNoneResultIsZero(self) -> None:
        self.root.add_command(Cmd("a", run=lambda command, args, flags: None))
        self.assertEqual(self.root.execute(["a"]), 0)

    def testCheckRequiredInsideHandler(self) -> None:
        def run(command, args, flags):
            flags.check_required()
            command.stdout(f"hi {flags.value('name')}\n")

        child = self.root.add_command(Cmd("a", run=run))
        child.add_flag(type="string", name="name", required=True)

        self.assertEqual(self.root.execute(["a"]), 1)
        self.assertEqual(self.runtime.stderr_text, "--name is required\n")
        self.assertEqual(self.root.execute(["a", "--name", "bob"]), 0)
        self.assertEqual(self.runtime.stdout_text, "hi bob\n")

    def testUnknownFlagInsideHandler(self) -> None:
        self.root.add_command(Cmd("a", run=lambda command, args, flags: flags.value("nope")))
        self.assertEqual(self.root.execute(["a"]), 1)
        self.assertEqual(self.runtime.stderr_text, "unknown flag 'nope'\n")

    def testPassthroughArguments(self) -> None:
        self.root.add_flag(name="verbose", short="v", type="boolean", persistent=True)
        self.root.add_command(Cmd("a", run=self.record()))

        self.root.execute(["a", "x", "--", "-v", "--y"])
        _, args, flags = self.calls[0]
        self.assertEqual(args, ["x", "-v", "--y"])
        self.assertIs(flags.value("verbose"), False)

    def testStringArgumentsAreSplit(self) -> None:
        self.root.add_command(Cmd("a", run=self.record()))
        self.root.execute("a 'two words'")
        self.assertEqual(self.calls[0][1], ["two words"])

    def testArgumentsDefaultToRuntime(self) -> None:
        self.runtime = Recorder(["a", "z"])
        self.root = cli("root", runtime=self.runtime)
        self.root.add_command(Cmd("a", run=self.record()))
        self.root.execute()
        self.assertEqual(self.calls[0][1], ["z"])

    def testMalformedTokensExitOne(self) -> None:
        self.root.add_command(Cmd("a", run=self.record())).add_flag(name="x")
        self.assertEqual(self.root.execute(["a", "-x"]), 1)
        self.assertEqual(self.calls, [])
        self.assertIn("expected one argument", self.runtime.stderr_text)
        self.assertEqual(self.root.last.code, 1)

    def testAsyncHandler(self) -> None:
        async def run(command, args, flags):
            await asyncio.sleep(0)
            return 7

        self.root.add_command(Cmd("a", run=run))
        self.assertEqual(self.root.execute(["a"]), 7)
        self.assertEqual(asyncio.run(self.root.aexecute(["a"])), 7)

    def testDescendantFlagBeforeCommandWord(self) -> None:
        child = self.root.add_command(Cmd("a", run=self.record()))
        child.add_flag(type="string", name="name", short="n")

        self.assertEqual(self.root.execute(["--name", "bob", "a", "x"]), 0)
        command, args, flags = self.calls[0]
        self.assertIs(command, child)
        self.assertEqual(args, ["x"])
        self.assertEqual(flags.value("name"), "bob")

    def testAbsentBooleanIsBoundFalse(self) -> None:
        self.root = cli("root", run=self.record(), runtime=self.runtime)
        self.root.add_flag(name="quiet", type="boolean")
        self.root.add_flag(name="loud", type="boolean", default=False)

        self.root.execute([])
        flags = self.calls[0][2]
        self.assertIs(flags.state("quiet").value, False)
        self.assertTrue(flags.changed("quiet"))
        self.assertIs(flags.value("loud"), False)
        self.assertFalse(flags.changed("loud"))

    def testRequiredBooleanWithoutDefaultPasses(self) -> None:
        def run(command, args, flags):
            flags.check_required()

        self.root.add_command(Cmd("a", run=run)).add_flag(name="force", type="boolean", required=True)
        self.assertEqual(self.root.execute(["a"]), 0)
        self.assertEqual(self.runtime.stderr_text, "")

    def testCoroutineHandlerInsideRunningLoop(self) -> None:
        async def run(command, args, flags):
            return 0

        async def scenario():
            return self.root.execute(["a"])

        self.root.add_command(Cmd("a", run=run))
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            code = asyncio.run(scenario())
            gc.collect()

        self.assertEqual(code, 1)
        self.assertIn("use aexecute()", self.runtime.stderr_text)
        self.assertEqual([item for item in caught if issubclass(item.category, RuntimeWarning)], [])

    def testAmbiguousCommandPropagates(self) -> None:
        self.root.add_command(Cmd("a"))
        # Bypasses add_command(), which refuses duplicate names.
        self.root._commands.append(Command("a"))
        with self.assertRaises(AmbiguousCommandError):
            self.root.execute(["a"])

    def testMainExitsWithCode(self) -> None:
        self.root.add_command(Cmd("a", run=self.record(4)))
        self.root.main(["a"])
        self.assertEqual(self.runtime.codes, [4])

    def testMainRendersAmbiguousFault(self) -> None:
        self.root.add_command(Cmd("a"))
        self.root._commands.append(Command("a"))
        self.root.main(["a"])
        self.assertEqual(self.runtime.codes, [1])
        output = self.runtime.console.getvalue()
        self.assertIn("root", output)
        self.assertIn("11101", output)
        self.assertIn("ambiguous command 'a' under 'root'", output)

    def testCommandOutputHelpers(self) -> None:
        def run(command, args, flags):
            command.stdout("out\n")
            command.stderr("err\n")
            command.exit(2)
            return 0

        self.root.add_command(Cmd("a", run=run))
        self.root.execute(["a"])
        self.assertEqual(self.runtime.stdout_text, "out\n")
        self.assertEqual(self.runtime.stderr_text, "err\n")
        self.assertEqual(self.runtime.codes, [2])


if __name__ == "__main__":
    unittest.main()
