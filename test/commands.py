"""
Command tree model tests (fluent API, engine binding, mirroring).

Scope
- Fluent chaining and the getter/setter duality.
- Duplicate detection for option keys, subcommand names and aliases.
- Engine binding: native when available, fallback otherwise, forced fallback,
  fallback on failed native registration, divergence on failed mirroring.
- Engine transparency and handle isolation.
- Diagnostics snapshot and reference counting.

Conventions
- Test method names follow CamelCase per project convention.
- Native mode uses the stub engine from stubs.py.
"""
import unittest
from unittest import TestCase

from gommander.commands import Command, create_command
from gommander.engines import Native, Fallback
from gommander.faults import (
    DuplicatedOptionError,
    DuplicatedCommandError,
    MalformedFlagsError,
    NullParameterError,
)

import stubs


class TestFluentApi(TestCase):

    def setUp(self):
        self.runtime = stubs.runtime()

    def testMutatorsReturnCommand(self):
        command = Command("tool", runtime=self.runtime)
        self.assertIs(command.description("d"), command)
        self.assertIs(command.version("1.0"), command)
        self.assertIs(command.option("-v, --verbose"), command)
        self.assertIs(command.argument("<file>"), command)
        self.assertIs(command.alias("t"), command)
        self.assertIs(command.aliases("u", "w"), command)
        self.assertIs(command.action(lambda arguments, options: None), command)
        self.assertIs(command.allow_unknown_option(), command)

    def testZeroArgumentGetters(self):
        callback = lambda arguments, options: None
        command = Command("tool", runtime=self.runtime).description("Builds things").version("2.0").action(callback)
        self.assertEqual(command.name(), "tool")
        self.assertEqual(command.description(), "Builds things")
        self.assertEqual(command.version(), "2.0")
        self.assertIs(command.action(), callback)

    def testUnsetGetters(self):
        command = Command(runtime=self.runtime)
        self.assertEqual(command.name(), "")
        self.assertIsNone(command.description())
        self.assertIsNone(command.version())
        self.assertIsNone(command.action())
        self.assertIsNone(command.alias())
        self.assertEqual(command.aliases(), [])

    def testAliases(self):
        command = Command("remove", runtime=self.runtime).alias("rm").aliases("del", "erase")
        self.assertEqual(command.alias(), "rm")
        self.assertEqual(command.aliases(), ["rm", "del", "erase"])

    def testCommandReturnsChild(self):
        root = Command("tool", runtime=self.runtime)
        child = root.command("build", "Build the project")
        self.assertIsNot(child, root)
        self.assertIs(child.parent, root)
        self.assertEqual(child.description(), "Build the project")
        self.assertEqual(root.commands, [child])
        self.assertEqual(child.qualified_name, "tool build")
        self.assertEqual(child.path, [root, child])

    def testRenameChildKeepsLookup(self):
        root = Command("tool", runtime=self.runtime)
        child = root.command("build")
        child.name("make")
        self.assertIs(root.find("make"), child)
        self.assertIsNone(root.find("build"))

    def testFindByAlias(self):
        root = Command("tool", runtime=self.runtime)
        child = root.command("remove").alias("rm")
        self.assertIs(root.find("rm"), child)

    def testWrongTypesRaise(self):
        command = Command("tool", runtime=self.runtime)
        with self.assertRaises(TypeError):
            command.description(3)
        with self.assertRaises(TypeError):
            command.action("not callable")
        with self.assertRaises(TypeError):
            command.allow_unknown_option("yes")
        with self.assertRaises(TypeError):
            Command(3, runtime=self.runtime)
        with self.assertRaises(NullParameterError):
            Command(None, runtime=self.runtime)

    def testInvalidNamesRaise(self):
        root = Command("tool", runtime=self.runtime)
        with self.assertRaises(ValueError):
            root.command("")
        with self.assertRaises(ValueError):
            root.command("--build")
        with self.assertRaises(ValueError):
            root.command("two words")

    def testCreateCommandFactory(self):
        command = create_command("tool", runtime=self.runtime)
        self.assertIsInstance(command, Command)
        self.assertEqual(command.name(), "tool")


class TestDuplicates(TestCase):

    def setUp(self):
        self.runtime = stubs.runtime()

    def testDuplicateOptionKeyRaises(self):
        command = Command("tool", runtime=self.runtime).option("-p, --port <n>")
        with self.assertRaises(DuplicatedOptionError):
            command.option("--port [n]")
        self.assertEqual(len(command.options), 1)

    def testSameKeyAllowedAcrossCommands(self):
        root = Command("tool", runtime=self.runtime).option("--verbose")
        root.command("build").option("--verbose")
        self.assertEqual(len(root.find("build").options), 1)

    def testMalformedOptionNotStored(self):
        command = Command("tool", runtime=self.runtime)
        with self.assertRaises(MalformedFlagsError):
            command.option("port")
        self.assertEqual(command.options, [])

    def testDuplicateSubcommandRaises(self):
        root = Command("tool", runtime=self.runtime)
        root.command("build")
        with self.assertRaises(DuplicatedCommandError):
            root.command("build")

    def testSubcommandNameClashingWithAliasRaises(self):
        root = Command("tool", runtime=self.runtime)
        root.command("remove").alias("rm")
        with self.assertRaises(DuplicatedCommandError):
            root.command("rm")

    def testAliasClashingWithSiblingRaises(self):
        root = Command("tool", runtime=self.runtime)
        root.command("build")
        with self.assertRaises(DuplicatedCommandError):
            root.command("make").alias("build")

    def testBadDescriptionLeavesNoSubcommand(self):
        root = Command("tool", runtime=self.runtime)
        with self.assertRaises(TypeError):
            root.command("build", 5)
        self.assertIsNone(root.find("build"))
        self.assertEqual(root.command("build", "Build it").description(), "Build it")


class TestEngineBinding(TestCase):

    def setUp(self):
        self.engine = stubs.engine()
        self.native = stubs.runtime(self.engine)
        self.fallback = stubs.runtime()

    def testNativeBindingWhenAvailable(self):
        command = Command("tool", runtime=self.native)
        self.assertIsInstance(command.engine, Native)
        self.assertFalse(command.fallback_mode)
        self.assertTrue(command.native)
        self.assertEqual(command.handle, 1)
        self.assertEqual(self.engine.state["commands"][1]["name"], "tool")

    def testFallbackBindingWhenUnavailable(self):
        command = Command("tool", runtime=self.fallback)
        self.assertIsInstance(command.engine, Fallback)
        self.assertTrue(command.fallback_mode)
        self.assertIsNone(command.handle)
        self.assertIsNone(command.engine_error)

    def testForcedFallbackNeverTouchesEngine(self):
        command = Command("tool", runtime=self.native, fallback=True)
        command.option("-v, --verbose").argument("<file>")
        self.assertTrue(command.fallback_mode)
        self.assertEqual(self.engine.state["calls"], [])
        self.assertEqual(self.native.probe.calls, 0)

    def testForcedFallbackIsInherited(self):
        root = Command("tool", runtime=self.native, fallback=True)
        self.assertTrue(root.command("build").fallback_mode)

    def testFailedRegistrationFallsBack(self):
        engine = stubs.engine(create_command=lambda name: {"success": False, "error": "out of ids"})
        command = Command("tool", runtime=stubs.runtime(engine))
        self.assertTrue(command.fallback_mode)
        self.assertEqual(command.engine_error, "out of ids")
        command.option("-v, --verbose")
        self.assertEqual(len(command.options), 1)

    def testMirrorsOptionsAndArguments(self):
        command = Command("tool", runtime=self.native)
        command.option("-p, --port <number>", "port", "3000").argument("[file]", "input")
        stored = self.engine.state["commands"][command.handle]
        self.assertEqual(stored["options"], [("-p, --port <number>", "port", "3000")])
        self.assertEqual(stored["arguments"], [("[file]", "input", False)])

    def testUnsetDefaultMirroredAsNone(self):
        command = Command("tool", runtime=self.native).option("-v, --verbose")
        self.assertEqual(self.engine.state["commands"][command.handle]["options"], [("-v, --verbose", "", None)])

    def testMirrorFailureDivergesWithoutSwitchingEngine(self):
        def add_option(handle, flags, descr, default):
            raise RuntimeError("engine exploded")

        command = Command("tool", runtime=stubs.runtime(stubs.engine(add_option=add_option)))
        with self.assertLogs("gommander", "WARNING"):
            command.option("-p, --port <number>", "port", "3000")
        self.assertIsInstance(command.engine, Native)
        self.assertTrue(command.diverged)
        self.assertFalse(command.native)
        self.assertIn("engine exploded", command.engine_error)
        self.assertEqual(len(command.options), 1)
        self.assertEqual(command.parse_args(["--port", "1"]).options, {"port": "1"})

    def testDivergedCommandStopsMirroring(self):
        engine = stubs.engine(add_option=lambda handle, flags, descr, default: 4)
        command = Command("tool", runtime=stubs.runtime(engine))
        with self.assertLogs("gommander", "WARNING"):
            command.option("--a")
        command.option("--b").argument("<file>")
        self.assertEqual(stubs.calls(engine, "add_argument"), [])

    def testChildLinkedInEngine(self):
        root = Command("tool", runtime=self.native)
        child = root.command("build")
        self.assertEqual(self.engine.state["commands"][root.handle]["children"], [child.handle])

    def testRenameDivergesNativeCommand(self):
        root = Command("prog", runtime=self.native)
        with self.assertLogs("gommander", "WARNING"):
            root.name("tool")
        self.assertTrue(root.diverged)
        self.assertIsInstance(root.engine, Native)
        self.assertIn("renamed", root.engine_error)
        self.assertTrue(root.get_help().startswith("Usage: tool [options]"))

    def testRenamedSubcommandDivergesParent(self):
        root = Command("prog", runtime=self.native)
        child = root.command("build")
        with self.assertLogs("gommander", "WARNING"):
            child.name("make")
        self.assertTrue(root.diverged)
        self.assertTrue(child.diverged)
        self.assertIn("\n  make", root.get_help())

    def testUnchangedNameKeepsNativeBinding(self):
        root = Command("prog", runtime=self.native)
        root.name("prog")
        self.assertTrue(root.native)

    def testChildLinkOptional(self):
        runtime = stubs.runtime(stubs.engine(add_command=None))
        root = Command("tool", runtime=runtime)
        child = root.command("build")
        self.assertTrue(root.native)
        self.assertTrue(child.native)


class TestTransparency(TestCase):

    @staticmethod
    def build(runtime):
        command = (
            Command("serve", runtime=runtime)
            .description("Start the server")
            .version("1.2.3")
            .option("-p, --port <number>", "port to bind", "3000")
            .option("-v, --verbose", "verbose output")
            .argument("<root>", "document root")
        )
        command.command("stop", "Stop the server")
        return command

    def testObservableStateIsIdentical(self):
        native = self.build(stubs.runtime(stubs.engine()))
        fallback = self.build(stubs.runtime())
        self.assertTrue(native.native)
        self.assertTrue(fallback.fallback_mode)
        for observe in (
            lambda command: command.name(),
            lambda command: len(command.options),
            lambda command: len(command.arguments),
            lambda command: command.description(),
            lambda command: command.version(),
            lambda command: [child.name() for child in command.commands],
        ):
            self.assertEqual(observe(native), observe(fallback))

    def testParseOutcomeIsIdentical(self):
        native = self.build(stubs.runtime(stubs.engine()))
        fallback = self.build(stubs.runtime())
        for argv in (["--port", "8080", "in.txt"], ["-v", "www"], ["www", "--verbose"], ["--port=9000", "-v", "x"], []):
            with self.subTest(argv=argv):
                self.assertEqual(native.parse_args(argv), fallback.parse_args(argv))


class TestHandleIsolation(TestCase):

    def testHeavyMutationLeavesOtherCommandAlone(self):
        engine = stubs.engine()
        runtime = stubs.runtime(engine)
        quiet = Command("quiet", runtime=runtime).option("-v, --verbose").argument("<file>")
        busy = Command("busy", runtime=runtime)
        for number in range(100):
            busy.option("--option-%d <value>" % number, "option %d" % number, str(number))
            busy.argument("[argument%d]" % number)

        self.assertNotEqual(quiet.handle, busy.handle)
        self.assertEqual(len(quiet.options), 1)
        self.assertEqual(len(quiet.arguments), 1)
        self.assertEqual(len(busy.options), 100)
        self.assertEqual(len(engine.state["commands"][quiet.handle]["options"]), 1)
        self.assertEqual(len(engine.state["commands"][quiet.handle]["arguments"]), 1)
        self.assertEqual(len(engine.state["commands"][busy.handle]["options"]), 100)


class TestReferenceCounting(TestCase):

    def testRetainAndReleaseNative(self):
        engine = stubs.engine()
        command = Command("tool", runtime=stubs.runtime(engine))
        self.assertTrue(command.retain())
        self.assertEqual(engine.state["commands"][command.handle]["refs"], 2)
        self.assertTrue(command.release())
        self.assertEqual(engine.state["commands"][command.handle]["refs"], 1)

    def testRetainAndReleaseFallbackAreNoOps(self):
        command = Command("tool", runtime=stubs.runtime())
        self.assertTrue(command.retain())
        self.assertTrue(command.release())

    def testMissingHooksAreNoOps(self):
        engine = stubs.engine(add_ref=None, release=None)
        command = Command("tool", runtime=stubs.runtime(engine))
        self.assertTrue(command.retain())
        self.assertTrue(command.release())


class TestDiagnostics(TestCase):

    def testSnapshotShape(self):
        command = Command("tool", runtime=stubs.runtime()).option("-v").argument("<file>")
        command.command("build")
        diagnostics = command.get_diagnostics()
        self.assertEqual(set(diagnostics), {"command", "backend", "addon"})
        self.assertEqual(diagnostics["command"], {
            "name": "tool",
            "fallback_mode": True,
            "diverged": False,
            "native_handle": None,
            "options_count": 1,
            "arguments_count": 1,
            "subcommands_count": 1,
            "engine_error": None,
        })
        self.assertFalse(diagnostics["backend"]["native_available"])
        self.assertEqual(diagnostics["addon"], {"loaded": False, "functions": []})

    def testSnapshotNative(self):
        command = Command("tool", runtime=stubs.runtime(stubs.engine()))
        diagnostics = command.get_diagnostics()
        self.assertEqual(diagnostics["command"]["native_handle"], command.handle)
        self.assertTrue(diagnostics["backend"]["native_available"])
        self.assertIn("create_command", diagnostics["addon"]["functions"])

    def testSnapshotHasNoSideEffects(self):
        engine = stubs.engine()
        command = Command("tool", runtime=stubs.runtime(engine))
        before = list(engine.state["commands"])
        command.get_diagnostics()
        command.get_diagnostics()
        self.assertEqual(list(engine.state["commands"]), before)

    def testRepr(self):
        self.assertTrue(repr(Command("tool", runtime=stubs.runtime())).startswith("command(name='tool'"))


if __name__ == '__main__':
    unittest.main()
