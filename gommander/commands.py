"""
Gommander command layer: the engine-agnostic command tree.

What this module provides
- Command: one node of a command hierarchy, built with a fluent API:
    Command("tool").description("...").option("-p, --port <number>", "port", "3000")
  • options, arguments, subcommands, aliases, an action and a version.
  • bound once, at construction, to either the native engine (Native(handle))
    or the Python engine (Fallback(reason)).
  • the local model (ordered option map, argument list, children) is always
    kept; in native mode each mutation is mirrored to the engine as well.
  • a failed mirror never switches engines: the command is marked diverged,
    the failure is kept in engine_error, and parse/help are then served from
    the local model.
- create_command(name): convenience factory.

Getter/setter duality
- description(), version(), name(), aliases(), alias() and action() return the
  current value when called without arguments and set it (returning the
  command) otherwise.

Errors
- Builder misuse raises structured faults from gommander.faults
  (MalformedFlagsError, DuplicatedOptionError, DuplicatedCommandError, ...)
  or TypeError for values of the wrong type.
- Engine failures never raise: they are logged, recorded and absorbed.
"""
import sys
import weakref

from rich.console import Console
from rich.text import Text

from . import fallback
from .arguments import Option, Argument
from .diagnostics import get_backend_status, get_addon_info, render_status
from .dispatch import dispatch
from .engines import Native, Fallback, resolve
from .faults import *
from .logs import get_logger
from .results import Result
from .runtime import default_runtime
from .utils import *


logger = get_logger("commands")


def _check_name(name, /, *, child):
    if name is None:
        raise NullParameterError("command name is required", hint="pass a name such as 'build'")
    if not isinstance(name, str):
        raise TypeError("command 'name' must be a string")
    name = name.strip()
    if child and not name:
        raise ValueError("subcommand 'name' cannot be empty")
    if name.startswith("-") or any(character.isspace() for character in name):
        raise ValueError(f"command name {name!r} cannot start with '-' or contain whitespace")
    return name


def _check_text(text, label, /):
    if not isinstance(text, str):
        raise TypeError(f"command {label!r} must be a string")
    return text.strip()


class Command:
    """
    A node of the command hierarchy.

    Parameters
    - name: command name ("" for an anonymous root).
    - runtime: Runtime deciding engine availability (default_runtime()).
    - fallback: when True, never bind to the native engine.

    Read-only properties
    - runtime, engine, handle, parent, fallback_mode, diverged, engine_error
    - options (list of Option), arguments (list of Argument), commands (list)
    - qualified_name, path
    """

    def __init__(self, name="", /, *, runtime=Unset, fallback=False):
        if not isinstance(fallback, bool):
            raise TypeError("command 'fallback' must be a boolean")

        self._name = _check_name(name, child=False)
        self._aliases = []
        self._descr = None
        self._version = None
        self._options = {}
        self._arguments = []
        self._children = {}
        self._action = None
        self._allow_unknown = False
        self._parent = None
        self._forced = fallback
        self._runtime = coalesce(runtime, None) or default_runtime()
        self._diverged = False
        self._engine, self._engine_error = resolve(self._runtime, self._name, force=fallback)

    runtime = mirror("runtime")
    @property
    def engine(self):
        return self._engine

    diverged = mirror("diverged")
    engine_error = mirror("engine_error")
    allows_unknown = mirror("allow_unknown")

    @property
    def handle(self):
        match self._engine:
            case Native(handle):
                return handle
            case Fallback():
                return None

    @property
    def fallback_mode(self):
        return isinstance(self._engine, Fallback)

    @property
    def native(self):
        """
        Whether parse and help currently go through the native engine.
        """
        return isinstance(self._engine, Native) and not self._diverged

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def options(self):
        return list(self._options.values())

    @property
    def arguments(self):
        return list(self._arguments)

    @property
    def commands(self):
        return list(self._children.values())

    @property
    def path(self):
        """
        Commands from the root down to this one.
        """
        path = [self]
        while (parent := path[0].parent) is not None:
            path.insert(0, parent)
        return path

    @property
    def qualified_name(self):
        return " ".join(command._name for command in self.path if command._name) or "program"

    def _diverge(self, reason, /):
        """
        Serve this command from the local model from now on; reason goes to engine_error.
        """
        self._diverged = True
        self._engine_error = reason
        logger.warning("command %r is served by the fallback engine from now on: %s", self._name, reason)

    def _mirror(self, operation, *arguments):
        """
        Replay a mutation on the native engine; a failure marks the command diverged.
        """
        match self._engine:
            case Native(handle) if not self._diverged:
                result = getattr(self._runtime.adapter, operation)(handle, *arguments)
                if result:
                    logger.debug("mirrored %s to native command %r", operation, self._name)
                    return result
                self._diverge("native %s failed: %s" % (operation, result.error))
                return result
            case Native() | Fallback():
                return Result.ok(None)

    def name(self, name=Unset, /):
        if name is Unset:
            return self._name

        name = _check_name(name, child=self.parent is not None)
        if (parent := self.parent) is not None and name != self._name:
            if parent.find(name) is not None:
                raise DuplicatedCommandError(f"command name {name!r} is already in use", name=name)
            parent._children = {
                (name if child is self else key): child for key, child in parent._children.items()
            }
        if name != self._name and self.native:
            # The engine has no rename; its copy keeps the old name.
            self._diverge("renamed from %r to %r" % (self._name, name))
        if name != self._name and parent is not None and parent.native:
            parent._diverge("subcommand %r renamed to %r" % (self._name, name))
        self._name = name
        return self

    def description(self, text=Unset, /):
        if text is Unset:
            return self._descr
        self._descr = _check_text(text, "description") or None
        return self

    def version(self, text=Unset, /):
        if text is Unset:
            return self._version
        self._version = _check_text(text, "version") or None
        return self

    def alias(self, name=Unset, /):
        """
        Without arguments return the first alias (or None); otherwise add one.
        """
        if name is Unset:
            return self._aliases[0] if self._aliases else None

        name = _check_name(name, child=True)
        if name == self._name or name in self._aliases:
            raise DuplicatedCommandError(f"command alias {name!r} is already in use", name=name)
        if (parent := self.parent) is not None and parent.find(name) is not None:
            raise DuplicatedCommandError(f"command alias {name!r} is already in use", name=name)
        self._aliases.append(name)
        return self

    def aliases(self, *names):
        if not names:
            return list(self._aliases)
        for name in names:
            self.alias(name)
        return self

    def action(self, callback=Unset, /):
        """
        Without arguments return the bound action; otherwise bind callback.

        The action is called as callback(arguments, options).
        """
        if callback is Unset:
            return self._action
        if not callable(callback):
            raise TypeError("command 'action' must be callable")
        self._action = callback
        return self

    def allow_unknown_option(self, allow=True, /):
        if not isinstance(allow, bool):
            raise TypeError("command 'allow' must be a boolean")
        self._allow_unknown = allow
        return self

    def option(self, flags, /, descr="", default=Unset):
        option = Option(flags, descr, default)
        fallback.add_option(self._options, option).unwrap()
        self._mirror("add_option", option.flags, option.descr, coalesce(option.default))
        return self

    def argument(self, token, /, descr="", required=Unset):
        argument = Argument(token, descr, required)
        fallback.add_argument(self._arguments, argument).unwrap()
        self._mirror("add_argument", argument.token, argument.descr, argument.required)
        return self

    def find(self, name, /):
        """
        The direct subcommand called name, matched by name first, then by alias.
        """
        if (child := self._children.get(name)) is not None:
            return child
        for child in self._children.values():
            if name in child._aliases:
                return child
        return None

    def command(self, name, /, descr=Unset):
        """
        Create, attach and return a subcommand.
        """
        name = _check_name(name, child=True)
        if descr is not Unset:
            descr = _check_text(descr, "description")
        if self.find(name) is not None:
            raise DuplicatedCommandError(
                f"subcommand name {name!r} is already in use under {self.qualified_name!r}",
                name=name,
            )

        child = type(self)(name, runtime=self._runtime, fallback=self._forced)
        child._parent = weakref.ref(self)
        self._children[name] = child

        match child._engine:
            case Native(handle) if self.native:
                self._mirror("add_command", handle)
            case Native() | Fallback():
                pass

        if descr is not Unset:
            child.description(descr)
        return child

    def parse_args(self, argv, /):
        """
        Parse argv (tokens after this command's name) without dispatching.

        The native engine is used when this command is bound to it; a failed
        native parse is logged and repeated by the fallback tokenizer. Option
        defaults and the required-argument check apply on both paths.
        """
        argv = list(map(str, argv))
        match self._engine:
            case Native(handle) if not self._diverged:
                if result := self._runtime.adapter.parse_args(handle, argv):
                    return fallback.complete(result.data._replace(command=self._name), self._options, self._arguments)
                logger.warning("native parse failed for command %r, using the fallback tokenizer: %s", self._name, result.error)
            case Native() | Fallback():
                pass
        return fallback.parse_args(
            self._options,
            self._arguments,
            argv,
            command=self._name,
            allow_unknown=self._allow_unknown,
        ).unwrap()

    def parse(self, argv=Unset, /):
        """
        Dispatch argv (argv[0] is the program token; default sys.argv).

        Returns the ParsedOutcome of the dispatched command, or None when no
        command matched.
        """
        return dispatch(self, sys.argv if argv is Unset or argv is None else argv)

    def get_help(self):
        match self._engine:
            case Native(handle) if not self._diverged:
                if result := self._runtime.adapter.get_help(handle):
                    return result.data
                logger.warning("native help failed for command %r, using the fallback renderer: %s", self._name, result.error)
            case Native() | Fallback():
                pass
        return fallback.get_help(self).unwrap()

    def output_help(self, /, *, console=Unset):
        (coalesce(console, None) or Console()).print(Text(self.get_help()), soft_wrap=True)

    def help(self, /, *, console=Unset):
        self.output_help(console=console)
        return self

    def retain(self):
        """
        Take a native reference on this command's handle (no-op in fallback mode).
        """
        match self._engine:
            case Native(handle) if self._runtime.adapter.supports("add_ref"):
                return self._runtime.adapter.add_ref(handle)
            case Native() | Fallback():
                return Result.ok(None)

    def release(self):
        match self._engine:
            case Native(handle) if self._runtime.adapter.supports("release"):
                return self._runtime.adapter.release(handle)
            case Native() | Fallback():
                return Result.ok(None)

    def get_diagnostics(self):
        """
        Read-only snapshot of this command and of the engine state.
        """
        return {
            "command": {
                "name": self._name,
                "fallback_mode": self.fallback_mode,
                "diverged": self._diverged,
                "native_handle": self.handle,
                "options_count": len(self._options),
                "arguments_count": len(self._arguments),
                "subcommands_count": len(self._children),
                "engine_error": self._engine_error,
            },
            "backend": get_backend_status(self._runtime),
            "addon": get_addon_info(self._runtime),
        }

    def print_diagnostics(self, /, *, console=Unset):
        diagnostics = self.get_diagnostics()
        command = diagnostics["command"]
        console = coalesce(console, None) or Console()

        console.print(render_status(diagnostics["backend"], diagnostics["addon"]))
        console.print(Text.assemble(
            ("Command: ", "bold"), command["name"] or "root",
            ("  Fallback mode: ", "bold"), str(command["fallback_mode"]).lower(),
            ("  Native handle: ", "bold"), str(command["native_handle"]) if command["native_handle"] else "n/a",
            ("  Options: ", "bold"), str(command["options_count"]),
            ("  Arguments: ", "bold"), str(command["arguments_count"]),
            ("  Subcommands: ", "bold"), str(command["subcommands_count"]),
        ))
        if command["engine_error"]:
            console.print(Text.assemble(("Engine error: ", "bold red"), command["engine_error"]))
        return self

    def __rich_repr__(self):
        yield "name", self._name
        yield "engine", self._engine
        yield "options", len(self._options)
        yield "arguments", len(self._arguments)
        yield "commands", list(self._children)

    def __repr__(self):
        return "command(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def create_command(name="", /, **options):
    return Command(name, **options)


__all__ = (
    "Command",
    "create_command",
)
