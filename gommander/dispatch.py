"""
Gommander dispatcher: route argv to a command and run its action.

States
- EXPECT: look at the first token after the program; "help" leads to HELP,
  a root without subcommands goes straight to COLLECT, anything else to RESOLVE.
- RESOLVE: descend while the next token names a subcommand (by name, then by
  alias). Nothing matched at the root ends dispatch silently.
- HELP: print help for the named (possibly nested) command or the root, then
  exit with status 0.
- COLLECT: parse the remaining tokens for the resolved command.
- DISPATCH: honour --help/--version, log parse errors, run the action with
  (arguments, options).
"""
import enum

from rich.console import Console
from rich.text import Text

from .logs import get_logger


logger = get_logger("dispatch")


class State(enum.Enum):
    EXPECT = enum.auto()
    RESOLVE = enum.auto()
    HELP = enum.auto()
    COLLECT = enum.auto()
    DISPATCH = enum.auto()


def _descend(command, tokens, index):
    while index < len(tokens) and (child := command.find(tokens[index])) is not None:
        command = child
        index += 1
    return command, index


def dispatch(root, argv, /):
    """
    Dispatch argv (argv[0] is the program token) from root.

    Returns the ParsedOutcome of the command that ran, or None when no command
    matched. Raises SystemExit(0) after printing help or version output.
    """
    tokens = list(map(str, argv))[1:]
    state = State.EXPECT
    target = root
    index = 0
    outcome = None

    while True:
        match state:
            case State.EXPECT:
                if tokens and tokens[0] == "help" and root.find("help") is None:
                    state = State.HELP
                elif not root.commands:
                    state = State.COLLECT
                else:
                    state = State.RESOLVE

            case State.RESOLVE:
                target, index = _descend(root, tokens, 0)
                if target is root:
                    logger.debug("no command matches %r, nothing to dispatch", tokens[0] if tokens else None)
                    return None
                state = State.COLLECT

            case State.HELP:
                target, _ = _descend(root, tokens, 1)
                target.output_help()
                raise SystemExit(0)

            case State.COLLECT:
                outcome = target.parse_args(tokens[index:])
                state = State.DISPATCH

            case State.DISPATCH:
                if outcome.help:
                    target.output_help()
                    raise SystemExit(0)
                if outcome.version and (version := target.version()):
                    Console().print(Text(version), soft_wrap=True)
                    raise SystemExit(0)

                for error in outcome.errors:
                    logger.warning("%s: %s", target.qualified_name, error)

                if (action := target.action()) is not None:
                    logger.debug("dispatching %r with %d argument(s)", target.qualified_name, len(outcome.arguments))
                    action(list(outcome.arguments), dict(outcome.options))
                return outcome


__all__ = (
    "State",
    "dispatch",
)
