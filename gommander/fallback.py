"""
Gommander fallback engine: command storage, parsing and help in pure Python.

The fallback engine answers the same operations as the native adapter but
works on the command's own data: an ordered option map keyed by canonical
key, and an ordered argument list. Like the adapter it returns Results.

Tokenizer rules (shared with the dispatcher)
- "--name=value" sets name to value (split on the first "=").
- "--name" consumes the next token when the registered option takes a value,
  otherwise it is True. Unknown long names are recorded as True.
- "-x" is looked up by exact flag, then by substring of the flag spec; it
  consumes the next token when the option takes a value, otherwise it is True.
  Unknown short flags are recorded as True only when unknown options are
  allowed.
- "--" ends option processing.
- once a positional token has been seen, every later token is positional,
  even when it starts with a dash.
- "--help"/"-h" and "--version" request help or version output unless an
  option claims them.
"""
import copy
from collections import namedtuple

from .faults import FaultCode
from .logs import get_logger
from .results import Result, ParsedOutcome


logger = get_logger("fallback")

WIDTH = 20

Tokens = namedtuple("Tokens", ("arguments", "options", "errors", "unknown", "help", "version"))


def add_option(options, option, /):
    """
    Store option under its canonical key; a second option with the same key fails.
    """
    if option.key in options:
        return Result.fail(
            "option key %r is already used by %r" % (option.key, options[option.key].flags),
            FaultCode.DUPLICATED_OPTION,
        )
    options[option.key] = option
    return Result.ok(None)


def add_argument(arguments, argument, /):
    arguments.append(argument)
    return Result.ok(None)


def _long(options, name):
    for option in options.values():
        if "--" + name in option.names:
            return option
    return None


def _short(options, token):
    for option in options.values():
        if token in option.names:
            return option
    for option in options.values():
        if token in option.flags:
            return option
    return None


def tokenize(argv, options, /, *, allow_unknown=False):
    """
    Split argv into positional arguments and option values (no defaults applied).
    """
    tokens = list(map(str, argv))
    arguments = []
    values = {}
    errors = []
    unknown = []
    help = version = False

    def store(option, value):
        if option.variadic:
            values.setdefault(option.key, []).append(value)
        else:
            values[option.key] = value

    def consume(option):
        nonlocal index
        follows = index < len(tokens) and not tokens[index].startswith("-")
        if follows or (option.value == "required" and index < len(tokens)):
            store(option, tokens[index])
            index += 1
            while option.variadic and index < len(tokens) and not tokens[index].startswith("-"):
                store(option, tokens[index])
                index += 1
        elif option.value == "required":
            errors.append("option %r argument missing" % option.flags)
        else:
            store(option, True)

    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if arguments or token == "-" or not token.startswith("-"):
            arguments.append(token)
        elif token == "--":
            arguments.extend(tokens[index:])
            break
        elif token.startswith("--"):
            name, separator, value = token[2:].partition("=")
            if (option := _long(options, name)) is not None:
                if separator:
                    store(option, value)
                elif option.takes_value:
                    consume(option)
                else:
                    values[option.key] = True
            elif name == "help" and not separator:
                help = True
            elif name == "version" and not separator:
                version = True
            else:
                values[name] = value if separator else True
                unknown.append(token)
        elif (option := _short(options, token)) is not None:
            if option.takes_value:
                consume(option)
            else:
                values[option.key] = True
        elif token == "-h":
            help = True
        else:
            unknown.append(token)
            if allow_unknown:
                values[token[1:]] = True
            else:
                logger.debug("ignoring unknown option %r", token)

    return Tokens(arguments, values, errors, unknown, help, version)


def complete(outcome, options, arguments, /):
    """
    Apply option defaults and the required-argument check to a parse outcome.
    """
    values = dict(outcome.options)
    for option in options.values():
        if option.key not in values and option.has_default:
            values[option.key] = copy.deepcopy(option.default)

    errors = list(outcome.errors)
    if missing := [argument.token for argument in arguments[len(outcome.arguments):] if argument.required]:
        errors.append("missing required arguments: %s" % ", ".join(missing))

    return outcome._replace(options=values, errors=errors)


def parse_args(options, arguments, argv, /, *, command=None, allow_unknown=False):
    """
    Parse argv against options and arguments.

    Returns Result[ParsedOutcome]; parsing itself never fails, problems are
    listed in outcome.errors.
    """
    if argv is None:
        return Result.fail("argv is required", FaultCode.NULL_PARAMETER)

    tokens = tokenize(argv, options, allow_unknown=allow_unknown)
    outcome = ParsedOutcome(
        command,
        tokens.arguments,
        tokens.options,
        tokens.errors,
        help=tokens.help,
        version=True if tokens.version else None,
    )
    return Result.ok(complete(outcome, options, arguments))


def _annotate(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _lines(entries):
    return "\n".join(("  " + head.ljust(WIDTH) + " " + tail).rstrip() for head, tail in entries)


def get_help(command, /):
    """
    Render deterministic help text for command.

    Blocks: usage, description, Arguments, Options, Commands, Version;
    separated by one blank line, no trailing newline.
    """
    arguments = command.arguments
    options = command.options

    blocks = ["Usage: %s [options]%s" % (
        command.qualified_name,
        "".join(" " + argument.token for argument in arguments),
    )]

    if description := command.description():
        blocks.append(description)

    if arguments:
        blocks.append("Arguments:\n" + _lines(
            (argument.token, argument.descr + ("" if argument.required else " (optional)"))
            for argument in arguments
        ))

    if options:
        blocks.append("Options:\n" + _lines(
            (option.flags, option.descr + (" (default: %s)" % _annotate(option.default) if option.has_default else ""))
            for option in options
        ))

    if children := command.commands:
        blocks.append("Commands:\n" + _lines(
            (
                child.name() + (" (%s)" % ", ".join(aliases) if (aliases := child.aliases()) else ""),
                child.description() or "",
            )
            for child in children
        ))

    if version := command.version():
        blocks.append("Version: %s" % version)

    return Result.ok("\n\n".join(blocks))


__all__ = (
    "Tokens",
    "add_option",
    "add_argument",
    "tokenize",
    "complete",
    "parse_args",
    "get_help",
)
