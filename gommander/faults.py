"""
Gommander faults: stable codes, structured exceptions and their rendering.

Scope
- FaultCode: canonical numeric identifiers for every failure the library can
  report, grouped by domain so logs and searches stay predictable.
- CommandException: base exception carrying a message plus keyword options
  (title, code, hint, and any context such as handle or flags). It renders
  itself with rich when printed to a console.
- fault_for(code): the exception class that represents a given code; used by
  Result.unwrap() to turn a failed result into a raised fault.
- from_status(status): translate an integer status returned by the native
  engine into a FaultCode (or None for success).
- getdoc(code): optional host-provided documentation for a code.

Taxonomy
- engine (21xxx)        the native engine is missing or not functional;
                        always recoverable by falling back.
- handle (22xxx)        an operation referenced an unknown or stale handle.
- input (23xxx)         malformed flag specs, argument tokens, null parameters
                        and duplicates inside one command.
- native call (24xxx)   the native engine raised, returned a malformed
                        envelope, or reported a parse or memory failure.

Host integration
- __codes__ in __main__ may remap codes to custom labels (see normalize()).
- __docs__ in __main__ may map codes to short documentation strings.
- __styles__ in __main__ may override any rendering style below.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - engine (211xx): ENGINE_UNAVAILABLE, NATIVE_LOAD_FAILED, LIVENESS_FAILED
    - handle (221xx): INVALID_HANDLE, STALE_HANDLE
    - input (231xx): MALFORMED_FLAGS, MALFORMED_ARGUMENT, NULL_PARAMETER,
      DUPLICATED_OPTION, DUPLICATED_COMMAND
    - native call (241xx): NATIVE_CALL_FAILED, MALFORMED_ENVELOPE,
      PARSE_FAILED, NATIVE_MEMORY
    """
    # --- engine availability (21xxx) ---
    ENGINE_UNAVAILABLE  = 21101
    NATIVE_LOAD_FAILED  = 21102
    LIVENESS_FAILED     = 21103

    # --- handles (22xxx) ---
    INVALID_HANDLE      = 22101
    STALE_HANDLE        = 22102

    # --- malformed input (23xxx) ---
    MALFORMED_FLAGS     = 23101
    MALFORMED_ARGUMENT  = 23102
    NULL_PARAMETER      = 23103
    DUPLICATED_OPTION   = 23104
    DUPLICATED_COMMAND  = 23105

    # --- native calls (24xxx) ---
    NATIVE_CALL_FAILED  = 24101
    MALFORMED_ENVELOPE  = 24102
    PARSE_FAILED        = 24103
    NATIVE_MEMORY       = 24104

    def normalize(self):
        """
        return a host-normalized label for this code.

        __codes__ in __main__ may map codes to friendlier labels; without it the
        numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base of every structured fault raised by gommander.

    The message is positional; everything else travels as keyword options and
    is exposed read-only through .options. Well-known options:
    - code: FaultCode (defaults to the class's __code__)
    - title: short headline used by the renderer
    - hint: one actionable sentence
    """
    __code__ = FaultCode.NATIVE_CALL_FAILED
    __title__ = "fault"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "code": type(self).__code__,
            "title": type(self).__title__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    def __str__(self):
        return self.message if self.message is not Unset else type(self).__title__

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", "gommander"), "prog-name"),
            " — ",
            text(self.code.normalize(), "code"),
            " | ",
            text(str(self.options["title"]).title(), "error-title"),
            " ]",
        )
        message = text(str(self), "error-message")

        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)


class EngineUnavailableError(CommandException):
    __code__ = FaultCode.ENGINE_UNAVAILABLE
    __title__ = "native engine unavailable"


class InvalidHandleError(CommandException):
    __code__ = FaultCode.INVALID_HANDLE
    __title__ = "invalid handle"


class MalformedFlagsError(CommandException):
    __code__ = FaultCode.MALFORMED_FLAGS
    __title__ = "malformed flags"


class MalformedArgumentError(CommandException):
    __code__ = FaultCode.MALFORMED_ARGUMENT
    __title__ = "malformed argument"


class NullParameterError(CommandException):
    __code__ = FaultCode.NULL_PARAMETER
    __title__ = "missing parameter"


class DuplicatedOptionError(CommandException):
    __code__ = FaultCode.DUPLICATED_OPTION
    __title__ = "duplicated option"


class DuplicatedCommandError(CommandException):
    __code__ = FaultCode.DUPLICATED_COMMAND
    __title__ = "duplicated command"


class NativeCallError(CommandException):
    __code__ = FaultCode.NATIVE_CALL_FAILED
    __title__ = "native call failed"


_exceptions = {
    FaultCode.ENGINE_UNAVAILABLE: EngineUnavailableError,
    FaultCode.NATIVE_LOAD_FAILED: EngineUnavailableError,
    FaultCode.LIVENESS_FAILED: EngineUnavailableError,
    FaultCode.INVALID_HANDLE: InvalidHandleError,
    FaultCode.STALE_HANDLE: InvalidHandleError,
    FaultCode.MALFORMED_FLAGS: MalformedFlagsError,
    FaultCode.MALFORMED_ARGUMENT: MalformedArgumentError,
    FaultCode.NULL_PARAMETER: NullParameterError,
    FaultCode.DUPLICATED_OPTION: DuplicatedOptionError,
    FaultCode.DUPLICATED_COMMAND: DuplicatedCommandError,
}

# Integer statuses returned by the native engine's mutation calls.
_statuses = {
    1: FaultCode.INVALID_HANDLE,
    2: FaultCode.NULL_PARAMETER,
    3: FaultCode.PARSE_FAILED,
    4: FaultCode.NATIVE_MEMORY,
}


def fault_for(code, /):
    """
    Return the exception class representing code (NativeCallError when unmapped).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("fault_for() argument must be a fault-code")
    return _exceptions.get(code, NativeCallError)


def from_status(status, /):
    """
    Translate a native integer status into a FaultCode.

    0 means success and yields None; unknown non-zero statuses are reported as
    NATIVE_CALL_FAILED.
    """
    if status == 0:
        return None
    return _statuses.get(status, FaultCode.NATIVE_CALL_FAILED)


def getdoc(code, /):
    """
    Optional documentation for a fault code, looked up in __main__.__docs__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "EngineUnavailableError",
    "InvalidHandleError",
    "MalformedFlagsError",
    "MalformedArgumentError",
    "NullParameterError",
    "DuplicatedOptionError",
    "DuplicatedCommandError",
    "NativeCallError",
    "fault_for",
    "from_status",
    "getdoc",
)
