"""
Gommander native adapter: the only code that calls into the native engine.

Every operation returns a Result. Whatever the engine does (return an
envelope dict, JSON text, a bare integer status, or raise) is translated
here, so no native-side exception ever reaches application code.

Accepted return shapes
- {"success": bool, "data": ..., "error": str, "code": int}
- the same envelope encoded as JSON text
- an integer status (0 success, 1 invalid handle, 2 null parameter,
  3 parse failure, 4 memory failure) for mutation calls
- None or True for mutation calls that have nothing to report

Handles are validated before any call: a positive int (not a bool) no larger
than an unsigned 64-bit value.
"""
import json
from collections.abc import Mapping, Sequence

from .faults import FaultCode, from_status
from .logs import get_logger
from .results import Result, ParsedOutcome
from .utils import *


logger = get_logger("native")

MAX_HANDLE = 2 ** 64 - 1

# Functions of the native contract; the last three are optional.
CONTRACT = (
    "hello",
    "version",
    "is_available",
    "get_last_error",
    "create_command",
    "add_option",
    "add_argument",
    "parse_args",
    "get_help",
    "add_command",
    "add_ref",
    "release",
)


def valid_handle(handle, /):
    return isinstance(handle, int) and not isinstance(handle, bool) and 0 < handle <= MAX_HANDLE


def _decode(data):
    if isinstance(data, bytes | bytearray):
        data = data.decode("utf-8")
    if isinstance(data, str):
        return json.loads(data)
    return data


def _outcome(data):
    """
    Normalize a decoded parse payload into a ParsedOutcome.
    """
    if not isinstance(data, Mapping):
        raise ValueError("parse payload must be an object, got %s" % type(data).__name__)

    if data.get("help"):
        return ParsedOutcome(data.get("command"), [], {}, [], help=True)
    if data.get("version") is not None and "arguments" not in data:
        return ParsedOutcome(data.get("command"), [], {}, [], version=str(data["version"]))

    arguments = data.get("arguments") or []
    options = data.get("options") or {}
    errors = data.get("errors") or []
    if isinstance(arguments, str) or not isinstance(arguments, Sequence):
        raise ValueError("parse payload 'arguments' must be a list")
    if not isinstance(options, Mapping):
        raise ValueError("parse payload 'options' must be an object")
    if isinstance(errors, str):
        errors = [errors]

    return ParsedOutcome(
        data.get("command"),
        list(map(str, arguments)),
        dict(options),
        list(map(str, errors)),
    )


class NativeAdapter:
    """
    Call-through layer over a loaded native engine module.

    The adapter keeps no per-handle state; each handle's data lives in the
    engine, so operations on distinct handles cannot interfere here.
    """

    def __init__(self, module, /):
        if module is None:
            raise TypeError("native adapter 'module' cannot be None")
        self._module = module

    module = mirror("module")

    def supports(self, name, /):
        return callable(getattr(self._module, name, None))

    def functions(self):
        """
        Names of the contract functions the module provides.
        """
        return [name for name in CONTRACT if self.supports(name)]

    def _call(self, name, *arguments):
        if not self.supports(name):
            return Result.fail("native engine does not provide %s()" % name)
        try:
            return Result.ok(getattr(self._module, name)(*arguments))
        except Exception as error:
            logger.warning("native %s() raised %s: %s", name, type(error).__name__, error)
            return Result.fail("native %s() raised %s: %s" % (name, type(error).__name__, error))

    def _last_error(self):
        if not self.supports("get_last_error"):
            return None
        try:
            return getattr(self._module, "get_last_error")() or None
        except Exception:
            return None

    def _unpack(self, name, result):
        """
        Turn a raw return value into a Result (envelope, status or plain value).
        """
        if not result:
            return result

        data = result.data
        try:
            data = _decode(data)
        except ValueError as error:
            return Result.fail("native %s() returned malformed JSON: %s" % (name, error), FaultCode.MALFORMED_ENVELOPE)

        match data:
            case bool() if data is False:
                return Result.fail(self._last_error() or "native %s() failed" % name)
            case bool() | None:
                return Result.ok(None)
            case int() as status:
                if (code := from_status(status)) is None:
                    return Result.ok(None)
                return Result.fail(self._last_error() or "native %s() returned status %d" % (name, status), code)
            case Mapping() if "success" in data:
                if data["success"]:
                    return Result.ok(data["data"] if "data" in data else data)
                code = FaultCode.NATIVE_CALL_FAILED
                if isinstance(data.get("code"), int) and not isinstance(data.get("code"), bool):
                    code = from_status(data["code"]) or code
                return Result.fail(data.get("error") or self._last_error() or "native %s() failed" % name, code)
        return Result.ok(data)

    def _guard(self, handle):
        if not valid_handle(handle):
            return Result.fail("invalid native handle %r" % (handle,), FaultCode.INVALID_HANDLE)
        return None

    def hello(self):
        return self._call("hello")

    def version(self):
        return self._call("version")

    def is_available(self):
        return self._call("is_available")

    def get_last_error(self):
        return self._call("get_last_error")

    def create_command(self, name, /):
        if name is None:
            return Result.fail("command name is required", FaultCode.NULL_PARAMETER)

        result = self._call("create_command", str(name))
        if not result:
            return result

        # A bare integer is the handle itself; 0 means the engine refused.
        if isinstance(result.data, int) and not isinstance(result.data, bool):
            handle = result.data
        elif not (result := self._unpack("create_command", result)):
            return result
        else:
            handle = result.data

        if not valid_handle(handle):
            return Result.fail(
                self._last_error() or "native create_command() returned invalid handle %r" % (handle,),
                FaultCode.INVALID_HANDLE,
            )
        logger.debug("native command %r created with handle %d", name, handle)
        return Result.ok(handle)

    def add_option(self, handle, flags, descr="", default=None, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        if flags is None:
            return Result.fail("option flags are required", FaultCode.NULL_PARAMETER)
        return self._unpack("add_option", self._call("add_option", handle, flags, descr or "", default))

    def add_argument(self, handle, name, descr="", required=True, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        if name is None:
            return Result.fail("argument name is required", FaultCode.NULL_PARAMETER)
        return self._unpack("add_argument", self._call("add_argument", handle, name, descr or "", bool(required)))

    def add_command(self, parent, child, /):
        if (failure := self._guard(parent)) is not None or (failure := self._guard(child)) is not None:
            return failure
        if not self.supports("add_command"):
            return Result.ok(None)
        return self._unpack("add_command", self._call("add_command", parent, child))

    def parse_args(self, handle, argv, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        if argv is None:
            return Result.fail("argv is required", FaultCode.NULL_PARAMETER)

        if not (result := self._unpack("parse_args", self._call("parse_args", handle, list(map(str, argv))))):
            if result.code is FaultCode.NATIVE_CALL_FAILED:
                return Result.fail(result.error, FaultCode.PARSE_FAILED)
            return result

        try:
            data = _decode(result.data)
            if isinstance(data, Mapping) and data.get("success") is False:
                return Result.fail(data.get("error") or "native parse failed", FaultCode.PARSE_FAILED)
            return Result.ok(_outcome(data))
        except ValueError as error:
            return Result.fail("native parse_args() returned a malformed payload: %s" % error, FaultCode.MALFORMED_ENVELOPE)

    def get_help(self, handle, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        result = self._call("get_help", handle)
        if result and isinstance(result.data, str) and not result.data.lstrip().startswith("{"):
            return result
        if not (result := self._unpack("get_help", result)):
            return result
        if not isinstance(result.data, str):
            return Result.fail("native get_help() returned %s instead of text" % type(result.data).__name__, FaultCode.MALFORMED_ENVELOPE)
        return result

    def add_ref(self, handle, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        return self._unpack("add_ref", self._call("add_ref", handle))

    def release(self, handle, /):
        if (failure := self._guard(handle)) is not None:
            return failure
        return self._unpack("release", self._call("release", handle))

    def __repr__(self):
        return f"native-adapter(module={getattr(self._module, '__name__', self._module)!r})"


__all__ = (
    "NativeAdapter",
    "CONTRACT",
    "MAX_HANDLE",
    "valid_handle",
)
