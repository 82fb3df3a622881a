"""
Gommander capability probe: is the native engine loadable and functional?

Protocol
1. Unless disabled by configuration, the loader tries the configured module
   name, then the explicit path, then every built-in location with every
   extension suffix of the running interpreter. Each try is recorded as an
   Attempt.
2. The loaded module must answer one liveness call: hello() returning a
   string, and is_available() (when provided) not returning False.
3. Any failure becomes BackendStatus(available=False, error=...). Nothing is
   ever raised to the caller.

The first probe() result is memoized for the lifetime of the Probe; retest()
runs the protocol again for display purposes without touching the memo.
"""
import importlib
import importlib.machinery
import importlib.util
import os
import sys
from collections import namedtuple

from .config import Config, LOCATIONS
from .faults import EngineUnavailableError, FaultCode
from .logs import get_logger
from .utils import *


logger = get_logger("probe")


BackendStatus = namedtuple("BackendStatus", ("available", "loaded", "error", "attempts"), defaults=((),))
Attempt = namedtuple("Attempt", ("location", "success", "error"))


def suffixes():
    """
    File suffixes a compiled engine may carry on this platform.
    """
    found = list(importlib.machinery.EXTENSION_SUFFIXES)
    if sys.platform == "win32":
        found.extend(suffix for suffix in (".pyd", ".dll") if suffix not in found)
    return tuple(found)


def candidates(config, /):
    """
    Ordered, de-duplicated list of files that may hold the native engine.

    The explicit path comes first, then every built-in location relative to
    the working directory and to this package, each with every suffix.
    """
    basename = config.module.rpartition(".")[2]
    found = [config.path] if config.path else []
    for root in (os.getcwd(), os.path.dirname(os.path.abspath(__file__))):
        for location in LOCATIONS:
            for suffix in suffixes():
                found.append(os.path.normpath(os.path.join(root, location, basename + suffix)))
    return list(dict.fromkeys(found))


def _load_file(name, path):
    loader = importlib.machinery.ExtensionFileLoader(name, path)
    spec = importlib.util.spec_from_file_location(name, path, loader=loader)
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


def load_native(config, attempts, /):
    """
    Default loader: return the native engine module or raise.

    Every try is appended to attempts as an Attempt(location, success, error).
    """
    try:
        module = importlib.import_module(config.module)
    except ImportError as error:
        attempts.append(Attempt("module:" + config.module, False, str(error)))
    else:
        attempts.append(Attempt("module:" + config.module, True, None))
        return module

    name = config.module.rpartition(".")[2]
    for path in candidates(config):
        if not os.path.isfile(path):
            attempts.append(Attempt(path, False, "not found"))
            continue
        try:
            module = _load_file(name, path)
        except (ImportError, OSError) as error:
            attempts.append(Attempt(path, False, str(error)))
        else:
            attempts.append(Attempt(path, True, None))
            return module

    raise EngineUnavailableError(
        "native engine %r could not be loaded from any location" % config.module,
        code=FaultCode.NATIVE_LOAD_FAILED,
        hint="build the engine or set GOMMANDER_NATIVE_PATH",
    )


def _liveness(module):
    """
    Return None when module answers like a native engine, else the reason it does not.
    """
    if not callable(hello := getattr(module, "hello", None)):
        return "native engine does not provide hello()"
    if not isinstance(greeting := hello(), str):
        return "native engine hello() returned %s instead of a string" % type(greeting).__name__
    if callable(is_available := getattr(module, "is_available", None)) and is_available() is False:
        reason = None
        if callable(get_last_error := getattr(module, "get_last_error", None)):
            reason = get_last_error()
        return "native engine reports itself unavailable" + (": %s" % reason if reason else "")
    return None


class Probe:
    """
    Memoized capability check for one runtime.

    - probe(): the memoized BackendStatus (computed on first call).
    - retest(): a fresh BackendStatus; the memo and module are left untouched.
    - module: the functional native module, or None.
    - calls: how many times the loader ran (for instrumentation).
    """

    def __init__(self, config=Unset, /, *, loader=Unset):
        self._config = config if config is not Unset else Config.from_environ()
        self._loader = coalesce(loader, load_native)
        self._status = None
        self._module = None
        self._calls = 0

        if not isinstance(self._config, Config):
            raise TypeError("probe 'config' must be a config")
        if not callable(self._loader):
            raise TypeError("probe 'loader' must be callable")

    calls = mirror("calls")

    @property
    def config(self):
        return self._config

    @property
    def module(self):
        self.probe()
        return self._module

    def _run(self):
        if self._config.force_fallback:
            logger.debug("native engine disabled by configuration")
            return BackendStatus(False, False, "native engine disabled by GOMMANDER_FORCE_FALLBACK"), None

        attempts = []
        self._calls += 1
        try:
            module = self._loader(self._config, attempts)
        except Exception as error:
            logger.debug("native engine not loaded: %s", error)
            return BackendStatus(False, False, str(error) or type(error).__name__, tuple(attempts)), None

        if module is None:
            return BackendStatus(False, False, "native engine loader returned nothing", tuple(attempts)), None

        try:
            reason = _liveness(module)
        except Exception as error:
            reason = "native engine liveness check raised %s: %s" % (type(error).__name__, error)
        if reason:
            logger.debug("native engine loaded but not functional: %s", reason)
            return BackendStatus(False, True, reason, tuple(attempts)), None

        logger.debug("native engine %r is available", getattr(module, "__name__", module))
        return BackendStatus(True, True, None, tuple(attempts)), module

    def probe(self):
        if self._status is None:
            self._status, self._module = self._run()
        return self._status

    def retest(self):
        status, _ = self._run()
        return status

    def __repr__(self):
        return f"probe(status={self._status!r})"


__all__ = (
    "BackendStatus",
    "Attempt",
    "Probe",
    "candidates",
    "suffixes",
    "load_native",
)
