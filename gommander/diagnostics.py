"""
Gommander diagnostics: what engine is active, why, and how to fix it.

Structured reports
- is_backend_available() / get_backend_status(): availability snapshot.
- get_load_attempts() / get_detailed_error(): what the probe tried.
- get_troubleshooting_guidance(): steps, common issues, quick fixes,
  platform notes and diagnostic commands tailored to the failure.
- test_backend(): exercises the native engine and reports every call.
- hello() / version(): engine identity, with fallback strings when the native
  engine is unavailable.

Rendering
- print_system_diagnostics(), print_troubleshooting_guidance() and
  show_fallback_warning() print rich tables and panels.

Every function takes an optional runtime; default_runtime() is used when it
is omitted.
"""
import os
import platform
import sys

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import LOCATIONS
from .probe import suffixes
from .runtime import default_runtime
from .utils import *


FALLBACK_HELLO = "Python fallback implementation"
FALLBACK_VERSION = "1.0.0-py-fallback"


def _runtime(runtime):
    return coalesce(runtime, None) or default_runtime()


def _console(console):
    return coalesce(console, None) or Console()


def is_backend_available(runtime=Unset, /):
    return _runtime(runtime).available


def get_backend_status(runtime=Unset, /):
    """
    Snapshot of engine availability.

    Keys: native_available, addon_loaded, addon_load_error, last_native_error.
    """
    runtime = _runtime(runtime)
    status = runtime.status

    last = None
    if (adapter := runtime.adapter) is not None and (result := adapter.get_last_error()):
        last = result.data or None

    return {
        "native_available": status.available,
        "addon_loaded": status.loaded,
        "addon_load_error": status.error,
        "last_native_error": last,
    }


def get_addon_info(runtime=Unset, /):
    runtime = _runtime(runtime)
    adapter = runtime.adapter
    return {
        "loaded": runtime.status.loaded,
        "functions": adapter.functions() if adapter is not None else [],
    }


def get_load_attempts(runtime=Unset, /):
    return [attempt._asdict() for attempt in _runtime(runtime).status.attempts]


def get_detailed_error(runtime=Unset, /):
    """
    The probe failure with its context, or None when the engine is available.
    """
    runtime = _runtime(runtime)
    if (status := runtime.status).available:
        return None
    return {
        "error": status.error,
        "attempts": get_load_attempts(runtime),
        "platform": sys.platform,
        "arch": platform.machine(),
        "python": platform.python_version(),
    }


def static_archives():
    """
    Static engine archives found in the usual build locations.

    A static archive cannot be loaded by the interpreter; its presence means
    the engine was built but not linked into an extension module.
    """
    found = []
    for root in (os.getcwd(), os.path.dirname(os.path.abspath(__file__))):
        for location in (*LOCATIONS, "src"):
            for name in ("gommander.a", "libgommander.a"):
                if os.path.isfile(path := os.path.normpath(os.path.join(root, location, name))):
                    found.append(path)
    return list(dict.fromkeys(found))


def get_troubleshooting_guidance(runtime=Unset, /):
    """
    Remediation guidance for the current engine state.

    Keys: steps, common_issues, quick_fixes, platform_specific,
    diagnostic_commands, load_attempts (plus detailed_error and
    static_archives when relevant).
    """
    runtime = _runtime(runtime)
    status = runtime.status
    module = runtime.config.module

    guidance = {
        "steps": [],
        "common_issues": [],
        "quick_fixes": [],
        "platform_specific": [],
        "diagnostic_commands": [],
        "load_attempts": get_load_attempts(runtime),
    }

    if runtime.config.force_fallback:
        guidance["steps"].append("Unset GOMMANDER_FORCE_FALLBACK to allow loading the native engine")
    elif not status.loaded:
        guidance["steps"].extend((
            "1. Build the native engine extension module",
            "2. Check the build output for errors",
            "3. Verify %s exists in build/Release/ or build/Debug/" % module,
            "4. Or point GOMMANDER_NATIVE_PATH at the built extension file",
            "5. Check that the extension matches this interpreter (%s)" % platform.python_version(),
        ))
        guidance["common_issues"].extend((
            "Missing build dependencies (compiler, Go toolchain, Python headers)",
            "Extension built for a different Python version or ABI",
            "Corrupted or incomplete build artifacts",
        ))
        guidance["quick_fixes"].extend((
            "python -c \"import %s\"" % module,
            "export GOMMANDER_NATIVE_PATH=/path/to/%s%s" % (module.rpartition(".")[2], suffixes()[0]),
        ))
        guidance["diagnostic_commands"].extend((
            "python --version",
            "python -m gommander status",
            "python -m gommander doctor",
        ))
    elif not status.available:
        guidance["steps"].extend((
            "1. The engine module loads but does not answer its liveness check",
            "2. Verify hello() returns a string and is_available() returns true",
            "3. Check get_last_error() of the engine for the underlying cause",
        ))
        guidance["common_issues"].extend((
            "Engine library loaded without its runtime dependencies",
            "Engine functions not exported under the expected names",
        ))
        guidance["quick_fixes"].append("Rebuild the native engine from a clean tree")
        guidance["diagnostic_commands"].extend((
            "go version",
            "python -m gommander selftest",
        ))

    match sys.platform:
        case "win32":
            guidance["platform_specific"].extend((
                "Ensure Visual Studio Build Tools are installed",
                "Check that %s.pyd (or .dll) is next to its dependencies" % module,
            ))
            guidance["diagnostic_commands"].append("where cl.exe")
        case "darwin":
            guidance["platform_specific"].extend((
                "Ensure Xcode Command Line Tools are installed",
                "Check that gommander.a was linked into the extension",
            ))
            guidance["diagnostic_commands"].append("xcode-select --print-path")
        case _:
            guidance["platform_specific"].extend((
                "Ensure build-essential (or your distribution's compiler toolchain) is installed",
                "Check that gommander.a was linked into the extension",
            ))
            guidance["diagnostic_commands"].append("gcc --version")

    if archives := static_archives():
        guidance["static_archives"] = archives
        guidance["common_issues"].append("Static archive found but no loadable extension: %s" % ", ".join(archives))

    if detailed := get_detailed_error(runtime):
        guidance["detailed_error"] = detailed

    return guidance


def test_backend(runtime=Unset, /):
    """
    Exercise the native engine and report each call.

    Returns {success, message, tests}; every test is {name, success, result|error}.
    """
    runtime = _runtime(runtime)
    if (adapter := runtime.adapter) is None:
        return {
            "success": False,
            "message": "native engine not available",
            "tests": [],
        }

    tests = []

    def record(name, result):
        entry = {"name": name, "success": result.success}
        if result.success:
            data = result.data
            entry["result"] = data[:100] if isinstance(data, str) else data
        else:
            entry["error"] = result.error
        tests.append(entry)
        return result

    for name in ("version", "hello", "is_available", "get_last_error"):
        record(name, getattr(adapter, name)())

    if all(test["success"] for test in tests) and (created := record("create_command", adapter.create_command("selftest"))):
        handle = created.data
        record("add_option", adapter.add_option(handle, "-p, --port <number>", "port", "3000"))
        record("add_argument", adapter.add_argument(handle, "<file>", "input file", True))
        record("get_help", adapter.get_help(handle))
        record("parse_args", adapter.parse_args(handle, ["--port", "8080", "in.txt"]))
        if adapter.supports("release"):
            record("release", adapter.release(handle))

    passed = all(test["success"] for test in tests)
    return {
        "success": passed,
        "message": "all native engine tests passed" if passed else "some native engine tests failed",
        "tests": tests,
    }


def hello(runtime=Unset, /):
    if (adapter := _runtime(runtime).adapter) is not None and (result := adapter.hello()) and isinstance(result.data, str):
        return result.data
    return FALLBACK_HELLO


def version(runtime=Unset, /):
    if (adapter := _runtime(runtime).adapter) is not None and (result := adapter.version()) and isinstance(result.data, str):
        return result.data
    return FALLBACK_VERSION


def _mark(value):
    if value is True:
        return Text("yes", "bold green")
    if value is False:
        return Text("no", "bold red")
    return Text("n/a" if value is None else str(value))


def render_status(status, addon, /):
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Native engine available", _mark(status["native_available"]))
    table.add_row("Engine module loaded", _mark(status["addon_loaded"]))
    if status["addon_load_error"]:
        table.add_row("Load error", Text(status["addon_load_error"], "red"))
    if status["last_native_error"] and status["last_native_error"] != "No error":
        table.add_row("Engine error", Text(status["last_native_error"], "red"))
    if addon["functions"]:
        table.add_row("Engine functions", ", ".join(addon["functions"]))
    return Panel(table, title="gommander system diagnostics", title_align="left")


def print_system_diagnostics(runtime=Unset, /, *, console=Unset):
    runtime = _runtime(runtime)
    status = get_backend_status(runtime)
    _console(console).print(render_status(status, get_addon_info(runtime)))
    return status


def print_troubleshooting_guidance(runtime=Unset, /, *, console=Unset):
    guidance = get_troubleshooting_guidance(runtime)

    renders = []
    for title, key, bullet in (
        ("Recommended steps", "steps", ""),
        ("Common issues", "common_issues", "• "),
        ("Quick fixes", "quick_fixes", "$ "),
        ("Platform notes", "platform_specific", "• "),
        ("Diagnostic commands", "diagnostic_commands", "$ "),
    ):
        if guidance[key]:
            renders.append(Text(title, "bold"))
            renders.extend(Text("  " + bullet + line) for line in guidance[key])

    attempts = Table("location", "result", title="load attempts", title_justify="left", expand=False)
    for attempt in guidance["load_attempts"]:
        if attempt["error"] != "not found":
            attempts.add_row(attempt["location"], _mark(True) if attempt["success"] else Text(attempt["error"], "red"))
    if attempts.row_count:
        renders.append(attempts)

    _console(console).print(Panel(Group(*renders), title="troubleshooting guidance", title_align="left"))
    return guidance


def show_fallback_warning(context="", runtime=Unset, /, *, console=Unset):
    runtime = _runtime(runtime)
    _console(console if console is not Unset else runtime.console).print(runtime.notice(context))


__all__ = (
    "FALLBACK_HELLO",
    "FALLBACK_VERSION",
    "is_backend_available",
    "get_backend_status",
    "get_addon_info",
    "get_load_attempts",
    "get_detailed_error",
    "static_archives",
    "get_troubleshooting_guidance",
    "test_backend",
    "hello",
    "version",
    "render_status",
    "print_system_diagnostics",
    "print_troubleshooting_guidance",
    "show_fallback_warning",
)
