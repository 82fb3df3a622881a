"""
Gommander runtime: the explicitly passed capability context.

A Runtime owns one Probe (memoized availability), the NativeAdapter built on
the loaded module, the console used for notices, and the one-time fallback
notice state. Commands receive it through their runtime= parameter; when
omitted they share default_runtime(), created on first use.

Two runtimes never share state, so a test can hold one with a working stub
engine and one without any engine side by side.
"""
import functools

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .config import Config
from .logs import get_logger
from .native import NativeAdapter
from .probe import Probe
from .utils import *


logger = get_logger("runtime")


class Runtime:
    """
    Capability context shared by every command built against it.

    Parameters
    - config: Config (default: Config.from_environ()).
    - loader: callable(config, attempts) returning the native module or raising
      (default: probe.load_native).
    - console: rich Console used for notices (default: stderr console).
    """

    def __init__(self, config=Unset, /, *, loader=Unset, console=Unset):
        self._config = config if config is not Unset else Config.from_environ()
        self._probe = Probe(self._config, loader=loader)
        self._console = console
        self._adapter = None
        self._notified = False

    probe = mirror("probe")
    notified = mirror("notified")

    @property
    def config(self):
        return self._config

    @property
    def status(self):
        return self._probe.probe()

    @property
    def available(self):
        return self.status.available

    @property
    def adapter(self):
        """
        NativeAdapter over the loaded engine, or None when it is unavailable.
        """
        if self._adapter is None and self.available:
            self._adapter = NativeAdapter(self._probe.module)
        return self._adapter

    @property
    def console(self):
        if self._console is Unset:
            self._console = Console(stderr=True)
        return self._console

    def notice(self, context=""):
        """
        Build the fallback notice panel.
        """
        status = self.status
        lines = Text()
        lines.append("gommander is running in fallback mode", style="bold yellow")
        if context:
            lines.append(" (%s)" % context, style="yellow")
        lines.append("\nCommands are parsed by the Python engine; all functionality remains available.")
        if status.error:
            lines.append("\nReason: ", style="dim")
            lines.append(status.error.splitlines()[0])
        lines.append("\nRun 'python -m gommander doctor' for troubleshooting guidance.", style="dim")
        return Panel(lines, title="native engine unavailable", title_align="left", border_style="yellow")

    def notify(self, context="initialization"):
        """
        Print the fallback notice once per runtime, unless quiet.

        Returns True when the notice was printed by this call.
        """
        if self._notified or self._config.force_fallback:
            return False
        self._notified = True
        if self._config.quiet:
            logger.debug("fallback notice suppressed by configuration")
            return False
        self.console.print(self.notice(context))
        return True

    def __repr__(self):
        return f"runtime(config={self._config!r}, status={self._probe._status!r})"


@functools.cache
def default_runtime():
    """
    Process-wide runtime configured from the environment, created on first use.
    """
    return Runtime()


__all__ = (
    "Runtime",
    "default_runtime",
)
