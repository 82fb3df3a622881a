__title__ = 'gommander'
__license__ = 'MIT'
__version__ = "1.0.0"

from .arguments import *
from .commands import *
from .config import *
from .diagnostics import *
from .engines import *
from .faults import *
from .logs import *
from .probe import *
from .results import *
from .runtime import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(1, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info",
    "program",
)

# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the configuration
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the diagnostics
__all__ += diagnostics.__all__  # type: ignore[attr-defined]
# Load the exposed API of the engine bindings
__all__ += engines.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the logging helpers
__all__ += logs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the probe
__all__ += probe.__all__  # type: ignore[attr-defined]
# Load the exposed API of the results
__all__ += results.__all__  # type: ignore[attr-defined]
# Load the exposed API of the runtime
__all__ += runtime.__all__  # type: ignore[attr-defined]


def __getattr__(name):
    # Built on first access; importing the package does not probe the engine.
    if name == "program":
        globals()["program"] = program = Command()
        return program
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
