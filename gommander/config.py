"""
Gommander configuration.

Config is an immutable record of the knobs that influence engine selection and
console output. It is read once from the environment by Config.from_environ()
and handed to a Runtime; tests build their own Config directly.

Environment
- GOMMANDER_NATIVE_MODULE   importable module name tried first (default "gommander_native")
- GOMMANDER_NATIVE_PATH     extra extension file tried before the built-in locations
- GOMMANDER_FORCE_FALLBACK  truthy: never load the native engine
- GOMMANDER_QUIET           truthy: suppress the one-time fallback notice
- GOMMANDER_LOG_LEVEL       level name used by gommander.logs.configure()
"""
import os
from collections import namedtuple

from .utils import *


MODULE = "gommander_native"

# Directories searched for a compiled engine, in order.
LOCATIONS = (
    os.path.join("build", "Release"),
    os.path.join("build", "Debug"),
    "build",
    ".",
    "lib",
    "dist",
)


class Config(namedtuple("Config", ("module", "path", "force_fallback", "quiet", "log_level"), defaults=(
    MODULE,
    None,
    False,
    False,
    "WARNING",
))):
    """
    Immutable runtime configuration.

    Fields
    - module: importable name of the native engine module.
    - path: explicit extension file tried before the built-in locations (or None).
    - force_fallback: skip loading the native engine altogether.
    - quiet: suppress the one-time fallback notice.
    - log_level: level name for gommander.logs.configure().
    """
    __slots__ = ()

    @classmethod
    def from_environ(cls, environ=Unset, /):
        environ = coalesce(environ, os.environ)
        return cls(
            module=environ.get("GOMMANDER_NATIVE_MODULE", "").strip() or MODULE,
            path=environ.get("GOMMANDER_NATIVE_PATH", "").strip() or None,
            force_fallback=truthy(environ.get("GOMMANDER_FORCE_FALLBACK")),
            quiet=truthy(environ.get("GOMMANDER_QUIET")),
            log_level=environ.get("GOMMANDER_LOG_LEVEL", "").strip().upper() or "WARNING",
        )


__all__ = (
    "Config",
    "LOCATIONS",
)
