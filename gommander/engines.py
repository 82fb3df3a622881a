"""
Gommander engine binding.

A command is bound to exactly one engine, decided once when it is built:
- Native(handle): the command lives inside the native engine under handle.
- Fallback(reason): the command is served by the pure Python engine; reason
  says why (forced, engine unavailable, or native registration failed).

resolve() performs that decision against a Runtime.
"""
from collections import namedtuple

from .logs import get_logger


logger = get_logger("engines")


class Native(namedtuple("Native", ("handle",))):
    __slots__ = ()

    def __repr__(self):
        return f"native(handle={self.handle!r})"


class Fallback(namedtuple("Fallback", ("reason",))):
    __slots__ = ()

    def __repr__(self):
        return f"fallback(reason={self.reason!r})"


def resolve(runtime, name, /, *, force=False):
    """
    Bind a new command called name to an engine.

    Returns (engine, error): error is the native registration failure that
    made a command fall back although the engine is available, else None.
    """
    if force:
        logger.debug("command %r forced into fallback mode", name)
        return Fallback("fallback mode requested"), None

    if not (status := runtime.status).available:
        runtime.notify()
        logger.debug("command %r uses the fallback engine: %s", name, status.error)
        return Fallback(status.error or "native engine unavailable"), None

    if result := runtime.adapter.create_command(name):
        return Native(result.data), None

    logger.warning("native registration of command %r failed, using the fallback engine: %s", name, result.error)
    return Fallback(result.error), result.error


__all__ = (
    "Native",
    "Fallback",
    "resolve",
)
