"""
Gommander logging.

The library logs under the "gommander" logger hierarchy and installs only a
NullHandler, so nothing is printed unless the host configures logging.
configure() is the opt-in: it attaches one RichHandler writing to stderr.
"""
import logging
import os

from rich.console import Console
from rich.logging import RichHandler


logger = logging.getLogger("gommander")
logger.addHandler(logging.NullHandler())

_handler = None


def get_logger(name=None, /):
    """
    Return the package logger, or a child such as "gommander.probe".
    """
    return logger if not name else logger.getChild(name)


def configure(level=None, /):
    """
    Attach a RichHandler to the package logger (once) and set its level.

    level defaults to GOMMANDER_LOG_LEVEL, then WARNING. Calling configure()
    again only updates the level.
    """
    global _handler

    if level is None:
        level = os.environ.get("GOMMANDER_LOG_LEVEL", "").strip().upper() or "WARNING"
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError("configure() unknown log level")

    if _handler is None:
        _handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        _handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(_handler)

    logger.setLevel(level)
    _handler.setLevel(level)
    return logger


__all__ = (
    "get_logger",
    "configure",
)
