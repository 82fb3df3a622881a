"""
Gommander utilities (small helpers shared by every layer)

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "the caller did not pass this", kept apart from None
    because None and other falsy values are legitimate option defaults.
  • Falsy, printable as "Unset", sealed against subclassing.

- coalesce(value, default=None)
  • Materialize Unset into a concrete default; every other value passes through.

- rename(callable, name) / @rename("name")
  • Give generated callables a stable __name__/__qualname__ for tracebacks.

- mirror("attr")
  • Read-only property over a private "_attr" field; containers are copied on
    read so that callers cannot mutate the command tree behind its back.

- truthy(text)
  • Interpret an environment-style switch ("1", "yes", "on", "true").

Usage guidance
- Default builder parameters to Unset whenever None could be a real value, then
  resolve them with coalesce() at the point of use.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for "no value supplied".

    Characteristics
    - bool(Unset) is False, yet Unset is never equal to None, 0 or "".
    - repr(Unset) is "Unset".
    - UnsetType() always returns the same instance.
    - Subclassing is rejected.
    """

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsy values are preserved:
    - coalesce("", "x")    -> ""
    - coalesce(None, "x")  -> None
    - coalesce(Unset, "x") -> "x"
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Assign __name__/__qualname__ to a callable.

    Forms
    - rename(callable, name) renames in place and returns the callable.
    - rename(name) returns a decorator doing the same.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)
            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Copy containers recursively so a read never hands out live internal state.

    Strings are sequences but are returned unchanged; mapping keys are kept as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Build a read-only property reading self._{name}.

    Container values are detached copies (see _detach); scalars are returned as-is.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


def truthy(text, /):
    """
    Interpret an environment-style switch.

    "1", "true", "yes" and "on" (any case, surrounding spaces ignored) are true;
    anything else, including None and the empty string, is false.
    """
    if text is None:
        return False
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "truthy",
    "UnsetType",
    "Unset",
)
