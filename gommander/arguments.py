r"""
Gommander option and argument specifications.

Overview
- Option: a named flag or value-bearing parameter declared with a commander
  style flag spec such as "-p, --port <number>".
- Argument: a positional parameter declared with a bracket token such as
  "<file>" (required) or "[output]" (optional).
- parse_flags(spec) / parse_token(token): the validated grammars behind both
  specs; malformed input fails loudly with a structured fault instead of
  producing a garbage key.

Flag-spec grammar
- parts are separated by commas, whitespace or '|'.
- "--name"  long flag (unicode letters, digits, '-', '_' and '.' after the first letter)
- "-x"      short flag
- "<value>" the option requires a value; "[value]" the value is optional;
  a trailing "..." inside the brackets marks a variadic value.
- canonical key: the long name without dashes, else the short name without
  its dash. The key is what parsed options are stored under.

Argument-token grammar
- "<name>" required, "[name]" optional, bare "name" required.
- a trailing "..." marks a variadic argument ("<files...>").
- an explicit required= overrides the bracket inference.

Introspection
- SpecType exposes every name in __introspectable__ as a read-only property
  and provides stable __repr__/__rich_repr__ for diagnostics.
"""
import functools
import operator
import re

from .faults import MalformedFlagsError, MalformedArgumentError, NullParameterError
from .utils import *


_PART = re.compile(r"<[^<>]*>|\[[^\[\]]*\]|[^\s,|]+")
_LONG = re.compile(r"--(?P<name>[^\W_][\w.-]*)")
_SHORT = re.compile(r"-(?P<name>[^\W_-][\w]*)")
_VALUE = re.compile(r"(?P<open>[<\[])\s*(?P<name>[^<>\[\]]*?)\s*(?P<variadic>\.\.\.)?\s*(?P<close>[>\]])")
_TOKEN = re.compile(r"(?P<open>[<\[]?)\s*(?P<name>[^\W\d][\w.-]*?)\s*(?P<variadic>\.\.\.)?\s*(?P<close>[>\]]?)")


class SpecType(type):
    """
    Metaclass giving specs read-only properties and readable representations.

    - __typename__ is derived from the class name (Option -> "option").
    - every name in __introspectable__ becomes a property over "_" + name.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


@functools.cache
def parse_flags(spec, /):
    """
    Split a flag spec into its parts.

    Returns
    - dict with keys: flags (normalized spec), short, long, names, key,
      value (None | "required" | "optional"), metavar, variadic.

    Raises
    - NullParameterError when spec is None.
    - TypeError when spec is not a string.
    - MalformedFlagsError when no flag is present, a part is unrecognizable,
      or more than one value placeholder is given.
    """
    if spec is None:
        raise NullParameterError("option flags are required", hint="pass a spec like '-p, --port <number>'")
    if not isinstance(spec, str):
        raise TypeError("option flags must be a string")
    if not (flags := spec.strip()):
        raise MalformedFlagsError("option flags cannot be empty", flags=spec, hint="pass a spec like '-p, --port <number>'")

    short = long = metavar = value = None
    names = []
    variadic = False

    for part in _PART.findall(flags):
        if match := _VALUE.fullmatch(part):
            if value is not None:
                raise MalformedFlagsError(
                    "option flags %r declare more than one value" % flags,
                    flags=flags,
                    hint="keep a single <value> or [value] placeholder",
                )
            if not match["name"] and not match["variadic"]:
                raise MalformedFlagsError(
                    "option flags %r have an empty value placeholder" % flags,
                    flags=flags,
                    hint="name the value, for example <number>",
                )
            if {"<": ">", "[": "]"}[match["open"]] != match["close"]:
                raise MalformedFlagsError("option flags %r have unbalanced brackets" % flags, flags=flags)
            value = "required" if match["open"] == "<" else "optional"
            metavar = match["name"] or None
            variadic = bool(match["variadic"])
        elif match := _LONG.fullmatch(part):
            long = long or part
            names.append(part)
        elif match := _SHORT.fullmatch(part):
            short = short or part
            names.append(part)
        else:
            raise MalformedFlagsError(
                "unrecognized part %r in option flags %r" % (part, flags),
                flags=flags,
                hint="flags look like -x or --name, values like <value> or [value]",
            )

    if not names:
        raise MalformedFlagsError(
            "option flags %r do not declare any flag" % flags,
            flags=flags,
            hint="add a short (-x) or long (--name) flag",
        )

    return {
        "flags": flags,
        "short": short,
        "long": long,
        "names": tuple(names),
        "key": long[2:] if long else short[1:],
        "value": value,
        "metavar": metavar,
        "variadic": variadic,
    }


@functools.cache
def parse_token(token, /):
    """
    Split an argument token into (name, required, variadic).

    Raises
    - NullParameterError when token is None.
    - TypeError when token is not a string.
    - MalformedArgumentError when the token is empty, its brackets are
      unbalanced, or the name is not an identifier-like word.
    """
    if token is None:
        raise NullParameterError("argument name is required", hint="pass a token like '<file>'")
    if not isinstance(token, str):
        raise TypeError("argument name must be a string")
    if not (stripped := token.strip()):
        raise MalformedArgumentError("argument name cannot be empty", token=token, hint="pass a token like '<file>'")

    match = _TOKEN.fullmatch(stripped)
    if not match or {"<": ">", "[": "]", "": ""}[match["open"]] != match["close"]:
        raise MalformedArgumentError(
            "malformed argument token %r" % stripped,
            token=stripped,
            hint="use <name> for required or [name] for optional arguments",
        )
    return match["name"], match["open"] != "[", bool(match["variadic"])


class Option(metaclass=SpecType):
    """
    A named flag or value-bearing parameter owned by one command.

    Properties
    - flags: the normalized spec string as declared ("-p, --port <number>").
    - descr: short description ("" when not given).
    - default: declared default, Unset when none was declared.
    - short / long: the first short and long flag (None when absent).
    - names: every flag in declaration order.
    - key: canonical lookup key ("port").
    - value: None (boolean flag), "required" or "optional".
    - metavar / variadic: details of the value placeholder.
    """
    __introspectable__ = (
        "flags",
        "descr",
        "default",
        "short",
        "long",
        "names",
        "key",
        "value",
        "metavar",
        "variadic",
    )

    def __new__(cls, flags, /, descr="", default=Unset):
        if not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

        self = super().__new__(cls)
        for name, object in parse_flags(flags).items():
            setattr(self, "_" + name, object)
        self._descr = descr.strip()
        self._default = default
        return self

    @property
    def takes_value(self):
        return self._value is not None

    @property
    def has_default(self):
        return self._default is not Unset

    def matches(self, token, /):
        """
        Whether token names this option (exact flag match).
        """
        return token in self._names


class Argument(metaclass=SpecType):
    """
    A positional parameter owned by one command.

    Properties
    - token: the declared token ("<file>").
    - name: the bare name ("file").
    - descr: short description ("" when not given).
    - required: inferred from brackets unless given explicitly.
    - variadic: whether the token ends with "...".
    """
    __introspectable__ = (
        "token",
        "name",
        "descr",
        "required",
        "variadic",
    )

    def __new__(cls, token, /, descr="", required=Unset):
        if not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        if not isinstance(required, bool | Unset):
            raise TypeError(f"{cls.__typename__} 'required' must be a boolean")

        name, inferred, variadic = parse_token(token)

        self = super().__new__(cls)
        self._token = token.strip()
        self._name = name
        self._descr = descr.strip()
        self._required = coalesce(required, inferred)
        self._variadic = variadic
        return self


__all__ = (
    "Option",
    "Argument",
    "parse_flags",
    "parse_token",
)
