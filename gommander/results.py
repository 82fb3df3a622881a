"""
Result values exchanged at every engine boundary.

Both engines answer with a Result instead of raising: success carries data,
failure carries a human-readable error and a FaultCode. Callers that prefer
exceptions call unwrap().

ParsedOutcome is the engine-neutral shape of a parse: which command handled
the tokens, its positional arguments in order, its options (defaults applied),
problems found along the way, and whether help or version output was requested.
"""
from collections import namedtuple

from .faults import FaultCode, fault_for


class Result(namedtuple("Result", ("success", "data", "error", "code"))):
    """
    Discriminated outcome of one engine call.

    - Result.ok(data) -> success=True, error=None, code=None
    - Result.fail(error, code) -> success=False, data=None
    - bool(result) is result.success
    """
    __slots__ = ()

    @classmethod
    def ok(cls, data=None, /):
        return cls(True, data, None, None)

    @classmethod
    def fail(cls, error, code=FaultCode.NATIVE_CALL_FAILED, /):
        if not isinstance(code, FaultCode):
            raise TypeError("Result.fail() code must be a fault-code")
        return cls(False, None, str(error), code)

    def __bool__(self):
        return bool(self.success)

    def unwrap(self):
        """
        Return data on success; raise the fault matching code otherwise.
        """
        if self.success:
            return self.data
        raise fault_for(self.code)(self.error, code=self.code)

    def asdict(self):
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "code": None if self.code is None else int(self.code),
        }


ParsedOutcome = namedtuple(
    "ParsedOutcome",
    ("command", "arguments", "options", "errors", "help", "version"),
    defaults=((), False, None),
)


__all__ = (
    "Result",
    "ParsedOutcome",
)
