"""Error taxonomy for the conversation core.

The conversation loop settles a failed work item according to the type of
error its handler raised.
"""


class ParleyError(Exception):
    """Base class for parley errors."""


class Cancelled(ParleyError):
    """The user aborted the current turn. Expected control flow, never reported."""

    code = "ECANCELLED"

    def __init__(self, message: str = "Cancelled"):
        super().__init__(message)


class UnrepresentableProgram(ParleyError):
    """A program cannot be reduced to a single permission rule."""


class InvalidOperator(ParleyError, TypeError):
    """A filter operator outside the known set reached the describer."""

    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Invalid operator {operator}")


class UpstreamFailure(ParleyError):
    """A collaborator (parser, program library) failed. Shown to the user verbatim."""


class ParseError(UpstreamFailure):
    """A structured payload could not be decoded."""


class MalformedIdentity(ParleyError, ValueError):
    """An identity string is not of the form ``scheme:opaqueId``."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"Malformed identity {identity!r}: expected scheme:id")
