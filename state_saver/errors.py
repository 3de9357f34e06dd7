from __future__ import annotations


class StateSaverError(Exception):
    """Base class for errors raised by the state saver."""


class UnsupportedTargetError(StateSaverError, TypeError):
    """The value cannot be rolled back in place.

    Raised for immutable values such as ints, strings and tuples, for classes
    (their namespace is read-only) and for values whose copy is the value
    itself. Guard the binding that holds them instead, through an attribute or
    item target.
    """

    def __init__(
        self,
        value: object,
        reason: str = "guard the attribute or item holding it instead",
    ) -> None:
        super().__init__(f"cannot restore {type(value).__name__} in place; {reason}")
        self.value_type = type(value)


class GuardStateError(StateSaverError, RuntimeError):
    """The guard was used outside its lifecycle (closed, transferred or re-entered)."""
