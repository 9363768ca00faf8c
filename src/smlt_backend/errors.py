"""Exception types raised by the SMLT service."""

from __future__ import annotations


class SmltError(Exception):
    """Base class for SMLT errors."""


class FilterParseError(SmltError, ValueError):
    """A caller supplied filter expression could not be parsed."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Invalid filter {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class RequestParameterError(SmltError, ValueError):
    """A request parameter has a value that cannot be interpreted."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid value {value!r} for '{name}': {reason}")
        self.name = name
        self.value = value


class IndexAccessError(SmltError):
    """The index or document store could not be read."""
