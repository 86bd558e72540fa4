"""Exception hierarchy for jton."""

from __future__ import annotations


class JtonError(Exception):
    """Base class for every error raised by jton."""


class InvalidArgumentError(JtonError, ValueError):
    """A required argument is missing or has an unacceptable value."""


class CyclicReferenceError(InvalidArgumentError):
    """A container was asked to hold itself."""

    def __init__(self, message: str = "cyclic reference") -> None:
        super().__init__(message)


class InvalidPathError(InvalidArgumentError):
    """A path expression could not be parsed or applied."""


class JtonTypeError(JtonError, TypeError):
    """An element was accessed as a kind it is not."""


class SerializationError(JtonError):
    """Malformed input, or a value that has no wire representation.

    ``line`` is the 1-based input line the reader stopped at, when known.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line})"


class JtonIOError(JtonError, OSError):
    """The underlying stream failed while reading or writing."""
