"""Tests for jton.errors."""

from jton.errors import (
    CyclicReferenceError,
    InvalidArgumentError,
    InvalidPathError,
    JtonError,
    JtonIOError,
    JtonTypeError,
    SerializationError,
)


def test_hierarchy():
    assert issubclass(InvalidArgumentError, ValueError)
    assert issubclass(CyclicReferenceError, InvalidArgumentError)
    assert issubclass(InvalidPathError, InvalidArgumentError)
    assert issubclass(JtonTypeError, TypeError)
    assert issubclass(JtonIOError, OSError)
    for cls in (InvalidArgumentError, JtonTypeError, SerializationError, JtonIOError):
        assert issubclass(cls, JtonError)


def test_serialization_error_line():
    err = SerializationError("Unexpected character", line=4)
    assert err.message == "Unexpected character"
    assert err.line == 4
    assert str(err) == "Unexpected character (line 4)"


def test_serialization_error_without_line():
    assert str(SerializationError("bad")) == "bad"


def test_cyclic_default_message():
    assert str(CyclicReferenceError()) == "cyclic reference"
