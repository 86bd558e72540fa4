"""Codec options."""

from __future__ import annotations

import codecs
from dataclasses import dataclass

from lxml import etree

from .errors import InvalidArgumentError

DEFAULT_CHARSET = "utf-8"
DEFAULT_ROOT_NAME = "jton-object"


def _check_charset(charset: str) -> None:
    try:
        codecs.lookup(charset)
    except (LookupError, TypeError):
        msg = f"unknown charset: {charset!r}"
        raise InvalidArgumentError(msg) from None


@dataclass(frozen=True, slots=True)
class JsonOptions:
    """Options of the JSON reader and writer.

    Attributes:
        charset: Encoding used for byte streams; also decides which
            characters the writer escapes as ``\\uXXXX``.
        always_quote_keys: Quote every object key, not only the keys that
            are not identifiers.
        indent: Spaces per nesting level; 0 writes compact output.
    """

    charset: str = DEFAULT_CHARSET
    always_quote_keys: bool = False
    indent: int = 0

    def __post_init__(self) -> None:
        _check_charset(self.charset)
        if not isinstance(self.indent, int) or self.indent < 0:
            msg = f"indent must be an int >= 0, got {self.indent!r}"
            raise InvalidArgumentError(msg)


@dataclass(frozen=True, slots=True)
class XmlOptions:
    """Options of the XML reader and writer.

    Attributes:
        charset: Encoding declared by the writer and used for text input.
        root_name: Local name of the document element the writer emits.
    """

    charset: str = DEFAULT_CHARSET
    root_name: str = DEFAULT_ROOT_NAME

    def __post_init__(self) -> None:
        _check_charset(self.charset)
        if not self.root_name:
            raise InvalidArgumentError("root_name must not be empty")
        try:
            etree.Element(self.root_name)
        except (ValueError, TypeError):
            msg = f"invalid XML root name: {self.root_name!r}"
            raise InvalidArgumentError(msg) from None
