"""JSON reader and writer.

The reader is a hand-written recursive-descent parser with one character of
lookahead. On top of standard JSON it accepts ``//`` and ``/* */`` comments,
single-quoted strings and unquoted (identifier) object keys. Numbers are kept
as :class:`~jton.numeric.LazyNumber` so no precision is lost.

The writer always emits double-quoted strings; object keys are left bare when
they are identifiers, unless ``always_quote_keys`` is set. Transient members
are skipped.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
from functools import lru_cache
from typing import IO, Any, Callable

from .errors import InvalidArgumentError, JtonIOError, SerializationError
from .model import JtonArray, JtonElement, JtonNull, JtonObject, JtonPrimitive, Null
from .numeric import LazyNumber, is_finite, is_number
from .options import JsonOptions
from .temporal import print_temporal

logger = logging.getLogger(__name__)

_BUFFER_SIZE = 2048
_BOM = "\ufeff"

_READ_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "/": "/",
    '"': '"',
    "'": "'",
}

_WRITE_ESCAPES = {
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
    "\\": "\\\\",
    '"': '\\"',
}

_NUMBER_CHARS = frozenset("0123456789.eE+-")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


# ---------------------------------------------------------------------------
# Stream helpers (shared with the XML codec)
# ---------------------------------------------------------------------------

def is_binary_stream(stream: IO[Any]) -> bool:
    return isinstance(stream, (io.RawIOBase, io.BufferedIOBase))


def text_reader(stream: IO[Any], charset: str) -> IO[str]:
    """Return *stream* as a text stream, decoding bytes with *charset*."""
    if isinstance(stream.read(0), bytes):
        return codecs.getreader(charset)(stream)
    return stream


def unicode_escape(ch: str) -> str:
    """``\\uXXXX`` form of *ch*; astral characters become a surrogate pair."""
    code = ord(ch)
    if code > 0xFFFF:
        code -= 0x10000
        return f"\\u{0xD800 + (code >> 10):04x}\\u{0xDC00 + (code & 0x3FF):04x}"
    return f"\\u{code:04x}"


@lru_cache(maxsize=4096)
def encodable(ch: str, charset: str) -> bool:
    if ch < "\x80":
        return True
    try:
        ch.encode(charset)
    except UnicodeEncodeError:
        return False
    return True


def _is_bare_key(key: str) -> bool:
    """Identifiers may be written unquoted; ``$`` counts as a letter."""
    return key.replace("$", "_").isidentifier()


def join_surrogates(text: str) -> str:
    """Combine surrogate pairs produced by ``\\uXXXX`` escapes."""
    if not any("\ud800" <= ch <= "\udfff" for ch in text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class _Cursor:
    """Current character of a text stream, plus the line it sits on.

    ``c`` is ``""`` once the stream is exhausted.
    """

    __slots__ = ("_stream", "_buffer", "_pos", "c", "line")

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._buffer = ""
        self._pos = 0
        self.c = ""
        self.line = 1
        self.advance()
        if self.c == _BOM:
            self.advance()

    def advance(self) -> str:
        if self.c == "\n":
            self.line += 1
        if self._pos >= len(self._buffer):
            self._buffer = self._stream.read(_BUFFER_SIZE)
            self._pos = 0
            if not self._buffer:
                self.c = ""
                return self.c
        self.c = self._buffer[self._pos]
        self._pos += 1
        return self.c

    def error(self, message: str) -> SerializationError:
        return SerializationError(message, self.line)


def _skip_whitespace_and_comments(cur: _Cursor) -> None:
    while cur.c and (cur.c.isspace() or cur.c == "/"):
        if cur.c != "/":
            cur.advance()
            continue
        cur.advance()
        if cur.c == "/":
            while cur.c and cur.c not in "\n\r":
                cur.advance()
        elif cur.c == "*":
            cur.advance()
            previous = ""
            while cur.c and not (previous == "*" and cur.c == "/"):
                previous = cur.c
                cur.advance()
            if not cur.c:
                raise cur.error("Unterminated comment in input stream.")
            cur.advance()
        else:
            raise cur.error("Unexpected character in input stream.")


def _read_value(cur: _Cursor) -> JtonElement:
    _skip_whitespace_and_comments(cur)
    c = cur.c
    if not c:
        raise cur.error("Unexpected end of input stream.")
    if c == "n":
        _read_word(cur, "null")
        return Null
    if c == "t":
        _read_word(cur, "true")
        return JtonPrimitive(True)
    if c == "f":
        _read_word(cur, "false")
        return JtonPrimitive(False)
    if c in "\"'":
        return JtonPrimitive(_read_string(cur))
    if c in "+-" or c.isdigit():
        return JtonPrimitive(_read_number(cur))
    if c == "[":
        return _read_array(cur)
    if c == "{":
        return _read_object(cur)
    raise cur.error(f"Unexpected character {c!r} in input stream.")


def _read_word(cur: _Cursor, word: str) -> None:
    for expected in word:
        if not cur.c:
            raise cur.error(f"Incomplete {word} value in input stream.")
        if cur.c != expected:
            raise cur.error(f"Unexpected character {cur.c!r} in input stream.")
        cur.advance()


def _read_string(cur: _Cursor) -> str:
    quote = cur.c
    cur.advance()
    chars: list[str] = []
    while cur.c and cur.c != quote:
        c = cur.c
        if c == "\\":
            c = cur.advance()
            if not c:
                break
            if c == "u":
                digits = ""
                for _ in range(4):
                    d = cur.advance()
                    if d not in _HEX_DIGITS:
                        raise cur.error("Invalid unicode escape in input stream.")
                    digits += d
                chars.append(chr(int(digits, 16)))
            elif c in _READ_ESCAPES:
                chars.append(_READ_ESCAPES[c])
            else:
                raise cur.error("Unsupported escape sequence in input stream.")
        elif c >= " ":  # raw control characters are dropped
            chars.append(c)
        cur.advance()

    if cur.c != quote:
        raise cur.error("Unterminated string in input stream.")
    cur.advance()
    return join_surrogates("".join(chars))


def _read_number(cur: _Cursor) -> LazyNumber:
    chars: list[str] = []
    while cur.c and cur.c in _NUMBER_CHARS:
        chars.append(cur.c)
        cur.advance()
    text = "".join(chars)
    try:
        return LazyNumber(text)
    except ValueError:
        raise cur.error(f"Invalid number {text!r} in input stream.") from None


def _read_array(cur: _Cursor) -> JtonArray:
    array = JtonArray()
    cur.advance()
    _skip_whitespace_and_comments(cur)
    while cur.c != "]":
        if not cur.c:
            raise cur.error("Unexpected end of input stream.")
        array.add(_read_value(cur))
        _skip_whitespace_and_comments(cur)
        if cur.c == ",":
            cur.advance()
            _skip_whitespace_and_comments(cur)
        elif not cur.c:
            raise cur.error("Unexpected end of input stream.")
        elif cur.c != "]":
            raise cur.error(f"Unexpected character {cur.c!r} in input stream.")
    cur.advance()
    return array


def _read_key(cur: _Cursor) -> str:
    if cur.c in "\"'":
        return _read_string(cur)
    chars: list[str] = []
    while cur.c and cur.c not in ":/" and not cur.c.isspace():
        chars.append(cur.c)
        cur.advance()
    if not cur.c:
        raise cur.error("Unexpected end of input stream.")
    key = "".join(chars)
    if not _is_bare_key(key):
        raise cur.error(f"{key!r} is not a valid key.")
    return key


def _read_object(cur: _Cursor) -> JtonObject:
    obj = JtonObject()
    cur.advance()
    _skip_whitespace_and_comments(cur)
    while cur.c != "}":
        if not cur.c:
            raise cur.error("Unexpected end of input stream.")
        key = _read_key(cur)
        _skip_whitespace_and_comments(cur)
        if cur.c != ":":
            raise cur.error("Expected ':' after object key.")
        cur.advance()
        obj.set(key, _read_value(cur))
        _skip_whitespace_and_comments(cur)
        if cur.c == ",":
            cur.advance()
            _skip_whitespace_and_comments(cur)
        elif not cur.c:
            raise cur.error("Unexpected end of input stream.")
        elif cur.c != "}":
            raise cur.error(f"Unexpected character {cur.c!r} in input stream.")
    cur.advance()
    return obj


class JsonReader:
    """Reads one JSON document from a text or binary stream."""

    def __init__(self, options: JsonOptions | None = None) -> None:
        self.options = options or JsonOptions()

    def read(self, stream: IO[Any]) -> JtonElement:
        if stream is None:
            raise InvalidArgumentError("stream is None")
        cursor = None
        try:
            cursor = _Cursor(text_reader(stream, self.options.charset))
            element = _read_value(cursor)
            _skip_whitespace_and_comments(cursor)
            if cursor.c:
                raise cursor.error(f"Unexpected character {cursor.c!r} after JSON value.")
        except SerializationError as exc:
            logger.debug("JSON read failed at line %s: %s", exc.line, exc.message)
            raise
        except UnicodeDecodeError as exc:
            line = cursor.line if cursor is not None else None
            raise SerializationError(f"Cannot decode input as {self.options.charset}: {exc.reason}", line) from exc
        except OSError as exc:
            raise JtonIOError(f"JSON read failed: {exc}") from exc
        return element

    def read_string(self, text: str) -> JtonElement:
        if text is None:
            raise InvalidArgumentError("text is None")
        return self.read(io.StringIO(text))


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

def format_number(value: Any) -> str:
    if not is_finite(value):
        raise SerializationError(f"{value} is not a valid value.")
    if isinstance(value, float):
        return repr(value)
    return str(value)


class JsonWriter:
    """Writes an element tree as JSON text."""

    def __init__(self, options: JsonOptions | None = None) -> None:
        self.options = options or JsonOptions()

    def write(self, element: JtonElement, stream: IO[Any]) -> None:
        if stream is None:
            raise InvalidArgumentError("stream is None")
        text = self.write_string(element)
        try:
            if is_binary_stream(stream):
                stream.write(text.encode(self.options.charset))
            else:
                stream.write(text)
            stream.flush()
        except UnicodeEncodeError as exc:
            raise SerializationError(f"Cannot encode output: {exc.reason}") from exc
        except OSError as exc:
            raise JtonIOError(f"JSON write failed: {exc}") from exc

    def write_string(self, element: JtonElement) -> str:
        if element is None:
            raise InvalidArgumentError("element is None")
        parts: list[str] = []
        self._write(element, parts.append, 0)
        return "".join(parts)

    # -- Tree walk ------------------------------------------------------

    def _write(self, element: JtonElement, write: Callable[[str], Any], level: int) -> None:
        if isinstance(element, JtonNull):
            write("null")
        elif isinstance(element, JtonPrimitive):
            self._write_primitive(element, write)
        elif isinstance(element, JtonArray):
            items = [item for item in element if not item.is_transient()]
            self._write_container("[", "]", items, self._write, write, level)
        elif isinstance(element, JtonObject):
            members = [(key, value) for key, value in element.items() if not value.is_transient()]
            self._write_container("{", "}", members, self._write_member, write, level)
        else:
            raise SerializationError(f"Cannot write {type(element).__name__} as JSON.")

    def _write_primitive(self, element: JtonPrimitive, write: Callable[[str], Any]) -> None:
        if element.is_transient():
            raise SerializationError("A transient value has no JSON form.")
        value = element.value
        if isinstance(value, bool):
            write("true" if value else "false")
        elif is_number(value):
            write(format_number(value))
        elif isinstance(value, str):
            write(self._quote(value))
        else:
            write(self._quote(print_temporal(value)))

    def _write_member(self, member: tuple[str, JtonElement], write: Callable[[str], Any], level: int) -> None:
        key, value = member
        if _is_bare_key(key) and not self.options.always_quote_keys:
            write(key)
        else:
            write(self._quote(key))
        write(": ")
        self._write(value, write, level)

    def _write_container(self, open_: str, close: str, entries: list, write_entry: Callable,
                         write: Callable[[str], Any], level: int) -> None:
        indent = self.options.indent
        write(open_)
        if indent:
            padding = " " * ((level + 1) * indent)
            for i, entry in enumerate(entries):
                if i:
                    write(",")
                write("\n")
                write(padding)
                write_entry(entry, write, level + 1)
            if entries:
                write("\n")
                write(" " * (level * indent))
        else:
            for i, entry in enumerate(entries):
                if i:
                    write(", ")
                write_entry(entry, write, level + 1)
        write(close)

    def _quote(self, text: str) -> str:
        charset = self.options.charset
        out: list[str] = ['"']
        for ch in text:
            escaped = _WRITE_ESCAPES.get(ch)
            if escaped is not None:
                out.append(escaped)
            elif ch < " " or not encodable(ch, charset):
                out.append(unicode_escape(ch))
            else:
                out.append(ch)
        out.append('"')
        return "".join(out)


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def parse_json(text: str) -> JtonElement:
    """Parse a JSON string into an element tree."""
    return JsonReader().read_string(text)


def to_json(element: JtonElement, *, indent: int = 0, always_quote_keys: bool = False) -> str:
    """Serialize *element* to a JSON string."""
    options = JsonOptions(indent=indent, always_quote_keys=always_quote_keys)
    return JsonWriter(options).write_string(element)


def read_json(path: str | os.PathLike, options: JsonOptions | None = None) -> JtonElement:
    """Read a JSON document from the file at *path*."""
    try:
        with open(path, "rb") as stream:
            return JsonReader(options).read(stream)
    except JtonIOError:
        raise
    except OSError as exc:
        raise JtonIOError(f"Cannot read {os.fspath(path)}: {exc}") from exc


def write_json(element: JtonElement, path: str | os.PathLike, options: JsonOptions | None = None) -> None:
    """Write *element* as JSON to the file at *path*."""
    writer = JsonWriter(options)
    text = writer.write_string(element)
    try:
        with open(path, "wb") as stream:
            stream.write(text.encode(writer.options.charset))
    except OSError as exc:
        raise JtonIOError(f"Cannot write {os.fspath(path)}: {exc}") from exc
