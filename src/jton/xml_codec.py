"""XML reader and writer.

Every object member becomes a child element named after its key. Leaves carry
a ``type`` attribute naming the payload kind; containers carry none. An array
is written by repeating its key once per item, and the reader turns sibling
elements that share a name back into an array::

    <?xml version='1.0' encoding='utf-8'?>
    <jton-object>
      <name type="string">x</name>
      <tags type="string">a</tags>
      <tags type="string">b</tags>
      <size type="int">3</size>
    </jton-object>

A single-item array therefore reads back as a plain member, and an empty
array as an empty object.
"""

from __future__ import annotations

import io
import logging
import os
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import IO, Any, Callable

from lxml import etree

from .errors import InvalidArgumentError, JtonIOError, SerializationError
from .json_codec import encodable, format_number, is_binary_stream, join_surrogates, unicode_escape
from .model import JtonArray, JtonElement, JtonNull, JtonObject, JtonPrimitive, Null
from .numeric import LazyNumber, is_number, parse_decimal
from .options import DEFAULT_ROOT_NAME, XmlOptions
from .temporal import (
    Timestamp,
    parse_date,
    parse_datetime,
    parse_time,
    parse_timestamp,
    print_temporal,
)

logger = logging.getLogger(__name__)

_BUFFER_SIZE = 2048
_TYPE_ATTRIBUTE = "type"

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_UNESCAPES = {"t": "\t", "n": "\n"}


# ---------------------------------------------------------------------------
# Type tags
# ---------------------------------------------------------------------------

def _ranged_int(bits: int) -> Callable[[str], int]:
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def decode(text: str) -> int:
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"{value} out of range for a {bits}-bit integer")
        return value

    return decode


def _decode_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered not in ("true", "false"):
        raise ValueError(f"not a boolean: {text!r}")
    return lowered == "true"


_DECODERS: dict[str, Callable[[str], Any]] = {
    "string": str,
    "char": lambda text: text[0],
    "byte": _ranged_int(8),
    "short": _ranged_int(16),
    "int": _ranged_int(32),
    "long": _ranged_int(64),
    "float": float,
    "double": float,
    "bigint": int,
    "bigdecimal": parse_decimal,
    "number": LazyNumber,
    "bool": _decode_bool,
    "boolean": _decode_bool,
    "date": parse_datetime,
    "sqldate": parse_date,
    "sqltime": parse_time,
    "sqltstamp": parse_timestamp,
}


def type_tag(value: Any) -> str:
    """The ``type`` attribute written for a primitive payload."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        if -(1 << 31) <= value < (1 << 31):
            return "int"
        if -(1 << 63) <= value < (1 << 63):
            return "long"
        return "bigint"
    if isinstance(value, float):
        return "double"
    if isinstance(value, Decimal):
        return "bigdecimal"
    if isinstance(value, LazyNumber):
        return "number"
    # Timestamp before datetime before date
    if isinstance(value, Timestamp):
        return "sqltstamp"
    if isinstance(value, datetime):
        return "date"
    if isinstance(value, date):
        return "sqldate"
    if isinstance(value, time):
        return "sqltime"
    if isinstance(value, str):
        return "string"
    raise SerializationError(f"No XML type for {type(value).__name__}.")


def _unescape(text: str) -> str:
    if "\\" not in text:
        return text

    def replace(match: re.Match) -> str:
        token = match.group(1)
        if len(token) == 5:
            return chr(int(token[1:], 16))
        return _UNESCAPES.get(token, token)

    return join_surrogates(_ESCAPE_RE.sub(replace, text))


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class _Node:
    """An element seen by the reader, converted once the document is complete."""

    __slots__ = ("name", "type", "text", "children", "repeated")

    def __init__(self, name: str, type_: str | None) -> None:
        self.name = name
        self.type = type_
        self.text: str | None = None
        self.children: list[_Node] = []
        # child name -> seen more than once
        self.repeated: dict[str, bool] = {}

    def add(self, child: _Node) -> None:
        self.children.append(child)
        self.repeated[child.name] = child.name in self.repeated

    def to_element(self) -> JtonElement:
        if self.type is None:
            obj = JtonObject()
            for child in self.children:
                if self.repeated[child.name]:
                    array = obj.get(child.name)
                    if not isinstance(array, JtonArray):
                        array = JtonArray()
                        obj.set(child.name, array)
                    array.add(child.to_element())
                else:
                    obj.set(child.name, child.to_element())
            return obj
        return self._decode()

    def _decode(self) -> JtonElement:
        tag = self.type.strip().lower()
        if tag == "null":
            return Null
        decoder = _DECODERS.get(tag)
        if decoder is None:
            raise SerializationError(f"Unknown type: {self.type}")
        text = _unescape(self.text or "")
        try:
            return JtonPrimitive(decoder(text))
        except (ValueError, IndexError, ArithmeticError) as exc:
            raise SerializationError(f"Invalid {tag} value in <{self.name}>: {exc}") from exc


def _type_of(elem: etree._Element) -> str | None:
    for name, value in elem.attrib.items():
        if etree.QName(name).localname.lower() == _TYPE_ATTRIBUTE:
            return value
    return None


class XmlReader:
    """Reads a document written by :class:`XmlWriter` (or shaped like one)."""

    def __init__(self, options: XmlOptions | None = None) -> None:
        self.options = options or XmlOptions()

    def read(self, stream: IO[Any]) -> JtonElement:
        if stream is None:
            raise InvalidArgumentError("stream is None")
        try:
            root = self._parse(stream)
        except etree.XMLSyntaxError as exc:
            logger.debug("XML read failed at line %s: %s", exc.lineno, exc.msg)
            raise SerializationError(str(exc.msg), exc.lineno) from exc
        except UnicodeError as exc:
            raise SerializationError(f"Cannot decode input: {exc}") from exc
        except OSError as exc:
            raise JtonIOError(f"XML read failed: {exc}") from exc
        return root.to_element()

    def read_string(self, text: str) -> JtonElement:
        if text is None:
            raise InvalidArgumentError("text is None")
        return self.read(io.StringIO(text))

    def _parse(self, stream: IO[Any]) -> _Node:
        first = stream.read(_BUFFER_SIZE)
        text = isinstance(first, str)
        encoding = "utf-8" if text else self.options.charset
        parser = etree.XMLPullParser(
            events=("start", "end"),
            encoding=encoding,
            resolve_entities=False,
            no_network=True,
        )
        stack: list[_Node] = []
        root: _Node | None = None

        def drain() -> None:
            nonlocal root
            for event, elem in parser.read_events():
                if event == "start":
                    node = _Node(etree.QName(elem).localname, _type_of(elem))
                    if stack:
                        stack[-1].add(node)
                    else:
                        root = node
                    stack.append(node)
                else:
                    node = stack.pop()
                    # whitespace-only text is layout inside containers, content in typed leaves
                    if elem.text and (node.type is not None or not elem.text.isspace()):
                        node.text = elem.text
                    elem.clear(keep_tail=True)

        chunk = first
        while chunk:
            parser.feed(chunk.encode(encoding) if text else chunk)
            drain()
            chunk = stream.read(_BUFFER_SIZE)
        parser.close()
        drain()

        if root is None:
            raise SerializationError("Document has no root element.")
        logger.debug("read XML document <%s>", root.name)
        return root


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class XmlWriter:
    """Writes a :class:`JtonObject` as an XML document."""

    def __init__(self, options: XmlOptions | None = None) -> None:
        self.options = options or XmlOptions()

    def write(self, obj: JtonObject, stream: IO[Any]) -> None:
        if stream is None:
            raise InvalidArgumentError("stream is None")
        data = self.to_bytes(obj)
        try:
            if is_binary_stream(stream):
                stream.write(data)
            else:
                stream.write(data.decode(self.options.charset))
            stream.flush()
        except OSError as exc:
            raise JtonIOError(f"XML write failed: {exc}") from exc

    def write_string(self, obj: JtonObject) -> str:
        return self.to_bytes(obj).decode(self.options.charset)

    def to_bytes(self, obj: JtonObject) -> bytes:
        if obj is None:
            raise InvalidArgumentError("object is None")
        if not isinstance(obj, JtonObject):
            raise InvalidArgumentError(f"XML documents hold a JtonObject, not {type(obj).__name__}")
        buffer = io.BytesIO()
        try:
            with etree.xmlfile(buffer, encoding=self.options.charset) as xf:
                xf.write_declaration()
                self._write_object(xf, self.options.root_name, obj)
        except (ValueError, etree.LxmlError) as exc:
            raise SerializationError(f"Cannot write XML: {exc}") from exc
        logger.debug("wrote XML document <%s> with %d members", self.options.root_name, len(obj))
        return buffer.getvalue()

    # -- Tree walk ------------------------------------------------------

    def _write_object(self, xf: Any, name: str, obj: JtonObject) -> None:
        members = [(key, value) for key, value in obj.items() if not value.is_transient()]
        if not members:
            xf.write(etree.Element(name))
            return
        with xf.element(name):
            for key, value in members:
                self._write_member(xf, key, value)

    def _write_member(self, xf: Any, key: str, element: JtonElement) -> None:
        if element.is_transient():
            return
        if isinstance(element, JtonNull):
            xf.write(etree.Element(key, type="null"))
        elif isinstance(element, JtonPrimitive):
            value = element.value
            leaf = etree.Element(key, type=type_tag(value))
            leaf.text = self._text(value)
            xf.write(leaf)
        elif isinstance(element, JtonArray):
            if not len(element):
                xf.write(etree.Element(key))
            for item in element:
                self._write_member(xf, key, item)
        else:
            self._write_object(xf, key, element)

    def _text(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if is_number(value):
            return format_number(value)
        if isinstance(value, str):
            return self._escape(value)
        return print_temporal(value)

    def _escape(self, text: str) -> str:
        charset = self.options.charset
        out: list[str] = []
        for ch in text:
            if ch == "\\":
                out.append("\\\\")
            elif ch == "\t":
                out.append("\\t")
            elif ch == "\n":
                out.append("\\n")
            elif ch < " " or ch in "\ufffe\uffff" or not encodable(ch, charset):
                out.append(unicode_escape(ch))
            else:
                out.append(ch)
        return "".join(out)


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------

def parse_xml(text: str) -> JtonElement:
    """Parse an XML string into an element tree."""
    return XmlReader().read_string(text)


def to_xml(obj: JtonObject, *, root_name: str = DEFAULT_ROOT_NAME) -> str:
    """Serialize *obj* to an XML string."""
    return XmlWriter(XmlOptions(root_name=root_name)).write_string(obj)


def read_xml(path: str | os.PathLike, options: XmlOptions | None = None) -> JtonElement:
    """Read an XML document from the file at *path*."""
    try:
        with open(path, "rb") as stream:
            return XmlReader(options).read(stream)
    except JtonIOError:
        raise
    except OSError as exc:
        raise JtonIOError(f"Cannot read {os.fspath(path)}: {exc}") from exc


def write_xml(obj: JtonObject, path: str | os.PathLike, options: XmlOptions | None = None) -> None:
    """Write *obj* as an XML document to the file at *path*."""
    data = XmlWriter(options).to_bytes(obj)
    try:
        with open(path, "wb") as stream:
            stream.write(data)
    except OSError as exc:
        raise JtonIOError(f"Cannot write {os.fspath(path)}: {exc}") from exc
