"""jton — JSON-like document tree with JSON and XML codecs."""

from . import path
from .errors import (
    CyclicReferenceError,
    InvalidArgumentError,
    InvalidPathError,
    JtonError,
    JtonIOError,
    JtonTypeError,
    SerializationError,
)
from .model import (
    JtonArray,
    JtonElement,
    JtonNull,
    JtonObject,
    JtonPrimitive,
    Null,
    Opaque,
    to_element,
)
from .numeric import LazyNumber
from .temporal import Timestamp
from .options import JsonOptions, XmlOptions
from .json_codec import JsonReader, JsonWriter, parse_json, read_json, to_json, write_json
from .xml_codec import XmlReader, XmlWriter, parse_xml, read_xml, to_xml, write_xml

__all__ = [
    "path",
    "JtonElement",
    "JtonNull",
    "JtonPrimitive",
    "JtonObject",
    "JtonArray",
    "Null",
    "Opaque",
    "to_element",
    "LazyNumber",
    "Timestamp",
    "JsonOptions",
    "XmlOptions",
    "JsonReader",
    "JsonWriter",
    "parse_json",
    "to_json",
    "read_json",
    "write_json",
    "XmlReader",
    "XmlWriter",
    "parse_xml",
    "to_xml",
    "read_xml",
    "write_xml",
    "JtonError",
    "InvalidArgumentError",
    "CyclicReferenceError",
    "InvalidPathError",
    "JtonTypeError",
    "SerializationError",
    "JtonIOError",
]
