"""Document tree for jton: elements, primitives, objects, arrays and Null."""

from __future__ import annotations

import math
from collections.abc import ItemsView, Iterable, Iterator, KeysView, Mapping, ValuesView
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from .errors import (
    CyclicReferenceError,
    InvalidArgumentError,
    JtonTypeError,
    SerializationError,
)
from .numeric import LazyNumber, is_integral, is_number, parse_decimal
from .temporal import (
    Timestamp,
    ensure_aware,
    is_temporal,
    parse_date,
    parse_datetime,
    parse_time,
    parse_timestamp,
    print_temporal,
)

# Marks an accessor called without a default.
_REQUIRED: Any = object()

# Errors an accessor turns into its default.
_COERCION_ERRORS = (TypeError, ValueError, ArithmeticError, IndexError)

_NAN_HASH = hash("jton.nan")
_TRANSIENT_HASH = hash("jton.transient")


# ---------------------------------------------------------------------------
# JtonElement
# ---------------------------------------------------------------------------

class JtonElement:
    """A node of a document tree.

    Exactly one of :meth:`is_object`, :meth:`is_array`, :meth:`is_primitive`
    and :meth:`is_null` is true for any element.

    Every ``get_as_*`` accessor takes an optional *default*. Without it a
    mismatch raises (``JtonTypeError`` for the wrong kind of element,
    ``ValueError`` for text that does not parse); with it the default is
    returned instead.
    """

    __slots__ = ()

    def deep_copy(self) -> JtonElement:
        """Return a copy sharing no mutable containers with this element."""
        raise NotImplementedError

    # -- Variant checks -------------------------------------------------

    def is_object(self) -> bool:
        return isinstance(self, JtonObject)

    def is_array(self) -> bool:
        return isinstance(self, JtonArray)

    def is_primitive(self) -> bool:
        return isinstance(self, JtonPrimitive)

    def is_null(self) -> bool:
        return isinstance(self, JtonNull)

    def is_transient(self) -> bool:
        return False

    # -- Container casts ------------------------------------------------

    def get_as_object(self, default: Any = _REQUIRED) -> JtonObject:
        if isinstance(self, JtonObject):
            return self
        return self._mismatch("JtonObject", default)

    def get_as_array(self, default: Any = _REQUIRED) -> JtonArray:
        if isinstance(self, JtonArray):
            return self
        return self._mismatch("JtonArray", default)

    def get_as_primitive(self, default: Any = _REQUIRED) -> JtonPrimitive:
        if isinstance(self, JtonPrimitive):
            return self
        return self._mismatch("JtonPrimitive", default)

    def _mismatch(self, kind: str, default: Any) -> Any:
        if default is _REQUIRED:
            raise JtonTypeError(f"This is not a {kind}: {self!r}")
        return default

    # -- Scalar accessors -----------------------------------------------

    def get_as_boolean(self, default: Any = _REQUIRED) -> bool:
        """Booleans as-is; any other value is true only if it reads ``"true"``
        (case-insensitive)."""
        return self._coerce("boolean", default)

    def get_as_number(self, default: Any = _REQUIRED) -> int | float | Decimal | LazyNumber:
        """The numeric payload, or a :class:`LazyNumber` over string text."""
        return self._coerce("number", default)

    def get_as_string(self, default: Any = _REQUIRED) -> str:
        return self._coerce("string", default)

    def get_as_float(self, default: Any = _REQUIRED) -> float:
        return self._coerce("float", default)

    def get_as_int(self, default: Any = _REQUIRED) -> int:
        """Integer value; fractional numbers are truncated toward zero."""
        return self._coerce("int", default)

    def get_as_decimal(self, default: Any = _REQUIRED) -> Decimal:
        return self._coerce("decimal", default)

    def get_as_char(self, default: Any = _REQUIRED) -> str:
        """First character of the string form."""
        return self._coerce("char", default)

    def get_as_datetime(self, default: Any = _REQUIRED) -> datetime:
        return self._coerce("datetime", default)

    def get_as_date(self, default: Any = _REQUIRED) -> date:
        """Date only; a datetime is truncated to its date."""
        return self._coerce("date", default)

    def get_as_time(self, default: Any = _REQUIRED) -> time:
        """Time only; a datetime is truncated to its time of day."""
        return self._coerce("time", default)

    def get_as_timestamp(self, default: Any = _REQUIRED) -> Timestamp:
        return self._coerce("timestamp", default)

    def get_primitive_value(self, default: Any = _REQUIRED) -> Any:
        """The raw payload (the host value for a transient primitive)."""
        return self._coerce("value", default)

    def _coerce(self, kind: str, default: Any) -> Any:
        try:
            return self._value_as(kind)
        except _COERCION_ERRORS:
            if default is _REQUIRED:
                raise
            return default

    def _value_as(self, kind: str) -> Any:
        raise JtonTypeError(f"{type(self).__name__} has no {kind} value")

    # -- Text form ------------------------------------------------------

    def to_string(self, indent: int = 2) -> str:
        """Pretty-printed JSON text of this element."""
        from .json_codec import to_json
        return to_json(self, indent=indent, always_quote_keys=True)

    def __str__(self) -> str:
        from .json_codec import to_json
        try:
            return to_json(self, always_quote_keys=True)
        except SerializationError:
            return repr(self)


# ---------------------------------------------------------------------------
# Null
# ---------------------------------------------------------------------------

class JtonNull(JtonElement):
    """The null element. There is exactly one instance, :data:`Null`."""

    __slots__ = ()

    _instance: JtonNull | None = None

    def __new__(cls) -> JtonNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def deep_copy(self) -> JtonNull:
        return self

    def __copy__(self) -> JtonNull:
        return self

    def __deepcopy__(self, memo: dict) -> JtonNull:
        return self

    def __reduce__(self) -> str:
        return "Null"

    def __repr__(self) -> str:
        return "Null"

    def __bool__(self) -> bool:
        return False


Null = JtonNull()


# ---------------------------------------------------------------------------
# Primitive
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Opaque:
    """Host value carried by a transient primitive."""

    value: Any


def _normalize(value: Any) -> Any:
    if value is None:
        raise InvalidArgumentError("primitive value is None")
    if isinstance(value, (bool, str, int, float, Decimal, LazyNumber)):
        return value
    if isinstance(value, Timestamp):
        return Timestamp.from_datetime(ensure_aware(value))
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, (date, time)):
        return value
    raise InvalidArgumentError(f"unsupported primitive value: {type(value).__name__}")


def _numbers_equal(a: Any, b: Any) -> bool:
    try:
        x, y = float(a), float(b)
    except OverflowError:
        return _as_decimal(a) == _as_decimal(b)
    if math.isinf(x) or math.isinf(y):
        # "1e400" reads as an infinite float but is a finite number
        return _as_decimal(a) == _as_decimal(b)
    return x == y or (math.isnan(x) and math.isnan(y))


def _number_hash(value: Any) -> int:
    # Numbers that compare equal as floats must hash alike, whatever their kind.
    try:
        f = float(value)
    except OverflowError:
        return hash(_as_decimal(value))
    if math.isnan(f):
        return _NAN_HASH
    if math.isinf(f) and not isinstance(value, float):
        return hash(_as_decimal(value))
    return hash(f)


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, LazyNumber):
        return value.decimal_value
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    return parse_decimal(str(value))


class JtonPrimitive(JtonElement):
    """A leaf holding one scalar value.

    Accepted payloads: ``bool``, ``str``, ``int``, ``float``, ``Decimal``,
    :class:`LazyNumber`, ``datetime`` (naive values are taken as UTC),
    ``date``, ``time`` and :class:`Timestamp`. Anything else is rejected
    with :class:`InvalidArgumentError`, unless the primitive is created with
    :meth:`transient`.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Any) -> None:
        self._value = _normalize(value)

    @classmethod
    def transient(cls, value: Any) -> JtonPrimitive:
        """Wrap an arbitrary host value.

        Transient primitives are left out by the writers and are shared,
        not copied, by :meth:`deep_copy`.
        """
        primitive = cls.__new__(cls)
        primitive._value = Opaque(value)
        return primitive

    def deep_copy(self) -> JtonPrimitive:
        return self

    def is_transient(self) -> bool:
        return isinstance(self._value, Opaque)

    @property
    def value(self) -> Any:
        if isinstance(self._value, Opaque):
            return self._value.value
        return self._value

    # -- Payload checks -------------------------------------------------

    def is_boolean(self) -> bool:
        return isinstance(self.value, bool)

    def is_string(self) -> bool:
        return isinstance(self.value, str)

    def is_number(self) -> bool:
        return is_number(self.value)

    def is_datetime(self) -> bool:
        return isinstance(self.value, datetime)

    def is_date(self) -> bool:
        v = self.value
        return isinstance(v, date) and not isinstance(v, datetime)

    def is_time(self) -> bool:
        return isinstance(self.value, time)

    def is_timestamp(self) -> bool:
        return isinstance(self.value, Timestamp)

    # -- Conversions ----------------------------------------------------

    def _value_as(self, kind: str) -> Any:
        return getattr(self, f"_as_{kind}")()

    def _as_value(self) -> Any:
        return self.value

    def _as_boolean(self) -> bool:
        v = self.value
        if isinstance(v, bool):
            return v
        return self._as_string().lower() == "true"

    def _as_number(self) -> Any:
        v = self.value
        if is_number(v):
            return v
        if isinstance(v, str):
            return LazyNumber(v)
        raise JtonTypeError(f"not a number: {v!r}")

    def _as_string(self) -> str:
        v = self.value
        if isinstance(v, str):
            return v
        if isinstance(v, bool):
            return "true" if v else "false"
        if is_number(v):
            return str(v)
        if is_temporal(v):
            return print_temporal(v)
        raise JtonTypeError(f"not a string: {v!r}")

    def _as_float(self) -> float:
        v = self.value
        return float(v) if is_number(v) else float(self._as_string())

    def _as_int(self) -> int:
        v = self.value
        return int(v) if is_number(v) else int(self._as_string())

    def _as_decimal(self) -> Decimal:
        v = self.value
        if isinstance(v, (Decimal, LazyNumber)) or is_integral(v):
            return _as_decimal(v)
        return parse_decimal(self._as_string())

    def _as_char(self) -> str:
        return self._as_string()[0]

    def _as_datetime(self) -> datetime:
        v = self.value
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime.combine(v, time(), tzinfo=timezone.utc)
        return parse_datetime(self._as_string())

    def _as_date(self) -> date:
        v = self.value
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        return parse_date(self._as_string())

    def _as_time(self) -> time:
        v = self.value
        if isinstance(v, datetime):
            return v.timetz()
        if isinstance(v, time):
            return v
        return parse_time(self._as_string())

    def _as_timestamp(self) -> Timestamp:
        v = self.value
        if isinstance(v, Timestamp):
            return v
        if isinstance(v, (datetime, date)):
            return Timestamp.from_datetime(self._as_datetime())
        return parse_timestamp(self._as_string())

    # -- Identity -------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, JtonPrimitive):
            return NotImplemented
        if self.is_transient() != other.is_transient():
            return False
        a, b = self.value, other.value
        if isinstance(a, bool) or isinstance(b, bool):
            return type(a) is type(b) and a == b
        if is_integral(a) and is_integral(b):
            return a == b
        if is_number(a) and is_number(b):
            return _numbers_equal(a, b)
        return bool(a == b)

    def __hash__(self) -> int:
        if self.is_transient():
            return _TRANSIENT_HASH
        v = self._value
        if is_number(v):
            return _number_hash(v)
        return hash(v)

    def __repr__(self) -> str:
        if self.is_transient():
            return f"JtonPrimitive.transient({self.value!r})"
        return f"JtonPrimitive({self._value!r})"


# ---------------------------------------------------------------------------
# Object
# ---------------------------------------------------------------------------

class JtonObject(JtonElement):
    """An insertion-ordered mapping of string keys to elements.

    Reading a missing key gives :data:`Null`. Host values are converted with
    :func:`to_element` on the way in.
    """

    __slots__ = ("_members",)

    def __init__(self, members: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None) -> None:
        self._members: dict[str, JtonElement] = {}
        if members is not None:
            self.update(members)

    def deep_copy(self) -> JtonObject:
        result = JtonObject()
        for key, value in self._members.items():
            result._members[key] = value.deep_copy()
        return result

    # -- Members --------------------------------------------------------

    def set(self, key: str, value: Any) -> JtonObject:
        """Store *value* under *key*, replacing any previous member."""
        if value is self:
            raise CyclicReferenceError()
        if not isinstance(key, str):
            raise InvalidArgumentError(f"object keys must be strings, got {type(key).__name__}")
        self._members[key] = to_element(value)
        return self

    def set_transient(self, key: str, value: Any) -> JtonObject:
        """Store a host value that the writers leave out."""
        if value is self:
            raise CyclicReferenceError()
        return self.set(key, JtonPrimitive.transient(value))

    def get(self, key: str) -> JtonElement:
        return self._members.get(key, Null)

    def has(self, key: str) -> bool:
        return key in self._members

    def remove(self, key: str) -> JtonElement:
        """Remove *key* and return its element (:data:`Null` if absent)."""
        return self._members.pop(key, Null)

    def update(self, members: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
        pairs = members.items() if isinstance(members, Mapping) else members
        for key, value in pairs:
            self.set(key, value)

    def clear(self) -> None:
        self._members.clear()

    def keys(self) -> KeysView[str]:
        return self._members.keys()

    def values(self) -> ValuesView[JtonElement]:
        return self._members.values()

    def items(self) -> ItemsView[str, JtonElement]:
        return self._members.items()

    # -- Python protocols -----------------------------------------------

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __contains__(self, key: object) -> bool:
        return key in self._members

    def __getitem__(self, key: str) -> JtonElement:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        del self._members[key]

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, JtonObject):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(frozenset(self._members.items()))

    def __repr__(self) -> str:
        return f"JtonObject({self._members!r})"


# ---------------------------------------------------------------------------
# Array
# ---------------------------------------------------------------------------

class JtonArray(JtonElement):
    """An ordered list of elements.

    ``get`` past the end gives :data:`Null`; ``set`` past the end pads the
    gap with :data:`Null`.
    """

    __slots__ = ("_elements",)

    def __init__(self, elements: Iterable[Any] | None = None) -> None:
        self._elements: list[JtonElement] = []
        if elements is not None:
            self.extend(elements)

    def deep_copy(self) -> JtonArray:
        result = JtonArray()
        result._elements = [element.deep_copy() for element in self._elements]
        return result

    def _check(self, value: Any) -> None:
        if value is self:
            raise CyclicReferenceError()

    # -- Elements -------------------------------------------------------

    def add(self, value: Any) -> JtonArray:
        self._check(value)
        self._elements.append(to_element(value))
        return self

    def insert(self, index: int, value: Any) -> None:
        self._check(value)
        self._elements.insert(index, to_element(value))

    def set(self, index: int, value: Any) -> JtonElement:
        """Store *value* at *index* and return the element it replaced."""
        self._check(value)
        if index < 0:
            raise IndexError(f"array index out of range: {index}")
        element = to_element(value)
        missing = index + 1 - len(self._elements)
        if missing > 0:
            self._elements.extend([Null] * missing)
        previous = self._elements[index]
        self._elements[index] = element
        return previous

    def get(self, index: int) -> JtonElement:
        if 0 <= index < len(self._elements):
            return self._elements[index]
        return Null

    def pop(self, index: int = -1) -> JtonElement:
        return self._elements.pop(index)

    def remove(self, element: Any) -> bool:
        """Remove the first equal element; False if there was none."""
        try:
            self._elements.remove(to_element(element))
        except ValueError:
            return False
        return True

    def contains(self, element: Any) -> bool:
        return to_element(element) in self._elements

    def index_of(self, element: Any) -> int:
        try:
            return self._elements.index(to_element(element))
        except ValueError:
            return -1

    def extend(self, elements: Iterable[Any]) -> None:
        for value in list(elements):
            self.add(value)

    def clear(self) -> None:
        self._elements.clear()

    # -- Python protocols -----------------------------------------------

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[JtonElement]:
        return iter(self._elements)

    def __contains__(self, element: object) -> bool:
        return self.contains(element)

    def __getitem__(self, index: int) -> JtonElement:
        return self.get(index)

    def __setitem__(self, index: int, value: Any) -> None:
        self.set(index, value)

    def __delitem__(self, index: int) -> None:
        del self._elements[index]

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, JtonArray):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(tuple(self._elements))

    def __repr__(self) -> str:
        return f"JtonArray({self._elements!r})"


# ---------------------------------------------------------------------------
# Host value conversion
# ---------------------------------------------------------------------------

def to_element(value: Any) -> JtonElement:
    """Convert a host value to an element.

    - elements are returned unchanged (no copy)
    - ``None`` → :data:`Null`
    - mappings → :class:`JtonObject`, lists and tuples → :class:`JtonArray`
    - anything else → :class:`JtonPrimitive`
    """
    if value is None:
        return Null
    if isinstance(value, JtonElement):
        return value
    if isinstance(value, Mapping):
        return JtonObject(value)
    if isinstance(value, (list, tuple)):
        return JtonArray(value)
    return JtonPrimitive(value)
