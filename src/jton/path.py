"""Path addressing over a document tree.

A path is a chain of segments::

    a.b[3].c
    a["quoted.key"]['it''s']

Bare segments are identifiers (letters, digits, underscore) separated by
``.``. Bracketed segments index an array when the content is an unquoted integer,
and name an object key otherwise; their content may be quoted with ``'`` or
``"`` to carry dots and brackets, a doubled quote standing for itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import CyclicReferenceError, InvalidArgumentError, InvalidPathError
from .model import JtonArray, JtonElement, JtonObject, Null, to_element


@dataclass(frozen=True, slots=True)
class PathSegment:
    key: str
    bracketed: bool = False
    quoted: bool = False

    def index(self) -> int | None:
        """The array index this segment names, or None.

        Quoted bracket content always names an object key, so ``["3"]`` is
        the key "3" while ``[3]`` is index 3.
        """
        if not self.bracketed or self.quoted:
            return None
        try:
            return int(self.key)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"[{self.key}]" if self.bracketed else self.key


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_path(path: str) -> list[PathSegment]:
    """Split *path* into segments, raising :class:`InvalidPathError` on bad syntax."""
    if path is None:
        raise InvalidArgumentError("path is None")
    n = len(path)
    if n == 0:
        raise InvalidPathError("empty path")

    segments: list[PathSegment] = []
    i = 0
    after_dot = False
    while True:
        if path[i] == "[":
            if after_dot:
                raise InvalidPathError(f"empty segment at {i} in path {path!r}")
            key, quoted, i = _read_bracketed(path, i + 1)
            segments.append(PathSegment(key, bracketed=True, quoted=quoted))
        else:
            key, i = _read_identifier(path, i)
            segments.append(PathSegment(key))
        if i == n:
            return segments

        after_dot = path[i] == "."
        if after_dot:
            i += 1
            if i == n:
                raise InvalidPathError(f"trailing '.' in path {path!r}")
        elif path[i] != "[":
            raise InvalidPathError(f"unexpected {path[i]!r} at {i} in path {path!r}")


def _read_identifier(path: str, i: int) -> tuple[str, int]:
    start = i
    while i < len(path) and path[i] not in ".[":
        ch = path[i]
        if not (ch.isalnum() or ch == "_"):
            raise InvalidPathError(f"illegal character {ch!r} at {i} in path {path!r}")
        i += 1
    if i == start:
        raise InvalidPathError(f"empty segment at {i} in path {path!r}")
    return path[start:i], i


def _read_bracketed(path: str, i: int) -> tuple[str, bool, int]:
    n = len(path)
    while i < n and path[i].isspace():
        i += 1

    if i < n and path[i] in "'\"":
        quote = path[i]
        i += 1
        chars: list[str] = []
        while True:
            if i >= n:
                raise InvalidPathError(f"unterminated quote in path {path!r}")
            ch = path[i]
            if ch == quote:
                if i + 1 < n and path[i + 1] == quote:
                    chars.append(quote)
                    i += 2
                    continue
                i += 1
                break
            _check_control(path, i)
            chars.append(ch)
            i += 1
        while i < n and path[i].isspace():
            i += 1
        if i >= n or path[i] != "]":
            raise InvalidPathError(f"unterminated bracket in path {path!r}")
        return "".join(chars), True, i + 1

    start = i
    while i < n and path[i] != "]":
        _check_control(path, i)
        i += 1
    if i >= n:
        raise InvalidPathError(f"unterminated bracket in path {path!r}")
    key = path[start:i].strip()
    if not key:
        raise InvalidPathError(f"empty segment at {start} in path {path!r}")
    return key, False, i + 1


def _check_control(path: str, i: int) -> None:
    if ord(path[i]) < 0x20:
        raise InvalidPathError(f"control character at {i} in path {path!r}")


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

def _step(element: JtonElement, segment: PathSegment) -> JtonElement:
    """Resolve one segment; anything that cannot be stepped into gives Null."""
    if isinstance(element, JtonObject):
        return element.get(segment.key)
    if isinstance(element, JtonArray):
        index = segment.index()
        return Null if index is None else element.get(index)
    return Null


def _store(container: JtonElement, segment: PathSegment, value: Any) -> None:
    if isinstance(container, JtonObject):
        container.set(segment.key, value)
        return
    if isinstance(container, JtonArray):
        index = segment.index()
        if index is None or index < 0:
            raise InvalidPathError(f"{segment} is not an array index")
        container.set(index, value)
        return
    raise InvalidPathError(f"cannot store {segment} into {container!r}")


def _walk(root: JtonElement, segments: list[PathSegment]) -> JtonElement:
    current = root
    for segment in segments:
        current = _step(current, segment)
    return current


def _check_ancestors(root: JtonElement, segments: list[PathSegment], value: JtonElement) -> None:
    node = root
    for segment in segments[:-1]:
        if node is value:
            raise CyclicReferenceError()
        node = _step(node, segment)
        if not isinstance(node, (JtonObject, JtonArray)):
            return
    if node is value:
        raise CyclicReferenceError()


def _check_root(root: Any) -> JtonElement:
    if root is None:
        raise InvalidArgumentError("root is None")
    if not isinstance(root, JtonElement):
        raise InvalidArgumentError(f"root is not an element: {type(root).__name__}")
    return root


def get(root: JtonElement, path: str) -> JtonElement:
    """Element at *path*, or :data:`Null` when any step is missing."""
    return _walk(_check_root(root), parse_path(path))


def set(root: JtonElement, path: str, value: Any) -> JtonElement:
    """Store *value* at *path*, creating missing containers along the way.

    Every intermediate step that is missing, null or a primitive is replaced
    by a new array (when the next segment is an array index) or object.
    Returns *root*. On error the tree is left as it was.
    """
    _check_root(root)
    segments = parse_path(path)
    value = to_element(value)
    _check_ancestors(root, segments, value)
    current = root
    for segment, following in zip(segments, segments[1:]):
        child = _step(current, segment)
        if not isinstance(child, (JtonObject, JtonArray)):
            index = following.index()
            child = JtonArray() if index is not None and index >= 0 else JtonObject()
            _store(current, segment, child)
        current = child
    _store(current, segments[-1], value)
    return root


def has(root: JtonElement, path: str) -> bool:
    """True when every step of *path* exists (a stored null counts)."""
    segments = parse_path(path)
    parent = _walk(_check_root(root), segments[:-1])
    last = segments[-1]
    if isinstance(parent, JtonObject):
        return parent.has(last.key)
    if isinstance(parent, JtonArray):
        index = last.index()
        return index is not None and 0 <= index < len(parent)
    return False


def remove(root: JtonElement, path: str) -> JtonElement:
    """Detach the element at *path* and return it (:data:`Null` if absent)."""
    segments = parse_path(path)
    parent = _walk(_check_root(root), segments[:-1])
    last = segments[-1]
    if isinstance(parent, JtonObject):
        return parent.remove(last.key)
    if isinstance(parent, JtonArray):
        index = last.index()
        if index is not None and 0 <= index < len(parent):
            return parent.pop(index)
    return Null
