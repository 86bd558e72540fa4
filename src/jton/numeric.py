"""Numeric kinds carried by primitives, and the lazily parsed number."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from functools import cached_property


def parse_decimal(text: str) -> Decimal:
    """Parse *text* as a Decimal, raising ``ValueError`` on malformed input."""
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"invalid number: {text!r}") from None


class LazyNumber:
    """A number kept as its source text until a concrete shape is asked for.

    Each shape (``int``, ``float``, ``Decimal``) is parsed once on first use.
    The text is checked to be numeric at construction time.
    """

    def __init__(self, text: str) -> None:
        text = text.strip()
        parse_decimal(text)
        self.text = text

    @cached_property
    def decimal_value(self) -> Decimal:
        return parse_decimal(self.text)

    @cached_property
    def int_value(self) -> int:
        try:
            return int(self.text)
        except ValueError:
            # "1.5", "2e3": truncate toward zero like any integer accessor
            return int(self.decimal_value)

    @cached_property
    def float_value(self) -> float:
        return float(self.text)

    def __int__(self) -> int:
        return self.int_value

    def __float__(self) -> float:
        return self.float_value

    def __index__(self) -> int:
        return self.int_value

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"LazyNumber({self.text!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LazyNumber):
            return self.decimal_value == other.decimal_value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.decimal_value)


NUMBER_TYPES = (int, float, Decimal, LazyNumber)


def is_number(value: object) -> bool:
    """True for every numeric payload kind; ``bool`` is not a number here."""
    return isinstance(value, NUMBER_TYPES) and not isinstance(value, bool)


def is_integral(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_finite(value: object) -> bool:
    """False for NaN and infinities of any numeric kind."""
    if isinstance(value, LazyNumber):
        return value.decimal_value.is_finite()
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return True
