"""Tests for jton.json_codec."""

import io
import logging
import math
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from jton.errors import InvalidArgumentError, JtonIOError, SerializationError
from jton.json_codec import JsonReader, JsonWriter, parse_json, to_json
from jton.model import JtonArray, JtonObject, JtonPrimitive, Null
from jton.numeric import LazyNumber
from jton.options import JsonOptions


# ---------------------------------------------------------------------------
# Reader: scalars
# ---------------------------------------------------------------------------

class TestReadScalars:
    def test_literals(self):
        assert parse_json("null") is Null
        assert parse_json("true") == JtonPrimitive(True)
        assert parse_json(" false ") == JtonPrimitive(False)

    def test_number_is_lazy(self):
        value = parse_json("-12.5e1").get_primitive_value()
        assert isinstance(value, LazyNumber)
        assert str(value) == "-12.5e1"
        assert float(value) == -125.0

    def test_big_number_keeps_precision(self):
        value = parse_json("123456789012345678901234567890.000000000000000001")
        assert value.get_as_decimal() == Decimal("123456789012345678901234567890.000000000000000001")

    def test_strings_and_escapes(self):
        assert parse_json(r'"a\tb\n\"c\"\\\/"').get_as_string() == 'a\tb\n"c"\\/'
        assert parse_json(r"'it\'s'").get_as_string() == "it's"
        assert parse_json(r'"é\b\f\r"').get_as_string() == "é\b\f\r"

    def test_surrogate_pair_escape(self):
        assert parse_json(r'"\ud83d\ude00"').get_as_string() == "\U0001F600"

    def test_raw_control_characters_are_dropped(self):
        assert parse_json('"a\x01b"').get_as_string() == "ab"

    def test_byte_order_mark(self):
        assert parse_json("\ufeff[1]") == JtonArray([1])


# ---------------------------------------------------------------------------
# Reader: containers and extensions
# ---------------------------------------------------------------------------

class TestReadContainers:
    def test_object_order(self):
        obj = parse_json('{"b": 1, "a": [true, null], "c": {}}')
        assert list(obj.keys()) == ["b", "a", "c"]
        assert obj.get("a") == JtonArray([True, None])
        assert obj.get("c") == JtonObject()

    def test_comments_and_single_quotes(self):
        assert parse_json("{ // comment\n 'a': 1 }") == JtonObject({"a": 1})

    def test_block_comment(self):
        assert parse_json("/* head **/ [1, /* mid */ 2]") == JtonArray([1, 2])

    def test_bare_keys(self):
        assert parse_json("{name: 'x', _id2: 3}") == JtonObject({"name": "x", "_id2": 3})

    def test_dollar_in_bare_keys(self):
        assert parse_json("{$ref: 1, a$b: 2}") == JtonObject({"$ref": 1, "a$b": 2})

    def test_empty_quoted_key(self):
        assert parse_json('{"": 1}').get_as_object().has("")

    def test_trailing_comma_tolerated(self):
        assert parse_json("[1, 2,]") == JtonArray([1, 2])

    def test_duplicate_key_last_wins(self):
        assert parse_json('{"a": 1, "a": 2}') == JtonObject({"a": 2})


# ---------------------------------------------------------------------------
# Reader: errors
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "text",
    [
        "",
        '"unterminated',
        "'also unterminated",
        "[1, 2",
        "{a: 1",
        "{1a: 2}",
        "{a 1}",
        "nul",
        "tru",
        "[1 2]",
        "@",
        "1.2.3",
        "/* open",
        "/ x",
        r'"\q"',
        r'"\u12"',
        "[1] [2]",
    ],
)
def test_malformed_input(text):
    with pytest.raises(SerializationError):
        parse_json(text)


def test_error_carries_line_number():
    with pytest.raises(SerializationError) as info:
        parse_json('{\n  "a": 1,\n  "b": @\n}')
    assert info.value.line == 3
    assert "(line 3)" in str(info.value)


def test_error_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="jton.json_codec"):
        with pytest.raises(SerializationError):
            parse_json("[1,\n@]")
    assert "line 2" in caplog.text


def test_reads_bytes_with_charset():
    data = '{"k": "é"}'.encode("latin-1")
    reader = JsonReader(JsonOptions(charset="latin-1"))
    assert reader.read(io.BytesIO(data)).get_as_object().get("k").get_as_string() == "é"


def test_undecodable_bytes():
    with pytest.raises(SerializationError):
        JsonReader().read(io.BytesIO(b'"\xff\xfe"'))


def test_read_none_stream():
    with pytest.raises(InvalidArgumentError):
        JsonReader().read(None)


class _BrokenStream(io.RawIOBase):
    def readable(self):
        return True

    def readinto(self, buffer):
        raise OSError("disk on fire")


def test_io_failure_is_distinct():
    with pytest.raises(JtonIOError):
        JsonReader().read(_BrokenStream())


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

class TestWrite:
    def test_compact(self):
        obj = JtonObject({"a": 1, "b": [True, None, "x"], "c": {}})
        assert to_json(obj) == '{a: 1, b: [true, null, "x"], c: {}}'

    def test_dollar_keys_stay_bare(self):
        assert to_json(JtonObject({"$ref": 1})) == "{$ref: 1}"

    def test_always_quote_keys(self):
        assert to_json(JtonObject({"a": 1}), always_quote_keys=True) == '{"a": 1}'

    def test_non_identifier_keys_are_quoted(self):
        assert to_json(JtonObject({"a b": 1, "1x": 2, 'q"': 3})) == '{"a b": 1, "1x": 2, "q\\"": 3}'

    def test_indent(self):
        obj = JtonObject({"a": [1, 2], "b": {}, "c": []})
        assert to_json(obj, indent=2) == (
            "{\n"
            "  a: [\n"
            "    1,\n"
            "    2\n"
            "  ],\n"
            "  b: {},\n"
            "  c: []\n"
            "}"
        )

    def test_string_escapes(self):
        assert to_json(JtonPrimitive('t\tn\n"\\\x01')) == '"t\\tn\\n\\"\\\\\\u0001"'

    def test_charset_escapes(self):
        writer = JsonWriter(JsonOptions(charset="ascii"))
        assert writer.write_string(JtonPrimitive("é\U0001F600")) == '"\\u00e9\\ud83d\\ude00"'

    def test_utf8_passes_through(self):
        assert to_json(JtonPrimitive("é")) == '"é"'

    def test_numbers(self):
        arr = JtonArray([1, 2.5, Decimal("1.10"), LazyNumber("7e2"), 10**30])
        assert to_json(arr) == "[1, 2.5, 1.10, 7e2, " + str(10**30) + "]"

    def test_temporals_are_quoted(self):
        arr = JtonArray([date(2024, 1, 2), datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)])
        assert to_json(arr) == '["2024-01-02", "2024-01-02T03:04:05Z"]'

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, Decimal("NaN"), Decimal("Infinity")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(SerializationError):
            to_json(JtonObject({"x": value}))

    def test_transient_members_skipped(self):
        obj = JtonObject({"a": 1}).set_transient("secret", object())
        obj.set("b", 2)
        assert to_json(obj) == "{a: 1, b: 2}"

    def test_transient_array_items_skipped(self):
        arr = JtonArray([1, JtonPrimitive.transient(object()), 2])
        assert to_json(arr) == "[1, 2]"

    def test_transient_root_rejected(self):
        with pytest.raises(SerializationError):
            to_json(JtonPrimitive.transient(object()))

    def test_write_to_binary_stream(self):
        buffer = io.BytesIO()
        JsonWriter().write(JtonObject({"k": "é"}), buffer)
        assert buffer.getvalue() == '{k: "é"}'.encode("utf-8")

    def test_write_to_text_stream(self):
        buffer = io.StringIO()
        JsonWriter(JsonOptions(indent=1)).write(JtonArray([1]), buffer)
        assert buffer.getvalue() == "[\n 1\n]"

    def test_write_none(self):
        with pytest.raises(InvalidArgumentError):
            to_json(None)
        with pytest.raises(InvalidArgumentError):
            JsonWriter().write(Null, None)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------

def test_round_trip():
    doc = JtonObject(
        {
            "name": "café \U0001F600",
            "count": 3,
            "ratio": 0.25,
            "big": 10**40,
            "exact": Decimal("0.1"),
            "flags": [True, False, None],
            "nested": {"empty": [], "obj": {}, "quote": 'say "hi"\\'},
            "with space": "x",
        }
    )
    for indent in (0, 4):
        for charset in ("utf-8", "ascii"):
            writer = JsonWriter(JsonOptions(charset=charset, indent=indent))
            assert parse_json(writer.write_string(doc)) == doc
