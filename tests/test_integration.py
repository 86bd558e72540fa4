"""End-to-end tests: build, query, mutate and exchange documents."""

import pytest

import jton
from jton import (
    CyclicReferenceError,
    JsonOptions,
    JtonArray,
    JtonIOError,
    JtonObject,
    JtonPrimitive,
    Null,
    SerializationError,
    XmlOptions,
    path,
)


def _sample():
    doc = JtonObject()
    path.set(doc, "user.name", "Ada")
    path.set(doc, "user.roles[0]", "admin")
    path.set(doc, "user.roles[1]", "dev")
    path.set(doc, 'meta["build.id"]', 42)
    path.set(doc, "meta.ok", True)
    return doc


def test_built_document_shape():
    doc = _sample()
    assert str(doc) == (
        '{"user": {"name": "Ada", "roles": ["admin", "dev"]}, '
        '"meta": {"build.id": 42, "ok": true}}'
    )


def test_json_round_trip_pretty():
    doc = _sample()
    assert jton.parse_json(doc.to_string()) == doc


def test_xml_round_trip():
    doc = _sample()
    again = jton.parse_xml(jton.to_xml(doc))
    assert again == doc
    assert again.get("meta").get("build.id").get_as_int() == 42


def test_json_to_xml_to_json():
    doc = jton.parse_json("{a: [1, 2], b: {c: 'x'}, d: null}")
    again = jton.parse_xml(jton.to_xml(doc))
    assert jton.to_json(again) == jton.to_json(doc)


def test_files(tmp_path):
    doc = _sample()
    json_file = tmp_path / "doc.json"
    xml_file = tmp_path / "doc.xml"

    jton.write_json(doc, json_file, JsonOptions(indent=2))
    assert jton.read_json(json_file) == doc

    jton.write_xml(doc, xml_file, XmlOptions(root_name="document"))
    assert xml_file.read_bytes().startswith(b"<?xml")
    assert jton.read_xml(xml_file).get("user").get("name").get_as_string() == "Ada"


def test_missing_file(tmp_path):
    with pytest.raises(JtonIOError):
        jton.read_json(tmp_path / "nope.json")
    with pytest.raises(JtonIOError):
        jton.read_xml(tmp_path / "nope.xml")


def test_bad_data_is_not_an_io_error(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    with pytest.raises(SerializationError) as info:
        jton.read_json(bad)
    assert not isinstance(info.value, OSError)


def test_transient_survives_in_memory_only():
    doc = _sample()
    handle = object()
    doc.set_transient("handle", handle)
    assert doc.get("handle").get_primitive_value() is handle
    assert "handle" not in jton.to_json(doc)
    assert not jton.parse_json(jton.to_json(doc)).get_as_object().has("handle")


def test_cyclic_insert_leaves_document_untouched():
    doc = _sample()
    before = doc.deep_copy()
    with pytest.raises(CyclicReferenceError):
        doc.set("self", doc)
    arr = doc.get("user").get("roles").get_as_array()
    with pytest.raises(CyclicReferenceError):
        arr.add(arr)
    assert doc == before


def test_lookups_degrade_to_null():
    doc = _sample()
    assert path.get(doc, "user.name.first") is Null
    assert path.get(doc, "user.roles[5]") is Null
    assert doc.get("nope").get_as_string("fallback") == "fallback"


def test_sparse_array_serializes_nulls():
    arr = JtonArray()
    arr.set(2, "x")
    assert jton.to_json(arr) == '[null, null, "x"]'


def test_accessor_chain():
    doc = jton.parse_json('{"n": "12", "when": "2024-02-03"}')
    assert doc.get("n").get_as_int() + 1 == 13
    assert doc.get("when").get_as_date().month == 2
    assert JtonPrimitive(jton.LazyNumber("5")).get_as_int() == 5
