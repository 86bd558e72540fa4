"""Tests for jton.options."""

import dataclasses

import pytest

from jton.errors import InvalidArgumentError
from jton.options import JsonOptions, XmlOptions


def test_json_defaults():
    options = JsonOptions()
    assert options.charset == "utf-8"
    assert options.always_quote_keys is False
    assert options.indent == 0


def test_xml_defaults():
    options = XmlOptions()
    assert options.charset == "utf-8"
    assert options.root_name == "jton-object"


def test_options_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        JsonOptions().indent = 2


@pytest.mark.parametrize("charset", ["no-such-charset", ""])
def test_unknown_charset(charset):
    with pytest.raises(InvalidArgumentError):
        JsonOptions(charset=charset)
    with pytest.raises(InvalidArgumentError):
        XmlOptions(charset=charset)


def test_negative_indent():
    with pytest.raises(InvalidArgumentError):
        JsonOptions(indent=-1)


@pytest.mark.parametrize("name", ["", "has space", "1starts-with-digit", "a<b"])
def test_invalid_root_name(name):
    with pytest.raises(InvalidArgumentError):
        XmlOptions(root_name=name)


def test_valid_root_name():
    assert XmlOptions(root_name="doc.v1").root_name == "doc.v1"
