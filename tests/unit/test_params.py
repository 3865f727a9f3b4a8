"""Tests for socialcards.core.params — parameter parsing and ParamSet.

Tests cover:
- Lenient parsing of ``&``/``;``/``::`` delimited parameter blocks.
- Recognition of parameter blocks versus plain titles.
- ParamSet construction from strings, pairs, mappings and query objects.
- Last-value-wins reads, overlays and canonical serialization.
"""

from __future__ import annotations

import pytest
from starlette.datastructures import QueryParams

from socialcards.core.params import ParamSet, looks_like_params, parse_entries, validate


class TestParseEntries:
    """Test parse_entries() on delimited blocks."""

    @pytest.mark.parametrize("raw", ["a=1&b=2", "a=1;b=2", "a=1::b=2"])
    def test_delimiters_are_equivalent(self, raw):
        assert dict(parse_entries(raw)) == {"a": "1", "b": "2"}

    def test_mixed_delimiters(self):
        """``&``, ``;`` and ``::`` may be mixed within one block."""
        entries = parse_entries("title=Hello;subtitle=World::bgColor=%23fff&icon=mdi:home")
        assert entries == [
            ("title", "Hello"),
            ("subtitle", "World"),
            ("bgColor", "#fff"),
            ("icon", "mdi:home"),
        ]

    def test_whitespace_is_stripped(self):
        """Keys and values lose surrounding whitespace."""
        assert parse_entries(" a = 1 ; b=2") == [("a", "1"), ("b", "2")]

    def test_only_first_equals_separates(self):
        """Further ``=`` characters belong to the value."""
        assert parse_entries("a=b=c") == [("a", "b=c")]

    def test_malformed_groups_are_dropped(self):
        """Groups without ``=``, empty keys and empty values disappear."""
        assert parse_entries("noequals&=x&a=&b=2") == [("b", "2")]

    def test_keys_are_not_decoded(self):
        """Only values are percent-decoded."""
        assert parse_entries("a%20b=c%20d") == [("a%20b", "c d")]

    def test_none_and_empty(self):
        """``None`` and empty strings parse to nothing."""
        assert parse_entries(None) == []
        assert parse_entries("") == []


class TestLooksLikeParams:
    """Test block detection."""

    def test_block_detected(self):
        assert looks_like_params("bgColor=red")
        assert looks_like_params("a=1;b=2")

    def test_plain_title_rejected(self):
        assert not looks_like_params("Hello World")
        assert not looks_like_params("")

    def test_non_strings_rejected(self):
        assert not looks_like_params(None)
        assert not looks_like_params(42)


class TestValidate:
    """Test validate() on candidate sources."""

    def test_accepted_sources(self):
        assert validate("a=1")
        assert validate({"a": "1"})
        assert validate([("a", "1")])
        assert validate(ParamSet())
        assert validate(QueryParams("a=1"))

    def test_rejected_sources(self):
        assert not validate(None)
        assert not validate(42)
        assert not validate("Hello")
        assert not validate(["abc"])
        assert not validate({1: "a"})


class TestParamSetConstruction:
    """Test the ParamSet constructors."""

    def test_from_string_plain_text_is_empty(self):
        """A plain title yields an empty set."""
        ps = ParamSet.from_string("Hello")
        assert len(ps) == 0
        assert not ps

    def test_from_mapping_skips_none(self):
        ps = ParamSet.from_mapping({"a": "1", "b": None})
        assert ps.to_dict() == {"a": "1"}

    def test_from_query_keeps_repeats_and_flags(self):
        """Repeated keys are kept and valueless flags become empty values."""
        ps = ParamSet.from_query(QueryParams("a=1&a=2&no-cache"))
        assert ps.get_all("a") == ["1", "2"]
        assert "no-cache" in ps
        assert ps.get("no-cache") == ""

    def test_of_combines_sources_in_order(self):
        """Unrecognized sources are skipped; later sources win."""
        ps = ParamSet.of("a=1", None, {"b": "2"}, [("c", "3")], "Hello", {"a": "9"})
        assert ps.to_dict() == {"a": "9", "b": "2", "c": "3"}


class TestParamSetReading:
    """Test reads and last-value-wins semantics."""

    def test_get_returns_last_value(self):
        ps = ParamSet.from_string("key=val1&key2=val2;key=val3")
        assert ps.get("key") == "val3"
        assert ps.get_all("key") == ["val1", "val3"]
        assert ps.get("missing", "fallback") == "fallback"

    def test_keys_are_unique_in_first_appearance_order(self):
        ps = ParamSet.from_string("b=1&a=2&b=3")
        assert ps.keys() == ["b", "a"]

    def test_equality_ignores_order_and_channel(self):
        """Sets with the same flattened mapping are equal."""
        a = ParamSet.from_string("a=1;b=2")
        b = ParamSet.from_mapping({"b": "2", "a": "1"})
        assert a == b
        assert a != ParamSet.from_string("a=1")


class TestParamSetTransformations:
    """Test that transformations return new, correctly shaped sets."""

    def test_set_keeps_first_position(self):
        ps = ParamSet.from_pairs([("a", "1"), ("b", "2"), ("a", "3")])
        assert ps.set("a", "9").items() == [("a", "9"), ("b", "2")]

    def test_set_new_key_appends(self):
        ps = ParamSet.from_string("a=1")
        assert ps.set("b", "2").items() == [("a", "1"), ("b", "2")]

    def test_original_is_unchanged(self):
        ps = ParamSet.from_string("a=1")
        ps.append("a", "2")
        ps.delete("a")
        assert ps.items() == [("a", "1")]

    def test_update_overlays(self):
        base = ParamSet.from_mapping({"a": "1", "b": "2"})
        result = base.update(ParamSet.from_mapping({"b": "3", "c": "4"}))
        assert result.to_dict() == {"a": "1", "b": "3", "c": "4"}

    def test_without_drops_all_values(self):
        ps = ParamSet.from_string("a=1&b=2&a=3")
        assert ps.without({"a"}).items() == [("b", "2")]

    def test_distinct_last_value_first_position(self):
        ps = ParamSet.from_string("a=1&b=2&a=3")
        assert ps.distinct().items() == [("a", "3"), ("b", "2")]


class TestParamSetSerialization:
    """Test canonical and display serialization."""

    def test_canonical_sorts_keys(self):
        ps = ParamSet.from_string("key=val1&key2=val2;key=val3")
        assert ps.distinct().to_canonical_string() == "key=val3&key2=val2"

    def test_reserved_characters_survive_reparse(self):
        """Encoded delimiters inside values parse back unchanged."""
        ps = ParamSet.from_pairs([("t", "a&b;c::d")])
        serialized = ps.to_canonical_string()
        assert serialized == "t=a%26b%3Bc%3A%3Ad"
        assert ParamSet.from_string(serialized).get("t") == "a&b;c::d"

    def test_display_keeps_insertion_order(self):
        ps = ParamSet.from_pairs([("b", "x y"), ("a", "1")])
        assert str(ps) == "b=x%20y&a=1"
