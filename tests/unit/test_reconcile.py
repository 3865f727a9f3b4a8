"""Tests for socialcards.core.reconcile — merging request parameter channels.

Tests cover:
- Segment disambiguation (which segment holds the parameter block).
- Precedence: defaults < path segments < path block < query string.
- Color normalization and nested block expansion.
- Equivalence of the same card expressed through different channels.
"""

from __future__ import annotations

from socialcards.core.cache_key import derive_key
from socialcards.core.params import ParamSet
from socialcards.core.reconcile import disambiguate_segments, reconcile


class TestDisambiguateSegments:
    """Test disambiguate_segments() rule order."""

    def test_explicit_params_unchanged(self):
        segments = {"params": "a=1", "title": "Hello", "subtitle": "World"}
        assert disambiguate_segments(segments) == segments

    def test_block_title_without_subtitle(self):
        """A lone block in the title position becomes params."""
        assert disambiguate_segments({"title": "bgColor=red"}) == {"params": "bgColor=red"}

    def test_block_title_promotes_subtitle(self):
        """The subtitle moves up to the title position."""
        result = disambiguate_segments({"title": "bgColor=red", "subtitle": "Hello"})
        assert result == {"params": "bgColor=red", "title": "Hello"}

    def test_block_subtitle(self):
        result = disambiguate_segments({"title": "Hello", "subtitle": "bgColor=red"})
        assert result == {"params": "bgColor=red", "title": "Hello"}

    def test_plain_title_is_copied_into_params(self):
        """Without any block, params receives the literal title."""
        result = disambiguate_segments({"title": "Hello", "subtitle": None})
        assert result == {"title": "Hello", "params": "Hello"}

    def test_input_not_modified(self):
        segments = {"title": "bgColor=red"}
        disambiguate_segments(segments)
        assert segments == {"title": "bgColor=red"}


class TestReconcilePrecedence:
    """Test the merge order of parameter channels."""

    def test_defaults_fill_missing_values(self):
        params = reconcile({"title": "Hello", "ext": "png"}, ParamSet())
        assert params.get("title") == "Hello"
        assert params.get("subtitle") == "socialcards"
        assert params.get("width") == "1280"
        assert params.get("ext") == "png"

    def test_segments_are_percent_decoded(self):
        params = reconcile({"title": "Hello%20World"}, ParamSet())
        assert params.get("title") == "Hello World"

    def test_block_beats_segments_and_query_beats_block(self):
        params = reconcile(
            {"params": "bgColor=red;title=Block", "title": "Path"},
            ParamSet.from_pairs([("bgColor", "blue")]),
        )
        assert params.get("title") == "Block"
        assert params.get("bgColor") == "#0000ff"

    def test_params_key_is_not_kept(self):
        params = reconcile({"title": "bgColor=red"}, ParamSet())
        assert "params" not in params
        assert params.get("bgColor") == "#ff0000"

    def test_title_always_present(self):
        """A path made only of a block still gets the default title."""
        params = reconcile({"title": "bgColor=red"}, ParamSet())
        assert params.get("title") == "Edge-rendered OpenGraph Images"


class TestReconcileValues:
    """Test value post-processing."""

    def test_colors_are_normalized(self):
        params = reconcile({"title": "x"}, ParamSet.from_pairs([("titleColor", "fff")]))
        assert params.get("titleColor") == "#ffffff"
        assert params.get("bgColor") == "#ffefd5"

    def test_bad_color_is_left_raw(self):
        params = reconcile({"title": "x"}, ParamSet.from_pairs([("bgColor", "notacolor")]))
        assert params.get("bgColor") == "notacolor"

    def test_custom_color_normalizer(self):
        params = reconcile({"title": "x"}, ParamSet(), color_normalizer=lambda value: "X")
        assert params.get("bgColor") == "X"
        assert params.get("title") == "x"

    def test_nested_block_is_expanded(self):
        """A value that is itself a block contributes its own entries."""
        params = reconcile(
            {"title": "x"},
            ParamSet.from_pairs([("extra", "titleColor=red;iconW=100")]),
        )
        assert params.get("extra") == "titleColor=red;iconW=100"
        assert params.get("titleColor") == "#ff0000"
        assert params.get("iconW") == "100"

    def test_custom_defaults(self):
        params = reconcile({"title": "x"}, ParamSet(), defaults={"foo": "bar"})
        assert params.to_dict() == {"foo": "bar", "title": "x"}


class TestChannelEquivalence:
    """The same card expressed through different channels shares one key."""

    def test_block_path_equals_segment_path(self):
        via_block = reconcile({"title": "title=Hello;subtitle=World", "ext": "png"}, ParamSet())
        via_segments = reconcile({"title": "Hello", "subtitle": "World", "ext": "png"}, ParamSet())
        assert via_block == via_segments
        assert derive_key(via_block) == derive_key(via_segments)

    def test_query_equals_segment(self):
        via_query = reconcile(
            {"title": "Hello", "ext": "svg"}, ParamSet.from_pairs([("subtitle", "World")])
        )
        via_segments = reconcile({"title": "Hello", "subtitle": "World", "ext": "svg"}, ParamSet())
        assert derive_key(via_query) == derive_key(via_segments)

    def test_extension_changes_key(self):
        png = reconcile({"title": "Hello", "ext": "png"}, ParamSet())
        svg = reconcile({"title": "Hello", "ext": "svg"}, ParamSet())
        assert derive_key(png) != derive_key(svg)
