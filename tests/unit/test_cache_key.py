"""Tests for socialcards.core.cache_key — deterministic cache keys."""

from __future__ import annotations

from socialcards.core.cache_key import canonical_params, derive_key, wants_no_cache
from socialcards.core.params import ParamSet


class TestDeriveKey:
    """Test derive_key() determinism and sensitivity."""

    def test_prefix_and_digest_length(self):
        key = derive_key(ParamSet.from_string("a=1"))
        assert key.startswith("asset::")
        assert len(key) == len("asset::") + 64

    def test_custom_prefix(self):
        assert derive_key(ParamSet.from_string("a=1"), prefix="v2::").startswith("v2::")

    def test_order_independent(self):
        a = ParamSet.from_string("b=2&a=1")
        b = ParamSet.from_string("a=1;b=2")
        assert derive_key(a) == derive_key(b)

    def test_last_value_wins(self):
        repeated = ParamSet.from_pairs([("a", "1"), ("a", "2")])
        assert derive_key(repeated) == derive_key(ParamSet.from_pairs([("a", "2")]))

    def test_values_matter(self):
        assert derive_key(ParamSet.from_string("a=1")) != derive_key(ParamSet.from_string("a=2"))

    def test_no_cache_flag_is_ignored(self):
        """Cache policy flags never change which entry is addressed."""
        params = ParamSet.from_string("a=1")
        assert derive_key(params.append("no-cache", "")) == derive_key(params)


class TestCanonicalParams:
    """Test the canonical serialization that is hashed."""

    def test_sorted_and_flattened(self):
        params = ParamSet.from_pairs([("b", "2"), ("a", "1"), ("b", "3")])
        assert canonical_params(params) == "a=1&b=3"

    def test_values_are_encoded(self):
        params = ParamSet.from_pairs([("title", "Hello World")])
        assert canonical_params(params) == "title=Hello%20World"


class TestWantsNoCache:
    """Test detection of the cache bypass flag."""

    def test_flag_present(self):
        assert wants_no_cache(ParamSet.from_pairs([("no-cache", "")]))

    def test_flag_absent(self):
        assert not wants_no_cache(ParamSet.from_string("a=1"))


class TestKeyBoundaries:
    """Keys containing delimiters cannot impersonate other parameter sets."""

    def test_key_with_delimiters_does_not_collide(self):
        genuine = ParamSet.from_pairs([("iconX", "10"), ("iconY", "20")])
        forged = ParamSet.from_pairs([("iconX=10&iconY", "20")])
        assert genuine != forged
        assert canonical_params(genuine) != canonical_params(forged)
        assert derive_key(genuine) != derive_key(forged)

    def test_keys_are_encoded(self):
        params = ParamSet.from_pairs([("a=b&c", "1")])
        assert canonical_params(params) == "a%3Db%26c=1"

    def test_reconciled_query_keys_do_not_collide(self):
        """The same forgery through the query channel gets its own key."""
        from socialcards.core.reconcile import reconcile

        genuine = reconcile(
            {"title": "Hello"}, ParamSet.from_pairs([("iconX", "10"), ("iconY", "20")])
        )
        forged = reconcile({"title": "Hello"}, ParamSet.from_pairs([("iconX=10&iconY", "20")]))
        assert derive_key(genuine) != derive_key(forged)
