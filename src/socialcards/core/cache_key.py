"""Cache-key derivation for reconciled card parameters.

The key is ``prefix + sha256(canonical parameters)``.  Canonicalization
(last value per key, keys sorted, values percent-encoded) guarantees that
semantically identical requests share one key no matter which channel or
ordering expressed their parameters.

Cache-policy keys such as ``no-cache`` are removed before hashing: they
decide *whether* the cache is used, never *which* entry is addressed.
"""

from __future__ import annotations

import hashlib

from socialcards.core.constants import CACHE_POLICY_KEYS, NO_CACHE_KEY
from socialcards.core.params import ParamSet

DEFAULT_PREFIX = "asset::"


def canonical_params(params: ParamSet) -> str:
    """Return the canonical serialization that identifies a card."""
    return params.without(CACHE_POLICY_KEYS).distinct().to_canonical_string()


def derive_key(params: ParamSet, prefix: str = DEFAULT_PREFIX) -> str:
    """Derive the cache-store key for a reconciled parameter set.

    Args:
        params: Reconciled request parameters.
        prefix: Namespace prepended to the hex digest.

    Returns:
        ``prefix`` followed by the SHA-256 hex digest of the canonical form.

    Example:
        >>> a = ParamSet.from_string("b=2&a=1")
        >>> b = ParamSet.from_string("a=1;b=2")
        >>> derive_key(a) == derive_key(b)
        True
    """
    digest = hashlib.sha256(canonical_params(params).encode("utf-8")).hexdigest()
    return f"{prefix}{digest}"


def wants_no_cache(params: ParamSet) -> bool:
    """Return ``True`` when the request asked to bypass the cache."""
    return NO_CACHE_KEY in params
