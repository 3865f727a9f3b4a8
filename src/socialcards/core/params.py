"""Parameter parsing and the ``ParamSet`` multi-map.

Card parameters arrive through three channels: path segments, a dedicated
parameter block in the path (``bgColor=indianred;icon=mdi:home``) and the
query string.  This module turns any of them into a :class:`ParamSet`, an
immutable ordered multi-map whose canonical serialization is the basis of the
cache key.

Parameter Block Syntax
----------------------
A block is a list of ``key=value`` groups separated by ``&``, ``;`` or
``::``.  Delimiters may be mixed within one block::

    title=Hello;subtitle=World::bgColor=%23fff&icon=mdi:home

- only the first ``=`` of a group separates key from value
- keys and values are whitespace-stripped
- values are percent-decoded, keys are not
- groups without ``=``, with an empty key, or with an empty value are dropped

Parsing is lenient and never raises: malformed groups simply disappear.

Serialization
-------------
``to_canonical_string()`` sorts entries by key and percent-encodes every
reserved character of each key and value, so a value that contains ``&``,
``;`` or ``::`` survives a parse -> serialize -> parse cycle unchanged and no
key can smuggle in a pair boundary.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, unquote

Entry = tuple[str, str]

# A string is treated as a parameter block as soon as it contains one
# ``key=value`` pair whose key holds none of ``& ; # =``.
PARAMS_PATTERN = re.compile(r"([^&;#=]+)=([^&;#]*)")

# ``::`` must be tried before the single-character delimiters.
GROUP_DELIMITERS = re.compile(r"::|[&;]")

_DELIMITER_VALUES = frozenset({"&", ";", "::"})


def looks_like_params(value: object) -> bool:
    """Return ``True`` if *value* is a string holding a parameter block.

    Args:
        value: Candidate value (anything; non-strings are never blocks).

    Returns:
        Whether at least one ``key=value`` pair appears in *value*.
    """
    return isinstance(value, str) and PARAMS_PATTERN.search(value) is not None


def parse_entries(raw: str | None) -> list[Entry]:
    """Parse a delimited parameter block into ``(key, value)`` entries.

    Args:
        raw: Block using ``&``, ``;`` and/or ``::`` as group delimiters.
            ``None`` is treated as an empty string.

    Returns:
        Entries in order of appearance.  Values are percent-decoded.
    """
    entries: list[Entry] = []
    for group in GROUP_DELIMITERS.split(raw or ""):
        if "=" not in group:
            continue
        key, _, value = group.partition("=")
        key = key.strip()
        value = unquote(value.strip())
        if not key or not value or value in _DELIMITER_VALUES:
            continue
        entries.append((key, value))
    return entries


def encode_value(value: str) -> str:
    """Percent-encode a parameter key or value for serialization."""
    return quote(value, safe="")


def validate(value: object) -> bool:
    """Check whether *value* is a recognized ``ParamSet`` source.

    Recognized sources are a string that looks like a parameter block, a
    sequence of two-item pairs, a mapping with string keys, a
    :class:`ParamSet`, or a query-string object exposing ``multi_items()``.
    Anything else (``None``, numbers, plain strings such as ``"Hello"``) is
    rejected without raising.

    Args:
        value: Candidate source.

    Returns:
        ``True`` if :meth:`ParamSet.of` would accept the value.
    """
    if isinstance(value, ParamSet):
        return True
    if isinstance(value, str):
        return looks_like_params(value)
    if callable(getattr(value, "multi_items", None)):
        return True
    if isinstance(value, Mapping):
        return all(isinstance(key, str) for key in value)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return all(
            isinstance(pair, Sequence) and not isinstance(pair, str) and len(pair) == 2
            for pair in value
        )
    return False


@dataclass(frozen=True, eq=False)
class ParamSet:
    """Immutable ordered multi-map of string parameters.

    A key may carry several values (``append`` accumulates them).  Reading
    with :meth:`get` and flattening with :meth:`distinct` always resolve a
    key to its **last** appended value, so later sources win.

    Equality compares the flattened mappings, so two sets built from the same
    logical parameters through different channels or in a different order are
    equal.

    Examples:
        >>> ps = ParamSet.from_string("key=val1&key2=val2;key=val3")
        >>> ps.distinct().to_canonical_string()
        'key=val3&key2=val2'
    """

    entries: tuple[Entry, ...] = ()

    # ------------------------------------------------------------------
    # Construction.
    # ------------------------------------------------------------------

    @classmethod
    def from_string(cls, raw: str | None) -> ParamSet:
        """Build a set from a parameter block.

        Strings that do not look like a block (a plain title, for example)
        yield an empty set.
        """
        if not looks_like_params(raw):
            return cls()
        return cls(tuple(parse_entries(raw)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[str]]) -> ParamSet:
        """Build a set from ``(key, value)`` pairs, skipping falsy keys."""
        return cls(tuple((str(k), str(v)) for k, v in pairs if k and v is not None))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> ParamSet:
        """Build a set from a string-keyed mapping, skipping ``None`` values."""
        if not mapping:
            return cls()
        return cls.from_pairs((k, v) for k, v in mapping.items() if v is not None)

    @classmethod
    def from_query(cls, query: Any) -> ParamSet:
        """Build a set from a multi-valued query object (Starlette ``QueryParams``)."""
        return cls.from_pairs(query.multi_items())

    @classmethod
    def of(cls, *sources: object) -> ParamSet:
        """Build a set from any mix of recognized sources.

        Each source passing :func:`validate` contributes its entries in call
        order; unrecognized sources are ignored.
        """
        result = cls()
        for source in sources:
            if not validate(source):
                continue
            if isinstance(source, ParamSet):
                part = source
            elif isinstance(source, str):
                part = cls.from_string(source)
            elif callable(getattr(source, "multi_items", None)):
                part = cls.from_query(source)
            elif isinstance(source, Mapping):
                part = cls.from_mapping(source)
            else:
                part = cls.from_pairs(source)  # type: ignore[arg-type]
            result = result.extend(part)
        return result

    # ------------------------------------------------------------------
    # Reading.
    # ------------------------------------------------------------------

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the last value appended for *key*, or *default*."""
        for k, v in reversed(self.entries):
            if k == key:
                return v
        return default

    def get_all(self, key: str) -> list[str]:
        """Return every value appended for *key*, in append order."""
        return [v for k, v in self.entries if k == key]

    def keys(self) -> list[str]:
        """Return unique keys in order of first appearance."""
        return list(dict.fromkeys(k for k, _ in self.entries))

    def items(self) -> list[Entry]:
        """Return every entry in insertion order."""
        return list(self.entries)

    def to_dict(self) -> dict[str, str]:
        """Flatten to ``{key: last value}``."""
        return {k: v for k, v in self.distinct().entries}

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParamSet):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Transformations (each returns a new set).
    # ------------------------------------------------------------------

    def append(self, key: str, value: str) -> ParamSet:
        """Add a value for *key* after all existing entries."""
        return ParamSet(self.entries + ((key, value),))

    def extend(self, other: ParamSet) -> ParamSet:
        """Append every entry of *other*."""
        return ParamSet(self.entries + other.entries)

    def set(self, key: str, value: str) -> ParamSet:
        """Replace all values of *key* with *value*.

        The entry keeps the position of the key's first occurrence; a new key
        is appended at the end.
        """
        entries: list[Entry] = []
        placed = False
        for k, v in self.entries:
            if k != key:
                entries.append((k, v))
            elif not placed:
                entries.append((key, value))
                placed = True
        if not placed:
            entries.append((key, value))
        return ParamSet(tuple(entries))

    def delete(self, key: str) -> ParamSet:
        """Drop every value of *key*."""
        return ParamSet(tuple((k, v) for k, v in self.entries if k != key))

    def without(self, keys: Iterable[str]) -> ParamSet:
        """Drop every value of each key in *keys*."""
        dropped = frozenset(keys)
        return ParamSet(tuple((k, v) for k, v in self.entries if k not in dropped))

    def update(self, other: ParamSet) -> ParamSet:
        """Overlay *other*: each of its keys replaces the same key here."""
        result = self
        for key, value in other.distinct():
            result = result.set(key, value)
        return result

    def distinct(self) -> ParamSet:
        """Collapse each key to its last appended value.

        Keys keep the position of their first appearance.
        """
        last: dict[str, str] = {}
        for k, v in self.entries:
            last[k] = v
        return ParamSet(tuple(last.items()))

    # ------------------------------------------------------------------
    # Serialization.
    # ------------------------------------------------------------------

    def to_canonical_string(self) -> str:
        """Serialize with keys sorted ascending (stable for repeated keys)."""
        ordered = sorted(self.entries, key=lambda entry: entry[0])
        return "&".join(f"{encode_value(k)}={encode_value(v)}" for k, v in ordered)

    def to_display_string(self) -> str:
        """Serialize in insertion order."""
        return "&".join(f"{encode_value(k)}={encode_value(v)}" for k, v in self.entries)

    def __str__(self) -> str:
        return self.to_display_string()
