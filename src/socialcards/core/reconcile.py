"""Request parameter reconciliation.

Turns the raw router output and the query string of one request into the
single authoritative :class:`~socialcards.core.params.ParamSet` used for
rendering and for cache-key derivation.

Precedence (later wins)
-----------------------
1. Fixed defaults (:data:`~socialcards.core.constants.DEFAULT_PARAMS`)
2. Path segments (``title``, ``subtitle``, ``ext`` ...)
3. The path parameter block (``bgColor=indianred;icon=mdi:home``)
4. The query string

Afterwards every ``*color`` key is normalized to hex, and any value that is
itself a parameter block is expanded into its own entries.

Segment Disambiguation
----------------------
The URL grammar cannot tell from position alone whether a segment is a
title, a subtitle or a parameter block, so :func:`disambiguate_segments`
inspects the segments before merging::

    /bgColor=red.png            -> params="bgColor=red"
    /bgColor=red/Hello.png      -> params="bgColor=red", title="Hello"
    /Hello/bgColor=red.png      -> params="bgColor=red", title="Hello"
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from urllib.parse import unquote

from socialcards.core.colors import is_color_key, normalize_color
from socialcards.core.constants import DEFAULT_PARAMS
from socialcards.core.params import ParamSet, looks_like_params, parse_entries

logger = logging.getLogger(__name__)


def disambiguate_segments(path_params: Mapping[str, str | None]) -> dict[str, str | None]:
    """Decide which path segment holds the parameter block.

    First match wins:

    1. ``params`` already set by the router: unchanged.
    2. ``title`` looks like a block: it becomes ``params``; a present
       ``subtitle`` is promoted to ``title``, otherwise ``title`` is removed.
    3. ``subtitle`` looks like a block: it becomes ``params`` and ``subtitle``
       is removed.
    4. Otherwise ``params`` takes the literal ``title`` value and ``title``
       stays as it is.

    Args:
        path_params: Router output with optional ``title``, ``subtitle`` and
            ``params`` entries (plus any other router fields).

    Returns:
        A new dictionary; *path_params* is not modified.
    """
    segments = {key: value for key, value in path_params.items() if value is not None}

    if segments.get("params") is not None:
        return segments

    title = segments.get("title")
    subtitle = segments.get("subtitle")

    if looks_like_params(title):
        segments["params"] = title
        if subtitle is not None:
            segments["title"] = segments.pop("subtitle")
        else:
            del segments["title"]
    elif looks_like_params(subtitle):
        segments["params"] = segments.pop("subtitle")
    elif title is not None:
        # TODO: confirm with product whether a plain title should really be
        # copied into ``params``; it parses to nothing today.
        segments["params"] = title

    return segments


def _normalized(key: str, value: str, color_normalizer: Callable[[str], str]) -> str:
    return color_normalizer(value) if is_color_key(key) else value


def reconcile(
    path_params: Mapping[str, str | None],
    query: ParamSet,
    *,
    defaults: Mapping[str, str] = DEFAULT_PARAMS,
    color_normalizer: Callable[[str], str] = normalize_color,
) -> ParamSet:
    """Merge every parameter channel of a request into one ``ParamSet``.

    Args:
        path_params: Raw (percent-encoded) path segments from the router.
        query: Already decoded query-string parameters.
        defaults: Base parameters that every request starts from.
        color_normalizer: Callable applied to values of ``*color`` keys.

    Returns:
        The reconciled parameters.  ``title`` is always present when the
        defaults provide one; color keys hold hex strings or sentinels.
    """
    segments = disambiguate_segments(path_params)
    block = segments.pop("params", None)

    merged = ParamSet.from_mapping(defaults)
    merged = merged.update(
        ParamSet.from_pairs((key, unquote(value)) for key, value in segments.items())
    )
    merged = merged.update(ParamSet.from_string(block))
    merged = merged.update(query)

    result = ParamSet()
    for key, raw in merged.distinct():
        value = unquote(raw)
        if looks_like_params(value):
            # Forwarded parameter block: keep it, then lift its entries out.
            result = result.set(key, value)
            for nested_key, nested_value in parse_entries(value):
                result = result.set(
                    nested_key, _normalized(nested_key, nested_value.strip(), color_normalizer)
                )
        else:
            result = result.set(key, _normalized(key, value, color_normalizer))

    logger.debug(f"Reconciled parameters: {result.to_display_string()}")
    return result
