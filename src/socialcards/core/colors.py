"""Color normalization for card parameters.

Every parameter whose name ends in ``color`` (``bgColor``, ``titleColor``,
``iconColor`` ...) is normalized to a ``#rrggbb`` hex string so that
``bgColor=indianred`` and ``bgColor=%23cd5c5c`` describe the same card and
share one cache entry.  Parsing is delegated to Pillow's ``ImageColor``,
which understands CSS color names, hex notation, ``rgb()`` and ``hsl()``.
"""

from __future__ import annotations

import logging
import re

from PIL import ImageColor

from socialcards.core.constants import COLOR_SENTINELS

logger = logging.getLogger(__name__)

_BARE_HEX = re.compile(r"^(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def is_color_key(key: str) -> bool:
    """Return ``True`` for parameter names ending in ``color`` (any case)."""
    return key.lower().endswith("color")


def parse_color(value: str) -> tuple[int, int, int]:
    """Parse a CSS color string into an RGB triple.

    Bare hex digits (``fff``, ``112233``) are accepted without ``#``.

    Args:
        value: Color name, hex string, ``rgb()`` or ``hsl()`` expression.

    Returns:
        ``(r, g, b)`` clamped to 0..255; any alpha channel is dropped.

    Raises:
        ValueError: If the color cannot be parsed.
    """
    color = value.strip()
    if _BARE_HEX.match(color):
        color = f"#{color}"
    rgb = ImageColor.getrgb(color)
    # rgb() components are not range-checked by Pillow.
    return tuple(max(0, min(255, channel)) for channel in rgb[:3])  # type: ignore[return-value]


def format_hex(rgb: tuple[int, int, int]) -> str:
    """Format an RGB triple as a lowercase ``#rrggbb`` string."""
    return "#{:02x}{:02x}{:02x}".format(*rgb)


def normalize_color(value: str) -> str:
    """Normalize a color value to hex, tolerating bad input.

    ``none`` and ``currentColor`` are passed through unchanged.  A value the
    parser rejects is returned as-is so one bad parameter never breaks the
    card.

    Args:
        value: Raw (already decoded) color value.

    Returns:
        ``#rrggbb``, a sentinel, or the raw value on failure.
    """
    if value.strip().lower() in COLOR_SENTINELS:
        return value
    try:
        return format_hex(parse_color(value))
    except ValueError:
        logger.warning(f"Unparseable color value {value!r}; leaving it untouched")
        return value
