"""Icon resolution, retrieval, and sanitization.

Icons are SVG documents fetched over HTTP and embedded in the card as a
``<symbol id="icon">`` referenced by ``<use href="#icon">``.

Sanitization
------------
Fetched markup is untrusted.  It is parsed as XML (never rewritten with
regular expressions) and reduced to drawing content:

- the XML prolog, comments and processing instructions disappear
- ``script``, ``object``, ``title``, ``style``, ``metadata`` and
  ``foreignObject`` elements are removed with their subtrees
- ``on*`` event-handler attributes and ``javascript:`` links are dropped
- the root ``<svg>`` becomes ``<symbol id="icon">`` keeping only
  ``viewBox``, ``stroke-width``, ``fill``, ``color``, ``stroke``, ``width``
  and ``height``

Fetch Fallback
--------------
:meth:`IconFetcher.fetch` retries once with the configured fallback icon
when the requested icon cannot be fetched or parsed.  When the fallback also
fails :class:`IconFetchError` is raised; the HTTP layer turns that into a
500 response.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from urllib.parse import unquote

import httpx

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)

_DROPPED_ELEMENTS = frozenset({"script", "object", "title", "style", "metadata", "foreignObject"})
_SYMBOL_ATTRIBUTES = ("viewBox", "stroke-width", "fill", "color", "stroke", "width", "height")
_LINK_ATTRIBUTES = frozenset({"href", f"{{{XLINK_NS}}}href"})

_ICON_SUFFIX = re.compile(r"\.svg(\?.*)?$", re.IGNORECASE)


class IconFetchError(Exception):
    """Raised when neither the requested nor the fallback icon is usable."""


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def create_icon_url(icon: str, cdn_url: str) -> str:
    """Resolve an icon reference to a fetchable URL.

    Args:
        icon: ``http(s)`` URL, ``data:`` URL, or a bare icon name such as
            ``mdi:home`` (an optional ``.svg`` suffix is ignored).
        cdn_url: Base URL for bare icon names.

    Returns:
        Absolute URL of the icon.

    Examples:
        >>> create_icon_url("mdi:home", "https://icns.deno.dev")
        'https://icns.deno.dev/mdi:home.svg'
    """
    icon = icon.strip()
    if icon.startswith("http"):
        return icon
    if icon.startswith("data:"):
        return unquote(icon)
    name = _ICON_SUFFIX.sub("", icon).lstrip("/")
    return f"{cdn_url.rstrip('/')}/{name}.svg"


def adjust_viewbox(value: str, stroke_width: float) -> str:
    """Widen a ``viewBox`` so a stroke of *stroke_width* is not clipped.

    The origin moves by ``-ceil(4 * s)`` and the size grows by
    ``ceil(8 * s)``.

    Example:
        >>> adjust_viewbox("0 0 24 24", 2)
        '-8 -8 40 40'
    """
    parts = value.split()[:4]
    if len(parts) != 4:
        return value
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        return value
    shift = math.ceil(4 * stroke_width)
    grow = math.ceil(8 * stroke_width)
    adjusted = [
        numbers[0] - shift,
        numbers[1] - shift,
        numbers[2] + grow,
        numbers[3] + grow,
    ]
    return " ".join(f"{n:g}" for n in adjusted)


def _scrub(element: ET.Element) -> None:
    for child in list(element):
        if not isinstance(child.tag, str) or _local_name(child.tag) in _DROPPED_ELEMENTS:
            element.remove(child)
            continue
        for name in list(child.attrib):
            local = _local_name(name)
            value = child.attrib[name].strip().lower()
            if local.lower().startswith("on"):
                del child.attrib[name]
            elif name in _LINK_ATTRIBUTES and value.startswith("javascript:"):
                del child.attrib[name]
        _scrub(child)


def sanitize_icon(markup: str) -> ET.Element:
    """Parse untrusted SVG markup into a safe ``<symbol id="icon">``.

    Args:
        markup: SVG document text.

    Returns:
        The ``symbol`` element, ready to be placed in ``<defs>``.

    Raises:
        ValueError: If the markup is not well-formed XML or its root is not
            an ``<svg>`` element.
    """
    try:
        root = ET.fromstring(markup.strip())
    except ET.ParseError as e:
        raise ValueError(f"Icon markup is not well-formed: {e}") from e

    if _local_name(root.tag) != "svg":
        raise ValueError(f"Icon root element is <{_local_name(root.tag)}>, expected <svg>")

    symbol = ET.Element(f"{{{SVG_NS}}}symbol", {"id": "icon"})
    for name in _SYMBOL_ATTRIBUTES:
        if name in root.attrib:
            symbol.set(name, root.attrib[name])
    symbol.text = root.text
    symbol.extend(list(root))
    _scrub(symbol)
    return symbol


def data_icon(url: str, view_box: str = "0 0 24 24") -> ET.Element:
    """Wrap a ``data:`` image URL in a ``<symbol id="icon">``."""
    symbol = ET.Element(
        f"{{{SVG_NS}}}symbol",
        {"id": "icon", "viewBox": view_box, "image-rendering": "optimizeQuality"},
    )
    ET.SubElement(
        symbol,
        f"{{{SVG_NS}}}image",
        {"href": url, "width": "100%", "height": "100%"},
    )
    return symbol


class IconFetcher:
    """Fetch and sanitize icons over HTTP with a single fallback.

    Args:
        client: Shared ``httpx.AsyncClient`` (owned by the application
            lifespan).
        fallback_url: Icon fetched when the requested one fails.
    """

    def __init__(self, client: httpx.AsyncClient, fallback_url: str) -> None:
        self.client = client
        self.fallback_url = fallback_url

    async def fetch_text(self, url: str) -> str:
        """GET *url* and return the body text.

        Raises:
            httpx.HTTPError: On transport errors and non-2xx responses.
        """
        response = await self.client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.text

    async def _fetch_symbol(self, url: str) -> ET.Element:
        return sanitize_icon(await self.fetch_text(url))

    async def fetch(self, url: str) -> ET.Element:
        """Fetch the icon at *url* as a sanitized ``<symbol>``.

        Args:
            url: Icon URL, fetched exactly as given.

        Returns:
            The sanitized ``symbol`` element.

        Raises:
            IconFetchError: If both the icon and the fallback icon fail.
        """
        try:
            return await self._fetch_symbol(url)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Icon fetch failed for {url}: {e}; using fallback icon")

        try:
            return await self._fetch_symbol(self.fallback_url)
        except (httpx.HTTPError, ValueError) as e:
            raise IconFetchError(f"Failed to fetch icon at {url}") from e
