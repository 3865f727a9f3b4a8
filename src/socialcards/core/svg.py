"""SVG card rendering.

:func:`build_svg` is a pure function from reconciled parameters (plus an
optional icon symbol) to SVG text.  :func:`generate_svg` adds the I/O part:
resolving and fetching the icon.

Layout Defaults
---------------
Every dimension is derived from the others when not supplied::

    width          1280
    height         width / 2
    iconW          240             iconH   iconW
    iconX          (width - iconW) / 2
    iconY          iconH / 3
    titleX         width / 2
    titleY         iconH + iconY * 2 + titleFontSize
    subtitleX      width / 2
    subtitleY      titleY + subtitleFontSize * 2

Non-numeric values fall back to these defaults rather than failing.
"""

from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from collections.abc import Mapping

from socialcards.core.colors import normalize_color
from socialcards.core.constants import DEFAULT_ICON, DEFAULT_PARAMS
from socialcards.core.icons import (
    SVG_NS,
    IconFetcher,
    adjust_viewbox,
    create_icon_url,
    data_icon,
)
from socialcards.core.params import ParamSet

logger = logging.getLogger(__name__)

_DISABLED_ICON_VALUES = frozenset({"", "false", "0", "none", "null"})


def _tag(name: str) -> str:
    return f"{{{SVG_NS}}}{name}"


def _number(values: Mapping[str, str], key: str, default: float) -> float:
    raw = values.get(key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        logger.warning(f"Ignoring non-numeric {key}={raw!r}")
        return default
    return value


def _fmt(value: float) -> str:
    return f"{value:g}" if value != int(value) else str(int(value))


def _stroke(value: str | None) -> str:
    return normalize_color(value) if value else "none"


def icon_disabled(params: ParamSet) -> bool:
    """Return ``True`` when the request turned the icon off."""
    if "noIcon" in params:
        return True
    icon = params.get("icon")
    return icon is not None and icon.strip().lower() in _DISABLED_ICON_VALUES


def build_svg(params: ParamSet, icon: ET.Element | None = None) -> str:
    """Render the card as an SVG document.

    Args:
        params: Reconciled parameters; missing keys fall back to
            :data:`~socialcards.core.constants.DEFAULT_PARAMS` and the
            derived layout defaults.
        icon: Optional ``<symbol id="icon">`` element to embed.

    Returns:
        SVG document text.
    """
    values = {**DEFAULT_PARAMS, **params.to_dict()}

    width = _number(values, "width", 1280)
    height = _number(values, "height", width / 2)
    px_ratio = _number(values, "pxRatio", 2)
    icon_w = _number(values, "iconW", 240)
    icon_h = _number(values, "iconH", icon_w)
    icon_x = _number(values, "iconX", (width - icon_w) / 2)
    icon_y = _number(values, "iconY", icon_h / 3)
    title_size = _number(values, "titleFontSize", 48)
    title_x = _number(values, "titleX", width / 2)
    title_y = _number(values, "titleY", icon_h + icon_y * 2 + title_size)
    subtitle_size = _number(values, "subtitleFontSize", 32)
    subtitle_x = _number(values, "subtitleX", width / 2)
    subtitle_y = _number(values, "subtitleY", title_y + subtitle_size * 2)

    title = values.get("title", "")
    subtitle = values.get("subtitle")
    title_color = values.get("titleColor", "#112233")
    icon_color = values.get("iconColor", title_color)
    icon_stroke = _stroke(values.get("iconStroke"))
    icon_stroke_width = _number(values, "iconStrokeWidth", 0)

    root = ET.Element(
        _tag("svg"),
        {
            "width": _fmt(width * px_ratio),
            "height": _fmt(height * px_ratio),
            "viewBox": values.get("viewBox", f"0 0 {_fmt(width)} {_fmt(height)}"),
            "role": "img",
            "aria-label": title,
        },
    )
    ET.SubElement(root, _tag("title")).text = title

    if icon is not None:
        if (icon_stroke != "none" or icon_stroke_width > 0) and icon.get("viewBox"):
            icon.set("viewBox", adjust_viewbox(icon.get("viewBox", ""), icon_stroke_width))
        ET.SubElement(root, _tag("defs")).append(icon)

    ET.SubElement(
        root,
        _tag("rect"),
        {
            "fill": values.get("bgColor", "#ffffff"),
            "x": "0",
            "y": "0",
            "width": _fmt(width),
            "height": _fmt(height),
            "rx": _fmt(_number(values, "borderRadius", 0)),
        },
    )

    if icon is not None:
        use = {
            "href": "#icon",
            "width": _fmt(icon_w),
            "height": _fmt(icon_h),
            "x": _fmt(icon_x),
            "y": _fmt(icon_y),
            "fill": icon_color,
            "color": icon_color,
        }
        if icon_stroke != "none" or icon_stroke_width > 0:
            use.update(
                {
                    "stroke": icon_stroke,
                    "stroke-width": _fmt(icon_stroke_width),
                    "vector-effect": "non-scaling-stroke",
                }
            )
        ET.SubElement(root, _tag("use"), use)

    group = ET.SubElement(root, _tag("g"))
    lines = [("title", title, title_x, title_y, title_size, "serif", "bold", title_color)]
    if subtitle:
        lines.append(
            (
                "subtitle",
                subtitle,
                subtitle_x,
                subtitle_y,
                subtitle_size,
                "monospace",
                "normal",
                values.get("subtitleColor", "#334455"),
            )
        )
    for name, text, x, y, size, family, weight, color in lines:
        node = ET.SubElement(
            group,
            _tag("text"),
            {
                "id": name,
                "x": _fmt(x),
                "y": _fmt(y),
                "font-size": _fmt(size),
                "font-family": values.get(f"{name}FontFamily", family),
                "font-weight": values.get(f"{name}FontWeight", weight),
                "fill": color,
                "color": color,
                "stroke": _stroke(values.get(f"{name}Stroke")),
                "stroke-width": _fmt(_number(values, f"{name}StrokeWidth", 0)),
                "text-anchor": values.get(f"{name}TextAnchor", "middle"),
                "dominant-baseline": "middle",
            },
        )
        ET.SubElement(node, _tag("tspan")).text = text

    return ET.tostring(root, encoding="unicode")


async def generate_svg(params: ParamSet, fetcher: IconFetcher, *, cdn_url: str) -> str:
    """Resolve the icon for *params*, fetch it, and render the card.

    The icon comes from ``iconUrl``, then ``icon``, then the default icon.

    Args:
        params: Reconciled parameters.
        fetcher: Icon fetcher bound to the application's HTTP client.
        cdn_url: Base URL for bare icon names.

    Returns:
        SVG document text.

    Raises:
        IconFetchError: If neither the icon nor the fallback icon is usable.
    """
    icon = None
    if not icon_disabled(params):
        reference = params.get("iconUrl") or params.get("icon") or DEFAULT_ICON
        url = create_icon_url(reference, cdn_url)
        if url.startswith("data:"):
            icon = data_icon(url, params.get("viewBox", "0 0 24 24"))
        else:
            icon = await fetcher.fetch(url)
    return build_svg(params, icon)
