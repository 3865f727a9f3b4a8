"""Fixed values shared across the Social Card service.

These are constants rather than configuration because they define the
identity of a rendered card: changing a default parameter changes every
derived cache key.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Icon endpoints.
# Bare icon names such as ``mdi:home`` resolve to ``{CDN_URL}/mdi:home.svg``.
# ---------------------------------------------------------------------------
CDN_URL = "https://icns.deno.dev"
FAVICON_URL = f"{CDN_URL}/twemoji:letter-m.svg"
FALLBACK_ICON_URL = f"{CDN_URL}/heroicons-solid:exclamation.svg"
DEFAULT_ICON = "twemoji:letter-m"

# ---------------------------------------------------------------------------
# Time-to-live values in seconds, from one minute to one year.
# ---------------------------------------------------------------------------
TTL_MN = 60
TTL_1H = TTL_MN * 60
TTL_1D = TTL_1H * 24
TTL_1W = TTL_1D * 7
TTL_1M = 2_628_000
TTL_1Y = 31_536_000

# ---------------------------------------------------------------------------
# Cache-Control header values for long-term, short-term, and no-cache.
# ---------------------------------------------------------------------------
CACHE_CONTROL = {
    "none": "public, no-cache, no-store, s-maxage=0, max-age=0, must-revalidate",
    "short": (
        f"public, s-maxage={TTL_1H // 2}, max-age={TTL_1H // 2}, "
        f"stale-if-error={TTL_MN * 2}, stale-while-revalidate={TTL_MN}"
    ),
    "long": (
        f"public, s-maxage={TTL_1Y}, max-age={TTL_1Y}, "
        f"stale-if-error={TTL_1H}, immutable"
    ),
}

# ---------------------------------------------------------------------------
# Default parameters merged underneath every request.
# ---------------------------------------------------------------------------
DEFAULT_PARAMS: dict[str, str] = {
    "title": "Edge-rendered OpenGraph Images",
    "subtitle": "socialcards",
    "width": "1280",
    "height": "640",
    "pxRatio": "2",
    "icon": DEFAULT_ICON,
    "iconW": "240",
    "iconH": "240",
    "bgColor": "papayawhip",
    "titleColor": "#112233",
    "titleFontSize": "48",
    "subtitleFontSize": "36",
}

# Query keys that control caching behaviour rather than the image itself.
NO_CACHE_KEY = "no-cache"
CACHE_POLICY_KEYS = frozenset({NO_CACHE_KEY})

# Color values that must never be sent through the color parser.
COLOR_SENTINELS = frozenset({"none", "currentcolor"})

IMAGE_TYPES = {
    "png": "image/png;charset=utf-8",
    "svg": "image/svg+xml;charset=utf-8",
}

# ---------------------------------------------------------------------------
# Documented parameters, served by ``GET /api/config`` for the homepage.
# Each row is ``(name, default, comment)``.
# ---------------------------------------------------------------------------
PARAM_DOCS: list[tuple[str, str, str]] = [
    ("width", "1280", ""),
    ("height", "640", "width / 2"),
    ("viewBox", "0 0 1280 640", "0 0 {width} {height}"),
    ("pxRatio", "2", "set to 1 for low-res"),
    ("bgColor", "papayawhip", ""),
    ("borderRadius", "0", ""),
    ("icon", DEFAULT_ICON, "set to false to disable"),
    ("iconUrl", f"{CDN_URL}/{{icon}}.svg", ""),
    ("iconW", "240", ""),
    ("iconH", "240", "iconW"),
    ("iconX", "520", "(width - iconW) / 2"),
    ("iconY", "80", "iconH / 3"),
    ("iconColor", "#112233", "titleColor"),
    ("iconStroke", "none", "stroke color"),
    ("iconStrokeWidth", "0", "stroke width"),
    ("titleX", "640", "width / 2"),
    ("titleY", "448", "iconH + iconY * 2 + titleFontSize"),
    ("titleFontSize", "48", ""),
    ("titleFontFamily", "serif", ""),
    ("titleFontWeight", "bold", ""),
    ("titleColor", "#112233", "text color"),
    ("titleStroke", "none", "stroke color"),
    ("titleStrokeWidth", "0", "stroke width"),
    ("titleTextAnchor", "middle", ""),
    ("subtitleX", "640", "width / 2"),
    ("subtitleY", "520", "titleY + subtitleFontSize * 2"),
    ("subtitleFontSize", "36", ""),
    ("subtitleFontFamily", "monospace", ""),
    ("subtitleFontWeight", "normal", ""),
    ("subtitleColor", "#334455", "text color"),
    ("subtitleStroke", "none", "stroke color"),
    ("subtitleStrokeWidth", "0", "stroke width"),
    ("subtitleTextAnchor", "middle", ""),
    ("noIcon", "", "present to disable the icon"),
    ("no-cache", "", "present to bypass the cache"),
]
