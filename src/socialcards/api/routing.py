"""Raw request-path routing for the card endpoints.

Card URLs carry arbitrary text (titles, parameter blocks with ``&`` and
``;``), so they are matched against the **raw**, still percent-encoded path.
Decoding first would let an encoded ``/`` or ``&`` inside a title change the
shape of the route.

Route Table
-----------
==========================================  =================================
Raw path                                    Result
==========================================  =================================
``/``                                       ``home``
``/favicon.ico`` ``/favicon.svg`` ...png    ``favicon``
``/robots.txt``                             ``robots``
``/{title}.{ext}``                          ``image``
``/{title}/{subtitle}.{ext}``               ``image``
``/{params}/{title}/{subtitle}.{ext}``      ``image``
``/a/b/c/d.{ext}``                          ``image``, whole path as title
``/{title}.gif``                            ``redirect`` to ``/{title}.png``
``/{title}``                                ``redirect`` to ``/{title}.png``
==========================================  =================================

``ext`` must be ``png`` or ``svg`` (case-insensitive) for an image match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

from socialcards.core.constants import IMAGE_TYPES

RouteKind = Literal["home", "favicon", "robots", "image", "redirect"]

_FAVICON = re.compile(r"^/favicon\.(ico|svg|png)$", re.IGNORECASE)
_EXTENSION = re.compile(r"^(?P<stem>.+)\.(?P<ext>[A-Za-z]{2,4})$")


@dataclass(frozen=True)
class RouteMatch:
    """Outcome of :func:`match_path`.

    Attributes:
        kind: Which handler serves the request.
        path_params: Raw ``title``/``subtitle``/``params`` segments plus
            ``ext`` (image routes only).
        ext: Requested extension, lowercased (favicon and image routes).
        location: Redirect target including the query string.
    """

    kind: RouteKind
    path_params: dict[str, str] = field(default_factory=dict)
    ext: str | None = None
    location: str | None = None


def _with_query(path: str, query: str) -> str:
    return f"{path}?{query}" if query else path


def split_segments(body: str) -> dict[str, str]:
    """Assign the slash-separated segments of *body* to route names.

    Empty segments are left out so they never override a default.
    """
    parts = body.split("/")
    if len(parts) == 1:
        names: tuple[str, ...] = ("title",)
    elif len(parts) == 2:
        names = ("title", "subtitle")
    elif len(parts) == 3:
        names = ("params", "title", "subtitle")
    else:
        return {"title": body} if body else {}
    return {name: part for name, part in zip(names, parts) if part}


def match_path(raw_path: str, query: str = "") -> RouteMatch:
    """Match a raw request path against the card routes.

    Args:
        raw_path: Percent-encoded request path, starting with ``/``.
        query: Raw query string (without ``?``), kept on redirects.

    Returns:
        The matching :class:`RouteMatch`.
    """
    if raw_path in ("", "/"):
        return RouteMatch("home")

    favicon = _FAVICON.match(raw_path)
    if favicon:
        return RouteMatch("favicon", ext=favicon.group(1).lower())

    if raw_path == "/robots.txt":
        return RouteMatch("robots")

    path = raw_path.rstrip("/") or "/"
    found = _EXTENSION.match(path)
    if found is None:
        return RouteMatch("redirect", location=_with_query(f"{path}.png", query))

    stem, ext = found.group("stem"), found.group("ext").lower()
    if ext not in IMAGE_TYPES:
        return RouteMatch("redirect", location=_with_query(f"{stem}.png", query))

    path_params = split_segments(stem.lstrip("/"))
    path_params["ext"] = ext
    return RouteMatch("image", path_params=path_params, ext=ext)
