"""Response construction for generated images."""

from __future__ import annotations

import hashlib
from typing import Literal

from fastapi.responses import Response

from socialcards.core.constants import CACHE_CONTROL, IMAGE_TYPES


def etag_for(data: bytes) -> str:
    """Return a strong ETag for *data*."""
    return f'"{hashlib.sha1(data).hexdigest()}"'


def image_response(
    data: bytes,
    ext: str,
    *,
    status_code: int = 200,
    cache: Literal["none", "short", "long"] = "long",
) -> Response:
    """Wrap rendered image bytes in a response with caching headers.

    Args:
        data: PNG or SVG bytes.
        ext: ``png`` or ``svg``; selects the content type.
        status_code: ``201`` for freshly stored images, ``200`` otherwise.
        cache: Key into :data:`~socialcards.core.constants.CACHE_CONTROL`.

    Returns:
        Response carrying ``Content-Type``, ``Cache-Control``, ``ETag`` and a
        permissive CORS origin.  ``Content-Length`` is added by Starlette.
    """
    return Response(
        content=data,
        status_code=status_code,
        media_type=IMAGE_TYPES[ext],
        headers={
            "Cache-Control": CACHE_CONTROL[cache],
            "Access-Control-Allow-Origin": "*",
            "ETag": etag_for(data),
        },
    )
