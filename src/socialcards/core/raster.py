"""SVG to PNG rasterization using CairoSVG.

CairoSVG is imported inside :func:`rasterize` so the service (and its SVG
output) keeps working on hosts where the native cairo library is missing;
only PNG requests fail there.
"""

from __future__ import annotations


def rasterize(svg: str) -> bytes:
    """Convert an SVG document to PNG bytes.

    Output dimensions come from the document's ``width``/``height``
    attributes, which already include ``pxRatio``.

    Args:
        svg: SVG document text.

    Returns:
        PNG image bytes.

    Raises:
        ImportError: If cairosvg (or libcairo) is not available.
    """
    import cairosvg

    return cairosvg.svg2png(bytestring=svg.encode("utf-8"))
