"""Core functionality for card generation.

Everything in this package is independent of the web framework:

- **params.py**: ``ParamSet``, the ordered multi-map of request parameters,
  and the lenient ``key=value`` block parser
- **reconcile.py**: merges path segments, the path parameter block and the
  query string into one authoritative ``ParamSet``
- **colors.py**: normalization of ``*color`` values to hex
- **cache_key.py**: deterministic cache keys from reconciled parameters
- **cache_store.py**: memory, file and null cache backends
- **icons.py**: icon URL resolution, fetching and sanitization
- **svg.py**: SVG card templating
- **raster.py**: SVG to PNG conversion
- **config.py**: ``SocialCardsConfig`` (Pydantic Settings)
- **constants.py**: defaults, TTLs and Cache-Control values

Usage Example
-------------
    from socialcards.core.cache_key import derive_key
    from socialcards.core.params import ParamSet
    from socialcards.core.reconcile import reconcile

    params = reconcile({"title": "Hello", "ext": "png"}, ParamSet())
    key = derive_key(params)
"""
