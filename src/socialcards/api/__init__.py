"""Social Cards - FastAPI HTTP layer.

Modules
-------
main
    Application factory, route handlers and the ``main()`` CLI entry point.
routing
    Matching of raw request paths to homepage, favicon, robots and image
    routes.
responses
    Image response construction (content type, caching headers, ETag).
"""
