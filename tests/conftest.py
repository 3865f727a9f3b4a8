"""Shared pytest fixtures for Social Cards tests."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from socialcards.api.main import create_app
from socialcards.core.cache_store import MemoryCacheStore
from socialcards.core.config import SocialCardsConfig

ICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" '
    'fill="currentColor"><path d="M4 4h16v16H4z"/></svg>'
)
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"stub-png"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> SocialCardsConfig:
    """Create a test configuration that never reads ``.env``.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        SocialCardsConfig instance for testing
    """
    return SocialCardsConfig(
        _env_file=None,
        cache_backend="memory",
        cache_dir=temp_dir / "cache",
        cache_max_items=64,
        debug=False,
    )


@pytest.fixture
def icon_requests() -> list[str]:
    """URLs requested through the mocked icon transport, in order."""
    return []


@pytest.fixture
def icon_transport(icon_requests: list[str]) -> httpx.MockTransport:
    """Icon CDN stand-in serving :data:`ICON_SVG` for every ``.svg`` URL.

    URLs containing ``missing`` answer 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        icon_requests.append(str(request.url))
        if "missing" in request.url.path or not request.url.path.endswith(".svg"):
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=ICON_SVG, headers={"content-type": "image/svg+xml"})

    return httpx.MockTransport(handler)


@pytest.fixture
def failing_transport() -> httpx.MockTransport:
    """Icon transport where every request fails with 503."""
    return httpx.MockTransport(lambda request: httpx.Response(503))


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    """Empty in-memory cache store."""
    return MemoryCacheStore(max_items=64)


@pytest.fixture
def stub_rasterizer() -> Callable[[str], bytes]:
    """Rasterizer returning fixed PNG bytes, so libcairo is not required."""

    def rasterize(svg: str) -> bytes:
        assert svg.startswith("<svg")
        return PNG_BYTES

    return rasterize


@pytest.fixture
def test_client(
    test_config: SocialCardsConfig,
    memory_store: MemoryCacheStore,
    stub_rasterizer: Callable[[str], bytes],
    icon_transport: httpx.MockTransport,
) -> Generator[TestClient, None, None]:
    """TestClient over a fully wired app with mocked icons and cache.

    The client is entered as a context manager so the lifespan runs.
    """
    app = create_app(
        test_config,
        cache_store=memory_store,
        rasterizer=stub_rasterizer,
        icon_transport=icon_transport,
    )
    with TestClient(app) as client:
        yield client


@pytest.fixture
def icon_svg() -> str:
    """Markup served by the mocked icon CDN."""
    return ICON_SVG


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes produced by the stub rasterizer."""
    return PNG_BYTES
