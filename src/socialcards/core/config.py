"""Configuration management for the Social Card service.

This module provides centralized configuration management using Pydantic
Settings.  All configuration is loaded from environment variables with the
SOCIALCARDS_ prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (SOCIALCARDS_* prefix)
2. .env file in the working directory
3. Default values defined in SocialCardsConfig

Example .env file:
    SOCIALCARDS_CACHE_BACKEND=file
    SOCIALCARDS_CACHE_DIR=/var/cache/socialcards
    SOCIALCARDS_CDN_URL=https://icns.deno.dev
    SOCIALCARDS_DEBUG=true

Lifecycle
---------
There is no global configuration instance.  ``main()`` builds one
``SocialCardsConfig`` at process start and hands it to
:func:`socialcards.api.main.create_app`, which keeps it on ``app.state``.
Tests build their own instances.

Usage Example
-------------
    from socialcards.api.main import create_app
    from socialcards.core.config import SocialCardsConfig

    config = SocialCardsConfig(cache_backend="memory", debug=True)
    app = create_app(config)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from socialcards.core.constants import (
    CDN_URL,
    FALLBACK_ICON_URL,
    FAVICON_URL,
    TTL_1Y,
)


class SocialCardsConfig(BaseSettings):
    """Main configuration for the Social Card service.

    Attributes
    ----------
    Server Settings:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)
        debug : bool
            Include error details in 500 responses
        log_level : str
            Root logging level used by ``main()``

    Icon Settings:
        cdn_url : str
            Base URL that bare icon names (``mdi:home``) resolve against
        fallback_icon_url : str
            Icon fetched when the requested icon cannot be retrieved
        favicon_url : str
            Icon proxied by the ``/favicon.*`` routes
        icon_fetch_timeout : float | None
            Seconds before an icon fetch is abandoned (None disables it)

    Cache Settings:
        cache_backend : Literal["memory", "file", "none"]
            Key-value store holding rendered images
        cache_dir : Path
            Root directory of the file backend
        cache_namespace : str
            Sub-directory of ``cache_dir`` used by the file backend
        cache_key_prefix : str
            Prefix prepended to every derived cache key
        cache_ttl_seconds : int
            Time-to-live of stored images
        cache_max_items : int
            Capacity of the memory backend

    Notes
    -----
    - The file backend creates its directory lazily on first write
    - Configuration is immutable after initialization
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SOCIALCARDS_",
        case_sensitive=False,
        frozen=True,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    debug: bool = Field(
        default=False,
        description="Expose error details in 500 responses",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root logging level",
    )

    # Icon settings
    cdn_url: str = Field(
        default=CDN_URL,
        description="Base URL for bare icon names",
    )
    fallback_icon_url: str = Field(
        default=FALLBACK_ICON_URL,
        description="Icon used when the requested one cannot be fetched",
    )
    favicon_url: str = Field(
        default=FAVICON_URL,
        description="Icon served from /favicon.*",
    )
    icon_fetch_timeout: float | None = Field(
        default=10.0,
        description="Icon fetch timeout in seconds (None = wait forever)",
        gt=0,
    )

    # Cache settings
    cache_backend: Literal["memory", "file", "none"] = Field(
        default="memory",
        description="Cache store backend",
    )
    cache_dir: Path = Field(
        default=Path("cache"),
        description="Root directory of the file cache backend",
    )
    cache_namespace: str = Field(
        default="socialcards",
        description="Namespace (sub-directory) of the file cache backend",
    )
    cache_key_prefix: str = Field(
        default="asset::",
        description="Prefix prepended to derived cache keys",
    )
    cache_ttl_seconds: int = Field(
        default=TTL_1Y,
        description="Time-to-live of cached images in seconds",
        ge=1,
    )
    cache_max_items: int = Field(
        default=1024,
        description="Maximum number of images held by the memory backend",
        ge=1,
    )
