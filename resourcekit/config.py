"""
Settings for resourcekit.

The definition document is the only input that shapes compiled behavior.
These settings only say where definition files live and how the bundled
HTTP client reaches its API.

Environment:
    RESOURCEKIT_DEFINITIONS_DIR  directory holding <service>.resources.json
    RESOURCEKIT_BASE_URL         base URL for HttpApiClient.from_settings()
    RESOURCEKIT_API_KEY          bearer token for HttpApiClient
    RESOURCEKIT_TIMEOUT          request timeout in seconds (default 30)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr

logger = logging.getLogger(__name__)


class ResourceSettings(BaseModel):
    """Process settings, normally built by get_settings()."""

    definitions_dir: str | None = Field(
        default=None,
        description="Directory of <service>.resources.json documents",
    )
    base_url: str | None = Field(default=None, description="API base URL")
    api_key: SecretStr | None = Field(default=None, description="Bearer token")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")


@lru_cache()
def get_settings() -> ResourceSettings:
    """
    Get settings from environment.

    Uses lru_cache for singleton pattern; call get_settings.cache_clear()
    after changing the environment.
    """
    settings = ResourceSettings(
        definitions_dir=os.getenv("RESOURCEKIT_DEFINITIONS_DIR"),
        base_url=os.getenv("RESOURCEKIT_BASE_URL"),
        api_key=os.getenv("RESOURCEKIT_API_KEY"),
        timeout=float(os.getenv("RESOURCEKIT_TIMEOUT", "30")),
    )
    logger.debug(
        f"[settings] definitions_dir={settings.definitions_dir} "
        f"base_url={settings.base_url}"
    )
    return settings
