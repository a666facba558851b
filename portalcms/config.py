"""
portalcms.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the console's infrastructure settings (backend
base URL, game catalog endpoint, image host, timeouts).  Secrets such as
the unsigned upload preset are read from the environment (``.env`` is
loaded by the entry point) and override the YAML values.

Usage::

    from portalcms.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.api_url)           # "http://localhost:5000/api"
    print(cfg.request_timeout)   # 10.0
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_PAGE_SIZE = 5
DEFAULT_REQUEST_TIMEOUT = 10.0


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ConsoleConfig:
    """Immutable configuration loaded from ``config.yaml`` + environment."""

    # Backend
    api_url: str

    # External game catalog
    game_catalog_url: str = ""
    tenant_domain: str = "sg8"

    # Image host
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""
    uploader_id: str = ""

    # HTTP
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # List views
    default_page_size: int = DEFAULT_PAGE_SIZE


# Environment variable → config field.  Env wins over YAML.
_ENV_OVERRIDES: dict[str, str] = {
    "PORTALCMS_API_URL": "api_url",
    "PORTALCMS_GAME_CATALOG_URL": "game_catalog_url",
    "PORTALCMS_TENANT_DOMAIN": "tenant_domain",
    "CLOUDINARY_CLOUD_NAME": "cloudinary_cloud_name",
    "CLOUDINARY_UPLOAD_PRESET": "cloudinary_upload_preset",
    "PORTALCMS_UPLOADER_ID": "uploader_id",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ConsoleConfig:
    """Read *path* and return a :class:`ConsoleConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If ``api_url`` is missing from both the YAML file and the
        environment.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    for env_name, key in _ENV_OVERRIDES.items():
        value = os.getenv(env_name, "").strip()
        if value:
            raw[key] = value

    page_size = int(raw.get("default_page_size") or DEFAULT_PAGE_SIZE)
    if page_size < 1:
        raise ValueError(f"default_page_size must be positive, got {page_size}")

    return ConsoleConfig(
        api_url=str(raw["api_url"]).rstrip("/"),
        game_catalog_url=str(raw.get("game_catalog_url") or ""),
        tenant_domain=str(raw.get("tenant_domain") or "sg8"),
        cloudinary_cloud_name=str(raw.get("cloudinary_cloud_name") or ""),
        cloudinary_upload_preset=str(raw.get("cloudinary_upload_preset") or ""),
        uploader_id=str(raw.get("uploader_id") or ""),
        request_timeout=float(raw.get("request_timeout") or DEFAULT_REQUEST_TIMEOUT),
        default_page_size=page_size,
    )
