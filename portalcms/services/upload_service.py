"""
portalcms.services.upload_service — Image upload handling
==========================================================

Banner images and provider logos are hosted by a third-party image host
(Cloudinary-style unsigned upload).  Files are validated locally first —
JPEG or WEBP, at most 1 MiB — so a rejected file is never sent.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from portalcms.constants import ALLOWED_IMAGE_EXTENSIONS, ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES

logger = logging.getLogger(__name__)

UPLOAD_URL_TEMPLATE = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


class UploadError(ValueError):
    """Raised when a file is rejected or the image host returns no URL."""


def validate_image(filename: str, size: int, content_type: str | None = None) -> None:
    """Reject anything but a JPEG/WEBP file of at most 1 MiB.

    Raises
    ------
    UploadError
        With the message shown to the user.
    """
    if content_type:
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise UploadError("Only JPEG and WEBP formats are allowed.")
    elif Path(filename).suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
        raise UploadError("Only JPEG and WEBP formats are allowed.")

    if size > MAX_IMAGE_BYTES:
        raise UploadError("File must be below 1MB")


async def upload_image(
    http: httpx.AsyncClient,
    *,
    cloud_name: str,
    upload_preset: str,
    filename: str,
    content: bytes,
    content_type: str | None = None,
) -> str:
    """Validate and upload an image; return its hosted ``secure_url``.

    Raises
    ------
    UploadError
        If validation fails, the host is unreachable, or the response has
        no ``secure_url``.
    """
    validate_image(filename, len(content), content_type)
    if not cloud_name or not upload_preset:
        raise UploadError("Image hosting is not configured")

    url = UPLOAD_URL_TEMPLATE.format(cloud_name=cloud_name)
    try:
        resp = await http.post(
            url,
            data={"upload_preset": upload_preset},
            files={"file": (filename, content, content_type or "application/octet-stream")},
        )
        body = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Image upload of %s failed", filename)
        raise UploadError("Image upload failed") from exc

    secure_url = body.get("secure_url") if isinstance(body, dict) else None
    if not secure_url:
        logger.warning("Image host returned no secure_url for %s (HTTP %d)", filename, resp.status_code)
        raise UploadError("Image upload failed")
    return secure_url


def public_id_from_url(url: str) -> str | None:
    """Hosted asset id: the path after ``/upload/`` without its extension.

    Returns ``None`` for URLs that aren't image-host upload URLs.
    """
    marker = "/upload/"
    idx = url.find(marker)
    if idx < 0:
        return None
    public_id = url[idx + len(marker):]
    stem, dot, ext = public_id.rpartition(".")
    if dot and "/" not in ext:
        public_id = stem
    return public_id or None
