"""
Shared images - store a data-URI image and a social preview page beside it.

Files live in ``<public>/shared-images`` and ``<public>/shared-pages`` and are
removed by the expiry sweep once older than the share TTL.
"""
import base64
import binascii
import html
import logging
import random
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..config import settings
from ..core.storage import (
    SHARED_IMAGE_DIR_NAME,
    SHARED_PAGE_DIR_NAME,
    ensure_public_dirs,
    public_url,
    shared_image_dir,
    shared_page_dir,
)
from ..exceptions import ValidationException

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)

def share_ttl() -> timedelta:
    return timedelta(days=settings.share_ttl_days)

def resolve_extension(mime_type: str) -> str:
    if mime_type in ("image/jpeg", "image/jpg"):
        return ".jpg"
    return ".png"

def create_shared_image_file_name(base_name: Optional[str] = "shared-image", extension: str = ".png") -> str:
    """Sanitised, lower-cased base name plus a time/random suffix."""
    sanitized = re.sub(r"[^a-z0-9\-_]", "", str(base_name or ""), flags=re.IGNORECASE).lower() or "shared-image"
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 999999)}"
    return f"{sanitized}-{unique_suffix}{extension}"

def build_share_page_html(image_url: str) -> str:
    """Preview page with Open Graph/Twitter card tags that redirects to the image."""
    url = html.escape(image_url, quote=True)
    return f"""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Shared Image Preview</title>
    <meta property="og:title" content="Shared Image" />
    <meta property="og:description" content="Tap to view the shared image." />
    <meta property="og:image" content="{url}" />
    <meta property="og:type" content="article" />
    <meta name="twitter:card" content="summary_large_image" />
    <meta http-equiv="refresh" content="5;url={url}" />
    <style>
      body {{
        margin: 0;
        min-height: 100vh;
        display: flex;
        flex-direction: column;
        align-items: center;
        justify-content: center;
        gap: 2rem;
        background: #0f172a;
        color: #e2e8f0;
        font-family: system-ui, -apple-system, 'Segoe UI', sans-serif;
      }}
      img {{ max-width: 90vw; max-height: 70vh; border-radius: 14px; }}
      a {{ color: #38bdf8; font-weight: 600; text-decoration: none; }}
    </style>
  </head>
  <body>
    <img src="{url}" alt="Shared preview" />
    <a href="{url}">Open full image</a>
  </body>
</html>"""

def decode_data_uri(image_base64: Optional[str]):
    """
    Split a data URI into its mime type and decoded bytes.
    
    Raises:
        ValidationException: If the value is missing or not a base64 image URI
    """
    if not image_base64 or not isinstance(image_base64, str):
        raise ValidationException("imageBase64 is required")
    match = DATA_URI_PATTERN.match(image_base64.strip())
    if not match:
        raise ValidationException("Invalid image data")
    mime_type, payload = match.groups()
    try:
        content = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise ValidationException("Invalid image data")
    if not content:
        raise ValidationException("Invalid image data")
    return mime_type, content

def save_shared_image(
    image_base64: Optional[str],
    file_name: Optional[str],
    base_url: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Store a shared image and its preview page.
    
    Args:
        image_base64: data URI of the image
        file_name: Requested base name
        base_url: Scheme and host used for the absolute URLs, e.g. http://host:5000
        now: Current time (defaults to now, UTC)
        
    Returns:
        Dict with image_url, direct_image_url, share_url, file_name, expires_at, ttl_days
    """
    mime_type, content = decode_data_uri(image_base64)
    now = now or datetime.now(timezone.utc)
    base_url = base_url.rstrip("/")

    ensure_public_dirs()
    stored_name = create_shared_image_file_name(file_name or "shared-image", resolve_extension(mime_type))
    (shared_image_dir() / stored_name).write_bytes(content)

    image_url = public_url(SHARED_IMAGE_DIR_NAME, stored_name)
    page_name = f"{stored_name.rsplit('.', 1)[0]}.html"
    (shared_page_dir() / page_name).write_text(build_share_page_html(f"{base_url}{image_url}"), encoding="utf-8")
    page_url = public_url(SHARED_PAGE_DIR_NAME, page_name)

    logger.info(f"Stored shared image {stored_name} ({len(content)} bytes)")
    return {
        "image_url": image_url,
        "direct_image_url": f"{base_url}{image_url}",
        "share_url": f"{base_url}{page_url}",
        "file_name": stored_name,
        "expires_at": now + share_ttl(),
        "ttl_days": settings.share_ttl_days,
    }
