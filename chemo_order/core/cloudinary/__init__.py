import cloudinary
import cloudinary.uploader
import cloudinary.exceptions
import logging
from typing import Optional
from ...config import settings

# Set up logger for this module
logger = logging.getLogger(__name__)

_configured = False

def _ensure_configured():
    global _configured
    if _configured:
        return
    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret
    )
    _configured = True

def upload_attachment(content: bytes, public_id: str, content_type: str) -> Optional[str]:
    """
    Uploads an order attachment to Cloudinary and returns the URL.
    Returns None if the upload fails.
    """
    _ensure_configured()
    resource_type = "image" if content_type.startswith("image") else "raw"
    try:
        result = cloudinary.uploader.upload(
            content,
            folder="order_attachments",
            public_id=public_id,
            overwrite=False,
            resource_type=resource_type
        )
        secure_url = result.get("secure_url")
        if not secure_url:
            logger.error("Cloudinary upload result did not contain a secure_url.")
            return None
        logger.info(f"Successfully uploaded attachment to Cloudinary. URL: {secure_url}")
        return secure_url
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary API error during attachment upload: {str(e)}")
        return None

def delete_attachment(public_id: str, content_type: str) -> bool:
    """
    Deletes an attachment previously uploaded with upload_attachment.
    Returns False if Cloudinary reports an error.
    """
    _ensure_configured()
    resource_type = "image" if content_type.startswith("image") else "raw"
    try:
        result = cloudinary.uploader.destroy(f"order_attachments/{public_id}", resource_type=resource_type)
        logger.info(f"Cloudinary delete of {public_id}: {result.get('result')}")
        return result.get("result") == "ok"
    except cloudinary.exceptions.Error as e:
        logger.error(f"Cloudinary API error during attachment delete: {str(e)}")
        return False
