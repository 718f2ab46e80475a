"""
File storage for order attachments and shared images.

Everything lives under the public static-serving root (``settings.public_dir``),
mounted by the app at ``/public``. Attachments can go to Cloudinary instead when
``settings.storage_backend`` is ``"cloudinary"``.
"""
import logging
import os
import random
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import UploadFile

from ..config import settings
from ..exceptions import AppException, ValidationException

logger = logging.getLogger(__name__)

UPLOADS_DIR_NAME = "uploads"
SHARED_IMAGE_DIR_NAME = "shared-images"
SHARED_PAGE_DIR_NAME = "shared-pages"

ALLOWED_FILE_TYPES = re.compile(r"jpeg|jpg|png|gif|pdf")


def public_root() -> Path:
    return Path(settings.public_dir)


def uploads_dir() -> Path:
    return public_root() / UPLOADS_DIR_NAME


def shared_image_dir() -> Path:
    return public_root() / SHARED_IMAGE_DIR_NAME


def shared_page_dir() -> Path:
    return public_root() / SHARED_PAGE_DIR_NAME


def ensure_public_dirs() -> None:
    """Create the static root and its sub-directories if they are missing."""
    for directory in (uploads_dir(), shared_image_dir(), shared_page_dir()):
        directory.mkdir(parents=True, exist_ok=True)


def public_url(directory_name: str, file_name: str) -> str:
    return f"/public/{directory_name}/{file_name}"


def validate_attachment(file_name: str, content_type: str, size: int) -> None:
    """
    Check an uploaded file against the allowed types and the size limit.
    
    Raises:
        ValidationException: If the file is not an image/PDF or is too large
    """
    extension = os.path.splitext(file_name or "")[1].lower()
    if not (ALLOWED_FILE_TYPES.search(extension) and ALLOWED_FILE_TYPES.search(content_type or "")):
        raise ValidationException("Error: PDFs and Images Only!")
    if size > settings.max_upload_size:
        raise ValidationException(f"File {file_name} exceeds the {settings.max_upload_size} byte limit")


def build_attachment_file_name(original_name: str, content_type: str) -> str:
    file_type = "image" if content_type.startswith("image") else "pdf"
    timestamp = int(time.time() * 1000)
    random_suffix = random.randint(100000, 999999)
    return f"{file_type}-{timestamp}-{random_suffix}{os.path.splitext(original_name)[1].lower()}"


def _store(stored_name: str, content: bytes, content_type: str) -> str:
    if settings.storage_backend == "cloudinary":
        from .cloudinary import upload_attachment

        url = upload_attachment(content, os.path.splitext(stored_name)[0], content_type)
        if not url:
            raise AppException(502, "Attachment storage is unavailable")
        return url
    ensure_public_dirs()
    (uploads_dir() / stored_name).write_bytes(content)
    return public_url(UPLOADS_DIR_NAME, stored_name)


async def save_attachments(uploads: Optional[List[UploadFile]]) -> List[Dict[str, Any]]:
    """
    Check every uploaded part, then store them all.
    
    Nothing is written unless every part passes the count, type and size
    checks. If storing one part fails, the parts already stored are removed.
    
    Args:
        uploads: Multipart file parts (empty parts are ignored)
        
    Returns:
        List of dicts with fileName, fileUrl, fileType and fileSize, in upload order
        
    Raises:
        ValidationException: If there are too many files or one is not allowed
        AppException: If the remote backend rejects an upload
    """
    uploads = [u for u in (uploads or []) if u is not None and u.filename]
    if len(uploads) > settings.max_attachments:
        raise ValidationException(f"At most {settings.max_attachments} attachments are allowed")

    checked = []
    for upload in uploads:
        content = await upload.read()
        content_type = upload.content_type or "application/octet-stream"
        validate_attachment(upload.filename, content_type, len(content))
        checked.append((upload.filename, content, content_type))

    stored: List[Dict[str, Any]] = []
    try:
        for original_name, content, content_type in checked:
            stored_name = build_attachment_file_name(original_name, content_type)
            url = _store(stored_name, content, content_type)
            logger.info(f"Stored attachment {original_name} as {stored_name} ({len(content)} bytes)")
            stored.append({
                "fileName": stored_name,
                "fileUrl": url,
                "fileType": content_type,
                "fileSize": len(content),
            })
    except Exception:
        discard_attachments(stored)
        raise
    return stored


def discard_attachments(attachments: List[Dict[str, Any]]) -> None:
    """
    Remove attachments stored for a request that did not complete.
    
    Failures are logged; the caller is already handling another error.
    """
    for attachment in attachments:
        file_name = attachment["fileName"]
        try:
            if settings.storage_backend == "cloudinary":
                from .cloudinary import delete_attachment

                delete_attachment(os.path.splitext(file_name)[0], attachment.get("fileType") or "")
            else:
                (uploads_dir() / file_name).unlink(missing_ok=True)
            logger.info(f"Discarded attachment {file_name}")
        except Exception as e:
            logger.error(f"Could not discard attachment {file_name}: {str(e)}")
