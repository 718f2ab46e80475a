"""
Share Schemas - shared image upload and response.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel
from ..auth.schemas import CamelModel

class SharedImageRequest(BaseModel):
    """
    Fields:
    - imageBase64: data URI, e.g. data:image/png;base64,iVBOR...
    - fileName: Base name for the stored file (optional)
    """
    imageBase64: Optional[str] = None
    fileName: Optional[str] = None


class SharedImageResponse(CamelModel):
    image_url: str
    direct_image_url: str
    share_url: str
    file_name: str
    expires_at: datetime
    ttl_days: int
