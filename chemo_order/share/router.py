"""
Share routes - publish an image with an expiring preview link.
"""
from fastapi import APIRouter, Depends, Request, status

from ..auth.dependencies import get_current_user
from .schemas import SharedImageRequest, SharedImageResponse
from .service import save_shared_image

router = APIRouter(prefix="/api/share", tags=["Share"])

@router.post("/images", response_model=SharedImageResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(get_current_user)])
async def share_image_route(body: SharedImageRequest, request: Request):
    """
    Store a base64 image and return links to it and to its preview page.
    
    The links stop working once the cleanup sweep removes the files after the
    share TTL (15 days by default).
    """
    return save_shared_image(body.imageBase64, body.fileName, str(request.base_url))
