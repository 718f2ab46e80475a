"""
Notification routes - the current user's notification inbox.
"""
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_user
from ..auth.models import User
from .schemas import NotificationResponse
from .service import get_notifications, mark_notification_read, delete_notification

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])

@router.get("", response_model=List[NotificationResponse])
async def list_notifications_route(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_notifications(db, current_user.id)

@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read_route(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return mark_notification_read(db, notification_id, current_user.id)

@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification_route(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    delete_notification(db, notification_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
