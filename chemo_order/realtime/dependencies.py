"""
Dependencies giving routes access to the lifespan-owned realtime channel.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..notifications.service import NotificationDispatcher
from .channel import RealtimeChannel

def get_channel(request: Request) -> RealtimeChannel:
    return request.app.state.channel

def get_dispatcher(
    db: Session = Depends(get_db),
    channel: RealtimeChannel = Depends(get_channel),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, channel)
