"""
Notification Schemas
"""
from typing import Optional
from datetime import datetime
from ..auth.schemas import CamelModel
from .models import NotificationType

class NotificationResponse(CamelModel):
    """
    Notification Response Schema
    
    Fields:
    - user_id: Recipient
    - type: new_order or order_status
    - status: Order status at the time of the notification
    - related_id: Order id
    - is_read: Whether the recipient marked it read
    """
    id: int
    user_id: int
    message: str
    type: NotificationType
    status: Optional[str] = None
    related_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime
