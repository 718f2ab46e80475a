"""
Notification Model - Persisted per-recipient notifications about orders.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, Text
from datetime import datetime, timezone
import enum

from ..database import Base

class NotificationType(str, enum.Enum):
    NEW_ORDER = "new_order"
    ORDER_STATUS = "order_status"


def utcnow():
    return datetime.now(timezone.utc)


class Notification(Base):
    """
    Notification Model
    
    Fields:
    - user_id: Recipient
    - message: Human-readable text naming the order
    - type: new_order or order_status
    - status: Status of the related order when the notification was written
    - related_id: Order id
    - is_read: Set once by mark-read, never cleared
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    status = Column(String, nullable=True)
    related_id = Column(String, nullable=True, index=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type}', related_id='{self.related_id}')>"
