"""
Notification Service - persisted notifications and their real-time delivery.

Every notification row is committed before it is pushed, so a failed or
missed push never loses it; the recipient gets it from the list endpoint.
Fan-out to several recipients is sequential and not atomic as a batch.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..exceptions import NotFoundException
from ..orders.models import Order, OrderStatus
from ..realtime.channel import RealtimeChannel, NOTIFICATION_EVENT
from .models import Notification, NotificationType
from .schemas import NotificationResponse

logger = logging.getLogger(__name__)

def new_order_message(order: Order) -> str:
    creator = order.created_by.full_name if order.created_by else "unknown user"
    return f"New order {order.id} created by {creator}"

def status_change_message(order: Order) -> str:
    approver = order.approved_by.full_name if order.approved_by else "a pharmacist"
    verb = "approved" if order.status == OrderStatus.COMPLETED else "rejected"
    return f"Order {order.id} has been {verb} by {approver}"


class NotificationDispatcher:
    """
    Writes notifications for order events and pushes them to recipients' rooms.
    
    Args:
        db: Database session of the current request
        channel: Real-time channel used for delivery
    """

    def __init__(self, db: Session, channel: Optional[RealtimeChannel]):
        self.db = db
        self.channel = channel

    async def notify_new_order(self, order: Order) -> List[Notification]:
        """Notify every pharmacist about a freshly created order."""
        pharmacists = (
            self.db.query(User)
            .filter(User.role == UserRole.PHARMACIST)
            .order_by(User.id)
            .all()
        )
        message = new_order_message(order)
        order_id, status = order.id, order.status.value
        sent = []
        for pharmacist in pharmacists:
            notification = self._persist(pharmacist.id, message, NotificationType.NEW_ORDER, order_id, status)
            await self._push(notification)
            sent.append(notification)
        logger.info(f"Order {order_id}: notified {len(sent)} pharmacist(s)")
        return sent

    async def notify_status_change(self, order: Order) -> Notification:
        """Notify the order's creator that it was approved or rejected."""
        notification = self._persist(
            order.created_by_id,
            status_change_message(order),
            NotificationType.ORDER_STATUS,
            order.id,
            order.status.value,
        )
        await self._push(notification)
        return notification

    def _persist(self, user_id: int, message: str, type_: NotificationType, order_id: str, status: str) -> Notification:
        notification = Notification(
            user_id=user_id,
            message=message,
            type=type_,
            status=status,
            related_id=order_id,
        )
        self.db.add(notification)
        try:
            self.db.commit()
            self.db.refresh(notification)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving {type_.value} notification for user {user_id}: {str(e)}")
            raise
        return notification

    async def _push(self, notification: Notification) -> None:
        if self.channel is None:
            return
        payload = NotificationResponse.model_validate(notification).model_dump(by_alias=True, mode="json")
        try:
            await self.channel.emit_to_user(notification.user_id, NOTIFICATION_EVENT, payload)
        except Exception as e:
            logger.warning(f"Push of notification {notification.id} to user {notification.user_id} failed: {str(e)}")


def get_notifications(db: Session, user_id: int) -> List[Notification]:
    """Notifications of *user_id*, newest first."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )

def _get_owned(db: Session, notification_id: int, user_id: int) -> Notification:
    # Someone else's notification is reported exactly like a missing one.
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification or notification.user_id != user_id:
        raise NotFoundException("Notification not found or not authorized")
    return notification

def mark_notification_read(db: Session, notification_id: int, user_id: int) -> Notification:
    notification = _get_owned(db, notification_id, user_id)
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification

def delete_notification(db: Session, notification_id: int, user_id: int) -> None:
    notification = _get_owned(db, notification_id, user_id)
    db.delete(notification)
    db.commit()
    logger.info(f"Notification {notification_id} deleted by user {user_id}")
