"""
Order Router - API endpoints for the drug order lifecycle.

Create/update take multipart forms: ``patient``, ``drugs``, ``otherData`` and
``existingAttachments`` are JSON strings, file parts are named ``attachments``.
Every state change is pushed to the realtime channel of the order's ward.
"""
from typing import List, Optional
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_user, require_pharmacist
from ..auth.models import User
from ..core.storage import discard_attachments, save_attachments
from ..exceptions import ValidationException
from ..notifications.service import NotificationDispatcher
from ..realtime.channel import RealtimeChannel, ORDER_CREATED_EVENT, ORDER_UPDATED_EVENT
from ..realtime.dependencies import get_channel, get_dispatcher
from .enrichment import enrich_orders
from .schemas import OrderResponse, OrderDeleted, StatusUpdate
from .service import (
    create_order,
    delete_order,
    ensure_editable,
    get_order,
    list_orders,
    parse_order_form,
    require_ward,
    update_order,
    update_order_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])

def _parse_datetime(value: Optional[str], name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationException(f"Invalid {name}: {value}")

def _respond(db: Session, order) -> OrderResponse:
    [data] = enrich_orders(db, [order])
    return OrderResponse.model_validate(data)

async def _publish(channel: RealtimeChannel, event: str, response: OrderResponse) -> None:
    try:
        await channel.broadcast(event, response.model_dump(by_alias=True, mode="json"), ward_id=response.ward_id)
    except Exception as e:
        logger.warning(f"Broadcast of {event} for order {response.id} failed: {str(e)}")

async def _notify(notify, order) -> None:
    order_id = order.id
    try:
        await notify(order)
    except Exception as e:
        logger.error(f"Notifications for order {order_id} failed: {str(e)}")

@router.get("", summary="List orders")
async def list_orders_route(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    latest: bool = Query(False),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List orders of the user's ward, newest first.
    
    With ``patientId`` and ``latest=true`` the response is a single order
    object (or null) instead of a list.
    """
    orders = list_orders(
        db,
        current_user,
        patient_id=patient_id,
        latest=latest,
        start_date=_parse_datetime(start_date, "startDate"),
        end_date=_parse_datetime(end_date, "endDate"),
    )
    responses = [OrderResponse.model_validate(data) for data in enrich_orders(db, orders)]
    if patient_id is not None and latest:
        return responses[0] if responses else None
    return responses

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order_route(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _respond(db, get_order(db, order_id, current_user))

@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order_route(
    patient: Optional[str] = Form(None),
    drugs: Optional[str] = Form(None),
    other_data: Optional[str] = Form(None, alias="otherData"),
    notes: Optional[str] = Form(None),
    existing_attachments: Optional[str] = Form(None, alias="existingAttachments"),
    attachments: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: RealtimeChannel = Depends(get_channel),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Create a PENDING order in the user's ward and notify every pharmacist.
    """
    require_ward(current_user)
    form = parse_order_form(patient, drugs, other_data, notes, existing_attachments)
    uploaded = await save_attachments(attachments)
    try:
        order = create_order(db, current_user, form, uploaded)
    except Exception:
        discard_attachments(uploaded)
        raise
    response = _respond(db, order)

    await _notify(dispatcher.notify_new_order, order)
    await _publish(channel, ORDER_CREATED_EVENT, response)
    return response

@router.put("/{order_id}", response_model=OrderResponse)
async def update_order_route(
    order_id: str,
    patient: Optional[str] = Form(None),
    drugs: Optional[str] = Form(None),
    other_data: Optional[str] = Form(None, alias="otherData"),
    notes: Optional[str] = Form(None),
    existing_attachments: Optional[str] = Form(None, alias="existingAttachments"),
    attachments: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: RealtimeChannel = Depends(get_channel),
):
    """
    Replace a PENDING order's content; kept attachments come first, new uploads after.
    """
    require_ward(current_user)
    ensure_editable(get_order(db, order_id, current_user))
    form = parse_order_form(patient, drugs, other_data, notes, existing_attachments)
    uploaded = await save_attachments(attachments)
    try:
        order = update_order(db, order_id, current_user, form, uploaded)
    except Exception:
        discard_attachments(uploaded)
        raise
    response = _respond(db, order)
    await _publish(channel, ORDER_UPDATED_EVENT, response)
    return response

@router.delete("/{order_id}", response_model=OrderDeleted)
async def delete_order_route(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    delete_order(db, order_id, current_user)
    return {"message": "Order deleted"}

@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status_route(
    order_id: str,
    body: StatusUpdate,
    current_user: User = Depends(require_pharmacist),
    db: Session = Depends(get_db),
    channel: RealtimeChannel = Depends(get_channel),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Approve (COMPLETED) or reject (REJECTED) a PENDING order and tell its creator.
    """
    order = update_order_status(db, order_id, body.status, current_user)
    response = _respond(db, order)

    await _notify(dispatcher.notify_status_change, order)
    await _publish(channel, ORDER_UPDATED_EVENT, response)
    return response
