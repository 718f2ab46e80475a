"""
Order Service - Business logic for the order lifecycle.

Ward scoping: the ward always comes from the authenticated user, never from
the request. A user with a ward only reaches orders of that ward; a user
without one is unrestricted.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..auth.models import User
from ..exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..patients.schemas import PatientInput
from ..patients.service import ensure_patient_record
from .ids import generate_order_id
from .models import Order, OrderStatus
from .schemas import Attachment, DrugEntryInput, OrderDetailsInput, OrderForm

# Set up logging
logger = logging.getLogger(__name__)

MAX_CREATE_ATTEMPTS = 5

STATUS_ALIASES = {"APPROVED": OrderStatus.COMPLETED}

# ----------------------------------------------------------------------------
# Form decoding
# ----------------------------------------------------------------------------

def _decode_json_field(raw: Optional[str], field_name: str, default: Any = None, required: bool = False) -> Any:
    if raw is None or raw == "":
        if required:
            raise ValidationException(f"Missing required field: {field_name}")
        return default
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationException(f"Malformed JSON in field: {field_name}")

def parse_order_form(
    patient: Optional[str],
    drugs: Optional[str],
    other_data: Optional[str] = None,
    notes: Optional[str] = None,
    existing_attachments: Optional[str] = None,
) -> OrderForm:
    """
    Decode the JSON-encoded multipart fields into typed input.
    
    Raises:
        ValidationException: If patient/drugs are missing or any field is malformed
    """
    patient_data = _decode_json_field(patient, "patient", required=True)
    drugs_data = _decode_json_field(drugs, "drugs", required=True)
    other = _decode_json_field(other_data, "otherData", default={})
    existing = _decode_json_field(existing_attachments, "existingAttachments", default=[])

    if not isinstance(patient_data, dict) or not str(patient_data.get("hn") or "").strip():
        raise ValidationException("Patient HN is required")
    if not isinstance(drugs_data, list) or not drugs_data:
        raise ValidationException("At least one drug entry is required")
    if not isinstance(other, dict):
        raise ValidationException("otherData must be an object")
    if not isinstance(existing, list):
        raise ValidationException("existingAttachments must be a list")

    try:
        return OrderForm(
            patient=PatientInput.model_validate(patient_data),
            drugs=[DrugEntryInput.model_validate(drug) for drug in drugs_data],
            details=OrderDetailsInput.model_validate(other),
            notes=notes,
            existing_attachments=[
                Attachment.model_validate(item).model_dump(by_alias=True, exclude_none=True)
                for item in existing
            ],
        )
    except ValidationError as e:
        raise ValidationException(f"Invalid order data: {e.errors()[0].get('msg', 'invalid value')}")

def map_drugs_payload(drugs: List[DrugEntryInput]) -> List[Dict[str, Any]]:
    """Storage shape of drug entries: {drugId, dose, day, name?}."""
    payload = []
    for drug in drugs:
        entry = {"drugId": drug.drug_id, "dose": drug.dose, "day": drug.day}
        if drug.name:
            entry["name"] = drug.name
        payload.append(entry)
    return payload

def combine_attachments(existing: List[Dict[str, Any]], uploaded: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attachments kept by the caller first, then the new uploads, in order."""
    return list(existing) + list(uploaded)

# ----------------------------------------------------------------------------
# Access control
# ----------------------------------------------------------------------------

def require_ward(current_user: User) -> int:
    """
    Ward of a user allowed to write orders.
    
    Raises:
        ForbiddenException: If the user has no ward
    """
    if not current_user.ward_id:
        raise ForbiddenException("User is not assigned to a ward.")
    return current_user.ward_id

def _check_ward_access(order: Order, current_user: User) -> None:
    if current_user.ward_id and order.ward_id != current_user.ward_id:
        logger.warning(f"User {current_user.id} (ward {current_user.ward_id}) denied order {order.id} (ward {order.ward_id})")
        raise ForbiddenException("Forbidden: You do not have access to this order.")

def ensure_editable(order: Order) -> None:
    """
    Raises:
        ConflictException: If the order was already approved or rejected
    """
    if order.is_terminal:
        raise ConflictException(f"Order {order.id} is {order.status.value} and can no longer be edited")

def _order_query(db: Session):
    return db.query(Order).options(
        joinedload(Order.patient),
        joinedload(Order.created_by),
        joinedload(Order.approved_by),
    )

# ----------------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------------

def get_order(db: Session, order_id: str, current_user: User) -> Order:
    """
    Get an order by id.
    
    Raises:
        NotFoundException: If the order does not exist
        ForbiddenException: If the order belongs to another ward
    """
    order = _order_query(db).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundException("Order not found")
    _check_ward_access(order, current_user)
    return order

def list_orders(
    db: Session,
    current_user: User,
    patient_id: Optional[int] = None,
    latest: bool = False,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[Order]:
    """
    List orders visible to the user, newest first.
    
    Args:
        db: Database session
        current_user: Identity whose ward scopes the query
        patient_id: Only orders of this patient
        latest: With patient_id, return at most the most recent order
        start_date / end_date: Bounds on the last update time
        
    Returns:
        List of orders (at most one when latest applies)
    """
    query = _order_query(db)
    if current_user.ward_id:
        query = query.filter(Order.ward_id == current_user.ward_id)
    if patient_id is not None:
        query = query.filter(Order.patient_id == patient_id)
    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    if patient_id is not None and latest:
        order = query.first()
        return [order] if order else []

    if start_date:
        query = query.filter(Order.updated_at >= start_date)
    if end_date:
        query = query.filter(Order.updated_at <= end_date)
    return query.all()

# ----------------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------------

def _apply_form(order: Order, form: OrderForm, patient_id: int, attachments: List[Dict[str, Any]]) -> None:
    order.patient_id = patient_id
    order.drugs = map_drugs_payload(form.drugs)
    order.attachments = json.dumps(attachments)
    order.notes = form.notes
    order.regimen_id = form.details.regimen_id
    order.start_date = form.details.start_date
    order.completion_date = form.details.completion_date
    order.details = form.details.extra_fields

def create_order(db: Session, current_user: User, form: OrderForm, uploaded: List[Dict[str, Any]]) -> Order:
    """
    Create a PENDING order in the user's ward.
    
    The patient is upserted by HN, a fresh id is reserved and the order is
    inserted in one transaction. A unique-constraint violation (an id or HN
    taken by a concurrent request) rolls back and retries the whole unit.
    
    Args:
        db: Database session
        current_user: Creating nurse; supplies ward and creator
        form: Decoded order form
        uploaded: Attachments stored for this request
        
    Returns:
        Order: The created order
        
    Raises:
        ForbiddenException: If the user has no ward
    """
    ward_id = require_ward(current_user)
    attachments = combine_attachments(form.existing_attachments, uploaded)

    for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
        try:
            patient = ensure_patient_record(db, form.patient, ward_id)
            order = Order(
                id=generate_order_id(db),
                ward_id=ward_id,
                created_by_id=current_user.id,
                status=OrderStatus.PENDING,
            )
            _apply_form(order, form, patient.id, attachments)
            db.add(order)
            db.commit()
            break
        except IntegrityError as e:
            db.rollback()
            if attempt == MAX_CREATE_ATTEMPTS:
                logger.error(f"Giving up creating order after {attempt} attempts: {str(e)}")
                raise
            logger.warning(f"Order create attempt {attempt} hit a unique constraint, retrying: {str(e.orig)}")

    logger.info(f"Order {order.id} created by user {current_user.id} in ward {ward_id} with {len(attachments)} attachment(s)")
    return get_order(db, order.id, current_user)

def update_order(
    db: Session,
    order_id: str,
    current_user: User,
    form: OrderForm,
    uploaded: List[Dict[str, Any]],
) -> Order:
    """
    Replace an order's content.
    
    The patient is re-resolved by HN and attachments become the ones the
    caller kept followed by the new uploads. Id, ward, creator and status are
    not touched. Only PENDING orders can be edited.
    """
    require_ward(current_user)
    order = get_order(db, order_id, current_user)
    ensure_editable(order)

    try:
        patient = ensure_patient_record(db, form.patient, order.ward_id)
        _apply_form(order, form, patient.id, combine_attachments(form.existing_attachments, uploaded))
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating order {order_id}: {str(e)}")
        raise

    logger.info(f"Order {order_id} updated by user {current_user.id}")
    return get_order(db, order_id, current_user)

def delete_order(db: Session, order_id: str, current_user: User) -> None:
    """Hard-delete an order of the user's ward."""
    require_ward(current_user)
    order = get_order(db, order_id, current_user)
    try:
        db.delete(order)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting order {order_id}: {str(e)}")
        raise
    logger.info(f"Order {order_id} deleted by user {current_user.id}")

def resolve_status(value: Optional[str]) -> OrderStatus:
    """
    Parse a requested status; APPROVED is accepted as COMPLETED.
    
    Raises:
        ValidationException: If the status is missing or unknown
    """
    if not value:
        raise ValidationException("Status is required")
    key = str(value).strip().upper()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        return OrderStatus(key)
    except ValueError:
        raise ValidationException(f"Unknown order status: {value}")

def update_order_status(db: Session, order_id: str, status: Optional[str], current_user: User) -> Order:
    """
    Approve or reject a PENDING order.
    
    Only PENDING -> COMPLETED and PENDING -> REJECTED are allowed; repeating a
    decision or moving back to PENDING is refused.
    
    Raises:
        ValidationException: If the status is missing or unknown
        NotFoundException: If the order does not exist
        ForbiddenException: If the order belongs to another ward
        InvalidStatusTransitionException: If the order is not PENDING or the target is PENDING
    """
    new_status = resolve_status(status)
    order = get_order(db, order_id, current_user)

    if order.is_terminal or new_status == OrderStatus.PENDING:
        raise InvalidStatusTransitionException(order.status.value, new_status.value)

    order.status = new_status
    order.approved_by_id = current_user.id
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating order {order_id} status: {str(e)}")
        raise

    logger.info(f"Order {order_id} moved to {new_status.value} by user {current_user.id}")
    return get_order(db, order_id, current_user)
