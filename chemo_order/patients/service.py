"""
Patient Service - Patient upsert, ward-scoped reads and status changes.

A ward identity sees a patient registered under its ward, or one that has at
least one order in its ward. Identities without a ward see every patient.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import or_
import logging

from ..auth.models import User
from ..exceptions import ForbiddenException, NotFoundException, ValidationException
from ..orders.models import Order
from .models import Patient, PatientStatus
from .schemas import PatientInput

# Set up logging
logger = logging.getLogger(__name__)

def ensure_patient_record(db: Session, patient_data: PatientInput, ward_id: Optional[int]) -> Patient:
    """
    Upsert a patient by hospital number.
    
    An existing record gets its name and AN refreshed; a new record is created
    under the acting ward. Nothing is committed here.
    
    Args:
        db: Database session
        patient_data: Patient reference from the order payload
        ward_id: Ward of the acting identity
        
    Returns:
        Patient: The existing or newly created patient
        
    Raises:
        ValidationException: If the HN is missing
    """
    if patient_data is None or not patient_data.hn:
        raise ValidationException("Patient HN is required")

    patient = db.query(Patient).filter(Patient.hn == patient_data.hn).first()
    if patient:
        if patient_data.full_name is not None:
            patient.full_name = patient_data.full_name
        if patient_data.an is not None:
            patient.an = patient_data.an
    else:
        patient = Patient(
            hn=patient_data.hn,
            full_name=patient_data.full_name,
            an=patient_data.an,
            ward_id=ward_id,
        )
        db.add(patient)
        logger.info(f"Registering new patient HN {patient_data.hn} under ward {ward_id}")
    db.flush()
    return patient

def _ward_filter(ward_id: int):
    return or_(
        Patient.ward_id == ward_id,
        Patient.orders.any(Order.ward_id == ward_id),
    )

def get_patients(db: Session, current_user: User, status: Optional[PatientStatus] = PatientStatus.ACTIVE) -> List[Patient]:
    """
    List patients visible to the identity, optionally filtered by status.
    """
    query = db.query(Patient)
    if current_user.ward_id:
        query = query.filter(_ward_filter(current_user.ward_id))
    if status is not None:
        query = query.filter(Patient.status == status)
    return query.order_by(Patient.created_at.desc(), Patient.id.desc()).all()

def visible_orders(patient: Patient, current_user: User) -> List[Order]:
    """Orders of *patient* restricted to the identity's ward."""
    if not current_user.ward_id:
        return list(patient.orders)
    return [order for order in patient.orders if order.ward_id == current_user.ward_id]

def get_patient(db: Session, patient_id: int, current_user: User) -> Patient:
    """
    Get a patient by id.
    
    Raises:
        NotFoundException: If the patient does not exist
        ForbiddenException: If the patient belongs to another ward
    """
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise NotFoundException("Patient not found")

    if current_user.ward_id:
        in_ward = patient.ward_id == current_user.ward_id or any(
            order.ward_id == current_user.ward_id for order in patient.orders
        )
        if not in_ward:
            raise ForbiddenException("Forbidden: You do not have access to this patient.")
    return patient

def set_patient_status(db: Session, patient_id: int, status: PatientStatus, current_user: User) -> Patient:
    """
    Mark a visible patient ACTIVE or COMPLETED.
    """
    patient = get_patient(db, patient_id, current_user)
    patient.status = status
    try:
        db.commit()
        db.refresh(patient)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating patient {patient_id} status: {str(e)}")
        raise
    logger.info(f"Patient {patient_id} marked {status.value} by user {current_user.id}")
    return patient
