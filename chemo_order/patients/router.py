"""
Patient Router - ward-scoped patient reads and status toggles.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_user
from ..auth.models import User
from ..exceptions import ValidationException
from .models import PatientStatus
from .schemas import PatientResponse, PatientWithOrdersResponse, PatientOrderSummary
from .service import get_patients, get_patient, set_patient_status, visible_orders

router = APIRouter(prefix="/api/patients", tags=["Patients"])

def _with_orders(patient, current_user: User) -> PatientWithOrdersResponse:
    response = PatientResponse.model_validate(patient)
    return PatientWithOrdersResponse(
        **response.model_dump(),
        orders=[PatientOrderSummary.model_validate(order) for order in visible_orders(patient, current_user)],
    )

@router.get("", response_model=List[PatientWithOrdersResponse])
async def list_patients_route(
    status: Optional[str] = Query(None, description="ACTIVE (default), COMPLETED or ALL"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List patients visible to the current user.
    
    Only ACTIVE patients are returned unless another status (or ALL) is asked for.
    """
    if status is None:
        status_filter = PatientStatus.ACTIVE
    elif status.upper() == "ALL":
        status_filter = None
    else:
        try:
            status_filter = PatientStatus(status.upper())
        except ValueError:
            raise ValidationException(f"Unknown patient status: {status}")
    patients = get_patients(db, current_user, status_filter)
    return [_with_orders(patient, current_user) for patient in patients]

@router.get("/{patient_id}", response_model=PatientWithOrdersResponse)
async def get_patient_route(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _with_orders(get_patient(db, patient_id, current_user), current_user)

@router.patch("/{patient_id}/complete", response_model=PatientResponse)
async def complete_patient_route(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return set_patient_status(db, patient_id, PatientStatus.COMPLETED, current_user)

@router.patch("/{patient_id}/activate", response_model=PatientResponse)
async def activate_patient_route(
    patient_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return set_patient_status(db, patient_id, PatientStatus.ACTIVE, current_user)
