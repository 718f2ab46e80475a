"""
Patient Schemas - Pydantic models for patient input and responses.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import field_validator
from ..auth.schemas import CamelModel
from ..orders.models import OrderStatus
from .models import PatientStatus

class PatientInput(CamelModel):
    """
    Patient reference sent with an order
    
    Fields:
    - hn: Hospital number (required, non-empty)
    - full_name / an: Updated on the existing record when present
    """
    hn: str
    full_name: Optional[str] = None
    an: Optional[str] = None

    @field_validator("hn")
    @classmethod
    def hn_not_blank(cls, value: str) -> str:
        value = str(value).strip()
        if not value:
            raise ValueError("Patient HN is required")
        return value


class PatientOrderSummary(CamelModel):
    id: str
    status: OrderStatus
    ward_id: int
    created_at: datetime


class PatientResponse(CamelModel):
    id: int
    hn: str
    an: Optional[str] = None
    full_name: Optional[str] = None
    ward_id: Optional[int] = None
    status: PatientStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientWithOrdersResponse(PatientResponse):
    orders: List[PatientOrderSummary] = []
