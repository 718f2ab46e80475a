"""
Order Schemas - Pydantic models for order input and responses.

The multipart form carries ``patient``, ``drugs``, ``otherData`` and
``existingAttachments`` as JSON text; they are decoded into these models at
the edge so the service only ever sees typed data.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from dataclasses import dataclass, field
from pydantic import BaseModel, field_validator
from ..auth.schemas import CamelModel, UserSummary
from ..patients.schemas import PatientInput, PatientResponse
from .models import OrderStatus

class DrugEntryInput(CamelModel):
    """
    One drug-dosing entry of an order
    
    Fields:
    - drug_id: Catalog id, or "other" for a free-text drug
    - dose / day: Dosing as entered by the nurse
    - name: Display name, required in practice for "other"
    """
    drug_id: str
    dose: Optional[Any] = None
    day: Optional[Any] = None
    name: Optional[str] = None

    @field_validator("drug_id", mode="before")
    @classmethod
    def drug_id_as_text(cls, value):
        if value is None or str(value).strip() == "":
            raise ValueError("drugId is required")
        return str(value)


class OrderDetailsInput(CamelModel):
    """
    The ``otherData`` part of the form. Unknown keys are kept and stored in
    the order's ``details``.
    """
    regimen_id: Optional[str] = None
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None

    class Config:
        extra = "allow"

    @field_validator("start_date", "completion_date", mode="before")
    @classmethod
    def blank_date_is_none(cls, value):
        return value or None

    @property
    def extra_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class Attachment(CamelModel):
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None


@dataclass
class OrderForm:
    """Decoded order form, ready for the service layer."""
    patient: PatientInput
    drugs: List[DrugEntryInput]
    details: OrderDetailsInput
    notes: Optional[str] = None
    existing_attachments: List[Dict[str, Any]] = field(default_factory=list)


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class OrderResponse(CamelModel):
    """
    Order Response Schema
    
    Drug entries carry catalog names; attachments are the decoded list in
    stored order.
    """
    id: str
    patient_id: int
    ward_id: int
    created_by_id: int
    approved_by_id: Optional[int] = None
    regimen_id: Optional[str] = None
    drugs: List[Dict[str, Any]] = []
    status: OrderStatus
    attachments: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    details: Dict[str, Any] = {}
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    patient: Optional[PatientResponse] = None
    created_by: Optional[UserSummary] = None
    approved_by: Optional[UserSummary] = None


class OrderDeleted(BaseModel):
    message: str
