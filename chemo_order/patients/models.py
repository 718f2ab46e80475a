"""
Patient Model - Stores patient records keyed by hospital number.

Patients are upserted by HN when an order is written; the generated id is only
used for foreign keys and URLs.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class PatientStatus(str, enum.Enum):
    """Patient treatment status; only ACTIVE patients are listed by default."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class Patient(Base):
    """
    Patient Model - Stores patient-specific information
    
    Fields:
    - id: Primary key for patient record
    - hn: Hospital number, the natural unique key
    - an: Admission number (optional)
    - full_name: Patient's full name
    - ward_id: Ward the patient was first registered under
    - status: ACTIVE or COMPLETED
    - created_at: When the patient record was created
    - updated_at: When the patient record was last updated
    """
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    hn = Column(String, unique=True, index=True, nullable=False)
    an = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    ward_id = Column(Integer, ForeignKey("wards.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(Enum(PatientStatus), default=PatientStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    orders = relationship("Order", back_populates="patient", order_by="desc(Order.created_at)")

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, hn='{self.hn}')>"
