"""
Order Models - Drug orders and the per-day sequence counter behind their ids.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum, func
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum
from ..database import Base

class OrderStatus(str, enum.Enum):
    """
    Order lifecycle status.
    
    PENDING is the only non-terminal status; COMPLETED means the pharmacist
    approved the order.
    """
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.REJECTED}


def utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    """
    Order Model - One drug order for a patient in a ward
    
    Fields:
    - id: Human-readable id ORD-YYMMDD-NNN, immutable once assigned
    - patient_id / ward_id / created_by_id / approved_by_id: Foreign keys
    - regimen_id: Optional regimen reference
    - drugs: Embedded list of {drugId, dose, day, name?}
    - status: PENDING, COMPLETED or REJECTED
    - attachments: JSON-encoded list of {fileName, fileUrl, fileType, fileSize}
    - details: Any extra order fields sent by the client
    """
    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    ward_id = Column(Integer, ForeignKey("wards.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    regimen_id = Column(String, nullable=True)
    drugs = Column(JSON, nullable=False, default=list)
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    attachments = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    completion_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    patient = relationship("Patient", back_populates="orders")
    created_by = relationship("User", foreign_keys=[created_by_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])

    def __repr__(self):
        return f"<Order(id='{self.id}', status='{self.status}', ward_id={self.ward_id})>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class OrderSequence(Base):
    """
    Per-day counter for order ids, keyed by the ORD-YYMMDD prefix.
    
    The row is incremented inside the transaction that inserts the order, so
    two concurrent creations on the same day can never read the same value.
    """
    __tablename__ = "order_sequences"

    prefix = Column(String, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
