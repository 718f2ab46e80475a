"""
User and Ward Models - Identities and the ward dimension that scopes them.

A user with no ward is unrestricted and sees every ward's orders and patients.
"""
from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the drug order workflow.
    
    Roles:
    - NURSE: Ward nurses who create drug orders
    - PHARMACIST: Pharmacists who review and approve/reject orders
    - ADMIN: System administrators with full access
    """
    NURSE = "NURSE"
    PHARMACIST = "PHARMACIST"
    ADMIN = "ADMIN"


class Ward(Base):
    """
    Ward Model - A hospital department scoping users, patients and orders
    """
    __tablename__ = "wards"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)

    users = relationship("User", back_populates="ward")

    def __repr__(self):
        return f"<Ward(id={self.id}, name='{self.name}')>"


class User(Base):
    """
    User Model - Stores all user information in the system
    
    Fields:
    - id: Primary key for user identification
    - username: Unique login name
    - full_name: User's complete name, used in notification messages
    - password_hash: Securely hashed password (never store raw passwords)
    - role: User role (nurse, pharmacist, admin)
    - ward_id: Ward the user belongs to (None means unrestricted)
    - created_at: Timestamp when user was created
    - updated_at: Timestamp when user was last updated
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.NURSE, nullable=False)
    ward_id = Column(Integer, ForeignKey("wards.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    ward = relationship("Ward", back_populates="users")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

    @property
    def ward_name(self):
        return self.ward.name if self.ward else None
