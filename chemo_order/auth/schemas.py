"""
User Schemas - Pydantic models for login and identity serialization.
"""
from typing import Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from .models import UserRole

class CamelModel(BaseModel):
    """Base schema rendering camelCase field names on the wire."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class UserLogin(BaseModel):
    """
    User Login Schema - Used for authentication
    
    Fields are optional so a missing one is reported as a 400, not a 422.
    """
    username: Optional[str] = None
    password: Optional[str] = None


class UserResponse(CamelModel):
    """
    User Response Schema - Identity returned to the client
    
    Fields:
    - id, username, full_name, role
    - ward_id / ward_name: None for unrestricted users
    """
    id: int
    username: str
    full_name: str
    role: UserRole
    ward_id: Optional[int] = None
    ward_name: Optional[str] = None


class LoginResponse(CamelModel):
    message: str
    token: str
    user: UserResponse


class UserSummary(CamelModel):
    """Creator/approver shown alongside an order."""
    id: int
    full_name: str
