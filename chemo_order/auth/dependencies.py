"""
FastAPI dependencies for authentication and authorization.
"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import List
import logging

from ..database import get_db
from ..core.security import verify_token
from ..exceptions import UnauthorizedException, ForbiddenException
from .models import User, UserRole

logger = logging.getLogger(__name__)

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Get current authenticated user from JWT token with database verification.
    
    The user row is re-read on every request so a ward change applies
    immediately, whatever the token says.
    
    Args:
        token: JWT token from Authorization header
        db: Database session
        
    Returns:
        User: Current authenticated user
        
    Raises:
        UnauthorizedException: If token is invalid or user not found
    """
    payload = verify_token(token)
    if not payload:
        raise UnauthorizedException("Not authorized, token failed")
    
    user = db.query(User).filter(User.id == payload["user_id"]).first()
    if not user:
        raise UnauthorizedException("User not found")
    
    return user

def require_roles(allowed_roles: List[UserRole]):
    """
    Dependency factory to require specific roles.
    
    Args:
        allowed_roles: List of roles that are allowed access
        
    Returns:
        Function that checks if user has required role
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            logger.warning(f"User {current_user.id} with role {current_user.role.value} denied; requires {[r.value for r in allowed_roles]}")
            raise ForbiddenException(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}. Your role: {current_user.role.value}"
            )
        return current_user
    return role_checker

# Pharmacist-equivalent identities may approve or reject orders
require_pharmacist = require_roles([UserRole.PHARMACIST, UserRole.ADMIN])
