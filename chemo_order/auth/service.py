"""
Authentication service layer for business logic.
"""
import logging
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional

from ..core.security import hash_password, verify_password, create_user_token
from ..exceptions import ValidationException, UnauthorizedException
from .models import User, UserRole

# Set up logging
logger = logging.getLogger(__name__)

def login_user(db: Session, username: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    """
    Authenticate a user and issue an access token.
    
    Args:
        db: Database session
        username: Login name
        password: Plain text password
        
    Returns:
        Dict with message, token and user
        
    Raises:
        ValidationException: If username or password is missing
        UnauthorizedException: If the credentials do not match
    """
    if not username or not password:
        raise ValidationException("Username and password are required")

    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed for username: {username}")
        raise UnauthorizedException("Invalid credentials")

    logger.info(f"User {user.id} logged in (role={user.role.value}, ward={user.ward_id})")
    return {
        "message": "Login successful",
        "token": create_user_token(user),
        "user": user,
    }

def create_user(
    db: Session,
    username: str,
    password: str,
    full_name: str,
    role: UserRole = UserRole.NURSE,
    ward_id: Optional[int] = None,
) -> User:
    """Create a user account with a hashed password."""
    user = User(
        username=username,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
        ward_id=ward_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created {role.value} account {user.id} ({username})")
    return user
