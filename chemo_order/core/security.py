"""
Password hashing and the bearer tokens that carry a user's identity.

A token holds ``user_id``, ``full_name``, ``role`` and ``ward_id``. HTTP
routes re-read the user row from ``user_id``; the websocket endpoint trusts
the claims as issued.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import logging

from ..config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_user_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed access token for *user*.
    
    Args:
        user: User row (id, full_name, role, ward_id)
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        
    Returns:
        str: Encoded JWT
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user.id),
        "user_id": user.id,
        "full_name": user.full_name,
        "role": getattr(user.role, "value", user.role),
        "ward_id": user.ward_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

def verify_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode an access token.
    
    Returns:
        The claims, or None when the token is missing, expired, badly signed
        or carries no user_id
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.info(f"Token verification failed: {str(e)}")
        return None
    if not payload.get("user_id"):
        logger.info("Token verification failed: no user_id claim")
        return None
    return payload
