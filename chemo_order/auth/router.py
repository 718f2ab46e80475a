"""
Authentication routes for the drug order system.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from .dependencies import get_current_user
from .models import User
from .schemas import UserLogin, LoginResponse, UserResponse
from .service import login_user

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

@router.post("/login", response_model=LoginResponse, summary="User Login")
async def login_route(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange a username and password for a bearer token.
    
    Returns:
        LoginResponse: Token plus the identity (role, ward) it carries
    """
    return login_user(db, credentials.username, credentials.password)

@router.get("/me", response_model=UserResponse, summary="Get Current User")
async def me_route(current_user: User = Depends(get_current_user)):
    return current_user
