"""
Catalog routes - authenticated reads of the drug and regimen catalog.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.dependencies import get_current_user
from .schemas import DrugResponse, RegimenResponse
from .service import get_drugs, get_regimens

router = APIRouter(prefix="/api", tags=["Catalog"], dependencies=[Depends(get_current_user)])

@router.get("/drugs", response_model=List[DrugResponse])
async def list_drugs_route(db: Session = Depends(get_db)):
    return get_drugs(db)

@router.get("/regimens", response_model=List[RegimenResponse])
async def list_regimens_route(db: Session = Depends(get_db)):
    return get_regimens(db)
