"""
Catalog Service - Read-only lookups against the drug and regimen catalog.
"""
from typing import Dict, Iterable, List
from sqlalchemy.orm import Session
import logging

from .models import Drug, Regimen

logger = logging.getLogger(__name__)

def get_drugs(db: Session) -> List[Drug]:
    return db.query(Drug).order_by(Drug.name).all()

def get_regimens(db: Session) -> List[Regimen]:
    return db.query(Regimen).order_by(Regimen.name).all()

def lookup_drugs(db: Session, drug_ids: Iterable[str]) -> Dict[str, Drug]:
    """
    Resolve a set of drug ids in one query.
    
    Args:
        db: Database session
        drug_ids: Drug ids to resolve; unknown ids are simply absent from the result
        
    Returns:
        Dict mapping drug id to Drug
    """
    ids = {drug_id for drug_id in drug_ids if drug_id}
    if not ids:
        return {}
    drugs = db.query(Drug).filter(Drug.id.in_(ids)).all()
    logger.debug(f"Resolved {len(drugs)} of {len(ids)} drug ids")
    return {drug.id: drug for drug in drugs}
