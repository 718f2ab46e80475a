"""
Drug enrichment - decorates stored drug entries with catalog display data.

All drug ids across a batch of orders are resolved with one catalog query per
response. Entries whose id is unknown to the catalog keep the name embedded in
the order.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy.orm import Session

from ..auth.schemas import UserSummary
from ..catalog.models import Drug
from ..catalog.service import lookup_drugs
from ..patients.schemas import PatientResponse
from .models import Order

logger = logging.getLogger(__name__)

def parse_attachments(attachments: Any) -> List[Dict[str, Any]]:
    """
    Decode the stored attachment list.
    
    Lists pass through, JSON text is decoded, and anything malformed or
    missing becomes an empty list.
    """
    if not attachments:
        return []
    if isinstance(attachments, list):
        return attachments
    if isinstance(attachments, str):
        try:
            decoded = json.loads(attachments)
        except ValueError as e:
            logger.error(f"Error parsing attachments JSON: {str(e)}")
            return []
        return decoded if isinstance(decoded, list) else []
    return []

def collect_drug_ids(orders: Iterable[Order]) -> set:
    drug_ids = set()
    for order in orders:
        for drug in order.drugs or []:
            if isinstance(drug, Mapping) and drug.get("drugId"):
                drug_ids.add(drug["drugId"])
    return drug_ids

def enrich_drug_entries(drugs: Iterable[Mapping[str, Any]], lookup: Mapping[str, Drug]) -> List[Dict[str, Any]]:
    """Copy each entry, filling name (and description) from the catalog."""
    enriched = []
    for drug in drugs or []:
        entry = dict(drug)
        info = lookup.get(entry.get("drugId"))
        if info is not None:
            entry["name"] = info.name
            if info.description:
                entry["description"] = info.description
        else:
            entry["name"] = entry.get("name") or ""
        enriched.append(entry)
    return enriched

def serialize_order(order: Order, lookup: Mapping[str, Drug]) -> Dict[str, Any]:
    """Flatten an order into the fields of OrderResponse."""
    return {
        "id": order.id,
        "patient_id": order.patient_id,
        "ward_id": order.ward_id,
        "created_by_id": order.created_by_id,
        "approved_by_id": order.approved_by_id,
        "regimen_id": order.regimen_id,
        "drugs": enrich_drug_entries(order.drugs, lookup),
        "status": order.status,
        "attachments": parse_attachments(order.attachments),
        "notes": order.notes,
        "details": order.details or {},
        "start_date": order.start_date,
        "completion_date": order.completion_date,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "patient": PatientResponse.model_validate(order.patient) if order.patient else None,
        "created_by": UserSummary.model_validate(order.created_by) if order.created_by else None,
        "approved_by": UserSummary.model_validate(order.approved_by) if order.approved_by else None,
    }

def enrich_orders(db: Session, orders: List[Order]) -> List[Dict[str, Any]]:
    """
    Serialize a batch of orders with catalog names on their drug entries.
    
    Args:
        db: Database session
        orders: Orders to decorate
        
    Returns:
        List of order dicts in the same order as the input
    """
    if not orders:
        return []
    lookup = lookup_drugs(db, collect_drug_ids(orders))
    return [serialize_order(order, lookup) for order in orders]
