"""
Catalog Schemas - Drug and regimen responses.
"""
from typing import Any, Dict, List, Optional
from ..auth.schemas import CamelModel

class DrugResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None


class RegimenResponse(CamelModel):
    """
    Regimen Response Schema
    
    Fields:
    - drugs: Standard dosing entries {name, dose, volume, duration}
    - instructions: Nursing instructions shown with the regimen
    - side_effects / precautions: Display lists
    """
    id: str
    name: str
    drugs: List[Dict[str, Any]] = []
    instructions: Optional[str] = None
    side_effects: List[str] = []
    precautions: List[str] = []
