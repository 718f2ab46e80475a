"""
Catalog Models - Read-only drug and regimen reference data.
"""
from sqlalchemy import Column, String, Text, JSON

from ..database import Base

class Drug(Base):
    """
    Drug Model - One entry of the drug catalog, keyed by a stable string id
    """
    __tablename__ = "drugs"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Drug(id='{self.id}', name='{self.name}')>"


class Regimen(Base):
    """
    Regimen Model - A named multi-drug protocol with standard dosing
    
    Fields:
    - drugs: List of {name, dose, volume, duration} entries
    - side_effects / precautions: Lists of display strings
    """
    __tablename__ = "regimens"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    drugs = Column(JSON, nullable=False, default=list)
    instructions = Column(Text, nullable=True)
    side_effects = Column(JSON, nullable=False, default=list)
    precautions = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<Regimen(id='{self.id}', name='{self.name}')>"
