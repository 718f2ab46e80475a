"""
Bootstrap utilities run at startup.
Seeds the drug/regimen catalog on an empty database and creates the first
admin user from environment variables.
"""
import logging
import re
from typing import Dict, List
from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..catalog.models import Drug, Regimen
from ..config import settings
from .security import hash_password

logger = logging.getLogger(__name__)

HOURS = "hours"

REGIMENS: List[Dict] = [
    {
        "id": "folfox6",
        "name": "FOLFOX6",
        "drugs": [
            {"name": "Oxaliplatin", "dose": {"value": "85", "unit": "mg/m²"}, "volume": {"value": "250-500", "unit": "mg"}, "duration": {"value": "2", "unit": HOURS}},
            {"name": "Leucovorin", "dose": {"value": "400", "unit": "mg/m²"}, "volume": {"value": "250", "unit": "mg"}, "duration": {"value": "2", "unit": HOURS}},
            {"name": "5-FU (Bolus)", "dose": {"value": "400", "unit": "mg/m²"}, "volume": {"value": "100", "unit": "mg"}, "duration": {"value": "15", "unit": HOURS}},
            {"name": "5-FU (Infusion)", "dose": {"value": "2400", "unit": "mg/m²"}, "volume": {"value": "1000", "unit": "mg"}, "duration": {"value": "46", "unit": HOURS}},
        ],
        "instructions": "Suck ice chips during the infusion to limit mucositis. Drink at least 2-3 litres of water a day unless told otherwise.",
        "side_effects": ["Nausea and vomiting", "Fatigue", "Weakness", "Dizziness", "Headache", "Hair loss", "Dry, cracked skin", "Watery or light-sensitive eyes"],
        "precautions": ["Avoid very cold air", "Avoid cold food and drinks", "Keep warm", "Check vital signs every 4 hours"],
    },
    {
        "id": "carboplatin_5fu",
        "name": "Carboplatin + 5FU",
        "drugs": [
            {"name": "Carboplatin", "dose": {"value": "AUC 5-6", "unit": ""}, "volume": {"value": "250-500", "unit": "mg"}, "duration": {"value": "1", "unit": HOURS}},
            {"name": "5-FU", "dose": {"value": "1000", "unit": "mg/m²/day"}, "volume": {"value": "1000", "unit": "mg"}, "duration": {"value": "24", "unit": "hours x 4 days"}},
        ],
        "instructions": "Drink at least 2-3 litres of water a day. Use the prescribed anti-emetic if eating causes nausea.",
        "side_effects": ["Nausea and vomiting", "Diarrhoea or constipation", "Abdominal pain", "Gastritis", "Mouth ulcers", "Vertigo", "Tinnitus"],
        "precautions": ["Watch for allergic reactions", "Rash", "Hives", "Fever", "Bronchospasm", "Hypotension"],
    },
    {
        "id": "etoposide",
        "name": "Etoposide",
        "drugs": [
            {"name": "Etoposide", "dose": {"value": "100", "unit": "mg/m²"}, "volume": {"value": "250-500", "unit": "mg"}, "duration": {"value": "1-2", "unit": HOURS}},
        ],
        "instructions": "Drink at least 2-3 litres of water a day. Anti-emetics are available for nausea.",
        "side_effects": ["Loss of appetite", "Nausea and vomiting", "Fatigue", "Headache", "Diarrhoea", "Mouth ulcers", "Fever", "Hair loss", "Dry, cracked skin"],
        "precautions": ["Watch for unusual symptoms", "Red, swollen or peeling hands and feet", "Fever", "Sore throat", "Blood in urine"],
    },
    {
        "id": "gemcitabine",
        "name": "Gemcitabine",
        "drugs": [
            {"name": "Gemcitabine", "dose": {"value": "1000-1250", "unit": "mg/m²"}, "volume": {"value": "250-500", "unit": "mg"}, "duration": {"value": "30", "unit": "minutes"}},
        ],
        "instructions": "Drink at least 2-3 litres of water a day. Rest well and follow the recommended diet.",
        "side_effects": ["Nausea and vomiting", "Fever", "Chills", "Headache", "Rash", "Heavy sweating", "Arrhythmia"],
        "precautions": ["Watch for hearing loss", "Possible seizures", "Headache", "Blurred vision", "Monitor for arrhythmia"],
    },
    {
        "id": "other",
        "name": "Other (specify)",
        "drugs": [],
        "instructions": "",
        "side_effects": [],
        "precautions": [],
    },
]


def drug_id_for(name: str) -> str:
    """Stable catalog id for a drug display name, e.g. '5-FU (Bolus)' -> '5-fu-bolus'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def seed_reference_data(db: Session) -> bool:
    """
    Seed regimens and the drugs they reference when the catalog is empty.
    
    Returns:
        bool: True if anything was written
    """
    if db.query(Regimen).count() or db.query(Drug).count():
        logger.info("Reference catalog already present. Seeding not needed.")
        return False

    drugs: Dict[str, Drug] = {}
    for entry in REGIMENS:
        db.add(Regimen(**entry))
        for drug in entry["drugs"]:
            drug_id = drug_id_for(drug["name"])
            drugs.setdefault(drug_id, Drug(id=drug_id, name=drug["name"], description=f"Part of {entry['name']}"))
    db.add_all(drugs.values())
    db.commit()
    logger.info(f"Seeded {len(REGIMENS)} regimens and {len(drugs)} drugs")
    return True


def bootstrap_admin_if_needed(db: Session) -> bool:
    """
    Create the first admin user from environment variables if no admin exists.
    
    Args:
        db: Database session
        
    Returns:
        bool: True if an admin was created
    """
    if db.query(User).filter(User.role == UserRole.ADMIN).count():
        logger.info("Admin users found. Bootstrap not needed.")
        return False

    if not settings.bootstrap_admin_username or not settings.bootstrap_admin_password:
        logger.info("To create the first admin, set BOOTSTRAP_ADMIN_USERNAME and BOOTSTRAP_ADMIN_PASSWORD.")
        return False

    if db.query(User).filter(User.username == settings.bootstrap_admin_username).first():
        logger.warning(f"Bootstrap failed: username {settings.bootstrap_admin_username} already exists")
        return False

    admin = User(
        username=settings.bootstrap_admin_username,
        full_name=settings.bootstrap_admin_full_name,
        password_hash=hash_password(settings.bootstrap_admin_password),
        role=UserRole.ADMIN,
        ward_id=None,
    )
    db.add(admin)
    db.commit()
    logger.info(f"Bootstrap admin created: {admin.username} (ID: {admin.id})")
    return True


def run_bootstrap(db: Session) -> None:
    """Startup hook; failures are logged and never stop the application."""
    try:
        if settings.seed_reference_data:
            seed_reference_data(db)
        bootstrap_admin_if_needed(db)
    except Exception as e:
        db.rollback()
        logger.error(f"Bootstrap process failed: {str(e)}")
