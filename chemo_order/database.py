"""
Database engine, request sessions and table creation.
"""
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

logger = logging.getLogger(__name__)

# SQLite connections are shared with FastAPI's worker threads
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

def get_db():
    """
    Request-scoped session dependency; closed once the response is sent.
    
    Yields:
        SQLAlchemy Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def session_scope():
    """Session for work outside a request (startup hooks, scripts)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None) -> None:
    """
    Register every model on ``Base`` and create missing tables.
    
    Args:
        bind: Engine to create the tables on (defaults to the app engine)
    """
    from .auth import models as auth_models  # noqa: F401
    from .catalog import models as catalog_models  # noqa: F401
    from .patients import models as patient_models  # noqa: F401
    from .orders import models as order_models  # noqa: F401
    from .notifications import models as notification_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Database ready: {sorted(Base.metadata.tables)}")
