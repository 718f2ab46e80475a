"""
Sequential order ids: ORD-YYMMDD-NNN, restarting at 001 every day.

The per-day counter lives in ``order_sequences`` and is bumped with a single
UPDATE inside the caller's transaction. The row lock taken by that UPDATE is
held until the order itself is committed, so concurrent creators are
serialised by the database instead of both reading the same "last order".
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .models import Order, OrderSequence

logger = logging.getLogger(__name__)

ORDER_ID_PREFIX = "ORD"
SEQUENCE_WIDTH = 3

def order_id_prefix(day: date) -> str:
    return f"{ORDER_ID_PREFIX}-{day:%y%m%d}"

def format_order_id(prefix: str, sequence: int) -> str:
    return f"{prefix}-{sequence:0{SEQUENCE_WIDTH}d}"

def parse_sequence(order_id: str) -> int:
    """Numeric suffix of an order id; 0 when the id does not end in a number."""
    try:
        return int(order_id.rsplit("-", 1)[1])
    except (IndexError, ValueError):
        return 0

def highest_existing_sequence(db: Session, prefix: str) -> int:
    """
    Largest suffix already used by an order with this prefix.
    
    Compared numerically, so ``-1000`` beats ``-999`` even though it sorts
    lower as text.
    """
    rows = db.query(Order.id).filter(Order.id.like(f"{prefix}-%")).all()
    return max((parse_sequence(order_id) for (order_id,) in rows), default=0)

def generate_order_id(db: Session, today: Optional[date] = None) -> str:
    """
    Reserve the next order id for *today*.
    
    Nothing is committed here; the reservation becomes durable together with
    the order that uses it. The first id of a day creates the counter row,
    seeded from any orders that already carry the prefix. Two creators racing
    to insert that row make one flush fail with IntegrityError, which the
    caller retries.
    
    Args:
        db: Database session (inside the order's transaction)
        today: Day to issue the id for (defaults to the local date)
        
    Returns:
        str: New order id, e.g. ORD-241005-001
    """
    prefix = order_id_prefix(today or date.today())

    result = db.execute(
        update(OrderSequence)
        .where(OrderSequence.prefix == prefix)
        .values(last_value=OrderSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        sequence = db.execute(
            select(OrderSequence.last_value).where(OrderSequence.prefix == prefix)
        ).scalar_one()
    else:
        sequence = highest_existing_sequence(db, prefix) + 1
        db.add(OrderSequence(prefix=prefix, last_value=sequence))
        db.flush()

    order_id = format_order_id(prefix, sequence)
    logger.debug(f"Reserved order id {order_id}")
    return order_id
