"""
Websocket endpoint of the real-time channel.

The bearer token travels in the handshake query string (``/ws?token=...``).
Connections without a valid token, or whose user no longer exists, are closed
before they join any room. The ward used for broadcasts is read from the user
row, not from the token.
"""
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..auth.models import User
from ..core.security import verify_token
from ..database import get_db
from .channel import CONNECTED_EVENT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

def resolve_member(db: Session, token: Optional[str]) -> Optional[Tuple[int, Optional[int]]]:
    """
    Map a handshake token to the ``(user_id, ward_id)`` the connection joins as.
    
    Returns:
        None when the token is invalid or its user is gone
    """
    payload = verify_token(token)
    if not payload:
        return None
    user = db.query(User).filter(User.id == payload["user_id"]).first()
    member = (user.id, user.ward_id) if user else None
    # end the read transaction before the connection settles into its receive loop
    db.rollback()
    return member

@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    member = resolve_member(db, token)
    if member is None:
        logger.warning("Realtime connection rejected: missing or invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id, ward_id = member
    channel = websocket.app.state.channel
    await websocket.accept()
    await channel.join(websocket, user_id, ward_id)
    try:
        await websocket.send_json({"event": CONNECTED_EVENT, "data": {"userId": user_id}})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await channel.leave(websocket, user_id)
