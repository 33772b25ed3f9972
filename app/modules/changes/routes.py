from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from app.core.dependencies import get_auth_service
from app.core.errors import LedgerError
from app.modules.auth.service import AuthService
from app.modules.changes.connections import manager
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/changes", tags=["changes"])


@router.websocket("/ws")
async def changes_feed(
    websocket: WebSocket,
    token: str = Query(...),
    service: AuthService = Depends(get_auth_service)
):
    """Push camp and own-selection change events; clients re-fetch on each message"""
    try:
        user = service.verify_credentials(token)
    except LedgerError as e:
        logger.info(f"Rejected change feed connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user.id)
    try:
        while True:
            # Clients only listen; incoming frames are keep-alives
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Change feed closed by client for user {user.id}")
    finally:
        manager.disconnect(websocket, user.id)
