"""
Board websocket endpoint.

Clients connect to ``/api/v1/ws/boards/{board_id}?token=<jwt>`` and receive
every event published on the board topic as JSON. A client may send
``{"type": "ping"}`` and gets ``{"type": "pong"}`` back.
"""
import asyncio
import json
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from kanban.core.broadcast import Broadcaster, get_broadcaster
from kanban.core.database import db_manager
from kanban.core.exceptions import AccessDeniedException, AuthenticationException
from kanban.core.logger import get_logger
from kanban.core.models import utcnow
from kanban.core.permissions import PermissionService
from kanban.modules.auth.schemas import Principal
from kanban.modules.auth.service import AuthService
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter()

CLOSE_UNAUTHENTICATED = 4401
CLOSE_FORBIDDEN = 4403


async def authorize_board_subscription(db: AsyncSession, token: str, board_id: UUID) -> Principal:
    """
    Resolve the token and check that its principal may watch the board.

    Raises:
        AuthenticationException: If the token is missing or invalid
        AccessDeniedException: If the principal has no access to the board
    """
    if not token:
        raise AuthenticationException()

    principal = await AuthService(db).resolve_principal(token)
    await PermissionService(db).verify_board_access(board_id, principal)
    return principal


async def _forward_events(websocket: WebSocket, events) -> None:
    async for event in events:
        await websocket.send_text(event.model_dump_json())


@router.websocket("/ws/boards/{board_id}")
async def board_events(
    websocket: WebSocket,
    board_id: UUID,
    token: str = Query(default=""),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Stream live board events to an authorized viewer."""
    async with db_manager.session_factory() as db:
        try:
            principal = await authorize_board_subscription(db, token, board_id)
        except AuthenticationException as e:
            logger.warning("Websocket rejected, unauthenticated", board_id=str(board_id), reason=e.message)
            await websocket.accept()
            await websocket.close(code=CLOSE_UNAUTHENTICATED, reason=e.message)
            return
        except AccessDeniedException as e:
            logger.warning("Websocket rejected, no board access", board_id=str(board_id), reason=e.message)
            await websocket.accept()
            await websocket.close(code=CLOSE_FORBIDDEN, reason=e.message)
            return

    await websocket.accept()
    logger.info("Websocket connected", board_id=str(board_id), principal_id=str(principal.id))

    async with broadcaster.subscribe(board_id) as events:
        forwarder = asyncio.create_task(_forward_events(websocket, events))
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    message = json.loads(raw)
                except ValueError:
                    await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                    continue

                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong", "timestamp": utcnow().isoformat()})
        except WebSocketDisconnect as e:
            logger.info("Websocket disconnected", board_id=str(board_id), code=e.code)
        finally:
            forwarder.cancel()
            await asyncio.gather(forwarder, return_exceptions=True)
