"""WebSocket endpoint for push notifications.

Protocol:
    1. client connects to /ws
    2. client sends {"type": "join", "token": "<JWT access token>"} once
    3. server replies {"event": "joined", "user_id": "<uuid>"}
    4. server pushes {"event": "newMessage", "data": {...}} for every message
       sent to that user while the socket is open

Anything the client sends after joining is ignored. A missing, late or
invalid join closes the socket with 1008 (policy violation).
"""

import asyncio
import logging

import jwt
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from auth.jwt import user_id_from_token
from config import get_settings
from .registry import connection_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


@router.websocket("/ws")
async def push_socket(websocket: WebSocket):
    """Register the socket under the identity announced in the join frame."""
    await websocket.accept()

    try:
        frame = await asyncio.wait_for(
            websocket.receive_json(),
            timeout=get_settings().WS_JOIN_TIMEOUT_SECONDS
        )
    except WebSocketDisconnect:
        return
    except asyncio.TimeoutError:
        logger.info("Push socket did not join in time")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    except ValueError:
        logger.info("Push socket sent a malformed join frame")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    if not isinstance(frame, dict) or frame.get("type") != "join":
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        user_id = user_id_from_token(frame.get("token") or "")
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.info(f"Push socket rejected: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_registry.register_connection(user_id, websocket)
    try:
        await websocket.send_json({"event": "joined", "user_id": str(user_id)})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        connection_registry.unregister_connection(user_id, websocket)
