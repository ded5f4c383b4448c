"""Process-wide registry of live push connections.

Lifecycle:
    start()     - called once from the application lifespan; binds the event
                  loop deliveries are scheduled on
    shutdown()  - closes every socket and forgets all registrations

Business code only ever calls register_connection/unregister_connection
(from the WebSocket endpoint) and deliver (through the dispatcher). All
mutation happens on the bound event loop, so no locking is needed.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Set
from uuid import UUID

from fastapi import WebSocket

from observability.metrics import push_connections, push_events_total

logger = logging.getLogger(__name__)

# Going Away: the server is shutting down
CLOSE_GOING_AWAY = 1001


class ConnectionRegistry:
    """Maps a user id to the set of that user's open WebSockets."""

    def __init__(self):
        self._connections: Dict[UUID, Set[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Bind the registry to the running event loop.

        Must be called from inside that loop when no loop is passed.
        """
        self._loop = loop or asyncio.get_running_loop()
        logger.info("Push connection registry started")

    async def shutdown(self) -> None:
        """Close all sockets and reset the registry."""
        sockets = [ws for user_sockets in self._connections.values() for ws in user_sockets]
        self._connections.clear()
        push_connections.set(0)
        self._loop = None

        for websocket in sockets:
            try:
                await websocket.close(code=CLOSE_GOING_AWAY)
            except Exception:
                # Peer already gone
                logger.debug("Socket already closed during shutdown")

        logger.info(f"Push connection registry stopped ({len(sockets)} connection(s) closed)")

    def register_connection(self, user_id: UUID, websocket: WebSocket) -> None:
        self._connections.setdefault(user_id, set()).add(websocket)
        push_connections.inc()
        logger.info("Push connection registered", extra={"user_id": user_id})

    def unregister_connection(self, user_id: UUID, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if not sockets or websocket not in sockets:
            return

        sockets.discard(websocket)
        if not sockets:
            del self._connections[user_id]
        push_connections.dec()
        logger.info("Push connection unregistered", extra={"user_id": user_id})

    def connection_count(self, user_id: Optional[UUID] = None) -> int:
        """Live connections for one user, or for everyone when user_id is None."""
        if user_id is not None:
            return len(self._connections.get(user_id, ()))
        return sum(len(sockets) for sockets in self._connections.values())

    async def deliver(self, user_id: UUID, event: Dict[str, Any]) -> int:
        """Send an event to every live connection of a user.

        Sockets that fail are dropped from the registry. Nothing is queued for
        users without a connection.

        Returns:
            int: Number of connections the event reached
        """
        sockets = list(self._connections.get(user_id, ()))
        if not sockets:
            push_events_total.labels(outcome="no_connection").inc()
            logger.debug("No live connection, event dropped", extra={"recipient_id": user_id})
            return 0

        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(event)
                delivered += 1
            except Exception:
                logger.warning(
                    "Push delivery failed, dropping connection",
                    extra={"recipient_id": user_id},
                    exc_info=True
                )
                self.unregister_connection(user_id, websocket)

        push_events_total.labels(outcome="delivered" if delivered else "failed").inc()
        return delivered


# The single registry of this process
connection_registry = ConnectionRegistry()
