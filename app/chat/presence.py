"""
In-process presence tracking for live chat connections.

PresenceRegistry maps a user id to the Channels channel name of that user's
live WebSocket. It decides one thing only: whether a new message can be
pushed to its recipient right now.

Design Decisions:
    - Process-local; nothing is persisted or shared between server instances
    - One handle per user, last connection wins (a second tab replaces the
      first as the delivery target)
    - Unregistering with a handle only removes the entry if it still points
      at that handle, so an older tab closing does not take a newer one
      offline
    - Created once in config/asgi.py and handed to consumers through
      ``as_asgi(presence=...)``; cleared by PresenceLifespan on shutdown

Usage:
    registry = PresenceRegistry()
    registry.register(user.id, self.channel_name)
    handle = registry.lookup(partner_id)
    registry.unregister(user.id, self.channel_name)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from chat.constants import PRESENCE_CONFIG

if TYPE_CHECKING:
    from typing import Any

    from channels.layers import BaseChannelLayer

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """
    Thread-safe mapping of user id -> live connection handle.

    Handles are channel names; keys are user ids normalized to strings so
    UUID instances and their string forms address the same entry.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, user_id) -> bool:
        return self.lookup(user_id) is not None

    def register(self, user_id, handle: str) -> str | None:
        """
        Record ``handle`` as the live connection for ``user_id``.

        Overwrites any existing entry without error.

        Returns:
            The handle that was replaced, or None
        """
        key = str(user_id)
        with self._lock:
            previous = self._connections.get(key)
            self._connections[key] = handle

        if previous and previous != handle:
            logger.info(f"User {key} reconnected; replacing connection {previous}")
        else:
            logger.debug(f"User {key} registered on {handle}")
        return previous

    def unregister(self, user_id, handle: str | None = None) -> bool:
        """
        Remove the entry for ``user_id``.

        Args:
            user_id: User to remove
            handle: If given, only remove when the entry is this handle

        Returns:
            True if an entry was removed
        """
        key = str(user_id)
        with self._lock:
            current = self._connections.get(key)
            if current is None:
                return False
            if handle is not None and current != handle:
                return False
            del self._connections[key]

        logger.debug(f"User {key} unregistered from {current}")
        return True

    def lookup(self, user_id) -> str | None:
        """Get the live handle for ``user_id``, or None if offline."""
        with self._lock:
            return self._connections.get(str(user_id))

    def handles(self) -> list[str]:
        """Snapshot of all registered handles."""
        with self._lock:
            return list(self._connections.values())

    def clear(self) -> None:
        """Drop every entry (process shutdown)."""
        with self._lock:
            count = len(self._connections)
            self._connections.clear()
        logger.info(f"Presence registry cleared ({count} connections)")

    async def broadcast_all(
        self,
        channel_layer: BaseChannelLayer,
        event: str,
        payload: Any,
    ) -> int:
        """
        Push an event to every registered connection.

        Failures on individual connections are logged and skipped.

        Returns:
            Number of connections the event was handed to
        """
        delivered = 0
        for handle in self.handles():
            try:
                await channel_layer.send(
                    handle,
                    {
                        "type": PRESENCE_CONFIG.CHANNEL_EVENT_TYPE,
                        "event": event,
                        "data": payload,
                    },
                )
            except Exception:
                logger.warning(f"Broadcast of {event} to {handle} failed", exc_info=True)
                continue
            delivered += 1
        return delivered


class PresenceLifespan:
    """
    ASGI lifespan handler tying the registry to the server's lifetime.

    Mounted under the "lifespan" protocol in config/asgi.py. Servers that
    do not speak lifespan simply never call it.
    """

    def __init__(self, presence: PresenceRegistry):
        self.presence = presence

    async def __call__(self, scope, receive, send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.info("Chat presence registry ready")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                self.presence.clear()
                await send({"type": "lifespan.shutdown.complete"})
                return
