"""Registry of live-update channels, one per connected user.

A channel is a bounded single-consumer queue created when the user's
connection subscribes and torn down when it disconnects. Producers only ever
call ``deliver``, which hands the message over or drops it and never blocks.
"""

import queue
import threading

import structlog

logger = structlog.get_logger(__name__)


class LiveUpdateRegistry:
    def __init__(self, channel_size: int = 100) -> None:
        self._channel_size = channel_size
        self._channels: dict[str, queue.Queue] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: str) -> queue.Queue:
        """Open the user's channel, replacing any previous one."""
        channel: queue.Queue = queue.Queue(maxsize=self._channel_size)
        with self._lock:
            self._channels[user_id] = channel
        return channel

    def unsubscribe(self, user_id: str, channel: queue.Queue | None = None) -> None:
        """Close the user's channel; a stale ``channel`` leaves a newer one alone."""
        with self._lock:
            current = self._channels.get(user_id)
            if current is not None and (channel is None or current is channel):
                del self._channels[user_id]

    def is_connected(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._channels

    def deliver(self, user_id: str, message: dict) -> bool:
        """Hand ``message`` to the user's channel; False when it was dropped."""
        with self._lock:
            channel = self._channels.get(user_id)
        if channel is None:
            logger.debug("live_update_dropped", user_id=user_id, reason="not_connected")
            return False
        try:
            channel.put_nowait(message)
        except queue.Full:
            logger.warning("live_update_dropped", user_id=user_id, reason="channel_full")
            return False
        return True


_registry: LiveUpdateRegistry | None = None


def get_live_registry() -> LiveUpdateRegistry:
    global _registry
    if _registry is None:
        _registry = LiveUpdateRegistry()
    return _registry


def reset_live_registry() -> None:
    global _registry
    _registry = None
