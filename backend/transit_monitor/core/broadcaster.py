"""In-process fan-out of engine snapshots to WebSocket subscribers."""

import asyncio
import logging

import orjson

logger = logging.getLogger(__name__)


class Broadcaster:
    """Keeps the latest snapshot and pushes each new one to subscriber queues."""

    def __init__(self, queue_size: int = 10) -> None:
        self._queue_size = queue_size
        self._current: bytes | None = None
        self._subscribers: set[asyncio.Queue] = set()

    async def close(self) -> None:
        self._subscribers.clear()
        self._current = None

    async def publish(self, snapshot_data: dict) -> None:
        """Remember the snapshot for new connections and fan it out."""
        self._current = orjson.dumps(snapshot_data)
        payload = orjson.dumps({"type": "update", **snapshot_data})

        # Slow consumers that let their queue fill up are dropped
        dead = set()
        for q in self._subscribers:
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                dead.add(q)
        if dead:
            logger.warning("Dropping %d slow subscriber(s)", len(dead))
        self._subscribers -= dead

    async def get_current_state(self) -> bytes | None:
        """Latest published snapshot, or None before the first publish."""
        return self._current

    def subscribe(self) -> asyncio.Queue:
        """Create a new subscriber queue for WebSocket fan-out."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
