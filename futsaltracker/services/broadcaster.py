"""
Live broadcaster for connected match viewers.

Delivery is best-effort: each viewer owns a bounded queue, ``publish`` never
blocks on a slow viewer and a full queue simply drops the message for that
viewer. Nothing is retained or replayed.
"""
import logging
import queue
import threading
from typing import Any, Dict, List, Optional

from ..models import Match, MatchEvent
from ..utils import VIEWER_QUEUE_SIZE

logger = logging.getLogger(__name__)

MATCH_UPDATE = "matchUpdate"
NEW_EVENT = "newEvent"


class ViewerChannel:
    """
    One connected viewer.

    Args:
        match_id: Only receive payloads for this match (``None`` for all)
        maxsize: Messages buffered before new ones are dropped
    """

    def __init__(self, match_id: Optional[int] = None, maxsize: int = VIEWER_QUEUE_SIZE):
        self.match_id = match_id
        self._queue: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def wants(self, match_id: int) -> bool:
        return self.match_id is None or self.match_id == match_id

    def offer(self, payload: Dict[str, Any]) -> bool:
        """Queue a payload without blocking; False if the viewer is backed up."""
        try:
            self._queue.put_nowait(payload)
            return True
        except queue.Full:
            self.dropped += 1
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Next payload, or ``None`` if nothing arrived within ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[Dict[str, Any]]:
        """Return every payload currently queued."""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items


class LiveBroadcaster:
    """Fans out committed match changes to every subscribed viewer."""

    def __init__(self, queue_size: int = VIEWER_QUEUE_SIZE):
        self._subscribers: List[ViewerChannel] = []
        self._lock = threading.Lock()
        self._queue_size = queue_size

    def subscribe(self, match_id: Optional[int] = None) -> ViewerChannel:
        channel = ViewerChannel(match_id=match_id, maxsize=self._queue_size)
        with self._lock:
            self._subscribers.append(channel)
            count = len(self._subscribers)
        logger.info("Viewer subscribed (match=%s, viewers=%d)", match_id, count)
        return channel

    def unsubscribe(self, channel: ViewerChannel) -> None:
        with self._lock:
            if channel in self._subscribers:
                self._subscribers.remove(channel)
            count = len(self._subscribers)
        logger.info("Viewer unsubscribed (match=%s, viewers=%d)", channel.match_id, count)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, match_id: int, payload: Dict[str, Any]) -> int:
        """
        Send a payload to every interested viewer.

        Iterates over a snapshot of the subscriber list, so viewers may come
        and go while a publish is in flight.

        Returns:
            Number of viewers the payload was queued for
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for channel in subscribers:
            if not channel.wants(match_id):
                continue
            try:
                if channel.offer(payload):
                    delivered += 1
                else:
                    logger.debug("Viewer queue full, dropped %s for match %s", payload.get("type"), match_id)
            except Exception:
                logger.exception("Failed to deliver %s for match %s", payload.get("type"), match_id)
        return delivered

    def publish_match(self, match: Match) -> int:
        return self.publish(match.id, {"type": MATCH_UPDATE, "data": match.to_dict()})

    def publish_event(self, event: MatchEvent) -> int:
        return self.publish(event.match_id, {"type": NEW_EVENT, "data": event.to_dict()})
