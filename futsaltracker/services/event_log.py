"""Append-only, insertion-ordered log of match events."""
import logging
from typing import Any, Dict, Optional, Tuple

from ..models import EventType, MatchEvent
from .broadcaster import LiveBroadcaster
from .storage import MatchStore

logger = logging.getLogger(__name__)


class EventLog:
    """
    Thin layer over the store's event table.

    Appends are published to viewers as ``newEvent`` payloads. Callers that
    mutate a match append while holding that match's lock, which keeps the
    publish order equal to the commit order.
    """

    def __init__(self, store: MatchStore, broadcaster: Optional[LiveBroadcaster] = None):
        self.store = store
        self.broadcaster = broadcaster

    def append(
        self,
        match_id: int,
        event_type: EventType,
        event_time: int,
        half: int,
        description: str,
        player_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MatchEvent:
        event = self.store.append_event(
            match_id,
            event_type,
            max(0, int(event_time)),
            half,
            description,
            player_id=player_id,
            metadata=metadata,
        )
        logger.debug("Match %s: %s at %ss (half %s)", match_id, event_type.value, event.event_time, half)
        if self.broadcaster is not None:
            self.broadcaster.publish_event(event)
        return event

    def events_for(self, match_id: int) -> Tuple[MatchEvent, ...]:
        """Full log of a match, oldest first."""
        return tuple(self.store.list_events(match_id))
