"""Match events: the append-only record of what happened during play."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils import utc_now, to_iso, parse_iso


class EventType(Enum):
    """Kinds of in-match occurrences."""
    GOAL = "goal"
    FOUL = "foul"
    SUBSTITUTION = "substitution"
    TIMEOUT = "timeout"
    YELLOW_CARD = "yellow_card"
    RED_CARD = "red_card"

    @property
    def is_card(self) -> bool:
        return self in (EventType.YELLOW_CARD, EventType.RED_CARD)


class CardColor(Enum):
    """Card colors a referee can show."""
    YELLOW = "yellow"
    RED = "red"

    @property
    def event_type(self) -> EventType:
        return EventType(f"{self.value}_card")


@dataclass
class MatchEvent:
    """
    A single logged occurrence.

    ``event_time`` is the match clock (seconds into ``half``) when the event
    was logged; it is informational and never used to reorder the log.
    """
    id: int
    match_id: int
    event_type: EventType
    event_time: int
    half: int
    description: str
    player_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "matchId": self.match_id,
            "playerId": self.player_id,
            "eventType": self.event_type.value,
            "eventTime": self.event_time,
            "half": self.half,
            "description": self.description,
            "metadata": dict(self.metadata),
            "createdAt": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchEvent':
        """Create from dictionary for JSON deserialization."""
        player_id = data.get("playerId")
        return cls(
            id=int(data["id"]),
            match_id=int(data["matchId"]),
            player_id=int(player_id) if player_id is not None else None,
            event_type=EventType(data["eventType"]),
            event_time=int(data["eventTime"]),
            half=int(data["half"]),
            description=data.get("description", ""),
            metadata=dict(data.get("metadata") or {}),
            created_at=parse_iso(data.get("createdAt")) or utc_now(),
        )
