"""
Team and player records for the Futsal Tracker application.

Teams own their players. Both are soft-deleted (``is_active=False``) rather
than removed so that matches keep pointing at valid history.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils import utc_now, to_iso, parse_iso


@dataclass
class Team:
    """A futsal team."""
    id: int
    name: str
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Team':
        """Create from dictionary for JSON deserialization."""
        return cls(
            id=int(data["id"]),
            name=data["name"],
            is_active=bool(data.get("isActive", True)),
            created_at=parse_iso(data.get("createdAt")) or utc_now(),
        )


@dataclass
class Player:
    """
    A registered player of a team.

    Attributes:
        id: Player id
        team_id: Owning team id
        name: Player's full name
        jersey_number: Shirt number, unique among the team's active players
        position: One of the futsal positions (Portero, Cierre, Ala, Pivot)
        is_active: False once soft-deleted
    """
    id: int
    team_id: int
    name: str
    jersey_number: int
    position: str
    is_active: bool = True

    @property
    def label(self) -> str:
        """Short display label, e.g. ``#7 Ana``."""
        return f"#{self.jersey_number} {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "teamId": self.team_id,
            "name": self.name,
            "jerseyNumber": self.jersey_number,
            "position": self.position,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        """Create from dictionary for JSON deserialization."""
        return cls(
            id=int(data["id"]),
            team_id=int(data["teamId"]),
            name=data["name"],
            jersey_number=int(data["jerseyNumber"]),
            position=data["position"],
            is_active=bool(data.get("isActive", True)),
        )


def player_label(player: Optional[Player], player_id: Optional[int]) -> str:
    """Label for event descriptions, falling back to the raw id."""
    if player is not None:
        return player.label
    return f"player {player_id}" if player_id is not None else "unknown player"
