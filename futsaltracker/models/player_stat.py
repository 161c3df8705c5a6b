"""Per-match player statistics."""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class PlayerStat:
    """
    One row per (match, player).

    Attributes:
        id: Row id
        match_id: Owning match
        player_id: Player the row describes
        time_on_field: Seconds spent on the field so far
        goals: Goals scored in this match
        fouls: Fouls committed in this match
        is_starter: Whether the player was in the kickoff lineup
        is_currently_on_field: Whether the player is in the on-field set now
    """
    id: int
    match_id: int
    player_id: int
    time_on_field: int = 0
    goals: int = 0
    fouls: int = 0
    is_starter: bool = False
    is_currently_on_field: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "matchId": self.match_id,
            "playerId": self.player_id,
            "timeOnField": self.time_on_field,
            "goals": self.goals,
            "fouls": self.fouls,
            "isStarter": self.is_starter,
            "isCurrentlyOnField": self.is_currently_on_field,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlayerStat':
        """Create from dictionary for JSON deserialization."""
        return cls(
            id=int(data["id"]),
            match_id=int(data["matchId"]),
            player_id=int(data["playerId"]),
            time_on_field=int(data.get("timeOnField", 0)),
            goals=int(data.get("goals", 0)),
            fouls=int(data.get("fouls", 0)),
            is_starter=bool(data.get("isStarter", False)),
            is_currently_on_field=bool(data.get("isCurrentlyOnField", False)),
        )
