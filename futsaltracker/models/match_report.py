"""Dataclasses representing post-match and live match reports."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class PlayerMatchSummary:
    """Aggregated match information for a single player."""

    player_id: int
    name: str
    jersey_number: Optional[int]
    position: Optional[str]
    is_starter: bool
    on_field: bool
    time_on_field: int
    goals: int
    fouls: int
    yellow_cards: int
    red_cards: int
    field_share: float


@dataclass
class MatchReport:
    """Snapshot of a match and how its players were used."""

    match_id: int
    opponent: str
    status: str
    home_score: int
    away_score: int
    current_half: int
    number_of_halves: int
    current_time: int
    substitutions: int
    timeouts: int
    players: List[PlayerMatchSummary] = field(default_factory=list)
    event_counts: Dict[str, int] = field(default_factory=dict)
    average_time_on_field: float = 0.0
