"""
Match model for the Futsal Tracker application.

This module contains the Match dataclass which represents the complete live
state of a single match (status, half, clock, score and on-field set) along
with its fixed format settings.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from ..utils import FORMAT_DEFAULTS, utc_now, to_iso, parse_iso


class MatchStatus(Enum):
    """Lifecycle states of a match."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class MatchFormat(Enum):
    """Competition formats, each with its own default settings."""
    LEAGUE = "league"
    TOURNAMENT = "tournament"


@dataclass(frozen=True)
class FormatSettings:
    """
    Per-match configuration fixed at creation.

    Attributes:
        half_duration: Nominal minutes per half
        number_of_halves: Number of halves to be played
        players_on_field: Size of the on-field set during play
    """
    half_duration: int
    number_of_halves: int
    players_on_field: int

    @classmethod
    def for_format(cls, match_format: MatchFormat) -> 'FormatSettings':
        """Default settings for a competition format."""
        return cls.from_dict({}, match_format)

    def validate(self) -> List[str]:
        """
        Validate settings and return list of validation error messages.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        for name in ("half_duration", "number_of_halves", "players_on_field"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{name} must be an integer")
            elif value < 1:
                errors.append(f"{name} must be a positive integer")
        return errors

    @property
    def half_duration_seconds(self) -> int:
        return self.half_duration * 60

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "halfDuration": self.half_duration,
            "numberOfHalves": self.number_of_halves,
            "playersOnField": self.players_on_field,
        }

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        match_format: MatchFormat = MatchFormat.LEAGUE,
    ) -> 'FormatSettings':
        """Create from dictionary, filling missing keys from the format defaults."""
        merged = dict(FORMAT_DEFAULTS[match_format.value])
        merged.update({k: v for k, v in (data or {}).items() if v is not None})
        return cls(
            half_duration=_coerce_int(merged["halfDuration"]),
            number_of_halves=_coerce_int(merged["numberOfHalves"]),
            players_on_field=_coerce_int(merged["playersOnField"]),
        )


def _coerce_int(value: Any) -> Any:
    # Numeric strings from form posts are accepted; anything else is left for validate()
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    return value


@dataclass
class Match:
    """
    Represents the complete state of a futsal match.

    Attributes:
        id: Match id
        team_id: Owning team id
        opponent: Opponent name
        venue: Where the match is played
        competition: Competition name
        match_date: Scheduled kickoff
        format: Competition format
        format_settings: Halves, half duration and players on field
        status: Lifecycle state
        home_score: Goals for the home side
        away_score: Goals for the away side
        current_half: Active half (1-based)
        current_time: Elapsed seconds within the current half
        timer_running: Whether the clock is running
        active_players: Ids of the players currently on the field
        started_at: When the match kicked off
        ended_at: When the match was finished
    """
    id: int
    team_id: int
    opponent: str
    venue: str
    competition: str
    match_date: datetime
    format: MatchFormat = MatchFormat.LEAGUE
    format_settings: FormatSettings = field(
        default_factory=lambda: FormatSettings.for_format(MatchFormat.LEAGUE)
    )
    status: MatchStatus = MatchStatus.SCHEDULED
    home_score: int = 0
    away_score: int = 0
    current_half: int = 1
    current_time: int = 0
    timer_running: bool = False
    active_players: FrozenSet[int] = frozenset()
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_live(self) -> bool:
        return self.status is MatchStatus.IN_PROGRESS

    @property
    def is_last_half(self) -> bool:
        return self.current_half >= self.format_settings.number_of_halves

    @property
    def half_time_remaining(self) -> int:
        """Advisory seconds left in the current half (never enforced)."""
        return max(0, self.format_settings.half_duration_seconds - self.current_time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "teamId": self.team_id,
            "opponent": self.opponent,
            "venue": self.venue,
            "competition": self.competition,
            "matchDate": to_iso(self.match_date),
            "format": self.format.value,
            "formatSettings": self.format_settings.to_dict(),
            "status": self.status.value,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "currentHalf": self.current_half,
            "currentTime": self.current_time,
            "isTimerRunning": self.timer_running,
            "activePlayers": sorted(self.active_players),
            "startedAt": to_iso(self.started_at),
            "endedAt": to_iso(self.ended_at),
            "createdAt": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Match':
        """Create from dictionary for JSON deserialization."""
        match_format = MatchFormat(data.get("format", MatchFormat.LEAGUE.value))
        return cls(
            id=int(data["id"]),
            team_id=int(data["teamId"]),
            opponent=data["opponent"],
            venue=data["venue"],
            competition=data["competition"],
            match_date=parse_iso(data["matchDate"]),
            format=match_format,
            format_settings=FormatSettings.from_dict(data.get("formatSettings"), match_format),
            status=MatchStatus(data.get("status", MatchStatus.SCHEDULED.value)),
            home_score=int(data.get("homeScore", 0)),
            away_score=int(data.get("awayScore", 0)),
            current_half=int(data.get("currentHalf", 1)),
            current_time=int(data.get("currentTime", 0)),
            timer_running=bool(data.get("isTimerRunning", False)),
            active_players=frozenset(int(pid) for pid in data.get("activePlayers", [])),
            started_at=parse_iso(data.get("startedAt")),
            ended_at=parse_iso(data.get("endedAt")),
            created_at=parse_iso(data.get("createdAt")) or utc_now(),
        )
