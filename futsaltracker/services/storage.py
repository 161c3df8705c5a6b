"""
Match record store for the Futsal Tracker application.

``MatchStore`` declares the storage boundary the live-match services depend
on. ``InMemoryMatchStore`` is the implementation used by the web app and the
tests: every call is atomic and every record handed out is a copy, so a
reader can never observe a half-applied update.
"""
import copy
import dataclasses
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, ContextManager, Dict, List, Optional

from ..models import (
    Team, Player, Match, MatchFormat, FormatSettings, MatchEvent, EventType, PlayerStat
)
from ..utils import utc_now
from .errors import NotFound


class MatchStore(ABC):
    """Abstract storage boundary - services depend on this, not on a backend."""

    @abstractmethod
    def transaction(self) -> ContextManager[Any]:
        """Context manager making a sequence of store calls atomic."""
        ...

    # ---------- Teams ---------- #

    @abstractmethod
    def create_team(self, name: str) -> Team:
        ...

    @abstractmethod
    def get_team(self, team_id: int) -> Optional[Team]:
        ...

    @abstractmethod
    def list_teams(self) -> List[Team]:
        """Active teams only."""
        ...

    @abstractmethod
    def deactivate_team(self, team_id: int) -> Team:
        """Soft delete a team and all of its players."""
        ...

    # ---------- Players ---------- #

    @abstractmethod
    def create_player(self, team_id: int, name: str, jersey_number: int, position: str) -> Player:
        ...

    @abstractmethod
    def get_player(self, player_id: int) -> Optional[Player]:
        ...

    @abstractmethod
    def get_players_of(self, team_id: int) -> List[Player]:
        """Active players of a team."""
        ...

    @abstractmethod
    def update_player(self, player_id: int, **fields: Any) -> Player:
        ...

    @abstractmethod
    def deactivate_player(self, player_id: int) -> Player:
        ...

    # ---------- Matches ---------- #

    @abstractmethod
    def create_match(
        self,
        team_id: int,
        opponent: str,
        venue: str,
        competition: str,
        match_date: datetime,
        match_format: MatchFormat,
        format_settings: FormatSettings,
    ) -> Match:
        ...

    @abstractmethod
    def get_match(self, match_id: int) -> Optional[Match]:
        ...

    @abstractmethod
    def list_matches(self, team_id: Optional[int] = None) -> List[Match]:
        ...

    @abstractmethod
    def put_match(self, match_id: int, **fields: Any) -> Match:
        """Atomic partial update returning the new snapshot."""
        ...

    # ---------- Events ---------- #

    @abstractmethod
    def append_event(
        self,
        match_id: int,
        event_type: EventType,
        event_time: int,
        half: int,
        description: str,
        player_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MatchEvent:
        ...

    @abstractmethod
    def list_events(self, match_id: int) -> List[MatchEvent]:
        """Events of a match in insertion order."""
        ...

    # ---------- Player stats ---------- #

    @abstractmethod
    def get_player_stat(self, match_id: int, player_id: int) -> Optional[PlayerStat]:
        ...

    @abstractmethod
    def upsert_player_stat(self, match_id: int, player_id: int, **fields: Any) -> PlayerStat:
        ...

    @abstractmethod
    def list_player_stats(self, match_id: int) -> List[PlayerStat]:
        ...


class InMemoryMatchStore(MatchStore):
    """
    Thread-safe in-memory store.

    A single re-entrant lock guards all tables; ids are sequential per table.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._teams: Dict[int, Team] = {}
        self._players: Dict[int, Player] = {}
        self._matches: Dict[int, Match] = {}
        self._events: Dict[int, List[MatchEvent]] = {}
        self._stats: Dict[int, Dict[int, PlayerStat]] = {}
        self._next_ids = {"team": 1, "player": 1, "match": 1, "event": 1, "stat": 1}

    def transaction(self) -> ContextManager[Any]:
        # Re-entrant, so store calls made inside the block still work
        return self._lock

    def _next_id(self, table: str) -> int:
        value = self._next_ids[table]
        self._next_ids[table] = value + 1
        return value

    # ---------- Teams ---------- #

    def create_team(self, name: str) -> Team:
        with self._lock:
            team = Team(id=self._next_id("team"), name=name)
            self._teams[team.id] = team
            return dataclasses.replace(team)

    def get_team(self, team_id: int) -> Optional[Team]:
        with self._lock:
            team = self._teams.get(team_id)
            return dataclasses.replace(team) if team else None

    def list_teams(self) -> List[Team]:
        with self._lock:
            return [dataclasses.replace(t) for t in self._teams.values() if t.is_active]

    def deactivate_team(self, team_id: int) -> Team:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                raise NotFound(f"Team {team_id} not found")
            for player_id, player in self._players.items():
                if player.team_id == team_id:
                    self._players[player_id] = dataclasses.replace(player, is_active=False)
            self._teams[team_id] = dataclasses.replace(team, is_active=False)
            return dataclasses.replace(self._teams[team_id])

    # ---------- Players ---------- #

    def create_player(self, team_id: int, name: str, jersey_number: int, position: str) -> Player:
        with self._lock:
            if team_id not in self._teams:
                raise NotFound(f"Team {team_id} not found")
            player = Player(
                id=self._next_id("player"),
                team_id=team_id,
                name=name,
                jersey_number=jersey_number,
                position=position,
            )
            self._players[player.id] = player
            return dataclasses.replace(player)

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._lock:
            player = self._players.get(player_id)
            return dataclasses.replace(player) if player else None

    def get_players_of(self, team_id: int) -> List[Player]:
        with self._lock:
            return [
                dataclasses.replace(p) for p in self._players.values()
                if p.team_id == team_id and p.is_active
            ]

    def update_player(self, player_id: int, **fields: Any) -> Player:
        with self._lock:
            player = self._players.get(player_id)
            if player is None:
                raise NotFound(f"Player {player_id} not found")
            self._players[player_id] = dataclasses.replace(player, **fields)
            return dataclasses.replace(self._players[player_id])

    def deactivate_player(self, player_id: int) -> Player:
        return self.update_player(player_id, is_active=False)

    # ---------- Matches ---------- #

    def create_match(
        self,
        team_id: int,
        opponent: str,
        venue: str,
        competition: str,
        match_date: datetime,
        match_format: MatchFormat,
        format_settings: FormatSettings,
    ) -> Match:
        with self._lock:
            match = Match(
                id=self._next_id("match"),
                team_id=team_id,
                opponent=opponent,
                venue=venue,
                competition=competition,
                match_date=match_date,
                format=match_format,
                format_settings=format_settings,
            )
            self._matches[match.id] = match
            self._events[match.id] = []
            self._stats[match.id] = {}
            return dataclasses.replace(match)

    def get_match(self, match_id: int) -> Optional[Match]:
        with self._lock:
            match = self._matches.get(match_id)
            return dataclasses.replace(match) if match else None

    def list_matches(self, team_id: Optional[int] = None) -> List[Match]:
        with self._lock:
            return [
                dataclasses.replace(m) for m in self._matches.values()
                if team_id is None or m.team_id == team_id
            ]

    def put_match(self, match_id: int, **fields: Any) -> Match:
        with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                raise NotFound(f"Match {match_id} not found", match_id)
            if "active_players" in fields:
                fields["active_players"] = frozenset(fields["active_players"])
            self._matches[match_id] = dataclasses.replace(match, **fields)
            return dataclasses.replace(self._matches[match_id])

    # ---------- Events ---------- #

    def append_event(
        self,
        match_id: int,
        event_type: EventType,
        event_time: int,
        half: int,
        description: str,
        player_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MatchEvent:
        with self._lock:
            if match_id not in self._matches:
                raise NotFound(f"Match {match_id} not found", match_id)
            event = MatchEvent(
                id=self._next_id("event"),
                match_id=match_id,
                player_id=player_id,
                event_type=event_type,
                event_time=event_time,
                half=half,
                description=description,
                metadata=copy.deepcopy(metadata or {}),
                created_at=utc_now(),
            )
            self._events[match_id].append(event)
            return copy.deepcopy(event)

    def list_events(self, match_id: int) -> List[MatchEvent]:
        with self._lock:
            return copy.deepcopy(self._events.get(match_id, []))

    # ---------- Player stats ---------- #

    def get_player_stat(self, match_id: int, player_id: int) -> Optional[PlayerStat]:
        with self._lock:
            stat = self._stats.get(match_id, {}).get(player_id)
            return dataclasses.replace(stat) if stat else None

    def upsert_player_stat(self, match_id: int, player_id: int, **fields: Any) -> PlayerStat:
        with self._lock:
            if match_id not in self._matches:
                raise NotFound(f"Match {match_id} not found", match_id)
            rows = self._stats[match_id]
            stat = rows.get(player_id)
            if stat is None:
                stat = PlayerStat(id=self._next_id("stat"), match_id=match_id, player_id=player_id)
            rows[player_id] = dataclasses.replace(stat, **fields)
            return dataclasses.replace(rows[player_id])

    def list_player_stats(self, match_id: int) -> List[PlayerStat]:
        with self._lock:
            return [dataclasses.replace(s) for s in self._stats.get(match_id, {}).values()]

    # ---------- Snapshots ---------- #

    def snapshot(self) -> Dict[str, Any]:
        """Return a JSON-ready copy of every table."""
        with self._lock:
            return {
                "teams": [t.to_dict() for t in self._teams.values()],
                "players": [p.to_dict() for p in self._players.values()],
                "matches": [m.to_dict() for m in self._matches.values()],
                "events": [e.to_dict() for events in self._events.values() for e in events],
                "playerStats": [s.to_dict() for rows in self._stats.values() for s in rows.values()],
                "nextIds": dict(self._next_ids),
            }

    def restore(self, data: Dict[str, Any]) -> None:
        """Replace the whole store with a snapshot produced by :meth:`snapshot`."""
        teams = {t.id: t for t in (Team.from_dict(d) for d in data.get("teams", []))}
        players = {p.id: p for p in (Player.from_dict(d) for d in data.get("players", []))}
        matches = {m.id: m for m in (Match.from_dict(d) for d in data.get("matches", []))}
        events: Dict[int, List[MatchEvent]] = {match_id: [] for match_id in matches}
        for event in sorted((MatchEvent.from_dict(d) for d in data.get("events", [])), key=lambda e: e.id):
            events.setdefault(event.match_id, []).append(event)
        stats: Dict[int, Dict[int, PlayerStat]] = {match_id: {} for match_id in matches}
        for stat in (PlayerStat.from_dict(d) for d in data.get("playerStats", [])):
            stats.setdefault(stat.match_id, {})[stat.player_id] = stat

        next_ids = {
            "team": max(teams, default=0) + 1,
            "player": max(players, default=0) + 1,
            "match": max(matches, default=0) + 1,
            "event": max((e.id for rows in events.values() for e in rows), default=0) + 1,
            "stat": max((s.id for rows in stats.values() for s in rows.values()), default=0) + 1,
        }
        for table, value in (data.get("nextIds") or {}).items():
            if table in next_ids:
                next_ids[table] = max(next_ids[table], int(value))

        with self._lock:
            self._teams = teams
            self._players = players
            self._matches = matches
            self._events = events
            self._stats = stats
            self._next_ids = next_ids
