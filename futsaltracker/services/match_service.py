"""
Match state machine for the Futsal Tracker application.

A match moves ``scheduled -> in_progress -> finished`` and never back. Every
mutating call takes the match's lock, validates against the committed
snapshot, writes, and only then announces the new state to viewers. A call
that fails leaves the match exactly as it was.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Union

from ..models import (
    CardColor, EventType, FormatSettings, Match, MatchFormat, MatchStatus, Player,
    PlayerStat
)
from ..utils import parse_iso, utc_now
from .broadcaster import LiveBroadcaster
from .errors import (
    IllegalTransition, InvalidFormatSettings, InvalidLineupSize, InvalidPlayer,
    MatchNotLive, NotFound
)
from .event_log import EventLog
from .match_locks import MatchLockRegistry
from .storage import MatchStore

logger = logging.getLogger(__name__)


class LiveMatchServiceBase:
    """Shared plumbing for services that mutate a single match."""

    def __init__(
        self,
        store: MatchStore,
        event_log: EventLog,
        broadcaster: LiveBroadcaster,
        locks: MatchLockRegistry,
    ):
        self.store = store
        self.event_log = event_log
        self.broadcaster = broadcaster
        self.locks = locks

    def get_match(self, match_id: int) -> Match:
        """Return the committed snapshot of a match or raise ``NotFound``."""
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFound(f"Match {match_id} not found", match_id)
        return match

    def _team_player(self, match: Match, player_id: int, error=InvalidPlayer) -> Player:
        """Look up an active player of the match's team."""
        player = self.store.get_player(player_id)
        if player is None or player.team_id != match.team_id or not player.is_active:
            raise error(
                f"Player {player_id} is not an active player of team {match.team_id}",
                match.id,
            )
        return player

    def _require_live(self, match: Match, action: str, error=IllegalTransition) -> None:
        if match.status is not MatchStatus.IN_PROGRESS:
            raise error(f"Cannot {action}: match {match.id} is {match.status.value}", match.id)

    def _commit(self, match_id: int, **fields: Any) -> Match:
        """Write match fields and announce the new snapshot."""
        match = self.store.put_match(match_id, **fields)
        self.broadcaster.publish_match(match)
        return match

    def _log(self, match: Match, event_type: EventType, description: str, **kwargs):
        return self.event_log.append(
            match.id,
            event_type,
            match.current_time,
            match.current_half,
            description,
            **kwargs,
        )


class MatchService(LiveMatchServiceBase):
    """Lifecycle, clock and scoring operations for a match."""

    # ---------- Creation ---------- #

    def create_match(
        self,
        team_id: int,
        opponent: str,
        venue: str,
        competition: str,
        match_date: Union[datetime, str],
        match_format: Union[MatchFormat, str] = MatchFormat.LEAGUE,
        format_settings: Optional[dict] = None,
    ) -> Match:
        """
        Schedule a new match for a team.

        Args:
            team_id: Owning team
            opponent: Opponent name
            venue: Venue name
            competition: Competition name
            match_date: Kickoff as datetime or ISO-8601 string
            match_format: ``league`` or ``tournament``
            format_settings: Optional overrides of the format defaults

        Raises:
            NotFound: If the team does not exist
            InvalidPlayer: If the team is no longer active
            InvalidFormatSettings: If the format or its settings are invalid
        """
        team = self.store.get_team(team_id)
        if team is None:
            raise NotFound(f"Team {team_id} not found")
        if not team.is_active:
            raise InvalidPlayer(f"Team {team_id} is not active")

        try:
            fmt = MatchFormat(match_format) if not isinstance(match_format, MatchFormat) else match_format
        except ValueError:
            raise InvalidFormatSettings(f"Unknown match format: {match_format}")

        if isinstance(format_settings, FormatSettings):
            settings = format_settings
        else:
            settings = FormatSettings.from_dict(format_settings, fmt)
        errors = settings.validate()
        if errors:
            raise InvalidFormatSettings("; ".join(errors))

        for name, value in (("opponent", opponent), ("venue", venue), ("competition", competition)):
            if not value or not str(value).strip():
                raise InvalidFormatSettings(f"{name} is required")

        try:
            kickoff = parse_iso(match_date)
        except ValueError:
            raise InvalidFormatSettings(f"Invalid match date: {match_date}")
        if kickoff is None:
            raise InvalidFormatSettings("match date is required")

        match = self.store.create_match(
            team_id, str(opponent).strip(), str(venue).strip(), str(competition).strip(), kickoff, fmt, settings
        )
        logger.info("Scheduled match %s: team %s vs %s", match.id, team_id, match.opponent)
        return match

    # ---------- Lifecycle ---------- #

    def start_match(self, match_id: int, starters: Iterable[int]) -> Match:
        """
        Kick off a scheduled match with its starting lineup.

        Raises:
            IllegalTransition: If the match is not scheduled
            InvalidLineupSize: If the starter count differs from players on field
            InvalidPlayer: If a starter is foreign or inactive
        """
        starter_list = [int(pid) for pid in starters]
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            if match.status is not MatchStatus.SCHEDULED:
                raise IllegalTransition(
                    f"Cannot start match {match_id}: it is {match.status.value}", match_id
                )

            required = match.format_settings.players_on_field
            starter_set = frozenset(starter_list)
            if len(starter_set) != len(starter_list) or len(starter_set) != required:
                raise InvalidLineupSize(
                    f"Starting lineup needs exactly {required} distinct players, got {len(starter_list)}",
                    match_id,
                )
            for player_id in starter_list:
                self._team_player(match, player_id)

            for player_id in starter_list:
                self.store.upsert_player_stat(
                    match_id,
                    player_id,
                    is_starter=True,
                    is_currently_on_field=True,
                )
            match = self._commit(
                match_id,
                status=MatchStatus.IN_PROGRESS,
                started_at=utc_now(),
                current_half=1,
                current_time=0,
                timer_running=True,
                active_players=starter_set,
            )
            logger.info("Match %s started with %d players", match_id, required)
            return match

    def end_match(self, match_id: int) -> Match:
        """Finish a live match. A second call fails and changes nothing."""
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "end match")
            match = self._commit(
                match_id,
                status=MatchStatus.FINISHED,
                ended_at=utc_now(),
                timer_running=False,
            )
            logger.info(
                "Match %s finished %d-%d", match_id, match.home_score, match.away_score
            )
            return match

    # ---------- Clock ---------- #

    def toggle_timer(self, match_id: int, running: Optional[bool] = None) -> Match:
        """
        Flip the clock, or set it to ``running`` when given.

        Setting the state it already has is a silent no-op.
        """
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "toggle timer")
            target = (not match.timer_running) if running is None else bool(running)
            if target == match.timer_running:
                return match
            logger.info("Match %s clock %s at %ss", match_id, "running" if target else "paused", match.current_time)
            return self._commit(match_id, timer_running=target)

    def advance_clock(self, match_id: int, delta_seconds: int) -> Match:
        """
        Add ``delta_seconds`` to the half clock if it is running.

        Driven by an external ticker. While paused (or outside play) the call
        is a no-op. Players on the field accrue the same time.
        """
        delta = int(delta_seconds)
        if delta < 0:
            raise ValueError("delta_seconds must not be negative")

        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            if not match.is_live or not match.timer_running or delta == 0:
                return match

            for stat in self.store.list_player_stats(match_id):
                if stat.is_currently_on_field:
                    self.store.upsert_player_stat(
                        match_id, stat.player_id, time_on_field=stat.time_on_field + delta
                    )
            logger.debug("Match %s clock +%ss", match_id, delta)
            return self._commit(match_id, current_time=match.current_time + delta)

    # ---------- Scoring and discipline ---------- #

    def record_goal(
        self,
        match_id: int,
        player_id: Optional[int] = None,
        for_home_side: bool = True,
    ) -> Match:
        """
        Add one goal to a side and log it.

        Home goals must name the scorer, whose PlayerStat row is credited.
        Away goals may name one of our players as an own goal; nobody is
        credited.
        """
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "record goal", MatchNotLive)

            player = None
            if player_id is not None:
                player = self._team_player(match, player_id)
            elif for_home_side:
                raise InvalidPlayer("A home goal needs a scorer", match_id)

            if for_home_side:
                description = f"Goal by {player.label}"
                stat = self._stat_row(match_id, player_id)
                self.store.upsert_player_stat(match_id, player_id, goals=stat.goals + 1)
                fields = {"home_score": match.home_score + 1}
            else:
                description = f"Own goal by {player.label}" if player else f"Goal by {match.opponent}"
                fields = {"away_score": match.away_score + 1}

            self._log(
                match,
                EventType.GOAL,
                description,
                player_id=player_id,
                metadata={"side": "home" if for_home_side else "away"},
            )
            return self._commit(match_id, **fields)

    def record_card(self, match_id: int, player_id: int, card_color: Union[CardColor, str]):
        """
        Log a yellow or red card.

        Cards never change the score or the on-field set.
        """
        try:
            color = card_color if isinstance(card_color, CardColor) else CardColor(str(card_color).lower())
        except ValueError:
            raise ValueError(f"Unknown card color: {card_color}")

        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "record card", MatchNotLive)
            player = self._team_player(match, player_id)
            return self._log(
                match,
                color.event_type,
                f"{color.value.capitalize()} card for {player.label}",
                player_id=player_id,
                metadata={"color": color.value},
            )

    def record_foul(self, match_id: int, player_id: int):
        """Log a foul and count it against the player."""
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "record foul", MatchNotLive)
            player = self._team_player(match, player_id)
            stat = self._stat_row(match_id, player_id)
            self.store.upsert_player_stat(match_id, player_id, fouls=stat.fouls + 1)
            return self._log(match, EventType.FOUL, f"Foul by {player.label}", player_id=player_id)

    def record_timeout(self, match_id: int, description: Optional[str] = None):
        """Log a timeout and stop the clock."""
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "call timeout", MatchNotLive)
            event = self._log(match, EventType.TIMEOUT, description or "Timeout")
            if match.timer_running:
                self._commit(match_id, timer_running=False)
            return event

    # ---------- Queries ---------- #

    def list_matches(self, team_id: Optional[int] = None):
        return self.store.list_matches(team_id)

    def player_stats(self, match_id: int):
        self.get_match(match_id)
        return self.store.list_player_stats(match_id)

    def _stat_row(self, match_id: int, player_id: int) -> PlayerStat:
        stat = self.store.get_player_stat(match_id, player_id)
        if stat is None:
            # First appearance in the stats table (e.g. a goal from a bench player)
            stat = self.store.upsert_player_stat(match_id, player_id)
        return stat
