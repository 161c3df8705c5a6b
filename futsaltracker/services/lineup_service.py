"""
Lineup manager for the Futsal Tracker application.

Keeps the on-field set at exactly the configured size: single live
substitutions, the halftime batch of tactical changes and the move to the
next half.
"""
import logging
from typing import Dict, List, Sequence

from ..models import EventType, Match, player_label
from .errors import (
    ForeignPlayer, IllegalTransition, InvalidLineupSize, NoMoreHalves,
    PlayerAlreadyOnField, PlayerNotOnField, UnbalancedSubstitution
)
from .match_service import LiveMatchServiceBase

logger = logging.getLogger(__name__)


class LineupService(LiveMatchServiceBase):
    """
    On-field set operations.

    Swaps are bijective on the set of active player ids: one out, one in, size
    unchanged. Position on the pitch is not modelled.
    """

    def substitute(self, match_id: int, player_out: int, player_in: int) -> Match:
        """
        Swap one on-field player for one from the bench.

        Raises:
            IllegalTransition: If the match is not in progress
            PlayerNotOnField: If ``player_out`` is not on the field
            PlayerAlreadyOnField: If ``player_in`` is already on the field
            ForeignPlayer: If ``player_in`` is not an active player of the team
        """
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "substitute")
            self._check_swap(match, match.active_players, player_out, player_in)

            active = (match.active_players - {player_out}) | {player_in}
            match = self.store.put_match(match_id, active_players=active)
            self._record_swap(match, player_out, player_in, halftime=False)
            self.broadcaster.publish_match(match)
            logger.info("Match %s: player %s off, player %s on", match_id, player_out, player_in)
            return match

    def apply_halftime_changes(
        self,
        match_id: int,
        players_out: Sequence[int],
        players_in: Sequence[int],
    ) -> Match:
        """
        Apply a batch of tactical changes while the clock is stopped.

        The whole batch is checked against the lineup as it stood before the
        call, then written in one go; any failure rejects every swap.

        Raises:
            IllegalTransition: If the match is not in progress or the clock runs
            UnbalancedSubstitution: If the lists differ in length
            InvalidLineupSize: If a player is listed twice
            PlayerNotOnField / PlayerAlreadyOnField / ForeignPlayer: For a bad swap
        """
        outs = [int(pid) for pid in players_out]
        ins = [int(pid) for pid in players_in]

        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "change lineup")
            if len(outs) != len(ins):
                raise UnbalancedSubstitution(
                    f"{len(outs)} players out but {len(ins)} players in", match_id
                )
            if match.timer_running:
                raise IllegalTransition(
                    "Lineup changes are only allowed while the clock is stopped", match_id
                )
            if len(set(outs)) != len(outs) or len(set(ins)) != len(ins):
                raise InvalidLineupSize("A player is listed more than once", match_id)

            before = match.active_players
            for player_out, player_in in zip(outs, ins):
                self._check_swap(match, before, player_out, player_in)
            if not outs:
                return match

            active = (before - set(outs)) | set(ins)
            match = self.store.put_match(match_id, active_players=active)
            for player_out, player_in in zip(outs, ins):
                self._record_swap(match, player_out, player_in, halftime=True)
            self.broadcaster.publish_match(match)
            logger.info("Match %s: %d halftime changes applied", match_id, len(outs))
            return match

    def start_next_half(self, match_id: int) -> Match:
        """
        Move to the next half: clock back to zero and running.

        Raises:
            IllegalTransition: If the match is not in progress
            NoMoreHalves: If the last configured half is already under way
        """
        with self.locks.hold(match_id):
            match = self.get_match(match_id)
            self._require_live(match, "start next half")
            if match.is_last_half:
                raise NoMoreHalves(
                    f"Match {match_id} is already in its last half "
                    f"({match.format_settings.number_of_halves}); end the match instead",
                    match_id,
                )
            match = self._commit(
                match_id,
                current_half=match.current_half + 1,
                current_time=0,
                timer_running=True,
            )
            logger.info("Match %s: half %d started", match_id, match.current_half)
            return match

    def bench(self, match_id: int) -> List[int]:
        """Ids of the team's active players not currently on the field."""
        match = self.get_match(match_id)
        return [
            p.id for p in self.store.get_players_of(match.team_id)
            if p.id not in match.active_players
        ]

    # ---------- Internal helpers ---------- #

    def _check_swap(self, match: Match, on_field, player_out: int, player_in: int) -> None:
        if player_out not in on_field:
            raise PlayerNotOnField(f"Player {player_out} is not on the field", match.id)
        if player_in in on_field:
            raise PlayerAlreadyOnField(f"Player {player_in} is already on the field", match.id)
        self._team_player(match, player_in, error=ForeignPlayer)

    def _record_swap(self, match: Match, player_out: int, player_in: int, halftime: bool) -> None:
        out_label = player_label(self.store.get_player(player_out), player_out)
        in_label = player_label(self.store.get_player(player_in), player_in)
        metadata: Dict[str, object] = {"playerOut": player_out, "playerIn": player_in}
        if halftime:
            metadata["halftime"] = True

        self.store.upsert_player_stat(match.id, player_out, is_currently_on_field=False)
        # New rows default to is_starter=False
        self.store.upsert_player_stat(match.id, player_in, is_currently_on_field=True)

        self._log(
            match,
            EventType.SUBSTITUTION,
            f"Substitution: {out_label} out, {in_label} in",
            metadata=metadata,
        )
