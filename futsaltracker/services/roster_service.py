"""
Roster service for the Futsal Tracker application.

This module provides validation and soft-delete handling for teams and
players. The live-match services only read what it writes.
"""
import logging
from typing import Any, Dict, List, Optional

from ..models import Player, Team
from ..utils import FUTSAL_POSITIONS, MAX_JERSEY_NUMBER, MIN_JERSEY_NUMBER
from .errors import NotFound, RosterValidationError
from .storage import MatchStore

logger = logging.getLogger(__name__)


class RosterService:
    """
    Service class for managing teams and their players.

    Provides methods for team and player creation with validation, updates
    and soft deletion.
    """

    VALID_POSITIONS = FUTSAL_POSITIONS

    def __init__(self, store: MatchStore):
        self.store = store

    # ---------- Teams ---------- #

    def create_team(self, name: str) -> Team:
        name = (name or "").strip()
        if not name:
            raise RosterValidationError(["Team name is required"])
        team = self.store.create_team(name)
        logger.info("Created team %s (%s)", team.id, team.name)
        return team

    def list_teams(self) -> List[Team]:
        return self.store.list_teams()

    def delete_team(self, team_id: int) -> Team:
        """Soft delete a team together with its players."""
        team = self.store.deactivate_team(team_id)
        logger.info("Deactivated team %s", team_id)
        return team

    # ---------- Players ---------- #

    def validate_player_data(
        self,
        team_id: int,
        name: Any,
        jersey_number: Any,
        position: Any,
        player_id: Optional[int] = None,
    ) -> List[str]:
        """
        Validate player data and return list of validation error messages.

        Args:
            team_id: Team the player belongs to
            name: Player's full name
            jersey_number: Shirt number
            position: Futsal position
            player_id: Id of the player being updated, excluded from the
                jersey uniqueness check

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not name or not str(name).strip():
            errors.append("Player name is required")
        elif len(str(name).strip()) < 2:
            errors.append("Player name must be at least 2 characters long")

        number = _as_int(jersey_number)
        if number is None:
            errors.append("Jersey number must be numeric")
        elif not MIN_JERSEY_NUMBER <= number <= MAX_JERSEY_NUMBER:
            errors.append(f"Jersey number must be between {MIN_JERSEY_NUMBER} and {MAX_JERSEY_NUMBER}")
        else:
            taken = [
                p for p in self.store.get_players_of(team_id)
                if p.jersey_number == number and p.id != player_id
            ]
            if taken:
                errors.append(f"Jersey number {number} is already taken by {taken[0].name}")

        if position not in self.VALID_POSITIONS:
            errors.append(f"Invalid position: {position}. Expected one of {', '.join(self.VALID_POSITIONS)}")

        return errors

    def create_player(self, team_id: int, name: str, jersey_number: Any, position: str) -> Player:
        """
        Create a new player with validation.

        The jersey check and the insert run in one store transaction, so two
        concurrent creates cannot both take the same number.

        Raises:
            NotFound: If the team does not exist
            RosterValidationError: If the data is invalid or the team inactive
        """
        with self.store.transaction():
            team = self.store.get_team(team_id)
            if team is None:
                raise NotFound(f"Team {team_id} not found")
            if not team.is_active:
                raise RosterValidationError([f"Team {team.name} is not active"])

            errors = self.validate_player_data(team_id, name, jersey_number, position)
            if errors:
                raise RosterValidationError(errors)

            player = self.store.create_player(team_id, str(name).strip(), int(jersey_number), position)
        logger.info("Added %s to team %s", player.label, team_id)
        return player

    def update_player(self, player_id: int, updates: Dict[str, Any]) -> Player:
        """Update name, jersey number or position of an existing player."""
        with self.store.transaction():
            player = self.store.get_player(player_id)
            if player is None:
                raise NotFound(f"Player {player_id} not found")

            name = updates.get("name", player.name)
            number = updates.get("jerseyNumber", player.jersey_number)
            position = updates.get("position", player.position)
            errors = self.validate_player_data(player.team_id, name, number, position, player_id=player_id)
            if errors:
                raise RosterValidationError(errors)

            return self.store.update_player(
                player_id, name=str(name).strip(), jersey_number=int(number), position=position
            )

    def delete_player(self, player_id: int) -> Player:
        """Soft delete a player; match history keeps referring to it."""
        if self.store.get_player(player_id) is None:
            raise NotFound(f"Player {player_id} not found")
        return self.store.deactivate_player(player_id)

    def players_of(self, team_id: int) -> List[Player]:
        if self.store.get_team(team_id) is None:
            raise NotFound(f"Team {team_id} not found")
        return sorted(self.store.get_players_of(team_id), key=lambda p: p.jersey_number)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
