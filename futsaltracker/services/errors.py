"""
Typed failures raised by the live-match services.

Every failure is raised before the first write of the rejected operation, so
the caller can report it without any state having changed.
"""
from typing import List, Optional


class MatchError(Exception):
    """Base class for all match rule violations."""

    code = "MatchError"

    def __init__(self, message: str, match_id: Optional[int] = None):
        super().__init__(message)
        self.match_id = match_id

    def to_dict(self) -> dict:
        return {"success": False, "error": str(self), "code": self.code}


class IllegalTransition(MatchError):
    """Status or half preconditions are not met."""
    code = "IllegalTransition"


class InvalidLineupSize(MatchError):
    """Starter count does not match the configured players on field."""
    code = "InvalidLineupSize"


class InvalidPlayer(MatchError):
    """Player is unknown, inactive or not on the match's team."""
    code = "InvalidPlayer"


class ForeignPlayer(InvalidPlayer):
    """Player brought on belongs to another team or is inactive."""
    code = "ForeignPlayer"


class PlayerNotOnField(MatchError):
    """Outgoing player is not in the on-field set."""
    code = "PlayerNotOnField"


class PlayerAlreadyOnField(MatchError):
    """Incoming player is already in the on-field set."""
    code = "PlayerAlreadyOnField"


class UnbalancedSubstitution(MatchError):
    """Halftime batch has different numbers of players in and out."""
    code = "UnbalancedSubstitution"


class MatchNotLive(MatchError):
    """Scoring or disciplinary action attempted outside play."""
    code = "MatchNotLive"


class NoMoreHalves(MatchError):
    """The configured last half is already being played."""
    code = "NoMoreHalves"


class NotFound(MatchError):
    """Unknown match, team or player id."""
    code = "NotFound"


class InvalidFormatSettings(MatchError):
    """Format settings are missing or not positive integers."""
    code = "InvalidFormatSettings"


class RosterValidationError(Exception):
    """Custom exception for team and player validation errors."""

    code = "RosterValidationError"

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {"success": False, "error": str(self), "code": self.code, "errors": self.errors}
