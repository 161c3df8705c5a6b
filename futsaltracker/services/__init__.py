"""
Services package for the Futsal Tracker.

This package contains service classes that handle business logic.
Includes factory for proper dependency injection.
"""
from .errors import (
    MatchError, IllegalTransition, InvalidLineupSize, InvalidPlayer, ForeignPlayer,
    PlayerNotOnField, PlayerAlreadyOnField, UnbalancedSubstitution, MatchNotLive,
    NoMoreHalves, NotFound, InvalidFormatSettings, RosterValidationError
)
from .storage import MatchStore, InMemoryMatchStore
from .match_locks import MatchLockRegistry
from .broadcaster import LiveBroadcaster, ViewerChannel
from .event_log import EventLog
from .match_service import MatchService
from .lineup_service import LineupService
from .roster_service import RosterService
from .report_service import MatchReportService, MatchReportExporter
from .persistence_service import PersistenceService
from .service_factory import ServiceFactory

__all__ = [
    "MatchError", "IllegalTransition", "InvalidLineupSize", "InvalidPlayer",
    "ForeignPlayer", "PlayerNotOnField", "PlayerAlreadyOnField",
    "UnbalancedSubstitution", "MatchNotLive", "NoMoreHalves", "NotFound",
    "InvalidFormatSettings", "RosterValidationError", "MatchStore",
    "InMemoryMatchStore", "MatchLockRegistry", "LiveBroadcaster", "ViewerChannel",
    "EventLog", "MatchService", "LineupService", "RosterService",
    "MatchReportService", "MatchReportExporter", "PersistenceService",
    "ServiceFactory"
]
